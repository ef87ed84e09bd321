from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from pdf_models import CanvasSize, GeometryError, HighlightRect, TextRun

logger = logging.getLogger(__name__)

DEFAULT_RENDER_SCALE = 1.5
HIGHLIGHT_PADDING = 2.0

# (a, b, c, d) of the rotation part of the viewport transform, keyed by degrees
_ROTATIONS: dict[int, tuple[int, int, int, int]] = {
    0: (1, 0, 0, -1),
    90: (0, 1, 1, 0),
    180: (-1, 0, 0, 1),
    270: (0, -1, -1, 0),
}


@dataclass(frozen=True)
class Viewport:
    """Maps PDF user space (bottom-left origin) to top-left pixel space at *scale*.

    ``view_box`` is the page box ``(x0, y0, x1, y1)`` in PDF units and
    ``rotation`` the page's /Rotate value.
    """

    view_box: tuple[float, float, float, float]
    scale: float
    rotation: int = 0
    transform: tuple[float, float, float, float, float, float] = field(init=False)
    width: float = field(init=False)
    height: float = field(init=False)

    def __post_init__(self) -> None:
        rotation = self.rotation % 360
        if rotation not in _ROTATIONS:
            raise ValueError(f"rotation must be a multiple of 90, got {self.rotation}")
        a, b, c, d = _ROTATIONS[rotation]
        x0, y0, x1, y1 = self.view_box
        s = self.scale
        center_x = (x0 + x1) / 2
        center_y = (y0 + y1) / 2

        if a == 0:
            offset_x = abs(center_y - y0) * s
            offset_y = abs(center_x - x0) * s
            width = abs(y1 - y0) * s
            height = abs(x1 - x0) * s
        else:
            offset_x = abs(center_x - x0) * s
            offset_y = abs(center_y - y0) * s
            width = abs(x1 - x0) * s
            height = abs(y1 - y0) * s

        transform = (
            a * s,
            b * s,
            c * s,
            d * s,
            offset_x - a * s * center_x - c * s * center_y,
            offset_y - b * s * center_x - d * s * center_y,
        )
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "transform", transform)
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)

    def convert_to_viewport_point(self, x: float, y: float) -> tuple[float, float]:
        a, b, c, d, e, f = self.transform
        return a * x + c * y + e, b * x + d * y + f


def _check_finite(run: TextRun) -> None:
    values = (*run.transform, run.width)
    if not all(math.isfinite(v) for v in values):
        raise GeometryError(f"non-finite geometry for run {run.text!r}: {values}")


def to_pixel_rect(
    run: TextRun,
    viewport: Viewport,
    intrinsic: CanvasSize | None,
    displayed: CanvasSize | None,
) -> HighlightRect | None:
    """Project *run* onto the displayed canvas.

    The run's baseline origin goes through the viewport, then everything is
    stretched by the displayed/intrinsic ratio of the canvas. The box is moved
    up by its height because PDF anchors text at the baseline while pixel rects
    are anchored top-left, and padded by a margin that follows the same ratio.

    Returns None when the page has no rendered canvas yet. Raises GeometryError
    on non-finite transform or width values.
    """
    if intrinsic is None or displayed is None or intrinsic.width <= 0 or intrinsic.height <= 0:
        logger.debug("No rendered canvas, skipping run %r", run.text)
        return None
    _check_finite(run)

    scale_x = displayed.width / intrinsic.width
    scale_y = displayed.height / intrinsic.height

    text_width = run.width
    text_height = run.font_size

    view_x, view_y = viewport.convert_to_viewport_point(run.transform[4], run.transform[5])
    x = view_x * scale_x
    y = view_y * scale_y
    scaled_width = text_width * viewport.scale * scale_x
    scaled_height = text_height * viewport.scale * scale_y

    padding = HIGHLIGHT_PADDING * min(scale_x, scale_y)

    return HighlightRect(
        x=x - padding,
        y=y - scaled_height - padding,
        width=scaled_width + padding * 2,
        height=scaled_height + padding * 2,
    )
