from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Mapping

from pdf_models import TextRun

logger = logging.getLogger(__name__)

# A horizontal gap wider than this many average char widths starts a new run
_RUN_GAP_FACTOR = 1.5
_MIN_RUN_GAP = 4.0


def runs_from_text_content(items: Iterable[Mapping]) -> list[TextRun]:
    """Build the ordered run index for one page from pdf.js-shaped text items.

    Items without a ``"str"`` key are marked-content markers, not text, and are
    dropped. Extraction order is kept as-is.
    """
    runs: list[TextRun] = []
    skipped = 0
    for item in items:
        if "str" not in item:
            skipped += 1
            continue
        transform = tuple(float(v) for v in item["transform"])
        if len(transform) != 6:
            raise ValueError(f"text item transform must have 6 values, got {len(transform)}")
        runs.append(TextRun(text=item["str"], transform=transform, width=float(item["width"])))
    if skipped:
        logger.debug("Dropped %d non-text items", skipped)
    return runs


def _run_transform(char: dict) -> list[float]:
    """pdf.js-style text transform for *char*: its text matrix scaled to the font size.

    pdfminer's char matrix carries Tm x CTM but not the Tf size, so the
    rotation/skew part is normalised and multiplied by the char's size.
    """
    a, b, c, d, e, f = (float(v) for v in char["matrix"])
    size = float(char.get("size", 0.0))
    norm = math.hypot(a, b)
    if norm == 0:
        return [size, 0.0, 0.0, size, e, f]
    k = size / norm
    return [a * k, b * k, c * k, d * k, e, f]


def _run_item(chars: list[dict]) -> dict:
    first, last = chars[0], chars[-1]
    return {
        "str": "".join(c["text"] for c in chars),
        "transform": _run_transform(first),
        "width": last["x1"] - first["x0"],
        "fontName": first.get("fontname", ""),
    }


def chars_to_text_items(chars: list[dict]) -> list[dict]:
    """Group pdfplumber ``page.chars`` into pdf.js-shaped text items.

    Characters are grouped by rounded 'top' into visual rows, then each row is
    split into runs whenever the font or size changes or the x-gap to the next
    character is wider than ~1.5 average char widths. Spaces stay inside the run
    they follow, so a run's text is exactly what a viewer would emit for it.
    """
    by_y: dict[int, list[dict]] = defaultdict(list)
    for c in chars:
        by_y[round(c["top"])].append(c)

    items: list[dict] = []
    for y_key in sorted(by_y.keys()):
        row = sorted(by_y[y_key], key=lambda c: c["x0"])
        current: list[dict] = []

        for c in row:
            if current:
                prev = current[-1]
                gap = c["x0"] - prev["x1"]
                span = prev["x1"] - current[0]["x0"]
                avg_char_width = span / len(current) if span > 0 else 5.0
                is_gap = gap > max(avg_char_width * _RUN_GAP_FACTOR, _MIN_RUN_GAP)
                font_changed = (
                    c.get("fontname") != prev.get("fontname")
                    or round(c.get("size", 0), 1) != round(prev.get("size", 0), 1)
                )
                if c["text"] != " " and (is_gap or font_changed):
                    items.append(_run_item(current))
                    current = []

            if not current and c["text"] == " ":
                continue
            current.append(c)

        if current:
            items.append(_run_item(current))

    return items
