"""Find a reference passage in a PDF and compute its highlight boxes.

Pipeline, per page in ascending order until the first hit:
  1. runs_from_text_content – page text as an ordered list of positioned runs
  2. match_runs             – first contiguous run sequence that reconstructs the
                              passage (prefix consumption, last run may overshoot)
  3. to_pixel_rect          – each matched run's PDF transform projected through the
                              page viewport, then onto the displayed canvas size
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from pdf_geometry import DEFAULT_RENDER_SCALE
from pdf_models import HighlightError, PageHighlight, Reference
from pdf_pipeline import HighlightSearch
from pdf_references import DEFAULT_REFERENCES, label, load_references
from pdf_render import PlumberDocument

logger = logging.getLogger(__name__)


class LoggingScroll:
    """Scroll controller for a terminal: there is nothing to scroll, so record it."""

    def __init__(self) -> None:
        self.page_index: int | None = None

    def scroll_to_page(self, page_index: int) -> None:
        self.page_index = page_index
        logger.info("Scroll to page %d", page_index)


def _print_result(target: str, result: list[PageHighlight], scale: float) -> None:
    print("=" * 64)
    print("RESULTS")
    print("=" * 64)
    print(f"  Search:  {label(Reference(target))!r}")
    print(f"  Scale:   {scale}")

    if not result:
        print("\nNo match found in the document.\n")
        return

    highlight = result[0]
    print(f"\nMatch on page {highlight.page_index} ({len(highlight.rects)} boxes):\n")
    for i, r in enumerate(highlight.rects, 1):
        print(f"  #{i:<3} x={r.x:>9.2f}  y={r.y:>9.2f}  w={r.width:>9.2f}  h={r.height:>8.2f}")
    print()


async def run(
    pdf_path: Path,
    target: str,
    scale: float = DEFAULT_RENDER_SCALE,
    display_width: float | None = None,
    output: Path | None = None,
    as_json: bool = False,
) -> int:
    async with PlumberDocument.open(pdf_path) as document:
        scroll = LoggingScroll()
        controller = HighlightSearch(document, scroll=scroll, scale=scale, display_width=display_width)
        await controller.load()
        result = await controller.search(target)

        if as_json:
            print(json.dumps([asdict(h) for h in result], indent=2))
        else:
            _print_result(target, result, scale)

        if result and output is not None:
            highlight = result[0]
            state = controller.pages.get(highlight.page_index)
            image = document.draw_highlights(highlight, state.displayed)
            image.save(output)
            logger.info("Wrote %s", output)

    return 0 if result else 1


def _references(args: argparse.Namespace, parser: argparse.ArgumentParser) -> list[Reference]:
    if not args.references:
        return DEFAULT_REFERENCES
    try:
        return load_references(args.references)
    except (OSError, ValueError) as exc:
        parser.error(f"cannot read references: {exc}")


def _pick_target(args: argparse.Namespace, parser: argparse.ArgumentParser) -> str:
    if args.target is not None:
        return args.target

    refs = _references(args, parser)
    if not refs:
        parser.error("no references available")
    if not 1 <= args.reference <= len(refs):
        parser.error(f"--reference must be between 1 and {len(refs)}")
    return refs[args.reference - 1].content


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Locate a reference passage in a PDF and compute highlight boxes.",
    )
    parser.add_argument("pdf", nargs="?", help="Path to the PDF file")
    parser.add_argument("target", nargs="?", help="Text to search for (default: a reference)")
    parser.add_argument(
        "-r", "--reference",
        type=int, default=1, metavar="N",
        help="Search for the Nth reference when no TARGET is given (default: 1)",
    )
    parser.add_argument(
        "--references",
        metavar="FILE",
        help="JSON or text file of references (default: built-in list)",
    )
    parser.add_argument(
        "--list-references",
        action="store_true",
        help="Print the numbered reference list and exit",
    )
    parser.add_argument(
        "--scale",
        type=float, default=DEFAULT_RENDER_SCALE,
        help=f"Render scale (default: {DEFAULT_RENDER_SCALE})",
    )
    parser.add_argument(
        "--display-width",
        type=float, metavar="PX",
        help="Displayed page width in pixels (default: rendered width)",
    )
    parser.add_argument("-o", "--output", metavar="PNG", help="Write the highlighted page image")
    parser.add_argument("--json", action="store_true", help="Print highlights as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_references:
        for i, ref in enumerate(_references(args, parser), 1):
            print(f"  {i}. {label(ref)}")
        return 0

    if args.pdf is None:
        parser.error("the pdf argument is required")
    path = Path(args.pdf)
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1
    if args.scale <= 0:
        parser.error("--scale must be positive")
    if args.display_width is not None and args.display_width <= 0:
        parser.error("--display-width must be positive")

    target = _pick_target(args, parser)
    try:
        return asyncio.run(
            run(
                path,
                target,
                scale=args.scale,
                display_width=args.display_width,
                output=Path(args.output) if args.output else None,
                as_json=args.json,
            )
        )
    except HighlightError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
