"""Tests for the pdfplumber-backed rendering collaborator."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from conftest import plumber_chars, plumber_page
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from pdf_models import CanvasSize, HighlightRect, PageHighlight
from pdf_pipeline import HighlightSearch
from pdf_render import HIGHLIGHT_FILL, PlumberDocument


@pytest.fixture
def document() -> PlumberDocument:
    pdf = MagicMock()
    pdf.pages = [plumber_page(plumber_chars("Preface")), plumber_page(plumber_chars("Cigna Dental"))]
    return PlumberDocument(pdf)


async def test_page_count_and_viewport(document: PlumberDocument) -> None:
    assert document.page_count == 2
    viewport = await document.get_viewport(1, 1.5)
    assert (viewport.width, viewport.height) == pytest.approx((918.0, 1188.0))


async def test_text_content_is_pdfjs_shaped(document: PlumberDocument) -> None:
    (item,) = await document.get_text_content(2)
    assert item["str"] == "Cigna Dental"
    assert item["transform"][4:] == [72.0, 700.0]
    assert item["width"] == pytest.approx(72.0)


async def test_render_reports_image_size(document: PlumberDocument) -> None:
    viewport = await document.get_viewport(1, 1.5)
    assert await document.render(1, viewport) == CanvasSize(918, 1188)
    document._pdf.pages[0].to_image.assert_called_once_with(resolution=108.0)


async def test_end_to_end_search(document: PlumberDocument) -> None:
    controller = HighlightSearch(document)
    await controller.load()

    (highlight,) = await controller.search("Cigna Dental")

    assert highlight.page_index == 2
    (rect,) = highlight.rects
    # baseline at y=700 -> 138px from the top at scale 1.5, box sits above it
    assert rect.x == pytest.approx(72.0 * 1.5 - 2.0)
    assert rect.y + rect.height - 2.0 == pytest.approx(138.0)


async def test_draw_highlights_tints_boxes(document: PlumberDocument) -> None:
    viewport = await document.get_viewport(1, 1.5)
    await document.render(1, viewport)
    highlight = PageHighlight(page_index=1, rects=[HighlightRect(10, 10, 20, 20)])

    image = document.draw_highlights(highlight, CanvasSize(459, 594))

    assert image.size == (459, 594)
    r, g, b, _ = image.getpixel((20, 20))
    assert (r, g) == (255, 255)
    assert b < 255
    assert image.getpixel((200, 200))[:3] == (255, 255, 255)
    assert HIGHLIGHT_FILL[3] < 255


def test_draw_highlights_requires_render(document: PlumberDocument) -> None:
    with pytest.raises(LookupError):
        document.draw_highlights(PageHighlight(page_index=2), CanvasSize(10, 10))


def test_close_closes_the_pdf(document: PlumberDocument) -> None:
    document.close()
    document._pdf.close.assert_called_once_with()


# ═══════════════════════════════════════════════════════════════════════════════
# REAL PDF THROUGH PDFPLUMBER
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def policy_pdf(tmp_path: Path) -> Path:
    """Three letter pages: a cover, a 12pt heading, and a word split across two fonts."""
    path = tmp_path / "policy.pdf"
    c = canvas.Canvas(str(path), pagesize=letter)
    c.setFont("Helvetica", 12)
    c.drawString(72, 700, "Cover page")
    c.showPage()
    c.setFont("Helvetica", 12)
    c.drawString(72, 700, "EXCLUSIONS AND LIMITATIONS")
    c.showPage()
    c.setFont("Helvetica", 12)
    c.drawString(72, 650, "EXCLU")
    c.setFont("Helvetica-Bold", 12)
    c.drawString(72 + stringWidth("EXCLU", "Helvetica", 12), 650, "SIONS")
    c.save()
    return path


async def test_pdf_runs_carry_the_font_size(policy_pdf: Path) -> None:
    async with PlumberDocument.open(policy_pdf) as document:
        (item,) = await document.get_text_content(2)

    assert item["str"] == "EXCLUSIONS AND LIMITATIONS"
    assert item["transform"] == pytest.approx([12.0, 0.0, 0.0, 12.0, 72.0, 700.0], abs=0.01)
    assert item["width"] == pytest.approx(stringWidth(item["str"], "Helvetica", 12), abs=0.5)


async def test_pdf_font_change_splits_runs(policy_pdf: Path) -> None:
    async with PlumberDocument.open(policy_pdf) as document:
        items = await document.get_text_content(3)

    assert [i["str"] for i in items] == ["EXCLU", "SIONS"]


async def test_pdf_end_to_end_rectangle(policy_pdf: Path) -> None:
    async with PlumberDocument.open(policy_pdf) as document:
        controller = HighlightSearch(document)
        await controller.load()

        (highlight,) = await controller.search("EXCLUSIONS AND LIMITATIONS")

    assert highlight.page_index == 2
    (rect,) = highlight.rects
    text_width = stringWidth("EXCLUSIONS AND LIMITATIONS", "Helvetica", 12)
    # 12pt at scale 1.5 plus 2px padding on each side; baseline 92pt below the top
    assert rect.height == pytest.approx(12 * 1.5 + 4, abs=0.1)
    assert rect.width == pytest.approx(text_width * 1.5 + 4, abs=1.0)
    assert rect.x == pytest.approx(72 * 1.5 - 2, abs=0.1)
    assert rect.y == pytest.approx(92 * 1.5 - 18 - 2, abs=0.1)


async def test_pdf_split_word_gives_one_box_per_run(policy_pdf: Path) -> None:
    async with PlumberDocument.open(policy_pdf) as document:
        controller = HighlightSearch(document)
        await controller.load()

        (highlight,) = await controller.search("EXCLUSIONS")

    assert highlight.page_index == 3
    first, second = highlight.rects
    assert second.x > first.x
    assert first.height == pytest.approx(22.0, abs=0.1)
