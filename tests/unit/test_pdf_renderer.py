"""
Unit Tests for the PDF Renderer

Rendered bytes are read back with pypdf to check page structure and text
order.

Tests cover:
- Title page / programmatic cover / snapshot cover
- Content order, list numbering, page breaks and overflow
- Image embedding and skipping
- Font selection rules
"""

from io import BytesIO

import pytest
from pypdf import PdfReader

from ebook_export.cover import CoverAcquirer, CoverElement, CoverSnapshot
from ebook_export.errors import RenderError
from ebook_export.models import ElementType, ExportOptions, ParsedElement, Run
from ebook_export.pdf_renderer import (
    FONT_BOLD,
    FONT_BOLD_ITALIC,
    FONT_ITALIC,
    FONT_REGULAR,
    PdfRenderer,
    select_font,
)


def read_pdf(data: bytes) -> PdfReader:
    return PdfReader(BytesIO(data))


def page_text(reader: PdfReader, index: int) -> str:
    return reader.pages[index].extract_text() or ""


class BrokenSnapshotAcquirer:
    """Acquirer handing back a snapshot that is not an image"""

    async def acquire(self, options):
        return CoverSnapshot(payload=b"not a png", width=10, height=10)


class TestFrontPage:

    @pytest.mark.asyncio
    async def test_title_page_without_cover(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(title="My Book", author="Jane", content="<p>Hello</p>", has_cover_page=False)

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages) == 2
        assert "My Book" in page_text(reader, 0)
        assert "by Jane" in page_text(reader, 0)
        assert "Hello" in page_text(reader, 1)

    @pytest.mark.asyncio
    async def test_programmatic_cover(self, offline_resolver, acquirer, make_data_uri):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="My Book",
            author="Jane",
            genre="Fantasy",
            cover_image=make_data_uri(300, 450),
            content="<p>Hello</p>",
        )

        reader = read_pdf(await renderer.render(options))
        cover_text = page_text(reader, 0)

        assert "FANTASY" in cover_text
        assert "My Book" in cover_text
        assert "by Jane" in cover_text
        assert len(reader.pages[0].images) == 1

    @pytest.mark.asyncio
    async def test_snapshot_cover_is_full_page_image(self, offline_resolver, snapshot_rasterizer):
        renderer = PdfRenderer(offline_resolver, CoverAcquirer(offline_resolver, rasterizer=snapshot_rasterizer))
        options = ExportOptions(title="My Book", content="<p>Hello</p>", cover_element=CoverElement("<body></body>"))

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages) == 2
        assert len(reader.pages[0].images) == 1
        assert "My Book" not in page_text(reader, 0)

    @pytest.mark.asyncio
    async def test_author_prefix_configurable(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer, author_prefix="por")
        options = ExportOptions(title="Libro", author="Ana", content="<p>x</p>", has_cover_page=False)

        reader = read_pdf(await renderer.render(options))

        assert "por Ana" in page_text(reader, 0)

    @pytest.mark.asyncio
    async def test_metadata(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(title="My <b>Book</b>", author="Jane", content="<p>x</p>")

        reader = read_pdf(await renderer.render(options))

        assert reader.metadata.title == "My Book"
        assert reader.metadata.author == "Jane"


class TestContent:

    @pytest.mark.asyncio
    async def test_text_order(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content="<h1>Alpha</h1><p>Bravo</p><h3>Charlie</h3><p>Delta</p>",
            has_cover_page=False,
        )

        text = page_text(read_pdf(await renderer.render(options)), 1)

        positions = [text.index(word) for word in ("Alpha", "Bravo", "Charlie", "Delta")]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_ordered_list_numbering(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content="<ol><li>one</li><li>two</li></ol><p>break</p><ol><li>three</li></ol>",
            has_cover_page=False,
        )

        text = page_text(read_pdf(await renderer.render(options)), 1)

        assert "1. one" in text
        assert "2. two" in text
        assert "1. three" in text

    @pytest.mark.asyncio
    async def test_page_break_hint_starts_new_page(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content=(
                '<h1 style="page-break-before: auto">First</h1><p>a</p>'
                '<h1 style="page-break-before: always">Second</h1><p>b</p>'
            ),
            has_cover_page=False,
        )

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages) == 3
        assert "First" in page_text(reader, 1)
        assert "Second" in page_text(reader, 2)

    @pytest.mark.asyncio
    async def test_break_hint_at_top_of_page_is_ignored(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content='<h1 style="page-break-before: always">Only</h1>',
            has_cover_page=False,
        )

        assert len(read_pdf(await renderer.render(options)).pages) == 2

    @pytest.mark.asyncio
    async def test_long_content_overflows(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        paragraphs = "".join(f"<p>Paragraph number {i} with some words.</p>" for i in range(120))
        options = ExportOptions(title="T", content=paragraphs, has_cover_page=False)

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages) > 3
        assert "Paragraph number 119" in page_text(reader, len(reader.pages) - 1)

    @pytest.mark.asyncio
    async def test_long_paragraph_wraps(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        words = " ".join(f"word{i}" for i in range(400))
        options = ExportOptions(title="T", content=f"<p>{words}</p>", has_cover_page=False)

        reader = read_pdf(await renderer.render(options))
        text = "".join(page_text(reader, i) for i in range(1, len(reader.pages)))

        assert "word0" in text
        assert "word399" in text

    @pytest.mark.asyncio
    async def test_embedded_image(self, offline_resolver, acquirer, make_data_uri):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content=f'<p>before</p><img src="{make_data_uri(1200, 800)}"><p>after</p>',
            has_cover_page=False,
        )

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages[1].images) == 1
        assert "after" in page_text(reader, 1)

    @pytest.mark.asyncio
    async def test_unresolvable_image_skipped(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content='<p>before</p><img src="https://cdn.test/gone.png"><p>after</p>',
            has_cover_page=False,
        )

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages) == 2
        assert len(reader.pages[1].images) == 0
        assert "after" in page_text(reader, 1)

    @pytest.mark.asyncio
    async def test_malformed_image_url_skipped(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(
            title="T",
            content='<p>alpha</p><img src="http://[bad"><p>bravo</p>',
            has_cover_page=False,
        )

        reader = read_pdf(await renderer.render(options))

        assert len(reader.pages) == 2
        assert len(reader.pages[1].images) == 0
        text = page_text(reader, 1)
        assert text.index("alpha") < text.index("bravo")

    @pytest.mark.asyncio
    async def test_malformed_cover_url_gives_text_cover(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        options = ExportOptions(title="My Book", cover_image="https://[oops/x.png", content="<p>x</p>")

        reader = read_pdf(await renderer.render(options))

        assert "My Book" in page_text(reader, 0)
        assert len(reader.pages[0].images) == 0

    @pytest.mark.asyncio
    async def test_empty_content(self, offline_resolver, acquirer):
        renderer = PdfRenderer(offline_resolver, acquirer)
        reader = read_pdf(await renderer.render(ExportOptions(title="T", content="", has_cover_page=False)))

        assert len(reader.pages) == 1
        assert "T" in page_text(reader, 0)

    @pytest.mark.asyncio
    async def test_undrawable_snapshot_raises_render_error(self, offline_resolver):
        renderer = PdfRenderer(offline_resolver, BrokenSnapshotAcquirer())

        with pytest.raises(RenderError):
            await renderer.render(ExportOptions(title="T", content="<p>x</p>"))


class TestFontSelection:

    @pytest.mark.parametrize("runs,expected", [
        ([Run("a"), Run("b")], FONT_REGULAR),
        ([Run("a", bold=True), Run("b", bold=True)], FONT_BOLD),
        ([Run("a", italic=True)], FONT_ITALIC),
        ([Run("a", bold=True, italic=True)], FONT_BOLD_ITALIC),
        ([Run("a", bold=True), Run("b")], FONT_REGULAR),
        ([], FONT_REGULAR),
    ])
    def test_paragraph_fonts(self, runs, expected):
        assert select_font(ParsedElement(type=ElementType.PARAGRAPH, runs=runs)) == expected

    def test_headings_always_bold(self):
        element = ParsedElement(type=ElementType.HEADING2, runs=[Run("a", italic=True)])
        assert select_font(element) == FONT_BOLD
