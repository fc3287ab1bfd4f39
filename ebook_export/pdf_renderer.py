#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PDF Renderer

Draws the cover and the parsed chapter elements directly onto A4 pages with
the ReportLab canvas. Pagination is a single running cursor: whenever the
next line (or image) would cross the bottom margin a new page is started and
the cursor goes back to the top margin. No widow/orphan control.

Known simplification: a text element is drawn in one font. Headings are
always bold; other elements are bold/italic only when every run shares the
flag, so one bold run next to a plain run renders plain.

Usage:
    renderer = PdfRenderer(resolver, CoverAcquirer(resolver))
    pdf_bytes = await renderer.render(options)
"""

from io import BytesIO
from typing import Dict, List, Optional, Tuple

from reportlab.lib.colors import Color, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from config.constants import (
    PDF_MARGIN,
    PDF_LINE_HEIGHT,
    PDF_PAGE_BREAK_SLACK,
    PDF_IMAGE_GAP,
    PDF_IMAGE_MIN_SHRINK,
    PDF_LIST_INDENT,
)
from config.logging_config import get_logger
from config.settings import settings
from .cover import CoverAcquirer, CoverArtifact, CoverSnapshot, ProgrammaticCover
from .errors import ImageResolutionError, RenderError
from .html_parser import parse_html, sanitize_text
from .images import ImageResolver, fit_within
from .models import Alignment, ElementType, ExportOptions, OrderedListCounter, ParsedElement

logger = get_logger(__name__)

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"
FONT_BOLD_ITALIC = "Helvetica-BoldOblique"

GENRE_GREY = Color(100 / 255, 100 / 255, 100 / 255)
AUTHOR_GREY = Color(80 / 255, 80 / 255, 80 / 255)

# font size, space before, space after (points)
TEXT_STYLES: Dict[ElementType, Tuple[int, int, int]] = {
    ElementType.HEADING1: (24, 20, 12),
    ElementType.HEADING2: (18, 16, 10),
    ElementType.HEADING3: (14, 12, 8),
}
BODY_STYLE = (12, 0, 8)

COVER_TITLE_SIZE = 28
COVER_TITLE_LEADING = 35
COVER_GENRE_SIZE = 12
COVER_AUTHOR_SIZE = 16


def select_font(element: ParsedElement) -> str:
    """Font for a whole text element (all-or-nothing run styling)"""
    if element.type.is_heading:
        return FONT_BOLD
    if element.all_bold and element.all_italic:
        return FONT_BOLD_ITALIC
    if element.all_bold:
        return FONT_BOLD
    if element.all_italic:
        return FONT_ITALIC
    return FONT_REGULAR


def list_prefix(element: ParsedElement, number: int) -> str:
    if element.type is ElementType.LIST_ITEM:
        return "• "
    if element.type is ElementType.ORDERED_ITEM:
        return f"{number}. "
    return ""


class _PageCursor:
    """Top-down vertical cursor over a ReportLab canvas"""

    def __init__(self, pdf: canvas.Canvas, page_height: float, margin: float):
        self.pdf = pdf
        self.page_height = page_height
        self.margin = margin
        self.y = margin
        self.pages = 1

    @property
    def at_top(self) -> bool:
        return self.y <= self.margin

    def baseline(self, y: Optional[float] = None) -> float:
        """Convert a top-down position to ReportLab's bottom-up coordinate"""
        return self.page_height - (self.y if y is None else y)

    def new_page(self) -> None:
        self.pdf.showPage()
        self.pages += 1
        self.y = self.margin


class PdfRenderer:
    """
    Renders ExportOptions to PDF bytes.

    Page model: A4, fixed margin, fixed line height, one running cursor.
    """

    def __init__(
        self,
        resolver: ImageResolver,
        cover_acquirer: CoverAcquirer,
        page_size: Tuple[float, float] = A4,
        margin: float = PDF_MARGIN,
        line_height: float = PDF_LINE_HEIGHT,
        author_prefix: Optional[str] = None,
    ):
        self.resolver = resolver
        self.cover_acquirer = cover_acquirer
        self.page_width, self.page_height = page_size
        self.margin = margin
        self.line_height = line_height
        self.content_width = self.page_width - 2 * margin
        self.max_y = self.page_height - margin
        self.author_prefix = author_prefix if author_prefix is not None else settings.author_prefix

    async def render(self, options: ExportOptions) -> bytes:
        """
        Render cover and content to a PDF document.

        Raises:
            RenderError: If the document cannot be assembled
        """
        elements = parse_html(options.content)
        logger.info(f"Rendering PDF: {len(elements)} elements")

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        pdf.setTitle(sanitize_text(options.title))
        if options.author:
            pdf.setAuthor(sanitize_text(options.author))
        pdf.setCreator("ebook-export")

        cursor = _PageCursor(pdf, self.page_height, self.margin)

        cover = await self.cover_acquirer.acquire(options)
        try:
            self._draw_front_page(pdf, cover, options)
            if elements:
                cursor.new_page()
                await self._draw_elements(pdf, cursor, elements)
            pdf.save()
        except Exception as e:
            raise RenderError(f"PDF assembly failed: {e}") from e

        logger.info(f"PDF rendered: {cursor.pages} pages")
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Front page
    # ------------------------------------------------------------------

    def _draw_front_page(
        self,
        pdf: canvas.Canvas,
        cover: Optional[CoverArtifact],
        options: ExportOptions,
    ) -> None:
        if isinstance(cover, CoverSnapshot):
            pdf.drawImage(
                ImageReader(BytesIO(cover.payload)),
                0, 0,
                width=self.page_width,
                height=self.page_height,
            )
        elif isinstance(cover, ProgrammaticCover):
            self._draw_programmatic_cover(pdf, cover)
        else:
            self._draw_title_page(pdf, options)

    def _draw_programmatic_cover(self, pdf: canvas.Canvas, cover: ProgrammaticCover) -> None:
        y = self.margin + 150

        if cover.image is not None:
            width, height = fit_within(
                cover.image.width,
                cover.image.height,
                self.content_width,
                self.page_height * 0.5,
            )
            try:
                y = 100
                pdf.drawImage(
                    ImageReader(BytesIO(cover.image.payload)),
                    (self.page_width - width) / 2,
                    self.page_height - y - height,
                    width=width,
                    height=height,
                    mask="auto",
                )
                y += height + 40
            except Exception as e:
                logger.warning(f"Cover image could not be drawn: {e}")
                y = self.margin + 150

        if cover.genre:
            pdf.setFont(FONT_REGULAR, COVER_GENRE_SIZE)
            pdf.setFillColor(GENRE_GREY)
            pdf.drawCentredString(self.page_width / 2, self.page_height - y, cover.genre.upper())
            y += 40

        y = self._draw_centered_title(pdf, cover.title, y) + 30

        if cover.author:
            pdf.setFont(FONT_ITALIC, COVER_AUTHOR_SIZE)
            pdf.setFillColor(AUTHOR_GREY)
            pdf.drawCentredString(
                self.page_width / 2,
                self.page_height - y,
                f"{self.author_prefix} {cover.author}".strip(),
            )

        pdf.setFillColor(black)

    def _draw_title_page(self, pdf: canvas.Canvas, options: ExportOptions) -> None:
        """Plain title/author page used when no cover artifact exists"""
        y = self.margin + 150
        y = self._draw_centered_title(pdf, sanitize_text(options.title), y) + 50

        author = sanitize_text(options.author or "")
        if author:
            pdf.setFont(FONT_ITALIC, COVER_AUTHOR_SIZE)
            pdf.setFillColor(black)
            pdf.drawCentredString(
                self.page_width / 2,
                self.page_height - y,
                f"{self.author_prefix} {author}".strip(),
            )

    def _draw_centered_title(self, pdf: canvas.Canvas, title: str, y: float) -> float:
        pdf.setFont(FONT_BOLD, COVER_TITLE_SIZE)
        pdf.setFillColor(black)
        lines = simpleSplit(title, FONT_BOLD, COVER_TITLE_SIZE, self.content_width) or [""]
        for index, line in enumerate(lines):
            pdf.drawCentredString(
                self.page_width / 2,
                self.page_height - (y + index * COVER_TITLE_LEADING),
                line,
            )
        return y + len(lines) * COVER_TITLE_LEADING

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def _draw_elements(
        self,
        pdf: canvas.Canvas,
        cursor: _PageCursor,
        elements: List[ParsedElement],
    ) -> None:
        counter = OrderedListCounter()

        for element in elements:
            if cursor.y > self.max_y - PDF_PAGE_BREAK_SLACK:
                cursor.new_page()
            if element.page_break_before and not cursor.at_top:
                cursor.new_page()

            number = counter.advance(element)

            if element.type is ElementType.IMAGE:
                await self._draw_image(pdf, cursor, element)
            else:
                self._draw_text(pdf, cursor, element, number)

    async def _draw_image(self, pdf: canvas.Canvas, cursor: _PageCursor, element: ParsedElement) -> None:
        src = element.image.src if element.image else ""
        try:
            image = await self.resolver.resolve(src)
        except ImageResolutionError as e:
            logger.warning(f"Skipping image in PDF: {e}")
            return

        try:
            reader = ImageReader(BytesIO(image.payload))
        except Exception as e:
            logger.warning(f"Skipping undecodable image in PDF: {e}")
            return

        width = float(image.width or element.image.width or settings.placeholder_width)
        height = float(image.height or element.image.height or settings.placeholder_height)

        if width > self.content_width:
            height *= self.content_width / width
            width = self.content_width

        available = self.max_y - cursor.y - PDF_PAGE_BREAK_SLACK
        if height > available and available > PDF_IMAGE_MIN_SHRINK:
            width *= available / height
            height = available

        if height > self.max_y - cursor.y - PDF_IMAGE_GAP:
            cursor.new_page()
            width, height = fit_within(width, height, self.content_width, self.max_y - self.margin)

        x = self.margin + (self.content_width - width) / 2
        pdf.drawImage(reader, x, cursor.baseline() - height, width=width, height=height, mask="auto")
        cursor.y += height + PDF_IMAGE_GAP

    def _draw_text(
        self,
        pdf: canvas.Canvas,
        cursor: _PageCursor,
        element: ParsedElement,
        number: int,
    ) -> None:
        font_size, space_before, space_after = TEXT_STYLES.get(element.type, BODY_STYLE)
        cursor.y += space_before

        text = list_prefix(element, number) + element.text
        if not text.strip():
            # intentional blank line from <br>
            cursor.y += self.line_height
            return

        indent = PDF_LIST_INDENT if element.type.is_list else 0
        left = self.margin + indent
        right = self.page_width - self.margin
        font = select_font(element)
        leading = max(self.line_height, font_size * 1.25)

        for line in simpleSplit(text, font, font_size, right - left):
            if cursor.y > self.max_y:
                cursor.new_page()

            pdf.setFont(font, font_size)
            pdf.setFillColor(black)
            baseline = cursor.baseline()
            if element.align is Alignment.CENTER:
                pdf.drawCentredString((left + right) / 2, baseline, line)
            elif element.align is Alignment.RIGHT:
                pdf.drawRightString(right, baseline, line)
            else:
                pdf.drawString(left, baseline, line)
            cursor.y += leading

        cursor.y += space_after
