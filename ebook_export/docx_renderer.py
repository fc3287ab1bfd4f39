#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DOCX Renderer

Builds a Word document with python-docx using a two-section model:

- section 1: the cover (snapshot picture at full page, or programmatic cover)
- section 2: the chapter content with 1in margins

Without any cover the document has a single section that starts with a
title page.

Usage:
    renderer = DocxRenderer(resolver, CoverAcquirer(resolver))
    docx_bytes = await renderer.render(options)
"""

from io import BytesIO
from typing import Dict, List, Optional

from docx import Document
from docx.enum.section import WD_SECTION
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from config.constants import (
    COVER_PAGE_WIDTH_IN,
    COVER_PAGE_HEIGHT_IN,
    DOCX_PX_PER_INCH,
    DOCX_COVER_IMAGE_BOX,
    DOCX_COVER_MARGIN_IN,
    DOCX_CONTENT_MARGIN_IN,
)
from config.logging_config import get_logger
from config.settings import settings
from .cover import CoverAcquirer, CoverArtifact, CoverSnapshot, ProgrammaticCover
from .errors import ImageResolutionError, RenderError
from .html_parser import parse_html, sanitize_text
from .images import ImageResolver, ensure_embeddable, fit_within, infer_image_format
from .models import Alignment, ElementType, ExportOptions, OrderedListCounter, ParsedElement

logger = get_logger(__name__)


ALIGNMENT_MAP = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    Alignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    Alignment.JUSTIFY: WD_ALIGN_PARAGRAPH.JUSTIFY,
}

HEADING_STYLES: Dict[ElementType, tuple] = {
    # style name, run size (pt)
    ElementType.HEADING1: ("Heading 1", 24),
    ElementType.HEADING2: ("Heading 2", 18),
    ElementType.HEADING3: ("Heading 3", 14),
}
BULLET_STYLES = ("List Bullet", "List Bullet 2", "List Bullet 3")
BODY_SIZE = 12

GENRE_COLOR = RGBColor.from_string("666666")
AUTHOR_COLOR = RGBColor.from_string("555555")


def _px_to_inches(px: float) -> Inches:
    return Inches(px / DOCX_PX_PER_INCH)


def _set_margins(section, inches: float) -> None:
    section.top_margin = Inches(inches)
    section.bottom_margin = Inches(inches)
    section.left_margin = Inches(inches)
    section.right_margin = Inches(inches)


def _remove_paragraph(paragraph) -> None:
    element = paragraph._element
    element.getparent().remove(element)


class DocxRenderer:
    """
    Renders ExportOptions to DOCX bytes.

    Usage:
        renderer = DocxRenderer(resolver, acquirer)
        data = await renderer.render(options)
    """

    def __init__(
        self,
        resolver: ImageResolver,
        cover_acquirer: CoverAcquirer,
        max_image_width: Optional[int] = None,
        author_prefix: Optional[str] = None,
    ):
        self.resolver = resolver
        self.cover_acquirer = cover_acquirer
        self.max_image_width = max_image_width or settings.docx_max_image_width
        self.author_prefix = author_prefix if author_prefix is not None else settings.author_prefix

    async def render(self, options: ExportOptions) -> bytes:
        """
        Render cover and content to a DOCX document.

        Raises:
            RenderError: If the document cannot be assembled or serialized
        """
        elements = parse_html(options.content)
        logger.info(f"Rendering DOCX: {len(elements)} elements")

        cover = await self.cover_acquirer.acquire(options)

        try:
            doc = Document()
            doc.core_properties.title = sanitize_text(options.title)
            if options.author:
                doc.core_properties.author = sanitize_text(options.author)

            self._add_front_matter(doc, cover, options)
            await self._add_elements(doc, elements)

            buffer = BytesIO()
            doc.save(buffer)
        except Exception as e:
            raise RenderError(f"DOCX assembly failed: {e}") from e

        logger.info(f"DOCX rendered: {len(doc.sections)} sections, {len(doc.paragraphs)} paragraphs")
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Front matter
    # ------------------------------------------------------------------

    def _add_front_matter(self, doc, cover: Optional[CoverArtifact], options: ExportOptions) -> None:
        if isinstance(cover, CoverSnapshot):
            self._add_snapshot_cover(doc, cover)
        elif isinstance(cover, ProgrammaticCover):
            self._add_programmatic_cover(doc, cover)
        else:
            _set_margins(doc.sections[0], DOCX_CONTENT_MARGIN_IN)
            self._add_title_page(doc, options)
            return

        # New-page section break closes the cover
        content = doc.add_section(WD_SECTION.NEW_PAGE)
        _set_margins(content, DOCX_CONTENT_MARGIN_IN)

    def _add_snapshot_cover(self, doc, cover: CoverSnapshot) -> None:
        section = doc.sections[0]
        section.page_width = Inches(COVER_PAGE_WIDTH_IN)
        section.page_height = Inches(COVER_PAGE_HEIGHT_IN)
        _set_margins(section, 0)
        section.header_distance = Inches(0)
        section.footer_distance = Inches(0)

        paragraph = doc.add_paragraph()
        paragraph.paragraph_format.space_before = Pt(0)
        paragraph.paragraph_format.space_after = Pt(0)
        paragraph.add_run().add_picture(
            BytesIO(cover.payload),
            width=Inches(COVER_PAGE_WIDTH_IN),
            height=Inches(COVER_PAGE_HEIGHT_IN),
        )

    def _add_programmatic_cover(self, doc, cover: ProgrammaticCover) -> None:
        _set_margins(doc.sections[0], DOCX_COVER_MARGIN_IN)

        if cover.image is not None:
            box_width, box_height = DOCX_COVER_IMAGE_BOX
            width, height = fit_within(cover.image.width, cover.image.height, box_width, box_height)
            paragraph = doc.add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            try:
                image = ensure_embeddable(cover.image)
                paragraph.add_run().add_picture(
                    BytesIO(image.payload),
                    width=_px_to_inches(width),
                    height=_px_to_inches(height),
                )
            except Exception as e:
                logger.warning(f"Cover image could not be embedded: {e}")
                _remove_paragraph(paragraph)

        if cover.genre:
            paragraph = doc.add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            paragraph.paragraph_format.space_before = Pt(30)
            run = paragraph.add_run(cover.genre.upper())
            run.font.size = Pt(10)
            run.font.color.rgb = GENRE_COLOR

        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.space_before = Pt(20)
        run = paragraph.add_run(cover.title)
        run.bold = True
        run.font.size = Pt(28)

        if cover.author:
            paragraph = doc.add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = paragraph.add_run(f"{self.author_prefix} {cover.author}".strip())
            run.italic = True
            run.font.size = Pt(14)
            run.font.color.rgb = AUTHOR_COLOR

    def _add_title_page(self, doc, options: ExportOptions) -> None:
        """Title page used when there is no cover artifact"""
        title_para = doc.add_paragraph(style="Title")
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        title_run = title_para.add_run(sanitize_text(options.title))
        title_run.bold = True
        title_run.font.size = Pt(24)

        author = sanitize_text(options.author or "")
        if author:
            author_para = doc.add_paragraph()
            author_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            author_run = author_para.add_run(f"{self.author_prefix} {author}".strip())
            author_run.italic = True
            author_run.font.size = Pt(14)

        doc.add_page_break()

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def _add_elements(self, doc, elements: List[ParsedElement]) -> None:
        counter = OrderedListCounter()

        for element in elements:
            number = counter.advance(element)

            if element.type is ElementType.IMAGE:
                await self._add_image(doc, element)
                continue

            paragraph = self._add_text(doc, element, number)
            paragraph.alignment = ALIGNMENT_MAP[element.align]
            if element.page_break_before:
                paragraph.paragraph_format.page_break_before = True

    def _add_text(self, doc, element: ParsedElement, number: int):
        if element.type.is_heading:
            style, size = HEADING_STYLES[element.type]
        elif element.type is ElementType.LIST_ITEM:
            style = BULLET_STYLES[min(element.list_level, len(BULLET_STYLES) - 1)]
            size = BODY_SIZE
        else:
            style, size = "Normal", BODY_SIZE

        paragraph = doc.add_paragraph(style=style)

        if element.type is ElementType.ORDERED_ITEM:
            prefix = paragraph.add_run(f"{number}. ")
            prefix.font.size = Pt(size)

        for source in element.runs:
            if not source.text:
                continue
            run = paragraph.add_run(source.text)
            run.bold = source.bold or None
            run.italic = source.italic or None
            run.underline = source.underline or None
            run.font.size = Pt(size)

        return paragraph

    async def _add_image(self, doc, element: ParsedElement) -> None:
        src = element.image.src if element.image else ""
        try:
            image = await self.resolver.resolve(src)
        except ImageResolutionError as e:
            logger.warning(f"Skipping image in DOCX: {e}")
            return

        width = float(image.width or element.image.width or settings.placeholder_width)
        height = float(image.height or element.image.height or settings.placeholder_height)
        if width > self.max_image_width:
            height *= self.max_image_width / width
            width = self.max_image_width

        paragraph = doc.add_paragraph()
        paragraph.alignment = ALIGNMENT_MAP[element.align]
        try:
            embeddable = ensure_embeddable(image)
            paragraph.add_run().add_picture(
                BytesIO(embeddable.payload),
                width=_px_to_inches(width),
                height=_px_to_inches(height),
            )
        except Exception as e:
            hint = image.format or infer_image_format(src)
            logger.warning(f"Skipping image in DOCX ({hint}): {e}")
            _remove_paragraph(paragraph)
