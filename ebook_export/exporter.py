#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Export Orchestrator

Combines sorted chapters into one HTML document, hands it to the PDF or DOCX
renderer together with the ebook metadata, and writes the result into the
output directory under a filename derived from the title.

export() and export_ebook() never raise; failures come back as an
ExportResult with success=False and a message. No file is left behind when a
render fails.

Usage:
    async with EbookExporter() as exporter:
        result = await exporter.export_ebook(ExportFormat.PDF, chapters, metadata)
"""

import html
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from config.constants import FILENAME_FORBIDDEN_CHARS, FALLBACK_FILENAME
from config.logging_config import get_logger
from config.settings import settings
from .cover import CoverAcquirer, CoverElement, PlaywrightRasterizer, Rasterizer
from .docx_renderer import DocxRenderer
from .errors import NoContentError
from .html_parser import sanitize_text
from .images import ImageResolver
from .models import Chapter, EbookMetadata, ExportFormat, ExportOptions, ExportResult
from .pdf_renderer import PdfRenderer

logger = get_logger(__name__)

NO_CONTENT_MESSAGE = "No chapters to export"

CHAPTER_HEADING = (
    '<h1 style="text-align: center; page-break-before: {page_break}; margin-top: 2em;">'
    "{title}</h1>"
)


def combine_chapters(chapters: Sequence[Chapter]) -> str:
    """
    Concatenate chapters in ascending order into one HTML document.

    Each chapter is preceded by a centered heading with its title; every
    chapter after the first requests a page break before that heading.
    """
    ordered = sorted(chapters, key=lambda chapter: chapter.order)
    parts = []
    for index, chapter in enumerate(ordered):
        heading = CHAPTER_HEADING.format(
            page_break="always" if index > 0 else "auto",
            title=html.escape(chapter.title or ""),
        )
        parts.append(f"{heading}\n{chapter.content or ''}")
    return "\n\n".join(parts)


def safe_filename(title: str, extension: str) -> str:
    """Filesystem-safe filename from an ebook title"""
    name = sanitize_text(title)
    name = "".join(ch for ch in name if ch not in FILENAME_FORBIDDEN_CHARS).strip()
    return f"{name or FALLBACK_FILENAME}.{extension.lstrip('.')}"


def build_options(
    chapters: Sequence[Chapter],
    metadata: EbookMetadata,
    cover_element: Optional[CoverElement] = None,
    has_cover_page: bool = True,
) -> ExportOptions:
    """
    Build the render input for a whole ebook.

    Raises:
        NoContentError: If there are no chapters
    """
    if not chapters:
        raise NoContentError(NO_CONTENT_MESSAGE)

    return ExportOptions(
        title=metadata.title,
        content=combine_chapters(chapters),
        author=metadata.author,
        genre=metadata.genre,
        cover_image=metadata.cover_image,
        has_cover_page=has_cover_page,
        cover_element=cover_element,
    )


def _write_atomic(path: Path, data: bytes) -> None:
    """Write through a temp file in the same directory, then rename over path"""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class EbookExporter:
    """
    Entry point of the export pipeline.

    One exporter owns one ImageResolver (and its HTTP client). Renders are
    sequential per call; nothing is kept between calls.
    """

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        resolver: Optional[ImageResolver] = None,
        rasterizer: Optional[Rasterizer] = None,
    ):
        self.output_dir = Path(output_dir) if output_dir else settings.output_dir
        self._owns_resolver = resolver is None
        self.resolver = resolver or ImageResolver()
        self.cover_acquirer = CoverAcquirer(
            self.resolver,
            rasterizer=rasterizer if rasterizer is not None else PlaywrightRasterizer(),
        )
        self.renderers = {
            ExportFormat.PDF: PdfRenderer(self.resolver, self.cover_acquirer),
            ExportFormat.DOCX: DocxRenderer(self.resolver, self.cover_acquirer),
        }

    async def __aenter__(self) -> "EbookExporter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_resolver:
            await self.resolver.aclose()

    async def export(self, export_format: ExportFormat, options: ExportOptions) -> ExportResult:
        """
        Render one format and write it to the output directory.

        Returns:
            ExportResult; success=False carries the error message
        """
        export_format = ExportFormat(export_format)
        filename = safe_filename(options.title, export_format.value)
        logger.info(f"Exporting {export_format.value.upper()}: {filename}")

        try:
            data = await self.renderers[export_format].render(options)
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / filename
            _write_atomic(path, data)
        except Exception as e:
            logger.error(f"{export_format.value.upper()} export failed: {e}")
            return ExportResult(success=False, format=export_format, message=str(e))

        logger.info(f"Exported {path} ({len(data)} bytes)")
        return ExportResult(
            success=True,
            format=export_format,
            path=path,
            message=f"Exported {filename}",
        )

    async def export_ebook(
        self,
        export_format: ExportFormat,
        chapters: List[Chapter],
        metadata: EbookMetadata,
        cover_element: Optional[CoverElement] = None,
        has_cover_page: bool = True,
    ) -> ExportResult:
        """Export a whole ebook: validate, combine chapters, then export()"""
        export_format = ExportFormat(export_format)
        try:
            options = build_options(chapters, metadata, cover_element, has_cover_page)
        except NoContentError as e:
            logger.warning(f"Export of '{metadata.title}' refused: {e}")
            return ExportResult(success=False, format=export_format, message=str(e))

        return await self.export(export_format, options)
