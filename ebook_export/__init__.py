#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Ebook Export Pipeline

Turns multi-chapter rich-text HTML plus ebook metadata into a paginated PDF
(ReportLab canvas) or a DOCX document (python-docx), with a cover page.

Usage:
    from ebook_export import EbookExporter, ExportFormat, Chapter, EbookMetadata

    async with EbookExporter(output_dir="out") as exporter:
        result = await exporter.export_ebook(
            ExportFormat.PDF,
            [Chapter(title="One", content="<p>Hello</p>", order=0)],
            EbookMetadata(title="My Book", author="Jane"),
        )
"""

from .models import (
    Chapter,
    EbookMetadata,
    ElementType,
    Alignment,
    Run,
    ImageRef,
    ParsedElement,
    ExportFormat,
    ExportOptions,
    ExportResult,
)
from .errors import (
    EbookExportError,
    NoContentError,
    ImageResolutionError,
    CoverCaptureError,
    RenderError,
)
from .html_parser import parse_html, sanitize_text
from .images import ImageResolver, ResolvedImage, ImageDecoder, PillowImageDecoder
from .cover import (
    CoverAcquirer,
    CoverElement,
    CoverSnapshot,
    ProgrammaticCover,
    Rasterizer,
    RenderedSurface,
    PlaywrightRasterizer,
)
from .pdf_renderer import PdfRenderer
from .docx_renderer import DocxRenderer
from .exporter import EbookExporter, combine_chapters, safe_filename, build_options

__version__ = "1.0.0"

__all__ = [
    # Models
    'Chapter',
    'EbookMetadata',
    'ElementType',
    'Alignment',
    'Run',
    'ImageRef',
    'ParsedElement',
    'ExportFormat',
    'ExportOptions',
    'ExportResult',
    # Errors
    'EbookExportError',
    'NoContentError',
    'ImageResolutionError',
    'CoverCaptureError',
    'RenderError',
    # Parser
    'parse_html',
    'sanitize_text',
    # Images
    'ImageResolver',
    'ResolvedImage',
    'ImageDecoder',
    'PillowImageDecoder',
    # Cover
    'CoverAcquirer',
    'CoverElement',
    'CoverSnapshot',
    'ProgrammaticCover',
    'Rasterizer',
    'RenderedSurface',
    'PlaywrightRasterizer',
    # Renderers
    'PdfRenderer',
    'DocxRenderer',
    # Orchestrator
    'EbookExporter',
    'combine_chapters',
    'safe_filename',
    'build_options',
]
