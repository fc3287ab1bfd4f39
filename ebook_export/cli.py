#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Ebook Export CLI - export a project JSON file to PDF and/or DOCX

Usage:
    ebook-export project.json
    ebook-export project.json --format both --output-dir out/
    ebook-export project.json --format docx --cover-html cover.html
    ebook-export project.json --no-cover

Project JSON:
    {
        "title": "My Book", "author": "Jane", "genre": "Fantasy",
        "cover_image": "https://...",
        "chapters": [{"title": "One", "content": "<p>...</p>", "chapter_order": 0}]
    }
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from config.logging_config import get_logger
from .cover import CoverElement
from .exporter import EbookExporter
from .models import Chapter, EbookMetadata, ExportFormat, ExportResult

logger = get_logger(__name__)

FORMAT_CHOICES = {
    'pdf': [ExportFormat.PDF],
    'docx': [ExportFormat.DOCX],
    'both': [ExportFormat.PDF, ExportFormat.DOCX],
}


def load_project(path: Path):
    """Read metadata and chapters from a project JSON file"""
    data = json.loads(path.read_text(encoding="utf-8"))
    metadata = EbookMetadata.model_validate(data)
    chapters = [Chapter.model_validate(item) for item in data.get("chapters") or []]
    return metadata, chapters


async def run_export(args) -> List[ExportResult]:
    metadata, chapters = load_project(Path(args.project))

    cover_element = None
    if args.cover_html:
        cover_element = CoverElement(
            html=Path(args.cover_html).read_text(encoding="utf-8"),
            selector=args.cover_selector,
        )

    results = []
    async with EbookExporter(output_dir=args.output_dir) as exporter:
        for export_format in FORMAT_CHOICES[args.format]:
            results.append(await exporter.export_ebook(
                export_format,
                chapters,
                metadata,
                cover_element=cover_element,
                has_cover_page=not args.no_cover,
            ))
    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="ebook-export",
        description="Export an ebook project to PDF / DOCX",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('project', help='Project JSON file (metadata + chapters)')
    parser.add_argument('--format', '-f', default='pdf', choices=list(FORMAT_CHOICES), help='Output format (default: pdf)')
    parser.add_argument('--output-dir', '-o', help='Output directory (default: EBOOK_OUTPUT_DIR)')
    parser.add_argument('--cover-html', help='Rendered cover HTML document to snapshot')
    parser.add_argument('--cover-selector', help='CSS selector of the cover element (default: body)')
    parser.add_argument('--no-cover', action='store_true', help='Title page instead of a cover page')

    args = parser.parse_args(argv)

    try:
        results = asyncio.run(run_export(args))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Cannot read project: {e}")
        print(f"❌ Cannot read project: {e}")
        return 1

    failed = 0
    for result in results:
        if result.success:
            print(f"✅ {result.format.value.upper()}: {result.path}")
        else:
            failed += 1
            print(f"❌ {result.format.value.upper()}: {result.message}")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
