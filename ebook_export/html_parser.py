#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HTML Content Parser

Turns chapter HTML produced by the rich-text editor into an ordered list of
ParsedElement blocks (headings, paragraphs, list items, images) carrying
inline run formatting and alignment.

The parser is a pure function of its input: no network, no mutation of the
caller's data, same output for the same string.

Usage:
    from ebook_export.html_parser import parse_html

    elements = parse_html("<h1>Chapter 1</h1><p>Hello <b>world</b></p>")
"""

import re
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .models import Alignment, ElementType, ImageRef, ParsedElement, Run

_WHITESPACE = re.compile(r"\s+")

HEADING_TAGS = {
    "h1": ElementType.HEADING1,
    "h2": ElementType.HEADING2,
    "h3": ElementType.HEADING3,
}
PARAGRAPH_TAGS = ("p", "div")
LIST_TAGS = {
    "ul": ElementType.LIST_ITEM,
    "ol": ElementType.ORDERED_ITEM,
}
# Never visible, never walked
SKIPPED_TAGS = ("script", "style", "template", "head", "title", "meta", "link")

# Class-name hints used by the editor's utility CSS, checked in this order
ALIGNMENT_CLASS_HINTS = (
    ("text-center", Alignment.CENTER),
    ("text-right", Alignment.RIGHT),
    ("text-justify", Alignment.JUSTIFY),
)


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (including nbsp) to a single space"""
    return _WHITESPACE.sub(" ", text)


def sanitize_text(html: str) -> str:
    """Strip tags, decode entities, collapse whitespace and trim"""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup.find_all(list(SKIPPED_TAGS)):
        tag.decompose()
    return collapse_whitespace(soup.get_text()).strip()


# ============================================================================
# Attribute helpers
# ============================================================================

def _style_map(tag: Tag) -> Dict[str, str]:
    """Parse an inline style attribute into a lower-cased property map"""
    declarations: Dict[str, str] = {}
    for declaration in (tag.get("style") or "").split(";"):
        if ":" not in declaration:
            continue
        name, value = declaration.split(":", 1)
        value = value.replace("!important", "").strip().lower()
        declarations[name.strip().lower()] = value
    return declarations


def _class_string(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def get_alignment(tag: Tag) -> Alignment:
    """Inline text-align wins, then utility class hints, then left"""
    declared = _style_map(tag).get("text-align", "")
    if declared:
        try:
            return Alignment(declared.split()[0])
        except ValueError:
            pass

    class_name = _class_string(tag)
    for hint, alignment in ALIGNMENT_CLASS_HINTS:
        if hint in class_name:
            return alignment
    return Alignment.LEFT


def has_page_break_before(tag: Tag) -> bool:
    style = _style_map(tag)
    return (
        style.get("page-break-before") == "always"
        or style.get("break-before") in ("page", "always")
    )


def _int_attribute(tag: Tag, name: str) -> Optional[int]:
    value = (tag.get(name) or "").strip().lower()
    if value.endswith("px"):
        value = value[:-2]
    try:
        number = int(float(value))
    except ValueError:
        return None
    return number if number > 0 else None


# ============================================================================
# Inline runs
# ============================================================================

def _walk_inline(node, bold: bool, italic: bool, underline: bool, out: List[Run]) -> None:
    if isinstance(node, NavigableString):
        if isinstance(node, PreformattedString):
            return  # comments, CDATA, doctype
        text = str(node)
        if text:
            out.append(Run(text, bold=bold, italic=italic, underline=underline))
        return

    if not isinstance(node, Tag):
        return

    name = node.name.lower()
    if name == "img" or name in SKIPPED_TAGS:
        return
    if name == "br":
        out.append(Run(" ", bold=bold, italic=italic, underline=underline))
        return

    bold = bold or name in ("strong", "b")
    italic = italic or name in ("em", "i")
    underline = underline or name == "u"
    for child in node.children:
        _walk_inline(child, bold, italic, underline, out)


def _normalize_runs(raw_runs: Iterable[Run]) -> List[Run]:
    """
    Collapse whitespace across run boundaries so the concatenated text equals
    the collapsed, trimmed visible text of the subtree.
    """
    runs: List[Run] = []
    for run in raw_runs:
        text = collapse_whitespace(run.text)
        if text.startswith(" ") and (not runs or runs[-1].text.endswith(" ")):
            text = text[1:]
        if text:
            runs.append(replace(run, text=text))

    while runs and runs[-1].text.endswith(" "):
        trimmed = runs[-1].text.rstrip(" ")
        if trimmed:
            runs[-1] = replace(runs[-1], text=trimmed)
            break
        runs.pop()

    return runs


def parse_inline(tag: Tag) -> List[Run]:
    """Extract formatted runs from every descendant of tag"""
    raw: List[Run] = []
    for child in tag.children:
        _walk_inline(child, False, False, False, raw)
    return _normalize_runs(raw)


# ============================================================================
# Block elements
# ============================================================================

def _image_element(img: Tag, align: Alignment) -> ParsedElement:
    return ParsedElement(
        type=ElementType.IMAGE,
        align=align,
        image=ImageRef(
            src=img.get("src") or "",
            width=_int_attribute(img, "width"),
            height=_int_attribute(img, "height"),
        ),
    )


def _text_paragraph(text: str) -> Optional[ParsedElement]:
    text = collapse_whitespace(text).strip()
    if not text:
        return None
    return ParsedElement(type=ElementType.PARAGRAPH, runs=[Run(text)])


class _HtmlBlockParser:
    """Single-use walker that accumulates elements in document order"""

    def __init__(self):
        self.elements: List[ParsedElement] = []

    def parse(self, html: str) -> List[ParsedElement]:
        soup = BeautifulSoup(html or "", "html.parser")
        self._process_children(soup, list_level=0)
        return self.elements

    def _process_children(self, parent: Tag, list_level: int) -> None:
        for child in parent.children:
            if isinstance(child, Tag):
                self._process_element(child, list_level)
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                element = _text_paragraph(str(child))
                if element:
                    self.elements.append(element)

    def _process_element(self, tag: Tag, list_level: int) -> None:
        name = tag.name.lower()

        if name in SKIPPED_TAGS:
            return

        if name == "img":
            self.elements.append(_image_element(tag, Alignment.CENTER))

        elif name in HEADING_TAGS:
            self.elements.append(ParsedElement(
                type=HEADING_TAGS[name],
                runs=parse_inline(tag),
                align=get_alignment(tag),
                page_break_before=has_page_break_before(tag),
            ))

        elif name in PARAGRAPH_TAGS:
            align = get_alignment(tag)
            for img in tag.find_all("img"):
                self.elements.append(_image_element(img, align))

            runs = parse_inline(tag)
            if runs:
                self.elements.append(ParsedElement(
                    type=ElementType.PARAGRAPH,
                    runs=runs,
                    align=align,
                    page_break_before=has_page_break_before(tag),
                ))

        elif name in LIST_TAGS:
            items = tag.find_all("li", recursive=False)
            for index, item in enumerate(items):
                self.elements.append(ParsedElement(
                    type=LIST_TAGS[name],
                    runs=parse_inline(item),
                    align=get_alignment(item),
                    list_level=list_level,
                    starts_list=index == 0,
                ))

        elif name == "br":
            self.elements.append(ParsedElement(type=ElementType.PARAGRAPH, runs=[Run("")]))

        elif name == "figure":
            for img in tag.find_all("img"):
                self.elements.append(_image_element(img, Alignment.CENTER))

        else:
            self._process_children(tag, list_level)


def parse_html(html: str) -> List[ParsedElement]:
    """
    Parse chapter HTML into ParsedElement blocks.

    Args:
        html: Rich-text HTML string (may be empty)

    Returns:
        Elements in source document order
    """
    return _HtmlBlockParser().parse(html)
