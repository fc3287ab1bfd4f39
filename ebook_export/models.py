"""
Data Models for the Export Pipeline

Input records (chapters, ebook metadata) are pydantic models because they
arrive as JSON from the editor backend. Everything built during an export
(runs, parsed elements, options, results) is a plain dataclass that lives only
for the duration of one export call.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .cover import CoverElement


# ============================================================================
# Input records
# ============================================================================

class Chapter(BaseModel):
    """A chapter as stored by the editor"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    ebook_id: Optional[str] = None
    title: str = ""
    content: str = Field(default="", description="Rich-text HTML produced by the editor")
    order: int = Field(default=0, alias="chapter_order")


class EbookMetadata(BaseModel):
    """Ebook-level metadata used for the cover and the title page"""
    title: str
    author: Optional[str] = None
    genre: Optional[str] = None
    cover_image: Optional[str] = Field(default=None, description="Cover image locator (URL or data URI)")


# ============================================================================
# Parsed content
# ============================================================================

class ElementType(str, Enum):
    """Block-level element kinds recognized by the parser"""
    PARAGRAPH = "paragraph"
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    HEADING3 = "heading3"
    LIST_ITEM = "list-item"
    ORDERED_ITEM = "ordered-item"
    IMAGE = "image"

    @property
    def is_heading(self) -> bool:
        return self in (ElementType.HEADING1, ElementType.HEADING2, ElementType.HEADING3)

    @property
    def is_list(self) -> bool:
        return self in (ElementType.LIST_ITEM, ElementType.ORDERED_ITEM)


class Alignment(str, Enum):
    """Horizontal paragraph alignment"""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


@dataclass(frozen=True)
class Run:
    """A text fragment with a fixed combination of inline flags"""
    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False


@dataclass
class ImageRef:
    """Image reference as found in the HTML"""
    src: str = ""
    width: Optional[int] = None  # from the width attribute, when numeric
    height: Optional[int] = None


@dataclass
class ParsedElement:
    """One semantic block unit extracted from chapter HTML"""
    type: ElementType
    runs: List[Run] = field(default_factory=list)
    align: Alignment = Alignment.LEFT
    list_level: int = 0
    image: Optional[ImageRef] = None
    starts_list: bool = False  # first item of a ul/ol
    page_break_before: bool = False

    @property
    def text(self) -> str:
        """Concatenated run text, styling ignored"""
        return "".join(run.text for run in self.runs)

    @property
    def all_bold(self) -> bool:
        return bool(self.runs) and all(run.bold for run in self.runs)

    @property
    def all_italic(self) -> bool:
        return bool(self.runs) and all(run.italic for run in self.runs)


# ============================================================================
# Export call
# ============================================================================

class ExportFormat(str, Enum):
    """Supported output formats"""
    PDF = "pdf"
    DOCX = "docx"


@dataclass
class ExportOptions:
    """Everything a renderer needs for one export call"""
    title: str
    content: str = ""
    author: Optional[str] = None
    genre: Optional[str] = None
    cover_image: Optional[str] = None
    has_cover_page: bool = True
    cover_element: Optional["CoverElement"] = None


@dataclass
class ExportResult:
    """Outcome reported back to the caller"""
    success: bool
    format: ExportFormat
    path: Optional[Path] = None
    message: str = ""


# ============================================================================
# Render helpers
# ============================================================================

class OrderedListCounter:
    """
    Manual numbering for ordered items within one render pass.

    Resets when a new ordered list starts and whenever any other element
    (paragraph, heading, bullet item, image) is emitted.
    """

    def __init__(self):
        self.value = 0

    def advance(self, element: ParsedElement) -> int:
        if element.type is not ElementType.ORDERED_ITEM:
            self.value = 0
            return 0
        if element.starts_list:
            self.value = 0
        self.value += 1
        return self.value
