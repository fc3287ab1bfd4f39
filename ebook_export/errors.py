"""
Export error taxonomy.

Only NoContentError and RenderError end an export call. The other two are
recovered locally (skip the image, synthesize the cover).
"""


class EbookExportError(Exception):
    """Base class for every export pipeline error."""
    pass


class NoContentError(EbookExportError):
    """Raised when an export is requested for an ebook without chapters."""
    pass


class ImageResolutionError(EbookExportError):
    """Raised when no strategy could produce a usable image payload."""

    def __init__(self, locator: str, reason: str = ""):
        self.locator = locator
        self.reason = reason
        shown = locator if len(locator) <= 80 else locator[:77] + "..."
        message = f"Could not resolve image {shown}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CoverCaptureError(EbookExportError):
    """Raised when the cover snapshot fails or comes back empty."""
    pass


class RenderError(EbookExportError):
    """Raised when a document cannot be assembled or serialized."""
    pass
