"""
Centralized constants for the ebook export pipeline.
All magic numbers used by the parser, resolver and renderers.
"""

# ===========================================
# PAGE GEOMETRY (PDF, points)
# ===========================================
PDF_MARGIN = 72                       # 1 inch on every side
PDF_LINE_HEIGHT = 18                  # body line advance
PDF_PAGE_BREAK_SLACK = 40             # new page when cursor is this close to the bottom
PDF_IMAGE_GAP = 20                    # space after an image
PDF_IMAGE_MIN_SHRINK = 100            # below this, move the image to a new page instead of shrinking
PDF_LIST_INDENT = 20

# ===========================================
# PAGE GEOMETRY (DOCX)
# ===========================================
DOCX_PX_PER_INCH = 96                 # CSS pixel to inch
COVER_PAGE_WIDTH_IN = 8.5
COVER_PAGE_HEIGHT_IN = 11.0
COVER_PAGE_WIDTH_PX = 816             # 8.5in at 96 DPI
COVER_PAGE_HEIGHT_PX = 1056           # 11in at 96 DPI
DOCX_COVER_IMAGE_BOX = (500, 650)     # programmatic cover image box, pixels
DOCX_CONTENT_MARGIN_IN = 1.0
DOCX_COVER_MARGIN_IN = 0.5

# ===========================================
# IMAGES
# ===========================================
IMAGE_FETCH_TIMEOUT = 10.0            # seconds per resolution strategy
COVER_IMAGE_WAIT = 3.0                # seconds per image inside the cover element
COVER_SCALE = 2                       # snapshot device scale factor
PLACEHOLDER_WIDTH = 400
PLACEHOLDER_HEIGHT = 300
DOCX_MAX_IMAGE_WIDTH = 480            # 5in at 96 DPI
DOCX_EMBEDDABLE_FORMATS = ('png', 'jpeg', 'gif', 'bmp', 'tiff')
DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
)

# ===========================================
# FILE HANDLING
# ===========================================
OUTPUT_DIR = 'data/output'
FILENAME_FORBIDDEN_CHARS = '<>:"/\\|?*'
FALLBACK_FILENAME = 'ebook'

# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/ebook_export.log'
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
