"""
Centralized constants for OOXML namespaces, marker syntax and package paths.

Import from here so every module agrees on namespaces and magic values.
"""

# =============================================================================
# Namespaces
# =============================================================================

# Main WordprocessingML namespace (Word 2007+)
WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

# Word 2010 namespace (paraId / textId attributes)
W14_NAMESPACE = "http://schemas.microsoft.com/office/word/2010/wordml"

# XML namespace (xml:space)
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

NSMAP = {"w": WORD_NAMESPACE}


# =============================================================================
# Package
# =============================================================================

# Main document part inside the .docx ZIP
DOCUMENT_PART = "word/document.xml"

DOCX_EXTENSION = ".docx"

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


# =============================================================================
# Marker syntax
# =============================================================================

MARKER_OPEN = "${"
MARKER_CLOSE = "}"

# Separator between a marker name and its clone index (name#1, name#2, ...)
CLONE_INDEX_SEPARATOR = "#"


# =============================================================================
# Configuration
# =============================================================================

# Environment variable overriding the default output directory
OUTPUT_DIR_ENV = "DOCX_TEMPLATER_OUTPUT_DIR"

DEFAULT_OUTPUT_DIR = "user-files"


# =============================================================================
# Helper Functions
# =============================================================================


def w(tag: str) -> str:
    """Create a fully qualified Word namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "p", "r", "t")

    Returns:
        Fully qualified tag (e.g., "{http://...wordprocessingml/2006/main}p")

    Example:
        >>> w("p")
        '{http://schemas.openxmlformats.org/wordprocessingml/2006/main}p'
    """
    return f"{{{WORD_NAMESPACE}}}{tag}"


def w14(tag: str) -> str:
    """Create a fully qualified Word 2010 namespace tag."""
    return f"{{{W14_NAMESPACE}}}{tag}"
