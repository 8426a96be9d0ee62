"""
docx_templater - Fill Word (.docx) templates with data.

Templates carry markers such as ``${first_name}`` in their text. A
TemplateSession replaces markers with values, expands table rows for
repeating data, removes rows and columns, repeats paragraphs for list data
and repairs markers that Word split across several runs.

Example:
    >>> from docx_templater import OutputTarget, TemplateSession
    >>> session = TemplateSession.from_file("letter.docx", OutputTarget("letter", "out"))
    >>> session.set_tag("name", "Jane")
    >>> session.save()
"""

__version__ = "0.1.0"
__all__ = [
    "TemplateSession",
    "DocxPackage",
    "DocumentSource",
    "OutputTarget",
    "OperationResult",
    "BlockKind",
    "MarkerHit",
    "clean_value",
    "marker_token",
    "repair_markers",
    "DocxTemplateError",
    "MarkerNotFoundError",
    "StructuralBoundaryNotFoundError",
    "TableShapeError",
    "MalformedSpanError",
    "ValidationError",
]

from .engine import TemplateSession
from .errors import (
    DocxTemplateError,
    MalformedSpanError,
    MarkerNotFoundError,
    StructuralBoundaryNotFoundError,
    TableShapeError,
    ValidationError,
)
from .locator import BlockKind, MarkerHit
from .markers import clean_value, marker_token
from .output import OutputTarget
from .package import DocumentSource, DocxPackage
from .repair import repair_markers
from .results import OperationResult
