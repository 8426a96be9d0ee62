"""
Custom exception classes for the docx_templater package.

Each failure mode of a template operation has its own type so callers can
tell "the marker was never there" apart from "the markup around it is not
shaped the way the operation expects".
"""


class DocxTemplateError(Exception):
    """Base exception for all docx_templater errors."""

    pass


class MarkerNotFoundError(DocxTemplateError):
    """Raised when a marker does not occur in the current markup.

    The marker may never have existed, may have been consumed by an earlier
    operation, or may be fragmented across several runs by Word's
    spell-checker.

    Attributes:
        name: The marker name that was searched for (without ${ })
        suggestions: List of helpful suggestions for resolving the issue
    """

    def __init__(self, name: str, suggestions: list[str] | None = None) -> None:
        self.name = name
        self.suggestions = suggestions if suggestions is not None else self._default_suggestions()
        super().__init__(self._format_message())

    def _default_suggestions(self) -> list[str]:
        return [
            "Check the marker is spelled exactly as in the template",
            "Markers are consumed once substituted; each can only be used once",
            "Run repair() first if Word split the marker across several runs",
        ]

    def _format_message(self) -> str:
        """Format a helpful error message with suggestions."""
        msg = f"Could not find marker '${{{self.name}}}'"

        if self.suggestions:
            msg += "\n\nSuggestions:\n"
            for suggestion in self.suggestions:
                msg += f"  • {suggestion}\n"

        return msg


class StructuralBoundaryNotFoundError(DocxTemplateError):
    """Raised when the block enclosing a marker cannot be located.

    Attributes:
        name: The marker name
        kind: The kind of block that was expected (row, cell, paragraph, table)
    """

    def __init__(self, name: str, kind: str) -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"Marker '${{{name}}}' is not inside a {kind}")


class TableShapeError(DocxTemplateError):
    """Raised when a table does not have the same cell count in every row.

    Attributes:
        name: The marker used to locate the table
        cell_counts: Number of cells in each row, in document order
    """

    def __init__(self, name: str, cell_counts: list[int]) -> None:
        self.name = name
        self.cell_counts = cell_counts
        counts = ", ".join(str(count) for count in cell_counts)
        super().__init__(
            f"Table containing '${{{name}}}' has rows with differing cell counts ({counts}); "
            "pass strict=False to skip short rows"
        )


class MalformedSpanError(DocxTemplateError):
    """Raised when a marker opening has no closing brace in its paragraph.

    Attributes:
        fragment: The text collected from the opening until the paragraph end
    """

    def __init__(self, fragment: str) -> None:
        self.fragment = fragment
        super().__init__(f"Unterminated marker starting at {fragment[:50]!r}")


class ValidationError(DocxTemplateError):
    """Raised when a package or its markup cannot be read or written.

    Attributes:
        errors: List of specific validation error messages (optional)
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)
