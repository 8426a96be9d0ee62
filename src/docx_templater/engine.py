"""
TemplateSession: filling a Word template with data.

A session owns one document source for its whole lifetime. Operations are
applied one after another; each parses the current markup, edits a fresh
tree and only writes it back when the edit succeeded, so a failing
operation never leaves the document half changed.

Operations that consume a marker (set_tag, set_repeating_rows,
clone_paragraph) can only be applied once per marker: afterwards the
marker text is gone from the document.

Example:
    >>> with TemplateSession.from_file("quote.docx", OutputTarget("quote")) as session:
    ...     session.repair()
    ...     session.set_tag("customer", "ACME & Sons")
    ...     session.set_repeating_rows("item", [
    ...         {"item": "Widget", "price": "10"},
    ...         {"item": "Gadget", "price": "12"},
    ...     ])
    ...     session.save()
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, BinaryIO

from lxml import etree

from . import editor
from .errors import DocxTemplateError, MarkerNotFoundError, ValidationError
from .locator import (
    BlockKind,
    count_marker,
    iter_text_nodes,
    require_block,
    require_marker,
)
from .markers import clean_value, clone_marker_name, find_marker_names
from .output import OutputTarget
from .package import DocumentSource, DocxPackage
from .repair import repair_markers
from .results import OperationResult

logger = logging.getLogger(__name__)


class TemplateSession:
    """Applies template operations to one document.

    Args:
        source: The document source holding the markup
        output: Where save() writes to when no path is given

    Attributes:
        source: The document source
        output: The configured output target, if any
    """

    def __init__(self, source: DocumentSource, output: OutputTarget | None = None) -> None:
        self.source = source
        self.output = output
        self._closed = False

    @classmethod
    def from_file(
        cls, template: str | Path | BinaryIO, output: OutputTarget | None = None
    ) -> "TemplateSession":
        """Open a session on a .docx template.

        Raises:
            ValidationError: If the template cannot be read
        """
        return cls(DocxPackage.open(template), output)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Markup access
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise DocxTemplateError("Template session is closed; it was already saved")

    def _load(self) -> etree._Element:
        """Parse the current markup into a tree owned by the caller."""
        self._check_open()
        try:
            return etree.fromstring(self.source.get_xml().encode("utf-8"))
        except etree.XMLSyntaxError as e:
            raise ValidationError(f"Document markup is not well-formed: {e}") from e

    def _commit(self, root: etree._Element) -> None:
        self.source.set_xml(etree.tostring(root, encoding="unicode"))

    def _edit(self, operation: str, apply: Callable[[etree._Element], Any]) -> Any:
        root = self._load()
        result = apply(root)
        self._commit(root)
        logger.info("Applied %s", operation)
        return result

    def markers(self) -> list[str]:
        """Names of the markers present, in document order."""
        root = self._load()
        seen: dict[str, None] = {}
        for node in iter_text_nodes(root):
            for name in find_marker_names(node.text or ""):
                seen.setdefault(name, None)
        return list(seen)

    def has_marker(self, name: str) -> bool:
        return count_marker(self._load(), name) > 0

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def set_tag(self, name: str, value: Any) -> int:
        """Replace a marker with a value.

        Every occurrence of the marker is replaced. The value is cleaned
        first (tags stripped, "&" written as "and").

        Args:
            name: Marker name without delimiters
            value: Replacement value

        Returns:
            Number of occurrences replaced

        Raises:
            MarkerNotFoundError: If the marker is absent, including when it
                was already replaced by an earlier call
        """
        if count_marker(self._load(), name) == 0:
            raise MarkerNotFoundError(name)
        replaced = self.source.set_value(name, clean_value(value))
        logger.info("Set '%s' (%d occurrence(s))", name, replaced)
        return replaced

    def set_repeating_rows(self, name: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Expand a template table row into one row per record.

        The row holding ``${name}`` is cloned len(rows) times. In clone k
        (1-based) the marker ``${key}`` becomes ``${key#k}`` and is set to
        ``rows[k-1][key]``. An empty sequence removes the template row.

        Args:
            name: A marker inside the template row
            rows: Records mapping marker names in the row to values

        Returns:
            Number of rows created

        Raises:
            MarkerNotFoundError: If name, or a record key, is not a marker
                of the template row
            StructuralBoundaryNotFoundError: If the marker is not in a table row

        If writing the rows fails part way, the markup is restored to what
        it was before the call.
        """
        root = self._load()
        row = require_block(require_marker(root, name), BlockKind.ROW)
        row_markers = {
            marker for node in iter_text_nodes(row) for marker in find_marker_names(node.text or "")
        }
        for record in rows:
            for key in record:
                if key not in row_markers:
                    raise MarkerNotFoundError(
                        key, suggestions=[f"Markers in the row of '{name}': {sorted(row_markers)}"]
                    )

        cleaned = [{key: clean_value(value) for key, value in record.items()} for record in rows]

        # clone_row and set_value edit the source directly; restore on failure
        snapshot = self.source.get_xml()
        try:
            self.source.clone_row(name, len(cleaned))
            for index, record in enumerate(cleaned, start=1):
                for key, value in record.items():
                    self.source.set_value(clone_marker_name(key, index), value)
        except Exception:
            self.source.set_xml(snapshot)
            logger.warning("Expanding row of '%s' failed; document restored", name)
            raise

        logger.info("Expanded row of '%s' into %d row(s)", name, len(rows))
        return len(rows)

    def remove_row(self, name: str) -> None:
        """Remove the table row containing a marker.

        Raises:
            MarkerNotFoundError: If the marker is absent
            StructuralBoundaryNotFoundError: If the marker is not in a table row
        """
        self._edit(f"remove_row '{name}'", lambda root: editor.remove_row(root, name))

    def remove_column(self, name: str, strict: bool = True) -> int:
        """Remove the table column whose cell contains a marker.

        Column widths in the table grid are not adjusted.

        Args:
            name: A marker inside the column to remove
            strict: Fail when the table's rows differ in cell count instead of
                skipping rows that are too short

        Returns:
            Zero-based index of the removed column

        Raises:
            MarkerNotFoundError: If the marker is absent
            StructuralBoundaryNotFoundError: If the marker is not in a table cell
            TableShapeError: If strict and rows differ in cell count
        """
        return self._edit(
            f"remove_column '{name}'", lambda root: editor.remove_column(root, name, strict)
        )

    def clone_paragraph(self, name: str, data: Sequence[Any]) -> int:
        """Repeat the paragraph containing a marker once per item.

        Returns:
            Number of paragraphs produced (0 removes the paragraph)

        Raises:
            MarkerNotFoundError: If the marker is absent
            StructuralBoundaryNotFoundError: If the marker is not in a paragraph
        """
        return self._edit(
            f"clone_paragraph '{name}'", lambda root: editor.clone_paragraph(root, name, data)
        )

    def repair(self) -> int:
        """Join markers that Word split across several runs.

        Returns:
            Number of markers repaired

        Raises:
            MalformedSpanError: If a marker opening is never closed
        """
        return self._edit("repair", repair_markers)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def apply_operations(
        self, operations: list[dict[str, Any]], stop_on_error: bool = False
    ) -> list[OperationResult]:
        """Apply several operations described as dictionaries.

        See :class:`docx_templater.operations.batch.TemplateBatch`.
        """
        from .operations.batch import TemplateBatch

        return TemplateBatch(self).apply_operations(operations, stop_on_error=stop_on_error)

    def apply_operation_file(
        self, path: str | Path, format: str = "yaml", stop_on_error: bool = False
    ) -> list[OperationResult]:
        """Apply operations loaded from a YAML or JSON file."""
        from .operations.batch import TemplateBatch

        return TemplateBatch(self).apply_operation_file(
            path, format=format, stop_on_error=stop_on_error
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def save(self, path: str | Path | None = None) -> Path:
        """Write the document and end the session.

        Args:
            path: Output file. Defaults to the configured output target.

        Returns:
            The path written to

        Raises:
            ValueError: If no path is given and no output target is configured
        """
        self._check_open()
        if path is None:
            if self.output is None:
                raise ValueError("path is required when the session has no output target")
            path = self.output.full_path

        path = Path(path)
        self.source.save(path)
        logger.info("Saved document to %s", path)
        self.close()
        return path

    def close(self) -> None:
        """Release the document source."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self.source, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "TemplateSession":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
