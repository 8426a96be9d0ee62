"""
Structural edits on the document tree: rows, columns and paragraphs.

Every function takes the document root (an lxml element), mutates it in
place and raises a typed error instead of silently doing nothing. Callers
that need all-or-nothing behaviour work on a freshly parsed tree and only
commit it when the function returns.
"""

import logging
from collections.abc import Sequence
from copy import deepcopy
from typing import Any

from lxml import etree

from .constants import w, w14
from .errors import StructuralBoundaryNotFoundError, TableShapeError
from .locator import BlockKind, iter_text_nodes, require_block, require_marker, set_text
from .markers import MARKER_PATTERN, clean_value, clone_marker_name, marker_token

logger = logging.getLogger(__name__)

# Attributes Word expects to be unique per paragraph
_PARAGRAPH_ID_ATTRIBUTES = (w14("paraId"), w14("textId"))


def table_rows(table: etree._Element) -> list[etree._Element]:
    """Rows that belong directly to this table (not to nested tables)."""
    return table.findall(w("tr"))


def row_cells(row: etree._Element) -> list[etree._Element]:
    """Cells that belong directly to this row."""
    return row.findall(w("tc"))


def replace_marker(root: etree._Element, name: str, value: str) -> int:
    """Replace every occurrence of a marker token below root.

    Args:
        root: Element to search below
        name: Marker name without delimiters
        value: Replacement text (inserted as-is, lxml escapes it)

    Returns:
        Number of tokens replaced
    """
    token = marker_token(name)
    replaced = 0
    for node in iter_text_nodes(root):
        text = node.text or ""
        count = text.count(token)
        if count:
            set_text(node, text.replace(token, value))
            replaced += count
    return replaced


def strip_paragraph_ids(element: etree._Element) -> None:
    """Remove w14:paraId/w14:textId from every paragraph in a copied block."""
    for paragraph in element.iter(w("p")):
        for attribute in _PARAGRAPH_ID_ATTRIBUTES:
            paragraph.attrib.pop(attribute, None)


def _ensure_cell_paragraph(parent: etree._Element) -> None:
    """A table cell must end with a paragraph."""
    if parent.tag == w("tc") and parent.find(w("p")) is None:
        etree.SubElement(parent, w("p"))


def _prune_table(table: etree._Element) -> None:
    """Drop rows left without cells, and the table once it has no rows."""
    for r in table_rows(table):
        if not row_cells(r):
            table.remove(r)
    if table_rows(table):
        return

    parent = table.getparent()
    parent.remove(table)
    _ensure_cell_paragraph(parent)
    logger.debug("Removed table left without rows")


def _index_markers(row: etree._Element, index: int) -> None:
    """Suffix every marker in a row copy with its clone index."""
    for node in iter_text_nodes(row):
        text = node.text or ""
        if "${" in text:
            node.text = MARKER_PATTERN.sub(
                lambda m: marker_token(clone_marker_name(m.group(1), index)), text
            )


def clone_row(root: etree._Element, name: str, count: int) -> None:
    """Replace the row holding a marker with count indexed copies.

    In copy ``i`` (1-based) every ``${x}`` becomes ``${x#i}``. A count of
    zero removes the template row, and the table too if that was its only
    row.

    Args:
        root: Document root
        name: A marker inside the row to clone
        count: Number of copies to produce

    Raises:
        MarkerNotFoundError: If the marker is absent
        StructuralBoundaryNotFoundError: If the marker is not inside a table row
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"Row count must be >= 0, got {count}")

    hit = require_marker(root, name)
    row = require_block(hit, BlockKind.ROW)
    table = row.getparent()

    for index in range(1, count + 1):
        copy = deepcopy(row)
        strip_paragraph_ids(copy)
        _index_markers(copy, index)
        row.addprevious(copy)
    table.remove(row)
    _prune_table(table)

    logger.debug("Cloned row of '%s' %d time(s)", name, count)


def remove_row(root: etree._Element, name: str) -> None:
    """Delete the table row that contains a marker.

    A table left without rows is removed as well.

    Raises:
        MarkerNotFoundError: If the marker is absent
        StructuralBoundaryNotFoundError: If the marker is not inside a table row
    """
    hit = require_marker(root, name)
    row = require_block(hit, BlockKind.ROW)
    table = row.getparent()
    table.remove(row)
    _prune_table(table)
    logger.debug("Removed row containing '%s'", name)


def remove_column(root: etree._Element, name: str, strict: bool = True) -> int:
    """Delete the column whose cell contains a marker from every row.

    The column index is the position of the marker's own cell among the
    cells of its row. Table grid widths are left as they are. Rows left
    without cells are removed, and the table with them when none remain.

    Args:
        root: Document root
        name: A marker inside the column to remove
        strict: Require every row of the table to have the same number of
            cells. When False, rows too short to have the column are skipped.

    Returns:
        The zero-based index of the removed column

    Raises:
        MarkerNotFoundError: If the marker is absent
        StructuralBoundaryNotFoundError: If the marker is not inside a table cell
        TableShapeError: If strict and the rows differ in cell count
    """
    hit = require_marker(root, name)
    cell = require_block(hit, BlockKind.CELL)
    row = require_block(hit, BlockKind.ROW)
    table = require_block(hit, BlockKind.TABLE)

    cells = row_cells(row)
    if cell not in cells:
        raise StructuralBoundaryNotFoundError(name, "top-level table cell")
    column = cells.index(cell)
    rows = table_rows(table)
    cell_counts = [len(row_cells(r)) for r in rows]

    if strict and len(set(cell_counts)) > 1:
        raise TableShapeError(name, cell_counts)

    # Reverse order mirrors deleting later rows first
    for r in reversed(rows):
        cells = row_cells(r)
        if column >= len(cells):
            logger.warning("Row has %d cell(s); skipping column %d", len(cells), column)
            continue
        r.remove(cells[column])
    _prune_table(table)

    logger.debug("Removed column %d of table containing '%s'", column, name)
    return column


def clone_paragraph(root: etree._Element, name: str, data: Sequence[Any]) -> int:
    """Replace the paragraph holding a marker with one copy per data item.

    Each copy has the marker replaced by the cleaned item. With no items
    the paragraph is removed.

    Args:
        root: Document root
        name: The marker inside the paragraph to clone
        data: Replacement values in output order

    Returns:
        Number of paragraphs produced

    Raises:
        MarkerNotFoundError: If the marker is absent
        StructuralBoundaryNotFoundError: If the marker is not inside a paragraph
    """
    hit = require_marker(root, name)
    paragraph = require_block(hit, BlockKind.PARAGRAPH)

    for item in data:
        copy = deepcopy(paragraph)
        strip_paragraph_ids(copy)
        replace_marker(copy, name, clean_value(item))
        paragraph.addprevious(copy)
    parent = paragraph.getparent()
    parent.remove(paragraph)
    _ensure_cell_paragraph(parent)

    logger.debug("Cloned paragraph of '%s' %d time(s)", name, len(data))
    return len(data)
