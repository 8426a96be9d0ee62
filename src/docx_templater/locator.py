"""
Locating markers and the structural blocks around them.

Markers live inside ``w:t`` text nodes. A hit is the first text node (in
document order) whose text contains the full token; the enclosing row,
cell, paragraph or table is the nearest ancestor of that kind, which
naturally resolves nested tables to the innermost one.

A marker that Word split across several runs is not found here; run
:func:`docx_templater.repair.repair_markers` first.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from lxml import etree

from .constants import XML_NAMESPACE, w
from .errors import MarkerNotFoundError, StructuralBoundaryNotFoundError
from .markers import marker_token


class BlockKind(Enum):
    """Structural blocks a marker can be enclosed by."""

    TABLE = "tbl"
    ROW = "tr"
    CELL = "tc"
    PARAGRAPH = "p"

    @property
    def tag(self) -> str:
        """Fully qualified element tag for this block kind."""
        return w(self.value)

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class MarkerHit:
    """A marker occurrence inside a text node.

    Attributes:
        name: The marker name
        node: The w:t element holding the token
        offset: Character offset of the token inside the node text
    """

    name: str
    node: etree._Element
    offset: int

    @property
    def token(self) -> str:
        return marker_token(self.name)


def iter_text_nodes(root: etree._Element) -> Iterator[etree._Element]:
    """Iterate over all w:t elements below root in document order."""
    return root.iter(w("t"))


def own_text_nodes(paragraph: etree._Element) -> list[etree._Element]:
    """Text nodes whose nearest enclosing paragraph is this one.

    Text boxes nest whole paragraphs inside a run; their text belongs to
    the inner paragraph and is excluded here.
    """
    nodes = []
    for node in paragraph.iter(w("t")):
        owner = next(node.iterancestors(w("p")), None)
        if owner is paragraph:
            nodes.append(node)
    return nodes


def set_text(node: etree._Element, text: str) -> None:
    """Set the text of a w:t node, preserving significant whitespace."""
    node.text = text
    if text and (text[0].isspace() or text[-1].isspace()):
        node.set(f"{{{XML_NAMESPACE}}}space", "preserve")


def find_marker(root: etree._Element, name: str) -> MarkerHit | None:
    """Find the first occurrence of a marker.

    Args:
        root: Element to search below (usually the document root)
        name: Marker name without delimiters

    Returns:
        MarkerHit for the first occurrence, or None if the marker is absent
    """
    token = marker_token(name)
    for node in iter_text_nodes(root):
        offset = (node.text or "").find(token)
        if offset != -1:
            return MarkerHit(name=name, node=node, offset=offset)
    return None


def require_marker(root: etree._Element, name: str) -> MarkerHit:
    """Like find_marker but raises MarkerNotFoundError when absent."""
    hit = find_marker(root, name)
    if hit is None:
        raise MarkerNotFoundError(name)
    return hit


def count_marker(root: etree._Element, name: str) -> int:
    """Count occurrences of a marker token in all text nodes."""
    token = marker_token(name)
    return sum((node.text or "").count(token) for node in iter_text_nodes(root))


def find_enclosing_block(element: etree._Element, kind: BlockKind) -> etree._Element | None:
    """Find the innermost ancestor of the given kind.

    Args:
        element: Element to start from (typically MarkerHit.node)
        kind: Block kind to look for

    Returns:
        The enclosing block element, or None if there is none
    """
    return next(element.iterancestors(kind.tag), None)


def require_block(hit: MarkerHit, kind: BlockKind) -> etree._Element:
    """Enclosing block of a marker hit, raising when it does not exist."""
    block = find_enclosing_block(hit.node, kind)
    if block is None:
        raise StructuralBoundaryNotFoundError(hit.name, kind.label)
    return block
