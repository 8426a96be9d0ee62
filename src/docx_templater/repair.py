"""
Repairing markers that Word split across several runs.

While a marker is typed, Word's spell-checker and autocorrect may close the
current run and open new ones, so ``${first_name}`` ends up in the XML as::

    <w:r><w:t>${first</w:t></w:r>
    <w:proofErr w:type="spellStart"/>
    <w:r><w:rPr><w:lang w:val="en-GB"/></w:rPr><w:t>_name</w:t></w:r>
    <w:proofErr w:type="spellEnd"/>
    <w:r><w:t>}</w:t></w:r>

Such a marker cannot be found by its literal token. Repair joins the pieces
back into the run where the marker starts, drops the runs that become empty
and removes the spell-check hints of the paragraph.

Repair only joins text; a marker that was retyped or edited in the middle
stays broken. Run it once on a template after each change to the template,
not before every render.
"""

import logging

from lxml import etree

from .constants import MARKER_CLOSE, MARKER_OPEN, w
from .errors import MalformedSpanError
from .locator import own_text_nodes, set_text

logger = logging.getLogger(__name__)

# Run children that carry no content of their own
_RUN_PROPERTY_TAGS = {w("rPr")}


def _unclosed_marker_start(text: str) -> int | None:
    """Offset of a marker opening that is not closed within text."""
    start = text.rfind(MARKER_OPEN)
    if start == -1 or text.find(MARKER_CLOSE, start) != -1:
        return None
    return start


def _discard_text_node(node: etree._Element) -> None:
    """Remove a text node, and its run if nothing else is left in it."""
    run = node.getparent()
    run.remove(node)
    if run.tag == w("r") and all(child.tag in _RUN_PROPERTY_TAGS for child in run):
        run.getparent().remove(run)


def _repair_paragraph(paragraph: etree._Element) -> int:
    nodes = own_text_nodes(paragraph)
    repaired = 0
    i = 0

    while i < len(nodes):
        head = nodes[i]
        text = head.text or ""
        if _unclosed_marker_start(text) is None:
            i += 1
            continue

        j = i + 1
        while j < len(nodes):
            piece = nodes[j].text or ""
            close = piece.find(MARKER_CLOSE)
            if close == -1:
                text += piece
                _discard_text_node(nodes[j])
                j += 1
                continue

            text += piece[: close + 1]
            remainder = piece[close + 1 :]
            if remainder:
                set_text(nodes[j], remainder)
            else:
                _discard_text_node(nodes[j])
                j += 1
            break
        else:
            raise MalformedSpanError(text[text.rfind(MARKER_OPEN) :])

        set_text(head, text)
        repaired += 1
        i = j

    if repaired:
        for hint in paragraph.findall(w("proofErr")):
            paragraph.remove(hint)

    return repaired


def repair_markers(root: etree._Element) -> int:
    """Join markers that are fragmented across runs.

    Repair is idempotent: a second pass over repaired markup finds nothing
    to join and leaves it unchanged.

    Args:
        root: Document root, mutated in place

    Returns:
        Number of markers that were joined

    Raises:
        MalformedSpanError: If a marker opening has no closing brace before
            the end of its paragraph
    """
    repaired = 0
    for paragraph in list(root.iter(w("p"))):
        repaired += _repair_paragraph(paragraph)

    logger.debug("Repaired %d fragmented marker(s)", repaired)
    return repaired
