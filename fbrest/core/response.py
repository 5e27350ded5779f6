from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple
from xml.dom import Node
from xml.dom.minidom import Document
from xml.parsers.expat import ExpatError

from defusedxml import DefusedXmlException
from defusedxml import minidom as DefusedMinidom

from .errors import ResponseParseError, StructuredError

log = logging.getLogger("fbrest.response")

ERROR_TAG = "error_response"


@dataclass(frozen=True)
class CallResult:
    """Result of one remote call.

    Returned directly from the pipeline, so every call owns its own
    result. Unpacks as `(tree, raw_text)`.
    """

    tree: Document
    raw_text: str

    def __iter__(self) -> Iterator:
        return iter((self.tree, self.raw_text))


def text_content(node: Node) -> str:
    """DOM `textContent`: concatenated text of all descendant text nodes."""

    if node.nodeType in (Node.TEXT_NODE, Node.CDATA_SECTION_NODE):
        return node.data
    if node.nodeType in (Node.COMMENT_NODE, Node.PROCESSING_INSTRUCTION_NODE):
        return node.data
    return "".join(
        text_content(c)
        for c in node.childNodes
        if c.nodeType not in (Node.COMMENT_NODE, Node.PROCESSING_INSTRUCTION_NODE)
    )


def strip_empty_text_nodes(node: Node) -> None:
    """Remove text nodes that are empty after trimming, recursively.

    Structural whitespace in the response shows up as text nodes that would
    otherwise shift first-child / next-sibling lookups.
    """

    for child in list(node.childNodes):
        if child.nodeType == Node.TEXT_NODE and not child.data.strip():
            node.removeChild(child)
            child.unlink()
        else:
            strip_empty_text_nodes(child)


def _root(tree: Node) -> Optional[Node]:
    if isinstance(tree, Document):
        return tree.documentElement
    return tree.firstChild


def parse_response(raw: bytes) -> Tuple[Document, str]:
    """Parse a raw response body into a normalized tree.

    Security notes:
    - Parsing goes through defusedxml; entity expansion and external
      references are rejected and reported as parse errors.

    """

    try:
        raw_text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ResponseParseError(f"response is not valid UTF-8: {e}") from e

    try:
        tree = DefusedMinidom.parseString(raw)
    except (ExpatError, DefusedXmlException) as e:
        raise ResponseParseError(f"error parsing xml: {e}") from e

    tree.normalize()
    strip_empty_text_nodes(tree)
    return tree, raw_text


def may_contain_error(raw_text: str) -> bool:
    """Cheap pre-check for the error envelope.

    An element named `error_response` cannot be present unless the raw text
    contains that token, so a miss here is conclusive.
    """

    return ERROR_TAG in raw_text


def find_error(tree: Document, raw_text: Optional[str] = None) -> Optional[StructuredError]:
    """Return the StructuredError described by the error envelope, if any."""

    if raw_text is not None and not may_contain_error(raw_text):
        return None
    errors = tree.getElementsByTagName(ERROR_TAG)
    if not errors:
        return None

    envelope = errors[0]
    code_node = envelope.firstChild
    if code_node is None or code_node.firstChild is None:
        raise ResponseParseError("malformed error envelope: missing error code")
    try:
        code = int(text_content(code_node.firstChild).strip())
    except ValueError as e:
        raise ResponseParseError("malformed error envelope: non-numeric error code") from e

    msg_node = code_node.nextSibling
    message = text_content(msg_node) if msg_node is not None else ""
    return StructuredError(code, message)


def check_error(tree: Document, raw_text: Optional[str] = None) -> None:
    """Raise StructuredError if the response carries the error envelope."""

    err = find_error(tree, raw_text)
    if err is not None:
        raise err


def scalar_text(tree: Node) -> str:
    """Text content of the tree's first child, the scalar response convention."""

    root = _root(tree)
    if root is None:
        raise ResponseParseError("response has no content")
    return text_content(root)


def extract_boolean(tree: Node) -> bool:
    """True only when the scalar text is exactly `1`."""

    return scalar_text(tree) == "1"


def extract_int(tree: Node) -> int:
    text = scalar_text(tree)
    try:
        return int(text)
    except ValueError as e:
        raise ResponseParseError(f"expected an integer response, got {text!r}") from e


def extract_string(tree: Node) -> str:
    return scalar_text(tree)


def first_element_text(tree: Document, tag: str) -> Optional[str]:
    """Text of the first element named `tag`, or None if there is no such element."""

    found = tree.getElementsByTagName(tag)
    if not found:
        return None
    return text_content(found[0])


def render_tree(node: Node, prefix: str = "") -> str:
    """Indented one-line-per-node dump of a tree, for debug logging."""

    lines: List[str] = []

    def walk(n: Node, indent: str) -> None:
        if n.nodeType == Node.TEXT_NODE:
            lines.append(f"{indent}'{n.data.strip()}'")
        elif n.nodeType == Node.ELEMENT_NODE:
            lines.append(f"{indent}{n.tagName}")
        else:
            lines.append(f"{indent}{n.nodeName}")
        for c in n.childNodes:
            walk(c, indent + "  ")

    walk(node, prefix)
    return "\n".join(lines)
