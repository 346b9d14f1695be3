"""
Document tree shared by the trading API (strict XML) and the console (HTML).

Both syntaxes are normalised into ``Element`` nodes whose children are either
further ``Element`` nodes or plain ``str`` text nodes.  Field lookup walks the
tree once in pre-order and matches breadcrumb paths of tag names:

    extract_first(root, ("GetItemResponse", "Item", "Title"))

matches every ``Title`` that has an ``Item`` above it which in turn has a
``GetItemResponse`` above it (the context node counts as an ancestor).  The
steps need not be direct parent/child pairs.

Outgoing trading API documents are written as nested lists, e.g.
``["GetItemRequest", ["ItemID", "111"]]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Literal, Optional, Sequence, Union
import xml.etree.ElementTree as ET

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

ParseError = ET.ParseError
ParamTree = Sequence[Any]
Path = Union[str, Sequence[str]]


@dataclass
class Element:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[Union["Element", str]] = field(default_factory=list)

    def elements(self) -> Iterator["Element"]:
        for child in self.children:
            if isinstance(child, Element):
                yield child

    def text(self) -> str:
        parts: list[str] = []
        for child in self.children:
            parts.append(child.text() if isinstance(child, Element) else child)
        return "".join(parts)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)


# --------------------------------------------------------------------------- #
#  Building
# --------------------------------------------------------------------------- #


def add_token(tree: ParamTree, token: str) -> list[Any]:
    root, *children = tree
    return [root, ["RequesterCredentials", ["eBayAuthToken", token]], *children]


def _to_etree(tree: ParamTree, namespace: str) -> ET.Element:
    tag, *children = tree
    el = ET.Element(f"{{{namespace}}}{tag}" if namespace else tag)
    for child in children:
        if isinstance(child, (list, tuple)):
            el.append(_to_etree(child, namespace))
        elif child is not None:
            # scalars become text; consecutive scalars are concatenated
            el.text = (el.text or "") + str(child)
    return el


def build(tree: ParamTree, namespace: str = "") -> bytes:
    root = _to_etree(tree, namespace)
    ET.indent(root)
    return ET.tostring(
        root,
        encoding="utf-8",
        xml_declaration=True,
        default_namespace=namespace or None,
    )


def build_request(tree: ParamTree, token: str, namespace: str = "") -> bytes:
    return build(add_token(tree, token), namespace)


# --------------------------------------------------------------------------- #
#  Parsing
# --------------------------------------------------------------------------- #


def _from_etree(el: ET.Element) -> Element:
    node = Element(tag=el.tag, attrs=dict(el.attrib))
    if el.text:
        node.children.append(el.text)
    for child in el:
        node.children.append(_from_etree(child))
        if child.tail:
            node.children.append(child.tail)
    return node


def _from_soup(tag: Tag) -> Element:
    attrs = {
        k: " ".join(v) if isinstance(v, list) else v for k, v in tag.attrs.items()
    }
    node = Element(tag=tag.name, attrs=attrs)
    for child in tag.children:
        if isinstance(child, Tag):
            node.children.append(_from_soup(child))
        elif isinstance(child, NavigableString) and not isinstance(
            child, PreformattedString
        ):
            node.children.append(str(child))
    return node


def parse_xml(raw: Union[bytes, str]) -> Element:
    return _from_etree(ET.fromstring(raw))


def parse_html(raw: Union[bytes, str]) -> Element:
    return _from_soup(BeautifulSoup(raw, "html.parser"))


def parse(raw: Union[bytes, str], syntax: Literal["xml", "html"]) -> Element:
    if syntax == "xml":
        return parse_xml(raw)
    if syntax == "html":
        return parse_html(raw)
    raise ValueError(f"unknown syntax {syntax!r}")


# --------------------------------------------------------------------------- #
#  Lookup
# --------------------------------------------------------------------------- #


def _steps(path: Path) -> tuple[str, ...]:
    return (path,) if isinstance(path, str) else tuple(path)


def _walk_matches(node: Element, steps: tuple[str, ...]) -> Iterator[Element]:
    *ancestors_wanted, last = steps
    # stack of (element, tags of its ancestors incl. the context node)
    stack: list[tuple[Element, tuple[str, ...]]] = [(node, ())]
    while stack:
        el, above = stack.pop()
        if el.tag == last and _is_subsequence(ancestors_wanted, above):
            yield el
        below = above + (el.tag,)
        stack.extend((child, below) for child in reversed(list(el.elements())))


def _is_subsequence(wanted: Sequence[str], tags: Sequence[str]) -> bool:
    it = iter(tags)
    return all(any(t == w for t in it) for w in wanted)


def find_all(node: Element, path: Path) -> list[Element]:
    return list(_walk_matches(node, _steps(path)))


def find_first(node: Element, path: Path) -> Optional[Element]:
    return next(_walk_matches(node, _steps(path)), None)


def extract_all(node: Element, path: Path) -> list[str]:
    return [el.text() for el in _walk_matches(node, _steps(path))]


def extract_first(node: Element, path: Path) -> Optional[str]:
    el = find_first(node, path)
    return el.text() if el is not None else None


def find_element(node: Element, tag: str) -> Optional[Element]:
    return find_first(node, tag)


def find_elements(node: Element, tag: str) -> list[Element]:
    return find_all(node, tag)


def page_input_values(node: Element) -> dict[str, str]:
    """name -> value of every <input> on the page that carries a value."""
    values: dict[str, str] = {}
    for el in find_elements(node, "input"):
        name, value = el.get("name"), el.get("value")
        if name and value:
            values[name] = value
    return values
