"""Small markup helpers: CDATA wrapping, jump links and a minimal DOM."""
from __future__ import annotations

from dataclasses import dataclass
from html import escape as html_escape
from html.entities import name2codepoint
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple, Union

_VOID_TAGS = frozenset({"area", "br", "col", "hr", "img", "input", "link", "meta", "source", "wbr"})
_XML_ENTITIES = frozenset({"amp", "lt", "gt", "quot", "apos"})


def cdata(text: str) -> str:
    """Wrap *text* in a CDATA section, splitting any embedded ``]]>``."""

    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def link_markup(text: str, fragment: str) -> str:
    return f'<a href="#{html_escape(fragment, quote=True)}">{text}</a>'


def local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix from *tag*."""

    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


@dataclass
class Node:
    """Minimal DOM node keeping children and text in document order."""

    tag: Optional[str]
    attrs: Dict[str, str]
    contents: List[Union["Node", str]]

    def add_child(self, child: "Node") -> None:
        self.contents.append(child)

    def add_text(self, data: str) -> None:
        if data:
            self.contents.append(data)

    def inner_markup(self) -> str:
        return "".join(
            item.to_markup() if isinstance(item, Node) else item for item in self.contents
        )

    def to_markup(self) -> str:
        attrs = "".join(
            f' {key}="{html_escape(value, quote=True)}"' for key, value in self.attrs.items()
        )
        if self.tag in _VOID_TAGS:
            return f"<{self.tag}{attrs}/>"
        return f"<{self.tag}{attrs}>{self.inner_markup()}</{self.tag}>"


class MiniHTMLParser(HTMLParser):
    """Parser building a :class:`Node` tree while keeping entities verbatim.

    With ``xhtml=True`` the tree serialises as well-formed XML instead: stray
    ampersands are escaped and named entities become numeric references.
    """

    def __init__(self, xhtml: bool = False) -> None:
        super().__init__(convert_charrefs=False)
        self.root = Node(tag="root", attrs={}, contents=[])
        self._stack: List[Node] = [self.root]
        self._xhtml = xhtml

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        node = Node(tag=tag, attrs={k: v or "" for k, v in attrs}, contents=[])
        self._stack[-1].add_child(node)
        if tag not in _VOID_TAGS:
            self._stack.append(node)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        node = Node(tag=tag, attrs={k: v or "" for k, v in attrs}, contents=[])
        self._stack[-1].add_child(node)

    def handle_endtag(self, tag: str) -> None:
        if not any(node.tag == tag for node in self._stack[1:]):
            return
        while len(self._stack) > 1:
            node = self._stack.pop()
            if node.tag == tag:
                break

    def handle_data(self, data: str) -> None:
        self._stack[-1].add_text(html_escape(data, quote=False) if self._xhtml else data)

    def handle_entityref(self, name: str) -> None:
        if not self._xhtml or name in _XML_ENTITIES:
            self._stack[-1].add_text(f"&{name};")
        elif name in name2codepoint:
            self._stack[-1].add_text(f"&#{name2codepoint[name]};")
        else:
            self._stack[-1].add_text(f"&amp;{name};")

    def handle_charref(self, name: str) -> None:
        self._stack[-1].add_text(f"&#{name};")


def parse_fragment(content: str, xhtml: bool = False) -> Node:
    parser = MiniHTMLParser(xhtml=xhtml)
    parser.feed(content)
    parser.close()
    return parser.root


def xhtml_fragment(content: str) -> str:
    """Re-serialise an HTML fragment as well-formed XHTML."""

    return parse_fragment(content, xhtml=True).inner_markup()


@dataclass(frozen=True)
class LinkSplit:
    """Markup with its jump link taken apart."""

    remainder: str
    label: str
    fragment: Optional[str]

    @property
    def text(self) -> str:
        """The surrounding markup, or the link label when nothing surrounds it."""

        return self.remainder if self.remainder else self.label


def split_jump_link(content: str) -> LinkSplit:
    """Separate the first top-level ``<a href="#...">`` link from *content*."""

    root = parse_fragment(content)
    for index, item in enumerate(root.contents):
        if not isinstance(item, Node) or item.tag != "a":
            continue
        href = item.attrs.get("href", "")
        if not href.startswith("#"):
            continue
        rest = root.contents[:index] + root.contents[index + 1:]
        remainder = "".join(
            part.to_markup() if isinstance(part, Node) else part for part in rest
        ).strip()
        return LinkSplit(remainder=remainder, label=item.inner_markup(), fragment=href[1:])
    return LinkSplit(remainder=content.strip(), label="", fragment=None)


__all__ = [
    "LinkSplit",
    "MiniHTMLParser",
    "Node",
    "cdata",
    "link_markup",
    "local_name",
    "parse_fragment",
    "split_jump_link",
    "xhtml_fragment",
]
