# plantable/render/html_tree.py
from __future__ import annotations

import html
from typing import Dict, Iterable, List, Optional, Union

_VOID = frozenset({"br", "hr", "img", "input", "meta", "link", "col"})


class HtmlText:
    """Escaped text node."""

    def __init__(self, text: str) -> None:
        self.text = "" if text is None else str(text)

    def to_html(self) -> str:
        return html.escape(self.text, quote=False)


class HtmlElement:
    """Element with ordered attributes. Attribute values are escaped on output."""

    def __init__(
        self,
        tag: str,
        attrs: Optional[Dict[str, object]] = None,
        children: Optional[Iterable["Node"]] = None,
    ) -> None:
        self.tag = tag
        self.attrs: Dict[str, str] = {k: str(v) for k, v in (attrs or {}).items() if v is not None}
        self.children: List[Node] = list(children or [])

    def append(self, child: "Node") -> "Node":
        self.children.append(child)
        return child

    def add(self, tag: str, attrs: Optional[Dict[str, object]] = None) -> "HtmlElement":
        el = HtmlElement(tag, attrs)
        self.children.append(el)
        return el

    def text(self, text: str) -> "HtmlElement":
        self.children.append(HtmlText(text))
        return self

    def find_all(self, tag: str) -> List["HtmlElement"]:
        out: List[HtmlElement] = []
        for c in self.children:
            if isinstance(c, HtmlElement):
                if c.tag == tag:
                    out.append(c)
                out.extend(c.find_all(tag))
        return out

    def text_content(self) -> str:
        parts: List[str] = []
        for c in self.children:
            parts.append(c.text if isinstance(c, HtmlText) else c.text_content())
        return "".join(parts)

    def to_html(self) -> str:
        attrs = "".join(f' {k}="{html.escape(v, quote=True)}"' for k, v in self.attrs.items())
        if self.tag in _VOID:
            return f"<{self.tag}{attrs}/>"
        inner = "".join(c.to_html() for c in self.children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"

    def __repr__(self) -> str:
        return f"<HtmlElement {self.tag} {len(self.children)} children>"


Node = Union[HtmlElement, HtmlText]


def named_text(text: str, tag: str, attrs: Optional[Dict[str, object]] = None) -> HtmlElement:
    return HtmlElement(tag, attrs, [HtmlText(text)])


__all__ = ["HtmlElement", "HtmlText", "Node", "named_text"]
