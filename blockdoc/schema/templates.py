"""HTML templates for the built-in block types.

A template is the per-type HTML interface of the schema: it renders a
block's own content to external HTML and reads props back from an external
element. Templates never see child blocks except for list items, whose
children live inside the ``li`` element.
"""

from __future__ import annotations

import html
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping

from bs4 import Tag

# Props shared by text blocks, written as data attributes when they differ
# from their defaults.
PRESENTATION_ATTRIBUTES = {
    "textColor": ("data-text-color", "default"),
    "backgroundColor": ("data-background-color", "default"),
    "textAlignment": ("data-text-alignment", "left"),
}

_TEXT_ALIGN_RE = re.compile(r"text-align\s*:\s*(?P<value>[a-z]+)", re.IGNORECASE)


def escape_text(text: str) -> str:
    return html.escape(text, quote=False)


def escape_attr(value: Any) -> str:
    return html.escape(str(value), quote=True)


def data_attribute(prop: str) -> str:
    """Return the data attribute carrying ``prop``, e.g. ``data-text-color``."""

    return "data-" + re.sub(r"(?<!^)(?=[A-Z])", "-", prop).lower()


def format_attributes(attributes: Mapping[str, Any]) -> str:
    """Render ``{"name": value}`` pairs as a leading-space attribute string."""

    return "".join(f' {name}="{escape_attr(value)}"' for name, value in attributes.items())


class BlockTemplate(ABC):
    """Base HTML template; subclasses declare the tags they own."""

    tags: ClassVar[tuple[str, ...]] = ()
    list_tag: ClassVar[str | None] = None

    def matches(self, element: Tag) -> bool:
        return element.name in self.tags

    def inline_tag(self, props: Mapping[str, Any]) -> str:
        """Tag wrapping the inline content in internal HTML."""

        return "p"

    def content_element(self, element: Tag) -> Tag | None:
        """Return the element holding inline content in external HTML."""

        return element

    @abstractmethod
    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        """Return external HTML for the block's own content."""

    def parse(self, element: Tag) -> dict[str, Any]:
        """Return raw props read from an external element."""

        return parse_presentation(element)

    def presentation(self, props: Mapping[str, Any]) -> str:
        attributes = {
            attribute: props[name]
            for name, (attribute, default) in PRESENTATION_ATTRIBUTES.items()
            if name in props and props[name] != default
        }
        return format_attributes(attributes)


def parse_presentation(element: Tag) -> dict[str, Any]:
    """Read shared presentation props from data attributes or inline CSS."""

    props: dict[str, Any] = {}
    for name, (attribute, _default) in PRESENTATION_ATTRIBUTES.items():
        value = element.get(attribute)
        if isinstance(value, str) and value:
            props[name] = value
    if "textAlignment" not in props:
        match = _TEXT_ALIGN_RE.search(str(element.get("style") or ""))
        if match:
            props["textAlignment"] = match.group("value").lower()
    return props


class ParagraphTemplate(BlockTemplate):
    tags = ("p",)

    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        return f"<p{self.presentation(props)}>{inner_html}</p>"


class HeadingTemplate(BlockTemplate):
    tags = ("h1", "h2", "h3", "h4", "h5", "h6")

    def inline_tag(self, props: Mapping[str, Any]) -> str:
        return f"h{props.get('level', 1)}"

    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        tag = self.inline_tag(props)
        return f"<{tag}{self.presentation(props)}>{inner_html}</{tag}>"

    def parse(self, element: Tag) -> dict[str, Any]:
        props = parse_presentation(element)
        props["level"] = int(element.name[1])
        return props


class ListItemTemplate(BlockTemplate):
    """List item living inside ``ul``/``ol``; optionally carries a checkbox."""

    tags = ("li",)

    def __init__(self, list_tag: str, *, checkable: bool = False) -> None:
        self._list_tag = list_tag
        self.checkable = checkable

    @property
    def list_tag(self) -> str:  # type: ignore[override]
        return self._list_tag

    def matches(self, element: Tag) -> bool:
        return element.name == "li" and (find_checkbox(element) is not None) == self.checkable

    def content_element(self, element: Tag) -> Tag | None:
        for child in element.children:
            if isinstance(child, Tag) and child.name == "p":
                return child
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                break
        return None

    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        checkbox = ""
        if self.checkable:
            checked = " checked" if props.get("checked") else ""
            checkbox = f'<input type="checkbox"{checked} disabled>'
        return f"<li{self.presentation(props)}>{checkbox}<p>{inner_html}</p>{children_html}</li>"

    def parse(self, element: Tag) -> dict[str, Any]:
        props = parse_presentation(element)
        checkbox = find_checkbox(element)
        if self.checkable and checkbox is not None:
            props["checked"] = checkbox.has_attr("checked")
        return props


def find_checkbox(element: Tag) -> Tag | None:
    for child in element.children:
        if not isinstance(child, Tag):
            continue
        if child.name == "input" and str(child.get("type", "")).lower() == "checkbox":
            return child
        if child.name == "p":
            nested = child.find("input", attrs={"type": "checkbox"}, recursive=False)
            if nested is not None:
                return nested
    return None


class ImageTemplate(BlockTemplate):
    tags = ("img", "figure")

    def content_element(self, element: Tag) -> Tag | None:
        return None

    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        caption = props.get("caption", "")
        presentation = "" if caption else self.presentation(props)
        image = (
            f'<img{presentation} src="{escape_attr(props.get("url", ""))}"'
            f' alt="{escape_attr(caption)}"'
            f' width="{escape_attr(props.get("width", 512))}">'
        )
        if not caption:
            return image
        return (
            f"<figure{self.presentation(props)}>{image}"
            f"<figcaption>{escape_text(caption)}</figcaption></figure>"
        )

    def parse(self, element: Tag) -> dict[str, Any]:
        props = parse_presentation(element)
        image = element if element.name == "img" else element.find("img")
        if isinstance(image, Tag):
            props["url"] = str(image.get("src") or "")
            alt = image.get("alt")
            if alt:
                props["caption"] = str(alt)
            width = str(image.get("width") or "")
            if width.isdigit():
                props["width"] = int(width)
        caption = element.find("figcaption") if element.name == "figure" else None
        if isinstance(caption, Tag):
            props["caption"] = caption.get_text().strip()
        return props


class TableTemplate(BlockTemplate):
    tags = ("table",)

    def content_element(self, element: Tag) -> Tag | None:
        return None

    def render(self, props: Mapping[str, Any], inner_html: str, children_html: str = "") -> str:
        return f"<table{self.presentation(props)}><tbody>{inner_html}</tbody></table>"


__all__ = [
    "BlockTemplate",
    "HeadingTemplate",
    "ImageTemplate",
    "ListItemTemplate",
    "PRESENTATION_ATTRIBUTES",
    "ParagraphTemplate",
    "TableTemplate",
    "data_attribute",
    "escape_attr",
    "escape_text",
    "find_checkbox",
    "format_attributes",
    "parse_presentation",
]
