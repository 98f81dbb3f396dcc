"""Rich-text node tree: a closed, discriminated union of node variants"""

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field


class Mark(str, Enum):
    """Inline formatting carried as an attribute of text nodes."""
    bold = "bold"
    italic = "italic"
    strikethrough = "strikethrough"
    code = "code"


class Placement(str, Enum):
    """Where a component occurred: as its own flow element or inside running text."""
    block = "block"
    inline = "inline"


class Text(BaseModel):
    type: Literal["text"] = "text"
    value: str
    marks: list[Mark] = []


class LineBreak(BaseModel):
    type: Literal["linebreak"] = "linebreak"


class Component(BaseModel):
    """An embedded custom tag, opaque at conversion time."""
    type: Literal["component"] = "component"
    name: str
    props: dict[str, Any] = {}
    placement: Placement


class ComponentPlaceholder(BaseModel):
    """Marks the position an extracted component occupied."""
    type: Literal["componentPlaceholder"] = "componentPlaceholder"
    component_id: str
    placement: Placement


class InlineReference(BaseModel):
    """A resolved (or explicitly unresolved) inline component embedded in rich text."""
    type: Literal["inlineReference"] = "inlineReference"
    component_id: str
    component: str
    block_type: str
    fields: dict[str, Any] = {}
    slug: Optional[str] = None
    resolved: bool = True
    error: Optional[str] = None


class Link(BaseModel):
    type: Literal["link"] = "link"
    url: str
    children: list["Node"] = []


class Paragraph(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    children: list["Node"] = []


class Heading(BaseModel):
    type: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=6)
    children: list["Node"] = []


class ListItem(BaseModel):
    type: Literal["listItem"] = "listItem"
    children: list["Node"] = []


class List(BaseModel):
    type: Literal["list"] = "list"
    ordered: bool = False
    start: Optional[int] = None
    children: list["Node"] = []


class Quote(BaseModel):
    type: Literal["quote"] = "quote"
    children: list["Node"] = []


class Code(BaseModel):
    type: Literal["code"] = "code"
    language: str = ""
    value: str


class Root(BaseModel):
    type: Literal["root"] = "root"
    children: list["Node"] = []


Node = Annotated[
    Union[
        Root, Heading, Paragraph, Text, LineBreak, List, ListItem, Link, Quote, Code,
        Component, ComponentPlaceholder, InlineReference,
    ],
    Field(discriminator="type"),
]

for _model in (Root, Heading, Paragraph, List, ListItem, Link, Quote):
    _model.model_rebuild()


PARENT_TYPES = (Root, Heading, Paragraph, List, ListItem, Link, Quote)


def has_children(node) -> bool:
    return isinstance(node, PARENT_TYPES)


def walk(node):
    """Yield node and all descendants, depth-first, document order."""
    yield node
    if has_children(node):
        for child in node.children:
            yield from walk(child)


def default_marker(node) -> str:
    """Text stand-in for component-like nodes."""
    if isinstance(node, Component):
        return f"<{node.name}/>"
    if isinstance(node, ComponentPlaceholder):
        return f"[component:{node.component_id}]"
    if isinstance(node, InlineReference):
        return f"[inline:{node.slug or node.component}]"
    return ""


def plain_text(node, marker: Callable[[Any], str] = default_marker) -> str:
    """Render the text content of a node.

    Flow children of root and quotes are joined by blank lines, list items by newlines.
    Component-like nodes render through marker.
    """
    if isinstance(node, Text):
        return node.value
    if isinstance(node, LineBreak):
        return "\n"
    if isinstance(node, Code):
        return node.value.rstrip("\n")
    if isinstance(node, (Component, ComponentPlaceholder, InlineReference)):
        return marker(node)
    if isinstance(node, (Root, Quote, ListItem)):
        return "\n\n".join(plain_text(c, marker) for c in node.children)
    if isinstance(node, List):
        return "\n".join(plain_text(c, marker) for c in node.children)
    return "".join(plain_text(c, marker) for c in node.children)
