"""Lexical JSON serialisation of rich-text trees and stored-document payload assembly"""

from typing import Any, Optional

from mdxmigrate.core.models import MappedRecord, RichTextBlock
from mdxmigrate.core.tree import (
    Code, Component, ComponentPlaceholder, Heading, InlineReference, LineBreak, Link, List,
    ListItem, Mark, Paragraph, Quote, Root, Text, default_marker,
)
from mdxmigrate.core.utils.hashing import sha256_json


FORMAT_BITS: dict[Mark, int] = {
    Mark.bold:          1,
    Mark.italic:        2,
    Mark.strikethrough: 4,
    Mark.code:          16,
}

_ELEMENT = {"format": "", "indent": 0, "version": 1, "direction": "ltr"}


def text_format(marks: list[Mark]) -> int:
    bits = 0
    for mark in marks:
        bits |= FORMAT_BITS[mark]
    return bits


def _text(value: str, fmt: int = 0) -> dict:
    return {"type": "text", "text": value, "format": fmt, "detail": 0, "mode": "normal", "style": "", "version": 1}


def _element(kind: str, children: list, **extra) -> dict:
    return {"type": kind, **_ELEMENT, **extra, "children": children}


def _inline_children(nodes: list) -> list:
    """Flatten paragraphs inside containers whose Lexical children must be inline."""
    out: list = []
    for node in nodes:
        if isinstance(node, Paragraph):
            if out:
                out.append({"type": "linebreak", "version": 1})
            out.extend(_node(c) for c in node.children)
        else:
            out.append(_node(node))
    return out


def _node(node) -> dict:
    if isinstance(node, Text):
        return _text(node.value, text_format(node.marks))
    if isinstance(node, LineBreak):
        return {"type": "linebreak", "version": 1}
    if isinstance(node, Paragraph):
        return _element("paragraph", [_node(c) for c in node.children], textFormat=0)
    if isinstance(node, Heading):
        return _element("heading", [_node(c) for c in node.children], tag=f"h{node.level}")
    if isinstance(node, List):
        items = [
            dict(_node(item), value=(node.start or 1) + i) for i, item in enumerate(node.children)
        ]
        return _element(
            "list", items,
            listType="number" if node.ordered else "bullet",
            start=node.start or 1, tag="ol" if node.ordered else "ul",
        )
    if isinstance(node, ListItem):
        return _element("listitem", _inline_children(node.children), value=1)
    if isinstance(node, Quote):
        return _element("quote", _inline_children(node.children))
    if isinstance(node, Link):
        return _element(
            "link", [_node(c) for c in node.children],
            fields={"url": node.url, "newTab": False, "linkType": "custom"},
        )
    if isinstance(node, Code):
        return _element("code", [_text(node.value.rstrip("\n"))], language=node.language or None)
    if isinstance(node, InlineReference):
        fields = {"id": node.component_id, "blockType": node.block_type, **node.fields}
        if not node.resolved:
            fields.update(component=node.component, error=node.error, slug=node.slug)
        return {"type": "inlineBlock", "version": 1, "fields": fields}
    if isinstance(node, (Component, ComponentPlaceholder)):
        return _text(default_marker(node))
    if isinstance(node, Root):
        return _element("root", [_node(c) for c in node.children])
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


def to_lexical(root: Root) -> dict:
    """Render a tree as a Lexical editor state ({'root': {...}})."""
    return {"root": _node(root)}


def block_payload(block) -> dict:
    if isinstance(block, RichTextBlock):
        return {"blockType": "richText", "content": to_lexical(block.content)}
    if not block.resolved:
        return {
            "blockType": block.block_type, "component": block.component,
            "error": block.error, "slug": block.slug, "props": dict(block.fields),
        }
    return {"blockType": block.block_type, **block.fields}


def _prune(value: dict) -> dict:
    return {k: v for k, v in value.items() if v is not None and v != {}}


def build_payload(record: MappedRecord, blocks: list, source_path: Optional[str] = None) -> dict[str, Any]:
    """Assemble the stored document (camelCase keys) and stamp its contentHash."""
    data: dict[str, Any] = {
        "title": record.title,
        "slug": record.slug,
        "status": record.status.value,
        "publishedAt": record.published_at,
        "updatedDate": record.updated_date,
        "description": record.description,
        "wordpressSlug": record.wordpress_slug,
        "wpPostId": record.wp_post_id,
        "wpAuthor": record.wp_author,
        "targetKeyword": record.target_keyword,
        "seo": _prune({
            "title": record.seo.title, "metaDescription": record.seo.meta_description,
        }) if record.seo else None,
        "hero": _prune({
            "headingLine1": record.hero.heading_line_1,
            "headingLine2": record.hero.heading_line_2,
            "ctaText": record.hero.cta_text,
        }) if record.hero else None,
        "relationships": _prune({
            "authors": record.relationships.authors or None,
            "editors": record.relationships.editors or None,
            "checkers": record.relationships.checkers or None,
        }),
        "extra": record.extra,
        "contentBlocks": [block_payload(b) for b in blocks],
        "sourcePath": source_path,
    }
    data = _prune(data)
    data["contentHash"] = sha256_json(data)
    return data
