"""markdown-it token stream to rich-text tree conversion"""

import logging
import re
from typing import Any, Iterable
from urllib.parse import unquote

from mdxmigrate.core.mdx import make_parser
from mdxmigrate.core.tree import (
    Code, Component, Heading, LineBreak, Link, List, ListItem, Mark,
    Paragraph, Placement, Quote, Root, Text,
)


logger = logging.getLogger(__name__)

DEFAULT_WRAPPERS = frozenset({"Section", "Figure", "Aside", "Article"})

MARK_TOKENS: dict[str, Mark] = {
    'strong': Mark.bold,
    'em':     Mark.italic,
    's':      Mark.strikethrough,
}

_COMPONENT_IN_URL_RE = re.compile(r'<[A-Z][\w.]*')
_BR_RE = re.compile(r'^<br\s*/?>$', re.IGNORECASE)


def build_props(attrs: Iterable[tuple[str, Any]], component: str = "") -> dict[str, Any]:
    """Collapse lexed attributes into a props mapping.

    Names differing only by case are the same prop; the last occurrence wins.
    """
    props: dict[str, Any] = {}
    seen: dict[str, str] = {}
    for name, value in attrs:
        key = name.lower()
        if key in seen:
            logger.warning("Duplicate prop %r on <%s>; keeping last value", name, component)
            del props[seen[key]]
        seen[key] = name
        props[name] = value
    return props


def _source_slice(lines: list[str], start: int, end: int) -> str:
    return ''.join(lines[start:end]).strip()


def _component(meta: dict, placement: Placement) -> Component:
    props = build_props(meta.get("attrs", []), meta["name"])
    if meta.get("children"):
        props.setdefault("children", meta["children"])
    return Component(name=meta["name"], props=props, placement=placement)


def _merge_text(nodes: list) -> list:
    """Merge adjacent text nodes carrying identical marks."""
    merged: list = []
    for node in nodes:
        prev = merged[-1] if merged else None
        if isinstance(node, Text) and isinstance(prev, Text) and prev.marks == node.marks:
            merged[-1] = Text(value=prev.value + node.value, marks=prev.marks)
        else:
            if isinstance(node, Link):
                node.children = _merge_text(node.children)
            merged.append(node)
    return merged


def _is_component_link(link: Link) -> bool:
    """Markdown links wrapped around a component with the component in the URL, e.g. [<X/>](tel:<X/>)."""
    return bool(_COMPONENT_IN_URL_RE.search(unquote(link.url))) and any(
        isinstance(c, Component) for c in link.children
    )


def inline_to_nodes(children: list) -> list:
    """Convert an inline token list to text/link/component nodes with marks as attributes."""
    root: list = []
    stack: list[list] = [root]
    links: list[Link] = []
    marks: list[Mark] = []

    def emit(node) -> None:
        stack[-1].append(node)

    def current_marks(*extra: Mark) -> list[Mark]:
        return sorted(set(marks) | set(extra), key=list(Mark).index)

    for tok in children or []:
        kind = tok.type
        base = kind.rsplit('_', 1)[0]
        if base in MARK_TOKENS and kind.endswith('_open'):
            marks.append(MARK_TOKENS[base])
        elif base in MARK_TOKENS and kind.endswith('_close'):
            if MARK_TOKENS[base] in marks:
                marks.remove(MARK_TOKENS[base])
        elif kind == 'text':
            if tok.content:
                emit(Text(value=tok.content, marks=current_marks()))
        elif kind == 'code_inline':
            emit(Text(value=tok.content, marks=current_marks(Mark.code)))
        elif kind == 'softbreak':
            emit(Text(value=' ', marks=current_marks()))
        elif kind == 'hardbreak':
            emit(LineBreak())
        elif kind == 'link_open':
            link = Link(url=tok.attrGet('href') or '')
            links.append(link)
            stack.append(link.children)
        elif kind == 'link_close':
            stack.pop()
            link = links.pop()
            if _is_component_link(link):
                for child in link.children:
                    emit(child)
            else:
                emit(link)
        elif kind == 'image':
            if tok.content:
                emit(Text(value=tok.content, marks=current_marks()))
        elif kind == 'html_inline':
            if _BR_RE.match(tok.content.strip()):
                emit(LineBreak())
            else:
                emit(Text(value=tok.content, marks=current_marks()))
        elif kind == 'mdx_text':
            emit(_component(tok.meta, Placement.inline))

    return _merge_text(root)


def tokens_to_tree(tokens: list, source_lines: list[str], wrappers: frozenset = DEFAULT_WRAPPERS) -> Root:
    """Build a Root from a flat block-token stream using nesting to track parents."""
    root = Root()
    stack: list = [root]
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        kind = tok.type
        parent = stack[-1]

        if kind == 'heading_open':
            node = Heading(level=int(tok.tag[1:]))
            parent.children.append(node)
            stack.append(node)
        elif kind == 'paragraph_open':
            node = Paragraph()
            parent.children.append(node)
            stack.append(node)
        elif kind in ('bullet_list_open', 'ordered_list_open'):
            start = tok.attrGet('start')
            node = List(ordered=kind == 'ordered_list_open', start=int(start) if start else None)
            parent.children.append(node)
            stack.append(node)
        elif kind == 'list_item_open':
            node = ListItem()
            parent.children.append(node)
            stack.append(node)
        elif kind == 'blockquote_open':
            node = Quote()
            parent.children.append(node)
            stack.append(node)
        elif kind in ('heading_close', 'paragraph_close', 'bullet_list_close',
                      'ordered_list_close', 'list_item_close', 'blockquote_close'):
            node = stack.pop()
            if isinstance(node, Paragraph) and not node.children:
                stack[-1].children.pop()
        elif kind == 'inline':
            parent.children.extend(inline_to_nodes(tok.children))
        elif kind in ('fence', 'code_block'):
            language = tok.info.strip().split()[0] if tok.info and tok.info.strip() else ''
            parent.children.append(Code(language=language, value=tok.content))
        elif kind == 'mdx_flow':
            parent.children.append(_component(tok.meta, Placement.block))
        elif kind == 'mdx_flow_open':
            if tok.meta["name"] in wrappers:
                stack.append(parent)
            else:
                start, end = tok.map
                children = _source_slice(source_lines, start + 1, end - 1)
                meta = dict(tok.meta, children=children)
                parent.children.append(_component(meta, Placement.block))
                i = _skip_to_close(tokens, i, 'mdx_flow_close')
        elif kind == 'mdx_flow_close':
            stack.pop()
        elif kind == 'table_open':
            text = _source_slice(source_lines, *tok.map) if tok.map else ''
            if text:
                parent.children.append(Paragraph(children=[Text(value=text)]))
            i = _skip_to_close(tokens, i, 'table_close')
        elif kind == 'html_block':
            text = tok.content.strip()
            if text:
                parent.children.append(Paragraph(children=[Text(value=text)]))
        i += 1
    return root


def _skip_to_close(tokens: list, i: int, close_type: str) -> int:
    """Index of the close token matching the open token at i."""
    level = tokens[i].level
    for j in range(i + 1, len(tokens)):
        if tokens[j].type == close_type and tokens[j].level == level:
            return j
    return len(tokens) - 1


def markdown_to_tree(body: str, parser_config: str = 'gfm-like', wrappers: Iterable[str] = DEFAULT_WRAPPERS) -> Root:
    """Parse an MDX body into a rich-text tree; components stay opaque leaves."""
    tokens = make_parser(parser_config).parse(body)
    return tokens_to_tree(tokens, body.splitlines(keepends=True), frozenset(wrappers))
