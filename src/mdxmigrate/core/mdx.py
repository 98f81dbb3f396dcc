"""markdown-it rules for MDX component tags (flow and text placement)

Adds three token types:
  mdx_flow                        a component on its own line (self-closing, or closed on the same line)
  mdx_flow_open / mdx_flow_close  a component whose children span lines; children are tokenized as markdown
  mdx_text                        a component inside running text

Each token carries meta = {"name": str, "attrs": [(name, value), ...], "children": str | None}.
Only capitalised tag names are treated as components; lowercase HTML keeps markdown-it's handling.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from markdown_it import MarkdownIt


_NAME_RE = re.compile(r'[A-Za-z][\w.:-]*')
_ATTR_RE = re.compile(r'[A-Za-z_:][\w.:-]*')
_NUMBER_RE = re.compile(r'-?\d+(\.\d+)?([eE][+-]?\d+)?$')
_LITERALS = {"true": True, "false": False, "null": None, "undefined": None}


@dataclass(frozen=True)
class JsxTag:
    name: str
    attrs: list[tuple[str, Any]] = field(default_factory=list)
    self_closing: bool = False
    end: int = 0                    # offset just past the closing '>'


def evaluate_expression(expr: str) -> Any:
    """Evaluate a {expression} attribute value without executing code."""
    text = expr.strip()
    if text in _LITERALS:
        return _LITERALS[text]
    if text[:1] in ('[', '{', '"', "'"):
        candidate = text if text.startswith('"') else text.replace("'", '"')
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            return text
    if _NUMBER_RE.match(text):
        return float(text) if any(c in text for c in '.eE') else int(text)
    return text


def _skip_ws(src: str, i: int, limit: int) -> int:
    while i < limit and src[i].isspace():
        i += 1
    return i


def _scan_value(src: str, i: int, limit: int) -> tuple[Any, int]:
    """Scan an attribute value at i. Returns (value, end) or (None, -1)."""
    if i >= limit:
        return None, -1
    c = src[i]
    if c in ('"', "'"):
        j = src.find(c, i + 1, limit)
        if j < 0:
            return None, -1
        return src[i + 1:j], j + 1
    if c != '{':
        return None, -1

    depth, quote, j = 0, None, i
    while j < limit:
        ch = src[j]
        if quote:
            if ch == '\\':
                j += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ('"', "'", '`'):
            quote = ch
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return evaluate_expression(src[i + 1:j]), j + 1
        j += 1
    return None, -1


def is_component_start(src: str, pos: int) -> bool:
    return src.startswith('<', pos) and pos + 1 < len(src) and src[pos + 1].isupper()


def scan_tag(src: str, pos: int, limit: Optional[int] = None) -> Optional[JsxTag]:
    """Lex an opening component tag starting at pos. Returns None if it is not one."""
    limit = len(src) if limit is None else limit
    if not is_component_start(src, pos):
        return None
    m = _NAME_RE.match(src, pos + 1, limit)
    if not m:
        return None

    name, i, attrs = m.group(), m.end(), []
    while True:
        i = _skip_ws(src, i, limit)
        if i >= limit:
            return None
        if src[i] == '/':
            if i + 1 < limit and src[i + 1] == '>':
                return JsxTag(name, attrs, True, i + 2)
            return None
        if src[i] == '>':
            return JsxTag(name, attrs, False, i + 1)

        am = _ATTR_RE.match(src, i, limit)
        if not am:
            return None
        attr_name = am.group()
        i = _skip_ws(src, am.end(), limit)
        if i < limit and src[i] == '=':
            value, i = _scan_value(src, _skip_ws(src, i + 1, limit), limit)
            if i < 0:
                return None
        else:
            value = True
        attrs.append((attr_name, value))


def _meta(tag: JsxTag, children: Optional[str] = None) -> dict:
    return {"name": tag.name, "attrs": list(tag.attrs), "children": children}


def _line_text(state, line: int) -> str:
    return state.src[state.bMarks[line] + state.tShift[line]:state.eMarks[line]]


def _line_of(state, start_line: int, end_line: int, offset: int) -> int:
    """Index of the line containing offset (the line a multi-line tag ends on)."""
    line = start_line
    while line < end_line - 1 and state.eMarks[line] < offset:
        line += 1
    return line


def _find_close_line(state, start_line: int, end_line: int, name: str) -> Optional[int]:
    """Find the line holding the matching </name>, honouring nested same-name tags."""
    close, depth = f"</{name}>", 0
    for line in range(start_line, end_line):
        text = _line_text(state, line).strip()
        if text == close:
            if depth == 0:
                return line
            depth -= 1
        elif text.startswith(f"<{name}") and not text.endswith("/>") and close not in text:
            depth += 1
    return None


def mdx_flow_rule(state, startLine: int, endLine: int, silent: bool) -> bool:
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False
    pos = state.bMarks[startLine] + state.tShift[startLine]
    if not is_component_start(state.src, pos):
        return False

    tag = scan_tag(state.src, pos, state.eMarks[endLine - 1])
    if tag is None:
        return False
    tag_line = _line_of(state, startLine, endLine, tag.end)
    rest = state.src[tag.end:state.eMarks[tag_line]]

    if tag.self_closing or f"</{tag.name}>" in rest:
        children = None
        if not tag.self_closing:
            close = f"</{tag.name}>"
            idx = rest.find(close)
            if rest[idx + len(close):].strip():
                return False
            children = rest[:idx].strip()
        elif rest.strip():
            return False
        if silent:
            return True
        token = state.push("mdx_flow", "", 0)
        token.meta = _meta(tag, children)
        token.map = [startLine, tag_line + 1]
        token.content = state.src[pos:state.eMarks[tag_line]]
        state.line = tag_line + 1
        return True

    if rest.strip():
        return False
    close_line = _find_close_line(state, tag_line + 1, endLine, tag.name)
    if close_line is None:
        return False
    if silent:
        return True

    token = state.push("mdx_flow_open", "", 1)
    token.meta = _meta(tag)
    token.map = [startLine, close_line + 1]

    old_parent, old_line_max = state.parentType, state.lineMax
    state.parentType = "mdx_flow"
    state.lineMax = close_line
    state.md.block.tokenize(state, tag_line + 1, close_line)
    state.parentType, state.lineMax = old_parent, old_line_max

    token = state.push("mdx_flow_close", "", -1)
    token.meta = {"name": tag.name}
    state.line = close_line + 1
    return True


def mdx_text_rule(state, silent: bool) -> bool:
    pos = state.pos
    if not is_component_start(state.src, pos):
        return False
    tag = scan_tag(state.src, pos, state.posMax)
    if tag is None:
        return False

    end, children = tag.end, None
    if not tag.self_closing:
        close = f"</{tag.name}>"
        idx = state.src.find(close, end, state.posMax)
        if idx < 0:
            return False
        children = state.src[end:idx]
        end = idx + len(close)

    if not silent:
        token = state.push("mdx_text", "", 0)
        token.meta = _meta(tag, children)
        token.content = state.src[pos:end]
    state.pos = end
    return True


def mdx_plugin(md: MarkdownIt) -> None:
    """Register the component rules ahead of markdown-it's raw HTML rules."""
    md.block.ruler.before(
        "html_block", "mdx_flow", mdx_flow_rule,
        {"alt": ["paragraph", "reference", "blockquote"]},
    )
    md.inline.ruler.before("html_inline", "mdx_text", mdx_text_rule)


def make_parser(preset: str = "gfm-like") -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name with the MDX rules enabled."""
    return MarkdownIt(preset, options_update={"linkify": False}).use(mdx_plugin)
