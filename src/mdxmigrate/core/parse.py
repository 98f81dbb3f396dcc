"""Source discovery and frontmatter/body splitting"""

import re
from pathlib import Path
from typing import Any

import yaml

from mdxmigrate.core.models import ParsedSource, SourceDocument
from mdxmigrate.errors import MalformedHeaderError


FRONTMATTER_RE = re.compile(r'\A\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)', re.DOTALL)
EMPTY_FRONTMATTER_RE = re.compile(r'\A\ufeff?---[ \t]*\r?\n---[ \t]*(?:\r?\n|\Z)')


def split_frontmatter(text: str) -> ParsedSource:
    """Return (metadata, body) with the YAML header removed.

    Raises MalformedHeaderError when the file does not open with a '---' delimiter pair,
    the header is not valid YAML, or it does not parse to a mapping.
    """
    m = FRONTMATTER_RE.match(text) or EMPTY_FRONTMATTER_RE.match(text)
    if not m:
        raise MalformedHeaderError("No frontmatter delimiter pair at start of file")

    header = m.group(1) if m.re is FRONTMATTER_RE else ""
    try:
        metadata: Any = yaml.safe_load(header) or {}
    except yaml.YAMLError as e:
        raise MalformedHeaderError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(metadata, dict):
        raise MalformedHeaderError(
            f"Invalid YAML frontmatter: expected a mapping, got {type(metadata).__name__}"
        )
    return ParsedSource(metadata={str(k): v for k, v in metadata.items()}, body=text[m.end():])


def discover_files(root: Path, extension: str = '.mdx') -> list[Path]:
    """Return sorted files with the given extension under root, or [root] if it is a matching file."""
    if root.is_file():
        return [root] if root.suffix == extension else []
    if not root.is_dir():
        raise FileNotFoundError(f"Source root not found: {root}")
    return sorted(p for p in root.rglob(f'*{extension}') if p.is_file())


def read_source(path: Path, root: Path) -> SourceDocument:
    """Read a source file once; the relative path is kept for identifier derivation."""
    path = path.resolve()
    root = root.resolve()
    base = root.parent if root.is_file() else root
    return SourceDocument(
        path=path,
        relative_path=path.relative_to(base).as_posix(),
        text=path.read_text(encoding='utf-8'),
    )
