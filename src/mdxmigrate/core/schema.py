"""Corpus analysis: frontmatter type inference, collection schema generation, component census

Field types are inferred across the whole corpus, never from a single file: declared source
schemas were found to list only a fraction of the keys files actually carry.
"""

import re
from collections import Counter
from datetime import date
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel

from mdxmigrate.core.components import ComponentTable
from mdxmigrate.core.convert import markdown_to_tree
from mdxmigrate.core.extract import extract_components
from mdxmigrate.core.parse import discover_files, read_source, split_frontmatter
from mdxmigrate.errors import MalformedHeaderError


_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}([T ][\d:.]+(Z|[+-]\d{2}:?\d{2})?)?$')

PAYLOAD_TYPES: dict[str, str] = {
    'string':      'text',
    'number':      'number',
    'boolean':     'checkbox',
    'date':        'date',
    'array':       'array',
    'objectArray': 'array',
    'object':      'group',
    'mixed':       'json',
}


class FieldProfile(BaseModel):
    name: str
    kinds: dict[str, int] = {}
    files: int = 0
    examples: list[Any] = []

    @property
    def inferred(self) -> str:
        if not self.kinds:
            return 'string'
        if len(self.kinds) == 1:
            return next(iter(self.kinds))
        return 'mixed'


def value_kind(value: Any) -> str:
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, date):
        return 'date'
    if isinstance(value, str):
        return 'date' if _DATE_RE.match(value.strip()) else 'string'
    if isinstance(value, list):
        return 'objectArray' if value and all(isinstance(v, dict) for v in value) else 'array'
    if isinstance(value, dict):
        return 'object'
    return 'string'


def infer_field_types(frontmatters: Iterable[dict[str, Any]]) -> dict[str, FieldProfile]:
    """Profile every key over every file; null values do not contribute a kind."""
    profiles: dict[str, FieldProfile] = {}
    for fm in frontmatters:
        for key, value in fm.items():
            profile = profiles.setdefault(key, FieldProfile(name=key))
            profile.files += 1
            if value is None:
                continue
            kind = value_kind(value)
            profile.kinds[kind] = profile.kinds.get(kind, 0) + 1
            if len(profile.examples) < 3 and value not in profile.examples:
                profile.examples.append(value.isoformat() if isinstance(value, date) else value)
    return dict(sorted(profiles.items()))


def build_collection_schema(profiles: dict[str, FieldProfile], slug: str, total_files: int) -> dict[str, Any]:
    """Payload-style collection definition; keys present in every file are marked required."""
    fields = []
    for name, profile in profiles.items():
        field: dict[str, Any] = {
            "name": name,
            "type": PAYLOAD_TYPES[profile.inferred],
            "required": total_files > 0 and profile.files == total_files,
        }
        if profile.inferred == 'array':
            field["fields"] = [{"name": "value", "type": "text"}]
        elif profile.inferred in ('objectArray', 'object'):
            keys = sorted({k for ex in profile.examples for item in (ex if isinstance(ex, list) else [ex])
                           if isinstance(item, dict) for k in item})
            field["fields"] = [{"name": k, "type": "text"} for k in keys]
        fields.append(field)
    return {"slug": slug, "fields": fields}


class CensusEntry(BaseModel):
    name: str
    placement: str
    count: int
    files: int
    mapped: bool


class ComponentCensus(BaseModel):
    entries: list[CensusEntry] = []
    unmapped: list[str] = []


def component_census(bodies: Iterable[str], table: ComponentTable, parser_config: str = 'gfm-like') -> ComponentCensus:
    """Count component usages by (name, placement) and list names missing from the table."""
    counts: Counter = Counter()
    files: Counter = Counter()
    for body in bodies:
        usages = extract_components(markdown_to_tree(body, parser_config, table.wrappers)).usages
        keys = [(u.name, u.placement.value) for u in usages]
        counts.update(keys)
        files.update(set(keys))
    entries = [
        CensusEntry(name=n, placement=p, count=c, files=files[(n, p)], mapped=table.lookup(n) is not None)
        for (n, p), c in sorted(counts.items())
    ]
    unmapped = sorted({e.name for e in entries if not e.mapped})
    return ComponentCensus(entries=entries, unmapped=unmapped)


class CorpusAnalysis(BaseModel):
    files: int
    malformed: dict[str, str] = {}
    fields: dict[str, FieldProfile] = {}
    collection_schema: dict[str, Any] = {}
    components: ComponentCensus = ComponentCensus()


def analyze_corpus(root: Path, table: ComponentTable, collection: str, extension: str = '.mdx',
                   parser_config: str = 'gfm-like') -> CorpusAnalysis:
    files = discover_files(Path(root), extension)
    frontmatters, bodies, malformed = [], [], {}
    for f in files:
        source = read_source(f, Path(root))
        try:
            parsed = split_frontmatter(source.text)
        except MalformedHeaderError as e:
            malformed[source.relative_path] = str(e)
            continue
        frontmatters.append(parsed.metadata)
        bodies.append(parsed.body)

    profiles = infer_field_types(frontmatters)
    return CorpusAnalysis(
        files=len(files),
        malformed=malformed,
        fields=profiles,
        collection_schema=build_collection_schema(profiles, collection, len(frontmatters)),
        components=component_census(bodies, table, parser_config),
    )
