"""Intermediate data models for the parse, map, resolve and split stages"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from mdxmigrate.core.tree import Placement, Root


@dataclass(frozen=True)
class SourceDocument:
    """One input file; read once and never mutated."""
    path:          Path
    relative_path: str          # posix path under the source root (identifier input)
    text:          str          # full file content (includes frontmatter)


class ParsedSource(BaseModel):
    metadata: dict[str, Any] = {}
    body: str = ""


# --- field mapping ---

class Status(str, Enum):
    draft = "draft"
    published = "published"


class Seo(BaseModel):
    title: Optional[str] = None
    meta_description: Optional[str] = None


class Hero(BaseModel):
    heading_line_1: Optional[str] = None
    heading_line_2: Optional[str] = None
    cta_text: Optional[str] = None


class Relationships(BaseModel):
    """Team-member slugs referenced by the document."""
    authors: list[str] = []
    editors: list[str] = []
    checkers: list[str] = []


class MappedRecord(BaseModel):
    """Normalized record ready to be combined with content blocks."""
    title:          Optional[str] = None
    slug:           str
    status:         Status = Status.published
    published_at:   Optional[str] = None    # ISO-8601 UTC
    updated_date:   Optional[str] = None
    description:    Optional[str] = None
    wordpress_slug: Optional[str] = None
    wp_post_id:     Optional[int] = None
    wp_author:      Optional[str] = None
    target_keyword: Optional[str] = None
    seo:            Optional[Seo] = None
    hero:           Optional[Hero] = None
    relationships:  Relationships = Field(default_factory=Relationships)
    extra:          dict[str, Any] = {}     # unmapped frontmatter keys, JSON-safe


# --- components ---

class ComponentUsage(BaseModel):
    """One occurrence of an embedded custom tag."""
    id: str
    name: str
    props: dict[str, Any] = {}
    placement: Placement


class ResolvedComponent(BaseModel):
    """A usage joined against the component table (and registry or media sink)."""
    usage: ComponentUsage
    kind: str
    category: Optional[str] = None
    slug: Optional[str] = None
    block_type: str
    fields: dict[str, Any] = {}
    value: Any = None


class ResolutionFailure(BaseModel):
    """A usage that could not be resolved; surfaced in the run report."""
    usage: ComponentUsage
    error: str
    slug: Optional[str] = None
    category: Optional[str] = None
    required: bool = False


class Resolution(BaseModel):
    components: dict[str, ResolvedComponent] = {}
    failures: list[ResolutionFailure] = []

    def failure_for(self, component_id: str) -> Optional[ResolutionFailure]:
        return next((f for f in self.failures if f.usage.id == component_id), None)


# --- content blocks ---

UNRESOLVED_BLOCK_TYPE = "unresolvedComponent"


class RichTextBlock(BaseModel):
    """A contiguous run of rich text; never empty."""
    kind: Literal["richText"] = "richText"
    content: Root


class ComponentBlock(BaseModel):
    """A block-level component, resolved or explicitly unresolved."""
    kind: Literal["component"] = "component"
    block_type: str
    fields: dict[str, Any] = {}
    component: str
    component_id: str
    resolved: bool = True
    error: Optional[str] = None
    slug: Optional[str] = None


ContentBlock = Annotated[Union[RichTextBlock, ComponentBlock], Field(discriminator="kind")]
