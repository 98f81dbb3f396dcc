"""Per-file pipeline: parse -> map -> convert -> resolve -> split, tracked as a stage machine"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from mdxmigrate.core.components import ComponentTable
from mdxmigrate.core.convert import markdown_to_tree
from mdxmigrate.core.extract import extract_components
from mdxmigrate.core.fields import derive_identifier, map_fields, require_fields
from mdxmigrate.core.lexical import build_payload
from mdxmigrate.core.models import ContentBlock, MappedRecord, ResolutionFailure
from mdxmigrate.core.parse import read_source, split_frontmatter
from mdxmigrate.core.resolve import MediaUploader, Registry, resolve_components
from mdxmigrate.core.split import split_blocks
from mdxmigrate.errors import (
    ConfigurationError, MigrationError, MissingRequiredFieldError, PaginationExhaustionError,
    StoreConnectionError,
)


# Batch-level failures; never demoted to a per-file failure.
FATAL_ERRORS = (StoreConnectionError, ConfigurationError, PaginationExhaustionError)


class FileStage(str, Enum):
    pending = "pending"
    parsed = "parsed"
    mapped = "mapped"
    converted = "converted"
    resolved = "resolved"
    split = "split"
    upserted = "upserted"


STAGE_ORDER = list(FileStage)


@dataclass
class FileResult:
    """Mutable progress record for one source file."""
    path: str                                   # relative to the source root
    identifier: Optional[str] = None
    stage: FileStage = FileStage.pending        # last completed stage
    failed_at: Optional[FileStage] = None       # stage being attempted when the file failed
    error: Optional[str] = None
    status: Optional[str] = None                # upsert outcome: created / updated / unchanged
    record: Optional[MappedRecord] = None
    blocks: list[ContentBlock] = field(default_factory=list)
    payload: Optional[dict] = None
    missing_fields: list[str] = field(default_factory=list)
    unresolved: list[ResolutionFailure] = field(default_factory=list)
    diff: Optional[dict[str, int]] = None

    @property
    def failed(self) -> bool:
        return self.failed_at is not None

    @property
    def label(self) -> str:
        return f"failed@{self.failed_at.value}" if self.failed else self.stage.value

    def advance(self, stage: FileStage) -> None:
        self.stage = stage

    def next_stage(self) -> FileStage:
        i = STAGE_ORDER.index(self.stage)
        return STAGE_ORDER[min(i + 1, len(STAGE_ORDER) - 1)]

    def fail(self, reason: str, at: Optional[FileStage] = None) -> "FileResult":
        self.failed_at = at or self.next_stage()
        self.error = reason
        return self


@dataclass(frozen=True)
class PipelineOptions:
    parser_config: str = "gfm-like"
    extension: str = ".mdx"
    on_unresolved: str = "placeholder"


def transform_file(
    path: Path,
    root: Path,
    table: ComponentTable,
    registry: Registry,
    uploader: MediaUploader,
    options: PipelineOptions = PipelineOptions(),
    result: Optional[FileResult] = None,
    ) -> FileResult:
    """Run every stage up to (not including) the upsert. Per-file errors end up on the result."""
    root = Path(root)
    base = root.parent if root.is_file() else root
    result = result or FileResult(path=Path(path).resolve().relative_to(base.resolve()).as_posix())
    try:
        source = read_source(Path(path), root)
        parsed = split_frontmatter(source.text)
        result.advance(FileStage.parsed)

        record = map_fields(parsed.metadata, derive_identifier(source.relative_path, options.extension))
        result.identifier, result.record = record.slug, record
        try:
            require_fields(record)
        except MissingRequiredFieldError as e:
            result.missing_fields = e.fields
            raise
        result.advance(FileStage.mapped)

        tree = markdown_to_tree(parsed.body, options.parser_config, table.wrappers)
        result.advance(FileStage.converted)

        extraction = extract_components(tree)
        resolution = resolve_components(
            extraction.usages, table, registry, uploader, base_dir=source.path.parent,
        )
        result.unresolved = list(resolution.failures)
        result.advance(FileStage.resolved)

        result.blocks = split_blocks(extraction.tree, resolution, options.on_unresolved)
        result.payload = build_payload(record, result.blocks, source.relative_path)
        result.advance(FileStage.split)
    except FATAL_ERRORS:
        raise
    except MigrationError as e:
        result.fail(str(e))
    except (OSError, UnicodeDecodeError) as e:
        result.fail(f"{type(e).__name__}: {e}")
    return result
