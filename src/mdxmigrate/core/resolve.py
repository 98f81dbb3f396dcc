"""Component resolution against the component table, the data registry and the media sink"""

import logging
import mimetypes
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from mdxmigrate.core.components import ComponentMapping, ComponentTable
from mdxmigrate.core.models import ComponentUsage, ResolutionFailure, Resolution, ResolvedComponent
from mdxmigrate.core.tree import Placement
from mdxmigrate.core.utils.hashing import sha256_bytes
from mdxmigrate.crud.registry import RegistryEntry
from mdxmigrate.errors import StoreWriteError


logger = logging.getLogger(__name__)

UNMAPPED = "unmapped component"
SLUG_NOT_FOUND = "slug not found"

INLINE_DATA_BLOCK = "dynamicDataInstanceSimple"
DATA_BLOCK = "dynamicDataInstance"


@runtime_checkable
class Registry(Protocol):
    """Exact-slug lookup of reusable data entries."""

    def find_by_slug(self, slug: str) -> Optional[RegistryEntry]:
        ...


class MediaUploader:
    """Uploads referenced files to the store; dry runs hash without writing."""

    def __init__(self, store=None, dry_run: bool = False):
        self.store = store
        self.dry_run = dry_run

    def upload(self, path: Path) -> str:
        data = Path(path).read_bytes()
        if self.dry_run or self.store is None:
            return f"dry-run:{sha256_bytes(data)}"
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return self.store.upload(path.name, data, mime_type)


def _resolve_data(usage: ComponentUsage, mapping: ComponentMapping, registry: Registry):
    slug = mapping.registry_slug()
    entry = registry.find_by_slug(slug)
    if entry is None:
        logger.warning("Registry slug %r not found for <%s>", slug, usage.name)
        return ResolutionFailure(
            usage=usage, error=SLUG_NOT_FOUND, slug=slug,
            category=mapping.category, required=mapping.required,
        )
    block_type = INLINE_DATA_BLOCK if usage.placement == Placement.inline else DATA_BLOCK
    return ResolvedComponent(
        usage=usage, kind="data", category=mapping.category, slug=slug,
        block_type=block_type, fields={"instance": entry.id, "value": entry.value},
        value=entry.value,
    )


def _resolve_media(usage, mapping, block_type: str, uploader: MediaUploader, base_dir: Optional[Path]):
    src = usage.props.get(mapping.src_prop)
    if not isinstance(src, str) or not src:
        return ResolutionFailure(
            usage=usage, error=f"upload failed: missing {mapping.src_prop!r}",
            category=mapping.category, required=mapping.required,
        )
    path = Path(src.lstrip("/"))
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    try:
        reference = uploader.upload(path)
    except (OSError, StoreWriteError) as e:
        logger.warning("Upload of %s for <%s> failed: %s", path, usage.name, e)
        return ResolutionFailure(
            usage=usage, error=f"upload failed: {e}",
            category=mapping.category, required=mapping.required,
        )
    fields = {k: v for k, v in usage.props.items() if k != mapping.src_prop}
    fields["media"] = reference
    return ResolvedComponent(
        usage=usage, kind="media", category=mapping.category,
        block_type=block_type, fields=fields, value=reference,
    )


def resolve_components(
    usages: list[ComponentUsage],
    table: ComponentTable,
    registry: Registry,
    uploader: Optional[MediaUploader] = None,
    base_dir: Optional[Path] = None,
    ) -> Resolution:
    """Resolve every usage; per-component failures are collected, never raised."""
    uploader = uploader or MediaUploader(dry_run=True)
    resolution = Resolution()
    for usage in usages:
        mapping = table.lookup(usage.name)
        if mapping is None:
            result = ResolutionFailure(usage=usage, error=UNMAPPED, category="unmapped")
        elif mapping.kind == "data":
            result = _resolve_data(usage, mapping, registry)
        elif mapping.kind == "media":
            result = _resolve_media(usage, mapping, table.block_type_for(usage.name, mapping), uploader, base_dir)
        else:
            result = ResolvedComponent(
                usage=usage, kind="block", category=mapping.category,
                block_type=table.block_type_for(usage.name, mapping), fields=dict(usage.props),
            )

        if isinstance(result, ResolutionFailure):
            resolution.failures.append(result)
        else:
            resolution.components[usage.id] = result
    return resolution
