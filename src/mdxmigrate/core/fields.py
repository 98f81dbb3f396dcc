"""Frontmatter to target-record mapping and path-based identifier derivation"""

import logging
import re
from datetime import date, datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Optional

from mdxmigrate.core.models import Hero, MappedRecord, Relationships, Seo, Status
from mdxmigrate.core.utils.slug import slugify
from mdxmigrate.errors import MissingRequiredFieldError


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "slug", "status")
META_DESCRIPTION_MAX = 160
PLACEHOLDER_TITLE = "Untitled"

_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

# Frontmatter keys consumed by map_fields; everything else lands in record.extra.
MAPPED_KEYS = {
    "title", "slug", "status", "draft", "pubDate", "publishDate", "date", "updatedDate",
    "description", "wp_slug", "wp_post_id", "wp_author", "target_keyword",
    "seo_title", "seo_meta_desc",
    "hero_heading_line_1", "hero_heading_line_2", "hero_cta_text",
    "cp_hero_heading_line_1", "cp_hero_heading_line_2", "cp_hero_cta_text",
    "post_author_team_member_is", "post_editor_team_member_is", "post_checker_team_member_is",
}


def derive_identifier(relative_path: str, extension: str = ".mdx") -> str:
    """Derive a record identifier from the full relative source path.

    'acme-energy/index.mdx' -> 'acme-energy', 'rates/TX/Houston_Plans.mdx' -> 'rates-tx-houston-plans'.
    A root-level index file maps to 'index'.
    """
    path = PurePosixPath(relative_path)
    if path.suffix == extension:
        path = path.with_suffix("")
    parts = list(path.parts)
    if len(parts) > 1 and parts[-1].lower() == "index":
        parts.pop()
    return slugify("/".join(parts)) or "index"


def _clean(value: Any) -> Optional[str]:
    """Stringify a scalar and strip stray surrounding quotes; empty becomes None."""
    if value is None or value == "":
        return None
    text = str(value).strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        text = text[1:-1].strip()
    return text or None


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = _clean(value)
    if text and text.lstrip("-").isdigit():
        return int(text)
    return None


def to_iso(value: Any) -> Optional[str]:
    """Normalize a date-ish value to an ISO-8601 UTC string; None if absent or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    else:
        text = _clean(value) or ""
        try:
            if _DATE_RE.match(text):
                dt = datetime.fromisoformat(text).replace(tzinfo=timezone.utc)
            else:
                dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
                dt = dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
        except ValueError:
            logger.warning("Unparseable date %r; leaving unset", value)
            return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def truncate(text: Optional[str], limit: int = META_DESCRIPTION_MAX) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def _status(metadata: dict[str, Any]) -> Status:
    """status: false/'draft' -> draft; draft: true -> draft; otherwise published."""
    if "status" in metadata:
        raw = metadata["status"]
        if isinstance(raw, str) and raw.strip().lower() in ("draft", "published"):
            return Status(raw.strip().lower())
        return Status.published if _bool(raw) else Status.draft
    if "draft" in metadata:
        return Status.draft if _bool(metadata["draft"]) else Status.published
    return Status.published


def _slug_list(value: Any) -> list[str]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    return [slugify(str(i)) for i in items if i not in (None, "")]


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


def map_fields(metadata: dict[str, Any], identifier: str) -> MappedRecord:
    """Map raw frontmatter onto the normalized record shape."""
    seo = None
    if metadata.get("seo_title") or metadata.get("seo_meta_desc"):
        seo = Seo(
            title=_clean(metadata.get("seo_title")),
            meta_description=truncate(_clean(metadata.get("seo_meta_desc"))),
        )

    hero_values = {
        name: _clean(metadata.get(f"hero_{name}") or metadata.get(f"cp_hero_{name}"))
        for name in ("heading_line_1", "heading_line_2", "cta_text")
    }
    hero = Hero(**hero_values) if any(hero_values.values()) else None

    published = next(
        (metadata[k] for k in ("pubDate", "publishDate", "date") if metadata.get(k)), None
    )
    return MappedRecord(
        title=_clean(metadata.get("title")),
        slug=identifier,
        status=_status(metadata),
        published_at=to_iso(published),
        updated_date=to_iso(metadata.get("updatedDate")),
        description=_clean(metadata.get("description")),
        wordpress_slug=_clean(metadata.get("wp_slug")),
        wp_post_id=_int(metadata.get("wp_post_id")),
        wp_author=_clean(metadata.get("wp_author")),
        target_keyword=_clean(metadata.get("target_keyword")),
        seo=seo,
        hero=hero,
        relationships=Relationships(
            authors=_slug_list(metadata.get("post_author_team_member_is")),
            editors=_slug_list(metadata.get("post_editor_team_member_is")),
            checkers=_slug_list(metadata.get("post_checker_team_member_is")),
        ),
        extra={k: _json_safe(v) for k, v in metadata.items() if k not in MAPPED_KEYS},
    )


def validate_record(record: MappedRecord) -> list[str]:
    """Return the names of required fields the record is missing."""
    missing = []
    if not record.title or record.title == PLACEHOLDER_TITLE:
        missing.append("title")
    if not record.slug:
        missing.append("slug")
    if record.status is None:
        missing.append("status")
    return missing


def require_fields(record: MappedRecord) -> MappedRecord:
    """Raise MissingRequiredFieldError when validation finds gaps."""
    missing = validate_record(record)
    if missing:
        raise MissingRequiredFieldError(missing)
    return record
