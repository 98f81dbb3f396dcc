"""Unit tests for core/fields.py"""

import datetime

import pytest

from mdxmigrate.core.fields import (
    derive_identifier, map_fields, require_fields, to_iso, truncate, validate_record,
)
from mdxmigrate.core.models import Status
from mdxmigrate.errors import MissingRequiredFieldError


# --- derive_identifier ---

@pytest.mark.parametrize("path,expected", [
    ("acme-energy/index.mdx", "acme-energy"),
    ("acme-energy.mdx", "acme-energy"),
    ("rates/TX/Houston_Plans.mdx", "rates-tx-houston-plans"),
    ("es/providers/Acme Energy/index.mdx", "es-providers-acme-energy"),
    ("index.mdx", "index"),
])
def test_derive_identifier(path, expected):
    assert derive_identifier(path) == expected


def test_derive_identifier_uses_directories():
    """Same filename in different directories gives different identifiers."""
    assert derive_identifier("a/index.mdx") != derive_identifier("b/index.mdx")


# --- map_fields ---

def test_map_fields_basic():
    record = map_fields({"title": "Acme Energy", "status": False}, "acme-energy")
    assert record.title == "Acme Energy"
    assert record.slug == "acme-energy"
    assert record.status == Status.draft


@pytest.mark.parametrize("metadata,expected", [
    ({}, Status.published),
    ({"status": True}, Status.published),
    ({"status": "draft"}, Status.draft),
    ({"status": "false"}, Status.draft),
    ({"draft": True}, Status.draft),
    ({"draft": "false"}, Status.published),
])
def test_map_fields_status(metadata, expected):
    assert map_fields(metadata, "x").status == expected


def test_map_fields_dates_and_wordpress():
    record = map_fields({
        "title": "T",
        "pubDate": datetime.date(2024, 1, 2),
        "updatedDate": "2024-03-04T10:00:00Z",
        "wp_slug": '"old-slug"',
        "wp_post_id": "123",
        "wp_author": "jane",
    }, "t")
    assert record.published_at == "2024-01-02T00:00:00Z"
    assert record.updated_date == "2024-03-04T10:00:00Z"
    assert record.wordpress_slug == "old-slug"
    assert record.wp_post_id == 123
    assert record.wp_author == "jane"


def test_map_fields_seo_hero_relationships():
    record = map_fields({
        "title": "T",
        "seo_title": "SEO",
        "seo_meta_desc": "x" * 200,
        "cp_hero_heading_line_1": "Line 1",
        "hero_cta_text": "Go",
        "post_author_team_member_is": ["Jane Doe"],
        "target_keyword": "cheap power",
    }, "t")
    assert record.seo.title == "SEO"
    assert len(record.seo.meta_description) == 160
    assert record.seo.meta_description.endswith("...")
    assert record.hero.heading_line_1 == "Line 1"
    assert record.hero.cta_text == "Go"
    assert record.relationships.authors == ["jane-doe"]
    assert record.target_keyword == "cheap power"


def test_map_fields_no_seo_or_hero():
    record = map_fields({"title": "T"}, "t")
    assert record.seo is None
    assert record.hero is None
    assert record.published_at is None


def test_map_fields_extra_keys_kept_json_safe():
    """Unmapped keys land in extra; dates become strings."""
    record = map_fields({"title": "T", "rating": 4.5, "launched": datetime.date(2020, 5, 1)}, "t")
    assert record.extra == {"rating": 4.5, "launched": "2020-05-01"}


def test_to_iso_unparseable_is_none():
    assert to_iso("not a date") is None


def test_truncate_short_text_unchanged():
    assert truncate("short") == "short"


# --- validation ---

def test_validate_record_missing_title():
    record = map_fields({}, "t")
    assert validate_record(record) == ["title"]


def test_validate_record_untitled_counts_as_missing():
    record = map_fields({"title": "Untitled"}, "t")
    assert "title" in validate_record(record)


def test_require_fields_raises_with_field_list():
    with pytest.raises(MissingRequiredFieldError) as exc:
        require_fields(map_fields({}, "t"))
    assert exc.value.fields == ["title"]


def test_require_fields_passes():
    record = map_fields({"title": "Ok"}, "ok")
    assert require_fields(record) is record
