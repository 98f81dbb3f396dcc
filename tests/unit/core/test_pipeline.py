"""Unit tests for core/pipeline.py"""

import pytest

from mdxmigrate.core.models import ComponentBlock, RichTextBlock, Status
from mdxmigrate.core.pipeline import FileResult, FileStage, PipelineOptions, transform_file
from mdxmigrate.core.resolve import MediaUploader
from mdxmigrate.core.split import blocks_text
from mdxmigrate.errors import StoreConnectionError


@pytest.fixture(name="uploader")
def uploader_fixture():
    return MediaUploader(dry_run=True)


def _write(root, name, text):
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


# --- stage machine ---

def test_file_result_labels():
    result = FileResult(path="a.mdx")
    assert result.label == "pending"
    result.advance(FileStage.mapped)
    assert result.next_stage() == FileStage.converted
    result.fail("boom")
    assert result.failed
    assert result.label == "failed@converted"


def test_fail_at_explicit_stage():
    result = FileResult(path="a.mdx", stage=FileStage.split).fail("write failed", at=FileStage.upserted)
    assert result.label == "failed@upserted"


# --- end to end ---

def test_transform_sample_document(tmp_path, table, registry, uploader, sample_mdx):
    """Frontmatter, an inline phone component and a block component become record plus blocks."""
    path = _write(tmp_path, "acme-energy.mdx", sample_mdx)
    result = transform_file(path, tmp_path, table, registry, uploader)

    assert not result.failed
    assert result.stage == FileStage.split
    assert result.identifier == "acme-energy"
    assert (result.record.title, result.record.slug, result.record.status) == ("Acme Energy", "acme-energy", Status.draft)

    assert [type(b) for b in result.blocks] == [RichTextBlock, ComponentBlock]
    assert blocks_text(result.blocks[:1]) == "Call [inline:acme-phone] today."
    assert result.blocks[1].block_type == "ratesTable"
    assert result.blocks[1].fields == {"state": "TX"}
    assert result.unresolved == []

    payload = result.payload
    assert payload["slug"] == "acme-energy"
    assert [b["blockType"] for b in payload["contentBlocks"]] == ["richText", "ratesTable"]
    assert payload["sourcePath"] == "acme-energy.mdx"


def test_nested_index_identifier(tmp_path, table, registry, uploader):
    path = _write(tmp_path, "guides/texas/index.mdx", "---\ntitle: Texas\n---\nBody\n")
    result = transform_file(path, tmp_path, table, registry, uploader)
    assert result.path == "guides/texas/index.mdx"
    assert result.identifier == "guides-texas"


def test_malformed_header_fails_at_parsed(tmp_path, table, registry, uploader):
    path = _write(tmp_path, "bad.mdx", "---\ntitle: [unclosed\n---\nBody\n")
    result = transform_file(path, tmp_path, table, registry, uploader)
    assert result.label == "failed@parsed"
    assert result.record is None


def test_missing_title_fails_at_mapped(tmp_path, table, registry, uploader):
    path = _write(tmp_path, "untitled.mdx", "---\ndescription: x\n---\nBody\n")
    result = transform_file(path, tmp_path, table, registry, uploader)
    assert result.label == "failed@mapped"
    assert result.missing_fields == ["title"]
    assert result.error == "Missing required field(s): title"
    assert result.identifier == "untitled"


def test_unresolved_component_is_reported_not_failed(tmp_path, table, registry, uploader):
    path = _write(tmp_path, "a.mdx", "---\ntitle: A\n---\nCall <BravoPhone/>\n")
    result = transform_file(path, tmp_path, table, registry, uploader)
    assert not result.failed
    assert [(f.usage.name, f.error) for f in result.unresolved] == [("BravoPhone", "slug not found")]


def test_fail_policy_fails_at_split(tmp_path, table, registry, uploader):
    path = _write(tmp_path, "a.mdx", "---\ntitle: A\n---\nCall <BravoPhone/>\n")
    result = transform_file(path, tmp_path, table, registry, uploader, PipelineOptions(on_unresolved="fail"))
    assert result.label == "failed@split"
    assert "BravoPhone" in result.error


def test_undecodable_file_fails_at_parsed(tmp_path, table, registry, uploader):
    path = tmp_path / "binary.mdx"
    path.write_bytes(b"\xff\xfe\xfa")
    result = transform_file(path, tmp_path, table, registry, uploader)
    assert result.label == "failed@parsed"


def test_store_connection_error_propagates(tmp_path, table, uploader):
    class DownRegistry:
        def find_by_slug(self, slug):
            raise StoreConnectionError("store unreachable")

    path = _write(tmp_path, "a.mdx", "---\ntitle: A\n---\nCall <AcmePhone/>\n")
    with pytest.raises(StoreConnectionError):
        transform_file(path, tmp_path, table, DownRegistry(), uploader)
