"""Unit tests for core/split.py"""

import pytest

from mdxmigrate.core.components import ComponentTable
from mdxmigrate.core.convert import markdown_to_tree
from mdxmigrate.core.extract import extract_components
from mdxmigrate.core.models import ComponentBlock, Resolution, RichTextBlock
from mdxmigrate.core.resolve import resolve_components
from mdxmigrate.core.split import blocks_text, split_blocks
from mdxmigrate.core.tree import (
    Component, ComponentPlaceholder, InlineReference, List, Paragraph, Placement, Root, plain_text, walk,
)
from mdxmigrate.errors import ComponentResolutionError


def _marker(node) -> str:
    """Render components and inline references alike, by component name."""
    name = node.name if isinstance(node, Component) else node.component
    return f"{{{name}}}"


def _split(body, table, registry, on_unresolved="placeholder"):
    extraction = extract_components(markdown_to_tree(body, wrappers=table.wrappers))
    resolution = resolve_components(extraction.usages, table, registry)
    return split_blocks(extraction.tree, resolution, on_unresolved)


def test_inline_component_stays_in_rich_text(table, registry):
    blocks = _split("Call <AcmePhone/> today.\n", table, registry)
    assert len(blocks) == 1 and isinstance(blocks[0], RichTextBlock)
    assert blocks_text(blocks) == "Call [inline:acme-phone] today."
    ref = next(n for n in walk(blocks[0].content) if isinstance(n, InlineReference))
    assert ref.block_type == "dynamicDataInstanceSimple"
    assert ref.fields["value"] == "555-1234"


def test_block_component_splits_rich_text(table, registry):
    blocks = _split("Before\n\n<RatesTableBlock state=\"TX\"/>\n\nAfter\n", table, registry)
    assert [b.kind for b in blocks] == ["richText", "component", "richText"]
    assert blocks[1].block_type == "ratesTable"
    assert blocks[1].fields == {"state": "TX"}


def test_adjacent_block_components_produce_no_empty_rich_text(table, registry):
    blocks = _split("<RatesTableBlock state=\"TX\"/>\n\n<ProviderCard/>\n", table, registry)
    assert [type(b) for b in blocks] == [ComponentBlock, ComponentBlock]
    assert [b.block_type for b in blocks] == ["ratesTable", "providerCard"]


def test_no_rich_text_block_is_empty(table, registry):
    body = "<ProviderCard/>\n\nText\n\n<ProviderCard/>\n\n<ProviderCard/>\n"
    for block in _split(body, table, registry):
        if isinstance(block, RichTextBlock):
            assert block.content.children


def test_block_component_nested_in_list_becomes_inline_reference(table, registry):
    blocks = _split("- item\n\n  <ProviderCard/>\n", table, registry)
    assert len(blocks) == 1
    assert isinstance(blocks[0].content.children[0], List)
    refs = [n for n in walk(blocks[0].content) if isinstance(n, InlineReference)]
    assert [r.block_type for r in refs] == ["providerCard"]


def test_concatenated_text_matches_tree(table, registry):
    body = (
        "Intro <AcmePhone/> here.\n\n"
        "<RatesTableBlock state=\"TX\"/>\n\n"
        "- a\n- b\n\n"
        "<ProviderCard/>\n\n"
        "Outro\n"
    )
    tree = markdown_to_tree(body, wrappers=table.wrappers)
    extraction = extract_components(tree)
    resolution = resolve_components(extraction.usages, table, registry)
    blocks = split_blocks(extraction.tree, resolution)
    assert blocks_text(blocks, _marker) == plain_text(tree, _marker)


def test_unresolved_placeholder_policy(table, registry):
    blocks = _split("Hi <CharliePhone/>\n\n<Mystery a=\"1\"/>\n", table, registry)
    ref = next(n for n in walk(blocks[0].content) if isinstance(n, InlineReference))
    assert not ref.resolved
    assert ref.block_type == "unresolvedComponent"
    assert ref.error == "unmapped component"
    assert blocks[1].resolved is False
    assert blocks[1].component == "Mystery"
    assert blocks[1].fields == {"a": "1"}


def test_fail_policy_raises(table, registry):
    with pytest.raises(ComponentResolutionError) as exc:
        _split("Call <BravoPhone/>\n", table, registry, on_unresolved="fail")
    assert [f.usage.name for f in exc.value.failures] == ["BravoPhone"]


def test_required_component_raises_under_placeholder_policy(registry):
    table = ComponentTable.model_validate({"components": {
        "NeededPhone": {"kind": "data", "slug": "needed-phone", "required": True},
    }})
    with pytest.raises(ComponentResolutionError):
        _split("Call <NeededPhone/>\n", table, registry)


def test_unknown_policy(table, registry):
    with pytest.raises(ValueError):
        _split("Text\n", table, registry, on_unresolved="ignore")


def test_empty_body_gives_no_blocks(table, registry):
    assert _split("", table, registry) == []


def test_inline_reference_wrapped_in_paragraph_at_top_level():
    tree = Root(children=[ComponentPlaceholder(component_id="c0", placement=Placement.inline)])
    blocks = split_blocks(tree, Resolution())
    assert isinstance(blocks[0].content.children[0], Paragraph)
