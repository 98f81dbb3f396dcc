"""Block splitting: interleave rich-text runs with block-level component blocks"""

from typing import Any, Callable, Literal

from mdxmigrate.core.models import (
    UNRESOLVED_BLOCK_TYPE, ComponentBlock, ContentBlock, Resolution, ResolutionFailure,
    RichTextBlock,
)
from mdxmigrate.core.tree import (
    Component, ComponentPlaceholder, InlineReference, Paragraph, Placement, Root,
    default_marker, has_children, plain_text,
)
from mdxmigrate.errors import ComponentResolutionError


OnUnresolved = Literal["placeholder", "fail"]

NOT_RESOLVED = "not resolved"


def _failure(resolution: Resolution, component_id: str) -> tuple[str, Any]:
    failure = resolution.failure_for(component_id)
    return (failure.error, failure.slug) if failure else (NOT_RESOLVED, None)


def _component_name(resolution: Resolution, component_id: str) -> str:
    if component_id in resolution.components:
        return resolution.components[component_id].usage.name
    failure = resolution.failure_for(component_id)
    return failure.usage.name if failure else component_id


def _reference(placeholder: ComponentPlaceholder, resolution: Resolution) -> InlineReference:
    resolved = resolution.components.get(placeholder.component_id)
    if resolved is not None:
        return InlineReference(
            component_id=placeholder.component_id, component=resolved.usage.name,
            block_type=resolved.block_type, fields=dict(resolved.fields), slug=resolved.slug,
        )
    error, slug = _failure(resolution, placeholder.component_id)
    return InlineReference(
        component_id=placeholder.component_id,
        component=_component_name(resolution, placeholder.component_id),
        block_type=UNRESOLVED_BLOCK_TYPE, slug=slug, resolved=False, error=error,
    )


def _component_block(placeholder: ComponentPlaceholder, resolution: Resolution) -> ComponentBlock:
    resolved = resolution.components.get(placeholder.component_id)
    if resolved is not None:
        return ComponentBlock(
            block_type=resolved.block_type, fields=dict(resolved.fields),
            component=resolved.usage.name, component_id=placeholder.component_id,
            slug=resolved.slug,
        )
    error, slug = _failure(resolution, placeholder.component_id)
    failure = resolution.failure_for(placeholder.component_id)
    return ComponentBlock(
        block_type=UNRESOLVED_BLOCK_TYPE,
        fields=dict(failure.usage.props) if failure else {},
        component=_component_name(resolution, placeholder.component_id),
        component_id=placeholder.component_id, resolved=False, error=error, slug=slug,
    )


def _embed(node, resolution: Resolution):
    """Copy node with every placeholder swapped for an inline reference."""
    if isinstance(node, ComponentPlaceholder):
        return _reference(node, resolution)
    if has_children(node):
        return node.model_copy(update={"children": [_embed(c, resolution) for c in node.children]})
    return node


def _enforce_policy(resolution: Resolution, on_unresolved: OnUnresolved) -> None:
    if on_unresolved not in ("placeholder", "fail"):
        raise ValueError(f"Unknown unresolved-component policy: {on_unresolved!r}")
    blocking: list[ResolutionFailure] = (
        list(resolution.failures) if on_unresolved == "fail"
        else [f for f in resolution.failures if f.required]
    )
    if blocking:
        raise ComponentResolutionError(blocking)


def split_blocks(tree: Root, resolution: Resolution, on_unresolved: OnUnresolved = "placeholder") -> list[ContentBlock]:
    """Walk the top level of tree and emit rich-text and component blocks in order.

    Block-level placeholders flush the pending rich text and become component blocks.
    Inline placeholders, and block placeholders nested in lists or quotes, stay inside
    the rich text as inline references. No rich-text block is ever empty.
    """
    _enforce_policy(resolution, on_unresolved)

    blocks: list[ContentBlock] = []
    buffer: list = []

    def flush() -> None:
        if buffer:
            blocks.append(RichTextBlock(content=Root(children=list(buffer))))
            buffer.clear()

    for node in tree.children:
        if isinstance(node, ComponentPlaceholder) and node.placement == Placement.block:
            flush()
            blocks.append(_component_block(node, resolution))
        elif isinstance(node, ComponentPlaceholder):
            buffer.append(Paragraph(children=[_reference(node, resolution)]))
        else:
            buffer.append(_embed(node, resolution))
    flush()
    return blocks


def blocks_text(blocks: list[ContentBlock], marker: Callable[[Any], str] = default_marker) -> str:
    """Concatenate block text in order; component blocks render through marker as components."""
    parts = []
    for block in blocks:
        if isinstance(block, RichTextBlock):
            parts.append(plain_text(block.content, marker))
        else:
            parts.append(marker(Component(
                name=block.component, props=block.fields, placement=Placement.block,
            )))
    return "\n\n".join(parts)
