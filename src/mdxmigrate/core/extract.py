"""Component extraction: swap component leaves for placeholders and collect usages"""

from dataclasses import dataclass

from mdxmigrate.core.models import ComponentUsage
from mdxmigrate.core.tree import Component, ComponentPlaceholder, Root, has_children


@dataclass(frozen=True)
class Extraction:
    tree: Root
    usages: list[ComponentUsage]


def extract_components(tree: Root) -> Extraction:
    """Return a copy of tree with every component replaced by a placeholder, plus the usages.

    Usage ids are assigned in document order (c0, c1, ...). Placement comes from the
    parser's node kind and is carried over unchanged. The input tree is not modified.
    """
    usages: list[ComponentUsage] = []

    def _copy(node):
        if isinstance(node, Component):
            usage = ComponentUsage(
                id=f"c{len(usages)}",
                name=node.name,
                props=dict(node.props),
                placement=node.placement,
            )
            usages.append(usage)
            return ComponentPlaceholder(component_id=usage.id, placement=node.placement)
        if has_children(node):
            return node.model_copy(update={"children": [_copy(c) for c in node.children]})
        return node.model_copy(deep=True)

    return Extraction(tree=_copy(tree), usages=usages)
