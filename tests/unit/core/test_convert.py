"""Unit tests for core/convert.py"""

from mdxmigrate.core.convert import build_props, markdown_to_tree
from mdxmigrate.core.tree import (
    Code, Component, Heading, LineBreak, Link, List, ListItem, Mark, Paragraph, Placement,
    Quote, Text, plain_text,
)


def test_heading_and_marks_as_attributes():
    """Formatting is carried on text nodes, not as wrapper nodes."""
    tree = markdown_to_tree("# Title\n\nSome **bold** and *it* and ~~gone~~ and `c`.\n")
    heading, para = tree.children
    assert isinstance(heading, Heading) and heading.level == 1
    assert isinstance(para, Paragraph)
    assert [(t.value, t.marks) for t in para.children] == [
        ("Some ", []),
        ("bold", [Mark.bold]),
        (" and ", []),
        ("it", [Mark.italic]),
        (" and ", []),
        ("gone", [Mark.strikethrough]),
        (" and ", []),
        ("c", [Mark.code]),
        (".", []),
    ]


def test_nested_marks():
    tree = markdown_to_tree("***both***\n")
    text = tree.children[0].children[0]
    assert set(text.marks) == {Mark.bold, Mark.italic}


def test_adjacent_text_merged():
    """Soft line breaks become spaces and merge with neighbouring plain text."""
    tree = markdown_to_tree("one\ntwo\n")
    assert tree.children[0].children == [Text(value="one two")]


def test_hard_break():
    tree = markdown_to_tree("a  \nb\n")
    assert [type(c) for c in tree.children[0].children] == [Text, LineBreak, Text]


def test_lists():
    tree = markdown_to_tree("- one\n- two\n\n3. three\n")
    bullets, numbered = tree.children
    assert isinstance(bullets, List) and not bullets.ordered
    assert len(bullets.children) == 2
    assert isinstance(bullets.children[0], ListItem)
    assert numbered.ordered and numbered.start == 3


def test_link_and_quote():
    tree = markdown_to_tree("> see [site](https://example.com)\n")
    quote = tree.children[0]
    assert isinstance(quote, Quote)
    link = quote.children[0].children[1]
    assert isinstance(link, Link)
    assert link.url == "https://example.com"
    assert link.children == [Text(value="site")]


def test_code_fence():
    tree = markdown_to_tree("```py\nprint(1)\n```\n")
    assert tree.children == [Code(language="py", value="print(1)\n")]


def test_block_component_is_opaque_leaf():
    tree = markdown_to_tree('<RatesTable state="TX" compact limit={5}/>\n')
    assert tree.children == [Component(
        name="RatesTable", props={"state": "TX", "compact": True, "limit": 5}, placement=Placement.block,
    )]


def test_inline_component():
    tree = markdown_to_tree("Call <AcmePhone/> today.\n")
    para = tree.children[0]
    assert para.children[1] == Component(name="AcmePhone", placement=Placement.inline)


def test_component_link_wrapper_removed():
    """[<X/>](tel:<X/>) keeps only the component."""
    tree = markdown_to_tree("Call [<AcmePhone/>](tel:<AcmePhone/>) now.\n")
    para = tree.children[0]
    assert not any(isinstance(c, Link) for c in para.children)
    assert any(isinstance(c, Component) for c in para.children)


def test_wrapper_component_flattened():
    tree = markdown_to_tree("<Section>\n\nHello\n\n</Section>\n")
    assert tree.children == [Paragraph(children=[Text(value="Hello")])]


def test_multiline_component_keeps_children_source():
    tree = markdown_to_tree("<Faq>\nQuestion one\n</Faq>\n\nAfter\n")
    component, para = tree.children
    assert component.name == "Faq"
    assert component.props["children"] == "Question one"
    assert plain_text(para) == "After"


def test_table_becomes_source_paragraph():
    src = "| a | b |\n|---|---|\n| 1 | 2 |\n"
    tree = markdown_to_tree(src)
    assert plain_text(tree) == src.strip()


def test_html_block_becomes_source_paragraph():
    tree = markdown_to_tree("<div>hi</div>\n")
    assert plain_text(tree) == "<div>hi</div>"


def test_build_props_case_insensitive_duplicates():
    """Differently-cased duplicate props collapse to the last one."""
    props = build_props([("Label", "a"), ("label", "b"), ("other", "")])
    assert props == {"label": "b", "other": ""}
