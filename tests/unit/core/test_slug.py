"""Unit tests for core/utils/slug.py"""

import pytest

from mdxmigrate.core.utils.slug import camel_case, provider_key, slugify


@pytest.mark.parametrize("text,expected", [
    ("Hello World", "hello-world"),
    ("my_file_name", "my-file-name"),
    ("  leading and trailing  ", "leading-and-trailing"),
    ("multiple---hyphens", "multiple-hyphens"),
    ("Special! Ch@rs#", "special-ch-rs"),
    ("acme-energy/plans", "acme-energy-plans"),
    ("", ""),
])
def test_slugify_basic(text, expected):
    """slugify lowercases and collapses non-alphanumeric runs to single hyphens."""
    assert slugify(text) == expected


def test_slugify_preserves_hyphens():
    """slugify keeps existing hyphens intact."""
    assert slugify("already-slugified") == "already-slugified"


def test_slugify_strips_leading_trailing_hyphens():
    """slugify strips leading/trailing separators from result."""
    assert slugify("!leading!") == "leading"


@pytest.mark.parametrize("name,expected", [
    ("RatesTable", "ratesTable"),
    ("Faq", "faq"),
    ("", ""),
])
def test_camel_case(name, expected):
    assert camel_case(name) == expected


@pytest.mark.parametrize("provider,expected", [
    ("4Change Energy", "4change"),
    ("TXU Energy", "txu"),
    ("Acme Energy", "acme"),
    ("Constellation", "constellation"),
    ("", ""),
])
def test_provider_key(provider, expected):
    """provider_key keeps only the first word, lowercased alphanumerics."""
    assert provider_key(provider) == expected
