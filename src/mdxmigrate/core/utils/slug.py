"""Identifier and slug text transforms"""

import re


_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')


def slugify(text: str) -> str:
    """Lowercase text, collapse non-alphanumeric runs to single hyphens, trim hyphens."""
    return _NON_ALNUM_RE.sub('-', text.lower()).strip('-')


def camel_case(name: str) -> str:
    """Lower the first character of a component name (RatesTable -> ratesTable)."""
    return name[:1].lower() + name[1:]


def provider_key(provider: str) -> str:
    """Short registry key for a provider name: first word, lowercase alphanumerics only.

    "4Change Energy" -> "4change", "TXU Energy" -> "txu".
    """
    words = provider.split()
    if not words:
        return ''
    return re.sub(r'[^a-z0-9]+', '', words[0].lower())
