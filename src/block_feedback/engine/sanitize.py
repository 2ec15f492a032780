"""Allowlist HTML sanitizing and length capping for AI-authored text.

Model output is untrusted. Titles become plain text with only
angle brackets escaped, so "&" keeps its visible length; feedback bodies,
suggestions and summaries keep a small set of inline formatting tags with all
attributes removed. Length limits count visible characters, never markup, and
an over-long value is cut to ``max_length - 3`` characters plus "...".

Sanitizing an already-sanitized value returns it unchanged.
"""

import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning, NavigableString

warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

ELLIPSIS = "..."
INLINE_TAGS = frozenset({"strong", "b", "em", "i", "code", "br"})
_DROP_WITH_CONTENT = ("script", "style", "iframe", "object", "embed", "template")


def _parse(value: str) -> BeautifulSoup:
    return BeautifulSoup(value, "html.parser")


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(ELLIPSIS))] + ELLIPSIS


def strip_tags(value: str) -> str:
    """Return the visible text of ``value`` with whitespace collapsed."""
    if not value:
        return ""
    soup = _parse(value)
    for tag in soup.find_all(_DROP_WITH_CONTENT):
        if not tag.decomposed:
            tag.decompose()
    return " ".join(soup.get_text().split())


def sanitize_text(value: str, max_length: int) -> str:
    text = _truncate(strip_tags(value), max_length)
    return text.replace("<", "&lt;").replace(">", "&gt;")


def _truncate_soup(soup: BeautifulSoup, max_length: int) -> None:
    strings = list(soup.find_all(string=True))
    if sum(len(s) for s in strings) <= max_length:
        return

    budget = max(0, max_length - len(ELLIPSIS))
    cut = False
    for node in strings:
        if cut:
            node.extract()
            continue
        if len(node) <= budget:
            budget -= len(node)
            continue
        node.replace_with(NavigableString(str(node)[:budget] + ELLIPSIS))
        cut = True


def sanitize_markup(value: str, max_length: int, allowed_tags: frozenset[str] = INLINE_TAGS) -> str:
    if not value:
        return ""
    soup = _parse(value)

    for node in soup.find_all(string=True):
        if type(node) is not NavigableString:
            # Comments, CDATA, doctype and processing instructions
            node.extract()

    for tag in soup.find_all(_DROP_WITH_CONTENT):
        if not tag.decomposed:
            tag.decompose()

    for tag in soup.find_all(True):
        if tag.name in allowed_tags:
            tag.attrs = {}
        else:
            tag.unwrap()

    _truncate_soup(soup, max_length)
    return str(soup).strip()
