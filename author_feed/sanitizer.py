"""Allow-list HTML sanitization for article bodies embedded in the feed."""

from __future__ import annotations

import re
from typing import Dict, FrozenSet
from urllib.parse import urljoin

from bs4 import CData, Comment, Declaration, Doctype, ProcessingInstruction

from .markup import parse_html

ALLOWED_TAGS: FrozenSet[str] = frozenset(
    {
        "p", "br", "strong", "em", "b", "i", "u", "blockquote",
        "ul", "ol", "li", "h2", "h3", "h4", "pre", "code", "img", "a", "hr",
    }
)
ALLOWED_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "a": frozenset({"href", "title"}),
    "img": frozenset({"src", "alt", "title", "width", "height", "loading"}),
}
URL_ATTRIBUTES = {"a": "href", "img": "src"}
ALLOWED_SCHEMES: FrozenSet[str] = frozenset({"http", "https", "ftp", "mailto", "tel"})
SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")
# Whitespace and control characters browsers drop before reading the scheme.
URL_NOISE_RE = re.compile(r"[\x00-\x20\x7f]+")

# Dropped together with everything inside them.
DISCARD_CONTENT_TAGS: FrozenSet[str] = frozenset(
    {"script", "style", "noscript", "iframe", "object", "embed", "template", "textarea", "select", "option"}
)
NON_CONTENT_STRINGS = (CData, Comment, Declaration, Doctype, ProcessingInstruction)


def absolutize(value: str, base_url: str) -> str:
    """Resolve ``value`` against ``base_url``; unresolvable values are returned unchanged."""

    try:
        return urljoin(base_url, value.strip())
    except ValueError:
        return value


def _scheme_allowed(url: str) -> bool:
    match = SCHEME_RE.match(URL_NOISE_RE.sub("", url))
    return match is None or match.group(1).lower() in ALLOWED_SCHEMES


def sanitize_html(html: str, base_url: str) -> str:
    """Return ``html`` restricted to the allow-list, with absolute link and image URLs."""

    soup = parse_html(html)

    for node in soup.find_all(string=lambda text: isinstance(text, NON_CONTENT_STRINGS)):
        node.extract()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        name = tag.name.lower()
        if name in DISCARD_CONTENT_TAGS:
            tag.decompose()
            continue
        if name not in ALLOWED_TAGS:
            tag.unwrap()
            continue

        allowed = ALLOWED_ATTRIBUTES.get(name, frozenset())
        tag.attrs = {key: value for key, value in tag.attrs.items() if key.lower() in allowed}

        url_attribute = URL_ATTRIBUTES.get(name)
        if url_attribute and url_attribute in tag.attrs:
            resolved = absolutize(str(tag.attrs[url_attribute]), base_url)
            if _scheme_allowed(resolved):
                tag.attrs[url_attribute] = resolved
            else:
                del tag.attrs[url_attribute]

    return str(soup).strip()


__all__ = ["ALLOWED_ATTRIBUTES", "ALLOWED_TAGS", "absolutize", "sanitize_html"]
