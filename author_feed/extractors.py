"""Article ID extraction from an author's listing page.

Listing markup changes often and is partly rendered client-side, so IDs are
collected by a chain of independent strategies. Each strategy is a pure
function ``html -> Iterable[str]``; :func:`extract_article_ids` applies them
in priority order until the configured cap is reached.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterable, Iterator, List, Sequence

from .markup import parse_html

LOGGER = logging.getLogger(__name__)

Strategy = Callable[[str], Iterable[str]]

MIN_ID_DIGITS = 5
NUMERIC_ID_RE = re.compile(r"^\d{%d,}$" % MIN_ID_DIGITS)
ARTICLE_PATH_RE = re.compile(r"(?:^|/)p/(\d{%d,})(?=[/?#]|$)" % MIN_ID_DIGITS)
ID_KEY_RE = re.compile(r"^(?:id|item_?id|article_?id|entity_?id|post_?id)$", re.IGNORECASE)
ID_ATTRIBUTES = ("data-article-id", "data-item-id", "data-itemid", "data-id")
STATE_ASSIGNMENT_RE = re.compile(
    r"(?:window\.)?(?:initialState|__INITIAL_STATE__|__NUXT__|__APOLLO_STATE__)\s*=\s*"
)
RAW_ID_PAIR_RE = re.compile(
    r'"(?:id|itemId|item_id|articleId|article_id|entityId|entity_id|postId|post_id)"'
    r'\s*:\s*"?(\d{%d,})(?=["\s,}\]])' % MIN_ID_DIGITS
)
JSON_SCRIPT_TYPES = ("application/json", "application/ld+json")


def is_id_key(key: str) -> bool:
    return bool(ID_KEY_RE.match(key))


def _as_numeric_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        value = str(value)
    if isinstance(value, str) and NUMERIC_ID_RE.match(value.strip()):
        return value.strip()
    return None


def walk_json_ids(value: Any, key_predicate: Callable[[str], bool] = is_id_key) -> Iterator[str]:
    """Yield long numeric values stored under ID-like keys, in document order.

    Short numbers (counts, indices, flags) are never yielded even when they sit
    under an ``id`` key.
    """

    if isinstance(value, dict):
        for key, child in value.items():
            if isinstance(key, str) and key_predicate(key):
                numeric = _as_numeric_id(child)
                if numeric is not None:
                    yield numeric
                    continue
            yield from walk_json_ids(child, key_predicate)
    elif isinstance(value, list):
        for child in value:
            yield from walk_json_ids(child, key_predicate)


def ids_from_anchors(html: str) -> Iterator[str]:
    """IDs from ``<a href=".../p/<id>">`` links."""

    soup = parse_html(html)
    for anchor in soup.find_all("a", href=True):
        match = ARTICLE_PATH_RE.search(anchor["href"].strip())
        if match:
            yield match.group(1)


def ids_from_data_attributes(html: str) -> Iterator[str]:
    """IDs from elements carrying an explicit article-ID attribute."""

    soup = parse_html(html)
    for element in soup.find_all(True):
        for attribute in ID_ATTRIBUTES:
            numeric = _as_numeric_id(element.get(attribute))
            if numeric is not None:
                yield numeric


def _script_payloads(html: str) -> Iterator[Any]:
    soup = parse_html(html)
    decoder = json.JSONDecoder()
    for script in soup.find_all("script"):
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        script_type = (script.get("type") or "").lower()
        if script_type in JSON_SCRIPT_TYPES or script.get("id") == "__NEXT_DATA__":
            try:
                yield json.loads(text)
            except ValueError:
                LOGGER.debug("Skipping unparseable JSON script block")
            continue
        for match in STATE_ASSIGNMENT_RE.finditer(text):
            try:
                payload, _ = decoder.raw_decode(text, match.end())
            except ValueError:
                LOGGER.debug("Skipping unparseable state assignment at offset %d", match.end())
                continue
            yield payload


def ids_from_data_island(html: str) -> Iterator[str]:
    """IDs from JSON state embedded in ``<script>`` blocks."""

    for payload in _script_payloads(html):
        yield from walk_json_ids(payload)


def ids_from_raw_json_keys(html: str) -> Iterator[str]:
    """Last resort: ``"id": "<digits>"`` pairs anywhere in the raw text."""

    for match in RAW_ID_PAIR_RE.finditer(html):
        yield match.group(1)


DEFAULT_STRATEGIES: Sequence[Strategy] = (
    ids_from_anchors,
    ids_from_data_attributes,
    ids_from_data_island,
    ids_from_raw_json_keys,
)


def extract_article_ids(
    html: str,
    max_items: int,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> List[str]:
    """Return unique article IDs in first-seen order, capped at ``max_items``."""

    found: List[str] = []
    seen = set()
    for strategy in strategies:
        if len(found) >= max_items:
            break
        before = len(found)
        for article_id in strategy(html):
            if article_id in seen:
                continue
            seen.add(article_id)
            found.append(article_id)
            if len(found) >= max_items:
                break
        LOGGER.debug("%s contributed %d ids", strategy.__name__, len(found) - before)
    return found


__all__ = [
    "DEFAULT_STRATEGIES",
    "extract_article_ids",
    "ids_from_anchors",
    "ids_from_data_attributes",
    "ids_from_data_island",
    "ids_from_raw_json_keys",
    "walk_json_ids",
]
