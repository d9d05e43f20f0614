"""Utilities for enriching articles with page metadata and full bodies."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from readability import Document
from readability.readability import Unparseable

from .config import Config
from .fetchers import fetch_page
from .markup import parse_html
from .models import ArticleMeta, ArticleRef
from .sanitizer import sanitize_html

LOGGER = logging.getLogger(__name__)

TITLE_KEYS = ("title", "twitter:title")
DESCRIPTION_KEYS = ("description", "twitter:description")
OG_PUBLISHED_KEYS = ("article:published_time", "og:published_time", "og:article:published_time")
PUBLISHED_KEYS = (
    "pubdate",
    "publishdate",
    "publish_date",
    "datePublished",
    "date",
    "parsely-pub-date",
    "sailthru.date",
)
META_ATTRIBUTES = ("property", "name", "itemprop")


def candidate_urls(url: str, config: Config) -> List[str]:
    """Return the article URL followed by its mobile-site variant."""

    candidates = [url]
    base = config.base_url.rstrip("/")
    mobile = config.mobile_base_url.rstrip("/")
    if mobile and url.startswith(base + "/"):
        mobile_url = mobile + url[len(base):]
        if mobile_url not in candidates:
            candidates.append(mobile_url)
    return candidates


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _meta_content(soup: BeautifulSoup, keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        for attribute in META_ATTRIBUTES:
            tag = soup.find("meta", attrs={attribute: key})
            if tag is None:
                continue
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


def extract_meta(html: str) -> ArticleMeta:
    """Read title, description and publish time from an article page.

    Open Graph tags win over generic ``<meta>`` tags, which win over the
    ``<title>`` element; ``<time datetime>`` is the last source for dates.
    """

    soup = parse_html(html)

    title = _meta_content(soup, ("og:title",)) or _meta_content(soup, TITLE_KEYS)
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip() or None

    description = _meta_content(soup, ("og:description",)) or _meta_content(soup, DESCRIPTION_KEYS)

    published_at = parse_datetime(_meta_content(soup, OG_PUBLISHED_KEYS))
    if published_at is None:
        published_at = parse_datetime(_meta_content(soup, PUBLISHED_KEYS))
    if published_at is None:
        for time_tag in soup.find_all("time", attrs={"datetime": True}):
            published_at = parse_datetime(time_tag["datetime"])
            if published_at is not None:
                break

    return ArticleMeta(title=title, description=description, published_at=published_at)


def extract_main_content(html: str, url: str) -> Optional[str]:
    """Isolate and sanitize the main article block, or ``None`` when there is none."""

    try:
        summary = Document(html, url=url).summary(html_partial=True)
    except Unparseable as exc:
        LOGGER.debug("Readability could not parse %s: %s", url, exc)
        return None

    cleaned = sanitize_html(summary, url)
    if not parse_html(cleaned).get_text(strip=True):
        return None
    return cleaned


def enrich_article(ref: ArticleRef, config: Config, session: requests.Session) -> ArticleMeta:
    """Collect metadata and, when enabled, the full body for one article.

    Candidates are tried in order until one yields a main content block. Page
    failures only move on to the next candidate; fields that no candidate
    supplied fall back to the listing hint.
    """

    meta = ArticleMeta()
    candidates = candidate_urls(ref.url, config) if config.full_content else [ref.url]

    for url in candidates:
        page = fetch_page(session, url, config.timeout)
        if not page.ok:
            LOGGER.debug("Skipping candidate %s: %s", url, page.error or "empty response")
            continue

        meta = meta.merged_with(extract_meta(page.html))
        if not config.full_content:
            break

        body = extract_main_content(page.html, url)
        if body:
            meta.body_html = body
            break
        LOGGER.debug("No main content found at %s", url)

    if meta.body_html is None and config.full_content:
        LOGGER.warning("Could not extract full content for %s", ref.url)
    return meta.merged_with(ref.hint)


def enrich_articles(refs: List[ArticleRef], config: Config, session: requests.Session) -> List[ArticleMeta]:
    """Enrich articles sequentially, pausing between article fetches."""

    enriched: List[ArticleMeta] = []
    total = len(refs)
    for index, ref in enumerate(refs, start=1):
        if index > 1 and config.request_delay > 0:
            time.sleep(config.request_delay)
        LOGGER.info("[%d/%d] Fetching %s", index, total, ref.url)
        enriched.append(enrich_article(ref, config, session))
    return enriched


__all__ = [
    "candidate_urls",
    "enrich_article",
    "enrich_articles",
    "extract_main_content",
    "extract_meta",
    "parse_datetime",
]
