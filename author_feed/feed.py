"""High-level orchestration for building and writing the author's RSS feed."""

from __future__ import annotations

import html
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Iterable, List, Optional

import requests
from lxml import etree

from .config import Config, load_config
from .content import enrich_articles
from .fetchers import build_session, get_listing_fetcher
from .models import ArticleMeta, ArticleRef, FeedDocument, FeedItem, NoArticlesError

LOGGER = logging.getLogger(__name__)

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
ATOM_NS = "http://www.w3.org/2005/Atom"
NSMAP = {"content": CONTENT_NS, "atom": ATOM_NS}

# Characters that XML 1.0 does not allow anywhere in a document.
INVALID_XML_CHARS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


@dataclass
class FeedResult:
    document: FeedDocument
    path: Path
    data: bytes


def rfc1123(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def make_feed_item(ref: ArticleRef, meta: ArticleMeta) -> FeedItem:
    """Turn an enriched article into a feed item, applying the field fallbacks."""

    description = meta.description or ""
    content = meta.body_html or f"<p>{html.escape(description, quote=False)}</p>"
    return FeedItem(
        title=meta.title or ref.url,
        link=ref.url,
        guid=ref.url,
        pub_date=meta.published_at,
        description=description,
        content_encoded=content,
    )


def build_feed(config: Config, items: Iterable[FeedItem], build_date: datetime) -> FeedDocument:
    return FeedDocument(
        title=config.feed_title,
        link=config.site_url,
        description=config.channel_description,
        self_url=config.self_url,
        build_date=build_date,
        language=config.language,
        ttl=config.ttl,
        items=tuple(items),
    )


def _clean(text: str) -> str:
    return INVALID_XML_CHARS_RE.sub("", text or "")


def _text_element(parent: etree._Element, tag: str, text: str) -> etree._Element:
    element = etree.SubElement(parent, tag)
    element.text = _clean(text)
    return element


def _markup_element(parent: etree._Element, tag: str, markup: str) -> etree._Element:
    """Add ``markup`` as character data so readers see the HTML, not XML children."""

    element = etree.SubElement(parent, tag)
    markup = _clean(markup)
    if "]]>" in markup:
        # Cannot live inside a CDATA section; lxml escapes it as plain text instead.
        element.text = markup
    else:
        element.text = etree.CDATA(markup)
    return element


def render_feed(document: FeedDocument) -> bytes:
    """Serialize ``document`` as an RSS 2.0 XML document."""

    rss = etree.Element("rss", nsmap=NSMAP, version="2.0")
    channel = etree.SubElement(rss, "channel")
    _text_element(channel, "title", document.title)
    _text_element(channel, "link", document.link)
    _text_element(channel, "description", document.description)
    _text_element(channel, "language", document.language)
    _text_element(channel, "ttl", str(document.ttl))
    _text_element(channel, "lastBuildDate", rfc1123(document.build_date))
    etree.SubElement(
        channel,
        f"{{{ATOM_NS}}}link",
        href=document.self_url,
        rel="self",
        type="application/rss+xml",
    )

    for item in document.items:
        node = etree.SubElement(channel, "item")
        _text_element(node, "title", item.title)
        _text_element(node, "link", item.link)
        guid = _text_element(node, "guid", item.guid)
        guid.set("isPermaLink", "true" if item.guid == item.link else "false")
        if item.pub_date is not None:
            _text_element(node, "pubDate", rfc1123(item.pub_date))
        _markup_element(node, "description", item.description)
        if item.content_encoded is not None:
            _markup_element(node, f"{{{CONTENT_NS}}}encoded", item.content_encoded)

    return etree.tostring(rss, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def write_feed(data: bytes, path: Path) -> None:
    """Write ``data`` to ``path``, replacing any previous file in one step."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    LOGGER.info("Feed written to %s", path)


def collect_refs(config: Config, session: requests.Session) -> List[ArticleRef]:
    fetcher = get_listing_fetcher(config.source)
    refs = fetcher.fetch(config, session)
    if not refs:
        raise NoArticlesError(f"No articles found for user {config.user_id} via {fetcher.name} listing")
    return refs


def run(
    config: Config | None = None,
    session: Optional[requests.Session] = None,
    build_date: Optional[datetime] = None,
) -> FeedResult:
    config = config or load_config()
    session = session or build_session(config)

    refs = collect_refs(config, session)
    metas = enrich_articles(refs, config, session)
    items = [make_feed_item(ref, meta) for ref, meta in zip(refs, metas)]

    document = build_feed(config, items, build_date or datetime.now(timezone.utc))
    data = render_feed(document)
    write_feed(data, config.output_path)
    LOGGER.info("Feed built with %d items", len(document.items))
    return FeedResult(document=document, path=Path(config.output_path), data=data)


__all__ = [
    "FeedResult",
    "build_feed",
    "collect_refs",
    "make_feed_item",
    "render_feed",
    "run",
    "write_feed",
]
