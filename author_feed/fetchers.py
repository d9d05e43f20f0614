"""Listing and article page fetchers."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

import requests

from .config import Config
from .extractors import NUMERIC_ID_RE, extract_article_ids
from .models import ArticleMeta, ArticleRef, ListingFetchError, PageFetch

LOGGER = logging.getLogger(__name__)


def build_session(config: Config) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": config.user_agent,
            "Accept-Language": config.accept_language,
        }
    )
    return session


def fetch_page(session: requests.Session, url: str, timeout: float) -> PageFetch:
    """Fetch one page, reporting failures in the result instead of raising."""

    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        LOGGER.debug("Request for %s failed: %s", url, exc)
        return PageFetch(url=url, error=str(exc))
    if not 200 <= response.status_code < 300:
        LOGGER.debug("Request for %s returned HTTP %d", url, response.status_code)
        return PageFetch(url=url, status=response.status_code, error=f"HTTP {response.status_code}")
    return PageFetch(url=url, html=response.text, status=response.status_code)


class ListingFetcher:
    """Base class for the sources enumerating an author's articles."""

    name: str = "base"

    def fetch(self, config: Config, session: requests.Session) -> List[ArticleRef]:
        raise NotImplementedError


class HtmlListingFetcher(ListingFetcher):
    """Scrape article IDs from the author's public profile page."""

    name = "html"

    def fetch(self, config: Config, session: requests.Session) -> List[ArticleRef]:
        url = config.listing_url
        try:
            response = session.get(url, timeout=config.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ListingFetchError(f"Listing page request failed for {url}: {exc}") from exc

        LOGGER.info("Fetched listing page %s (%d bytes)", url, len(response.text))
        ids = extract_article_ids(response.text, config.max_items)
        LOGGER.info("Found %d article links", len(ids))
        return [ArticleRef(id=article_id, url=config.article_url(article_id)) for article_id in ids]


class ApiListingFetcher(ListingFetcher):
    """Page through the JSON listing API using its continuation token."""

    name = "api"

    def fetch(self, config: Config, session: requests.Session) -> List[ArticleRef]:
        refs: List[ArticleRef] = []
        seen = set()
        callback = ""

        for page in range(config.max_pages):
            payload = self._request_page(config, session, callback, first=page == 0)
            data = payload.get("data") or {}
            if not isinstance(data, dict):
                raise ListingFetchError("Listing API returned an unexpected data block")
            items = data.get("itemList") or []
            if not isinstance(items, list):
                raise ListingFetchError("Listing API returned an unexpected item list")
            LOGGER.info("Fetched listing page %d with %d items", page + 1, len(items))

            for item in items:
                if not isinstance(item, dict):
                    LOGGER.debug("Skipping malformed listing item: %r", item)
                    continue
                ref = self._to_ref(config, item)
                if ref is None or ref.id in seen:
                    continue
                seen.add(ref.id)
                refs.append(ref)
                if len(refs) >= config.max_items:
                    break

            callback = data.get("pageCallback") or ""
            if not items or not callback or len(refs) >= config.max_items:
                break

        LOGGER.info("Found %d articles via API", len(refs))
        return refs

    @staticmethod
    def _request_page(config: Config, session: requests.Session, callback: str, first: bool) -> dict:
        body = {
            "partner_id": "web",
            "timestamp": int(time.time() * 1000),
            "param": {
                "userId": config.user_id,
                "pageEvent": 0 if first else 1,
                "pageSize": config.page_size,
                "pageCallback": callback,
                "siteId": config.site_id,
                "platformId": config.platform_id,
            },
        }
        try:
            response = session.post(config.api_url, json=body, timeout=config.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ListingFetchError(f"Listing API request failed: {exc}") from exc
        except ValueError as exc:
            raise ListingFetchError(f"Listing API returned invalid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise ListingFetchError("Listing API returned an unexpected payload")
        code = payload.get("code", 0)
        if code != 0:
            raise ListingFetchError(f"Listing API returned code {code}: {payload.get('msg', '')}")
        return payload

    @staticmethod
    def _to_ref(config: Config, item: dict) -> Optional[ArticleRef]:
        material = item.get("templateMaterial")
        if not isinstance(material, dict):
            material = {}
        article_id = str(item.get("itemId") or material.get("itemId") or "").strip()
        if not NUMERIC_ID_RE.match(article_id):
            LOGGER.debug("Skipping listing item without a usable id: %r", item.get("itemId"))
            return None
        hint = ArticleMeta(
            title=material.get("widgetTitle") or None,
            description=material.get("summary") or None,
            published_at=_from_epoch_millis(material.get("publishTime")),
        )
        return ArticleRef(id=article_id, url=config.article_url(article_id), hint=hint)


def _from_epoch_millis(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


FETCHERS = {fetcher.name: fetcher for fetcher in (HtmlListingFetcher, ApiListingFetcher)}


def get_listing_fetcher(source: str) -> ListingFetcher:
    try:
        return FETCHERS[source]()
    except KeyError:
        raise ValueError(f"Unknown listing source {source!r}") from None


__all__ = [
    "ApiListingFetcher",
    "HtmlListingFetcher",
    "ListingFetcher",
    "build_session",
    "fetch_page",
    "get_listing_fetcher",
]
