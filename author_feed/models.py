"""Shared dataclasses, result types and errors for the feed pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


class FeedError(Exception):
    """Base class for errors that abort a feed run."""


class ListingFetchError(FeedError):
    """The author's listing page or API could not be retrieved."""


class NoArticlesError(FeedError):
    """The listing yielded no article identifiers."""


@dataclass
class ArticleMeta:
    """Per-article metadata gathered from a listing or an article page."""

    title: Optional[str] = None
    description: Optional[str] = None
    published_at: Optional[datetime] = None
    body_html: Optional[str] = None

    def merged_with(self, fallback: Optional["ArticleMeta"]) -> "ArticleMeta":
        """Fill the unset fields of this meta from ``fallback``."""

        if fallback is None:
            return self
        return ArticleMeta(
            title=self.title or fallback.title,
            description=self.description or fallback.description,
            published_at=self.published_at or fallback.published_at,
            body_html=self.body_html or fallback.body_html,
        )


@dataclass(frozen=True)
class ArticleRef:
    """An article identified by its numeric ID."""

    id: str
    url: str
    hint: Optional[ArticleMeta] = field(default=None, compare=False)


@dataclass(frozen=True)
class PageFetch:
    """Outcome of fetching a single page."""

    url: str
    html: Optional[str] = None
    status: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.html) and self.status is not None and 200 <= self.status < 300


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    guid: str
    pub_date: Optional[datetime]
    description: str
    content_encoded: Optional[str] = None


@dataclass(frozen=True)
class FeedDocument:
    title: str
    link: str
    description: str
    self_url: str
    build_date: datetime
    language: str = "zh-CN"
    ttl: int = 30
    items: Tuple[FeedItem, ...] = ()


__all__ = [
    "ArticleMeta",
    "ArticleRef",
    "FeedDocument",
    "FeedError",
    "FeedItem",
    "ListingFetchError",
    "NoArticlesError",
    "PageFetch",
]
