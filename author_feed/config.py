"""Configuration utilities for the author feed generator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "AUTHOR_FEED_"
TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})

DEFAULT_USER_ID = "5081058"
DEFAULT_BASE_URL = "https://www.36kr.com"
DEFAULT_MOBILE_BASE_URL = "https://m.36kr.com"
DEFAULT_API_URL = "https://gateway.36kr.com/api/mis/me/article"
DEFAULT_SITE_URL = "https://tomdhyang-byte.github.io/36kr-user-feed/"
DEFAULT_OUTPUT_PATH = Path("docs") / "feed.xml"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

SOURCES = ("html", "api")


@dataclass(frozen=True)
class Config:
    """Runtime configuration values for a feed run.

    Options and their effect:

    - user_id: author whose article list is scraped
    - source: ``html`` listing page or ``api`` paginated gateway
    - base_url: host used for the listing and ``/p/<id>`` article URLs
    - mobile_base_url: host tried when the desktop page yields no content
    - api_url: JSON listing endpoint used when ``source == "api"``
    - max_items: cap on the number of articles in the feed
    - page_size: items requested per API page
    - max_pages: upper bound on API pages requested in one run
    - request_delay: seconds slept between successive article fetches
    - timeout: per-request timeout in seconds
    - full_content: extract the article body into ``content:encoded``
    - feed_title: channel ``<title>``
    - feed_description: channel ``<description>`` (derived from user_id when unset)
    - site_url: channel ``<link>``
    - feed_url: self-referencing ``atom:link`` (derived from site_url when unset)
    - language: channel ``<language>``
    - ttl: channel ``<ttl>`` in minutes
    - output_path: file the serialized feed is written to
    """

    user_id: str = DEFAULT_USER_ID
    source: str = "html"
    base_url: str = DEFAULT_BASE_URL
    mobile_base_url: str = DEFAULT_MOBILE_BASE_URL
    api_url: str = DEFAULT_API_URL
    max_items: int = 30
    page_size: int = 20
    max_pages: int = 10
    request_delay: float = 1.2
    timeout: float = 20.0
    full_content: bool = True
    feed_title: str = "刀客Doc"
    feed_description: Optional[str] = None
    site_url: str = DEFAULT_SITE_URL
    feed_url: Optional[str] = None
    language: str = "zh-CN"
    ttl: int = 30
    output_path: Path = DEFAULT_OUTPUT_PATH
    site_id: int = 1
    platform_id: int = 2
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = "zh-CN,zh;q=0.9,en;q=0.8"

    def __post_init__(self) -> None:
        if self.source not in SOURCES:
            raise ValueError(f"Unknown listing source {self.source!r}; expected one of {SOURCES}")

    @property
    def listing_url(self) -> str:
        """Return the author's listing page."""
        return f"{self.base_url.rstrip('/')}/user/{self.user_id}"

    @property
    def channel_description(self) -> str:
        if self.feed_description:
            return self.feed_description
        return f"36氪用户 {self.user_id} 的文章更新"

    @property
    def self_url(self) -> str:
        if self.feed_url:
            return self.feed_url
        return self.site_url.rstrip("/") + "/feed.xml"

    def article_url(self, article_id: str) -> str:
        return f"{self.base_url.rstrip('/')}/p/{article_id}"


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def load_config() -> Config:
    """Load configuration from environment variables and defaults."""

    overrides = {}
    for name, field_name, cast in (
        ("USER_ID", "user_id", str),
        ("SOURCE", "source", str.lower),
        ("BASE_URL", "base_url", str),
        ("MOBILE_BASE_URL", "mobile_base_url", str),
        ("API_URL", "api_url", str),
        ("MAX_ITEMS", "max_items", int),
        ("PAGE_SIZE", "page_size", int),
        ("MAX_PAGES", "max_pages", int),
        ("DELAY", "request_delay", float),
        ("TIMEOUT", "timeout", float),
        ("FULL_CONTENT", "full_content", _env_bool),
        ("TITLE", "feed_title", str),
        ("DESCRIPTION", "feed_description", str),
        ("SITE_URL", "site_url", str),
        ("URL", "feed_url", str),
        ("LANGUAGE", "language", str),
        ("TTL", "ttl", int),
        ("OUTPUT", "output_path", Path),
        ("SITE_ID", "site_id", int),
        ("PLATFORM_ID", "platform_id", int),
    ):
        value = _env(name)
        if value is None:
            continue
        try:
            overrides[field_name] = cast(value)
        except ValueError as exc:
            raise ValueError(f"{ENV_PREFIX}{name}: {exc}") from exc

    return Config(**overrides)
