"""HTML parsing shared by the extractor, enricher and sanitizer."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup

LOGGER = logging.getLogger(__name__)

# Tried in order until one accepts the markup.
PARSERS = ("html.parser", "lxml")


def parse_html(html: str) -> BeautifulSoup:
    """Parse ``html``, falling back to the next parser when one rejects it.

    Markup no parser accepts yields an empty document.
    """

    for parser in PARSERS:
        try:
            return BeautifulSoup(html or "", parser)
        except ParserRejectedMarkup as exc:
            LOGGER.debug("%s rejected markup: %s", parser, exc)
    LOGGER.warning("Could not parse markup with any of %s", ", ".join(PARSERS))
    return BeautifulSoup("", "html.parser")


__all__ = ["PARSERS", "parse_html"]
