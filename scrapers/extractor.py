"""
extractor.py — Turns a source's search results page into RawJobRecords.

The browser only renders the page; parsing happens on the returned HTML with
BeautifulSoup, driven entirely by the source's selector map.
"""

import random
from datetime import datetime
from typing import Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from config import DEFAULT_LOCATION
from exceptions import ExtractionError
from models import RawJobRecord, SourceConfig
from monitoring import get_logger
from scrapers.browser import USER_AGENTS
from scrapers.registry import build_search_url

logger = get_logger("scrapers.extractor")


class Extractor:
    def __init__(self, session, default_location: str = DEFAULT_LOCATION):
        self.session = session
        self.default_location = default_location

    def scrape_source(self, source: SourceConfig, keyword: str, location: str, limit: int) -> list[RawJobRecord]:
        """
        Scrape one search results page from a source.
        Page-level failures propagate as PageError for the caller to attribute.
        """
        url = build_search_url(source, keyword, location)
        logger.info(f"Fetching {url}")
        html = self.session.fetch_listing_html(url, source.selectors.card)
        records = self.parse_listing_html(source, html, limit)
        logger.info(f"{source.display_name}: extracted {len(records)} listings from {url}")
        return records

    def parse_listing_html(self, source: SourceConfig, html: str, limit: int) -> list[RawJobRecord]:
        """Apply the selector map to every card on the page, keeping the first `limit` usable ones."""
        soup = BeautifulSoup(html, "html.parser")
        records = []
        dropped = 0

        for card in soup.select(source.selectors.card):
            if len(records) >= limit:
                break
            try:
                record = self._parse_card(source, card)
            except ExtractionError as e:
                dropped += 1
                logger.debug(f"{source.display_name}: dropping card: {e}")
                continue
            if record is not None:
                records.append(record)

        if dropped:
            logger.warning(f"{source.display_name}: {dropped} cards could not be parsed")
        return records

    def _parse_card(self, source: SourceConfig, card) -> Optional[RawJobRecord]:
        selectors = source.selectors
        try:
            title = _text(card, selectors.title)
            company = _text(card, selectors.company)
            if not title or not company:
                return None

            link = _href(card, selectors.link)
            if link and not link.startswith("http"):
                link = urljoin(source.base_url, link)

            return RawJobRecord(
                title=title,
                company=company,
                location=_text(card, selectors.location) or self.default_location,
                salary_text=_text(card, selectors.salary),
                summary_text=_text(card, selectors.summary),
                date_posted_text=_text(card, selectors.date),
                link=link,
                source_name=source.display_name,
                scraped_at=datetime.now(),
            )
        except Exception as e:
            raise ExtractionError(f"{type(e).__name__}: {e}") from e

    def health_check(self, source: SourceConfig) -> bool:
        """Check that the source's homepage answers at all."""
        try:
            with httpx.Client(timeout=10.0, follow_redirects=True) as client:
                r = client.head(source.base_url, headers={"User-Agent": random.choice(USER_AGENTS)})
                return r.status_code < 400
        except httpx.HTTPError as e:
            logger.warning(f"{source.display_name} health check failed: {e}")
            return False


def _text(card, selector: str) -> Optional[str]:
    el = card.select_one(selector)
    if el is None:
        return None
    text = el.get_text(" ", strip=True)
    return text or None


def _href(card, selector: str) -> Optional[str]:
    el = card.select_one(selector)
    if el is None:
        return None
    return el.get("href") or None
