"""
registry.py — Static table of supported South African job boards.

Each source is a SourceConfig plus a search-URL builder looked up by source id.
The boards disagree on parameter names and sort options, so every builder is
written out per source instead of sharing a template.
"""

from dataclasses import asdict
from typing import Callable, Optional
from urllib.parse import quote

from config import ENABLED_SOURCES
from exceptions import ConfigError
from models import SelectorMap, SourceConfig
from monitoring import get_logger

logger = get_logger("scrapers.registry")


def _encode(value: str) -> str:
    # Same character set as JavaScript's encodeURIComponent
    return quote(value, safe="!*'()")


SOURCES: dict[str, SourceConfig] = {
    "indeed": SourceConfig(
        id="indeed",
        display_name="Indeed South Africa",
        base_url="https://www.indeed.co.za",
        search_path="/jobs",
        selectors=SelectorMap(
            card=".jobsearch-SerpJobCard",
            title=".title a",
            company=".company",
            location=".location",
            salary=".salary-snippet",
            summary=".summary",
            date=".date",
            link=".title a",
        ),
    ),
    "careerjet": SourceConfig(
        id="careerjet",
        display_name="CareerJet South Africa",
        base_url="https://www.careerjet.co.za",
        search_path="/search/jobs",
        selectors=SelectorMap(
            card=".job",
            title=".title a",
            company=".company",
            location=".location",
            salary=".salary",
            summary=".description",
            date=".date",
            link=".title a",
        ),
    ),
    "pnet": SourceConfig(
        id="pnet",
        display_name="PNet South Africa",
        base_url="https://www.pnet.co.za",
        search_path="/jobs.html",
        selectors=SelectorMap(
            card=".job-element",
            title=".job-title a",
            company=".company",
            location=".location",
            salary=".salary",
            summary=".description",
            date=".date",
            link=".job-title a",
        ),
    ),
    "careers24": SourceConfig(
        id="careers24",
        display_name="Careers24",
        base_url="https://www.careers24.com",
        search_path="/jobs",
        selectors=SelectorMap(
            card=".job-card",
            title=".job-title a",
            company=".company-name",
            location=".job-location",
            salary=".salary",
            summary=".job-description",
            date=".post-date",
            link=".job-title a",
        ),
    ),
}


def _indeed_url(source: SourceConfig, keyword: str, location: str) -> str:
    return f"{source.base_url}{source.search_path}?q={_encode(keyword)}&l={_encode(location)}&sort=date"


def _pnet_url(source: SourceConfig, keyword: str, location: str) -> str:
    return f"{source.base_url}{source.search_path}?keywords={_encode(keyword)}&location={_encode(location)}"


def _careerjet_url(source: SourceConfig, keyword: str, location: str) -> str:
    return f"{source.base_url}{source.search_path}?s={_encode(keyword)}&l={_encode(location)}"


def _careers24_url(source: SourceConfig, keyword: str, location: str) -> str:
    return f"{source.base_url}{source.search_path}?keywords={_encode(keyword)}&location={_encode(location)}"


URL_BUILDERS: dict[str, Callable[[SourceConfig, str, str], str]] = {
    "indeed": _indeed_url,
    "pnet": _pnet_url,
    "careerjet": _careerjet_url,
    "careers24": _careers24_url,
}


def build_search_url(source: SourceConfig, keyword: str, location: str) -> str:
    """Build the search URL for a source using its own query convention."""
    builder = URL_BUILDERS.get(source.id)
    if builder is None:
        raise ConfigError(f"No search URL builder registered for source '{source.id}'")
    return builder(source, keyword, location)


def get_source(source_id: str) -> SourceConfig:
    """Look up one source, validating that it can actually be scraped."""
    source = SOURCES.get(source_id)
    if source is None:
        raise ConfigError(f"Unknown source '{source_id}'")
    if source_id not in URL_BUILDERS:
        raise ConfigError(f"Source '{source_id}' has no search URL builder")
    missing = [name for name, selector in asdict(source.selectors).items() if not selector]
    if missing:
        raise ConfigError(f"Source '{source_id}' is missing selectors: {', '.join(missing)}")
    return source


def load_sources(source_ids: Optional[list[str]] = None) -> list[SourceConfig]:
    """
    Resolve the ordered list of sources to scrape.
    Unknown or misconfigured sources are logged and left out.
    """
    ids = ENABLED_SOURCES if source_ids is None else source_ids
    sources = []
    for source_id in ids:
        try:
            sources.append(get_source(source_id))
        except ConfigError as e:
            logger.warning(f"Skipping source: {e}")
    return sources
