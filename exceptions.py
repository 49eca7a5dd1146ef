"""
exceptions.py — Error taxonomy for the scraping pipeline.

Only LaunchError is fatal to a run. Everything else is attributed to a
source, card, or job and reported without stopping the remaining work.
"""


class ScrapingError(Exception):
    """Base class for all pipeline errors."""


class LaunchError(ScrapingError):
    """The browser session could not be started."""


class PageError(ScrapingError):
    """A page-level failure scoped to the current source."""

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


class NavigationError(PageError):
    """Navigating to the search page failed."""


class NavigationTimeoutError(NavigationError):
    """Navigation did not finish within the navigation timeout."""


class SelectorTimeoutError(PageError):
    """The listing card selector never appeared on the page."""


class ExtractionError(ScrapingError):
    """A single listing card could not be parsed."""


class PersistenceError(ScrapingError):
    """The persistence adapter failed for a single job."""


class ConfigError(ScrapingError):
    """A source is unknown or misconfigured."""
