"""
Tests for BrowserSessionManager error mapping, using a fake Playwright driver.
"""
import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

import scrapers.browser as browser_module
from exceptions import (
    LaunchError, NavigationError, NavigationTimeoutError, PageError, SelectorTimeoutError,
)
from scrapers.browser import BrowserSessionManager


class FakePage:
    def __init__(self, goto_error=None, selector_error=None, html="<html></html>"):
        self.goto_error = goto_error
        self.selector_error = selector_error
        self.html = html
        self.visited = []

    def set_default_navigation_timeout(self, timeout):
        self.default_timeout = timeout

    def goto(self, url, timeout=None, wait_until=None):
        self.visited.append((url, timeout, wait_until))
        if self.goto_error is not None:
            raise self.goto_error

    def wait_for_selector(self, selector, timeout=None):
        self.waited_for = (selector, timeout)
        if self.selector_error is not None:
            raise self.selector_error

    def content(self):
        return self.html


class FakeContext:
    def __init__(self, page):
        self.page = page
        self.closed = False

    def new_page(self):
        return self.page

    def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.contexts = []
        self.closed = 0

    def new_context(self, **kwargs):
        context = FakeContext(self.page)
        context.options = kwargs
        self.contexts.append(context)
        return context

    def close(self):
        self.closed += 1


class FakeDriver:
    def __init__(self, browser=None, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error
        self.stopped = 0
        self.chromium = self

    def start(self):
        return self

    def launch(self, headless=True, args=None):
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser

    def stop(self):
        self.stopped += 1


@pytest.fixture
def install_driver(monkeypatch):
    def _install(page=None, launch_error=None):
        driver = FakeDriver(FakeBrowser(page or FakePage()), launch_error=launch_error)
        monkeypatch.setattr(browser_module, "sync_playwright", lambda: driver)
        return driver
    return _install


def _manager():
    return BrowserSessionManager(headless=True, navigation_timeout_ms=30000, selector_timeout_ms=15000)


def test_launch_failure_raises_launch_error(install_driver):
    driver = install_driver(launch_error=PlaywrightError("Executable doesn't exist"))
    manager = _manager()

    with pytest.raises(LaunchError):
        manager.initialize()
    assert not manager.is_active
    assert driver.stopped == 1


def test_fetch_returns_html_and_closes_context(install_driver):
    page = FakePage(html="<div class='job'>x</div>")
    driver = install_driver(page=page)
    manager = _manager()

    html = manager.fetch_listing_html("https://www.careerjet.co.za/search/jobs?s=x&l=y", ".job")

    assert html == "<div class='job'>x</div>"
    assert page.visited == [("https://www.careerjet.co.za/search/jobs?s=x&l=y", 30000, "networkidle")]
    assert page.waited_for == (".job", 15000)
    context = driver.browser.contexts[0]
    assert context.closed
    assert context.options["extra_http_headers"]["Accept-Language"].startswith("en-US")


def test_each_fetch_gets_a_fresh_context(install_driver):
    driver = install_driver()
    manager = _manager()
    manager.fetch_listing_html("https://a.example", ".job")
    manager.fetch_listing_html("https://b.example", ".job")
    assert len(driver.browser.contexts) == 2
    assert all(c.closed for c in driver.browser.contexts)


def test_navigation_timeout(install_driver):
    driver = install_driver(page=FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded")))
    manager = _manager()

    with pytest.raises(NavigationTimeoutError) as exc_info:
        manager.fetch_listing_html("https://www.indeed.co.za/jobs", ".jobsearch-SerpJobCard")
    assert exc_info.value.url == "https://www.indeed.co.za/jobs"
    assert driver.browser.contexts[0].closed


def test_navigation_failure(install_driver):
    install_driver(page=FakePage(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED")))
    with pytest.raises(NavigationError) as exc_info:
        _manager().fetch_listing_html("https://www.pnet.co.za/jobs.html", ".job-element")
    assert not isinstance(exc_info.value, NavigationTimeoutError)


def test_selector_timeout(install_driver):
    install_driver(page=FakePage(selector_error=PlaywrightTimeoutError("Timeout 15000ms exceeded")))
    with pytest.raises(SelectorTimeoutError) as exc_info:
        _manager().fetch_listing_html("https://www.pnet.co.za/jobs.html", ".job-element")
    assert isinstance(exc_info.value, PageError)


def test_close_is_idempotent(install_driver):
    driver = install_driver()
    manager = _manager()
    manager.initialize()
    assert manager.is_active

    manager.close()
    manager.close()

    assert not manager.is_active
    assert driver.browser.closed == 1
    assert driver.stopped == 1


def test_context_manager_closes(install_driver):
    driver = install_driver()
    with _manager() as manager:
        manager.initialize()
    assert driver.browser.closed == 1
