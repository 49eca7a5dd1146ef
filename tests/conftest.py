"""
Shared fakes and fixtures. Nothing here launches a browser or opens a socket.
"""

from datetime import datetime

import pytest

from deduplication import generate_fingerprint
from exceptions import PersistenceError
from models import RawJobRecord
from scrapers.registry import SOURCES

# Class names that satisfy each source's selector map
CARD_CLASSES = {
    "indeed": {
        "card": "jobsearch-SerpJobCard", "title": "title", "company": "company",
        "location": "location", "salary": "salary-snippet", "summary": "summary", "date": "date",
    },
    "pnet": {
        "card": "job-element", "title": "job-title", "company": "company",
        "location": "location", "salary": "salary", "summary": "description", "date": "date",
    },
    "careerjet": {
        "card": "job", "title": "title", "company": "company",
        "location": "location", "salary": "salary", "summary": "description", "date": "date",
    },
}


def card_html(source_id, title=None, company=None, location=None, salary=None,
              summary=None, date=None, href="/job/1"):
    classes = CARD_CLASSES[source_id]
    parts = [f'<div class="{classes["card"]}">']
    if title is not None:
        parts.append(f'<h2 class="{classes["title"]}"><a href="{href}">{title}</a></h2>')
    for field, value in (("company", company), ("location", location), ("salary", salary),
                         ("summary", summary), ("date", date)):
        if value is not None:
            parts.append(f'<span class="{classes[field]}">{value}</span>')
    parts.append("</div>")
    return "".join(parts)


def listing_page(*cards):
    return "<html><body><div id='results'>" + "".join(cards) + "</div></body></html>"


class FakeSession:
    """Stands in for BrowserSessionManager. Pages are keyed by source base URL."""

    def __init__(self, pages=None, launch_error=None):
        self.pages = pages or {}
        self.launch_error = launch_error
        self.initialized = False
        self.closed = False
        self.requested_urls = []

    @property
    def is_active(self):
        return self.initialized and not self.closed

    def initialize(self):
        if self.launch_error is not None:
            raise self.launch_error
        self.initialized = True

    def fetch_listing_html(self, url, card_selector):
        self.requested_urls.append(url)
        for base_url, page in self.pages.items():
            if url.startswith(base_url):
                if isinstance(page, Exception):
                    raise page
                return page
        return listing_page()

    def close(self):
        self.closed = True


class FakeStore:
    """In-memory persistence adapter keyed on the natural key."""

    def __init__(self, fail_titles=()):
        self.jobs = {}
        self.fail_titles = set(fail_titles)
        self._next_id = 1

    def find_by_natural_key(self, title, company, location):
        return self.jobs.get(generate_fingerprint(title, company, location))

    def upsert(self, record):
        if record.title in self.fail_titles:
            raise PersistenceError(f"cannot store {record.title}")
        record.id = self._next_id
        self._next_id += 1
        self.jobs[record.fingerprint] = record
        return record


class FakeAudit:
    def __init__(self, fail=False):
        self.events = []
        self.fail = fail

    def log(self, action, resource="scraping", metadata=None):
        if self.fail:
            raise RuntimeError("audit sink is down")
        self.events.append((action, metadata or {}))

    def actions(self):
        return [action for action, _ in self.events]


@pytest.fixture
def sources():
    return [SOURCES["indeed"], SOURCES["pnet"], SOURCES["careerjet"]]


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_audit():
    return FakeAudit()


@pytest.fixture
def make_raw():
    def _make(**overrides):
        fields = {
            "title": "Software Developer",
            "company": "Acme Holdings",
            "location": "Cape Town",
            "source_name": "Indeed South Africa",
            "salary_text": None,
            "summary_text": None,
            "date_posted_text": None,
            "link": "https://www.indeed.co.za/viewjob?jk=1",
            "scraped_at": datetime(2026, 10, 1, 9, 30),
        }
        fields.update(overrides)
        return RawJobRecord(**fields)
    return _make
