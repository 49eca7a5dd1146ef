"""
models.py — Data models for the job harvester.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


JOB_TYPES = ("full-time", "part-time", "contract", "temporary", "internship", "remote", "hybrid")
EXPERIENCE_LEVELS = ("entry", "mid", "senior", "executive", "not-specified")


@dataclass(frozen=True)
class SelectorMap:
    """CSS selectors for one source. `card` is page-level, the rest are card-relative."""
    card: str
    title: str
    company: str
    location: str
    salary: str
    summary: str
    date: str
    link: str


@dataclass(frozen=True)
class SourceConfig:
    """One external job board, as registered in scrapers.registry."""
    id: str
    display_name: str
    base_url: str
    search_path: str
    selectors: SelectorMap


@dataclass
class RawJobRecord:
    """A single listing card as scraped, before any interpretation."""
    title: str
    company: str
    location: str
    source_name: str
    salary_text: Optional[str] = None
    summary_text: Optional[str] = None
    date_posted_text: Optional[str] = None
    link: Optional[str] = None
    scraped_at: datetime = field(default_factory=datetime.now)


@dataclass
class SalaryRange:
    min: int = 0
    max: int = 0
    currency: Optional[str] = None
    period: Optional[str] = None
    is_disclosed: bool = False


@dataclass
class NormalizedJobRecord:
    """A structured job record, ready for scoring and persistence."""
    title: str
    company: str
    location: str
    source_name: str
    description: str
    salary_range: SalaryRange
    job_type: str
    experience_level: str
    is_remote: bool
    categories: list[str]
    skills: list[str]
    posted_at: datetime
    fingerprint: str
    scraped_id: str
    scraped_at: datetime
    salary_text: Optional[str] = None
    summary_text: Optional[str] = None
    date_posted_text: Optional[str] = None
    link: Optional[str] = None
    quality_score: int = 0
    is_active: bool = True
    id: Optional[int] = None  # Set once persisted


@dataclass
class ScrapeError:
    """A per-source failure inside a run."""
    site: str
    message: str


@dataclass
class RunStatistics:
    total_jobs_scraped: int = 0
    last_run_at: Optional[datetime] = None
    error_count: int = 0
    success_rate: float = 0.0


@dataclass
class ScrapeRunResult:
    """Outcome of one keyword/location run across all sources."""
    success: bool
    jobs_found: int
    jobs: list[NormalizedJobRecord] = field(default_factory=list)
    errors: list[ScrapeError] = field(default_factory=list)
    statistics: RunStatistics = field(default_factory=RunStatistics)
    error: Optional[str] = None  # Fatal error message when success is False


@dataclass
class ContinuousError:
    keyword: str
    location: str
    message: str
    site: Optional[str] = None  # None when the whole run failed


@dataclass
class ContinuousRunResult:
    """Outcome of a keyword × location sweep."""
    total_jobs: int = 0
    runs_attempted: int = 0
    errors: list[ContinuousError] = field(default_factory=list)
    statistics: RunStatistics = field(default_factory=RunStatistics)


@dataclass
class RunLog:
    """Log entry for a single pipeline run."""
    run_date: str
    keyword: str
    location: str
    listings_found: int = 0
    listings_unique: int = 0
    listings_processed: int = 0
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
