"""
main.py — Run orchestrator for the job harvester.
Coordinates scraping, normalization, deduplication, scoring and storage,
and exposes the pipeline as a small command-line tool.
"""

import math
import random
import time
from dataclasses import asdict, replace
from datetime import datetime
from typing import Callable, Optional

import typer

from audit import CONTINUOUS_COMPLETED, RUN_COMPLETED, RUN_FAILED, RUN_STARTED, AuditLogger
from config import (
    CONTINUOUS_KEYWORDS, CONTINUOUS_LIMIT, CONTINUOUS_LOCATIONS, DEFAULT_LIMIT,
    DEFAULT_LOCATION, RATE_LIMITS, validate_config,
)
from database import JobStore
from deduplication import deduplicate_batch
from exceptions import LaunchError
from models import (
    ContinuousError, ContinuousRunResult, NormalizedJobRecord, RunLog, RunStatistics,
    ScrapeError, ScrapeRunResult, SourceConfig,
)
from monitoring import (
    get_logger, log_pipeline_step, log_run_summary, log_scraper_failure,
    log_scraper_success, setup_logging,
)
from normalizer import normalize_record
from scorer import score_records
from scrapers.browser import BrowserSessionManager
from scrapers.extractor import Extractor
from scrapers.registry import SOURCES, load_sources

logger = get_logger("main")


def _window(name: str) -> tuple[float, float]:
    limits = RATE_LIMITS.get(name, {})
    return limits.get("delay_min", 0.0), limits.get("delay_max", 0.0)


class RunOrchestrator:
    """
    Drives scrape runs across the configured sources, one source at a time.

    A fresh browser session is opened for every run and closed before the run
    returns, whatever the outcome.
    """

    def __init__(
        self,
        sources: Optional[list[SourceConfig]] = None,
        store=None,
        audit=None,
        session_factory: Callable[[], BrowserSessionManager] = BrowserSessionManager,
        source_delay: Optional[tuple[float, float]] = None,
        run_delay: Optional[tuple[float, float]] = None,
    ):
        self.sources = load_sources() if sources is None else list(sources)
        self.store = store if store is not None else JobStore()
        if audit is None:
            audit = AuditLogger(self.store if isinstance(self.store, JobStore) else None)
        self.audit = audit
        self.session_factory = session_factory
        self.source_delay = source_delay or _window("between_sources")
        self.run_delay = run_delay or _window("between_runs")
        self.statistics = RunStatistics()
        self._session = None

    def run(self, keyword: str, location: str = DEFAULT_LOCATION, limit: int = DEFAULT_LIMIT) -> ScrapeRunResult:
        """Scrape every source for one keyword/location pair."""
        run_start = time.time()
        source_ids = [s.id for s in self.sources]

        logger.info("=" * 60)
        logger.info(f"Starting run: '{keyword}' in {location} (limit {limit})")
        logger.info("=" * 60)
        self._emit(RUN_STARTED, {"keyword": keyword, "location": location, "limit": limit, "sites": source_ids})

        errors: list[ScrapeError] = []
        raw_records = []

        # ===== 1. SCRAPE ALL SOURCES =====
        session = self.session_factory()
        self._session = session
        try:
            session.initialize()
            extractor = Extractor(session)
            per_source = math.ceil(limit / len(self.sources)) if self.sources else 0

            for i, source in enumerate(self.sources):
                if i > 0:
                    self._pause(self.source_delay)
                logger.info(f"Scraping from {source.display_name}...")
                try:
                    records = extractor.scrape_source(source, keyword, location, per_source)
                except LaunchError:
                    raise
                except Exception as e:
                    errors.append(ScrapeError(site=source.id, message=str(e)))
                    log_scraper_failure(logger, source.display_name, e)
                    continue
                raw_records.extend(records)
                log_scraper_success(logger, source.display_name, len(records))

        except LaunchError as e:
            logger.error(f"Run aborted, browser could not start: {e}")
            self.statistics.last_run_at = datetime.now()
            self._emit(RUN_FAILED, {"keyword": keyword, "location": location, "error": str(e)})
            return ScrapeRunResult(
                success=False,
                jobs_found=0,
                errors=[ScrapeError(site="browser", message=str(e))],
                statistics=replace(self.statistics),
                error=str(e),
            )
        finally:
            session.close()
            self._session = None

        log_pipeline_step(logger, "Scraping", 0, len(raw_records))
        if not raw_records and errors and len(errors) == len(self.sources):
            logger.error("ALL sources failed — check connectivity and source availability")

        # ===== 2. NORMALIZE =====
        normalized = [normalize_record(r) for r in raw_records]

        # ===== 3. DEDUPLICATE ACROSS SOURCES =====
        unique = deduplicate_batch(normalized)[:limit]
        log_pipeline_step(logger, "Deduplication", len(normalized), len(unique))

        # ===== 4. SCORE =====
        score_records(unique)

        # ===== 5. STORE =====
        processed = self._persist(unique)
        log_pipeline_step(logger, "Storage", len(unique), len(processed))

        # ===== 6. STATISTICS =====
        success_rate = len(processed) / len(raw_records) if raw_records else 0.0
        self.statistics.total_jobs_scraped += len(processed)
        self.statistics.last_run_at = datetime.now()
        self.statistics.error_count = len(errors)
        self.statistics.success_rate = success_rate

        duration = time.time() - run_start
        error_lines = [f"{err.site}: {err.message}" for err in errors]
        log_run_summary(
            logger,
            keyword=keyword,
            location=location,
            listings_found=len(raw_records),
            listings_unique=len(unique),
            listings_processed=len(processed),
            errors=error_lines,
            duration=duration,
        )
        self._emit(RUN_COMPLETED, {
            "keyword": keyword,
            "location": location,
            "total_found": len(raw_records),
            "processed": len(processed),
            "errors": len(errors),
            "sites": source_ids,
            "success_rate": success_rate,
        })
        self._record_run(RunLog(
            run_date=datetime.now().isoformat(),
            keyword=keyword,
            location=location,
            listings_found=len(raw_records),
            listings_unique=len(unique),
            listings_processed=len(processed),
            errors=error_lines,
            duration_seconds=duration,
        ))

        return ScrapeRunResult(
            success=True,
            jobs_found=len(processed),
            jobs=processed,
            errors=errors,
            statistics=replace(self.statistics),
        )

    def run_continuous(
        self,
        keywords: Optional[list[str]] = None,
        locations: Optional[list[str]] = None,
        limit: int = CONTINUOUS_LIMIT,
    ) -> ContinuousRunResult:
        """Sweep every keyword × location pair, one run at a time."""
        keywords = keywords or CONTINUOUS_KEYWORDS
        locations = locations or CONTINUOUS_LOCATIONS
        result = ContinuousRunResult()

        for keyword in keywords:
            for location in locations:
                if result.runs_attempted > 0:
                    self._pause(self.run_delay)
                result.runs_attempted += 1
                logger.info(f"Continuous scraping: {keyword} in {location}")

                try:
                    run_result = self.run(keyword, location, limit)
                except Exception as e:
                    logger.error(f"Continuous scraping error for {keyword} in {location}: {e}")
                    result.errors.append(ContinuousError(keyword=keyword, location=location, message=str(e)))
                    continue

                if not run_result.success:
                    result.errors.append(ContinuousError(
                        keyword=keyword, location=location, message=run_result.error or "Run failed",
                    ))
                    continue

                result.total_jobs += run_result.jobs_found
                for err in run_result.errors:
                    result.errors.append(ContinuousError(
                        keyword=keyword, location=location, message=err.message, site=err.site,
                    ))

        result.statistics = replace(self.statistics)
        self._emit(CONTINUOUS_COMPLETED, {
            "total_jobs": result.total_jobs,
            "total_errors": len(result.errors),
            "keywords_scraped": len(keywords),
            "locations_scraped": len(locations),
        })
        return result

    def get_statistics(self) -> dict:
        stats = asdict(self.statistics)
        stats["is_active"] = self._session is not None and self._session.is_active
        return stats

    def health_check(self) -> dict:
        """Check that each configured source answers over plain HTTP."""
        extractor = Extractor(session=None)
        sources = {source.id: extractor.health_check(source) for source in self.sources}
        reachable = sum(sources.values())
        if sources and reachable == len(sources):
            status = "healthy"
        elif reachable:
            status = "degraded"
        else:
            status = "unhealthy"
        return {"status": status, "sources": sources, "timestamp": datetime.now().isoformat()}

    def _persist(self, records: list[NormalizedJobRecord]) -> list[NormalizedJobRecord]:
        """
        Hand records to the store. A job already on file is reported as the
        stored copy if still active, and skipped if it has been filled.
        """
        processed = []
        for record in records:
            try:
                existing = self.store.find_by_natural_key(record.title, record.company, record.location)
                if existing is not None:
                    if existing.is_active:
                        processed.append(existing)
                    continue
                processed.append(self.store.upsert(record))
            except Exception as e:
                logger.error(f"Error storing '{record.title}' at {record.company}: {e}")
        return processed

    def _emit(self, action: str, metadata: dict):
        try:
            self.audit.log(action, "scraping", metadata)
        except Exception as e:
            logger.warning(f"Audit sink failed for {action}: {e}")

    def _record_run(self, run_log: RunLog):
        if not isinstance(self.store, JobStore):
            return
        try:
            self.store.log_run(run_log)
        except Exception as e:
            logger.warning(f"Could not store run log: {e}")

    def _pause(self, window: tuple[float, float]):
        delay_min, delay_max = window
        if delay_max > 0:
            time.sleep(random.uniform(delay_min, delay_max))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

app = typer.Typer(help="Scrape South African job boards into a normalized job store")


def _bootstrap() -> RunOrchestrator:
    setup_logging()
    for warning in validate_config(known_sources=SOURCES):
        logger.warning(f"Config: {warning}")
    return RunOrchestrator()


@app.command("run")
def run_command(
    keyword: str,
    location: str = typer.Option(DEFAULT_LOCATION, "--location", "-l", help="Where to search"),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-n", help="Maximum jobs to keep"),
):
    """Scrape all enabled sources once for KEYWORD."""
    result = _bootstrap().run(keyword, location, limit)
    if not result.success:
        typer.echo(f"Run failed: {result.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Processed {result.jobs_found} jobs with {len(result.errors)} source errors.")
    for job in result.jobs:
        typer.echo(f"  [{job.quality_score:3d}] {job.title} — {job.company} ({job.location})")
    for err in result.errors:
        typer.echo(f"  ! {err.site}: {err.message}", err=True)


@app.command("continuous")
def continuous_command(
    limit: int = typer.Option(CONTINUOUS_LIMIT, "--limit", "-n", help="Maximum jobs per run"),
):
    """Sweep the configured keyword × location lists."""
    result = _bootstrap().run_continuous(limit=limit)
    typer.echo(
        f"{result.runs_attempted} runs, {result.total_jobs} jobs, {len(result.errors)} errors."
    )


@app.command("health")
def health_command():
    """Check that every enabled source is reachable."""
    report = _bootstrap().health_check()
    typer.echo(f"Status: {report['status']}")
    for source_id, ok in report["sources"].items():
        typer.echo(f"  {source_id}: {'ok' if ok else 'unreachable'}")
    if report["status"] == "unhealthy":
        raise typer.Exit(code=1)


@app.command("stats")
def stats_command():
    """Show the last stored run and the number of active jobs."""
    setup_logging()
    store = JobStore()
    last_run = store.get_last_run()
    typer.echo(f"Active jobs: {store.count_active()}")
    if last_run:
        typer.echo(
            f"Last run: {last_run['run_date']} '{last_run['keyword']}' in {last_run['location']} — "
            f"{last_run['listings_processed']}/{last_run['listings_found']} processed, "
            f"{len(last_run['errors'])} errors"
        )
    else:
        typer.echo("No runs recorded yet.")


if __name__ == "__main__":
    app()
