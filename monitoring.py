"""
monitoring.py — Logging setup and run reporting for the job harvester.
"""

import logging
import sys

from config import LOG_DIR, LOG_FILE, LOG_LEVEL


def setup_logging(level: int = LOG_LEVEL) -> logging.Logger:
    """
    Set up structured logging to both file and stdout.
    Returns the root logger for the application.
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("job_harvest")
    logger.setLevel(level)

    # Prevent duplicate handlers on re-init
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    file_handler = logging.FileHandler(str(LOG_FILE), mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module."""
    return logging.getLogger(f"job_harvest.{name}")


def log_scraper_success(logger: logging.Logger, source_name: str, count: int):
    logger.info(f"[{source_name}] Scraped {count} listings successfully")


def log_scraper_failure(logger: logging.Logger, source_name: str, error: Exception):
    logger.error(f"[{source_name}] Source failed: {type(error).__name__}: {str(error)}")


def log_pipeline_step(logger: logging.Logger, step: str, input_count: int, output_count: int):
    """Log a pipeline step with input/output counts."""
    filtered = input_count - output_count
    logger.info(f"[{step}] {input_count} in → {output_count} out ({filtered} filtered)")


def log_run_summary(
    logger: logging.Logger,
    keyword: str,
    location: str,
    listings_found: int,
    listings_unique: int,
    listings_processed: int,
    errors: list[str],
    duration: float
):
    """Log a complete run summary."""
    logger.info("=" * 60)
    logger.info(f"RUN SUMMARY — '{keyword}' in {location}")
    logger.info(f"  Total found:       {listings_found}")
    logger.info(f"  Unique:            {listings_unique}")
    logger.info(f"  Processed:         {listings_processed}")
    logger.info(f"  Errors:            {len(errors)}")
    logger.info(f"  Duration:          {duration:.1f}s")

    if errors:
        logger.warning("ERRORS:")
        for err in errors:
            logger.warning(f"  - {err}")

    logger.info("=" * 60)
