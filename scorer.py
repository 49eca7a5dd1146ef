"""
scorer.py — Completeness score for normalized job records.

Weights:
    title and company present   30
    description over 100 chars  25
    salary disclosed            20
    at least one skill          15
    at least one category       10
"""

from models import NormalizedJobRecord
from monitoring import get_logger

logger = get_logger("scorer")

MAX_SCORE = 100


def score(record: NormalizedJobRecord) -> int:
    """Return the quality score of a record, in [0, 100]."""
    total = 0

    if record.title and record.company:
        total += 30
    if record.description and len(record.description) > 100:
        total += 25
    if record.salary_range.is_disclosed:
        total += 20
    if record.skills:
        total += 15
    if record.categories:
        total += 10

    return max(0, min(total, MAX_SCORE))


def score_records(records: list[NormalizedJobRecord]) -> list[NormalizedJobRecord]:
    """Assign quality_score to every record in place and return them."""
    for record in records:
        record.quality_score = score(record)

    if records:
        average = sum(r.quality_score for r in records) / len(records)
        logger.info(f"Scored {len(records)} listings (average quality {average:.0f})")

    return records
