"""
deduplication.py — Collapses duplicate postings within a scrape batch.

Boards syndicate each other's listings, so the same job regularly shows up
under several sources in one run. The first occurrence wins.
"""

import re

from models import NormalizedJobRecord
from monitoring import get_logger

logger = get_logger("deduplication")


def _normalize_part(value: str) -> str:
    return re.sub(r"\s+", " ", (value or "").lower()).strip()


def generate_fingerprint(title: str, company: str, location: str) -> str:
    """Case-insensitive natural key for a posting."""
    return f"{_normalize_part(title)}|{_normalize_part(company)}|{_normalize_part(location)}"


def deduplicate_batch(records: list[NormalizedJobRecord]) -> list[NormalizedJobRecord]:
    """
    Keep the first record for each fingerprint, in input order.
    Later duplicates are dropped regardless of which source they came from.
    """
    if not records:
        return []

    unique: list[NormalizedJobRecord] = []
    seen: set[str] = set()

    for record in records:
        fingerprint = record.fingerprint or generate_fingerprint(record.title, record.company, record.location)
        if fingerprint in seen:
            continue
        seen.add(fingerprint)
        unique.append(record)

    dupes_removed = len(records) - len(unique)
    if dupes_removed > 0:
        logger.info(f"Deduplication: {len(records)} → {len(unique)} ({dupes_removed} duplicates removed)")

    return unique
