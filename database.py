"""
database.py — SQLite persistence adapter for normalized jobs, run logs and audit events.
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from config import DB_PATH
from deduplication import generate_fingerprint
from exceptions import PersistenceError
from models import NormalizedJobRecord, RunLog, SalaryRange

SCHEMA = """
    CREATE TABLE IF NOT EXISTS jobs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fingerprint TEXT NOT NULL UNIQUE,
        scraped_id TEXT,
        title TEXT NOT NULL,
        company TEXT NOT NULL,
        location TEXT NOT NULL,
        description TEXT,
        source_name TEXT,
        link TEXT,
        salary_text TEXT,
        summary_text TEXT,
        date_posted_text TEXT,
        salary_min INTEGER DEFAULT 0,
        salary_max INTEGER DEFAULT 0,
        salary_currency TEXT,
        salary_period TEXT,
        salary_disclosed INTEGER DEFAULT 0,
        job_type TEXT DEFAULT 'full-time',
        experience_level TEXT DEFAULT 'not-specified',
        is_remote INTEGER DEFAULT 0,
        categories TEXT,
        skills TEXT,
        quality_score INTEGER DEFAULT 0,
        posted_at TEXT,
        scraped_at TEXT,
        is_active INTEGER DEFAULT 1,
        filled_at TEXT
    );

    CREATE TABLE IF NOT EXISTS run_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_date TEXT,
        keyword TEXT,
        location TEXT,
        listings_found INTEGER DEFAULT 0,
        listings_unique INTEGER DEFAULT 0,
        listings_processed INTEGER DEFAULT 0,
        errors TEXT,
        duration_seconds REAL
    );

    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        action TEXT NOT NULL,
        resource TEXT NOT NULL,
        metadata TEXT,
        timestamp TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_jobs_active ON jobs(is_active);
    CREATE INDEX IF NOT EXISTS idx_jobs_quality ON jobs(quality_score);
    CREATE INDEX IF NOT EXISTS idx_audit_action ON audit_log(action, timestamp);
"""


class JobStore:
    """SQLite-backed job store. The natural key is the record fingerprint."""

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = Path(db_path)
        self.init_db()

    def get_connection(self) -> sqlite3.Connection:
        """Get a database connection, creating the DB file if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def init_db(self):
        """Create all tables if they don't exist."""
        conn = self.get_connection()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    # --- Jobs ---

    def find_by_natural_key(self, title: str, company: str, location: str) -> Optional[NormalizedJobRecord]:
        """Return the stored job with this (title, company, location), active or not."""
        fingerprint = generate_fingerprint(title, company, location)
        try:
            conn = self.get_connection()
            try:
                row = conn.execute("SELECT * FROM jobs WHERE fingerprint = ?", (fingerprint,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Lookup failed for '{title}' at {company}: {e}") from e
        return _row_to_record(row) if row else None

    def upsert(self, record: NormalizedJobRecord) -> NormalizedJobRecord:
        """Insert a job, or refresh the stored copy if the natural key already exists."""
        values = _record_to_row(record)
        columns = ", ".join(values)
        placeholders = ", ".join("?" * len(values))
        updates = ", ".join(f"{col} = excluded.{col}" for col in values if col != "fingerprint")
        try:
            conn = self.get_connection()
            try:
                conn.execute(
                    f"""INSERT INTO jobs ({columns}) VALUES ({placeholders})
                        ON CONFLICT(fingerprint) DO UPDATE SET {updates}""",
                    tuple(values.values()),
                )
                row = conn.execute(
                    "SELECT id FROM jobs WHERE fingerprint = ?", (record.fingerprint,)
                ).fetchone()
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"Upsert failed for '{record.title}' at {record.company}: {e}") from e

        record.id = row["id"]
        return record

    def mark_filled(self, job_id: int) -> bool:
        """Mark a job as filled. Returns False if no such job exists."""
        conn = self.get_connection()
        try:
            cursor = conn.execute(
                "UPDATE jobs SET is_active = 0, filled_at = ? WHERE id = ?",
                (datetime.now().isoformat(), job_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def count_active(self) -> int:
        conn = self.get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM jobs WHERE is_active = 1").fetchone()[0]
        finally:
            conn.close()

    # --- Run Log ---

    def log_run(self, run_log: RunLog):
        """Store a run log entry."""
        conn = self.get_connection()
        try:
            conn.execute(
                """INSERT INTO run_log
                   (run_date, keyword, location, listings_found, listings_unique,
                    listings_processed, errors, duration_seconds)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    run_log.run_date, run_log.keyword, run_log.location,
                    run_log.listings_found, run_log.listings_unique,
                    run_log.listings_processed, json.dumps(run_log.errors),
                    run_log.duration_seconds,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get_last_run(self) -> Optional[dict]:
        """Get the most recent run log entry."""
        conn = self.get_connection()
        try:
            row = conn.execute("SELECT * FROM run_log ORDER BY id DESC LIMIT 1").fetchone()
        finally:
            conn.close()
        if not row:
            return None
        result = dict(row)
        result["errors"] = json.loads(result["errors"]) if result["errors"] else []
        return result

    # --- Audit ---

    def log_audit_event(self, action: str, resource: str, metadata: dict):
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT INTO audit_log (action, resource, metadata, timestamp) VALUES (?, ?, ?, ?)",
                (action, resource, json.dumps(metadata, default=str), datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def get_audit_events(self, action: Optional[str] = None) -> list[dict]:
        conn = self.get_connection()
        try:
            if action:
                rows = conn.execute(
                    "SELECT * FROM audit_log WHERE action = ? ORDER BY id", (action,)
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM audit_log ORDER BY id").fetchall()
        finally:
            conn.close()
        events = []
        for row in rows:
            event = dict(row)
            event["metadata"] = json.loads(event["metadata"]) if event["metadata"] else {}
            events.append(event)
        return events


def _record_to_row(record: NormalizedJobRecord) -> dict:
    salary = record.salary_range
    return {
        "fingerprint": record.fingerprint,
        "scraped_id": record.scraped_id,
        "title": record.title,
        "company": record.company,
        "location": record.location,
        "description": record.description,
        "source_name": record.source_name,
        "link": record.link,
        "salary_text": record.salary_text,
        "summary_text": record.summary_text,
        "date_posted_text": record.date_posted_text,
        "salary_min": salary.min,
        "salary_max": salary.max,
        "salary_currency": salary.currency,
        "salary_period": salary.period,
        "salary_disclosed": int(salary.is_disclosed),
        "job_type": record.job_type,
        "experience_level": record.experience_level,
        "is_remote": int(record.is_remote),
        "categories": json.dumps(record.categories),
        "skills": json.dumps(record.skills),
        "quality_score": record.quality_score,
        "posted_at": record.posted_at.isoformat(),
        "scraped_at": record.scraped_at.isoformat(),
        "is_active": int(record.is_active),
    }


def _row_to_record(row: sqlite3.Row) -> NormalizedJobRecord:
    return NormalizedJobRecord(
        id=row["id"],
        title=row["title"],
        company=row["company"],
        location=row["location"],
        source_name=row["source_name"],
        description=row["description"],
        salary_range=SalaryRange(
            min=row["salary_min"],
            max=row["salary_max"],
            currency=row["salary_currency"],
            period=row["salary_period"],
            is_disclosed=bool(row["salary_disclosed"]),
        ),
        job_type=row["job_type"],
        experience_level=row["experience_level"],
        is_remote=bool(row["is_remote"]),
        categories=json.loads(row["categories"]) if row["categories"] else [],
        skills=json.loads(row["skills"]) if row["skills"] else [],
        posted_at=datetime.fromisoformat(row["posted_at"]),
        fingerprint=row["fingerprint"],
        scraped_id=row["scraped_id"],
        scraped_at=datetime.fromisoformat(row["scraped_at"]),
        salary_text=row["salary_text"],
        summary_text=row["summary_text"],
        date_posted_text=row["date_posted_text"],
        link=row["link"],
        quality_score=row["quality_score"],
        is_active=bool(row["is_active"]),
    )
