"""
normalizer.py — Turns a RawJobRecord into a structured NormalizedJobRecord.

Every function here is pure: no I/O, no clock reads except through the
record's own scraped_at, so normalizing the same raw record twice gives the
same output. All classification is keyword based and the order of the rule
lists below is significant: the first matching rule wins.
"""

import hashlib
import hmac
import re
from datetime import datetime
from typing import Optional

from config import SCRAPED_ID_SALT
from deduplication import generate_fingerprint
from models import NormalizedJobRecord, RawJobRecord, SalaryRange

NO_DESCRIPTION = "No description available"

# --- Salary ---

# Matches 20000, 20,000 and 20 000
_AMOUNT = r"(\d{1,3}(?:[, ]\d{3})+|\d+)"

SALARY_PATTERNS = [
    re.compile(rf"R\s*{_AMOUNT}\s*-\s*R\s*{_AMOUNT}", re.IGNORECASE),   # R 20,000 - R 30,000
    re.compile(rf"R\s*{_AMOUNT}\s*per\s*(?:month|year|annum)", re.IGNORECASE),  # R 25,000 per month
    re.compile(rf"{_AMOUNT}\s*-\s*{_AMOUNT}\s*ZAR", re.IGNORECASE),     # 20000 - 30000 ZAR
]

# --- Classification rules (priority order) ---

JOB_TYPE_RULES = [
    ("part-time", ["part-time", "part time"]),
    ("contract", ["contract"]),
    ("temporary", ["temporary", "temp"]),
    ("internship", ["intern", "graduate"]),
    ("remote", ["remote", "work from home"]),
    ("hybrid", ["hybrid"]),
]
DEFAULT_JOB_TYPE = "full-time"

EXPERIENCE_RULES = [
    ("entry", ["junior", "entry level", "entry-level", "graduate"]),
    ("senior", ["senior", "lead", "principal", "head of"]),
    ("executive", ["executive", "director", "vp", "c-level"]),
    ("mid", ["mid", "intermediate"]),
]
DEFAULT_EXPERIENCE = "not-specified"

REMOTE_KEYWORDS = ["remote", "work from home", "wfh", "virtual", "anywhere"]

CATEGORY_KEYWORDS = {
    "IT": ["software", "developer", "programmer", "tech", "engineer", "system", "network"],
    "Finance": ["finance", "accounting", "bank", "financial", "audit", "tax"],
    "Marketing": ["marketing", "digital", "social media", "brand", "advertising"],
    "Sales": ["sales", "account manager", "business development"],
    "Healthcare": ["health", "medical", "nurse", "doctor", "hospital"],
    "Education": ["education", "teacher", "lecturer", "academic", "school"],
    "Engineering": ["engineer", "technical", "manufacturing", "production"],
}
DEFAULT_CATEGORIES = ["General"]

SKILL_VOCABULARY = [
    "JavaScript", "Python", "Java", "C#", "PHP", "SQL", "React", "Angular", "Vue",
    "Node.js", "Spring", "Django", "Laravel", "AWS", "Azure", "Docker", "Kubernetes",
    "Machine Learning", "Data Analysis", "Project Management", "Agile", "Scrum",
    "SEO", "Digital Marketing", "Social Media", "Content Writing", "Graphic Design",
    "Accounting", "Financial Analysis", "Risk Management", "Sales", "Negotiation",
    "Customer Service", "Communication", "Leadership", "Teamwork", "Problem Solving",
]

# --- Dates ---

RELATIVE_DATE_MARKERS = ["ago", "today", "just"]

DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
]


def normalize_record(raw: RawJobRecord) -> NormalizedJobRecord:
    """Build the structured record for one scraped listing."""
    title = clean_text(raw.title)
    company = clean_text(raw.company)
    location = clean_text(raw.location)
    summary = clean_text(raw.summary_text)
    match_text = f"{title} {summary}"

    return NormalizedJobRecord(
        title=title,
        company=company,
        location=location,
        source_name=raw.source_name,
        description=summary or NO_DESCRIPTION,
        salary_range=parse_salary(raw.salary_text),
        job_type=detect_job_type(match_text),
        experience_level=detect_experience_level(match_text),
        is_remote=is_remote_job(f"{match_text} {location}"),
        categories=detect_categories(match_text),
        skills=extract_skills(match_text),
        posted_at=normalize_date(raw.date_posted_text, now=raw.scraped_at),
        fingerprint=generate_fingerprint(title, company, location),
        scraped_id=generate_scraped_id(title, company, location, raw.link),
        scraped_at=raw.scraped_at,
        salary_text=raw.salary_text,
        summary_text=raw.summary_text,
        date_posted_text=raw.date_posted_text,
        link=raw.link,
    )


def clean_text(value: Optional[str]) -> str:
    """Collapse tabs, newlines and runs of spaces."""
    if not value:
        return ""
    return re.sub(r"\s+", " ", value).strip()


def parse_salary(salary_text: Optional[str]) -> SalaryRange:
    """Parse South African salary strings. Undisclosed when nothing matches."""
    if not salary_text:
        return SalaryRange()

    for pattern in SALARY_PATTERNS:
        match = pattern.search(salary_text)
        if not match:
            continue
        amounts = [_to_int(g) for g in match.groups() if g]
        low, high = min(amounts), max(amounts)
        lowered = salary_text.lower()
        period = "yearly" if "year" in lowered or "annum" in lowered else "monthly"
        return SalaryRange(min=low, max=high, currency="ZAR", period=period, is_disclosed=True)

    return SalaryRange()


def _to_int(amount: str) -> int:
    return int(re.sub(r"[, ]", "", amount))


def detect_job_type(text: str) -> str:
    return _first_rule_match(text, JOB_TYPE_RULES, DEFAULT_JOB_TYPE)


def detect_experience_level(text: str) -> str:
    return _first_rule_match(text, EXPERIENCE_RULES, DEFAULT_EXPERIENCE)


def is_remote_job(text: str) -> bool:
    return _has_any_keyword(text.lower(), REMOTE_KEYWORDS)


def detect_categories(text: str) -> list[str]:
    """Every category with at least one keyword hit, in table order."""
    lowered = text.lower()
    categories = [
        category for category, keywords in CATEGORY_KEYWORDS.items()
        if _has_any_keyword(lowered, keywords)
    ]
    return categories or list(DEFAULT_CATEGORIES)


def extract_skills(text: str) -> list[str]:
    """Canonical skill names found in the text, in vocabulary order."""
    lowered = text.lower()
    return [skill for skill in SKILL_VOCABULARY if skill.lower() in lowered]


def normalize_date(date_text: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Best-effort posting date. Relative phrases ("2 days ago", "Just posted",
    "today") and anything unparseable resolve to `now`. Never raises.
    """
    if now is None:
        now = datetime.now()
    if not date_text:
        return now

    text = date_text.strip()
    lowered = text.lower()
    if any(marker in lowered for marker in RELATIVE_DATE_MARKERS):
        return now

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return now


def generate_scraped_id(title: str, company: str, location: str, link: Optional[str]) -> str:
    """Stable signature for a listing, used as the source-side id when persisting."""
    payload = "|".join([title, company, location, link or ""]).encode("utf-8")
    return hmac.new(SCRAPED_ID_SALT.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def _first_rule_match(text: str, rules: list[tuple[str, list[str]]], default: str) -> str:
    lowered = text.lower()
    for label, keywords in rules:
        if _has_any_keyword(lowered, keywords):
            return label
    return default


def _has_any_keyword(text: str, keywords: list[str]) -> bool:
    """Check if any keyword appears in the text."""
    for keyword in keywords:
        if keyword in text:
            return True
    return False
