# qbuilder/services/numbering.py
"""
Sequential document numbers per user and calendar year.

Quotes are numbered ``Q-YYYY-NNNN`` and projects ``P-YYYY-NNNN``. The
sequence restarts every January; numbers beyond 9999 simply grow wider.
"""
import re
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qbuilder.models.quotes.quote_models import Quote
from qbuilder.models.projects.project_models import Project

QUOTE_PREFIX = "Q"
PROJECT_PREFIX = "P"

_NUMBER_RE = re.compile(r"^([A-Z])-(\d{4})-(\d{4,})$")


def format_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:04d}"


def next_number(prefix: str, year: int, existing: list[str]) -> str:
    """Next number after the highest well-formed entry of ``existing`` for ``year``."""
    highest = 0
    for number in existing:
        match = _NUMBER_RE.match(number or "")
        if not match or match.group(1) != prefix or int(match.group(2)) != year:
            continue
        highest = max(highest, int(match.group(3)))
    return format_number(prefix, year, highest + 1)


def is_valid_number(number: str, prefix: str | None = None) -> bool:
    match = _NUMBER_RE.match(number or "")
    if not match:
        return False
    return prefix is None or match.group(1) == prefix


def year_from_number(number: str) -> int:
    match = _NUMBER_RE.match(number or "")
    if match:
        return int(match.group(2))
    return date.today().year


async def generate_quote_number(db: AsyncSession, user_id: int, today: date | None = None) -> str:
    year = (today or date.today()).year
    result = await db.scalars(
        select(Quote.quote_number).where(
            Quote.user_id == user_id,
            Quote.quote_number.like(f"{QUOTE_PREFIX}-{year}-%"),
        )
    )
    return next_number(QUOTE_PREFIX, year, list(result))


async def generate_project_number(db: AsyncSession, user_id: int, today: date | None = None) -> str:
    year = (today or date.today()).year
    result = await db.scalars(
        select(Project.project_number).where(
            Project.user_id == user_id,
            Project.project_number.like(f"{PROJECT_PREFIX}-{year}-%"),
        )
    )
    return next_number(PROJECT_PREFIX, year, list(result))
