# File: civic_issues/services/identifiers.py
# Project: civic-issues-backend
"""Human-readable codes: ``RPT-20250601-0003`` and ``EMR-MED-20250601-0001``.

The sequence is the number of records already created on the same local
day plus one. Two concurrent creations can compute the same value; the
unique index on the code column rejects the second insert.
"""

from datetime import date, datetime, time
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from civic_issues.core.clock import local_now
from civic_issues.models.emergency import Emergency, EmergencyType
from civic_issues.models.report import Report


def day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    end = datetime.combine(now.date(), time(23, 59, 59, 999000), tzinfo=now.tzinfo)
    return start, end


def format_report_code(day: date, seq: int) -> str:
    return f"RPT-{day:%Y%m%d}-{seq:04d}"


def format_emergency_code(emergency_type, day: date, seq: int) -> str:
    kind = emergency_type.value if isinstance(emergency_type, EmergencyType) else str(emergency_type)
    return f"EMR-{kind[:3].upper()}-{day:%Y%m%d}-{seq:04d}"


def _count_same_day(db: Session, model, now: datetime) -> int:
    start, end = day_bounds(now)
    # deleted rows still hold their codes, so they count too
    stmt = (
        select(func.count(model.id))
        .where(model.created_at >= start, model.created_at <= end)
        .execution_options(include_deleted=True)
    )
    return db.scalar(stmt) or 0


def next_report_code(db: Session, now: Optional[datetime] = None) -> str:
    now = now or local_now()
    return format_report_code(now.date(), _count_same_day(db, Report, now) + 1)


def next_emergency_code(db: Session, emergency_type, now: Optional[datetime] = None) -> str:
    now = now or local_now()
    return format_emergency_code(emergency_type, now.date(), _count_same_day(db, Emergency, now) + 1)
