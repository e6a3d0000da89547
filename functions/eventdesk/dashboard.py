"""
Admin dashboard aggregates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from eventdesk.access import Capability, require
from eventdesk.db import DbClient, ReportRecord
from eventdesk.details import creator_names
from eventdesk.session import UserSession
from shared.constants import DASHBOARD_RECENT_REPORTS, UNKNOWN_CREATOR_NAME


@dataclass
class DashboardSummary:
    total_reports: int
    average_rating: float
    reports_this_month: int
    recent_reports: list[tuple[ReportRecord, str]] = field(default_factory=list)


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def average_rating(ratings: list[int]) -> float:
    """Mean rating rounded to one decimal, 0 when there is nothing to average."""
    if not ratings:
        return 0.0
    return round(sum(ratings) / len(ratings), 1)


def dashboard_summary(
    session: UserSession, db: DbClient, now: Optional[datetime] = None
) -> DashboardSummary:
    require(session, Capability.VIEW_DASHBOARD)
    now = now or datetime.now(timezone.utc)
    recent = db.list_reports(limit=DASHBOARD_RECENT_REPORTS)
    names = creator_names(db, recent)
    return DashboardSummary(
        total_reports=db.count_reports(),
        average_rating=average_rating(db.list_box_ratings()),
        reports_this_month=db.count_reports(since=start_of_month(now)),
        recent_reports=[
            (report, names.get(report.created_by, UNKNOWN_CREATOR_NAME))
            for report in recent
        ],
    )
