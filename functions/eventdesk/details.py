"""
Read side of a report: photos, member mentions and creator, fetched together.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional

from eventdesk.db import DbClient, MentionWithMember, ReportPhotoRecord, ReportRecord
from eventdesk.errors import NotFoundError
from shared.constants import UNKNOWN_CREATOR_NAME
from shared.types import PhotoCategory


@dataclass
class CreatorInfo:
    name: str
    email: str


@dataclass
class ReportDetails:
    report: ReportRecord
    photos: list[ReportPhotoRecord]
    mentions: list[MentionWithMember]
    creator: Optional[CreatorInfo] = None

    def photos_by_category(self) -> dict[PhotoCategory, list[ReportPhotoRecord]]:
        grouped: dict[PhotoCategory, list[ReportPhotoRecord]] = {}
        for photo in self.photos:
            grouped.setdefault(photo.photo_type, []).append(photo)
        return grouped


def fetch_creator(db: DbClient, user_id: Optional[str]) -> Optional[CreatorInfo]:
    if not user_id:
        return None
    profile = db.get_profile(user_id)
    if not profile:
        return None
    return CreatorInfo(name=profile.name, email=profile.email)


def fetch_report_details(db: DbClient, report_id: str) -> ReportDetails:
    """
    Load a report and, in parallel, its photos, its mentions (with member
    names) and its creator. Empty photo or mention lists and a missing
    creator are normal results.
    """
    report = db.get_report(report_id)
    if not report:
        raise NotFoundError("Report not found")

    with ThreadPoolExecutor(max_workers=3) as executor:
        photos = executor.submit(db.list_report_photos, report.id)
        mentions = executor.submit(db.list_report_mentions, report.id)
        creator = executor.submit(fetch_creator, db, report.created_by)
        return ReportDetails(
            report=report,
            photos=photos.result(),
            mentions=mentions.result(),
            creator=creator.result(),
        )


def creator_names(db: DbClient, reports: Iterable[ReportRecord]) -> dict[str, str]:
    """Map each distinct `created_by` to a display name, looked up concurrently."""
    user_ids = list(dict.fromkeys(r.created_by for r in reports if r.created_by))
    if not user_ids:
        return {}
    with ThreadPoolExecutor(max_workers=min(8, len(user_ids))) as executor:
        creators = list(executor.map(lambda uid: fetch_creator(db, uid), user_ids))
    return {
        uid: creator.name if creator else UNKNOWN_CREATOR_NAME
        for uid, creator in zip(user_ids, creators)
    }
