"""
Report submission: validate a draft, create the report row, upload its photos
and record the per-member feedback.

The steps run in order because everything after the first one needs the new
report id. There is no transaction across them: when a later step fails the
report row stays behind and the caller gets a `SubmissionError` carrying its
id.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from eventdesk.access import Capability, require
from eventdesk.db import DbClient, MentionRecord, ReportPhotoRecord, ReportRecord
from eventdesk.errors import SubmissionError, ValidationError
from eventdesk.session import UserSession
from eventdesk.storage import StorageClient, report_photo_path
from shared.constants import (
    MAX_BOX_RATING,
    MAX_FEEDBACK_LENGTH,
    MAX_SECONDARY_RATING,
    MIN_BOX_RATING,
    REPORT_PHOTOS_BUCKET,
)
from shared.types import PhotoCategory, TransportationType

logger = logging.getLogger(__name__)


@dataclass
class PhotoUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class ReportDraft:
    """Everything the report form collects, before validation."""

    event_date: Union[date, str, None] = None
    birthday_person_name: Optional[str] = None
    box_rating: int = 0
    team_description: Optional[str] = None
    title_schedule: Optional[str] = None
    transportation_type: Union[TransportationType, str] = TransportationType.UBER
    transportation_other_details: Optional[str] = None
    transport_cost_going: Union[float, str, None] = None
    transport_cost_return: Union[float, str, None] = None
    outside_city: bool = False
    extra_hours: bool = False
    exclusivity: bool = False
    event_description: Optional[str] = None
    event_difficulty: int = 0
    event_quality: int = 0
    difficulties_problems: Optional[str] = None
    speaker_quality: int = 0
    microphone_quality: int = 0
    speaker_number: Union[int, str, None] = None
    electronics_observations: Optional[str] = None
    photos: dict = field(default_factory=dict)
    selected_members: list[str] = field(default_factory=list)
    member_feedback: dict[str, str] = field(default_factory=dict)


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_cost(value: Union[float, str, None]) -> float:
    """Parse a money amount, accepting a decimal comma ("12,50")."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        amount = float(value)
    else:
        try:
            amount = float(value.strip().replace(",", "."))
        except ValueError:
            raise ValidationError(f"Invalid amount: {value}") from None
    if amount < 0:
        raise ValidationError(f"Invalid amount: {value}")
    return amount


def _parse_event_date(value: Union[date, str, None]) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Invalid event date") from None


def _secondary_rating(name: str, value: int) -> int:
    if not isinstance(value, int) or not 0 <= value <= MAX_SECONDARY_RATING:
        raise ValidationError(f"Invalid {name.replace('_', ' ')}")
    return value


def _speaker_number(value: Union[int, str, None]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid speaker number") from None


def build_report_record(draft: ReportDraft, created_by: Optional[str]) -> ReportRecord:
    """
    Validate `draft` and turn it into a report row.

    Raises ValidationError without touching any store.
    """
    name = (draft.birthday_person_name or "").strip()
    raw_date = draft.event_date.strip() if isinstance(draft.event_date, str) else draft.event_date
    if not raw_date or not name or not draft.box_rating:
        raise ValidationError()
    if not isinstance(draft.box_rating, int) or not (
        MIN_BOX_RATING <= draft.box_rating <= MAX_BOX_RATING
    ):
        raise ValidationError("The box rating must be between 1 and 5")

    try:
        transportation = TransportationType(draft.transportation_type)
    except ValueError:
        raise ValidationError("Invalid transportation type") from None

    for text in draft.member_feedback.values():
        if text and len(text.strip()) > MAX_FEEDBACK_LENGTH:
            raise ValidationError("Feedback is too long")

    return ReportRecord(
        event_date=_parse_event_date(raw_date),
        birthday_person_name=name,
        box_rating=draft.box_rating,
        team_description=_optional_text(draft.team_description),
        created_by=created_by,
        title_schedule=_optional_text(draft.title_schedule),
        transportation_type=transportation,
        transportation_other_details=(
            _optional_text(draft.transportation_other_details)
            if transportation == TransportationType.OTHER
            else None
        ),
        transport_cost_going=parse_cost(draft.transport_cost_going),
        transport_cost_return=parse_cost(draft.transport_cost_return),
        outside_city=bool(draft.outside_city),
        extra_hours=bool(draft.extra_hours),
        exclusivity=bool(draft.exclusivity),
        event_description=_optional_text(draft.event_description),
        event_difficulty=_secondary_rating("event_difficulty", draft.event_difficulty),
        event_quality=_secondary_rating("event_quality", draft.event_quality),
        difficulties_problems=_optional_text(draft.difficulties_problems),
        speaker_quality=_secondary_rating("speaker_quality", draft.speaker_quality),
        microphone_quality=_secondary_rating("microphone_quality", draft.microphone_quality),
        speaker_number=_speaker_number(draft.speaker_number),
        electronics_observations=_optional_text(draft.electronics_observations),
    )


def normalize_photos(photos: dict) -> dict[PhotoCategory, list[PhotoUpload]]:
    """Key photo lists by `PhotoCategory`, dropping empty categories."""
    normalized: dict[PhotoCategory, list[PhotoUpload]] = {}
    for key, files in (photos or {}).items():
        try:
            category = PhotoCategory(key)
        except ValueError:
            raise ValidationError(f"Unknown photo category: {key}") from None
        if files:
            normalized.setdefault(category, []).extend(files)
    return normalized


def build_mentions(
    report_id: str, selected_members: list[str], member_feedback: dict[str, str]
) -> list[MentionRecord]:
    """
    One mention per selected member whose feedback is not blank.

    Selecting a member without writing anything about them records nothing.
    """
    mentions = []
    for member_id in dict.fromkeys(selected_members):
        text = (member_feedback.get(member_id) or "").strip()
        if text:
            mentions.append(
                MentionRecord(report_id=report_id, member_id=member_id, feedback=text)
            )
    return mentions


def upload_category_photos(
    storage: StorageClient,
    *,
    uploader_id: str,
    report_id: str,
    category: PhotoCategory,
    files: list[PhotoUpload],
    max_workers: int = 4,
) -> list[ReportPhotoRecord]:
    """Upload one category's files concurrently and return their photo rows."""

    def _upload(upload: PhotoUpload) -> ReportPhotoRecord:
        path = report_photo_path(uploader_id, report_id, category, upload.filename)
        storage.upload(REPORT_PHOTOS_BUCKET, path, upload.content, upload.content_type)
        return ReportPhotoRecord(
            report_id=report_id,
            photo_url=storage.get_public_url(REPORT_PHOTOS_BUCKET, path),
            photo_type=category,
        )

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(files)))) as executor:
        return list(executor.map(_upload, files))


def submit_report(
    session: UserSession,
    draft: ReportDraft,
    *,
    db: DbClient,
    storage: StorageClient,
    max_workers: int = 4,
) -> ReportRecord:
    require(session, Capability.CREATE_REPORT)
    record = build_report_record(draft, created_by=session.user_id)
    photos_by_category = normalize_photos(draft.photos)

    try:
        report = db.create_report(record)
    except Exception as exc:
        logger.exception("Failed to create report for %s", session.user_id)
        raise SubmissionError() from exc

    try:
        photo_rows: list[ReportPhotoRecord] = []
        for category in PhotoCategory:
            files = photos_by_category.get(category)
            if not files:
                continue
            photo_rows.extend(
                upload_category_photos(
                    storage,
                    uploader_id=session.user_id,
                    report_id=report.id,
                    category=category,
                    files=files,
                    max_workers=max_workers,
                )
            )
        if photo_rows:
            db.add_report_photos(photo_rows)

        mentions = build_mentions(report.id, draft.selected_members, draft.member_feedback)
        if mentions:
            db.add_member_mentions(mentions)
    except Exception as exc:
        logger.exception(
            "Report %s was created but its photos or mentions were not saved", report.id
        )
        raise SubmissionError(report_id=report.id) from exc

    logger.info(
        "Report %s submitted by %s (%d photos, %d mentions)",
        report.id,
        session.user_id,
        len(photo_rows),
        len(mentions),
    )
    return report
