"""
Report listing, deletion and bulk photo download.
"""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
from typing import Optional

from eventdesk.access import Capability, require
from eventdesk.db import DbClient, ReportRecord
from eventdesk.details import creator_names
from eventdesk.errors import NotFoundError
from eventdesk.session import UserSession
from eventdesk.storage import StorageClient
from shared.constants import REPORT_PHOTOS_BUCKET, UNKNOWN_CREATOR_NAME

logger = logging.getLogger(__name__)


def list_reports(
    session: UserSession,
    db: DbClient,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> list[tuple[ReportRecord, str]]:
    """
    Newest reports first, each paired with its creator's display name.

    `search` matches the honoree or the creator name, ignoring case. The limit
    applies to the filtered list.
    """
    require(session, Capability.VIEW_REPORTS)
    term = (search or "").strip().lower()
    reports = db.list_reports(limit=None if term else limit)
    names = creator_names(db, reports)
    pairs = [
        (report, names.get(report.created_by, UNKNOWN_CREATOR_NAME))
        for report in reports
    ]
    if not term:
        return pairs
    matches = [
        (report, name)
        for report, name in pairs
        if term in report.birthday_person_name.lower() or term in name.lower()
    ]
    return matches[:limit] if limit else matches


def delete_report(session: UserSession, db: DbClient, report_id: str) -> None:
    """Delete a report together with its mentions and photo rows."""
    require(session, Capability.DELETE_REPORT)
    if not db.get_report(report_id):
        raise NotFoundError("Report not found")
    db.delete_report_mentions(report_id)
    db.delete_report_photos(report_id)
    db.delete_report(report_id)
    logger.info("Report %s deleted by %s", report_id, session.user_id)


def build_photo_archive(
    session: UserSession, db: DbClient, storage: StorageClient, report_id: str
) -> bytes:
    """
    Zip every photo of a report. Entries are named
    `{category}/{index}-{original file name}`.
    """
    require(session, Capability.DOWNLOAD_PHOTOS)
    if not db.get_report(report_id):
        raise NotFoundError("Report not found")
    photos = db.list_report_photos(report_id)
    if not photos:
        raise NotFoundError("This report has no photos")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for index, photo in enumerate(photos, start=1):
            path = storage.path_from_public_url(REPORT_PHOTOS_BUCKET, photo.photo_url)
            if path is None:
                logger.warning("Photo %s has a foreign URL, skipping", photo.id)
                continue
            data = storage.get_bytes(REPORT_PHOTOS_BUCKET, path)
            name = f"{photo.photo_type.value}/{index:03d}-{posixpath.basename(path)}"
            archive.writestr(name, data)
    return buffer.getvalue()
