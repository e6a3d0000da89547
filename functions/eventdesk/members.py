"""
Member roster management.
"""

from __future__ import annotations

import logging
from typing import Optional

from eventdesk.access import Capability, require
from eventdesk.db import DbClient, MemberFeedbackRecord, MemberRecord
from eventdesk.errors import ConflictError, NotFoundError, ValidationError
from eventdesk.session import UserSession
from eventdesk.storage import StorageClient, avatar_path
from shared.constants import AVATARS_BUCKET, MAX_NAME_LENGTH
from shared.types import MemberType

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "A member with this email already exists"


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError("The name is too long")
    return name


def _clean_email(email: Optional[str]) -> str:
    email = (email or "").strip()
    if email and "@" not in email:
        raise ValidationError("Please enter a valid email address")
    return email


def list_members(
    session: UserSession, db: DbClient, search: Optional[str] = None
) -> list[MemberRecord]:
    """All members ordered by name, optionally filtered by name or email."""
    require(session, Capability.VIEW_MEMBERS)
    members = db.list_members()
    term = (search or "").strip().lower()
    if not term:
        return members
    return [m for m in members if term in m.name.lower() or term in m.email.lower()]


def selectable_members(session: UserSession, db: DbClient) -> list[MemberRecord]:
    """Active members the caller can mention on a report (everyone but themselves)."""
    require(session, Capability.CREATE_REPORT)
    return [m for m in db.list_members(active_only=True) if m.email != session.email]


def create_member(
    session: UserSession,
    db: DbClient,
    name: str,
    email: str,
    member_type: MemberType = MemberType.RECREATOR,
) -> MemberRecord:
    require(session, Capability.MANAGE_MEMBERS)
    name, email = _clean_name(name), _clean_email(email)
    if not name or not email:
        raise ValidationError("Please fill in all fields")
    try:
        member = db.create_member(
            MemberRecord(name=name, email=email, member_type=member_type)
        )
    except ConflictError:
        raise ConflictError(DUPLICATE_EMAIL) from None
    logger.info("Member %s created by %s", member.id, session.user_id)
    return member


def update_member(
    session: UserSession,
    db: DbClient,
    member_id: str,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    member_type: Optional[MemberType] = None,
    active: Optional[bool] = None,
) -> MemberRecord:
    require(session, Capability.MANAGE_MEMBERS)
    if name is not None:
        name = _clean_name(name)
        if not name:
            raise ValidationError("The name cannot be empty")
    if email is not None:
        email = _clean_email(email)
        if not email:
            raise ValidationError("The email cannot be empty")
    try:
        member = db.update_member(
            member_id, name=name, email=email, member_type=member_type, active=active
        )
    except ConflictError:
        raise ConflictError(DUPLICATE_EMAIL) from None
    if not member:
        raise NotFoundError("Member not found")
    return member


def set_member_avatar(
    session: UserSession,
    db: DbClient,
    storage: StorageClient,
    member_id: str,
    filename: str,
    data: bytes,
    content_type: Optional[str] = None,
) -> MemberRecord:
    require(session, Capability.MANAGE_MEMBERS)
    if not db.get_member(member_id):
        raise NotFoundError("Member not found")
    if not filename or not data:
        raise ValidationError("Please choose an image")
    path = avatar_path(member_id, filename.rsplit("/", 1)[-1])
    storage.upload(AVATARS_BUCKET, path, data, content_type)
    return db.update_member(
        member_id, avatar_url=storage.get_public_url(AVATARS_BUCKET, path)
    )


def delete_member(session: UserSession, db: DbClient, member_id: str) -> None:
    """Remove a member and every mention written about them."""
    require(session, Capability.MANAGE_MEMBERS)
    if not db.delete_member(member_id):
        raise NotFoundError("Member not found")
    logger.info("Member %s deleted by %s", member_id, session.user_id)


def member_feedback(
    session: UserSession, db: DbClient, member_id: str
) -> list[MemberFeedbackRecord]:
    """Every piece of feedback written about a member, newest first."""
    require(session, Capability.VIEW_FEEDBACK)
    if not db.get_member(member_id):
        raise NotFoundError("Member not found")
    return db.list_member_feedback(member_id)
