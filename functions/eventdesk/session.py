"""
Per-request session context and the self-service account operations.

A `UserSession` is built from the caller's bearer token for every request and
passed explicitly to the operations that need to know who is calling.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from eventdesk.auth import AuthClient, AuthSession
from eventdesk.db import DbClient
from eventdesk.errors import UnauthorizedError, ValidationError
from eventdesk.storage import StorageClient, avatar_path
from shared.constants import AVATARS_BUCKET
from shared.types import Role

logger = logging.getLogger(__name__)


@dataclass
class UserSession:
    user_id: str
    email: str
    name: str
    role: Role
    access_token: str
    avatar_url: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def load_session(
    access_token: Optional[str], *, auth: AuthClient, db: DbClient
) -> UserSession:
    """
    Resolve the caller behind `access_token`.

    A caller without a `user_roles` row gets the least-privileged role.
    """
    if not access_token:
        raise UnauthorizedError()
    user = auth.get_user(access_token)
    if not user:
        raise UnauthorizedError()
    profile = db.get_profile(user.id)
    role = db.get_role(user.id) or Role.ANIMATOR
    return UserSession(
        user_id=user.id,
        email=profile.email if profile else (user.email or ""),
        name=profile.name if profile else (user.name or user.email or ""),
        role=role,
        access_token=access_token,
        avatar_url=profile.avatar_url if profile else None,
    )


def sign_in(
    email: str, password: str, *, auth: AuthClient, db: DbClient
) -> tuple[AuthSession, UserSession]:
    email = (email or "").strip()
    if not email or not password:
        raise ValidationError()
    auth_session = auth.sign_in(email, password)
    logger.info("User %s signed in", auth_session.user.id)
    return auth_session, load_session(auth_session.access_token, auth=auth, db=db)


def sign_out(session: UserSession, *, auth: AuthClient) -> None:
    auth.sign_out(session.access_token)


def request_password_reset(email: str, redirect_to: str, *, auth: AuthClient) -> None:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Please enter your email address")
    auth.request_password_reset(email, redirect_to)


def update_own_email(
    session: UserSession, new_email: str, *, auth: AuthClient, db: DbClient
) -> bool:
    """
    Request an email change for the caller.

    Returns False when the address is unchanged. Otherwise the auth service
    sends a confirmation message to the new address and the profile copy is
    updated right away.
    """
    new_email = (new_email or "").strip()
    if not new_email or "@" not in new_email:
        raise ValidationError("Please enter a valid email address")
    if new_email == session.email:
        return False
    auth.update_email(session.access_token, new_email)
    db.update_profile(session.user_id, email=new_email)
    session.email = new_email
    return True


def upload_avatar(
    session: UserSession,
    filename: str,
    data: bytes,
    content_type: Optional[str] = None,
    *,
    db: DbClient,
    storage: StorageClient,
) -> str:
    filename = os.path.basename(filename or "")
    if not filename or not data:
        raise ValidationError("Please choose an image")
    path = avatar_path(session.user_id, filename)
    storage.upload(AVATARS_BUCKET, path, data, content_type)
    url = storage.get_public_url(AVATARS_BUCKET, path)
    db.update_profile(session.user_id, avatar_url=url)
    session.avatar_url = url
    return url
