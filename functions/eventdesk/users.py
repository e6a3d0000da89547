"""
System users for administrators: the listing, and account changes made
through the privileged functions with the caller's own token.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from eventdesk.access import Capability, can_delete_user, require
from eventdesk.db import DbClient
from eventdesk.errors import ValidationError
from eventdesk.functions_client import FunctionsClient
from eventdesk.session import UserSession
from shared.types import Role


@dataclass
class SystemUser:
    user_id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    avatar_url: Optional[str] = None


def list_system_users(session: UserSession, db: DbClient) -> list[SystemUser]:
    """Profiles joined with their roles; a user without a role row is an animator."""
    require(session, Capability.MANAGE_USERS)
    roles = {record.user_id: record.role for record in db.list_roles()}
    return [
        SystemUser(
            user_id=profile.user_id,
            name=profile.name,
            email=profile.email,
            role=roles.get(profile.user_id, Role.ANIMATOR),
            created_at=profile.created_at,
            avatar_url=profile.avatar_url,
        )
        for profile in db.list_profiles()
    ]


def role_counts(users: list[SystemUser]) -> dict[Role, int]:
    counts = Counter(user.role for user in users)
    return {role: counts.get(role, 0) for role in Role}


def create_system_user(
    session: UserSession,
    functions: FunctionsClient,
    *,
    name: str,
    email: str,
    password: str,
    role: Role,
) -> None:
    require(session, Capability.MANAGE_USERS)
    functions.create_user(
        session.access_token, name=name, email=email, password=password, role=role
    )


def update_system_user(
    session: UserSession,
    functions: FunctionsClient,
    user_id: str,
    *,
    name: str,
    role: Role,
) -> None:
    require(session, Capability.MANAGE_USERS)
    functions.update_user(session.access_token, user_id=user_id, name=name, role=role)


def delete_system_user(
    session: UserSession, functions: FunctionsClient, user_id: str
) -> None:
    require(session, Capability.MANAGE_USERS)
    if not can_delete_user(session, user_id):
        raise ValidationError("You cannot delete your own account")
    functions.delete_user(session.access_token, user_id)
