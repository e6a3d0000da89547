"""
Privileged user-management operations.

These run only on the server with the service-role auth client. Each one
resolves the caller from the bearer token, insists on the admin role, validates
its input and only then acts.
"""

from __future__ import annotations

import logging
from typing import Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from eventdesk.auth import AuthClient, AuthUser
from eventdesk.db import DbClient, MemberRecord, ProfileRecord
from eventdesk.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from eventdesk.schemas import CreateUserRequest, DeleteUserRequest, UpdateUserRequest
from shared.constants import MIN_PASSWORD_LENGTH
from shared.types import MemberType, Role

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Missing required fields"

RequestT = TypeVar("RequestT", bound=BaseModel)


def resolve_admin(
    access_token: Optional[str], *, auth: AuthClient, db: DbClient, action: str
) -> AuthUser:
    if not access_token:
        raise UnauthorizedError()
    caller = auth.get_user(access_token)
    if not caller:
        raise UnauthorizedError()
    if db.get_role(caller.id) != Role.ADMIN:
        logger.warning("Non-admin %s tried to %s a user", caller.id, action)
        raise ForbiddenError(f"Only admins can {action} users")
    return caller


def _is_blank(error: dict) -> bool:
    value = error.get("input")
    return (
        error["type"] == "missing"
        or value is None
        or (isinstance(value, str) and not value.strip())
    )


def _error_message(errors: list[dict]) -> str:
    if any(_is_blank(error) for error in errors):
        return MISSING_FIELDS
    fields = {error["loc"][0] for error in errors if error["loc"]}
    if "role" in fields:
        return "Invalid role"
    if "password" in fields:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if "email" in fields:
        return "Invalid email address"
    return MISSING_FIELDS


def parse_request(model: type[RequestT], payload: dict) -> RequestT:
    """Validate a function body, reporting the first problem the way callers expect."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_error_message(exc.errors())) from None


def _mirror_member(db: DbClient, name: str, email: str) -> None:
    """Keep an animator's roster entry in step with their account."""
    existing = db.get_member_by_email(email)
    if existing:
        db.update_member(
            existing.id, name=name, member_type=MemberType.ANIMATOR, active=True
        )
    else:
        db.create_member(
            MemberRecord(name=name, email=email, member_type=MemberType.ANIMATOR)
        )


def create_user(
    access_token: Optional[str], payload: dict, *, auth: AuthClient, db: DbClient
) -> dict:
    caller = resolve_admin(access_token, auth=auth, db=db, action="create")

    request = parse_request(CreateUserRequest, payload)

    user = auth.admin_create_user(request.email, request.password, request.name)
    db.create_profile(
        ProfileRecord(user_id=user.id, name=request.name, email=request.email)
    )
    db.set_role(user.id, request.role)
    if request.role == Role.ANIMATOR:
        _mirror_member(db, request.name, request.email)

    logger.info("User %s (%s) created by %s", user.id, request.role.value, caller.id)
    return {"success": True}


def update_user(
    access_token: Optional[str], payload: dict, *, auth: AuthClient, db: DbClient
) -> dict:
    caller = resolve_admin(access_token, auth=auth, db=db, action="update")

    request = parse_request(UpdateUserRequest, payload)

    profile = db.get_profile(request.user_id)
    if not profile:
        raise NotFoundError("User not found")

    # The auth identity goes first so a failure leaves the store untouched.
    auth.admin_update_user(request.user_id, request.name)
    db.update_profile(request.user_id, name=request.name)
    db.set_role(request.user_id, request.role)
    if profile.email:
        db.update_members_by_email(
            profile.email, name=request.name, member_type=MemberType(request.role.value)
        )

    logger.info("User %s updated by %s", request.user_id, caller.id)
    return {"success": True}


def delete_user(
    access_token: Optional[str], payload: dict, *, auth: AuthClient, db: DbClient
) -> dict:
    caller = resolve_admin(access_token, auth=auth, db=db, action="delete")

    user_id = parse_request(DeleteUserRequest, payload).user_id
    if user_id == caller.id:
        raise ValidationError("You cannot delete your own account")

    auth.admin_delete_user(user_id)
    db.delete_role(user_id)
    db.delete_profile(user_id)

    logger.info("User %s deleted by %s", user_id, caller.id)
    return {"success": True}
