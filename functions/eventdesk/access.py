"""
Role-based capabilities.

Every privileged affordance and every privileged action goes through `can()`
or `require()`, so what the API advertises and what it allows never diverge.
"""

from __future__ import annotations

from enum import Enum

from eventdesk.errors import ForbiddenError
from eventdesk.session import UserSession
from shared.types import Role


class Capability(str, Enum):
    CREATE_REPORT = "create_report"
    VIEW_REPORTS = "view_reports"
    VIEW_MEMBERS = "view_members"
    EDIT_OWN_PROFILE = "edit_own_profile"
    VIEW_FEEDBACK = "view_feedback"
    DOWNLOAD_PHOTOS = "download_photos"
    DELETE_REPORT = "delete_report"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_USERS = "manage_users"
    VIEW_DASHBOARD = "view_dashboard"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.ANIMATOR: frozenset(
        {
            Capability.CREATE_REPORT,
            Capability.VIEW_REPORTS,
            Capability.VIEW_MEMBERS,
            Capability.EDIT_OWN_PROFILE,
        }
    ),
}

# (section, capability needed to see it), in menu order.
NAVIGATION = (
    ("dashboard", Capability.VIEW_DASHBOARD),
    ("reports", Capability.VIEW_REPORTS),
    ("new_report", Capability.CREATE_REPORT),
    ("members", Capability.VIEW_MEMBERS),
    ("users", Capability.MANAGE_USERS),
    ("profile", Capability.EDIT_OWN_PROFILE),
)


def capabilities_for(role: Role) -> frozenset[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def can(session: UserSession, capability: Capability) -> bool:
    return capability in capabilities_for(session.role)


def require(session: UserSession, capability: Capability) -> None:
    if not can(session, capability):
        raise ForbiddenError()


def can_delete_user(session: UserSession, target_user_id: str) -> bool:
    """Admins may delete any system user except themselves."""
    return can(session, Capability.MANAGE_USERS) and session.user_id != target_user_id


def navigation_for(session: UserSession) -> list[str]:
    return [section for section, capability in NAVIGATION if can(session, capability)]
