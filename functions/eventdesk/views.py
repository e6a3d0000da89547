"""
Role-shaped API payloads.

Admin-only data (individual feedback, photo downloads, management actions) is
left out of the payload for everyone else rather than merely flagged, so a
non-admin response never carries it.
"""

from __future__ import annotations

from eventdesk.access import Capability, can, can_delete_user, capabilities_for, navigation_for
from eventdesk.dashboard import DashboardSummary
from eventdesk.db import MemberFeedbackRecord, MemberRecord, ReportRecord
from eventdesk.details import ReportDetails
from eventdesk.schemas import (
    CreatorItem,
    DashboardResponse,
    ListMembersResponse,
    ListReportsResponse,
    ListUsersResponse,
    MeResponse,
    MemberFeedbackItem,
    MemberFeedbackResponse,
    MemberItem,
    MentionItem,
    PhotoItem,
    ReportActions,
    ReportDetailResponse,
    ReportSummary,
    SystemUserItem,
)
from eventdesk.session import UserSession
from eventdesk.users import SystemUser, role_counts


def me_view(session: UserSession) -> MeResponse:
    return MeResponse(
        user_id=session.user_id,
        name=session.name,
        email=session.email,
        role=session.role,
        avatar_url=session.avatar_url,
        capabilities=sorted(c.value for c in capabilities_for(session.role)),
        navigation=navigation_for(session),
    )


def report_actions(session: UserSession) -> ReportActions:
    return ReportActions(
        view_feedback=can(session, Capability.VIEW_FEEDBACK),
        download_photos=can(session, Capability.DOWNLOAD_PHOTOS),
        delete=can(session, Capability.DELETE_REPORT),
    )


def report_summary(
    report: ReportRecord, creator_name: str, session: UserSession
) -> ReportSummary:
    return ReportSummary(
        id=report.id,
        event_date=report.event_date,
        birthday_person_name=report.birthday_person_name,
        box_rating=report.box_rating,
        team_description=report.team_description,
        created_at=report.created_at,
        creator_name=creator_name,
        actions=report_actions(session),
    )


def report_list_view(
    rows: list[tuple[ReportRecord, str]], session: UserSession
) -> ListReportsResponse:
    return ListReportsResponse(
        reports=[report_summary(report, name, session) for report, name in rows],
        can_create=can(session, Capability.CREATE_REPORT),
    )


def _visible_mentions(details: ReportDetails, session: UserSession) -> list[MentionItem]:
    if can(session, Capability.VIEW_FEEDBACK):
        return [
            MentionItem(
                id=m.id,
                member_id=m.member_id,
                member_name=m.member_name,
                feedback=m.feedback,
            )
            for m in details.mentions
        ]
    # Authors see who they mentioned on their own reports, never the text.
    if details.report.created_by != session.user_id:
        return []
    return [
        MentionItem(id=m.id, member_id=m.member_id, member_name=m.member_name)
        for m in details.mentions
    ]


def report_detail_view(details: ReportDetails, session: UserSession) -> ReportDetailResponse:
    is_admin = can(session, Capability.VIEW_FEEDBACK)
    creator = None
    if details.creator:
        creator = CreatorItem(
            name=details.creator.name,
            email=details.creator.email if is_admin else None,
        )
    return ReportDetailResponse(
        report=details.report.as_dict(),
        creator=creator,
        photos={
            category.value: [
                PhotoItem(id=p.id, photo_url=p.photo_url, photo_type=p.photo_type.value)
                for p in photos
            ]
            for category, photos in details.photos_by_category().items()
        },
        mentions=_visible_mentions(details, session),
        actions=report_actions(session),
    )


def member_item(member: MemberRecord) -> MemberItem:
    return MemberItem(
        id=member.id,
        name=member.name,
        email=member.email,
        member_type=member.member_type,
        active=member.active,
        avatar_url=member.avatar_url,
    )


def member_list_view(
    members: list[MemberRecord], session: UserSession
) -> ListMembersResponse:
    return ListMembersResponse(
        members=[member_item(m) for m in members],
        can_manage=can(session, Capability.MANAGE_MEMBERS),
        can_view_feedback=can(session, Capability.VIEW_FEEDBACK),
    )


def member_feedback_view(
    member_id: str, feedback: list[MemberFeedbackRecord]
) -> MemberFeedbackResponse:
    return MemberFeedbackResponse(
        member_id=member_id,
        feedback=[
            MemberFeedbackItem(
                id=item.id,
                report_id=item.report_id,
                feedback=item.feedback,
                created_at=item.created_at,
                birthday_person_name=item.birthday_person_name,
                event_date=item.event_date,
            )
            for item in feedback
        ],
    )


def dashboard_view(summary: DashboardSummary, session: UserSession) -> DashboardResponse:
    return DashboardResponse(
        total_reports=summary.total_reports,
        average_rating=summary.average_rating,
        reports_this_month=summary.reports_this_month,
        recent_reports=[
            report_summary(report, name, session)
            for report, name in summary.recent_reports
        ],
    )


def users_view(users: list[SystemUser], session: UserSession) -> ListUsersResponse:
    return ListUsersResponse(
        users=[
            SystemUserItem(
                user_id=user.user_id,
                name=user.name,
                email=user.email,
                role=user.role,
                created_at=user.created_at,
                avatar_url=user.avatar_url,
                can_delete=can_delete_user(session, user.user_id),
            )
            for user in users
        ],
        counts={role.value: count for role, count in role_counts(users).items()},
    )
