import unittest
from datetime import date, datetime, timezone

from eventdesk.access import (
    Capability,
    can,
    can_delete_user,
    navigation_for,
    require,
)
from eventdesk.db import MentionWithMember, ReportPhotoRecord, ReportRecord
from eventdesk.details import CreatorInfo, ReportDetails
from eventdesk.errors import ForbiddenError
from eventdesk.session import UserSession
from eventdesk.users import SystemUser
from eventdesk.views import member_list_view, report_detail_view, users_view
from shared.types import PhotoCategory, Role


def _session(role, user_id="u1"):
    return UserSession(
        user_id=user_id,
        email=f"{user_id}@example.com",
        name=user_id,
        role=role,
        access_token="token",
    )


def _details(created_by="u1"):
    report = ReportRecord(
        event_date=date(2024, 3, 10),
        birthday_person_name="Ana",
        box_rating=5,
        created_by=created_by,
    )
    now = datetime.now(timezone.utc)
    return ReportDetails(
        report=report,
        photos=[ReportPhotoRecord(report.id, "http://x/1.jpg", PhotoCategory.EVENT)],
        mentions=[
            MentionWithMember(
                id="m-1",
                report_id=report.id,
                member_id="bea",
                member_name="Bea",
                feedback="Great energy",
                created_at=now,
            )
        ],
        creator=CreatorInfo(name="Lia", email="lia@example.com"),
    )


class AccessTests(unittest.TestCase):
    def test_animator_capabilities(self):
        session = _session(Role.ANIMATOR)
        self.assertTrue(can(session, Capability.CREATE_REPORT))
        self.assertTrue(can(session, Capability.VIEW_MEMBERS))
        self.assertFalse(can(session, Capability.VIEW_FEEDBACK))
        self.assertFalse(can(session, Capability.DOWNLOAD_PHOTOS))
        with self.assertRaises(ForbiddenError):
            require(session, Capability.MANAGE_USERS)

    def test_navigation(self):
        self.assertEqual(
            navigation_for(_session(Role.ANIMATOR)),
            ["reports", "new_report", "members", "profile"],
        )
        self.assertEqual(
            navigation_for(_session(Role.ADMIN)),
            ["dashboard", "reports", "new_report", "members", "users", "profile"],
        )

    def test_admin_cannot_delete_self(self):
        admin = _session(Role.ADMIN)
        self.assertFalse(can_delete_user(admin, "u1"))
        self.assertTrue(can_delete_user(admin, "u2"))
        self.assertFalse(can_delete_user(_session(Role.ANIMATOR), "u2"))


class ReportDetailViewTests(unittest.TestCase):
    def test_admin_sees_feedback_and_actions(self):
        view = report_detail_view(_details(created_by="u2"), _session(Role.ADMIN))
        self.assertEqual(view.mentions[0].feedback, "Great energy")
        self.assertEqual(view.creator.email, "lia@example.com")
        self.assertTrue(view.actions.view_feedback)
        self.assertTrue(view.actions.download_photos)
        self.assertTrue(view.actions.delete)
        self.assertEqual(list(view.photos), ["event"])

    def test_author_sees_mentioned_names_without_feedback(self):
        view = report_detail_view(_details(created_by="u1"), _session(Role.ANIMATOR))
        self.assertEqual(len(view.mentions), 1)
        self.assertEqual(view.mentions[0].member_name, "Bea")
        self.assertIsNone(view.mentions[0].feedback)
        self.assertIsNone(view.creator.email)
        self.assertFalse(view.actions.view_feedback)
        self.assertFalse(view.actions.download_photos)
        self.assertFalse(view.actions.delete)

    def test_other_animator_sees_no_mentions(self):
        view = report_detail_view(_details(created_by="u2"), _session(Role.ANIMATOR))
        self.assertEqual(view.mentions, [])
        self.assertNotIn("Great energy", view.model_dump_json())


class ListViewTests(unittest.TestCase):
    def test_member_list_flags(self):
        self.assertFalse(member_list_view([], _session(Role.ANIMATOR)).can_manage)
        admin_view = member_list_view([], _session(Role.ADMIN))
        self.assertTrue(admin_view.can_manage)
        self.assertTrue(admin_view.can_view_feedback)

    def test_users_view_counts_and_delete_flags(self):
        now = datetime.now(timezone.utc)
        users = [
            SystemUser("u1", "Admin", "u1@example.com", Role.ADMIN, now),
            SystemUser("u2", "Lia", "u2@example.com", Role.ANIMATOR, now),
        ]
        view = users_view(users, _session(Role.ADMIN))
        self.assertEqual(view.counts, {"admin": 1, "animator": 1})
        self.assertEqual([u.can_delete for u in view.users], [False, True])


if __name__ == "__main__":
    unittest.main()
