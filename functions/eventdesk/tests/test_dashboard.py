import unittest
from datetime import date, datetime, timezone

from eventdesk.dashboard import average_rating, dashboard_summary, start_of_month
from eventdesk.db import InMemoryDbClient, ProfileRecord, ReportRecord
from eventdesk.errors import ForbiddenError
from eventdesk.session import UserSession
from eventdesk.users import list_system_users, role_counts
from shared.types import Role

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _session(role, user_id="admin"):
    return UserSession(
        user_id=user_id,
        email=f"{user_id}@example.com",
        name=user_id,
        role=role,
        access_token="token",
    )


class DashboardTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def _report(self, rating, created_at, created_by=None):
        record = ReportRecord(
            event_date=date(2024, 3, 10),
            birthday_person_name="Ana",
            box_rating=rating,
            created_by=created_by,
        )
        record.created_at = created_at
        return self.db.create_report(record)

    def test_average_rating(self):
        self.assertEqual(average_rating([]), 0.0)
        self.assertEqual(average_rating([5, 4, 4]), 4.3)
        self.assertEqual(average_rating([3]), 3.0)

    def test_start_of_month(self):
        self.assertEqual(
            start_of_month(NOW), datetime(2024, 3, 1, tzinfo=timezone.utc)
        )

    def test_summary(self):
        self.db.create_profile(ProfileRecord(user_id="u1", name="Lia", email="lia@example.com"))
        self._report(5, datetime(2024, 3, 1, tzinfo=timezone.utc), created_by="u1")
        self._report(4, datetime(2024, 3, 14, tzinfo=timezone.utc), created_by="u1")
        self._report(4, datetime(2024, 2, 28, tzinfo=timezone.utc), created_by="ghost")

        summary = dashboard_summary(_session(Role.ADMIN), self.db, now=NOW)
        self.assertEqual(summary.total_reports, 3)
        self.assertEqual(summary.average_rating, 4.3)
        self.assertEqual(summary.reports_this_month, 2)
        self.assertEqual([name for _, name in summary.recent_reports], ["Lia", "Lia", "User"])

    def test_recent_reports_are_capped(self):
        for day in range(1, 8):
            self._report(5, datetime(2024, 3, day, tzinfo=timezone.utc))
        summary = dashboard_summary(_session(Role.ADMIN), self.db, now=NOW)
        self.assertEqual(len(summary.recent_reports), 5)
        self.assertEqual(summary.recent_reports[0][0].created_at.day, 7)

    def test_empty_dashboard(self):
        summary = dashboard_summary(_session(Role.ADMIN), self.db, now=NOW)
        self.assertEqual(summary.total_reports, 0)
        self.assertEqual(summary.average_rating, 0.0)
        self.assertEqual(summary.recent_reports, [])

    def test_animator_has_no_dashboard(self):
        with self.assertRaises(ForbiddenError):
            dashboard_summary(_session(Role.ANIMATOR, "u1"), self.db, now=NOW)


class SystemUsersTests(unittest.TestCase):
    def test_users_default_to_animator(self):
        db = InMemoryDbClient()
        db.create_profile(ProfileRecord(user_id="admin", name="Admin", email="a@example.com"))
        db.create_profile(ProfileRecord(user_id="u1", name="Lia", email="l@example.com"))
        db.create_profile(ProfileRecord(user_id="u2", name="Leo", email="leo@example.com"))
        db.set_role("admin", Role.ADMIN)
        db.set_role("u1", Role.ANIMATOR)

        users = list_system_users(_session(Role.ADMIN), db)
        roles = {user.user_id: user.role for user in users}
        self.assertEqual(roles["u2"], Role.ANIMATOR)
        self.assertEqual(role_counts(users), {Role.ADMIN: 1, Role.ANIMATOR: 2})

        with self.assertRaises(ForbiddenError):
            list_system_users(_session(Role.ANIMATOR, "u1"), db)


if __name__ == "__main__":
    unittest.main()
