import re
import unittest
from datetime import date

from eventdesk.db import InMemoryDbClient, MemberRecord
from eventdesk.errors import SubmissionError, TransientError, ValidationError
from eventdesk.session import UserSession
from eventdesk.storage import InMemoryStorageClient
from eventdesk.submission import (
    PhotoUpload,
    ReportDraft,
    build_mentions,
    build_report_record,
    parse_cost,
    submit_report,
)
from shared.constants import REPORT_PHOTOS_BUCKET
from shared.types import PhotoCategory, Role, TransportationType


def _session(role=Role.ANIMATOR):
    return UserSession(
        user_id="u1",
        email="lia@example.com",
        name="Lia",
        role=role,
        access_token="token",
    )


class FailingUploadStorage(InMemoryStorageClient):
    def upload(self, bucket, path, data, content_type=None):
        raise TransientError("Could not upload the file")


class FailingCreateDb(InMemoryDbClient):
    def create_report(self, report):
        raise TransientError()


class BuildReportRecordTests(unittest.TestCase):
    def test_missing_required_fields(self):
        for draft in (
            ReportDraft(event_date="2024-03-10", birthday_person_name="Ana", box_rating=0),
            ReportDraft(event_date="", birthday_person_name="Ana", box_rating=4),
            ReportDraft(event_date="2024-03-10", birthday_person_name="   ", box_rating=4),
        ):
            with self.assertRaises(ValidationError) as ctx:
                build_report_record(draft, created_by="u1")
            self.assertEqual(ctx.exception.message, "Please fill in all required fields")

    def test_rating_out_of_range(self):
        draft = ReportDraft(event_date="2024-03-10", birthday_person_name="Ana", box_rating=6)
        with self.assertRaises(ValidationError):
            build_report_record(draft, created_by="u1")

    def test_invalid_date(self):
        draft = ReportDraft(event_date="10/03/2024", birthday_person_name="Ana", box_rating=4)
        with self.assertRaises(ValidationError):
            build_report_record(draft, created_by="u1")

    def test_other_details_only_kept_for_other_transport(self):
        draft = ReportDraft(
            event_date="2024-03-10",
            birthday_person_name="Ana",
            box_rating=4,
            transportation_type="own_car",
            transportation_other_details="Bus",
            transport_cost_going="12,50",
        )
        record = build_report_record(draft, created_by="u1")
        self.assertEqual(record.transportation_type, TransportationType.OWN_CAR)
        self.assertIsNone(record.transportation_other_details)
        self.assertEqual(record.transport_cost_going, 12.5)

        draft.transportation_type = TransportationType.OTHER
        record = build_report_record(draft, created_by="u1")
        self.assertEqual(record.transportation_other_details, "Bus")

    def test_secondary_ratings_are_bounded(self):
        draft = ReportDraft(
            event_date="2024-03-10", birthday_person_name="Ana", box_rating=4, speaker_quality=7
        )
        with self.assertRaises(ValidationError):
            build_report_record(draft, created_by="u1")

    def test_parse_cost(self):
        self.assertEqual(parse_cost(None), 0.0)
        self.assertEqual(parse_cost(""), 0.0)
        self.assertEqual(parse_cost("7.25"), 7.25)
        self.assertEqual(parse_cost(3), 3.0)
        with self.assertRaises(ValidationError):
            parse_cost("abc")
        with self.assertRaises(ValidationError):
            parse_cost("-1")

    def test_build_mentions_skips_blank_feedback(self):
        mentions = build_mentions(
            "r1",
            ["m1", "m2", "m3", "m1"],
            {"m1": "  Great energy  ", "m2": "   "},
        )
        self.assertEqual(len(mentions), 1)
        self.assertEqual(mentions[0].member_id, "m1")
        self.assertEqual(mentions[0].feedback, "Great energy")


class SubmitReportTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()
        self.bea = self.db.create_member(MemberRecord(name="Bea", email="bea@example.com"))
        self.caio = self.db.create_member(MemberRecord(name="Caio", email="caio@example.com"))

    def _draft(self, **overrides):
        values = dict(
            event_date="2024-03-10",
            birthday_person_name="Ana",
            box_rating=5,
            photos={
                PhotoCategory.EVENT: [
                    PhotoUpload("party.jpg", b"one", "image/jpeg"),
                    PhotoUpload("cake.jpg", b"two", "image/jpeg"),
                ],
                PhotoCategory.DAMAGE: [PhotoUpload("wall.png", b"three", "image/png")],
            },
            selected_members=[self.bea.id, self.caio.id],
            member_feedback={self.bea.id: "Great energy", self.caio.id: "   "},
        )
        values.update(overrides)
        return ReportDraft(**values)

    def test_submit_creates_report_photos_and_mentions(self):
        report = submit_report(_session(), self._draft(), db=self.db, storage=self.storage)

        stored = self.db.get_report(report.id)
        self.assertEqual(stored.birthday_person_name, "Ana")
        self.assertEqual(stored.event_date, date(2024, 3, 10))
        self.assertEqual(stored.box_rating, 5)
        self.assertEqual(stored.created_by, "u1")

        photos = self.db.list_report_photos(report.id)
        self.assertEqual(
            [p.photo_type for p in photos],
            [PhotoCategory.EVENT, PhotoCategory.EVENT, PhotoCategory.DAMAGE],
        )
        self.assertEqual(len(self.storage.stored_objects), 3)
        for bucket, path in self.storage.stored_objects:
            self.assertEqual(bucket, REPORT_PHOTOS_BUCKET)
            self.assertRegex(
                path,
                rf"^u1/{re.escape(report.id)}/(event|damage)/\d+-[0-9a-f]{{9}}\.(jpg|png)$",
            )

        mentions = self.db.list_report_mentions(report.id)
        self.assertEqual(len(mentions), 1)
        self.assertEqual(mentions[0].member_id, self.bea.id)
        self.assertEqual(mentions[0].feedback, "Great energy")

    def test_invalid_draft_touches_no_store(self):
        with self.assertRaises(ValidationError):
            submit_report(
                _session(), self._draft(box_rating=0), db=self.db, storage=self.storage
            )
        self.assertEqual(self.db.list_reports(), [])
        self.assertEqual(self.storage.stored_objects, {})

    def test_report_without_photos_or_feedback(self):
        report = submit_report(
            _session(Role.ADMIN),
            self._draft(photos={}, selected_members=[], member_feedback={}),
            db=self.db,
            storage=self.storage,
        )
        self.assertEqual(self.db.list_report_photos(report.id), [])
        self.assertEqual(self.db.list_report_mentions(report.id), [])

    def test_failed_upload_reports_created_row(self):
        storage = FailingUploadStorage()
        with self.assertRaises(SubmissionError) as ctx:
            submit_report(_session(), self._draft(), db=self.db, storage=storage)
        reports = self.db.list_reports()
        self.assertEqual(len(reports), 1)
        self.assertEqual(ctx.exception.report_id, reports[0].id)
        self.assertEqual(self.db.list_report_mentions(reports[0].id), [])

    def test_failed_create_uploads_nothing(self):
        db = FailingCreateDb()
        with self.assertRaises(SubmissionError) as ctx:
            submit_report(_session(), self._draft(), db=db, storage=self.storage)
        self.assertIsNone(ctx.exception.report_id)
        self.assertEqual(self.storage.stored_objects, {})


if __name__ == "__main__":
    unittest.main()
