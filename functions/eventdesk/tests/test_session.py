import unittest

from eventdesk.auth import InMemoryAuthClient
from eventdesk.db import InMemoryDbClient, ProfileRecord
from eventdesk.errors import UnauthorizedError, ValidationError
from eventdesk.session import (
    load_session,
    request_password_reset,
    sign_in,
    sign_out,
    update_own_email,
    upload_avatar,
)
from eventdesk.storage import InMemoryStorageClient
from shared.constants import AVATARS_BUCKET
from shared.types import Role


class SessionTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()
        self.db = InMemoryDbClient()
        self.user = self.auth.admin_create_user("lia@example.com", "secret123", "Lia")
        self.db.create_profile(
            ProfileRecord(user_id=self.user.id, name="Lia", email="lia@example.com")
        )

    def test_sign_in_without_role_row_is_animator(self):
        _, session = sign_in("lia@example.com", "secret123", auth=self.auth, db=self.db)
        self.assertEqual(session.user_id, self.user.id)
        self.assertEqual(session.role, Role.ANIMATOR)
        self.assertFalse(session.is_admin)

    def test_sign_in_admin(self):
        self.db.set_role(self.user.id, Role.ADMIN)
        _, session = sign_in("lia@example.com", "secret123", auth=self.auth, db=self.db)
        self.assertTrue(session.is_admin)

    def test_wrong_password(self):
        with self.assertRaises(UnauthorizedError) as ctx:
            sign_in("lia@example.com", "nope", auth=self.auth, db=self.db)
        self.assertEqual(ctx.exception.message, "Invalid email or password")
        with self.assertRaises(ValidationError):
            sign_in("", "secret123", auth=self.auth, db=self.db)

    def test_load_session_requires_valid_token(self):
        with self.assertRaises(UnauthorizedError):
            load_session(None, auth=self.auth, db=self.db)
        with self.assertRaises(UnauthorizedError):
            load_session("bogus", auth=self.auth, db=self.db)

    def test_sign_out_revokes_token(self):
        _, session = sign_in("lia@example.com", "secret123", auth=self.auth, db=self.db)
        sign_out(session, auth=self.auth)
        with self.assertRaises(UnauthorizedError):
            load_session(session.access_token, auth=self.auth, db=self.db)

    def test_password_reset(self):
        request_password_reset(" lia@example.com ", "http://app/reset", auth=self.auth)
        self.assertEqual(
            self.auth.password_reset_requests, [("lia@example.com", "http://app/reset")]
        )
        with self.assertRaises(ValidationError):
            request_password_reset("  ", "http://app/reset", auth=self.auth)

    def test_update_own_email(self):
        _, session = sign_in("lia@example.com", "secret123", auth=self.auth, db=self.db)
        self.assertFalse(
            update_own_email(session, "lia@example.com", auth=self.auth, db=self.db)
        )
        self.assertTrue(
            update_own_email(session, "lia@new.example.com", auth=self.auth, db=self.db)
        )
        self.assertEqual(self.auth.pending_email_changes[self.user.id], "lia@new.example.com")
        self.assertEqual(self.db.get_profile(self.user.id).email, "lia@new.example.com")
        with self.assertRaises(ValidationError):
            update_own_email(session, "not-an-email", auth=self.auth, db=self.db)

    def test_upload_avatar(self):
        storage = InMemoryStorageClient()
        _, session = sign_in("lia@example.com", "secret123", auth=self.auth, db=self.db)
        url = upload_avatar(
            session, "me.jpg", b"jpg", "image/jpeg", db=self.db, storage=storage
        )
        self.assertIn((AVATARS_BUCKET, f"{self.user.id}/me.jpg"), storage.stored_objects)
        self.assertEqual(self.db.get_profile(self.user.id).avatar_url, url)
        with self.assertRaises(ValidationError):
            upload_avatar(session, "me.jpg", b"", db=self.db, storage=storage)


if __name__ == "__main__":
    unittest.main()
