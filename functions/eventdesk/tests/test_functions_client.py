import unittest
from unittest.mock import MagicMock, patch

import requests

from eventdesk.auth import InMemoryAuthClient
from eventdesk.db import InMemoryDbClient, ProfileRecord
from eventdesk.errors import (
    ForbiddenError,
    NotFoundError,
    TransientError,
    UnauthorizedError,
    UnknownError,
    ValidationError,
)
from eventdesk.functions_client import FunctionsClient, LocalFunctionsClient
from shared.types import Role


def _response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "Error"
    response.json.return_value = body
    return response


class FunctionsClientTests(unittest.TestCase):
    def setUp(self):
        self.client = FunctionsClient("https://proj.supabase.co/functions/v1/", anon_key="anon")

    @patch("eventdesk.functions_client.requests.post")
    def test_invoke_forwards_bearer_token(self, mock_post):
        mock_post.return_value = _response(200, {"success": True})
        result = self.client.update_user("tok", user_id="u2", name="Bea", role=Role.ADMIN)
        self.assertEqual(result, {"success": True})

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://proj.supabase.co/functions/v1/update-user")
        self.assertEqual(kwargs["json"], {"userId": "u2", "name": "Bea", "role": "admin"})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok")
        self.assertEqual(kwargs["headers"]["apikey"], "anon")

    @patch("eventdesk.functions_client.requests.post")
    def test_error_status_maps_to_error(self, mock_post):
        mock_post.return_value = _response(403, {"error": "Only admins can update users"})
        with self.assertRaises(ForbiddenError) as ctx:
            self.client.update_user("tok", user_id="u2", name="Bea", role=Role.ANIMATOR)
        self.assertEqual(ctx.exception.message, "Only admins can update users")

    @patch("eventdesk.functions_client.requests.post")
    def test_error_in_successful_response(self, mock_post):
        mock_post.return_value = _response(200, {"error": "Something odd"})
        with self.assertRaises(UnknownError) as ctx:
            self.client.delete_user("tok", "u2")
        self.assertEqual(ctx.exception.message, "Something odd")

    @patch("eventdesk.functions_client.requests.post")
    def test_network_failure(self, mock_post):
        mock_post.side_effect = requests.Timeout("slow")
        with self.assertRaises(TransientError):
            self.client.delete_user("tok", "u2")

    @patch("eventdesk.functions_client.requests.post")
    def test_create_user_validates_before_calling(self, mock_post):
        with self.assertRaises(ValidationError):
            self.client.create_user(
                "tok", name="Bea", email="bea@example.com", password="123", role=Role.ANIMATOR
            )
        with self.assertRaises(ValidationError):
            self.client.create_user(
                "tok", name=" ", email="bea@example.com", password="secret123", role=Role.ANIMATOR
            )
        mock_post.assert_not_called()

        mock_post.return_value = _response(200, {"success": True})
        self.client.create_user(
            "tok", name="Bea", email="bea@example.com", password="secret123", role=Role.ANIMATOR
        )
        self.assertEqual(mock_post.call_args.kwargs["json"]["role"], "animator")


class LocalFunctionsClientTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()
        self.db = InMemoryDbClient()
        admin = self.auth.admin_create_user("admin@example.com", "secret123", "Admin")
        self.db.create_profile(
            ProfileRecord(user_id=admin.id, name="Admin", email="admin@example.com")
        )
        self.db.set_role(admin.id, Role.ADMIN)
        self.token = self.auth.sign_in("admin@example.com", "secret123").access_token
        self.client = LocalFunctionsClient(self.auth, self.db)

    def test_runs_functions_in_process(self):
        result = self.client.create_user(
            self.token, name="Bea", email="bea@example.com", password="secret123", role=Role.ANIMATOR
        )
        self.assertEqual(result, {"success": True})
        self.assertIsNotNone(self.db.get_member_by_email("bea@example.com"))

    def test_errors_propagate(self):
        with self.assertRaises(UnauthorizedError):
            self.client.delete_user("unknown-token", "someone")
        with self.assertRaises(NotFoundError):
            self.client.invoke("rename-user", {}, self.token)
        with self.assertRaises(ValidationError):
            self.client.create_user(
                self.token, name="Bea", email="bea", password="secret123", role=Role.ANIMATOR
            )


if __name__ == "__main__":
    unittest.main()
