import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from eventdesk.errors import NotFoundError, TransientError
from eventdesk.storage import InMemoryStorageClient, S3StorageClient, report_photo_path
from shared.types import PhotoCategory


class StoragePathTests(unittest.TestCase):
    def test_report_photo_path(self):
        path = report_photo_path("u1", "r1", PhotoCategory.BALLOON, "IMG.0001.jpeg")
        self.assertRegex(path, r"^u1/r1/balloon/\d{13}-[0-9a-f]{9}\.jpeg$")

    def test_paths_are_unique(self):
        paths = {
            report_photo_path("u1", "r1", PhotoCategory.EVENT, "a.jpg") for _ in range(20)
        }
        self.assertEqual(len(paths), 20)


class InMemoryStorageTests(unittest.TestCase):
    def test_public_url_roundtrip(self):
        storage = InMemoryStorageClient()
        storage.upload("report-photos", "u1/r1/event/1-a b.jpg", b"data")
        url = storage.get_public_url("report-photos", "u1/r1/event/1-a b.jpg")
        self.assertNotIn(" ", url)
        path = storage.path_from_public_url("report-photos", url)
        self.assertEqual(storage.get_bytes("report-photos", path), b"data")
        self.assertIsNone(storage.path_from_public_url("avatars", url))
        with self.assertRaises(NotFoundError):
            storage.get_bytes("report-photos", "missing.jpg")


class S3StorageClientTests(unittest.TestCase):
    def _client(self, mock_boto_client):
        self.s3 = MagicMock()
        mock_boto_client.return_value = self.s3
        return S3StorageClient(
            endpoint="https://proj.supabase.co/storage/v1/s3",
            region="us-east-1",
            access_key_id="key",
            secret_access_key="secret",
            public_base_url="https://proj.supabase.co/storage/v1/object/public/",
        )

    @patch("eventdesk.storage.boto3.client")
    def test_upload_and_public_url(self, mock_boto_client):
        storage = self._client(mock_boto_client)
        storage.upload("avatars", "u1/me.png", b"png", "image/png")
        self.s3.put_object.assert_called_once_with(
            Bucket="avatars", Key="u1/me.png", Body=b"png", ContentType="image/png"
        )
        self.assertEqual(
            storage.get_public_url("avatars", "u1/me.png"),
            "https://proj.supabase.co/storage/v1/object/public/avatars/u1/me.png",
        )

    @patch("eventdesk.storage.boto3.client")
    def test_errors(self, mock_boto_client):
        storage = self._client(mock_boto_client)
        self.s3.get_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject"
        )
        with self.assertRaises(NotFoundError):
            storage.get_bytes("avatars", "u1/none.png")

        self.s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject"
        )
        with self.assertRaises(TransientError):
            storage.upload("avatars", "u1/me.png", b"png")


if __name__ == "__main__":
    unittest.main()
