"""
Caller side of the privileged functions: an HTTPS invoker that forwards the
caller's access token as a bearer credential.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import requests

from eventdesk import privileged
from eventdesk.auth import AuthClient
from eventdesk.db import DbClient
from eventdesk.errors import (
    ConflictError,
    EventDeskError,
    ForbiddenError,
    NotFoundError,
    TransientError,
    UnauthorizedError,
    UnknownError,
    ValidationError,
)
from shared.constants import EMAIL_PATTERN, MIN_PASSWORD_LENGTH
from shared.types import Role

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds

_ERRORS_BY_STATUS: dict[int, type[EventDeskError]] = {
    400: ValidationError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
}


class FunctionsClient:
    def __init__(
        self,
        base_url: str,
        anon_key: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    def invoke(self, name: str, body: dict, access_token: str) -> dict:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self.anon_key:
            headers["apikey"] = self.anon_key
        try:
            response = requests.post(
                f"{self.base_url}/{name}",
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.exception("Function %s could not be reached", name)
            raise TransientError() from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if response.ok and not data.get("error"):
            return data

        message = data.get("error") or response.reason or None
        logger.warning("Function %s failed (%s): %s", name, response.status_code, message)
        raise _ERRORS_BY_STATUS.get(response.status_code, UnknownError)(message)

    def create_user(
        self, access_token: str, *, name: str, email: str, password: str, role: Role
    ) -> dict:
        if not name.strip() or not email.strip() or not password.strip():
            raise ValidationError("Please fill in all fields")
        if not re.match(EMAIL_PATTERN, email.strip()):
            raise ValidationError("Invalid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return self.invoke(
            "create-user",
            {"name": name, "email": email, "password": password, "role": Role(role).value},
            access_token,
        )

    def update_user(
        self, access_token: str, *, user_id: str, name: str, role: Role
    ) -> dict:
        if not user_id or not name.strip():
            raise ValidationError("Please fill in all fields")
        return self.invoke(
            "update-user",
            {"userId": user_id, "name": name, "role": Role(role).value},
            access_token,
        )

    def delete_user(self, access_token: str, user_id: str) -> dict:
        return self.invoke("delete-user", {"userId": user_id}, access_token)


class LocalFunctionsClient(FunctionsClient):
    """
    Runs the privileged functions in-process. Used with the in-memory backends,
    where there is no functions endpoint to call.
    """

    def __init__(self, auth: AuthClient, db: DbClient):
        super().__init__("local")
        self.auth = auth
        self.db = db
        self.operations = {
            "create-user": privileged.create_user,
            "update-user": privileged.update_user,
            "delete-user": privileged.delete_user,
        }

    def invoke(self, name: str, body: dict, access_token: str) -> dict:
        operation = self.operations.get(name)
        if operation is None:
            raise NotFoundError(f"Unknown function {name}")
        return operation(access_token, body, auth=self.auth, db=self.db)
