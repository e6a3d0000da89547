"""
Auth service abstraction: a GoTrue REST client (the hosted auth service) and
an in-memory implementation for development and tests.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import requests
from dacite import from_dict

from eventdesk.errors import (
    ConflictError,
    EventDeskError,
    NotFoundError,
    TransientError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None
    user_metadata: dict = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.user_metadata.get("name")


@dataclass
class AuthSession:
    access_token: str
    user: AuthUser
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class AuthClient(Protocol):
    """Operations the backend needs from the auth service."""

    def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    def sign_out(self, access_token: str) -> None:
        ...

    def request_password_reset(self, email: str, redirect_to: str) -> None:
        ...

    def update_email(self, access_token: str, new_email: str) -> None:
        ...

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        ...

    def admin_create_user(self, email: str, password: str, name: str) -> AuthUser:
        ...

    def admin_update_user(self, user_id: str, name: str) -> None:
        ...

    def admin_delete_user(self, user_id: str) -> None:
        ...


def _hash_password(user_id: str, password: str) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), user_id.encode("utf-8"), 10_000
    ).hex()


class InMemoryAuthClient:
    """Test double that keeps users and opaque access tokens in memory."""

    def __init__(self):
        self.users: Dict[str, AuthUser] = {}
        self.password_hashes: Dict[str, str] = {}
        self.tokens: Dict[str, str] = {}
        self.password_reset_requests: list[tuple[str, str]] = []
        self.pending_email_changes: Dict[str, str] = {}

    def reset(self) -> None:
        self.users.clear()
        self.password_hashes.clear()
        self.tokens.clear()
        self.password_reset_requests.clear()
        self.pending_email_changes.clear()

    def _find_by_email(self, email: str) -> Optional[AuthUser]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def sign_in(self, email: str, password: str) -> AuthSession:
        user = self._find_by_email(email)
        if not user or self.password_hashes.get(user.id) != _hash_password(
            user.id, password
        ):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        token = uuid.uuid4().hex
        self.tokens[token] = user.id
        return AuthSession(access_token=token, user=user)

    def sign_out(self, access_token: str) -> None:
        self.tokens.pop(access_token, None)

    def request_password_reset(self, email: str, redirect_to: str) -> None:
        # Unknown addresses are accepted silently, like the hosted service.
        self.password_reset_requests.append((email, redirect_to))

    def update_email(self, access_token: str, new_email: str) -> None:
        user = self.get_user(access_token)
        if not user:
            raise UnauthorizedError()
        existing = self._find_by_email(new_email)
        if existing and existing.id != user.id:
            raise ConflictError("This email address is already in use")
        self.pending_email_changes[user.id] = new_email

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        user_id = self.tokens.get(access_token)
        return self.users.get(user_id) if user_id else None

    def admin_create_user(self, email: str, password: str, name: str) -> AuthUser:
        if self._find_by_email(email):
            raise ConflictError(
                "A user with this email address has already been registered"
            )
        user = AuthUser(id=uuid.uuid4().hex, email=email, user_metadata={"name": name})
        self.users[user.id] = user
        self.password_hashes[user.id] = _hash_password(user.id, password)
        return user

    def admin_update_user(self, user_id: str, name: str) -> None:
        user = self.users.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        user.user_metadata = {**user.user_metadata, "name": name}

    def admin_delete_user(self, user_id: str) -> None:
        if self.users.pop(user_id, None) is None:
            raise NotFoundError("User not found")
        self.password_hashes.pop(user_id, None)
        for token in [t for t, uid in self.tokens.items() if uid == user_id]:
            del self.tokens[token]


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason or ""
    if not isinstance(body, dict):
        return str(body)
    for key in ("msg", "message", "error_description", "error"):
        if body.get(key):
            return str(body[key])
    return ""


def _error_for(response: requests.Response) -> EventDeskError:
    message = _error_message(response)
    status = response.status_code
    if status in (401, 403):
        return UnauthorizedError()
    if status == 404:
        return NotFoundError(message or None)
    if status in (409, 422) and "already" in message.lower():
        return ConflictError(message)
    if status in (400, 422):
        return ValidationError(message or None)
    return TransientError()


class GoTrueAuthClient:
    """
    Client for a GoTrue-compatible auth REST API (e.g. `<supabase_url>/auth/v1`).

    Admin operations require the service-role key and must only run server-side.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT,
    ):
        if not base_url:
            raise ValueError("base_url is required for GoTrueAuthClient")
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        admin: bool = False,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> requests.Response:
        if admin and not self.service_role_key:
            raise ValueError("A service-role key is required for admin auth calls")
        key = self.service_role_key if admin else self.anon_key
        headers = {"apikey": key, "Authorization": f"Bearer {token or key}"}
        try:
            return requests.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.exception("Auth service call %s %s failed", method, path)
            raise TransientError() from exc

    def _parse_user(self, payload: dict) -> AuthUser:
        data = dict(payload)
        data["user_metadata"] = data.get("user_metadata") or {}
        return from_dict(AuthUser, data)

    def sign_in(self, email: str, password: str) -> AuthSession:
        response = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not response.ok:
            raise _error_for(response)
        body = response.json()
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            expires_in=body.get("expires_in"),
            user=self._parse_user(body["user"]),
        )

    def sign_out(self, access_token: str) -> None:
        response = self._request("POST", "/logout", token=access_token)
        # An already-expired token is as good as signed out.
        if not response.ok and response.status_code not in (401, 403):
            raise _error_for(response)

    def request_password_reset(self, email: str, redirect_to: str) -> None:
        response = self._request(
            "POST", "/recover", json={"email": email}, params={"redirect_to": redirect_to}
        )
        if not response.ok:
            raise _error_for(response)

    def update_email(self, access_token: str, new_email: str) -> None:
        response = self._request(
            "PUT", "/user", token=access_token, json={"email": new_email}
        )
        if not response.ok:
            raise _error_for(response)

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        response = self._request("GET", "/user", token=access_token)
        if response.status_code in (401, 403):
            return None
        if not response.ok:
            raise _error_for(response)
        return self._parse_user(response.json())

    def admin_create_user(self, email: str, password: str, name: str) -> AuthUser:
        response = self._request(
            "POST",
            "/admin/users",
            admin=True,
            json={
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"name": name},
            },
        )
        if not response.ok:
            raise _error_for(response)
        return self._parse_user(response.json())

    def admin_update_user(self, user_id: str, name: str) -> None:
        response = self._request(
            "PUT",
            f"/admin/users/{user_id}",
            admin=True,
            json={"user_metadata": {"name": name}},
        )
        if not response.ok:
            raise _error_for(response)

    def admin_delete_user(self, user_id: str) -> None:
        response = self._request("DELETE", f"/admin/users/{user_id}", admin=True)
        if not response.ok:
            raise _error_for(response)
