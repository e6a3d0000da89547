"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from eventdesk.auth import AuthClient, GoTrueAuthClient, InMemoryAuthClient
from eventdesk.config import get_settings
from eventdesk.db import DbClient, InMemoryDbClient, SqlDbClient
from eventdesk.functions_client import FunctionsClient, LocalFunctionsClient
from eventdesk.session import UserSession, load_session
from eventdesk.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_auth_client: AuthClient | None = None
_admin_auth_client: AuthClient | None = None
_functions_client: FunctionsClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.storage_endpoint
        or not settings.storage_public_url
    ):
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            endpoint=settings.storage_endpoint,
            region=settings.storage_region or "",
            access_key_id=settings.storage_access_key_id or "",
            secret_access_key=settings.storage_secret_access_key or "",
            public_base_url=settings.storage_public_url,
        )
    return _storage_client


def _use_in_memory_auth() -> bool:
    settings = get_settings()
    return settings.use_in_memory_backends or not settings.supabase_url


def get_auth_client() -> AuthClient:
    """Auth client acting with the public (anon) key."""
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if _use_in_memory_auth():
        _auth_client = get_admin_auth_client()
    else:
        _auth_client = GoTrueAuthClient(
            base_url=f"{settings.supabase_url.rstrip('/')}/auth/v1",
            anon_key=settings.supabase_anon_key or "",
        )
    return _auth_client


def get_admin_auth_client() -> AuthClient:
    """
    Auth client holding the service-role key. Only the privileged functions
    may depend on it.
    """
    global _admin_auth_client
    if _admin_auth_client:
        return _admin_auth_client

    settings = get_settings()
    if _use_in_memory_auth():
        _admin_auth_client = InMemoryAuthClient()
    else:
        _admin_auth_client = GoTrueAuthClient(
            base_url=f"{settings.supabase_url.rstrip('/')}/auth/v1",
            anon_key=settings.supabase_anon_key or "",
            service_role_key=settings.supabase_service_role_key,
        )
    return _admin_auth_client


def get_functions_client() -> FunctionsClient:
    """
    Invoker for the privileged functions. With in-memory auth they run
    in-process against the same clients.
    """
    global _functions_client
    if _functions_client:
        return _functions_client

    settings = get_settings()
    if _use_in_memory_auth():
        _functions_client = LocalFunctionsClient(get_admin_auth_client(), get_db_client())
    else:
        base_url = settings.functions_url or (
            f"{settings.supabase_url.rstrip('/')}{settings.functions_prefix}"
        )
        _functions_client = FunctionsClient(
            base_url, anon_key=settings.supabase_anon_key
        )
    return _functions_client


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_session(
    token: Optional[str] = Depends(bearer_token),
    auth: AuthClient = Depends(get_auth_client),
    db: DbClient = Depends(get_db_client),
) -> UserSession:
    return load_session(token, auth=auth, db=db)
