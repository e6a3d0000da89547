"""
Routes for the privileged user-management functions.

They answer with `{"success": true}` or `{"error": "<message>"}`, the shape
the hosted function runtime uses, rather than the API's `{"detail": ...}`.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from eventdesk import privileged
from eventdesk.auth import AuthClient
from eventdesk.db import DbClient
from eventdesk.dependencies import bearer_token, get_admin_auth_client, get_db_client
from eventdesk.errors import EventDeskError

logger = logging.getLogger(__name__)

router = APIRouter()

PASSTHROUGH_STATUSES = (400, 401, 403, 404, 409)


async def _read_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


async def _invoke(
    operation: Callable[..., dict],
    request: Request,
    token: Optional[str],
    auth: AuthClient,
    db: DbClient,
) -> JSONResponse:
    body = await _read_body(request)
    try:
        result = await run_in_threadpool(operation, token, body, auth=auth, db=db)
    except EventDeskError as exc:
        status = exc.status_code if exc.status_code in PASSTHROUGH_STATUSES else 500
        if status == 500:
            logger.error("%s failed: %s", operation.__name__, exc.message)
        return JSONResponse(status_code=status, content={"error": exc.message})
    except Exception as exc:
        logger.exception("%s failed", operation.__name__)
        return JSONResponse(
            status_code=500, content={"error": str(exc) or "Unknown error"}
        )
    return JSONResponse(status_code=200, content=result)


@router.post("/create-user")
async def create_user(
    request: Request,
    token: Optional[str] = Depends(bearer_token),
    auth: AuthClient = Depends(get_admin_auth_client),
    db: DbClient = Depends(get_db_client),
):
    return await _invoke(privileged.create_user, request, token, auth, db)


@router.post("/update-user")
async def update_user(
    request: Request,
    token: Optional[str] = Depends(bearer_token),
    auth: AuthClient = Depends(get_admin_auth_client),
    db: DbClient = Depends(get_db_client),
):
    return await _invoke(privileged.update_user, request, token, auth, db)


@router.post("/delete-user")
async def delete_user(
    request: Request,
    token: Optional[str] = Depends(bearer_token),
    auth: AuthClient = Depends(get_admin_auth_client),
    db: DbClient = Depends(get_db_client),
):
    return await _invoke(privileged.delete_user, request, token, auth, db)
