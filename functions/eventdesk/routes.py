"""
HTTP routes for the EventDesk API.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as FormFile

from eventdesk import dashboard, members, reports, session as session_ops, submission, users
from eventdesk.access import Capability, require
from eventdesk.auth import AuthClient
from eventdesk.config import get_settings
from eventdesk.db import DbClient
from eventdesk.dependencies import (
    get_auth_client,
    get_db_client,
    get_functions_client,
    get_session,
    get_storage_client,
)
from eventdesk.details import fetch_report_details
from eventdesk.errors import ValidationError
from eventdesk.functions_client import FunctionsClient
from eventdesk.schemas import (
    AvatarResponse,
    DashboardResponse,
    EditUserRequest,
    ListMembersResponse,
    ListReportsResponse,
    ListUsersResponse,
    MeResponse,
    MemberCreateRequest,
    MemberFeedbackResponse,
    MemberItem,
    MemberUpdateRequest,
    NewUserRequest,
    PasswordResetRequest,
    ReportDetailResponse,
    ReportDraftPayload,
    SignInRequest,
    SignInResponse,
    StatusResponse,
    SubmitReportResponse,
    UpdateEmailRequest,
    UpdateEmailResponse,
)
from eventdesk.session import UserSession
from eventdesk.storage import StorageClient
from eventdesk.submission import PhotoUpload, ReportDraft
from eventdesk.views import (
    dashboard_view,
    me_view,
    member_feedback_view,
    member_item,
    member_list_view,
    report_detail_view,
    report_list_view,
    users_view,
)
from shared.types import PhotoCategory

router = APIRouter()


# Auth and profile


@router.post("/auth/sign-in", response_model=SignInResponse)
def sign_in(
    payload: SignInRequest,
    auth: AuthClient = Depends(get_auth_client),
    db: DbClient = Depends(get_db_client),
):
    auth_session, session = session_ops.sign_in(
        payload.email, payload.password, auth=auth, db=db
    )
    return SignInResponse(
        access_token=auth_session.access_token,
        refresh_token=auth_session.refresh_token,
        expires_in=auth_session.expires_in,
        user=me_view(session),
    )


@router.post("/auth/sign-out", response_model=StatusResponse)
def sign_out(
    session: UserSession = Depends(get_session),
    auth: AuthClient = Depends(get_auth_client),
):
    session_ops.sign_out(session, auth=auth)
    return StatusResponse(status="ok")


@router.post("/auth/password-reset", response_model=StatusResponse)
def password_reset(
    payload: PasswordResetRequest, auth: AuthClient = Depends(get_auth_client)
):
    redirect_to = payload.redirect_to or get_settings().password_reset_redirect_url
    session_ops.request_password_reset(payload.email, redirect_to, auth=auth)
    return StatusResponse(status="ok")


@router.get("/me", response_model=MeResponse)
def get_me(session: UserSession = Depends(get_session)):
    return me_view(session)


@router.put("/me/email", response_model=UpdateEmailResponse)
def update_my_email(
    payload: UpdateEmailRequest,
    session: UserSession = Depends(get_session),
    auth: AuthClient = Depends(get_auth_client),
    db: DbClient = Depends(get_db_client),
):
    require(session, Capability.EDIT_OWN_PROFILE)
    changed = session_ops.update_own_email(session, payload.email, auth=auth, db=db)
    return UpdateEmailResponse(changed=changed)


@router.post("/me/avatar", response_model=AvatarResponse)
async def upload_my_avatar(
    file: UploadFile = File(...),
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    require(session, Capability.EDIT_OWN_PROFILE)
    data = await file.read()
    url = await run_in_threadpool(
        session_ops.upload_avatar,
        session,
        file.filename,
        data,
        file.content_type,
        db=db,
        storage=storage,
    )
    return AvatarResponse(avatar_url=url)


# Reports


@router.get("/reports", response_model=ListReportsResponse)
def list_reports(
    limit: Optional[int] = Query(None, ge=1, le=500),
    search: Optional[str] = Query(None, max_length=200),
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    return report_list_view(
        reports.list_reports(session, db, limit=limit, search=search), session
    )


@router.post("/reports", response_model=SubmitReportResponse, status_code=201)
async def submit_report(
    request: Request,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Multipart submission: a `payload` field holding the report JSON and one
    `photos_<category>` file field per attached photo.
    """
    form = await request.form()
    raw_payload = form.get("payload")
    if not isinstance(raw_payload, str):
        raise ValidationError()
    try:
        payload = ReportDraftPayload.model_validate_json(raw_payload)
    except PydanticValidationError:
        raise ValidationError("Invalid report data") from None

    photos: dict[PhotoCategory, list[PhotoUpload]] = {}
    for category in PhotoCategory:
        for item in form.getlist(f"photos_{category.value}"):
            if not isinstance(item, FormFile):
                continue
            photos.setdefault(category, []).append(
                PhotoUpload(
                    filename=item.filename or "photo.jpg",
                    content=await item.read(),
                    content_type=item.content_type,
                )
            )

    draft = ReportDraft(**payload.model_dump(), photos=photos)
    report = await run_in_threadpool(
        submission.submit_report,
        session,
        draft,
        db=db,
        storage=storage,
        max_workers=get_settings().upload_max_workers,
    )
    return SubmitReportResponse(id=report.id, status="ok")


@router.get("/reports/{report_id}", response_model=ReportDetailResponse)
def get_report(
    report_id: str,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    require(session, Capability.VIEW_REPORTS)
    return report_detail_view(fetch_report_details(db, report_id), session)


@router.delete("/reports/{report_id}", response_model=StatusResponse)
def delete_report(
    report_id: str,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    reports.delete_report(session, db, report_id)
    return StatusResponse(status="ok")


@router.get("/reports/{report_id}/photos/archive")
def download_report_photos(
    report_id: str,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    archive = reports.build_photo_archive(session, db, storage, report_id)
    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="report-{report_id}-photos.zip"'
        },
    )


# Members


@router.get("/members", response_model=ListMembersResponse)
def list_members(
    search: Optional[str] = Query(None, max_length=200),
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    return member_list_view(members.list_members(session, db, search=search), session)


@router.get("/members/selectable", response_model=list[MemberItem])
def list_selectable_members(
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    return [member_item(m) for m in members.selectable_members(session, db)]


@router.post("/members", response_model=MemberItem, status_code=201)
def create_member(
    payload: MemberCreateRequest,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    member = members.create_member(
        session, db, payload.name, payload.email, payload.member_type
    )
    return member_item(member)


@router.put("/members/{member_id}", response_model=MemberItem)
def update_member(
    member_id: str,
    payload: MemberUpdateRequest,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    member = members.update_member(
        session,
        db,
        member_id,
        name=payload.name,
        email=payload.email,
        member_type=payload.member_type,
        active=payload.active,
    )
    return member_item(member)


@router.post("/members/{member_id}/avatar", response_model=MemberItem)
async def upload_member_avatar(
    member_id: str,
    file: UploadFile = File(...),
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
):
    data = await file.read()
    member = await run_in_threadpool(
        members.set_member_avatar,
        session,
        db,
        storage,
        member_id,
        file.filename,
        data,
        file.content_type,
    )
    return member_item(member)


@router.delete("/members/{member_id}", response_model=StatusResponse)
def delete_member(
    member_id: str,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    members.delete_member(session, db, member_id)
    return StatusResponse(status="ok")


@router.get("/members/{member_id}/feedback", response_model=MemberFeedbackResponse)
def get_member_feedback(
    member_id: str,
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    return member_feedback_view(
        member_id, members.member_feedback(session, db, member_id)
    )


# Admin


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    return dashboard_view(dashboard.dashboard_summary(session, db), session)


@router.get("/users", response_model=ListUsersResponse)
def list_users(
    session: UserSession = Depends(get_session),
    db: DbClient = Depends(get_db_client),
):
    return users_view(users.list_system_users(session, db), session)


@router.post("/users", response_model=StatusResponse, status_code=201)
def create_user(
    payload: NewUserRequest,
    session: UserSession = Depends(get_session),
    functions: FunctionsClient = Depends(get_functions_client),
):
    users.create_system_user(
        session,
        functions,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return StatusResponse(status="ok")


@router.put("/users/{user_id}", response_model=StatusResponse)
def update_user(
    user_id: str,
    payload: EditUserRequest,
    session: UserSession = Depends(get_session),
    functions: FunctionsClient = Depends(get_functions_client),
):
    users.update_system_user(
        session, functions, user_id, name=payload.name, role=payload.role
    )
    return StatusResponse(status="ok")


@router.delete("/users/{user_id}", response_model=StatusResponse)
def delete_user(
    user_id: str,
    session: UserSession = Depends(get_session),
    functions: FunctionsClient = Depends(get_functions_client),
):
    users.delete_system_user(session, functions, user_id)
    return StatusResponse(status="ok")
