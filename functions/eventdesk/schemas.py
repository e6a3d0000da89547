"""
Pydantic schemas for the EventDesk API.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from shared.constants import EMAIL_PATTERN, MIN_PASSWORD_LENGTH
from shared.types import MemberType, Role, TransportationType


class StatusResponse(BaseModel):
    status: Literal["ok"]


class SignInRequest(BaseModel):
    email: str = Field(..., max_length=320)
    password: str = Field(..., max_length=256)


class MeResponse(BaseModel):
    user_id: str
    name: str
    email: str
    role: Role
    avatar_url: Optional[str] = None
    capabilities: list[str]
    navigation: list[str]


class SignInResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: MeResponse


class PasswordResetRequest(BaseModel):
    email: str = Field(..., max_length=320)
    redirect_to: Optional[str] = None


class UpdateEmailRequest(BaseModel):
    email: str = Field(..., max_length=320)


class UpdateEmailResponse(BaseModel):
    changed: bool


class AvatarResponse(BaseModel):
    avatar_url: str


class ReportDraftPayload(BaseModel):
    """JSON part of the multipart report submission."""

    event_date: Optional[str] = None
    birthday_person_name: Optional[str] = Field(None, max_length=200)
    box_rating: int = 0
    team_description: Optional[str] = None
    title_schedule: Optional[str] = None
    transportation_type: TransportationType = TransportationType.UBER
    transportation_other_details: Optional[str] = None
    transport_cost_going: Union[float, str, None] = None
    transport_cost_return: Union[float, str, None] = None
    outside_city: bool = False
    extra_hours: bool = False
    exclusivity: bool = False
    event_description: Optional[str] = None
    event_difficulty: int = 0
    event_quality: int = 0
    difficulties_problems: Optional[str] = None
    speaker_quality: int = 0
    microphone_quality: int = 0
    speaker_number: Union[int, str, None] = None
    electronics_observations: Optional[str] = None
    selected_members: list[str] = Field(default_factory=list)
    member_feedback: dict[str, str] = Field(default_factory=dict)


class SubmitReportResponse(BaseModel):
    id: str
    status: Literal["ok"]


class ReportActions(BaseModel):
    view_feedback: bool = False
    download_photos: bool = False
    delete: bool = False


class ReportSummary(BaseModel):
    id: str
    event_date: date
    birthday_person_name: str
    box_rating: int
    team_description: Optional[str] = None
    created_at: datetime
    creator_name: str
    actions: ReportActions


class ListReportsResponse(BaseModel):
    reports: list[ReportSummary]
    can_create: bool


class PhotoItem(BaseModel):
    id: str
    photo_url: str
    photo_type: str


class MentionItem(BaseModel):
    id: str
    member_id: str
    member_name: Optional[str] = None
    feedback: Optional[str] = None


class CreatorItem(BaseModel):
    name: str
    email: Optional[str] = None


class ReportDetailResponse(BaseModel):
    report: dict
    creator: Optional[CreatorItem] = None
    photos: dict[str, list[PhotoItem]]
    mentions: list[MentionItem]
    actions: ReportActions


class MemberItem(BaseModel):
    id: str
    name: str
    email: str
    member_type: MemberType
    active: bool
    avatar_url: Optional[str] = None


class ListMembersResponse(BaseModel):
    members: list[MemberItem]
    can_manage: bool
    can_view_feedback: bool


class MemberCreateRequest(BaseModel):
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    member_type: MemberType = MemberType.RECREATOR


class MemberUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    member_type: Optional[MemberType] = None
    active: Optional[bool] = None


class MemberFeedbackItem(BaseModel):
    id: str
    report_id: str
    feedback: str
    created_at: datetime
    birthday_person_name: str
    event_date: date


class MemberFeedbackResponse(BaseModel):
    member_id: str
    feedback: list[MemberFeedbackItem]


class DashboardResponse(BaseModel):
    total_reports: int
    average_rating: float
    reports_this_month: int
    recent_reports: list[ReportSummary]


class SystemUserItem(BaseModel):
    user_id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    avatar_url: Optional[str] = None
    can_delete: bool


class ListUsersResponse(BaseModel):
    users: list[SystemUserItem]
    counts: dict[str, int]


class NewUserRequest(BaseModel):
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    password: str = Field(..., max_length=256)
    role: Role = Role.ANIMATOR


class EditUserRequest(BaseModel):
    name: str = Field(..., max_length=200)
    role: Role


# Bodies of the privileged functions. Callers use camelCase keys.

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
RequiredName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)
]
RequiredEmail = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=320, pattern=EMAIL_PATTERN
    ),
]


class CreateUserRequest(BaseModel):
    name: RequiredName
    email: RequiredEmail
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=256)
    role: Role

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("password is blank")
        return value


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: RequiredText = Field(..., alias="userId")
    name: RequiredName
    role: Role


class DeleteUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: RequiredText = Field(..., alias="userId")
