"""
Relational store abstraction: a SQLAlchemy-backed client and an in-memory
implementation for development and tests.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Iterator, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from eventdesk.errors import ConflictError, TransientError
from shared.types import MemberType, PhotoCategory, Role, TransportationType

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DbClient(Protocol):
    """Interface for relational store access."""

    # Reports
    def create_report(self, report: "ReportRecord") -> "ReportRecord":
        ...

    def get_report(self, report_id: str) -> Optional["ReportRecord"]:
        ...

    def list_reports(self, limit: Optional[int] = None) -> list["ReportRecord"]:
        ...

    def count_reports(self, since: Optional[datetime] = None) -> int:
        ...

    def list_box_ratings(self) -> list[int]:
        ...

    def delete_report(self, report_id: str) -> None:
        ...

    # Report photos
    def add_report_photos(self, photos: list["ReportPhotoRecord"]) -> None:
        ...

    def list_report_photos(self, report_id: str) -> list["ReportPhotoRecord"]:
        ...

    def delete_report_photos(self, report_id: str) -> None:
        ...

    # Member mentions
    def add_member_mentions(self, mentions: list["MentionRecord"]) -> None:
        ...

    def list_report_mentions(self, report_id: str) -> list["MentionWithMember"]:
        ...

    def list_member_feedback(self, member_id: str) -> list["MemberFeedbackRecord"]:
        ...

    def delete_report_mentions(self, report_id: str) -> None:
        ...

    # Members
    def create_member(self, member: "MemberRecord") -> "MemberRecord":
        ...

    def get_member(self, member_id: str) -> Optional["MemberRecord"]:
        ...

    def get_member_by_email(self, email: str) -> Optional["MemberRecord"]:
        ...

    def list_members(self, active_only: bool = False) -> list["MemberRecord"]:
        ...

    def update_member(
        self,
        member_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        member_type: Optional[MemberType] = None,
        active: Optional[bool] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional["MemberRecord"]:
        ...

    def update_members_by_email(
        self,
        email: str,
        *,
        name: Optional[str] = None,
        member_type: Optional[MemberType] = None,
    ) -> int:
        ...

    def delete_member(self, member_id: str) -> bool:
        ...

    # Profiles and roles
    def create_profile(self, profile: "ProfileRecord") -> "ProfileRecord":
        ...

    def get_profile(self, user_id: str) -> Optional["ProfileRecord"]:
        ...

    def list_profiles(self) -> list["ProfileRecord"]:
        ...

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional["ProfileRecord"]:
        ...

    def delete_profile(self, user_id: str) -> None:
        ...

    def get_role(self, user_id: str) -> Optional[Role]:
        ...

    def set_role(self, user_id: str, role: Role) -> None:
        ...

    def list_roles(self) -> list["RoleRecord"]:
        ...

    def delete_role(self, user_id: str) -> None:
        ...


@dataclass
class ReportRecord:
    event_date: date
    birthday_person_name: str
    box_rating: int
    team_description: Optional[str] = None
    created_by: Optional[str] = None
    title_schedule: Optional[str] = None
    transportation_type: TransportationType = TransportationType.UBER
    transportation_other_details: Optional[str] = None
    transport_cost_going: float = 0.0
    transport_cost_return: float = 0.0
    outside_city: bool = False
    extra_hours: bool = False
    exclusivity: bool = False
    event_description: Optional[str] = None
    event_difficulty: int = 0
    event_quality: int = 0
    difficulties_problems: Optional[str] = None
    speaker_quality: int = 0
    microphone_quality: int = 0
    speaker_number: Optional[int] = None
    electronics_observations: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "event_date": self.event_date.isoformat(),
            "birthday_person_name": self.birthday_person_name,
            "box_rating": self.box_rating,
            "team_description": self.team_description,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "title_schedule": self.title_schedule,
            "transportation_type": self.transportation_type.value,
            "transportation_other_details": self.transportation_other_details,
            "transport_cost_going": self.transport_cost_going,
            "transport_cost_return": self.transport_cost_return,
            "outside_city": self.outside_city,
            "extra_hours": self.extra_hours,
            "exclusivity": self.exclusivity,
            "event_description": self.event_description,
            "event_difficulty": self.event_difficulty,
            "event_quality": self.event_quality,
            "difficulties_problems": self.difficulties_problems,
            "speaker_quality": self.speaker_quality,
            "microphone_quality": self.microphone_quality,
            "speaker_number": self.speaker_number,
            "electronics_observations": self.electronics_observations,
        }


@dataclass
class ReportPhotoRecord:
    report_id: str
    photo_url: str
    photo_type: PhotoCategory
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class MentionRecord:
    report_id: str
    member_id: str
    feedback: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class MentionWithMember:
    """A mention joined with the mentioned member's name."""

    id: str
    report_id: str
    member_id: str
    member_name: Optional[str]
    feedback: str
    created_at: datetime


@dataclass
class MemberFeedbackRecord:
    """A mention joined with the report it was written on."""

    id: str
    report_id: str
    feedback: str
    created_at: datetime
    birthday_person_name: str
    event_date: date


@dataclass
class MemberRecord:
    name: str
    email: str
    member_type: MemberType = MemberType.RECREATOR
    active: bool = True
    avatar_url: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "member_type": self.member_type.value,
            "active": self.active,
            "avatar_url": self.avatar_url,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ProfileRecord:
    user_id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class RoleRecord:
    user_id: str
    role: Role


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.reports: Dict[str, ReportRecord] = {}
        self.photos: Dict[str, ReportPhotoRecord] = {}
        self.mentions: Dict[str, MentionRecord] = {}
        self.members: Dict[str, MemberRecord] = {}
        self.profiles: Dict[str, ProfileRecord] = {}
        self.roles: Dict[str, Role] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.reports.clear()
        self.photos.clear()
        self.mentions.clear()
        self.members.clear()
        self.profiles.clear()
        self.roles.clear()

    def create_report(self, report: ReportRecord) -> ReportRecord:
        self.reports[report.id] = report
        return report

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        return self.reports.get(report_id)

    def list_reports(self, limit: Optional[int] = None) -> list[ReportRecord]:
        items = sorted(self.reports.values(), key=lambda r: r.created_at, reverse=True)
        return items[:limit] if limit is not None else items

    def count_reports(self, since: Optional[datetime] = None) -> int:
        if since is None:
            return len(self.reports)
        return sum(1 for r in self.reports.values() if r.created_at >= since)

    def list_box_ratings(self) -> list[int]:
        return [r.box_rating for r in self.reports.values()]

    def delete_report(self, report_id: str) -> None:
        self.reports.pop(report_id, None)

    def add_report_photos(self, photos: list[ReportPhotoRecord]) -> None:
        for photo in photos:
            self.photos[photo.id] = photo

    def list_report_photos(self, report_id: str) -> list[ReportPhotoRecord]:
        return [p for p in self.photos.values() if p.report_id == report_id]

    def delete_report_photos(self, report_id: str) -> None:
        for photo_id in [p.id for p in self.list_report_photos(report_id)]:
            del self.photos[photo_id]

    def add_member_mentions(self, mentions: list[MentionRecord]) -> None:
        for mention in mentions:
            self.mentions[mention.id] = mention

    def list_report_mentions(self, report_id: str) -> list[MentionWithMember]:
        results = []
        for mention in self.mentions.values():
            if mention.report_id != report_id:
                continue
            member = self.members.get(mention.member_id)
            results.append(
                MentionWithMember(
                    id=mention.id,
                    report_id=mention.report_id,
                    member_id=mention.member_id,
                    member_name=member.name if member else None,
                    feedback=mention.feedback,
                    created_at=mention.created_at,
                )
            )
        return results

    def list_member_feedback(self, member_id: str) -> list[MemberFeedbackRecord]:
        results = []
        for mention in self.mentions.values():
            report = self.reports.get(mention.report_id)
            if mention.member_id != member_id or report is None:
                continue
            results.append(
                MemberFeedbackRecord(
                    id=mention.id,
                    report_id=report.id,
                    feedback=mention.feedback,
                    created_at=mention.created_at,
                    birthday_person_name=report.birthday_person_name,
                    event_date=report.event_date,
                )
            )
        results.sort(key=lambda m: m.created_at, reverse=True)
        return results

    def delete_report_mentions(self, report_id: str) -> None:
        stale = [m.id for m in self.mentions.values() if m.report_id == report_id]
        for mention_id in stale:
            del self.mentions[mention_id]

    def create_member(self, member: MemberRecord) -> MemberRecord:
        if self.get_member_by_email(member.email):
            raise ConflictError()
        self.members[member.id] = member
        return member

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        return self.members.get(member_id)

    def get_member_by_email(self, email: str) -> Optional[MemberRecord]:
        for member in self.members.values():
            if member.email == email:
                return member
        return None

    def list_members(self, active_only: bool = False) -> list[MemberRecord]:
        items = [m for m in self.members.values() if m.active or not active_only]
        return sorted(items, key=lambda m: m.name)

    def update_member(
        self,
        member_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        member_type: Optional[MemberType] = None,
        active: Optional[bool] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[MemberRecord]:
        member = self.members.get(member_id)
        if not member:
            return None
        if email is not None and email != member.email:
            if self.get_member_by_email(email):
                raise ConflictError()
            member.email = email
        if name is not None:
            member.name = name
        if member_type is not None:
            member.member_type = member_type
        if active is not None:
            member.active = active
        if avatar_url is not None:
            member.avatar_url = avatar_url
        return member

    def update_members_by_email(
        self,
        email: str,
        *,
        name: Optional[str] = None,
        member_type: Optional[MemberType] = None,
    ) -> int:
        updated = 0
        for member in self.members.values():
            if member.email != email:
                continue
            if name is not None:
                member.name = name
            if member_type is not None:
                member.member_type = member_type
            updated += 1
        return updated

    def delete_member(self, member_id: str) -> bool:
        if self.members.pop(member_id, None) is None:
            return False
        stale = [m.id for m in self.mentions.values() if m.member_id == member_id]
        for mention_id in stale:
            del self.mentions[mention_id]
        return True

    def create_profile(self, profile: ProfileRecord) -> ProfileRecord:
        if profile.user_id in self.profiles:
            raise ConflictError()
        self.profiles[profile.user_id] = profile
        return profile

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return self.profiles.get(user_id)

    def list_profiles(self) -> list[ProfileRecord]:
        return sorted(self.profiles.values(), key=lambda p: p.created_at)

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[ProfileRecord]:
        profile = self.profiles.get(user_id)
        if not profile:
            return None
        if name is not None:
            profile.name = name
        if email is not None:
            profile.email = email
        if avatar_url is not None:
            profile.avatar_url = avatar_url
        return profile

    def delete_profile(self, user_id: str) -> None:
        self.profiles.pop(user_id, None)

    def get_role(self, user_id: str) -> Optional[Role]:
        return self.roles.get(user_id)

    def set_role(self, user_id: str, role: Role) -> None:
        self.roles[user_id] = role

    def list_roles(self) -> list[RoleRecord]:
        return [RoleRecord(user_id=k, role=v) for k, v in self.roles.items()]

    def delete_role(self, user_id: str) -> None:
        self.roles.pop(user_id, None)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (Postgres in
    production, SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection, so worker threads see the same database.
            self.engine = create_engine(
                database_url,
                future=True,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                database_url,
                future=True,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except IntegrityError as exc:
            logger.warning("Uniqueness or integrity violation: %s", exc.orig)
            raise ConflictError() from exc
        except SQLAlchemyError as exc:
            logger.exception("Database call failed")
            raise TransientError() from exc

    # Reports

    def _to_report_record(self, row: "ReportRow") -> ReportRecord:
        return ReportRecord(
            id=row.id,
            event_date=row.event_date,
            birthday_person_name=row.birthday_person_name,
            box_rating=row.box_rating,
            team_description=row.team_description,
            created_by=row.created_by,
            created_at=_as_utc(row.created_at),
            title_schedule=row.title_schedule,
            transportation_type=TransportationType(row.transportation_type),
            transportation_other_details=row.transportation_other_details,
            transport_cost_going=row.transport_cost_going,
            transport_cost_return=row.transport_cost_return,
            outside_city=row.outside_city,
            extra_hours=row.extra_hours,
            exclusivity=row.exclusivity,
            event_description=row.event_description,
            event_difficulty=row.event_difficulty,
            event_quality=row.event_quality,
            difficulties_problems=row.difficulties_problems,
            speaker_quality=row.speaker_quality,
            microphone_quality=row.microphone_quality,
            speaker_number=row.speaker_number,
            electronics_observations=row.electronics_observations,
        )

    def create_report(self, report: ReportRecord) -> ReportRecord:
        with self._session() as session:
            row = ReportRow(
                id=report.id,
                event_date=report.event_date,
                birthday_person_name=report.birthday_person_name,
                box_rating=report.box_rating,
                team_description=report.team_description,
                created_by=report.created_by,
                created_at=report.created_at,
                title_schedule=report.title_schedule,
                transportation_type=report.transportation_type.value,
                transportation_other_details=report.transportation_other_details,
                transport_cost_going=report.transport_cost_going,
                transport_cost_return=report.transport_cost_return,
                outside_city=report.outside_city,
                extra_hours=report.extra_hours,
                exclusivity=report.exclusivity,
                event_description=report.event_description,
                event_difficulty=report.event_difficulty,
                event_quality=report.event_quality,
                difficulties_problems=report.difficulties_problems,
                speaker_quality=report.speaker_quality,
                microphone_quality=report.microphone_quality,
                speaker_number=report.speaker_number,
                electronics_observations=report.electronics_observations,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_report_record(row)

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        with self._session() as session:
            row = session.get(ReportRow, report_id)
            return self._to_report_record(row) if row else None

    def list_reports(self, limit: Optional[int] = None) -> list[ReportRecord]:
        with self._session() as session:
            stmt = select(ReportRow).order_by(ReportRow.created_at.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            rows = session.execute(stmt).scalars().all()
            return [self._to_report_record(row) for row in rows]

    def count_reports(self, since: Optional[datetime] = None) -> int:
        with self._session() as session:
            stmt = select(func.count(ReportRow.id))
            if since is not None:
                stmt = stmt.where(ReportRow.created_at >= since)
            return session.execute(stmt).scalar() or 0

    def list_box_ratings(self) -> list[int]:
        with self._session() as session:
            return list(session.execute(select(ReportRow.box_rating)).scalars().all())

    def delete_report(self, report_id: str) -> None:
        with self._session() as session:
            session.execute(delete(ReportRow).where(ReportRow.id == report_id))
            session.commit()

    # Report photos

    def add_report_photos(self, photos: list[ReportPhotoRecord]) -> None:
        with self._session() as session:
            session.add_all(
                [
                    ReportPhotoRow(
                        id=photo.id,
                        report_id=photo.report_id,
                        photo_url=photo.photo_url,
                        photo_type=photo.photo_type.value,
                        created_at=photo.created_at,
                    )
                    for photo in photos
                ]
            )
            session.commit()

    def list_report_photos(self, report_id: str) -> list[ReportPhotoRecord]:
        with self._session() as session:
            stmt = (
                select(ReportPhotoRow)
                .where(ReportPhotoRow.report_id == report_id)
                .order_by(ReportPhotoRow.created_at.asc())
            )
            return [
                ReportPhotoRecord(
                    id=row.id,
                    report_id=row.report_id,
                    photo_url=row.photo_url,
                    photo_type=PhotoCategory(row.photo_type),
                    created_at=_as_utc(row.created_at),
                )
                for row in session.execute(stmt).scalars().all()
            ]

    def delete_report_photos(self, report_id: str) -> None:
        with self._session() as session:
            session.execute(
                delete(ReportPhotoRow).where(ReportPhotoRow.report_id == report_id)
            )
            session.commit()

    # Member mentions

    def add_member_mentions(self, mentions: list[MentionRecord]) -> None:
        with self._session() as session:
            session.add_all(
                [
                    MentionRow(
                        id=mention.id,
                        report_id=mention.report_id,
                        member_id=mention.member_id,
                        feedback=mention.feedback,
                        created_at=mention.created_at,
                    )
                    for mention in mentions
                ]
            )
            session.commit()

    def list_report_mentions(self, report_id: str) -> list[MentionWithMember]:
        with self._session() as session:
            stmt = (
                select(MentionRow, MemberRow.name)
                .outerjoin(MemberRow, MemberRow.id == MentionRow.member_id)
                .where(MentionRow.report_id == report_id)
                .order_by(MentionRow.created_at.asc())
            )
            return [
                MentionWithMember(
                    id=mention.id,
                    report_id=mention.report_id,
                    member_id=mention.member_id,
                    member_name=member_name,
                    feedback=mention.feedback,
                    created_at=_as_utc(mention.created_at),
                )
                for mention, member_name in session.execute(stmt).all()
            ]

    def list_member_feedback(self, member_id: str) -> list[MemberFeedbackRecord]:
        with self._session() as session:
            stmt = (
                select(MentionRow, ReportRow.birthday_person_name, ReportRow.event_date)
                .join(ReportRow, ReportRow.id == MentionRow.report_id)
                .where(MentionRow.member_id == member_id)
                .order_by(MentionRow.created_at.desc())
            )
            return [
                MemberFeedbackRecord(
                    id=mention.id,
                    report_id=mention.report_id,
                    feedback=mention.feedback,
                    created_at=_as_utc(mention.created_at),
                    birthday_person_name=person_name,
                    event_date=event_date,
                )
                for mention, person_name, event_date in session.execute(stmt).all()
            ]

    def delete_report_mentions(self, report_id: str) -> None:
        with self._session() as session:
            session.execute(delete(MentionRow).where(MentionRow.report_id == report_id))
            session.commit()

    # Members

    def _to_member_record(self, row: "MemberRow") -> MemberRecord:
        return MemberRecord(
            id=row.id,
            name=row.name,
            email=row.email,
            member_type=MemberType(row.member_type),
            active=row.active,
            avatar_url=row.avatar_url,
            created_at=_as_utc(row.created_at),
        )

    def create_member(self, member: MemberRecord) -> MemberRecord:
        with self._session() as session:
            row = MemberRow(
                id=member.id,
                name=member.name,
                email=member.email,
                member_type=member.member_type.value,
                active=member.active,
                avatar_url=member.avatar_url,
                created_at=member.created_at,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_member_record(row)

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        with self._session() as session:
            row = session.get(MemberRow, member_id)
            return self._to_member_record(row) if row else None

    def get_member_by_email(self, email: str) -> Optional[MemberRecord]:
        with self._session() as session:
            row = session.execute(
                select(MemberRow).where(MemberRow.email == email)
            ).scalar_one_or_none()
            return self._to_member_record(row) if row else None

    def list_members(self, active_only: bool = False) -> list[MemberRecord]:
        with self._session() as session:
            stmt = select(MemberRow).order_by(MemberRow.name.asc())
            if active_only:
                stmt = stmt.where(MemberRow.active.is_(True))
            return [
                self._to_member_record(row)
                for row in session.execute(stmt).scalars().all()
            ]

    def update_member(
        self,
        member_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        member_type: Optional[MemberType] = None,
        active: Optional[bool] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[MemberRecord]:
        with self._session() as session:
            row = session.get(MemberRow, member_id)
            if not row:
                return None
            if name is not None:
                row.name = name
            if email is not None:
                row.email = email
            if member_type is not None:
                row.member_type = member_type.value
            if active is not None:
                row.active = active
            if avatar_url is not None:
                row.avatar_url = avatar_url
            session.commit()
            session.refresh(row)
            return self._to_member_record(row)

    def update_members_by_email(
        self,
        email: str,
        *,
        name: Optional[str] = None,
        member_type: Optional[MemberType] = None,
    ) -> int:
        values = {}
        if name is not None:
            values[MemberRow.name] = name
        if member_type is not None:
            values[MemberRow.member_type] = member_type.value
        if not values:
            return 0
        with self._session() as session:
            result = session.execute(
                update(MemberRow).where(MemberRow.email == email).values(values)
            )
            session.commit()
            return result.rowcount or 0

    def delete_member(self, member_id: str) -> bool:
        with self._session() as session:
            session.execute(delete(MentionRow).where(MentionRow.member_id == member_id))
            result = session.execute(delete(MemberRow).where(MemberRow.id == member_id))
            session.commit()
            return bool(result.rowcount)

    # Profiles and roles

    def _to_profile_record(self, row: "ProfileRow") -> ProfileRecord:
        return ProfileRecord(
            user_id=row.user_id,
            name=row.name,
            email=row.email,
            avatar_url=row.avatar_url,
            created_at=_as_utc(row.created_at),
        )

    def create_profile(self, profile: ProfileRecord) -> ProfileRecord:
        with self._session() as session:
            row = ProfileRow(
                user_id=profile.user_id,
                name=profile.name,
                email=profile.email,
                avatar_url=profile.avatar_url,
                created_at=profile.created_at,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_profile_record(row)

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        with self._session() as session:
            row = session.get(ProfileRow, user_id)
            return self._to_profile_record(row) if row else None

    def list_profiles(self) -> list[ProfileRecord]:
        with self._session() as session:
            stmt = select(ProfileRow).order_by(ProfileRow.created_at.asc())
            return [
                self._to_profile_record(row)
                for row in session.execute(stmt).scalars().all()
            ]

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[ProfileRecord]:
        with self._session() as session:
            row = session.get(ProfileRow, user_id)
            if not row:
                return None
            if name is not None:
                row.name = name
            if email is not None:
                row.email = email
            if avatar_url is not None:
                row.avatar_url = avatar_url
            session.commit()
            session.refresh(row)
            return self._to_profile_record(row)

    def delete_profile(self, user_id: str) -> None:
        with self._session() as session:
            session.execute(delete(ProfileRow).where(ProfileRow.user_id == user_id))
            session.commit()

    def get_role(self, user_id: str) -> Optional[Role]:
        with self._session() as session:
            row = session.get(UserRoleRow, user_id)
            return Role(row.role) if row else None

    def set_role(self, user_id: str, role: Role) -> None:
        with self._session() as session:
            row = session.get(UserRoleRow, user_id)
            if row:
                row.role = role.value
            else:
                session.add(UserRoleRow(user_id=user_id, role=role.value))
            session.commit()

    def list_roles(self) -> list[RoleRecord]:
        with self._session() as session:
            rows = session.execute(select(UserRoleRow)).scalars().all()
            return [RoleRecord(user_id=row.user_id, role=Role(row.role)) for row in rows]

    def delete_role(self, user_id: str) -> None:
        with self._session() as session:
            session.execute(delete(UserRoleRow).where(UserRoleRow.user_id == user_id))
            session.commit()


Base = declarative_base()


class ReportRow(Base):
    __tablename__ = "reports"

    id = Column(String, primary_key=True)
    event_date = Column(Date, nullable=False)
    birthday_person_name = Column(String, nullable=False)
    box_rating = Column(Integer, nullable=False)
    team_description = Column(Text, nullable=True)
    created_by = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    title_schedule = Column(String, nullable=True)
    transportation_type = Column(String, nullable=False, default="uber")
    transportation_other_details = Column(String, nullable=True)
    transport_cost_going = Column(Float, nullable=False, default=0.0)
    transport_cost_return = Column(Float, nullable=False, default=0.0)
    outside_city = Column(Boolean, nullable=False, default=False)
    extra_hours = Column(Boolean, nullable=False, default=False)
    exclusivity = Column(Boolean, nullable=False, default=False)
    event_description = Column(Text, nullable=True)
    event_difficulty = Column(Integer, nullable=False, default=0)
    event_quality = Column(Integer, nullable=False, default=0)
    difficulties_problems = Column(Text, nullable=True)
    speaker_quality = Column(Integer, nullable=False, default=0)
    microphone_quality = Column(Integer, nullable=False, default=0)
    speaker_number = Column(Integer, nullable=True)
    electronics_observations = Column(Text, nullable=True)


class ReportPhotoRow(Base):
    __tablename__ = "report_photos"

    id = Column(String, primary_key=True)
    report_id = Column(String, ForeignKey("reports.id"), nullable=False, index=True)
    photo_url = Column(String, nullable=False)
    photo_type = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class MentionRow(Base):
    __tablename__ = "report_member_mentions"

    id = Column(String, primary_key=True)
    report_id = Column(String, ForeignKey("reports.id"), nullable=False, index=True)
    member_id = Column(String, ForeignKey("members.id"), nullable=False, index=True)
    feedback = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class MemberRow(Base):
    __tablename__ = "members"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    member_type = Column(String, nullable=False, default="recreator")
    active = Column(Boolean, nullable=False, default=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class ProfileRow(Base):
    __tablename__ = "profiles"

    user_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class UserRoleRow(Base):
    __tablename__ = "user_roles"

    user_id = Column(String, primary_key=True)
    role = Column(String, nullable=False)
