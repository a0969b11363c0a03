from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

from choir_seating.roster import Part


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Every relation is partitioned by the opaque user id of the identity provider.
# Natural keys (section name, member id) are kept stable across saves.


class SectionRecord(SQLModel, table=True):
    __tablename__ = "sections"

    user_id: str = Field(primary_key=True)
    name: str = Field(primary_key=True)
    display_order: int = 0

    created_at: datetime = Field(default_factory=_utc_now)


class SectionRowRecord(SQLModel, table=True):
    __tablename__ = "section_rows"

    user_id: str = Field(primary_key=True)
    section_name: str = Field(primary_key=True)
    row_num: int = Field(primary_key=True)
    seat_count: int


class SeatRecord(SQLModel, table=True):
    __tablename__ = "seats"

    user_id: str = Field(primary_key=True)
    section_name: str = Field(primary_key=True)
    row_num: int = Field(primary_key=True)
    seat_num: int = Field(primary_key=True)
    member_id: Optional[str] = None


class MemberRecord(SQLModel, table=True):
    __tablename__ = "members"

    user_id: str = Field(primary_key=True)
    id: str = Field(primary_key=True)
    name: str
    part: Part = Part.soprano
    group: str = ""

    updated_at: datetime = Field(default_factory=_utc_now)
