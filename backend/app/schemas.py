from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from choir_seating.roster import Part


class SectionCreate(BaseModel):
    name: str


class SeatCountUpdate(BaseModel):
    # Not range-checked here: out-of-range counts are ignored by the layout.
    count: int


class MemberCreate(BaseModel):
    name: str
    part: Part
    group: str = ""


class MemberUpdate(BaseModel):
    name: str
    part: Part
    group: str = ""


class SeatAssign(BaseModel):
    member_id: str


class SeatingMapPayload(BaseModel):
    sections: dict[str, dict] = {}
    seats: dict[str, dict] = {}
    members: dict[str, dict] = {}


class SyncResult(BaseModel):
    ok: bool
    source: Optional[str] = None
