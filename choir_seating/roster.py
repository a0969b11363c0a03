from __future__ import annotations

import locale
import uuid
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from .errors import NotFoundError, ValidationError


class Part(str, Enum):
    soprano = "Soprano"
    alto = "Alto"
    tenor = "Tenor"
    bass = "Bass"


def parse_part(value: Union[Part, str]) -> Part:
    if isinstance(value, Part):
        return value
    text = str(value or "").strip()
    for p in Part:
        if text.lower() == p.value.lower():
            return p
    raise ValidationError(f"unknown voice part {value!r}; expected one of {[p.value for p in Part]}")


def new_member_id() -> str:
    # Random, so ids created in the same millisecond never collide.
    return f"m{uuid.uuid4().hex}"


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    part: Part
    group: str = ""

    def __post_init__(self) -> None:
        member_id = str(self.id or "").strip()
        if not member_id:
            raise ValidationError("member id must be a non-empty string")
        name = str(self.name or "").strip()
        if not name:
            raise ValidationError("member name must be a non-empty string")
        object.__setattr__(self, "id", member_id)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "part", parse_part(self.part))
        object.__setattr__(self, "group", str(self.group if self.group is not None else "").strip())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "part": self.part.value, "group": self.group}

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        try:
            return cls(id=data["id"], name=data["name"], part=data["part"], group=data.get("group", ""))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValidationError(f"invalid member data: {e}") from e


def _name_key(member: Member) -> tuple[str, str]:
    # Case-insensitive collation first, exact name as the tie-break.
    return locale.strxfrm(member.name.casefold()), locale.strxfrm(member.name)


@dataclass(frozen=True)
class Roster:
    """
    Members keyed by id. Names are display labels only and may repeat.
    """

    members: Mapping[str, Member] = field(default_factory=dict)

    def __post_init__(self) -> None:
        checked: dict[str, Member] = {}
        for key, member in self.members.items():
            if key != member.id:
                raise ValidationError(f"member key {key!r} does not match member id {member.id!r}")
            checked[key] = member
        object.__setattr__(self, "members", MappingProxyType(checked))

    def __contains__(self, member_id: object) -> bool:
        return member_id in self.members

    def __iter__(self) -> Iterator[Member]:
        return iter(self.members.values())

    def __len__(self) -> int:
        return len(self.members)

    def get(self, member_id: str) -> Optional[Member]:
        return self.members.get(member_id)

    def with_member(self, member: Member) -> "Roster":
        members = dict(self.members)
        members[member.id] = member
        return Roster(members)

    def add_member(self, name: str, part: Union[Part, str], group: str = "") -> tuple["Roster", Member]:
        member_id = new_member_id()
        while member_id in self.members:
            member_id = new_member_id()
        member = Member(id=member_id, name=name, part=part, group=group)
        return self.with_member(member), member

    def update_member(
        self, member_id: str, name: str, part: Union[Part, str], group: str = ""
    ) -> tuple["Roster", Member]:
        if member_id not in self.members:
            raise NotFoundError(f"member not found: {member_id!r}")
        member = Member(id=member_id, name=name, part=part, group=group)
        return self.with_member(member), member

    def remove_member(self, member_id: str) -> "Roster":
        if member_id not in self.members:
            return self
        return Roster({k: m for k, m in self.members.items() if k != member_id})

    def query(self, text: Optional[str] = None, part: Union[Part, str, None] = None) -> list[Member]:
        """
        Members whose name contains ``text`` (case-insensitive) and whose part
        equals ``part``; either filter may be omitted. Sorted by name.
        """
        found = list(self.members.values())
        needle = (text or "").strip().casefold()
        if needle:
            found = [m for m in found if needle in m.name.casefold()]
        if part is not None:
            wanted = parse_part(part)
            found = [m for m in found if m.part is wanted]
        return sorted(found, key=_name_key)

    def counts_by_part(self) -> dict[Part, int]:
        counts = {p: 0 for p in Part}
        for m in self.members.values():
            counts[m.part] += 1
        return counts

    def groups_for_part(self, part: Union[Part, str]) -> dict[str, list[Member]]:
        wanted = parse_part(part)
        groups: dict[str, list[Member]] = {}
        for m in self.members.values():
            if m.part is wanted:
                groups.setdefault(m.group, []).append(m)
        return {g: sorted(groups[g], key=_name_key) for g in sorted(groups)}
