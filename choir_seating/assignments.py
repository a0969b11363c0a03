from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterator, Mapping, Optional

from .errors import ValidationError
from .layout import normalize_section_name


SEAT_KEY_PREFIX = "Seat"


def seat_key(seat: int) -> str:
    """Persisted token for a 1-based seat number, e.g. 3 -> "Seat3"."""
    return f"{SEAT_KEY_PREFIX}{seat}"


def parse_seat_key(key: str) -> int:
    text = str(key)
    if not text.startswith(SEAT_KEY_PREFIX) or not text[len(SEAT_KEY_PREFIX):].isdigit():
        raise ValidationError(f"invalid seat key {key!r}; expected {SEAT_KEY_PREFIX}<number>")
    return int(text[len(SEAT_KEY_PREFIX):])


@dataclass(frozen=True, order=True)
class SeatRef:
    section: str
    row: int
    seat: int

    def __post_init__(self) -> None:
        section = normalize_section_name(self.section)
        if not section:
            raise ValidationError("seat section must be a non-empty string")
        for label, value in (("row", self.row), ("seat", self.seat)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"{label} must be a positive integer, got {value!r}")
        object.__setattr__(self, "section", section)

    @property
    def key(self) -> str:
        return seat_key(self.seat)

    def label(self) -> str:
        return f"{self.section}-{self.row}-{self.seat}"


@dataclass(frozen=True)
class AssignmentTable:
    """
    Sparse seat -> member id mapping. Holds no layout knowledge; bounds are
    checked by the seating map before it calls ``assign``.
    """

    entries: Mapping[SeatRef, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[SeatRef, str]]:
        return iter(sorted(self.entries.items()))

    def assign(self, section: str, row: int, seat: int, member_id: str) -> "AssignmentTable":
        entries = dict(self.entries)
        entries[SeatRef(section, row, seat)] = member_id
        return AssignmentTable(entries)

    def clear(self, section: str, row: int, seat: int) -> "AssignmentTable":
        ref = SeatRef(section, row, seat)
        if ref not in self.entries:
            return self
        return AssignmentTable({k: v for k, v in self.entries.items() if k != ref})

    def member_at(self, section: str, row: int, seat: int) -> Optional[str]:
        return self.entries.get(SeatRef(section, row, seat))

    def entries_for_section(self, section: str) -> Iterator[tuple[int, int, str]]:
        name = normalize_section_name(section)
        for ref, member_id in sorted(self.entries.items()):
            if ref.section == name:
                yield ref.row, ref.seat, member_id

    def seats_of(self, member_id: str) -> list[SeatRef]:
        return sorted(ref for ref, m in self.entries.items() if m == member_id)

    def prune(self, keep: Callable[[SeatRef, str], bool]) -> "AssignmentTable":
        kept = {ref: m for ref, m in self.entries.items() if keep(ref, m)}
        if len(kept) == len(self.entries):
            return self
        return AssignmentTable(kept)

    def to_nested(self) -> dict[str, dict[str, dict[str, str]]]:
        nested: dict[str, dict[str, dict[str, str]]] = {}
        for ref, member_id in sorted(self.entries.items()):
            nested.setdefault(ref.section, {}).setdefault(str(ref.row), {})[ref.key] = member_id
        return nested

    @classmethod
    def from_nested(cls, data: Mapping) -> "AssignmentTable":
        entries: dict[SeatRef, str] = {}
        try:
            for section, rows in data.items():
                for row, seats in rows.items():
                    for key, member_id in seats.items():
                        if not member_id:
                            continue
                        entries[SeatRef(section, int(row), parse_seat_key(key))] = str(member_id)
        except (AttributeError, TypeError, ValueError) as e:
            raise ValidationError(f"invalid seat assignment data: {e}") from e
        return cls(entries)
