from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .errors import DuplicateNameError, NotFoundError, ValidationError


MIN_SEATS = 1
MAX_SEATS = 20
DEFAULT_SEAT_COUNT = 4


def normalize_section_name(name: Optional[str]) -> str:
    return (name or "").strip().upper()


@dataclass(frozen=True)
class Row:
    number: int
    seat_count: int = DEFAULT_SEAT_COUNT

    def __post_init__(self) -> None:
        if isinstance(self.number, bool) or not isinstance(self.number, int) or self.number < 1:
            raise ValidationError(f"row number must be a positive integer, got {self.number!r}")
        if isinstance(self.seat_count, bool) or not isinstance(self.seat_count, int):
            raise ValidationError(f"seat count must be an integer, got {self.seat_count!r}")
        if not (MIN_SEATS <= self.seat_count <= MAX_SEATS):
            raise ValidationError(f"seat count must be between {MIN_SEATS} and {MAX_SEATS}, got {self.seat_count}")

    def seat_indices(self) -> range:
        return range(1, self.seat_count + 1)

    def has_seat(self, seat: int) -> bool:
        return 1 <= seat <= self.seat_count


@dataclass(frozen=True)
class Section:
    """
    A named block of the layout. Rows are kept sorted by number.
    """

    name: str
    rows: tuple[Row, ...] = ()

    def __post_init__(self) -> None:
        name = normalize_section_name(self.name)
        if not name:
            raise ValidationError("section name must be a non-empty string")
        rows = tuple(sorted(self.rows, key=lambda r: r.number))
        numbers = [r.number for r in rows]
        if len(set(numbers)) != len(numbers):
            raise ValidationError(f"section {name} has duplicate row numbers")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "rows", rows)

    def row(self, number: int) -> Optional[Row]:
        for r in self.rows:
            if r.number == number:
                return r
        return None

    def row_numbers(self) -> list[int]:
        return [r.number for r in self.rows]

    def seat_count(self) -> int:
        return sum(r.seat_count for r in self.rows)

    def next_row_number(self) -> int:
        return max(self.row_numbers(), default=0) + 1

    def with_row(self, row: Row) -> "Section":
        rows = [r for r in self.rows if r.number != row.number]
        rows.append(row)
        return replace(self, rows=tuple(rows))

    def without_row(self, number: int) -> "Section":
        return replace(self, rows=tuple(r for r in self.rows if r.number != number))


@dataclass(frozen=True)
class Layout:
    """
    Sections keyed by normalized name, in display (insertion) order.
    """

    sections: Mapping[str, Section] = field(default_factory=dict)

    def __post_init__(self) -> None:
        checked: dict[str, Section] = {}
        for key, section in self.sections.items():
            if normalize_section_name(key) != section.name:
                raise ValidationError(f"section key {key!r} does not match section name {section.name!r}")
            checked[section.name] = section
        object.__setattr__(self, "sections", MappingProxyType(checked))

    @classmethod
    def of(cls, *sections: Section) -> "Layout":
        layout = cls()
        for s in sections:
            if s.name in layout:
                raise DuplicateNameError(f"section {s.name} already exists")
            layout = layout._with_section(s)
        return layout

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_section_name(name) in self.sections

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections.values())

    def __len__(self) -> int:
        return len(self.sections)

    def section(self, name: str) -> Optional[Section]:
        return self.sections.get(normalize_section_name(name))

    def row(self, section_name: str, number: int) -> Optional[Row]:
        s = self.section(section_name)
        return s.row(number) if s is not None else None

    def has_seat(self, section_name: str, row_number: int, seat: int) -> bool:
        r = self.row(section_name, row_number)
        return r is not None and r.has_seat(seat)

    def _with_section(self, section: Section) -> "Layout":
        sections = dict(self.sections)
        sections[section.name] = section
        return Layout(sections)

    def _require_section(self, name: str) -> Section:
        s = self.section(name)
        if s is None:
            raise NotFoundError(f"section not found: {normalize_section_name(name) or name!r}")
        return s

    def add_section(self, name: str) -> "Layout":
        key = normalize_section_name(name)
        if not key:
            raise DuplicateNameError("section name must be a non-empty string")
        if key in self.sections:
            raise DuplicateNameError(f"section {key} already exists")
        return self._with_section(Section(key, (Row(1, DEFAULT_SEAT_COUNT),)))

    def remove_section(self, name: str) -> "Layout":
        key = normalize_section_name(name)
        if key not in self.sections:
            return self
        return Layout({k: s for k, s in self.sections.items() if k != key})

    def add_row(self, section_name: str) -> "Layout":
        s = self._require_section(section_name)
        return self._with_section(s.with_row(Row(s.next_row_number(), DEFAULT_SEAT_COUNT)))

    def remove_row(self, section_name: str, row_number: int) -> "Layout":
        s = self.section(section_name)
        if s is None or s.row(row_number) is None:
            return self
        return self._with_section(s.without_row(row_number))

    def set_seat_count(self, section_name: str, row_number: int, count: int) -> "Layout":
        s = self._require_section(section_name)
        r = s.row(row_number)
        if r is None:
            raise NotFoundError(f"row {row_number} not found in section {s.name}")
        # Out-of-range requests are ignored, not clamped.
        if isinstance(count, bool) or not isinstance(count, int) or not (MIN_SEATS <= count <= MAX_SEATS):
            return self
        if count == r.seat_count:
            return self
        return self._with_section(s.with_row(Row(row_number, count)))

    def total_seats(self) -> int:
        return sum(s.seat_count() for s in self.sections.values())
