from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Union

from .assignments import AssignmentTable, SeatRef
from .errors import (
    DuplicateNameError,
    InvalidMemberError,
    InvalidSeatError,
    NotFoundError,
    SeatingMapError,
    StorageError,
    ValidationError,
)
from .layout import Layout, Row, Section, normalize_section_name
from .roster import Member, Part, Roster


logger = logging.getLogger(__name__)

__all__ = [
    "DuplicateNameError",
    "InvalidMemberError",
    "InvalidSeatError",
    "NotFoundError",
    "SeatingMap",
    "SeatingMapError",
    "StorageError",
    "ValidationError",
    "reconcile",
]


def reconcile(layout: Layout, roster: Roster, assignments: AssignmentTable) -> AssignmentTable:
    """
    Drop every assignment whose seat is no longer in ``layout`` or whose
    member is no longer in ``roster``.
    """

    def keep(ref: SeatRef, member_id: str) -> bool:
        return layout.has_seat(ref.section, ref.row, ref.seat) and member_id in roster

    pruned = assignments.prune(keep)
    if pruned is not assignments:
        logger.debug("pruned %d stale seat assignment(s)", len(assignments) - len(pruned))
    return pruned


@dataclass(frozen=True)
class SeatingMap:
    """
    Layout, roster and seat assignments as one consistent value.

    Every edit returns a new map whose assignments have already been
    reconciled against the new layout and roster; the receiver is never
    modified, so a reader holding the previous map keeps a consistent view.
    """

    layout: Layout = field(default_factory=Layout)
    roster: Roster = field(default_factory=Roster)
    assignments: AssignmentTable = field(default_factory=AssignmentTable)

    def __post_init__(self) -> None:
        for ref, member_id in self.assignments:
            if not self.layout.has_seat(ref.section, ref.row, ref.seat):
                raise InvalidSeatError(f"assignment for missing seat {ref.label()}")
            if member_id not in self.roster:
                raise InvalidMemberError(f"assignment at {ref.label()} references unknown member {member_id!r}")

    def _evolve(self, layout: Optional[Layout] = None, roster: Optional[Roster] = None) -> "SeatingMap":
        layout = layout if layout is not None else self.layout
        roster = roster if roster is not None else self.roster
        if layout is self.layout and roster is self.roster:
            return self
        return SeatingMap(layout, roster, reconcile(layout, roster, self.assignments))

    # -- layout edits -------------------------------------------------------

    def add_section(self, name: str) -> "SeatingMap":
        return self._evolve(layout=self.layout.add_section(name))

    def remove_section(self, name: str) -> "SeatingMap":
        return self._evolve(layout=self.layout.remove_section(name))

    def add_row(self, section: str) -> "SeatingMap":
        return self._evolve(layout=self.layout.add_row(section))

    def remove_row(self, section: str, row: int) -> "SeatingMap":
        return self._evolve(layout=self.layout.remove_row(section, row))

    def set_seat_count(self, section: str, row: int, count: int) -> "SeatingMap":
        return self._evolve(layout=self.layout.set_seat_count(section, row, count))

    def with_layout(self, layout: Layout) -> "SeatingMap":
        return self._evolve(layout=layout)

    def total_seats(self) -> int:
        return self.layout.total_seats()

    # -- roster edits -------------------------------------------------------

    def add_member(self, name: str, part: Union[Part, str], group: str = "") -> tuple["SeatingMap", Member]:
        roster, member = self.roster.add_member(name, part, group)
        return replace(self, roster=roster), member

    def update_member(
        self, member_id: str, name: str, part: Union[Part, str], group: str = ""
    ) -> tuple["SeatingMap", Member]:
        roster, member = self.roster.update_member(member_id, name, part, group)
        return replace(self, roster=roster), member

    def remove_member(self, member_id: str) -> "SeatingMap":
        return self._evolve(roster=self.roster.remove_member(member_id))

    def with_roster(self, roster: Roster) -> "SeatingMap":
        return self._evolve(roster=roster)

    # -- seat assignments ---------------------------------------------------

    def assign_member(self, section: str, row: int, seat: int, member_id: str) -> "SeatingMap":
        if not self.layout.has_seat(section, row, seat):
            raise InvalidSeatError(f"seat does not exist: section={normalize_section_name(section)!r}, row={row}, seat={seat}")
        if member_id not in self.roster:
            raise InvalidMemberError(f"member not found: {member_id!r}")
        return replace(self, assignments=self.assignments.assign(section, row, seat, member_id))

    def clear_seat(self, section: str, row: int, seat: int) -> "SeatingMap":
        try:
            assignments = self.assignments.clear(section, row, seat)
        except ValidationError:
            # A seat that cannot exist is already empty.
            return self
        if assignments is self.assignments:
            return self
        return replace(self, assignments=assignments)

    def member_at(self, section: str, row: int, seat: int) -> Optional[str]:
        try:
            return self.assignments.member_at(section, row, seat)
        except ValidationError:
            return None

    def entries_for_section(self, section: str) -> Iterator[tuple[int, int, str]]:
        return self.assignments.entries_for_section(section)

    def find_member(self, member_id: str) -> list[SeatRef]:
        return self.assignments.seats_of(member_id)

    # -- canonical encoding -------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "sections": {
                s.name: {"rows": {str(r.number): r.seat_count for r in s.rows}} for s in self.layout
            },
            "seats": self.assignments.to_nested(),
            "members": {m.id: m.to_dict() for m in self.roster},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SeatingMap":
        """
        Build a map from its canonical encoding. Assignments that do not fit
        the layout or roster are rejected rather than silently dropped.
        """
        if not isinstance(data, dict):
            raise ValidationError("seating map data must be an object")
        try:
            sections = data.get("sections") or {}
            layout = Layout.of(
                *(
                    Section(name, tuple(Row(int(num), int(count)) for num, count in (body.get("rows") or {}).items()))
                    for name, body in sections.items()
                )
            )
            roster = Roster({str(mid): Member.from_dict(m) for mid, m in (data.get("members") or {}).items()})
        except (AttributeError, TypeError, ValueError) as e:
            raise ValidationError(f"invalid seating map data: {e}") from e

        return cls(layout, roster, AssignmentTable.from_nested(data.get("seats") or {}))
