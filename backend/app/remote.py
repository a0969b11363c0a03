from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from choir_seating.assignments import AssignmentTable, SeatRef
from choir_seating.chart import SeatingMap
from choir_seating.errors import SeatingMapError
from choir_seating.layout import Layout, Row, Section
from choir_seating.roster import Member, Roster

from .db import engine as default_engine
from .db import init_db
from .models import MemberRecord, SeatRecord, SectionRecord, SectionRowRecord


logger = logging.getLogger(__name__)


class RemoteSnapshotStore:
    """
    Seating maps stored as the four per-user relations.

    ``save`` reconciles the stored records with the map inside a single
    transaction: unchanged records are left alone, changed ones updated in
    place, missing ones inserted and stale ones deleted. Member ids and
    section names survive saves. Any failure rolls the whole save back and is
    reported as ``False``; ``load`` reports failures as ``None``, and so does
    a user with nothing stored.
    """

    def __init__(self, engine: Engine | None = None, *, create_tables: bool = True):
        self.engine = engine or default_engine
        if create_tables:
            init_db(self.engine)

    def save(self, user_id: str, chart: SeatingMap) -> bool:
        try:
            with Session(self.engine) as session:
                with session.begin():
                    self._sync_members(session, user_id, chart)
                    self._sync_sections(session, user_id, chart)
                    self._sync_rows(session, user_id, chart)
                    self._sync_seats(session, user_id, chart)
        except (SQLAlchemyError, SeatingMapError, ValueError):
            logger.exception("remote save failed for user %s", user_id)
            return False
        logger.info(
            "saved seating map for %s: %d sections, %d members, %d assignments",
            user_id,
            len(chart.layout),
            len(chart.roster),
            len(chart.assignments),
        )
        return True

    def load(self, user_id: str) -> Optional[SeatingMap]:
        try:
            with Session(self.engine) as session:
                sections = session.exec(
                    select(SectionRecord)
                    .where(SectionRecord.user_id == user_id)
                    .order_by(SectionRecord.display_order, SectionRecord.name)
                ).all()
                rows = session.exec(select(SectionRowRecord).where(SectionRowRecord.user_id == user_id)).all()
                seats = session.exec(select(SeatRecord).where(SeatRecord.user_id == user_id)).all()
                members = session.exec(select(MemberRecord).where(MemberRecord.user_id == user_id)).all()
                if not (sections or rows or seats or members):
                    return None

                rows_by_section: dict[str, list[Row]] = {}
                for r in rows:
                    rows_by_section.setdefault(r.section_name, []).append(Row(r.row_num, r.seat_count))
                layout = Layout.of(*(Section(s.name, tuple(rows_by_section.get(s.name, ()))) for s in sections))
                roster = Roster({m.id: Member(id=m.id, name=m.name, part=m.part, group=m.group) for m in members})
                assignments = AssignmentTable(
                    {
                        SeatRef(s.section_name, s.row_num, s.seat_num): s.member_id
                        for s in seats
                        if s.member_id
                    }
                )
                return SeatingMap(layout, roster, assignments)
        except (SQLAlchemyError, SeatingMapError, ValueError):
            logger.exception("remote load failed for user %s", user_id)
            return None

    def delete(self, user_id: str) -> bool:
        return self.save(user_id, SeatingMap())

    # -- per-relation diff --------------------------------------------------

    def _sync_members(self, session: Session, user_id: str, chart: SeatingMap) -> None:
        existing = {m.id: m for m in session.exec(select(MemberRecord).where(MemberRecord.user_id == user_id)).all()}
        for member in chart.roster:
            rec = existing.pop(member.id, None)
            if rec is None:
                session.add(
                    MemberRecord(user_id=user_id, id=member.id, name=member.name, part=member.part, group=member.group)
                )
            elif (rec.name, rec.part, rec.group) != (member.name, member.part, member.group):
                rec.name = member.name
                rec.part = member.part
                rec.group = member.group
                session.add(rec)
        for rec in existing.values():
            session.delete(rec)

    def _sync_sections(self, session: Session, user_id: str, chart: SeatingMap) -> None:
        existing = {
            s.name: s for s in session.exec(select(SectionRecord).where(SectionRecord.user_id == user_id)).all()
        }
        for order, section in enumerate(chart.layout):
            rec = existing.pop(section.name, None)
            if rec is None:
                session.add(SectionRecord(user_id=user_id, name=section.name, display_order=order))
            elif rec.display_order != order:
                rec.display_order = order
                session.add(rec)
        for rec in existing.values():
            session.delete(rec)

    def _sync_rows(self, session: Session, user_id: str, chart: SeatingMap) -> None:
        existing = {
            (r.section_name, r.row_num): r
            for r in session.exec(select(SectionRowRecord).where(SectionRowRecord.user_id == user_id)).all()
        }
        for section in chart.layout:
            for row in section.rows:
                rec = existing.pop((section.name, row.number), None)
                if rec is None:
                    session.add(
                        SectionRowRecord(
                            user_id=user_id, section_name=section.name, row_num=row.number, seat_count=row.seat_count
                        )
                    )
                elif rec.seat_count != row.seat_count:
                    rec.seat_count = row.seat_count
                    session.add(rec)
        for rec in existing.values():
            session.delete(rec)

    def _sync_seats(self, session: Session, user_id: str, chart: SeatingMap) -> None:
        existing = {
            (s.section_name, s.row_num, s.seat_num): s
            for s in session.exec(select(SeatRecord).where(SeatRecord.user_id == user_id)).all()
        }
        for ref, member_id in chart.assignments:
            rec = existing.pop((ref.section, ref.row, ref.seat), None)
            if rec is None:
                session.add(
                    SeatRecord(
                        user_id=user_id, section_name=ref.section, row_num=ref.row, seat_num=ref.seat, member_id=member_id
                    )
                )
            elif rec.member_id != member_id:
                rec.member_id = member_id
                session.add(rec)
        for rec in existing.values():
            session.delete(rec)
