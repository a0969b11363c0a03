from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from choir_seating.chart import SeatingMap
from choir_seating.errors import (
    DuplicateNameError,
    NotFoundError,
    RemoteBusyError,
    SeatingMapError,
    StorageError,
    ValidationError,
)
from choir_seating.export import to_csv, to_json
from choir_seating.roster import Member, Part
from choir_seating.session import RemoteStore, SeatingSession
from choir_seating.storage import SLOT_NAME, LocalSnapshotStore, default_data_dir

from .schemas import (
    MemberCreate,
    MemberUpdate,
    SeatAssign,
    SeatCountUpdate,
    SeatingMapPayload,
    SectionCreate,
    SyncResult,
)


logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"


class SessionRegistry:
    """
    One editing session per identity, created on first use (restoring the
    remote snapshot, then the local one) and dropped by ``end``.
    """

    def __init__(self, data_dir: Path | None = None, remote: RemoteStore | None = None):
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self._remote = remote
        self._sessions: dict[Optional[str], SeatingSession] = {}
        self._lock = threading.Lock()

    @property
    def remote(self) -> RemoteStore:
        if self._remote is None:
            from .remote import RemoteSnapshotStore

            self._remote = RemoteSnapshotStore()
        return self._remote

    def local_store(self, user_id: Optional[str]) -> LocalSnapshotStore:
        slot = f"user-{quote(user_id, safe='')}" if user_id else ANONYMOUS
        return LocalSnapshotStore(self.data_dir / "local" / f"{slot}-{SLOT_NAME}")

    def get(self, user_id: Optional[str]) -> SeatingSession:
        with self._lock:
            session = self._sessions.get(user_id)
            remote = self.remote if user_id else None
        if session is not None:
            return session
        # Restore outside the lock: it may wait on the remote store.
        session = SeatingSession.start(self.local_store(user_id), remote, user_id)
        with self._lock:
            return self._sessions.setdefault(user_id, session)

    def end(self, user_id: Optional[str]) -> bool:
        with self._lock:
            return self._sessions.pop(user_id, None) is not None


registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    return registry


def current_session(
    x_user_id: Optional[str] = Header(default=None),
    reg: SessionRegistry = Depends(get_registry),
) -> SeatingSession:
    try:
        return reg.get((x_user_id or "").strip() or None)
    except SeatingMapError as e:
        raise _http_error(e) from e


app = FastAPI(title="Choir Seating Map API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(e: SeatingMapError) -> HTTPException:
    if isinstance(e, DuplicateNameError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, RemoteBusyError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, StorageError):
        return HTTPException(status_code=500, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _map_out(chart: SeatingMap) -> dict:
    return {**chart.to_dict(), "total_seats": chart.total_seats()}


def _member_out(m: Member) -> dict:
    return m.to_dict()


def _edit(session: SeatingSession, change: Callable[[SeatingMap], SeatingMap]) -> dict:
    try:
        return _map_out(session.apply(change))
    except SeatingMapError as e:
        raise _http_error(e) from e


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/map")
def get_map(session: SeatingSession = Depends(current_session)) -> dict:
    return _map_out(session.chart)


@app.put("/map")
def import_map(payload: SeatingMapPayload, session: SeatingSession = Depends(current_session)) -> dict:
    """
    Replace the whole map with an uploaded canonical JSON document.
    """
    try:
        chart = SeatingMap.from_dict(payload.model_dump())
    except SeatingMapError as e:
        raise _http_error(e) from e
    return _map_out(session.replace(chart))


@app.delete("/session")
def end_session(
    x_user_id: Optional[str] = Header(default=None),
    reg: SessionRegistry = Depends(get_registry),
) -> dict:
    return {"ended": reg.end((x_user_id or "").strip() or None)}


# -- layout ----------------------------------------------------------------


@app.post("/sections")
def create_section(payload: SectionCreate, session: SeatingSession = Depends(current_session)) -> dict:
    return _edit(session, lambda m: m.add_section(payload.name))


@app.delete("/sections/{name}")
def delete_section(name: str, session: SeatingSession = Depends(current_session)) -> dict:
    return _edit(session, lambda m: m.remove_section(name))


@app.post("/sections/{name}/rows")
def create_row(name: str, session: SeatingSession = Depends(current_session)) -> dict:
    return _edit(session, lambda m: m.add_row(name))


@app.delete("/sections/{name}/rows/{row}")
def delete_row(name: str, row: int, session: SeatingSession = Depends(current_session)) -> dict:
    return _edit(session, lambda m: m.remove_row(name, row))


@app.put("/sections/{name}/rows/{row}")
def update_seat_count(
    name: str, row: int, payload: SeatCountUpdate, session: SeatingSession = Depends(current_session)
) -> dict:
    return _edit(session, lambda m: m.set_seat_count(name, row, payload.count))


# -- roster ----------------------------------------------------------------


@app.get("/members")
def list_members(
    q: Optional[str] = None,
    part: Optional[Part] = None,
    session: SeatingSession = Depends(current_session),
) -> list[dict]:
    return [_member_out(m) for m in session.chart.roster.query(q, part)]


@app.get("/members/stats")
def member_stats(session: SeatingSession = Depends(current_session)) -> dict:
    counts = session.chart.roster.counts_by_part()
    return {"total": len(session.chart.roster), "by_part": {p.value: n for p, n in counts.items()}}


@app.get("/members/groups")
def member_groups(part: Part, session: SeatingSession = Depends(current_session)) -> dict:
    """Members of one voice part keyed by sub-group, as offered by the seat picker."""
    groups = session.chart.roster.groups_for_part(part)
    return {g: [_member_out(m) for m in members] for g, members in groups.items()}


@app.post("/members")
def create_member(payload: MemberCreate, session: SeatingSession = Depends(current_session)) -> dict:
    try:
        member = session.add_member(payload.name, payload.part, payload.group)
    except SeatingMapError as e:
        raise _http_error(e) from e
    return _member_out(member)


@app.put("/members/{member_id}")
def update_member(member_id: str, payload: MemberUpdate, session: SeatingSession = Depends(current_session)) -> dict:
    try:
        member = session.update_member(member_id, payload.name, payload.part, payload.group)
    except SeatingMapError as e:
        raise _http_error(e) from e
    return _member_out(member)


@app.delete("/members/{member_id}")
def delete_member(member_id: str, session: SeatingSession = Depends(current_session)) -> dict:
    return _edit(session, lambda m: m.remove_member(member_id))


# -- seats -----------------------------------------------------------------


@app.get("/seats/{section}/{row}/{seat}")
def get_seat(section: str, row: int, seat: int, session: SeatingSession = Depends(current_session)) -> dict:
    return {"member_id": session.chart.member_at(section, row, seat)}


@app.put("/seats/{section}/{row}/{seat}")
def assign_seat(
    section: str, row: int, seat: int, payload: SeatAssign, session: SeatingSession = Depends(current_session)
) -> dict:
    return _edit(session, lambda m: m.assign_member(section, row, seat, payload.member_id))


@app.delete("/seats/{section}/{row}/{seat}")
def clear_seat(section: str, row: int, seat: int, session: SeatingSession = Depends(current_session)) -> dict:
    return _edit(session, lambda m: m.clear_seat(section, row, seat))


# -- snapshots -------------------------------------------------------------


@app.post("/snapshot/local")
def save_local(session: SeatingSession = Depends(current_session)) -> SyncResult:
    try:
        session.save_local()
    except StorageError as e:
        raise _http_error(e) from e
    return SyncResult(ok=True, source="local")


@app.post("/snapshot/local/load")
def load_local(session: SeatingSession = Depends(current_session)) -> SyncResult:
    try:
        ok = session.load_local()
    except StorageError as e:
        raise _http_error(e) from e
    return SyncResult(ok=ok, source="local" if ok else None)


@app.post("/snapshot/remote")
def save_remote(session: SeatingSession = Depends(current_session)) -> SyncResult:
    if not session.user_id:
        raise HTTPException(status_code=401, detail="sign in to save to the remote store")
    try:
        ok = session.save_remote()
    except RemoteBusyError as e:
        raise _http_error(e) from e
    if not ok:
        # State of the remote copy is unknown after a failed save.
        raise HTTPException(status_code=502, detail="remote save failed")
    return SyncResult(ok=True, source="remote")


@app.post("/snapshot/remote/load")
def load_remote(session: SeatingSession = Depends(current_session)) -> SyncResult:
    if not session.user_id:
        raise HTTPException(status_code=401, detail="sign in to load from the remote store")
    try:
        ok = session.load_remote()
    except RemoteBusyError as e:
        raise _http_error(e) from e
    return SyncResult(ok=ok, source="remote" if ok else None)


# -- export ----------------------------------------------------------------


@app.get("/export.json")
def export_json(session: SeatingSession = Depends(current_session)) -> Response:
    return Response(
        content=to_json(session.chart),
        media_type="application/json",
        headers={"content-disposition": 'attachment; filename="seating-map.json"'},
    )


@app.get("/export.csv")
def export_csv(session: SeatingSession = Depends(current_session)) -> Response:
    return Response(
        content=to_csv(session.chart),
        media_type="text/csv",
        headers={"content-disposition": 'attachment; filename="seating-map.csv"'},
    )
