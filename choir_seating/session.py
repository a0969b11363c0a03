from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol, Union

from .chart import SeatingMap
from .errors import RemoteBusyError
from .roster import Member, Part
from .storage import LocalSnapshotStore


logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    def save(self, user_id: str, chart: SeatingMap) -> bool: ...

    def load(self, user_id: str) -> Optional[SeatingMap]: ...


def restore_seating_map(
    user_id: Optional[str],
    local: LocalSnapshotStore,
    remote: Optional[RemoteStore] = None,
) -> SeatingMap:
    """
    Remote snapshot first when an identity is known, then the local slot,
    then an empty map.
    """
    if user_id and remote is not None:
        chart = remote.load(user_id)
        if chart is not None:
            logger.info("restored seating map for %s from remote store", user_id)
            return chart
        logger.info("no remote seating map for %s; falling back to local cache", user_id)
    chart = local.load()
    if chart is not None:
        return chart
    return SeatingMap()


class SeatingSession:
    """
    Owns the current seating map for one editing session.

    Edits replace the map as a whole under a lock. Remote save/load are
    additionally guarded by a single in-flight flag: a second remote call
    while one is running raises RemoteBusyError instead of interleaving.
    """

    def __init__(
        self,
        local: LocalSnapshotStore,
        remote: Optional[RemoteStore] = None,
        user_id: Optional[str] = None,
        chart: Optional[SeatingMap] = None,
    ):
        self.local = local
        self.remote = remote
        self.user_id = user_id
        self._chart = chart if chart is not None else SeatingMap()
        self._lock = threading.RLock()
        self._remote_lock = threading.Lock()

    @classmethod
    def start(
        cls,
        local: LocalSnapshotStore,
        remote: Optional[RemoteStore] = None,
        user_id: Optional[str] = None,
    ) -> "SeatingSession":
        return cls(local, remote, user_id, restore_seating_map(user_id, local, remote))

    @property
    def chart(self) -> SeatingMap:
        return self._chart

    @property
    def remote_in_flight(self) -> bool:
        return self._remote_lock.locked()

    def apply(self, change: Callable[[SeatingMap], SeatingMap]) -> SeatingMap:
        with self._lock:
            self._chart = change(self._chart)
            return self._chart

    def add_member(self, name: str, part: Union[Part, str], group: str = "") -> Member:
        with self._lock:
            self._chart, member = self._chart.add_member(name, part, group)
            return member

    def update_member(self, member_id: str, name: str, part: Union[Part, str], group: str = "") -> Member:
        with self._lock:
            self._chart, member = self._chart.update_member(member_id, name, part, group)
            return member

    def replace(self, chart: SeatingMap) -> SeatingMap:
        with self._lock:
            self._chart = chart
            return chart

    def save_local(self) -> None:
        self.local.save(self._chart)

    def load_local(self) -> bool:
        chart = self.local.load()
        if chart is None:
            return False
        self.replace(chart)
        return True

    def save_remote(self) -> bool:
        if not self.user_id or self.remote is None:
            return False
        if not self._remote_lock.acquire(blocking=False):
            raise RemoteBusyError("a remote save or load is already in progress")
        try:
            return self.remote.save(self.user_id, self._chart)
        finally:
            self._remote_lock.release()

    def load_remote(self) -> bool:
        if not self.user_id or self.remote is None:
            return False
        if not self._remote_lock.acquire(blocking=False):
            raise RemoteBusyError("a remote save or load is already in progress")
        try:
            chart = self.remote.load(self.user_id)
        finally:
            self._remote_lock.release()
        if chart is None:
            return False
        self.replace(chart)
        return True
