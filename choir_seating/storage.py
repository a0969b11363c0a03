from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .chart import SeatingMap
from .errors import SeatingMapError, StorageError
from .export import to_json


logger = logging.getLogger(__name__)

SLOT_NAME = "choir_seating_map_data.json"


def default_data_dir() -> Path:
    return Path(os.environ.get("CHOIR_SEATING_DATA_DIR", Path.cwd() / "data"))


class LocalSnapshotStore:
    """
    One named slot on disk holding the serialized seating map. Saving
    overwrites the slot wholesale.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else default_data_dir() / SLOT_NAME

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, chart: SeatingMap) -> None:
        try:
            text = to_json(chart)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.exception("local save to %s failed", self.path)
            raise StorageError(f"failed to save seating map to {self.path}: {e}") from e
        logger.info("saved seating map to %s", self.path)

    def load(self) -> Optional[SeatingMap]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.exception("local load from %s failed", self.path)
            raise StorageError(f"failed to read seating map JSON: {e}") from e
        try:
            chart = SeatingMap.from_dict(data)
        except SeatingMapError as e:
            raise StorageError(f"stored seating map is invalid: {e}") from e
        logger.info("loaded seating map from %s", self.path)
        return chart

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"failed to remove {self.path}: {e}") from e
