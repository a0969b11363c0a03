from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine


def _default_db_url() -> str:
    # Keep data out of git by default.
    data_dir = Path(os.environ.get("CHOIR_SEATING_DATA_DIR", Path.cwd() / "data"))
    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "choir_seating.db"
    return f"sqlite:///{db_path}"


def make_engine(url: str | None = None) -> Engine:
    url = url or os.environ.get("CHOIR_SEATING_DB_URL") or _default_db_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = make_engine()


def init_db(bind: Engine | None = None) -> None:
    from . import models  # noqa: F401 - ensure models are registered

    SQLModel.metadata.create_all(bind or engine)
