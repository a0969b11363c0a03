from __future__ import annotations

import csv
import io
import json
from pathlib import Path

from .assignments import seat_key
from .chart import SeatingMap
from .errors import StorageError, ValidationError


CSV_HEADER = ["Section", "Row", "Seat", "MemberId", "MemberName", "Part", "Group"]


def to_json(chart: SeatingMap) -> str:
    return json.dumps(chart.to_dict(), indent=2, ensure_ascii=False) + "\n"


def from_json(text: str) -> SeatingMap:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"not a valid JSON seating map: {e}") from e
    return SeatingMap.from_dict(data)


def to_csv(chart: SeatingMap) -> str:
    """
    One line per occupied seat, sections in layout order. Member columns are
    left blank when the member cannot be resolved.
    """
    out = io.StringIO()
    w = csv.writer(out, lineterminator="\n")
    w.writerow(CSV_HEADER)
    for section in chart.layout:
        for row, seat, member_id in chart.entries_for_section(section.name):
            member = chart.roster.get(member_id)
            w.writerow(
                [
                    section.name,
                    row,
                    seat_key(seat),
                    member_id,
                    member.name if member else "",
                    member.part.value if member else "",
                    member.group if member else "",
                ]
            )
    return out.getvalue()


def write_json_file(chart: SeatingMap, path: str | Path) -> Path:
    return _write_text(Path(path), to_json(chart))


def write_csv_file(chart: SeatingMap, path: str | Path) -> Path:
    return _write_text(Path(path), to_csv(chart))


def read_json_file(path: str | Path) -> SeatingMap:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"failed to read {p}: {e}") from e
    return from_json(text)


def _write_text(p: Path, text: str) -> Path:
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("w", newline="", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise StorageError(f"failed to write {p}: {e}") from e
    return p
