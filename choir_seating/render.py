from __future__ import annotations

from typing import Optional

from .chart import SeatingMap


def _cell(text: Optional[str], width: int) -> str:
    if not text:
        return ".".center(width)
    t = str(text)
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.center(width)


def render_text(chart: SeatingMap, *, cell_width: int = 8) -> str:
    cell_width = max(3, int(cell_width))

    blocks = []
    for section in chart.layout:
        lines = [f"[{section.name}] {len(section.rows)} rows | {section.seat_count()} seats"]
        for row in section.rows:
            cells = []
            for seat in row.seat_indices():
                member_id = chart.member_at(section.name, row.number, seat)
                member = chart.roster.get(member_id) if member_id else None
                cells.append(_cell(member.name if member else member_id, cell_width))
            lines.append(f"{row.number:>3} " + " ".join(cells))
        blocks.append("\n".join(lines))
    if not blocks:
        return "(no sections)"
    return "\n\n".join(blocks)
