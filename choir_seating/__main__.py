from __future__ import annotations

import argparse
import logging
import os
from typing import Optional, Sequence

from .chart import SeatingMap
from .errors import SeatingMapError
from .export import read_json_file, write_csv_file, write_json_file
from .render import render_text
from .roster import Part
from .session import SeatingSession, restore_seating_map
from .storage import LocalSnapshotStore


PARTS = [p.value for p in Part]


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=None,
        help="Path to the local snapshot (default: $CHOIR_SEATING_DATA_DIR/choir_seating_map_data.json)",
    )


def _store(args: argparse.Namespace) -> LocalSnapshotStore:
    return LocalSnapshotStore(args.file)


def _load(args: argparse.Namespace) -> SeatingMap:
    return _store(args).load() or SeatingMap()


def _save(args: argparse.Namespace, chart: SeatingMap) -> SeatingMap:
    _store(args).save(chart)
    return chart


def _remote():
    from backend.app.remote import RemoteSnapshotStore

    return RemoteSnapshotStore()


def _user(args: argparse.Namespace) -> Optional[str]:
    user = (getattr(args, "user", None) or os.environ.get("CHOIR_SEATING_USER") or "").strip()
    return user or None


def cmd_init(args: argparse.Namespace) -> int:
    store = _store(args)
    if store.exists() and not args.overwrite:
        raise SeatingMapError(f"{store.path} already exists; use --overwrite to replace it")
    chart = SeatingMap()
    for name in args.section or []:
        chart = chart.add_section(name)
    store.save(chart)
    print(f"Initialized seating map at {store.path} ({len(chart.layout)} sections)")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    chart = _load(args)
    print(render_text(chart, cell_width=args.width))
    print(f"\nTotal seats: {chart.total_seats()}")
    return 0


def cmd_add_section(args: argparse.Namespace) -> int:
    chart = _save(args, _load(args).add_section(args.name))
    print(f"Added section {args.name.strip().upper()} ({chart.total_seats()} seats total)")
    return 0


def cmd_remove_section(args: argparse.Namespace) -> int:
    _save(args, _load(args).remove_section(args.name))
    print(f"Removed section {args.name.strip().upper()}")
    return 0


def cmd_add_row(args: argparse.Namespace) -> int:
    chart = _save(args, _load(args).add_row(args.section))
    section = chart.layout.section(args.section)
    print(f"Added row {section.rows[-1].number} to section {section.name}")
    return 0


def cmd_remove_row(args: argparse.Namespace) -> int:
    _save(args, _load(args).remove_row(args.section, args.row))
    print(f"Removed row {args.row} from section {args.section.strip().upper()}")
    return 0


def cmd_set_seats(args: argparse.Namespace) -> int:
    before = _load(args)
    after = _save(args, before.set_seat_count(args.section, args.row, args.count))
    row = after.layout.row(args.section, args.row)
    if after.layout == before.layout and row.seat_count != args.count:
        print(f"Ignored seat count {args.count}; row keeps {row.seat_count} seats")
        return 1
    print(f"Row {args.row} of section {args.section.strip().upper()} now has {row.seat_count} seats")
    return 0


def cmd_add_member(args: argparse.Namespace) -> int:
    chart, member = _load(args).add_member(args.name, args.part, args.group)
    _save(args, chart)
    print(f"Added member {member.id} ({member.name}, {member.part.value}, group {member.group or '-'})")
    return 0


def cmd_update_member(args: argparse.Namespace) -> int:
    chart, member = _load(args).update_member(args.id, args.name, args.part, args.group)
    _save(args, chart)
    print(f"Updated member {member.id}")
    return 0


def cmd_remove_member(args: argparse.Namespace) -> int:
    _save(args, _load(args).remove_member(args.id))
    print(f"Removed member {args.id}")
    return 0


def cmd_members(args: argparse.Namespace) -> int:
    chart = _load(args)
    for m in chart.roster.query(args.search, args.part):
        print(f"{m.id}\t{m.name}\t{m.part.value}\t{m.group}")
    return 0


def cmd_assign(args: argparse.Namespace) -> int:
    _save(args, _load(args).assign_member(args.section, args.row, args.seat, args.member))
    print(f"Assigned {args.member} to {args.section.strip().upper()}-{args.row}-{args.seat}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    _save(args, _load(args).clear_seat(args.section, args.row, args.seat))
    print(f"Cleared {args.section.strip().upper()}-{args.row}-{args.seat}")
    return 0


def cmd_find(args: argparse.Namespace) -> int:
    seats = _load(args).find_member(args.member)
    if not seats:
        print("Not found")
        return 1
    for ref in seats:
        print(f"Found at {ref.label()}")
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    out = write_csv_file(_load(args), args.output)
    print(f"Exported assigned seats to {out}")
    return 0


def cmd_export_json(args: argparse.Namespace) -> int:
    out = write_json_file(_load(args), args.output)
    print(f"Exported seating map to {out}")
    return 0


def cmd_import_json(args: argparse.Namespace) -> int:
    chart = read_json_file(args.input)
    _store(args).save(chart)
    print(f"Imported seating map from {args.input}")
    return 0


def cmd_push(args: argparse.Namespace) -> int:
    user = _user(args)
    if not user:
        raise SeatingMapError("an identity is required; pass --user or set CHOIR_SEATING_USER")
    session = SeatingSession(_store(args), _remote(), user, _load(args))
    if not session.save_remote():
        print("Remote save failed; the remote copy may be incomplete")
        return 1
    print(f"Saved seating map to the remote store for {user}")
    return 0


def cmd_pull(args: argparse.Namespace) -> int:
    user = _user(args)
    remote = _remote() if user else None
    chart = restore_seating_map(user, _store(args), remote)
    _store(args).save(chart)
    print(f"Restored seating map ({len(chart.layout)} sections, {len(chart.roster)} members)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="choir_seating", description="Choir seating map editor (CLI).")
    p.add_argument(
        "--log-level",
        default=os.environ.get("CHOIR_SEATING_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $CHOIR_SEATING_LOG_LEVEL or WARNING)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create an empty seating map")
    _add_common_args(p_init)
    p_init.add_argument("--section", action="append", help="Section to create (repeatable)")
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite an existing snapshot")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Print the seating map")
    _add_common_args(p_show)
    p_show.add_argument("--width", type=int, default=8, help="Cell width for display")
    p_show.set_defaults(func=cmd_show)

    p_add_section = sub.add_parser("add-section", help="Add a section with one row of 4 seats")
    _add_common_args(p_add_section)
    p_add_section.add_argument("name")
    p_add_section.set_defaults(func=cmd_add_section)

    p_remove_section = sub.add_parser("remove-section", help="Remove a section and its assignments")
    _add_common_args(p_remove_section)
    p_remove_section.add_argument("name")
    p_remove_section.set_defaults(func=cmd_remove_section)

    p_add_row = sub.add_parser("add-row", help="Append a row of 4 seats to a section")
    _add_common_args(p_add_row)
    p_add_row.add_argument("section")
    p_add_row.set_defaults(func=cmd_add_row)

    p_remove_row = sub.add_parser("remove-row", help="Remove a row and its assignments")
    _add_common_args(p_remove_row)
    p_remove_row.add_argument("section")
    p_remove_row.add_argument("row", type=int)
    p_remove_row.set_defaults(func=cmd_remove_row)

    p_set_seats = sub.add_parser("set-seats", help="Set the seat count of a row (1-20)")
    _add_common_args(p_set_seats)
    p_set_seats.add_argument("section")
    p_set_seats.add_argument("row", type=int)
    p_set_seats.add_argument("count", type=int)
    p_set_seats.set_defaults(func=cmd_set_seats)

    p_add_member = sub.add_parser("add-member", help="Add a choir member")
    _add_common_args(p_add_member)
    p_add_member.add_argument("--name", required=True)
    p_add_member.add_argument("--part", required=True, choices=PARTS)
    p_add_member.add_argument("--group", default="")
    p_add_member.set_defaults(func=cmd_add_member)

    p_update_member = sub.add_parser("update-member", help="Replace a member's name, part and group")
    _add_common_args(p_update_member)
    p_update_member.add_argument("id")
    p_update_member.add_argument("--name", required=True)
    p_update_member.add_argument("--part", required=True, choices=PARTS)
    p_update_member.add_argument("--group", default="")
    p_update_member.set_defaults(func=cmd_update_member)

    p_remove_member = sub.add_parser("remove-member", help="Remove a member and unseat them")
    _add_common_args(p_remove_member)
    p_remove_member.add_argument("id")
    p_remove_member.set_defaults(func=cmd_remove_member)

    p_members = sub.add_parser("members", help="List members sorted by name")
    _add_common_args(p_members)
    p_members.add_argument("--search", help="Case-insensitive name filter")
    p_members.add_argument("--part", choices=PARTS)
    p_members.set_defaults(func=cmd_members)

    p_assign = sub.add_parser("assign", help="Seat a member (replaces the current occupant)")
    _add_common_args(p_assign)
    p_assign.add_argument("section")
    p_assign.add_argument("row", type=int)
    p_assign.add_argument("seat", type=int)
    p_assign.add_argument("--member", required=True)
    p_assign.set_defaults(func=cmd_assign)

    p_clear = sub.add_parser("clear", help="Clear a seat")
    _add_common_args(p_clear)
    p_clear.add_argument("section")
    p_clear.add_argument("row", type=int)
    p_clear.add_argument("seat", type=int)
    p_clear.set_defaults(func=cmd_clear)

    p_find = sub.add_parser("find", help="Find the seats of a member")
    _add_common_args(p_find)
    p_find.add_argument("--member", required=True)
    p_find.set_defaults(func=cmd_find)

    p_export = sub.add_parser("export-csv", help="Export occupied seats to a CSV file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.set_defaults(func=cmd_export_csv)

    p_export_json = sub.add_parser("export-json", help="Export the seating map as JSON")
    _add_common_args(p_export_json)
    p_export_json.add_argument("--output", required=True)
    p_export_json.set_defaults(func=cmd_export_json)

    p_import = sub.add_parser("import-json", help="Replace the local snapshot with a JSON file")
    _add_common_args(p_import)
    p_import.add_argument("--input", required=True)
    p_import.set_defaults(func=cmd_import_json)

    p_push = sub.add_parser("push", help="Save the local snapshot to the remote store")
    _add_common_args(p_push)
    p_push.add_argument("--user", help="Identity (default: $CHOIR_SEATING_USER)")
    p_push.set_defaults(func=cmd_push)

    p_pull = sub.add_parser("pull", help="Restore from the remote store, falling back to the local snapshot")
    _add_common_args(p_pull)
    p_pull.add_argument("--user", help="Identity (default: $CHOIR_SEATING_USER)")
    p_pull.set_defaults(func=cmd_pull)

    return p


def main(argv: Sequence[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=str(args.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except SeatingMapError as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
