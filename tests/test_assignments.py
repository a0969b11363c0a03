import unittest

from choir_seating.assignments import AssignmentTable, SeatRef, parse_seat_key, seat_key
from choir_seating.errors import ValidationError


class TestSeatKey(unittest.TestCase):
    def test_format(self):
        self.assertEqual(seat_key(3), "Seat3")
        self.assertEqual(parse_seat_key("Seat12"), 12)
        for bad in ("seat3", "Seat", "3", "SeatX"):
            with self.assertRaises(ValidationError):
                parse_seat_key(bad)

    def test_seat_ref_validated(self):
        self.assertEqual(SeatRef("a", 1, 2).section, "A")
        with self.assertRaises(ValidationError):
            SeatRef("A", 0, 1)
        with self.assertRaises(ValidationError):
            SeatRef("A", 1, -1)


class TestAssignmentTable(unittest.TestCase):
    def test_assign_overwrites(self):
        t = AssignmentTable().assign("A", 1, 1, "m1").assign("A", 1, 1, "m2")
        self.assertEqual(t.member_at("A", 1, 1), "m2")
        self.assertEqual(len(t), 1)

    def test_assign_does_not_mutate_original(self):
        t = AssignmentTable()
        t2 = t.assign("A", 1, 1, "m1")
        self.assertIsNone(t.member_at("A", 1, 1))
        self.assertEqual(t2.member_at("A", 1, 1), "m1")

    def test_clear_idempotent(self):
        t = AssignmentTable().assign("A", 1, 1, "m1")
        t = t.clear("A", 1, 1)
        self.assertIsNone(t.member_at("A", 1, 1))
        self.assertIs(t.clear("A", 1, 1), t)

    def test_entries_for_section_restartable(self):
        t = (
            AssignmentTable()
            .assign("A", 2, 1, "m3")
            .assign("A", 1, 2, "m2")
            .assign("A", 1, 1, "m1")
            .assign("B", 1, 1, "m4")
        )
        entries = t.entries_for_section("a")
        self.assertEqual(list(entries), [(1, 1, "m1"), (1, 2, "m2"), (2, 1, "m3")])
        self.assertEqual(list(entries), [])
        self.assertEqual(list(t.entries_for_section("A")), [(1, 1, "m1"), (1, 2, "m2"), (2, 1, "m3")])
        self.assertEqual(list(t.entries_for_section("Z")), [])

    def test_seats_of_and_prune(self):
        t = AssignmentTable().assign("A", 1, 1, "m1").assign("B", 2, 3, "m1").assign("A", 1, 2, "m2")
        self.assertEqual(t.seats_of("m1"), [SeatRef("A", 1, 1), SeatRef("B", 2, 3)])
        pruned = t.prune(lambda ref, member_id: member_id != "m1")
        self.assertEqual(len(pruned), 1)
        self.assertIs(t.prune(lambda ref, member_id: True), t)

    def test_nested_shape(self):
        t = AssignmentTable().assign("A", 1, 3, "m1").assign("B", 10, 1, "m2")
        nested = t.to_nested()
        self.assertEqual(nested, {"A": {"1": {"Seat3": "m1"}}, "B": {"10": {"Seat1": "m2"}}})
        self.assertEqual(AssignmentTable.from_nested(nested), t)

    def test_from_nested_rejects_bad_keys(self):
        with self.assertRaises(ValidationError):
            AssignmentTable.from_nested({"A": {"1": {"Chair3": "m1"}}})
        with self.assertRaises(ValidationError):
            AssignmentTable.from_nested({"A": {"x": {"Seat3": "m1"}}})


if __name__ == "__main__":
    unittest.main()
