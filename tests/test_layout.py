import unittest

from choir_seating.errors import DuplicateNameError, NotFoundError, ValidationError
from choir_seating.layout import Layout, Row, Section


class TestRow(unittest.TestCase):
    def test_bounds(self):
        self.assertEqual(list(Row(1, 3).seat_indices()), [1, 2, 3])
        with self.assertRaises(ValidationError):
            Row(0, 4)
        with self.assertRaises(ValidationError):
            Row(1, 0)
        with self.assertRaises(ValidationError):
            Row(1, 21)


class TestSection(unittest.TestCase):
    def test_rows_sorted_and_name_normalized(self):
        s = Section(" b ", (Row(3, 5), Row(1, 2)))
        self.assertEqual(s.name, "B")
        self.assertEqual(s.row_numbers(), [1, 3])
        self.assertEqual(s.seat_count(), 7)
        self.assertEqual(s.next_row_number(), 4)

    def test_duplicate_row_numbers_rejected(self):
        with self.assertRaises(ValidationError):
            Section("A", (Row(1, 2), Row(1, 3)))


class TestLayout(unittest.TestCase):
    def test_add_section_defaults(self):
        layout = Layout().add_section("  a ")
        s = layout.section("A")
        self.assertIsNotNone(s)
        self.assertEqual([(r.number, r.seat_count) for r in s.rows], [(1, 4)])
        self.assertIn("a", layout)

    def test_add_section_duplicate_or_empty(self):
        layout = Layout().add_section("A")
        with self.assertRaises(DuplicateNameError):
            layout.add_section("a")
        with self.assertRaises(DuplicateNameError):
            layout.add_section("   ")
        # Empty names are also plain validation failures.
        with self.assertRaises(ValidationError):
            layout.add_section("")

    def test_remove_section_idempotent(self):
        layout = Layout().add_section("A")
        self.assertEqual(len(layout.remove_section("A")), 0)
        self.assertIs(layout.remove_section("Z"), layout)

    def test_add_row_numbers_after_max(self):
        layout = Layout.of(Section("A", (Row(1, 4), Row(5, 4))))
        layout = layout.add_row("A")
        self.assertEqual(layout.section("A").row_numbers(), [1, 5, 6])
        self.assertEqual(layout.row("A", 6).seat_count, 4)

    def test_add_row_to_empty_section_starts_at_one(self):
        layout = Layout.of(Section("A")).add_row("A")
        self.assertEqual(layout.section("A").row_numbers(), [1])

    def test_add_row_missing_section(self):
        with self.assertRaises(NotFoundError):
            Layout().add_row("A")

    def test_remove_row_idempotent(self):
        layout = Layout().add_section("A").add_row("A")
        layout = layout.remove_row("A", 1)
        self.assertEqual(layout.section("A").row_numbers(), [2])
        self.assertIs(layout.remove_row("A", 1), layout)
        self.assertIs(layout.remove_row("Q", 1), layout)

    def test_set_seat_count_rejects_out_of_range(self):
        layout = Layout().add_section("A")
        self.assertIs(layout.set_seat_count("A", 1, 0), layout)
        self.assertIs(layout.set_seat_count("A", 1, 21), layout)
        self.assertEqual(layout.set_seat_count("A", 1, 20).row("A", 1).seat_count, 20)
        self.assertEqual(layout.set_seat_count("A", 1, 1).row("A", 1).seat_count, 1)
        with self.assertRaises(NotFoundError):
            layout.set_seat_count("A", 9, 3)

    def test_total_seats_tracks_edits(self):
        layout = Layout()
        expected = 0
        for name in ("A", "B", "C"):
            layout = layout.add_section(name)
            expected += 4
            layout = layout.add_row(name)
            expected += 4
        layout = layout.set_seat_count("B", 2, 11)
        expected += 7
        layout = layout.set_seat_count("C", 1, 99)
        layout = layout.remove_row("A", 1)
        expected -= 4
        self.assertEqual(layout.total_seats(), expected)
        self.assertEqual(
            layout.total_seats(), sum(r.seat_count for s in layout for r in s.rows)
        )

    def test_sections_keep_insertion_order(self):
        layout = Layout().add_section("B").add_section("A")
        self.assertEqual([s.name for s in layout], ["B", "A"])


if __name__ == "__main__":
    unittest.main()
