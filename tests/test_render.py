import unittest

from choir_seating.chart import SeatingMap
from choir_seating.render import render_text
from choir_seating.roster import Part


class TestRenderText(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(render_text(SeatingMap()), "(no sections)")

    def test_sections_and_names(self):
        m = SeatingMap().add_section("A").add_section("B").set_seat_count("B", 1, 2)
        m, member = m.add_member("Christopher", Part.bass)
        m = m.assign_member("A", 1, 2, member.id)
        out = render_text(m, cell_width=6).splitlines()
        self.assertEqual(out[0], "[A] 1 rows | 4 seats")
        self.assertEqual(out[1].split(), ["1", ".", "Chris…", ".", "."])
        self.assertEqual(out[3], "[B] 1 rows | 2 seats")


if __name__ == "__main__":
    unittest.main()
