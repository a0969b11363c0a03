import contextlib
import csv
import io
import tempfile
import unittest
from pathlib import Path

from choir_seating.__main__ import main
from choir_seating.storage import LocalSnapshotStore


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmpdir.name)
        self.file = str(self.dir / "map.json")

    def tearDown(self):
        self._tmpdir.cleanup()

    def run_cli(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main([argv[0], "--file", self.file, *argv[1:]])
        return code, out.getvalue()

    def chart(self):
        return LocalSnapshotStore(self.file).load()

    def test_edit_flow(self):
        self.assertEqual(self.run_cli("init", "--section", "a")[0], 0)
        self.assertEqual(self.run_cli("add-row", "A")[0], 0)
        code, out = self.run_cli("add-member", "--name", "Kim", "--part", "Soprano", "--group", "1")
        self.assertEqual(code, 0)
        member_id = out.split()[2]
        self.assertEqual(self.run_cli("assign", "A", "2", "3", "--member", member_id)[0], 0)
        self.assertEqual(self.chart().member_at("A", 2, 3), member_id)

        code, out = self.run_cli("find", "--member", member_id)
        self.assertEqual((code, out.strip()), (0, "Found at A-2-3"))

        code, out = self.run_cli("set-seats", "A", "2", "0")
        self.assertEqual(code, 1)
        self.assertEqual(self.chart().layout.row("A", 2).seat_count, 4)

        self.assertEqual(self.run_cli("set-seats", "A", "2", "2")[0], 0)
        self.assertIsNone(self.chart().member_at("A", 2, 3))

        code, out = self.run_cli("show")
        self.assertEqual(code, 0)
        self.assertIn("Total seats: 6", out)

    def test_errors_exit_2(self):
        self.run_cli("init", "--section", "A")
        code, out = self.run_cli("add-section", "a")
        self.assertEqual(code, 2)
        self.assertTrue(out.startswith("Error:"))
        code, out = self.run_cli("assign", "A", "1", "1", "--member", "ghost")
        self.assertEqual(code, 2)

    def test_export_and_import(self):
        self.run_cli("init", "--section", "A")
        code, out = self.run_cli("add-member", "--name", "Lee", "--part", "Alto")
        member_id = out.split()[2]
        self.run_cli("assign", "A", "1", "4", "--member", member_id)

        csv_path = self.dir / "out.csv"
        self.assertEqual(self.run_cli("export-csv", "--output", str(csv_path))[0], 0)
        rows = list(csv.reader(io.StringIO(csv_path.read_text(encoding="utf-8"))))
        self.assertEqual(rows[1], ["A", "1", "Seat4", member_id, "Lee", "Alto", ""])

        json_path = self.dir / "out.json"
        self.assertEqual(self.run_cli("export-json", "--output", str(json_path))[0], 0)
        before = self.chart()
        self.run_cli("remove-section", "A")
        self.assertEqual(self.run_cli("import-json", "--input", str(json_path))[0], 0)
        self.assertEqual(self.chart(), before)

    def test_members_listing(self):
        self.run_cli("init")
        self.run_cli("add-member", "--name", "Park", "--part", "Tenor")
        self.run_cli("add-member", "--name", "Choi", "--part", "Bass")
        code, out = self.run_cli("members")
        self.assertEqual([line.split("\t")[1] for line in out.strip().splitlines()], ["Choi", "Park"])
        code, out = self.run_cli("members", "--part", "Tenor")
        self.assertEqual(len(out.strip().splitlines()), 1)


if __name__ == "__main__":
    unittest.main()
