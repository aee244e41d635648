# -*- coding: utf-8 -*-

from __future__ import annotations

import io
import json
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from wellness import cli


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="wellness-cli-test-"))
        self.addCleanup(shutil.rmtree, self._tmp, True)

    def _run(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(["--store-dir", str(self._tmp), *argv])
        return code, out.getvalue()

    def test_water_counts_glasses(self) -> None:
        self._run("water", "add")
        code, out = self._run("water", "add")
        self.assertEqual(code, 0)
        self.assertIn("Glasses (today): 2", out)

        stored = json.loads((self._tmp / "water%3Aanon.json").read_text(encoding="utf-8"))
        self.assertEqual(stored[0]["glasses"], 2)

        code, out = self._run("water", "remove")
        self.assertIn("Glasses (today): 1", out)

    def test_meals_and_journal(self) -> None:
        code, out = self._run("meals", "add", "Oats", "300", "--meal-type", "breakfast")
        self.assertEqual(code, 0)
        self.assertIn("Logged Oats (300 kcal)", out)
        self.assertIn("Today: 300 kcal", out)

        self._run("journal", "add", "A", "calm", "morning")
        code, out = self._run("journal", "streak")
        self.assertIn("Journal streak: 1 day(s)", out)

    def test_invalid_mood_reports_error(self) -> None:
        code, out = self._run("mood", "add", "11", "3", "3")
        self.assertEqual(code, 1)
        self.assertIn("Error:", out)

    def test_no_command_prints_help(self) -> None:
        code, _ = self._run()
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
