#!/usr/bin/env python3

from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path

from packages.tilesheet_core.sheets.optimize import optimize_files


class OptimizeFilesTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.paths = []
        for i in range(3):
            path = self.root / f"sheet{i}.png"
            path.write_bytes(b"x" * (10 + i))
            self.paths.append(path)

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_runs_command_for_every_file_in_order(self) -> None:
        command = (sys.executable, "-c", "import sys; open(sys.argv[1], 'wb').write(b'ok')")
        results = optimize_files(self.paths, command, max_workers=2)

        self.assertEqual([r.path for r in results], self.paths)
        self.assertTrue(all(r.ok for r in results))
        for path in self.paths:
            self.assertEqual(path.read_bytes(), b"ok")

    def test_failing_command_is_reported_per_file(self) -> None:
        command = (sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)")
        results = optimize_files(self.paths, command, max_workers=4)

        self.assertEqual(len(results), 3)
        for result in results:
            self.assertFalse(result.ok)
            self.assertTrue(result.detail.startswith("exit 3"))
            self.assertIn("boom", result.detail)

    def test_missing_executable_leaves_files_untouched(self) -> None:
        results = optimize_files(self.paths, ("definitely-not-a-real-optimizer-binary",))

        self.assertEqual(len(results), 3)
        self.assertFalse(any(r.ok for r in results))
        self.assertEqual(self.paths[0].read_bytes(), b"x" * 10)

    def test_empty_command_or_paths_do_nothing(self) -> None:
        self.assertEqual(optimize_files(self.paths, ()), [])
        self.assertEqual(optimize_files([], (sys.executable,)), [])


if __name__ == "__main__":
    unittest.main()
