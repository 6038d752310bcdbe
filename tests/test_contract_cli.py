from __future__ import annotations

import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path

from plantable import cli

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURE = REPO_ROOT / "tests" / "fixtures" / "demo_project.json"


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
        rc = cli.main(argv)
    return rc, out.getvalue(), err.getvalue()


class TestCliContract(unittest.TestCase):
    def test_csv_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "sub" / "plans.csv"
            rc, out, _ = _run(["--project", str(FIXTURE), "--report", "plans", "--format", "csv", "--out", str(out_path)])
            self.assertEqual(rc, 0)
            self.assertEqual(out.strip(), os.path.abspath(out_path))
            lines = out_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(lines[:3], ["Name;End", "Design;2024-01-05", ";2024-01-05"])

    def test_csv_delimiter_option(self) -> None:
        rc, out, _ = _run(["--project", str(FIXTURE), "--report", "plans", "--format", "csv", "--delimiter", ","])
        self.assertEqual(rc, 0)
        self.assertEqual(out.splitlines()[0], "Name,End")

    def test_html_to_stdout(self) -> None:
        rc, out, _ = _run(["--project", str(FIXTURE), "--report", "status"])
        self.assertEqual(rc, 0)
        self.assertTrue(out.startswith("<!doctype html>"))
        self.assertIn("<title>Status</title>", out)

    def test_unknown_report_is_a_usage_error(self) -> None:
        rc, _, err = _run(["--project", str(FIXTURE), "--report", "nope"])
        self.assertEqual(rc, 2)
        self.assertIn("[plantable] ERROR:", err)
        self.assertIn("nope", err)

    def test_missing_project_file(self) -> None:
        rc, _, err = _run(["--project", "/does/not/exist.json", "--report", "plans"])
        self.assertEqual(rc, 2)
        self.assertIn("project file not found", err)

    def test_invalid_timezone_is_a_load_error(self) -> None:
        rc, _, err = _run(["--project", str(FIXTURE), "--report", "plans", "--tz", "No/Such_Zone"])
        self.assertEqual(rc, 2)
        self.assertIn("cannot load project", err)

    def test_failed_macro_aborts_with_exit_code_3(self) -> None:
        doc = json.loads(FIXTURE.read_text(encoding="utf-8"))
        doc["reports"].append({"id": "broken", "columns": [{"id": "name", "cell_text": "${nosuchattribute}"}]})
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "project.json"
            path.write_text(json.dumps(doc), encoding="utf-8")
            rc, _, err = _run(["--project", str(path), "--report", "broken"])
        self.assertEqual(rc, 3)
        self.assertIn("report generation failed", err)

    def test_unknown_sort_criterion_is_a_usage_error(self) -> None:
        doc = json.loads(FIXTURE.read_text(encoding="utf-8"))
        doc["reports"].append({"id": "badsort", "columns": ["name"], "sort_tasks": ["effort.down"]})
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "project.json"
            path.write_text(json.dumps(doc), encoding="utf-8")
            rc, _, err = _run(["--project", str(path), "--report", "badsort"])
        self.assertEqual(rc, 2)
        self.assertIn("[plantable] ERROR:", err)
        self.assertIn("unknown sort_tasks criterion 'effort'", err)


if __name__ == "__main__":
    unittest.main(verbosity=2)
