from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .api import generate_report
from .errors import DataError, EvaluationError, PlantableError, UsageError
from .loader import load_project_from_json
from .render.csv import table_to_csv, write_csv
from .render.html import html_document, report_to_html
from .util.console import eprint, setup_logging
from .util.tz import TZ_ENV

logger = logging.getLogger(__name__)


def _die(msg: str, rc: int = 2) -> int:
    eprint(f"[plantable] ERROR: {msg}")
    return rc


def _keepalive(line_no: int) -> None:
    logger.debug("still generating (%d lines)", line_no)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="plantable",
        description="Generate a table report (HTML or CSV) from a JSON project file.",
    )
    ap.add_argument("--project", required=True, help="Project JSON file")
    ap.add_argument("--report", required=True, help="Id of the report to generate")
    ap.add_argument("--format", choices=("html", "csv"), default="html", help="Output format (default: html)")
    ap.add_argument("--out", default="-", help="Output path, '-' for stdout (default: -)")
    ap.add_argument(
        "--tz",
        default=None,
        help=f"Timezone for dates without offset (default: project timezone, env {TZ_ENV} or UTC)",
    )
    ap.add_argument("--delimiter", default=";", help="CSV delimiter (default: ';')")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    setup_logging(args.verbose)

    p = Path(args.project)
    if not p.exists():
        return _die(f"project file not found: {p}")

    try:
        project = load_project_from_json(p, tz_name=args.tz)
    except (PlantableError, ValueError, TypeError, KeyError) as e:
        return _die(f"cannot load project: {e}")

    try:
        builder = generate_report(project, args.report, activity=_keepalive)
        if args.format == "csv":
            rows = table_to_csv(builder.begin_render())
        else:
            text = html_document(report_to_html(builder), builder.report.headline or f"{project.name} - {args.report}")
    except UsageError as e:
        return _die(str(e))
    except (EvaluationError, DataError) as e:
        return _die(f"report generation failed: {e}", rc=3)

    out_path = None if args.out == "-" else Path(args.out)
    if out_path is not None:
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return _die(f"cannot create output directory '{out_path.parent}': {e}")

    if args.format == "csv":
        if out_path is None:
            write_csv(rows, sys.stdout, delimiter=args.delimiter)
        else:
            with open(out_path, "w", encoding="utf-8", newline="") as f:
                write_csv(rows, f, delimiter=args.delimiter)
    elif out_path is None:
        sys.stdout.write(text)
    else:
        out_path.write_text(text, encoding="utf-8")

    if out_path is not None:
        print(os.path.abspath(out_path))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
