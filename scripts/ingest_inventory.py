"""
Ingest one inventory spreadsheet export from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import InventoryFileError
from app.domain.inventory import BatchProgress
from app.repositories.inventory_repository import SqlAlchemyInventoryUpserter
from app.services.inventory_ingestion_service import get_inventory_ingestion_service
from app.services.report_builder import error_report_csv
from db.session import SessionLocal, get_engine

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_FILE_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest a diamond inventory file (CSV, TSV, XLSX or XLS).")
    parser.add_argument("--file", dest="file", required=True, help="Path to the inventory export.")
    parser.add_argument(
        "--owner-id",
        dest="owner_id",
        required=True,
        help="Opaque submitter identity used for upsert keying.",
    )
    parser.add_argument(
        "--validate-only",
        dest="validate_only",
        action="store_true",
        help="Validate and report without writing to the database.",
    )
    parser.add_argument(
        "--batch-size",
        dest="batch_size",
        type=int,
        default=None,
        help="Rows per persistence batch.",
    )
    parser.add_argument(
        "--errors-csv",
        dest="errors_csv",
        default=None,
        help="Optional path to write the row error report as CSV.",
    )
    parser.add_argument(
        "--mapping",
        dest="mapping",
        default=None,
        help='Optional JSON object of header -> field, e.g. \'{"Carat": "weight"}\'.',
    )
    return parser


def _print_progress(progress: BatchProgress) -> None:
    status = "failed" if progress.outcome.failed else "ok"
    print(
        f"batch {progress.outcome.index}/{progress.total} {status} "
        f"persisted={progress.outcome.persisted}/{progress.outcome.attempted}",
        file=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.batch_size is not None and args.batch_size < 1:
        parser.error("--batch-size must be a positive integer")

    overrides = None
    if args.mapping:
        try:
            overrides = json.loads(args.mapping)
        except json.JSONDecodeError as exc:
            parser.error(f"--mapping is not valid JSON: {exc}")
        if not isinstance(overrides, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in overrides.items()
        ):
            parser.error("--mapping must be a JSON object of header -> field")

    path = Path(args.file)
    try:
        content = path.read_bytes()
    except OSError as exc:
        print(json.dumps({"message": f"Unable to read {path}: {exc}", "code": "unreadable_file"}), file=sys.stderr)
        return EXIT_FILE_ERROR

    upserter = None
    if not args.validate_only:
        # Storage configuration problems are fatal for the whole run.
        try:
            get_engine()
        except (RuntimeError, SQLAlchemyError) as exc:
            print(json.dumps({"message": str(exc), "code": "persistence_unavailable"}), file=sys.stderr)
            return EXIT_CONFIG_ERROR
        upserter = SqlAlchemyInventoryUpserter(SessionLocal)

    service = get_inventory_ingestion_service()
    try:
        report = service.ingest(
            content=content,
            filename=path.name,
            owner_id=args.owner_id,
            upserter=upserter,
            overrides=overrides,
            on_progress=_print_progress,
            batch_size=args.batch_size,
        )
    except InventoryFileError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return EXIT_FILE_ERROR

    if args.errors_csv:
        Path(args.errors_csv).write_text(error_report_csv(report), encoding="utf-8", newline="")

    print(json.dumps(report.to_dict(), indent=2))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
