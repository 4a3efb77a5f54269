"""CLI job to import, validate and clear postal code and location data."""

import argparse
import logging
from typing import List, Optional, Sequence

import psycopg2

from locator.core.config import get_settings
from locator.core.db import ensure_schema, init_pool
from locator.core.store import PostgresStore
from locator.etl.ingest import IngestionPipeline
from locator.etl.transform import load_json_records, parse_records
from locator.models import IngestionOutcome, IngestionProgress, RecordKind
from locator.validation.dataset import DatasetValidator

logger = logging.getLogger(__name__)

MAX_REPORTED_MESSAGES = 10

_IMPORT_KINDS = {
    "zipcodes": RecordKind.POSTAL_CODE,
    "locations": RecordKind.POINT_OF_INTEREST,
}


def _log_messages(level: int, header: str, messages: List[str]) -> None:
    if not messages:
        return
    logger.log(level, "%s (%d):", header, len(messages))
    for message in messages[:MAX_REPORTED_MESSAGES]:
        logger.log(level, "- %s", message)
    if len(messages) > MAX_REPORTED_MESSAGES:
        logger.log(level, "- ... and %d more", len(messages) - MAX_REPORTED_MESSAGES)


def _log_progress(progress: IngestionProgress) -> None:
    logger.info(
        "Batch %d/%d: %.1f%% processed, %d imported, %d skipped, %d failed",
        progress.current_batch,
        progress.total_batches,
        progress.progress_percentage,
        progress.success_count,
        progress.skipped_count,
        progress.failed_count,
    )


def run_import_job(*, kind: RecordKind, file_path: str, batch_size: int, store=None) -> IngestionOutcome:
    """Parse, pre-validate and ingest one JSON file."""
    items = load_json_records(file_path)
    records, parse_errors = parse_records(items, kind)

    validation = DatasetValidator().validate(records) if records else None
    errors = parse_errors + (validation.errors if validation else [])
    warnings = validation.warnings if validation else []
    _log_messages(logging.WARNING, "Pre-import validation errors", errors)
    _log_messages(logging.INFO, "Pre-import validation warnings", warnings)

    if store is None:
        init_pool()
        ensure_schema()
        store = PostgresStore()

    logger.info("Importing %d %s records with batch size %d", len(records), kind.value, batch_size)
    outcome = IngestionPipeline(store).ingest(records, batch_size=batch_size, progress_callback=_log_progress)
    outcome.total_processed += len(parse_errors)
    outcome.failed_count += len(parse_errors)
    outcome.errors = parse_errors + outcome.errors
    outcome.warnings.extend(warnings)

    logger.info("Import completed:")
    logger.info("- Total records processed: %d", outcome.total_processed)
    logger.info("- Successfully imported: %d", outcome.success_count)
    logger.info("- Skipped as duplicates: %d", outcome.skipped_count)
    logger.info("- Failed records: %d", outcome.failed_count)
    logger.info("- Duration: %s", outcome.duration)
    _log_messages(logging.WARNING, "Import completed with errors", outcome.errors)
    return outcome


def run_validate_job(*, store=None):
    if store is None:
        init_pool()
        store = PostgresStore()

    outcome = DatasetValidator(store).validate_stored()
    logger.info("Data validation completed:")
    logger.info("- Postal codes count: %d", outcome.postal_code_count)
    logger.info("- Locations count: %d", outcome.point_of_interest_count)
    logger.info("- Active locations: %d", outcome.active_point_of_interest_count)
    logger.info("- Validation errors: %d", len(outcome.errors))
    logger.info("- Validation warnings: %d", len(outcome.warnings))
    _log_messages(logging.WARNING, "Validation found issues", outcome.errors)
    _log_messages(logging.INFO, "Validation warnings", outcome.warnings)
    return outcome


def run_clear_job(*, target: str, store=None) -> int:
    if store is None:
        init_pool()
        store = PostgresStore()

    pipeline = IngestionPipeline(store)
    if target == "all":
        return pipeline.clear_all()
    return pipeline.clear_by_type(_IMPORT_KINDS[target])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Location finder data import tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, noun in (("zipcodes", "zip codes"), ("locations", "locations")):
        sub = subparsers.add_parser(command, help=f"Import {noun} from a JSON file")
        sub.add_argument("-f", "--file", dest="file", required=True, help=f"JSON file containing {noun} data")
        sub.add_argument(
            "-b",
            "--batch-size",
            dest="batch_size",
            type=int,
            default=get_settings().import_batch_size,
            help="Number of records to process in each batch",
        )

    subparsers.add_parser("validate", help="Validate existing data in the database")

    clear = subparsers.add_parser("clear", help="Delete imported data")
    clear.add_argument("--type", dest="target", choices=("zipcodes", "locations", "all"), default="all")
    clear.add_argument("--yes", dest="confirmed", action="store_true", help="Confirm the deletion")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in _IMPORT_KINDS and args.batch_size < 1:
        parser.error("--batch-size must be a positive integer")

    try:
        if args.command in _IMPORT_KINDS:
            run_import_job(kind=_IMPORT_KINDS[args.command], file_path=args.file, batch_size=args.batch_size)
        elif args.command == "validate":
            run_validate_job()
        elif args.command == "clear":
            if not args.confirmed:
                logger.error("Refusing to clear %s data without --yes", args.target)
                return 1
            deleted = run_clear_job(target=args.target)
            logger.info("Cleared %d records", deleted)
    except (OSError, ValueError, RuntimeError, psycopg2.Error) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
