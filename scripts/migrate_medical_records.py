#!/usr/bin/env python3
"""
Migration script for the patient medical record layout.

Subcommands:
    restructure    Move flat patient fields (condition, severity, lastTreatment)
                   into patients/<id>/medical_records/<MIGRATION_RECORD_ID> and
                   relocate the patient's treatments under it.
    rename-record  Rename medical_records/<MIGRATION_RECORD_ID> to
                   medical_records/<MIGRATION_RENAMED_RECORD_ID>, treatments included.
    verify         Report patients that still need the restructure.

Usage:
    python scripts/migrate_medical_records.py restructure --dry-run
    python scripts/migrate_medical_records.py restructure --execute
    python scripts/migrate_medical_records.py rename-record --execute
    python scripts/migrate_medical_records.py verify

Writes are committed in batches of at most MIGRATION_BATCH_THRESHOLD
operations. A failed batch or an unreachable database stops the run with
exit code 1.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from apitherapy.adapters.db.mongo.document_store import MongoDocumentStore, create_motor_client
from apitherapy.application.migrations.medical_records import (
    MedicalRecordMigration,
    RecordRenameMigration,
    verify_medical_records,
)
from apitherapy.core.config import get_settings
from apitherapy.core.exceptions import ConfigurationError, DatabaseError, MigrationCommitError
from apitherapy.core.structured_logger import setup_logging

logger = logging.getLogger("apitherapy.scripts.migrate_medical_records")

MIGRATIONS = {
    "restructure": MedicalRecordMigration,
    "rename-record": RecordRenameMigration,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Migrate patient medical records")
    parser.add_argument(
        "command",
        choices=[*MIGRATIONS, "verify"],
        help="Migration to run, or verify",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Plan and count batches without writing")
    mode.add_argument("--execute", action="store_true", help="Execute the migration")
    parser.add_argument(
        "--no-transactions",
        action="store_true",
        help="Commit batches without a client-session transaction (standalone MongoDB)",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    client = create_motor_client(settings.database)
    store = MongoDocumentStore(
        client,
        settings.database.db_name,
        use_transactions=settings.migration.use_transactions and not args.no_transactions,
    )
    try:
        if args.command == "verify":
            try:
                result = await verify_medical_records(store, settings.migration.record_id)
            except DatabaseError as e:
                logger.error(f"Verification failed: {e.message}")
                return 1
            print(json.dumps(result, indent=2))
            return 0

        migration = MIGRATIONS[args.command](store, settings.migration, dry_run=args.dry_run)
        try:
            report = await migration.run()
        except MigrationCommitError as e:
            logger.error(f"Migration '{args.command}' aborted: {e.message}")
            return 1
        except DatabaseError as e:
            logger.error(f"Migration '{args.command}' stopped on a database error: {e.message}")
            return 1

        print(json.dumps(report.to_dict(), indent=2))
        if args.dry_run:
            print("Dry run only. Use --execute to perform the migration.")
        return 0
    finally:
        store.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "verify" and not (args.dry_run or args.execute):
        parser.print_help()
        return 2

    settings = get_settings()
    setup_logging(settings.logging)
    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error(e.message)
        return 2


if __name__ == "__main__":
    sys.exit(main())
