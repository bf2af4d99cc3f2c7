"""
Regional Leaderboards - Migration Command

Usage:
    migrate-regions --all --dry-run
    migrate-regions --venues --activity --env prod
    migrate-regions --status
    migrate-regions --all --snapshot data/snapshot.json --dry-run

No phase flag runs every phase. Exit code is 1 when any phase FAILED or the
run aborted during startup.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from regionpipe.alerting import AlertManager
from regionpipe.errors import CatalogError, StoreError
from regionpipe.migration.migrator import PHASE_ORDER, BatchMigrator
from regionpipe.shared.config import Settings, get_config
from regionpipe.store import create_store

logger = logging.getLogger("regionpipe")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="migrate-regions",
        description="Assign regions to people, venues, activity and content, "
        "then rebuild regional leaderboards.",
    )
    parser.add_argument("--all", action="store_true", help="Run every phase (default)")
    for name in PHASE_ORDER:
        parser.add_argument(f"--{name}", action="store_true", help=f"Run the {name} phase")
    parser.add_argument(
        "--dry-run",
        "--preview",
        dest="dry_run",
        action="store_true",
        help="Resolve and log everything without writing",
    )
    parser.add_argument(
        "--status", action="store_true", help="Report assignment progress and exit"
    )
    parser.add_argument("--env", choices=["dev", "prod"], help="Configuration environment")
    parser.add_argument(
        "--snapshot",
        type=Path,
        help="Run against a JSON snapshot ({collection: {doc_id: fields}}) in memory",
    )
    return parser


def setup_logging(config: Settings) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.logging.file:
        log_file = Path(config.logging.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=config.logging.level,
        format=config.logging.format,
        handlers=handlers,
        force=True,
    )


def selected_phases(args: argparse.Namespace) -> list[str] | None:
    if args.all:
        return None
    chosen = [name for name in PHASE_ORDER if getattr(args, name)]
    return chosen or None


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_config(args.env)
    setup_logging(config)
    alerts = AlertManager(config)

    try:
        store = create_store(config, snapshot=args.snapshot)
        migrator = BatchMigrator.from_config(config, store)
    except (CatalogError, StoreError) as e:
        logger.critical(f"Startup failed: {e}")
        alerts.send_startup_failure(e)
        return 1

    if args.status:
        try:
            statuses = migrator.status()
        except StoreError as e:
            logger.error(f"Status check failed: {e}")
            return 1
        frame = pd.DataFrame(
            [
                {
                    "phase": s.phase,
                    "collection": s.collection,
                    "total": s.total,
                    "assigned": s.assigned,
                    "unassigned": s.unassigned,
                }
                for s in statuses
            ]
        )
        print(frame.to_string(index=False))
        return 0

    run = migrator.run(selected_phases(args), preview=args.dry_run)

    print(run.summary_frame().to_string(index=False))
    if run.preview:
        print("Preview only: nothing was written.")

    alerts.send_run_summary(run)
    return 0 if run.success else 1


if __name__ == "__main__":
    sys.exit(main())
