# src/main.py
"""CLI entry point: watch, process, stats commands.

Usage:
    cloudbatch [watch] [options]
    cloudbatch process [options]
    cloudbatch stats [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from pydantic import ValidationError

from cloudbatch.config.settings import ConfigurationError, Settings, load_settings
from cloudbatch.errors import DirectoryAccessError
from cloudbatch.logging.logger import setup_logging
from cloudbatch.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else "INFO")

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValidationError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    setup_logging(
        "DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except DirectoryAccessError as exc:
        logger.error("%s", exc)
        return 1
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    """Console-script entry point."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="cloudbatch",
        description=f"cloudbatch v{__version__}: point-cloud export batch watcher",
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.set_defaults(func=_cmd_watch, verbose=False, documents=None, timeout=None)

    subparsers = parser.add_subparsers(dest="command")

    # --- watch ---
    p_watch = subparsers.add_parser(
        "watch", help="Watch the input folder and process batches (default)",
    )
    _add_common_arguments(p_watch)
    p_watch.set_defaults(func=_cmd_watch)

    # --- process ---
    p_process = subparsers.add_parser(
        "process", help="Process whatever is in the input folder now and exit",
    )
    _add_common_arguments(p_process)
    p_process.set_defaults(func=_cmd_process)

    # --- stats ---
    p_stats = subparsers.add_parser(
        "stats", help="Show tracking statistics",
    )
    _add_common_arguments(p_stats)
    p_stats.set_defaults(func=_cmd_stats)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags accepted both before and after the subcommand.

    Defaults are suppressed so a subcommand never overwrites a flag given
    at the top level.
    """
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS,
        help="Enable debug logging",
    )
    parser.add_argument(
        "--documents", type=Path, default=argparse.SUPPRESS,
        help="Root folder holding input/, results/ and bin/ (default: ~/Documents)",
    )
    parser.add_argument(
        "--timeout", type=float, default=argparse.SUPPRESS,
        help="Seconds without new members before a batch is processed (default: 10)",
    )


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.documents is not None:
        overrides["documents_path"] = args.documents
    if args.timeout is not None:
        overrides["completion_timeout_seconds"] = args.timeout
    return load_settings(**overrides)


def _build_pipeline(settings: Settings):
    """Wire the store, tracking, adapters and coordinator from settings."""
    from cloudbatch.batch.coordinator import BatchCoordinator
    from cloudbatch.reporting.reporter_factory import create_reporter
    from cloudbatch.storage.local_store import LocalStore
    from cloudbatch.summary.summarizer_factory import create_summarizer
    from cloudbatch.tracking.store import TrackingStore

    store = LocalStore(settings.intake_path, settings.output_path, settings.archive_path)
    store.ensure()
    coordinator = BatchCoordinator.from_settings(
        settings,
        store,
        TrackingStore(settings.tracking_path),
        reporter=create_reporter(settings),
        summarizer=create_summarizer(settings),
    )
    return store, coordinator


async def _cmd_watch(args: argparse.Namespace, settings: Settings) -> int:
    """Run the long-lived watch loop until SIGINT/SIGTERM."""
    from cloudbatch.batch.watcher import DirectoryWatcher

    store, coordinator = _build_pipeline(settings)
    watcher = DirectoryWatcher(
        store.intake_dir,
        coordinator,
        reconcile_interval=settings.reconcile_interval_seconds,
        use_polling=settings.watch_use_polling,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: Ctrl+C surfaces as KeyboardInterrupt instead
            continue

    logger.info("Input:   %s", settings.intake_path)
    logger.info("Results: %s", settings.output_path)
    logger.info("Archive: %s", settings.archive_path)
    logger.info("Sheet sync %s", "enabled" if settings.sheets_enabled else "disabled")
    await watcher.run(stop_event)
    return 0


async def _cmd_process(args: argparse.Namespace, settings: Settings) -> int:
    """Assemble the batch currently in the input folder and finalize it."""
    from cloudbatch.batch.models import ArrivalOutcome
    from cloudbatch.batch.scanner import IntakeScanner

    store, coordinator = _build_pipeline(settings)
    scan = await IntakeScanner(store.intake_dir, coordinator).reconcile()
    logger.info(
        "Scanned %d files (%d opened, %d accepted)",
        scan.files_found,
        scan.count(ArrivalOutcome.OPENED),
        scan.count(ArrivalOutcome.ACCEPTED),
    )

    result = await coordinator.process_now()
    if result is None:
        print("\nNothing to process: no anchor file in", store.intake_dir)
        return 0

    print(f"\nBatch {result.key} complete:")
    print(f"  Members:      {result.member_count}")
    print(f"  Output:       {result.output_path or '-'}")
    print(f"  Lines:        {result.merged_lines}")
    print(f"  Points:       {result.total_points}")
    print(f"  Reported:     {'yes' if result.reported else 'no'}")
    print(f"  Cleared:      {result.files_cleared}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    if result.steps_failed:
        print(f"  Failed steps: {', '.join(result.steps_failed)}")
        return 1
    return 0


async def _cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    """Display totals from the tracking store."""
    from cloudbatch.tracking.store import TrackingStore

    summary = TrackingStore(settings.tracking_path).summarize()

    print(f"\nStatistics for {settings.tracking_path}:")
    print(f"  Batches:      {summary.record_count}")
    print(f"  Total points: {summary.total_points}")
    if summary.first_timestamp and summary.last_timestamp:
        print(f"  First:        {summary.first_timestamp.isoformat()}")
        print(f"  Last:         {summary.last_timestamp.isoformat()}")
    for name, count in sorted(summary.by_category.items(), key=lambda kv: -kv[1]):
        print(f"    {name:<20} {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
