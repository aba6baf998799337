import argparse
import glob
import json
import logging
import sys
from pathlib import Path

from showimport import __version__
import showimport.config as cfg_module
import showimport.db as db_module
from showimport.backfill import backfill_slugs
from showimport.errors import BatchFormatError
from showimport.generator.report import build_report, render_summary
from showimport.models import ImportResult
from showimport.reconcile import Reconciler, check_events, parse_event_keys
from showimport.venues import VenueRegistry

logger = logging.getLogger("showimport")


def _import(args, cfg):
    files = sorted(glob.glob(args.input))
    if not files:
        print(f"Error: no files found matching pattern: {args.input}", file=sys.stderr)
        sys.exit(1)

    conn = db_module.connect(cfg_module.get_database_path(cfg), read_only=args.dry_run)
    registry = VenueRegistry.from_config(cfg_module.get_venues(cfg))
    reconciler = Reconciler(conn, registry)

    logger.info("Found %d file(s) to process", len(files))
    if args.dry_run:
        logger.info("DRY RUN - no database changes will be made")

    total = ImportResult()
    processed: list[str] = []
    for path in files:
        logger.info("Processing: %s", path)
        try:
            result = reconciler.import_file(Path(path), dry_run=args.dry_run)
        except (OSError, BatchFormatError) as exc:
            print(f"ERROR processing {path}: {exc}", file=sys.stderr)
            continue

        processed.append(path)
        total.merge(result)

        if args.verbose:
            for msg in result.messages:
                print(f"  {msg}")

        logger.info(
            "  File results: %d total, %d imported, %d pending review, %d duplicates, %d rejected, %d errors",
            result.total, result.imported, result.pending_review, result.duplicates,
            result.rejected, result.errors,
        )

    print()
    print(render_summary(total, files, dry_run=args.dry_run))

    if args.report:
        build_report(total, Path(args.report), processed, dry_run=args.dry_run)
        print(f"Report written to '{args.report}'.")

    if total.errors > 0:
        sys.exit(1)


def _check(args, cfg):
    try:
        keys = parse_event_keys(Path(args.input).read_bytes())
    except (OSError, BatchFormatError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    conn = db_module.connect(cfg_module.get_database_path(cfg), read_only=True)
    events = {}
    for status in check_events(conn, keys):
        if status.exists:
            events[status.id] = {"exists": True, "showId": status.show_id, "status": status.status.value}
        else:
            events[status.id] = {"exists": False}
    print(json.dumps({"events": events}, indent=2))


def _backfill(args, cfg):
    conn = db_module.connect(cfg_module.get_database_path(cfg))
    print("Starting slug backfill...")
    updated = backfill_slugs(conn)
    for table, n in updated.items():
        print(f"  {table}: {n} slug(s) assigned")
    print("Final counts with slugs:")
    for table in ("artists", "venues", "shows"):
        print(f"  {table}: {db_module.count_with_slug(conn, table)}")


def main():
    parser = argparse.ArgumentParser(
        prog="showimport",
        description="Import discovered venue events into the show catalog",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config", default="config.toml", metavar="PATH",
        help="Path to config.toml (default: config.toml)",
    )
    parser.add_argument(
        "--env", default=".env", metavar="PATH",
        help="Path to a .env file (default: .env)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # import
    sp_import = subparsers.add_parser("import", help="Import crawler JSON output into the database")
    sp_import.add_argument(
        "--input", required=True, metavar="GLOB",
        help="Input JSON file(s), glob patterns allowed (e.g. './output/scraped-*.json')",
    )
    sp_import.add_argument("--dry-run", action="store_true", help="Classify events without writing anything")
    sp_import.add_argument("--verbose", action="store_true", help="Print the outcome of every event")
    sp_import.add_argument("--report", metavar="PATH", help="Also write an HTML report to PATH")

    # check
    sp_check = subparsers.add_parser("check", help="Report which crawler events are already imported")
    sp_check.add_argument("input", metavar="FILE", help='JSON array of {"id", "venueSlug"} objects')

    # backfill-slugs
    subparsers.add_parser("backfill-slugs", help="Assign slugs to artists, venues and shows missing one")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = cfg_module.load(Path(args.config), Path(args.env))

    if args.command == "import":
        _import(args, cfg)
    elif args.command == "check":
        _check(args, cfg)
    elif args.command == "backfill-slugs":
        _backfill(args, cfg)


if __name__ == "__main__":
    main()
