#!/usr/bin/env python3
"""
review-harvest: deduplicated review corpora from paginated review APIs.

Usage:
    python main.py acquire APPID [--target N]   # Collect and save a batch of reviews
    python main.py history APPID                # List saved batches for an app
    python main.py export BATCH_ID [--out F]    # Dump a saved batch as JSON
    python main.py stats                        # Show storage stats
    python main.py serve                        # Start the API server
"""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path

from acquisition import Acquirer, AcquisitionError
from config import load_config
from delivery import deliver_history, deliver_result, print_progress
from models import AcquisitionStatus
from sources import SteamReviewSource
from storage import Storage


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def cmd_acquire(config, storage, args) -> int:
    """Run one acquisition and save the batch. Returns the exit code."""
    source = SteamReviewSource(config)
    acquirer = Acquirer(source, config)
    display_name = args.name or source.fetch_display_name(args.appid)

    # Ctrl-C stops between pages and keeps what was gathered
    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: cancel.set())

    try:
        result = acquirer.acquire(args.appid, args.target, on_progress=print_progress, cancel=cancel)
    except AcquisitionError as e:
        print(f"\nAcquisition failed: {e}", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    deliver_result(result, args.appid, display_name)

    if result.status is AcquisitionStatus.CANCELLED:
        print("Cancelled, batch not saved.")
        return 1

    if args.no_save:
        return 0

    batch_id = storage.save_batch(
        args.appid,
        display_name,
        result.items,
        target_count=args.target,
        status=result.status.value,
    )
    print(f"Saved batch #{batch_id} ({result.count} reviews)")
    return 0


def cmd_history(config, storage, appid: str):
    deliver_history(appid, storage.get_batch_history(appid))


def cmd_export(config, storage, batch_id: int, out_path: str | None = None) -> int:
    """Write a saved batch as JSON."""
    batch = storage.get_batch(batch_id)
    if batch is None:
        print(f"Error: batch #{batch_id} not found.", file=sys.stderr)
        return 1

    data = batch.to_dict()
    data["reviews"] = [r.to_dict() for r in storage.get_batch_reviews(batch_id)]
    json_str = json.dumps(data, indent=2, ensure_ascii=False)

    if out_path:
        path = Path(out_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json_str, encoding="utf-8")
        print(f"Wrote {batch.item_count} reviews to {path}")
    else:
        print(json_str)
    return 0


def cmd_stats(config, storage):
    """Print storage stats."""
    stats = storage.get_stats()
    print(f"Total batches: {stats['total_batches']}")
    print(f"Total reviews: {stats['total_reviews']}")
    for source_id, count in stats["by_source"].items():
        print(f"  {source_id}: {count} batches")


def cmd_serve(config, args):
    """Start the API server."""
    from api.server import create_app

    app = create_app(config, SteamReviewSource(config))
    print(f"Starting server at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.verbose, threaded=True)


def cli():
    config = load_config()

    parser = argparse.ArgumentParser(
        prog="harvest",
        description="Collect deduplicated review batches from paginated review APIs",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    acquire_parser = sub.add_parser("acquire", parents=[common], help="Collect and save a batch of reviews")
    acquire_parser.add_argument("appid", help="Steam app id")
    acquire_parser.add_argument(
        "--target", type=int, default=config.default_target,
        help=f"Number of reviews to collect (default {config.default_target}, "
             f"minimum {config.min_batch_size})",
    )
    acquire_parser.add_argument("--name", type=str, default=None, help="Display name for the batch")
    acquire_parser.add_argument("--no-save", action="store_true", help="Do not save the batch")

    history_parser = sub.add_parser("history", parents=[common], help="List saved batches for an app")
    history_parser.add_argument("appid", help="Steam app id")

    export_parser = sub.add_parser("export", parents=[common], help="Dump a saved batch as JSON")
    export_parser.add_argument("batch_id", type=int, help="Batch id")
    export_parser.add_argument(
        "--out", type=str, default=None,
        help="Output file path. If omitted, prints to stdout.",
    )

    sub.add_parser("stats", parents=[common], help="Show storage stats")

    serve_parser = sub.add_parser("serve", parents=[common], help="Start the API server")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default 8000)")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Host (default 127.0.0.1)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.verbose)

    if args.command == "acquire" and args.target < config.min_batch_size:
        parser.error(f"--target must be at least {config.min_batch_size}")

    # serve opens its own storage per request and per job
    if args.command == "serve":
        cmd_serve(config, args)
        return

    storage = Storage(config.db_path)
    exit_code = 0

    try:
        match args.command:
            case "acquire":
                exit_code = cmd_acquire(config, storage, args)
            case "history":
                cmd_history(config, storage, args.appid)
            case "export":
                exit_code = cmd_export(config, storage, args.batch_id, args.out)
            case "stats":
                cmd_stats(config, storage)
            case _:
                parser.print_help()
    finally:
        storage.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
