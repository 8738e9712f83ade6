"""
Output delivery. CLI (stdout) only.
"""

import sys

from models import AcquisitionResult, AcquisitionStatus, BatchRecord

SEPARATOR = "─" * 60


def print_progress(accepted: int, percent: int):
    """Progress observer for interactive runs. Rewrites one stdout line."""
    sys.stdout.write(f"\r  {accepted} reviews ({percent}%)")
    sys.stdout.flush()


def deliver_result(result: AcquisitionResult, source_id: str, display_name: str = ""):
    """Print an acquisition summary."""
    headers = {
        AcquisitionStatus.COMPLETE: "ACQUISITION COMPLETE",
        AcquisitionStatus.PARTIAL: "ACQUISITION PARTIAL",
        AcquisitionStatus.CANCELLED: "ACQUISITION CANCELLED",
    }
    print(f"\n{SEPARATOR}")
    print(f"  {headers[result.status]}")
    print(f"  {display_name or source_id} ({source_id})")
    print(SEPARATOR)
    print(f"  Reviews:   {result.count} / {result.target_count}")
    print(f"  Pages:     {result.pages_fetched}")
    print(f"  Stopped:   {result.stop_reason.value}")
    if result.status is AcquisitionStatus.PARTIAL:
        print(f"  Warning: fewer reviews than requested were available ({result.short_by} short)")
    print(SEPARATOR)


def deliver_history(source_id: str, batches: list[BatchRecord]):
    """Print saved batches for a source."""
    print(f"\n{SEPARATOR}")
    print(f"  HISTORY: {source_id}")
    print(SEPARATOR)
    if not batches:
        print("  No saved batches.")
    for batch in batches:
        target = batch.target_count if batch.target_count is not None else "-"
        print(
            f"  #{batch.id:<5} {batch.created_at.strftime('%Y-%m-%d %H:%M UTC')}  "
            f"{batch.item_count}/{target}  {batch.status:<9} {batch.display_name}"
        )
    print(SEPARATOR)
