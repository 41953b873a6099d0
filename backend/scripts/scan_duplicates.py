"""Run one duplicate scan cycle against the configured catalog.

Usage (from repository root):
    python backend/scripts/scan_duplicates.py

Usage (from backend directory):
    python scripts/scan_duplicates.py --policy same_category
    # or
    python -m scripts.scan_duplicates --reset-history
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Make `app` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.db.session import SessionLocal
from app.entity_resolution.types import DuplicateGroup
from app.schema.categories import COMPARABILITY_POLICIES, comparability_predicate
from app.services.duplicates import DuplicateOrchestrator
from app.services.images import get_image_store
from app.services.merge_history import SqlMergeHistoryStore


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Scan the media library for duplicate entities.")
    parser.add_argument(
        "--policy",
        choices=COMPARABILITY_POLICIES,
        default=None,
        help="Override which categories may share a group (default: MERGE_COMPARABILITY setting).",
    )
    parser.add_argument(
        "--reset-history",
        action="store_true",
        help="Forget every approved/declined decision before scanning.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log scan timings to stderr.")
    return parser.parse_args()


def format_group(group: DuplicateGroup) -> str:
    members = ", ".join(
        f"{entity.category}:{entity.id} {entity.display_name!r} links={entity.connection_count}"
        f"{' image' if entity.has_image else ''}"
        for entity in group.entities
    )
    return f"  [{group.similarity:.2f}] {group.name} -> {members}"


def main() -> None:
    """Scan once and print pending groups plus auto-merge results."""

    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    with SessionLocal() as db:
        orchestrator = DuplicateOrchestrator(
            db,
            get_image_store(),
            SqlMergeHistoryStore(db),
            can_compare=comparability_predicate(args.policy),
        )
        if args.reset_history:
            print(f"history_removed={orchestrator.reset_history()}")
        result = orchestrator.scan()

    print("Scan complete")
    print(f"auto_merged={result.auto_merged}")
    for failure in result.auto_merge_failures:
        print(f"auto_merge_failed: {failure}")
    print(f"exact_groups={len(result.exact)}")
    for group in result.exact:
        print(format_group(group))
    print(f"similar_groups={len(result.similar)}")
    for group in result.similar:
        print(format_group(group))


if __name__ == "__main__":
    main()
