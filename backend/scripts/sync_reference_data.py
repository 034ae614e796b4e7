"""
Script to sync currencies and providers from Trocador into the database.
Useful right after migrations, or from cron to keep reference data warm
without waiting for a request to trigger the refresh.
"""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
from app.core.database import SessionLocal
from app.core.errors import SwapError
from app.services.swap import Collection, build_swap_service, close_shared_components


def sync_reference_data(collections, only_if_stale: bool = False) -> int:
    """Sync the given collections. Returns the number that failed."""
    db = SessionLocal()
    failures = 0
    try:
        service = build_swap_service(db)
        for collection in collections:
            if only_if_stale and not service.staleness_gate.needs_refresh(db, collection):
                print(f"{collection.value}: fresh, skipping")
                continue
            try:
                result = service.sync_engine.sync(db, collection)
            except SwapError as e:
                failures += 1
                print(f"❌ {collection.value}: {e}")
                continue
            print(f"✅ {collection.value}: {result.synced} synced, {len(result.failed)} failed")
            for label in result.failed:
                print(f"   failed: {label}")
    finally:
        db.close()
        close_shared_components()
    return failures


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description='Sync reference data from Trocador')
    parser.add_argument('--only', choices=[c.value for c in Collection], help='Sync a single collection')
    parser.add_argument('--if-stale', action='store_true', help='Skip collections whose cached copy is still fresh')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    selected = [Collection(args.only)] if args.only else list(Collection)
    sys.exit(1 if sync_reference_data(selected, only_if_stale=args.if_stale) else 0)
