"""
Staleness policy for cached reference data.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional
from sqlalchemy.orm import Session
from app.services.swap.reference_store import Collection, read_max_sync_timestamp

DEFAULT_STALENESS_WINDOW = timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StalenessGate:
    """Decides whether a collection's cached copy must be refreshed.

    A collection is stale when it has never been synced, or when its most
    recent last_synced_at is more than the window old. Read-only.
    """

    def __init__(
        self,
        windows: Optional[Dict[Collection, timedelta]] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.windows = {
            Collection.CURRENCIES: DEFAULT_STALENESS_WINDOW,
            Collection.PROVIDERS: DEFAULT_STALENESS_WINDOW,
        }
        if windows:
            self.windows.update(windows)
        self.now = now

    def needs_refresh(self, db: Session, collection: Collection) -> bool:
        collection = Collection(collection)
        cursor = read_max_sync_timestamp(db, collection)
        if cursor is None:
            return True
        return self.now() - cursor > self.windows[collection]
