"""
Reference data sync (upstream -> relational store).

Currencies and providers are fetched whole from Trocador and reconciled row
by row with idempotent upserts. Read paths call `refresh_if_stale`, which
runs a sync only when the StalenessGate says so and only in one process at
a time (per-collection lock in Redis); every failure there is logged and
swallowed so the caller can still serve whatever rows are cached.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from app.core.errors import CacheUnavailable, NotConfigured, PersistenceError, SwapError
from app.services.cache.redis_cache import RedisCache
from app.services.resilience.retry import RetryExecutor
from app.services.swap.reference_store import Collection, upsert_currency, upsert_provider
from app.services.swap.staleness import StalenessGate, utc_now
from app.services.swap.swap_models import SyncResult
from app.services.trocador.client import TrocadorClient

logger = logging.getLogger(__name__)


def _item_label(item) -> str:
    if hasattr(item, "ticker"):
        return f"{item.ticker}/{item.network}"
    return item.name


class SyncEngine:
    """Reconciles local currencies/providers with the upstream lists."""

    def __init__(
        self,
        client: Optional[TrocadorClient],
        retry: RetryExecutor,
        cache: Optional[RedisCache] = None,
        lock_ttl_seconds: int = 60,
        now: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            client: Upstream client, or None when no API key is configured
            retry: Executor wrapping every upstream fetch
            cache: Shared cache used for the per-collection sync lock
            lock_ttl_seconds: Lock expiry, bounds how long a crashed holder blocks others
            now: UTC clock stamped into last_synced_at
        """
        self.client = client
        self.retry = retry
        self.cache = cache
        self.lock_ttl_seconds = lock_ttl_seconds
        self.now = now

    def _fetch(self, collection: Collection) -> List:
        if self.client is None:
            raise NotConfigured("Trocador API key not set")
        if collection == Collection.CURRENCIES:
            return self.retry.execute(self.client.get_currencies)
        return self.retry.execute(self.client.get_providers)

    def sync(self, db: Session, collection: Collection) -> SyncResult:
        """Fetch one collection upstream and upsert every item.

        Items are reconciled independently: a failing item is logged and
        listed in `failed`, the rest still land. Raises PersistenceError only
        when every item failed.
        """
        collection = Collection(collection)
        items = self._fetch(collection)
        upsert = upsert_currency if collection == Collection.CURRENCIES else upsert_provider
        synced_at = self.now()

        result = SyncResult(collection=collection.value)
        for item in items:
            try:
                upsert(db, item, synced_at)
                result.synced += 1
            except PersistenceError as e:
                label = _item_label(item)
                logger.warning(f"Failed to upsert {collection.value} item {label}: {e}")
                result.failed.append(label)

        if result.failed and result.synced == 0:
            raise PersistenceError(
                f"all {len(result.failed)} {collection.value} upserts failed"
            )
        logger.info(
            f"Synced {result.synced} {collection.value} from Trocador"
            + (f" ({len(result.failed)} failed)" if result.failed else "")
        )
        return result

    def sync_currencies(self, db: Session) -> SyncResult:
        return self.sync(db, Collection.CURRENCIES)

    def sync_providers(self, db: Session) -> SyncResult:
        return self.sync(db, Collection.PROVIDERS)

    def _acquire_lock(self, collection: Collection) -> tuple[bool, Optional[str]]:
        """Returns (may_sync, token)."""
        if self.cache is None:
            return True, None
        try:
            token = self.cache.acquire_lock(f"sync:{collection.value}", self.lock_ttl_seconds)
        except CacheUnavailable as e:
            logger.warning(f"Sync lock unavailable, syncing {collection.value} unlocked: {e}")
            return True, None
        return token is not None, token

    def _release_lock(self, collection: Collection, token: Optional[str]):
        if self.cache is None or token is None:
            return
        try:
            self.cache.release_lock(f"sync:{collection.value}", token)
        except CacheUnavailable as e:
            # Lock expires on its own
            logger.warning(f"Could not release sync lock for {collection.value}: {e}")

    def refresh_if_stale(
        self,
        db: Session,
        collection: Collection,
        gate: StalenessGate,
    ) -> Optional[SyncResult]:
        """Opportunistic sync for read paths. Never raises SwapError.

        Returns the SyncResult when a sync ran, a skipped result when another
        process holds the lock, or None when the data was fresh or the sync
        failed.
        """
        collection = Collection(collection)
        try:
            if not gate.needs_refresh(db, collection):
                return None
        except PersistenceError as e:
            logger.warning(f"Could not read {collection.value} sync cursor: {e}")
            return None

        may_sync, token = self._acquire_lock(collection)
        if not may_sync:
            logger.debug(f"{collection.value} sync already running elsewhere, serving cached rows")
            return SyncResult(collection=collection.value, skipped=True)

        try:
            return self.sync(db, collection)
        except SwapError as e:
            logger.warning(f"Failed to sync {collection.value} from Trocador: {e}")
            return None
        finally:
            self._release_lock(collection, token)
