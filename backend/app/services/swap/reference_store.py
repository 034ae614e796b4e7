"""
Relational store operations for cached reference data and swaps.

Each upsert is its own transaction: rows are reconciled independently, and
re-running an upsert with identical data only refreshes last_synced_at.
"""
import enum
import logging
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.errors import PersistenceError
from app.models.currency import Currency
from app.models.provider import Provider
from app.models.swap import Swap
from app.services.trocador.trocador_models import CurrencyDescriptor, ProviderDescriptor

logger = logging.getLogger(__name__)


class Collection(str, enum.Enum):
    CURRENCIES = "currencies"
    PROVIDERS = "providers"


_COLLECTION_MODELS = {
    Collection.CURRENCIES: Currency,
    Collection.PROVIDERS: Provider,
}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # MySQL/SQLite hand back naive datetimes; everything we write is UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def slugify(name: str) -> str:
    """Provider id/slug: lowercase, spaces to hyphens."""
    return name.lower().replace(" ", "-")


def read_max_sync_timestamp(db: Session, collection: Collection) -> Optional[datetime]:
    """Most recent last_synced_at across a collection, or None if it has no synced rows."""
    model = _COLLECTION_MODELS[Collection(collection)]
    try:
        value = db.query(func.max(model.last_synced_at)).scalar()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e))
    return _as_utc(value)


def _apply_currency(row: Currency, item: CurrencyDescriptor, synced_at: datetime):
    # symbol/network are the natural key and never change
    row.name = item.name
    row.logo_url = item.image
    row.min_amount = item.minimum
    row.max_amount = item.maximum
    row.last_synced_at = synced_at


def upsert_currency(db: Session, item: CurrencyDescriptor, synced_at: datetime) -> Currency:
    """Insert or update a currency matched on (symbol, network)."""
    try:
        row = db.query(Currency).filter(
            Currency.symbol == item.ticker,
            Currency.network == item.network,
        ).first()
        if row is None:
            row = Currency(
                symbol=item.ticker,
                network=item.network,
                is_active=True,
                requires_extra_id=item.memo,
            )
            db.add(row)
        _apply_currency(row, item, synced_at)
        db.commit()
        return row
    except IntegrityError:
        # Another process inserted the same (symbol, network) first
        db.rollback()
        try:
            row = db.query(Currency).filter(
                Currency.symbol == item.ticker,
                Currency.network == item.network,
            ).one()
            _apply_currency(row, item, synced_at)
            db.commit()
            return row
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"currency {item.ticker}/{item.network}: {e}")
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"currency {item.ticker}/{item.network}: {e}")
    except (TypeError, ValueError, OverflowError) as e:
        # Upstream value the column cannot hold; fail this item only
        db.rollback()
        raise PersistenceError(f"currency {item.ticker}/{item.network}: bad value: {e}")


def _find_provider(db: Session, name: str) -> Optional[Provider]:
    return db.query(Provider).filter(func.lower(Provider.name) == name.lower()).first()


def _apply_provider(row: Provider, item: ProviderDescriptor, slug: str, synced_at: datetime):
    row.name = item.name
    row.slug = slug
    row.kyc_rating = item.rating
    row.insurance_percentage = item.insurance
    row.eta_minutes = int(item.eta) if item.eta is not None else None
    row.markup_enabled = item.enabled_markup
    row.last_synced_at = synced_at


def upsert_provider(db: Session, item: ProviderDescriptor, synced_at: datetime) -> Provider:
    """Insert or update a provider matched case-insensitively on name.

    New rows get id = slug(name). Two names that slugify identically collide
    on insert; that surfaces as a PersistenceError for the second one.
    """
    slug = slugify(item.name)
    try:
        row = _find_provider(db, item.name)
        if row is None:
            row = Provider(id=slug, is_active=True)
            db.add(row)
        _apply_provider(row, item, slug, synced_at)
        db.commit()
        return row
    except IntegrityError as e:
        db.rollback()
        try:
            row = _find_provider(db, item.name)
            if row is None:
                raise PersistenceError(f"provider {item.name}: id {slug} already taken: {e}")
            _apply_provider(row, item, slug, synced_at)
            db.commit()
            return row
        except SQLAlchemyError as e2:
            db.rollback()
            raise PersistenceError(f"provider {item.name}: {e2}")
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"provider {item.name}: {e}")
    except (TypeError, ValueError, OverflowError) as e:
        db.rollback()
        raise PersistenceError(f"provider {item.name}: bad value: {e}")


def query_currencies(
    db: Session,
    ticker: Optional[str] = None,
    network: Optional[str] = None,
    memo: Optional[bool] = None,
) -> List[Currency]:
    """Active currencies, optionally filtered, ordered by symbol then network."""
    query = db.query(Currency).filter(Currency.is_active.is_(True))
    if ticker:
        query = query.filter(func.lower(Currency.symbol) == ticker.lower())
    if network:
        query = query.filter(Currency.network == network)
    if memo is not None:
        query = query.filter(Currency.requires_extra_id.is_(memo))
    try:
        return query.order_by(Currency.symbol, Currency.network).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e))


def query_providers(
    db: Session,
    rating: Optional[str] = None,
    markup_enabled: Optional[bool] = None,
    sort: Optional[str] = None,
) -> List[Provider]:
    """Active providers, optionally filtered.

    sort: "name" (default), "rating" (kyc_rating then name) or "eta".
    """
    query = db.query(Provider).filter(Provider.is_active.is_(True))
    if rating:
        query = query.filter(Provider.kyc_rating == rating)
    if markup_enabled is not None:
        query = query.filter(Provider.markup_enabled.is_(markup_enabled))

    if sort == "rating":
        query = query.order_by(Provider.kyc_rating.asc(), Provider.name.asc())
    elif sort == "eta":
        query = query.order_by(Provider.eta_minutes.asc())
    else:
        query = query.order_by(Provider.name.asc())

    try:
        return query.all()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e))


def find_currency(db: Session, symbol: str, network: str) -> Optional[Currency]:
    try:
        return db.query(Currency).filter(
            func.lower(Currency.symbol) == symbol.lower(),
            Currency.network == network,
        ).first()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e))


def insert_swap(db: Session, swap: Swap) -> Swap:
    try:
        db.add(swap)
        db.commit()
        return swap
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"swap {swap.id}: {e}")
