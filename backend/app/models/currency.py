"""
Currency model (assets offered by the upstream provider, cached locally).
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, UniqueConstraint
from sqlalchemy.sql import func
from app.core.database import Base


class Currency(Base):
    __tablename__ = "currencies"
    __table_args__ = (
        UniqueConstraint("symbol", "network", name="uq_currencies_symbol_network"),
    )

    id = Column(Integer, primary_key=True, index=True)
    symbol = Column(String(20), nullable=False, index=True)  # e.g., "btc", "usdt"
    name = Column(String(100), nullable=False)
    network = Column(String(50), nullable=False, index=True)  # e.g., "Mainnet", "ERC20"
    is_active = Column(Boolean, default=True, nullable=False)
    logo_url = Column(String(500), nullable=True)
    contract_address = Column(String(255), nullable=True)
    decimals = Column(Integer, nullable=True)
    requires_extra_id = Column(Boolean, default=False, nullable=False)  # memo / destination tag
    extra_id_name = Column(String(50), nullable=True)
    min_amount = Column(Float, nullable=True)
    max_amount = Column(Float, nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
