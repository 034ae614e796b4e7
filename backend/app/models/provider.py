"""
Provider model (exchange services quoted through the upstream aggregator).
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float
from sqlalchemy.sql import func
from app.core.database import Base


class Provider(Base):
    __tablename__ = "providers"

    id = Column(String(100), primary_key=True)  # slug of the upstream name
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    kyc_rating = Column(String(5), nullable=True)  # "A" (no KYC) .. "D"
    insurance_percentage = Column(Float, nullable=True)
    eta_minutes = Column(Integer, nullable=True)
    markup_enabled = Column(Boolean, default=False, nullable=False)
    api_url = Column(String(500), nullable=True)
    logo_url = Column(String(500), nullable=True)
    website_url = Column(String(500), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
