"""
Swap model (trades created through the upstream provider).
"""
from sqlalchemy import Column, String, DateTime, Boolean, Float, Enum as SQLEnum
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class SwapStatus(str, enum.Enum):
    WAITING = "waiting"
    CONFIRMING = "confirming"
    SENDING = "sending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    EXPIRED = "expired"


class RateType(str, enum.Enum):
    FLOATING = "floating"
    FIXED = "fixed"


class Swap(Base):
    __tablename__ = "swaps"

    id = Column(String(36), primary_key=True)  # uuid4
    user_id = Column(String(36), nullable=True, index=True)
    provider_id = Column(String(100), nullable=False)
    provider_swap_id = Column(String(100), nullable=True, index=True)  # upstream trade id
    from_currency = Column(String(20), nullable=False)
    from_network = Column(String(50), nullable=False)
    to_currency = Column(String(20), nullable=False)
    to_network = Column(String(50), nullable=False)
    amount = Column(Float, nullable=False)
    estimated_receive = Column(Float, nullable=True)
    rate = Column(Float, nullable=True)
    deposit_address = Column(String(255), nullable=True)
    deposit_extra_id = Column(String(100), nullable=True)
    recipient_address = Column(String(255), nullable=False)
    recipient_extra_id = Column(String(100), nullable=True)
    refund_address = Column(String(255), nullable=True)
    refund_extra_id = Column(String(100), nullable=True)
    status = Column(SQLEnum(SwapStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=SwapStatus.WAITING)
    rate_type = Column(SQLEnum(RateType, values_callable=lambda x: [e.value for e in x]), nullable=False, default=RateType.FLOATING)
    is_sandbox = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
