"""
Wallet database model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Numeric
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class Instrument(str, enum.Enum):
    """Payment instrument, used both by wallets and by single transactions."""
    credit = "credit"
    debit = "debit"


class Wallet(Base):
    """Wallet model."""

    __tablename__ = "wallets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner = Column(String(32), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    wallet_kind = Column(Enum(Instrument), nullable=True)  # None = kind not configured
    credit_limit = Column(Numeric(12, 2), nullable=True)  # credit wallets only
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="wallet")
