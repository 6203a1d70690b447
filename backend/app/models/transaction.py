"""
Transaction database model.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Numeric, Text, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
import enum
from app.database import Base
from app.models.wallet import Instrument


class TransactionKind(str, enum.Enum):
    """Direction of a financial movement."""
    income = "income"
    expense = "expense"


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner = Column(String(32), nullable=False, index=True)  # Phone or account key
    description = Column(Text, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=True)  # Always positive; kind gives the sign
    category = Column(String(100), nullable=True)
    kind = Column(Enum(TransactionKind), nullable=False)
    instrument = Column(Enum(Instrument), nullable=True)
    wallet_id = Column(Integer, ForeignKey("wallets.id"), nullable=True)
    # Raw upstream text: chat-originated rows may carry malformed values
    timestamp = Column(String(40), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    wallet = relationship("Wallet", back_populates="transactions")

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_owner_timestamp", "owner", "timestamp"),
        Index("idx_transaction_category", "category"),
    )
