"""
Database models package.
"""

from app.models.wallet import Wallet, Instrument
from app.models.transaction import Transaction, TransactionKind

__all__ = [
    "Wallet",
    "Instrument",
    "Transaction",
    "TransactionKind",
]
