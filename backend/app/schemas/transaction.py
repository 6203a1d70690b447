"""
Transaction schemas.

``TransactionRecord`` is the value shape shared by reconciliation, aggregation
and the table view. Upstream feeds are not fully trusted: ids, wallets and
instruments come and go, amounts are not always numbers and timestamps do not
always parse. Records are kept rather than rejected, and the default rules
for the missing pieces live here as properties.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.transaction import TransactionKind
from app.models.wallet import Instrument

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "outros"

# Labels used by the chat channel and older clients
KIND_ALIASES = {"entrada": "income", "saida": "expense", "saída": "expense"}
INSTRUMENT_ALIASES = {
    "credito": "credit",
    "crédito": "credit",
    "debito": "debit",
    "débito": "debit",
}


def _normalise_instrument(value: Any) -> Optional[str]:
    """Map an upstream instrument label to an Instrument value, or None."""
    if value is None:
        return None
    key = str(value.value if isinstance(value, Instrument) else value).strip().lower()
    if not key:
        return None
    key = INSTRUMENT_ALIASES.get(key, key)
    if key not in Instrument.__members__:
        logger.warning("Unknown instrument %r, treating as unspecified", value)
        return None
    return key


class WalletRef(BaseModel):
    """Wallet a transaction was booked against."""
    id: int
    name: str
    wallet_kind: Optional[Instrument] = None
    credit_limit: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("wallet_kind", mode="before")
    @classmethod
    def normalise_wallet_kind(cls, value: Any) -> Optional[str]:
        return _normalise_instrument(value)


class TransactionRecord(BaseModel):
    """One financial movement as delivered by the transaction store."""
    id: Optional[int] = None
    owner: str = ""
    description: str = ""
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    kind: TransactionKind
    instrument: Optional[Instrument] = None
    wallet: Optional[WalletRef] = None
    timestamp: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("owner", "description", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Optional[Decimal]:
        """Malformed amounts become None instead of failing the whole record."""
        if value is None or isinstance(value, bool):
            return None
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            logger.warning("Malformed amount %r, counting it as zero", value)
            return None
        if not amount.is_finite():
            logger.warning("Non-finite amount %r, counting it as zero", value)
            return None
        return amount

    @field_validator("kind", mode="before")
    @classmethod
    def normalise_kind(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, TransactionKind):
            key = value.strip().lower()
            return KIND_ALIASES.get(key, key)
        return value

    @field_validator("instrument", mode="before")
    @classmethod
    def normalise_instrument(cls, value: Any) -> Optional[str]:
        return _normalise_instrument(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def coerce_timestamp(cls, value: Any) -> Optional[str]:
        # Keep the raw text: the table shows malformed values as they came in
        if value is None:
            return None
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return str(value)

    @property
    def effective_amount(self) -> Decimal:
        """Amount used by every sum; unknown amounts contribute zero."""
        return self.amount if self.amount is not None else Decimal("0")

    @property
    def category_label(self) -> str:
        return (self.category or "").strip() or DEFAULT_CATEGORY

    @property
    def effective_instrument(self) -> Instrument:
        """Wallet kind wins over the per-transaction flag; neither means debit."""
        if self.wallet is not None and self.wallet.wallet_kind is not None:
            return self.wallet.wallet_kind
        if self.instrument is not None:
            return self.instrument
        return Instrument.debit


class TransactionListResponse(BaseModel):
    items: list[TransactionRecord]
    total: int
    page: int
    pages: int
