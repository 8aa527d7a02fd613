"""
Reshapes translated transactions into the record handed to storage.

No extraction or translation happens here.
"""

from __future__ import annotations

from decimal import Decimal

from .models import TransactionRecord, TranslatedTransaction

_CENTS = Decimal("0.01")


def format_amount(value: Decimal | None) -> str | None:
    """Decimal(314068) → '314068.00', matching a DECIMAL(15,2) column."""
    if value is None:
        return None
    return str(value.quantize(_CENTS))


def assemble_record(txn: TranslatedTransaction, file_name: str) -> TransactionRecord:
    """Copy every field through, render amounts as text, attach provenance."""
    data = txn.model_dump(exclude={"translation_sources"})
    data["consideration_value"] = format_amount(txn.consideration_value)
    data["market_value"] = format_amount(txn.market_value)
    data["pdf_file_name"] = file_name
    return TransactionRecord(**data)
