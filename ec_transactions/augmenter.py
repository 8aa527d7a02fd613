"""
Adds English renderings to the Tamil fields of extracted transactions.

Per record, each Tamil-bearing field is sent to the translation provider:

    seller_name_tamil → seller_name
    buyer_name_tamil  → buyer_name
    village           → village           (replaced in place)
    boundary_details  → boundary_details  (replaced in place)
    schedule_remarks  → schedule_remarks  (replaced in place)

Failures are handled one field at a time. A failed field falls back to the
transliteration table ("transliterate") or stays unset ("omit"); the rest of
the record and the rest of the batch carry on.

Outbound calls are rate limited either sequentially (one in flight, fixed
delay after each record) or in small batches (N in flight, fixed delay after
each batch). Output order always matches input order.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from .config import PipelineSettings
from .models import RawTransaction, TranslatedTransaction, TranslationSource
from .translation import TranslationProvider
from .transliteration import transliterate
from .vocabulary import contains_tamil

logger = logging.getLogger(__name__)

# (source field, target field, context given to the provider)
TRANSLATED_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("seller_name_tamil", "seller_name", "seller name"),
    ("buyer_name_tamil", "buyer_name", "buyer name"),
    ("village", "village", "village name"),
    ("boundary_details", "boundary_details", "property boundary details"),
    ("schedule_remarks", "schedule_remarks", "property schedule remarks"),
)


class TranslationAugmenter:
    """Turns RawTransactions into TranslatedTransactions.

    Usage:
        augmenter = TranslationAugmenter(provider, PipelineSettings())
        translated = augmenter.augment(raw_transactions)
    """

    def __init__(
        self,
        provider: TranslationProvider | None,
        settings: PipelineSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.settings = settings or PipelineSettings()
        self._sleep = sleep

    @property
    def provider_name(self) -> str:
        return self.provider.name if self.provider is not None else "none"

    def augment(
        self,
        transactions: Sequence[RawTransaction],
        cancel_event: threading.Event | None = None,
    ) -> list[TranslatedTransaction]:
        """Translate every record, preserving order.

        If cancel_event is set, no new unit of work (a record, or a batch in
        batch mode) is started; the records finished so far are returned.
        """
        if self.provider is None and transactions:
            logger.info(
                "No translation provider configured — applying '%s' fallback",
                self.settings.translation_fallback,
            )

        if self.settings.translation_mode == "batch":
            results = self._augment_batched(transactions, cancel_event)
        else:
            results = self._augment_sequential(transactions, cancel_event)

        logger.info("Translated %d of %d transaction(s)", len(results), len(transactions))
        return results

    def translate_one(self, txn: RawTransaction) -> TranslatedTransaction:
        """Translate the Tamil fields of a single record."""
        updates: dict[str, str] = {}
        sources: dict[str, TranslationSource] = {}

        for source_field, target_field, context in TRANSLATED_FIELDS:
            text = getattr(txn, source_field)
            if not text or not contains_tamil(text):
                continue  # Non-Tamil text passes through untouched
            result = self._translate_field(text, context, txn.document_key)
            if result is not None:
                updates[target_field], sources[target_field] = result

        data = txn.model_dump()
        data.update(updates)
        data["translation_sources"] = sources
        return TranslatedTransaction(**data)

    # ─── Scheduling ──────────────────────────────────────────────────

    def _augment_sequential(
        self, transactions: Sequence[RawTransaction], cancel_event: threading.Event | None
    ) -> list[TranslatedTransaction]:
        results: list[TranslatedTransaction] = []
        for index, txn in enumerate(transactions):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Translation cancelled after %d record(s)", len(results))
                break
            results.append(self.translate_one(txn))
            if self.provider is not None and index < len(transactions) - 1:
                self._sleep(self.settings.effective_delay)
        return results

    def _augment_batched(
        self, transactions: Sequence[RawTransaction], cancel_event: threading.Event | None
    ) -> list[TranslatedTransaction]:
        results: list[TranslatedTransaction] = []
        batch_size = self.settings.batch_size

        with ThreadPoolExecutor(max_workers=batch_size) as executor:
            for start in range(0, len(transactions), batch_size):
                if cancel_event is not None and cancel_event.is_set():
                    logger.warning("Translation cancelled after %d record(s)", len(results))
                    break
                batch = transactions[start : start + batch_size]
                # executor.map yields in submission order
                results.extend(executor.map(self.translate_one, batch))
                if self.provider is not None and start + batch_size < len(transactions):
                    self._sleep(self.settings.effective_delay)
        return results

    # ─── Single Field ────────────────────────────────────────────────

    def _translate_field(
        self, text: str, context: str, document_key: str | None
    ) -> tuple[str, TranslationSource] | None:
        if self.provider is not None:
            try:
                translated = self.provider.translate(text, context)
            except Exception as e:
                logger.warning(
                    "Translation of %s for document %s failed, using fallback: %s",
                    context,
                    document_key or "UNKNOWN",
                    e,
                )
            else:
                if translated and translated.strip():
                    return translated.strip(), TranslationSource.PROVIDER
                logger.warning(
                    "Provider returned no text for %s of document %s, using fallback",
                    context,
                    document_key or "UNKNOWN",
                )
        return self._fallback(text)

    def _fallback(self, text: str) -> tuple[str, TranslationSource] | None:
        if self.settings.translation_fallback == "omit":
            return None
        romanized = transliterate(text)
        if not romanized:
            return None
        return romanized, TranslationSource.TRANSLITERATION
