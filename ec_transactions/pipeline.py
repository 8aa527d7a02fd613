"""
Main transaction pipeline — orchestrates one upload.

Flow:
  ┌──────────────┐
  │ Extracted    │   ← plain text of one PDF (+ its file name)
  │ text         │
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │  Segmenter   │   ← whole-block (default) or line-scan; fallback scan
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │  Extractor   │   ← pure regex recognizers, one RawTransaction per block
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │  Augmenter   │   ← provider translation, per-field transliteration fallback
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │  Assembler   │   ← persisted record shape + source file name
  └──────┬───────┘
         │
  ┌──────▼───────┐
  │    Report    │   ← records + counts; zero records is a valid outcome
  └──────────────┘

Design principles:
  - Only non-text input rejects the upload (MalformedInputError).
  - A block without a document reference is dropped, not emitted empty.
  - Translation failures never propagate out of the augmenter.
  - The input text is SHA-256 hashed for the audit trail.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import unicodedata

from .assembler import assemble_record
from .augmenter import TranslationAugmenter
from .config import PipelineSettings
from .exceptions import MalformedInputError
from .extractor_regex import extract_identity, extract_transaction
from .models import PipelineReport, RawTransaction, SegmentationMode, StoredTransaction
from .party_resolver import PartyNameResolver, PositionalPartyResolver
from .segmenter import Block, Segmenter, build_segmenter, segment_text
from .store import InMemoryTransactionStore
from .translation import TranslationProvider, build_provider

logger = logging.getLogger(__name__)

# Share of control characters above which the input is treated as binary.
MAX_CONTROL_CHAR_RATIO = 0.10
_ALLOWED_CONTROL_CHARS = frozenset("\n\r\t\f\v")


def coerce_text(data: str | bytes) -> str:
    """Return the input as text, or reject it as malformed.

    Raises:
        MalformedInputError: Wrong type, undecodable bytes, unencodable
            characters (lone surrogates), NUL bytes or a high share of
            control characters (binary garbage).
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(
                "Input is not valid UTF-8 text", details={"position": e.start}
            ) from e

    if not isinstance(data, str):
        raise MalformedInputError(
            f"Expected document text, got {type(data).__name__}",
            details={"type": type(data).__name__},
        )

    try:
        data.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MalformedInputError(
            "Input contains characters that cannot be encoded as UTF-8",
            details={"position": e.start},
        ) from e

    if "\x00" in data:
        raise MalformedInputError("Input contains NUL bytes (binary content, not text)")

    if data:
        control = sum(
            1
            for c in data
            if c not in _ALLOWED_CONTROL_CHARS and unicodedata.category(c) == "Cc"
        )
        ratio = control / len(data)
        if ratio > MAX_CONTROL_CHAR_RATIO:
            raise MalformedInputError(
                "Input is mostly control characters (binary content, not text)",
                details={"control_char_ratio": round(ratio, 3)},
            )

    return data


class TransactionPipeline:
    """Orchestrates segmentation, extraction, translation and assembly.

    Usage:
        pipeline = TransactionPipeline(PipelineSettings.from_env())
        report = pipeline.run(extracted_text, "ec_2013.pdf")
        print(f"{report.record_count} transaction(s) found")
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        provider: TranslationProvider | None = None,
        segmenter: Segmenter | None = None,
        party_resolver: PartyNameResolver | None = None,
    ):
        self.settings = settings or PipelineSettings()
        self.segmenter = segmenter or build_segmenter(
            self.settings.segmentation_mode, self.settings.min_block_length
        )
        self.party_resolver = party_resolver or PositionalPartyResolver()
        # No explicit provider: build the one the settings name (may be None).
        self.augmenter = TranslationAugmenter(
            provider if provider is not None else build_provider(self.settings),
            self.settings,
        )

    @property
    def segmentation_mode(self) -> SegmentationMode:
        return getattr(self.segmenter, "mode", self.settings.segmentation_mode)

    def run(
        self,
        text: str | bytes,
        file_name: str = "upload.txt",
        cancel_event: threading.Event | None = None,
    ) -> PipelineReport:
        """Execute the full pipeline on one document's extracted text.

        Args:
            text: Extracted plain text (str, or UTF-8 bytes).
            file_name: Display name of the uploaded file, kept as provenance.
            cancel_event: When set, translation stops before the next unit
                of work and the finished records are returned.

        Returns:
            PipelineReport; record_count may legitimately be zero.

        Raises:
            MalformedInputError: If the input is not text.
        """
        # ── Step 0: Reject non-text, hash for audit ─────────────────
        text = coerce_text(text)
        doc_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()
        logger.info("Processing document: %s", file_name)

        # ── Step 1: Segment ─────────────────────────────────────────
        blocks = segment_text(text, self.segmenter)

        # ── Step 2: Extract ─────────────────────────────────────────
        raw = self._extract(blocks)
        dropped = len(blocks) - len(raw)
        logger.info(
            "Extracted %d transaction(s) from %d block(s), %d dropped",
            len(raw),
            len(blocks),
            dropped,
        )

        # ── Step 3: Translate ───────────────────────────────────────
        translated = self.augmenter.augment(raw, cancel_event)

        # ── Step 4: Assemble ────────────────────────────────────────
        records = [assemble_record(txn, file_name) for txn in translated]

        return PipelineReport(
            file_name=file_name,
            record_count=len(records),
            records=records,
            blocks_found=len(blocks),
            blocks_dropped=dropped,
            fallback_used=any(b.fallback for b in blocks),
            cancelled=len(translated) < len(raw),
            segmentation_mode=self.segmentation_mode,
            translation_provider=self.augmenter.provider_name,
            original_hash=doc_hash,
        )

    def run_and_store(
        self,
        text: str | bytes,
        file_name: str,
        store: InMemoryTransactionStore,
        cancel_event: threading.Event | None = None,
    ) -> tuple[PipelineReport, list[StoredTransaction]]:
        """Run the pipeline and hand every record to the storage collaborator."""
        report = self.run(text, file_name, cancel_event)
        stored = [store.insert(record) for record in report.records]
        logger.info("Inserted %d transaction(s) from %s", len(stored), file_name)
        return report, stored

    # ─── Extraction ──────────────────────────────────────────────────

    def _extract(self, blocks: list[Block]) -> list[RawTransaction]:
        results: list[RawTransaction] = []
        for block in blocks:
            if block.fallback:
                txn = extract_identity(block.text)
            else:
                txn = extract_transaction(block.text, self.party_resolver)
            if txn is not None:
                results.append(txn)
        return results
