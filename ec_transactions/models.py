"""
Pydantic models for encumbrance-certificate transactions.

Every extracted field is Optional: the source documents have no reliable
layout, so "not recognized" is a normal outcome and is represented as None.
None is never replaced with a placeholder downstream.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Strategy Names ─────────────────────────────────────────────────


class SegmentationMode(str, Enum):
    """How raw text is cut into per-document blocks."""

    WHOLE_BLOCK = "whole_block"
    LINE_SCAN = "line_scan"


class TranslationSource(str, Enum):
    """Where an English field value came from."""

    PROVIDER = "provider"
    TRANSLITERATION = "transliteration"


# ─── Extraction Models ──────────────────────────────────────────────


class RawTransaction(BaseModel):
    """What the regex recognizers pull out of one block, before translation."""

    model_config = ConfigDict(frozen=True)

    # Identity: together form the natural key "number/year"
    document_number: Optional[str] = None
    document_year: Optional[str] = None

    document_date: Optional[date] = None
    execution_date: Optional[date] = None
    presentation_date: Optional[date] = None

    nature_of_document: Optional[str] = None
    property_type: Optional[str] = None

    seller_name_tamil: Optional[str] = None
    buyer_name_tamil: Optional[str] = None

    house_number: Optional[str] = None
    survey_number: Optional[str] = None
    plot_number: Optional[str] = None
    property_extent: Optional[str] = None
    village: Optional[str] = None
    street: Optional[str] = None

    consideration_value: Optional[Decimal] = None
    market_value: Optional[Decimal] = None

    volume_number: Optional[str] = None
    page_number: Optional[str] = None
    boundary_details: Optional[str] = None
    schedule_remarks: Optional[str] = None
    document_remarks: Optional[str] = None
    previous_document_number: Optional[str] = None

    @property
    def document_key(self) -> str | None:
        if self.document_number is None or self.document_year is None:
            return None
        return f"{self.document_number}/{self.document_year}"


class TranslatedTransaction(RawTransaction):
    """RawTransaction with party and place names rendered in English."""

    seller_name: Optional[str] = None
    buyer_name: Optional[str] = None
    translation_sources: dict[str, TranslationSource] = Field(default_factory=dict)


# ─── Persistence Boundary ───────────────────────────────────────────


class TransactionRecord(BaseModel):
    """The shape handed to the storage collaborator."""

    model_config = ConfigDict(frozen=True)

    document_number: Optional[str] = None
    document_year: Optional[str] = None
    document_date: Optional[date] = None
    execution_date: Optional[date] = None
    presentation_date: Optional[date] = None
    nature_of_document: Optional[str] = None

    buyer_name: Optional[str] = None
    buyer_name_tamil: Optional[str] = None
    seller_name: Optional[str] = None
    seller_name_tamil: Optional[str] = None

    house_number: Optional[str] = None
    survey_number: Optional[str] = None
    plot_number: Optional[str] = None
    property_type: Optional[str] = None
    property_extent: Optional[str] = None
    village: Optional[str] = None
    street: Optional[str] = None

    consideration_value: Optional[str] = None  # DECIMAL(15,2) as text
    market_value: Optional[str] = None

    volume_number: Optional[str] = None
    page_number: Optional[str] = None
    boundary_details: Optional[str] = None
    schedule_remarks: Optional[str] = None
    document_remarks: Optional[str] = None
    previous_document_number: Optional[str] = None

    pdf_file_name: Optional[str] = None


class StoredTransaction(TransactionRecord):
    """A record after the storage collaborator assigned its identity."""

    id: int
    created_at: datetime
    updated_at: datetime


class SearchFilters(BaseModel):
    """Case-insensitive substring filters; unset filters are ignored."""

    buyer_name: Optional[str] = None
    seller_name: Optional[str] = None
    house_number: Optional[str] = None
    survey_number: Optional[str] = None
    document_number: Optional[str] = None


# ─── Pipeline Report ────────────────────────────────────────────────


class PipelineReport(BaseModel):
    """The final output of one pipeline run."""

    file_name: str
    record_count: int
    records: list[TransactionRecord] = Field(default_factory=list)
    blocks_found: int = 0
    blocks_dropped: int = 0
    fallback_used: bool = False
    cancelled: bool = False
    segmentation_mode: SegmentationMode = SegmentationMode.WHOLE_BLOCK
    translation_provider: str = "none"
    original_hash: str = ""  # SHA-256 of the input text for audit trail
