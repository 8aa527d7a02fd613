"""
EC Transactions — FastAPI Server
=================================

RESTful API for turning extracted encumbrance-certificate text into
searchable transaction records.

Endpoints:
    POST   /transactions/upload        Process extracted text (JSON body)
    POST   /transactions/upload/file   Upload a .txt file of extracted text
    GET    /transactions               Search stored transactions
    GET    /transactions/{id}          Fetch one transaction
    DELETE /transactions               Remove all transactions (dev reset)
    GET    /health                     Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, UploadFile
from pydantic import BaseModel, Field

from ec_transactions import __version__
from ec_transactions.config import PipelineSettings
from ec_transactions.exceptions import MalformedInputError
from ec_transactions.models import PipelineReport, SearchFilters, StoredTransaction
from ec_transactions.pipeline import TransactionPipeline
from ec_transactions.store import InMemoryTransactionStore

load_dotenv()

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1_048_576
# How often a running upload checks whether its client is still connected.
DISCONNECT_POLL_SECONDS = 0.5


# ─── Application Lifespan (pre-warm pipeline) ───────────────────────

_pipeline: TransactionPipeline | None = None
_store: InMemoryTransactionStore | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline from the environment and open the store on startup."""
    global _pipeline, _store  # noqa: PLW0603
    _pipeline = TransactionPipeline(PipelineSettings.from_env())
    _store = InMemoryTransactionStore()
    yield
    _pipeline = None
    _store = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="EC Transactions API",
    description=(
        "Structured, partially-English records from Tamil Nadu encumbrance "
        "certificates. Regex extraction, provider translation of Tamil names "
        "with transliteration fallback, and case-insensitive search."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class UploadTextRequest(BaseModel):
    """Request body for the /transactions/upload endpoint."""

    file_name: str = Field(
        ..., min_length=1, max_length=255, description="Display name of the source PDF."
    )
    text: str = Field(
        ...,
        description="Plain text extracted from the PDF.",
        json_schema_extra={
            "example": (
                "200/2013 06-Feb-2013 Conveyance\n"
                "Executant: சுப்பிரமணியன்\n"
                "Claimant: நித்யா\n"
                "Consideration Value ரூ. 3,14,068/-\n"
                "Survey No : 329/1"
            )
        },
    )


class UploadResponse(BaseModel):
    """Report of one processed upload; record_count may be zero."""

    file_name: str
    record_count: int
    blocks_found: int
    blocks_dropped: int
    fallback_used: bool
    cancelled: bool = Field(description="Client went away; only finished records were stored")
    segmentation_mode: str
    translation_provider: str
    original_hash: str = Field(description="SHA-256 hash of the extracted text")
    transactions: list[StoredTransaction]


class HealthResponse(BaseModel):
    status: str
    version: str
    translation_provider: str
    transactions_stored: int


# ─── Helpers ─────────────────────────────────────────────────────────


def get_pipeline() -> TransactionPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def get_store() -> InMemoryTransactionStore:
    if _store is None:
        raise HTTPException(status_code=503, detail="Store not initialised")
    return _store


def _build_response(
    report: PipelineReport, stored: list[StoredTransaction]
) -> UploadResponse:
    return UploadResponse(
        file_name=report.file_name,
        record_count=report.record_count,
        blocks_found=report.blocks_found,
        blocks_dropped=report.blocks_dropped,
        fallback_used=report.fallback_used,
        cancelled=report.cancelled,
        segmentation_mode=report.segmentation_mode.value,
        translation_provider=report.translation_provider,
        original_hash=report.original_hash,
        transactions=stored,
    )


def _process(
    pipeline: TransactionPipeline,
    store: InMemoryTransactionStore,
    content: str | bytes,
    file_name: str,
    cancel_event: threading.Event | None = None,
) -> UploadResponse:
    try:
        report, stored = pipeline.run_and_store(content, file_name, store, cancel_event)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail={"code": e.code, "message": str(e)})
    return _build_response(report, stored)


async def _process_while_connected(
    request: Request,
    pipeline: TransactionPipeline,
    store: InMemoryTransactionStore,
    content: str | bytes,
    file_name: str,
) -> UploadResponse:
    """Run `_process` in a worker thread, cancelling it if the client leaves.

    Cancellation stops translation before the next record or batch; the
    records finished by then are still stored.
    """
    cancel_event = threading.Event()
    work = asyncio.ensure_future(
        asyncio.to_thread(_process, pipeline, store, content, file_name, cancel_event)
    )
    try:
        while True:
            done, _ = await asyncio.wait({work}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return work.result()
            if await request.is_disconnected():
                logger.warning("Client disconnected during upload of %s; cancelling", file_name)
                cancel_event.set()
                return await work
    except asyncio.CancelledError:
        cancel_event.set()
        raise


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/transactions/upload",
    summary="Extract transactions from extracted PDF text",
    tags=["Transactions"],
    responses={
        400: {"description": "Input is not text"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def upload_text(
    body: UploadTextRequest,
    request: Request,
    pipeline: TransactionPipeline = Depends(get_pipeline),
    store: InMemoryTransactionStore = Depends(get_store),
) -> UploadResponse:
    """Run the pipeline on extracted text and store every record produced.

    Provider calls are blocking, so the pipeline runs in a worker thread.
    """
    return await _process_while_connected(request, pipeline, store, body.text, body.file_name)


@app.post(
    "/transactions/upload/file",
    summary="Extract transactions from an uploaded text file",
    tags=["Transactions"],
    responses={
        400: {"description": "File is not UTF-8 text"},
        413: {"description": "File too large (max 5 MB)"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def upload_file(
    file: UploadFile,
    request: Request,
    pipeline: TransactionPipeline = Depends(get_pipeline),
    store: InMemoryTransactionStore = Depends(get_store),
) -> UploadResponse:
    """Upload a `.txt` file holding the text extracted from one EC PDF."""
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 5 MB)")

    # The declared size can be missing, so the read itself is capped too.
    content = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large (max 5 MB)")

    file_name = file.filename or "upload.txt"
    return await _process_while_connected(request, pipeline, store, content, file_name)


@app.get(
    "/transactions",
    summary="Search stored transactions",
    tags=["Transactions"],
)
def search_transactions(
    buyer_name: Optional[str] = None,
    seller_name: Optional[str] = None,
    house_number: Optional[str] = None,
    survey_number: Optional[str] = None,
    document_number: Optional[str] = None,
    store: InMemoryTransactionStore = Depends(get_store),
) -> list[StoredTransaction]:
    """Case-insensitive substring search; all given filters must match."""
    filters = SearchFilters(
        buyer_name=buyer_name,
        seller_name=seller_name,
        house_number=house_number,
        survey_number=survey_number,
        document_number=document_number,
    )
    return store.query(filters)


@app.get(
    "/transactions/{transaction_id}",
    summary="Fetch one transaction",
    tags=["Transactions"],
    responses={404: {"description": "No such transaction"}},
)
def get_transaction(
    transaction_id: int, store: InMemoryTransactionStore = Depends(get_store)
) -> StoredTransaction:
    record = store.get(transaction_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return record


@app.delete(
    "/transactions",
    summary="Delete all transactions",
    tags=["Transactions"],
    status_code=204,
)
def delete_transactions(store: InMemoryTransactionStore = Depends(get_store)) -> None:
    store.clear()


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check(
    pipeline: TransactionPipeline = Depends(get_pipeline),
    store: InMemoryTransactionStore = Depends(get_store),
) -> HealthResponse:
    """Returns service status and configuration info."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        translation_provider=pipeline.augmenter.provider_name,
        transactions_stored=len(store),
    )
