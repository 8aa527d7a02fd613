#!/usr/bin/env python3
"""
EC Transactions — Entry Point
==============================

Runs the extraction pipeline on encumbrance-certificate text and prints the
resulting records.

Usage:
    python main.py                          # Built-in sample, transliteration only
    python main.py extracted_ec.txt         # Text already extracted from a PDF
    OPENAI_API_KEY=sk-... python main.py    # Provider translation of Tamil names
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ec_transactions.config import PipelineSettings
from ec_transactions.exceptions import TransactionPipelineError
from ec_transactions.models import PipelineReport, TransactionRecord
from ec_transactions.pipeline import TransactionPipeline

load_dotenv()


# ─── Sample Extracted Text — Noisy on Purpose ───────────────────────

SAMPLE_EC_TEXT = """\
ENCUMBRANCE CERTIFICATE
Sub Registrar Office : Thiruvennainallur    Page 1 of 2
Period searched: 01-Jan-2013 to 31-Dec-2013

200/2013 06-Feb-2013 Conveyance
Execution 04-Feb-2013
Executant: சுப்பிரமணியன்
Claimant: நித்யா
Consideration Value ரூ. 3,14,068/-
Market Value ரூ. 3,50,000/-
Survey No : 329/1   Plot No : 12
Property Extent : 111.48 ச.மீட்டர் House Site
Village : Thiruvennainallur
Vol : 1234  Page : 56

201/2013 10-Mar-2013 Conveyance
Executant: நித்யா
Claimant: ராமலிங்கம்
Amount ₹ 5,00,000
புல எண் : 330/2
Door No : 14/3  Street : Gandhi Street
"""


# ─── ANSI Color Constants ───────────────────────────────────────────

_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer ─────────────────────────────────────────────────


def _print_record(index: int, record: TransactionRecord) -> None:
    """Print the populated fields of one record."""
    print(f"  {_BOLD}#{index}  {record.document_number}/{record.document_year}{_RESET}")
    for name, value in record.model_dump(exclude={"document_number", "document_year"}).items():
        if value is not None:
            print(f"    {name:<26}{value}")
    print()


def print_report(report: PipelineReport) -> int:
    """Pretty-print the pipeline report.

    Returns:
        0 if at least one record was produced, 1 otherwise.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  EC TRANSACTION EXTRACTION REPORT{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  File:         {report.file_name}")
    print(f"  Audit Hash:   {_DIM}{report.original_hash[:16]}...{_RESET}")
    print(f"  Segmentation: {report.segmentation_mode.value}")
    print(f"  Translation:  {report.translation_provider}")
    print(f"  Blocks:       {report.blocks_found} found, {report.blocks_dropped} dropped")
    if report.fallback_used:
        print(f"  {_YELLOW}Fallback scan used — identity fields only{_RESET}")
    print(f"{'─' * _WIDTH}")

    for index, record in enumerate(report.records, start=1):
        _print_record(index, record)

    print(f"{'=' * _WIDTH}")
    color = _GREEN if report.record_count else _YELLOW
    print(f"  {color}{_BOLD}{report.record_count} transaction(s) extracted{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return 0 if report.record_count else 1


# ─── Main ────────────────────────────────────────────────────────────


def main():
    """Run the pipeline on a text file (or the sample) and print the report."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if len(sys.argv) > 1:
        path = Path(sys.argv[1])
        file_name, content = path.name, path.read_bytes()
    else:
        file_name, content = "sample_ec.txt", SAMPLE_EC_TEXT

    try:
        pipeline = TransactionPipeline(PipelineSettings.from_env())
        report = pipeline.run(content, file_name)
    except TransactionPipelineError as e:
        print(f"  [{e.code}] {e}", file=sys.stderr)
        sys.exit(2)

    sys.exit(print_report(report))


if __name__ == "__main__":
    main()
