"""
Splits the extracted text of one upload into per-document blocks.

Two strategies recognize entry boundaries and they disagree on ambiguous
layouts. Neither is "the fixed one"; which documents each suits best is
still an open domain question, so both stay selectable:

  WholeBlockSegmenter (default)
      Cut at every newline that is immediately followed by "<digits>/<yyyy>".

  LineScanSegmenter
      Walk the lines with one open entry. A "<digits>/<yyyy>" line opens a
      new entry only if the previous line was blank or the line itself
      carries a classification keyword (Conveyance, கிரையம், ...). More
      tolerant of interleaved noise, but can merge entries on tight layouts.

If no surviving block carries a document reference, `segment_text` falls
back to one minimal block per unique document reference found anywhere in
the text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from .models import SegmentationMode
from .vocabulary import (
    DOCUMENT_NUMBER_RE,
    ENTRY_START_RE,
    has_classification_keyword,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_BLOCK_LENGTH = 80

_BOUNDARY_SPLIT_RE = re.compile(r"\n(?=[ \t]*\d+/\d{4}(?![\d/]))")


# ─── Data Structures ────────────────────────────────────────────────


@dataclass(frozen=True)
class Block:
    """Text believed to hold exactly one registration entry."""

    text: str
    fallback: bool = False  # True: identity-only block from the fallback scan


class Segmenter(Protocol):
    def split(self, text: str) -> list[Block]: ...


# ─── Strategies ──────────────────────────────────────────────────────


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


class WholeBlockSegmenter:
    """Every span between two document-reference line starts is one block."""

    mode = SegmentationMode.WHOLE_BLOCK

    def __init__(self, min_block_length: int = DEFAULT_MIN_BLOCK_LENGTH):
        self.min_block_length = min_block_length

    def split(self, text: str) -> list[Block]:
        pieces = (p.strip() for p in _BOUNDARY_SPLIT_RE.split(normalize_line_endings(text)))
        return [Block(p) for p in pieces if len(p) > self.min_block_length]


class LineScanSegmenter:
    """Sequential scan keeping one open entry at a time."""

    mode = SegmentationMode.LINE_SCAN

    def __init__(self, min_block_length: int = DEFAULT_MIN_BLOCK_LENGTH):
        self.min_block_length = min_block_length

    def split(self, text: str) -> list[Block]:
        entries: list[list[str]] = []
        current: list[str] | None = None
        previous_blank = True  # start of text counts as a blank line

        for raw_line in normalize_line_endings(text).split("\n"):
            line = raw_line.strip()
            if ENTRY_START_RE.match(line) and (
                previous_blank or has_classification_keyword(line)
            ):
                current = [line]
                entries.append(current)
            elif current is not None and line:
                current.append(line)
            # Lines before the first entry are header noise.
            previous_blank = not line

        blocks = ("\n".join(lines) for lines in entries)
        return [Block(b) for b in blocks if len(b) > self.min_block_length]


def build_segmenter(
    mode: SegmentationMode | str = SegmentationMode.WHOLE_BLOCK,
    min_block_length: int = DEFAULT_MIN_BLOCK_LENGTH,
) -> Segmenter:
    if SegmentationMode(mode) is SegmentationMode.LINE_SCAN:
        return LineScanSegmenter(min_block_length)
    return WholeBlockSegmenter(min_block_length)


# ─── Fallback ────────────────────────────────────────────────────────


def fallback_blocks(text: str) -> list[Block]:
    """One identity-only block per unique "number/year" found anywhere."""
    seen: set[str] = set()
    blocks: list[Block] = []
    for match in DOCUMENT_NUMBER_RE.finditer(text):
        key = f"{match.group(1)}/{match.group(2)}"
        if key not in seen:
            seen.add(key)
            blocks.append(Block(key, fallback=True))
    return blocks


def segment_text(text: str, segmenter: Segmenter | None = None) -> list[Block]:
    """Split text into blocks, degrading to the fallback scan.

    The fallback runs when no surviving block carries a document reference,
    for example when a long page header is the only block over the length
    threshold and the real entries are short.
    """
    segmenter = segmenter or WholeBlockSegmenter()
    blocks = segmenter.split(text)
    if any(DOCUMENT_NUMBER_RE.search(b.text) for b in blocks):
        logger.info("Segmented text into %d block(s)", len(blocks))
        return blocks

    blocks = fallback_blocks(text)
    if blocks:
        logger.warning(
            "No block with a document reference found; "
            "fallback scan produced %d identity-only block(s)",
            len(blocks),
        )
    return blocks
