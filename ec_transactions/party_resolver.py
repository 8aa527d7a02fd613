"""
Seller / buyer name resolution from Tamil text.

The positional resolver is a heuristic, not a parse: it takes the Tamil runs
of a block in reading order and calls the first one the seller (executant)
and the second one the buyer (claimant). Stored data already follows that
convention, so any replacement resolver must be introduced as an explicit
behavior change.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Protocol

from .vocabulary import TAMIL_LABEL_TERMS

# A Tamil character followed by at least two more Tamil characters, spaces or
# dots. Runs stay on one line.
_TAMIL_RUN_RE = re.compile(r"[\u0B80-\u0BFF][\u0B80-\u0BFF \t.]{2,}")
_WORD_SPLIT_RE = re.compile(r"[\s.]+")

PartyNames = tuple[Optional[str], Optional[str]]


class PartyNameResolver(Protocol):
    def resolve(self, block: str) -> PartyNames: ...


class PositionalPartyResolver:
    """First distinct Tamil run = seller, second = buyer."""

    def __init__(self, ignore_terms: Iterable[str] = TAMIL_LABEL_TERMS, min_length: int = 3):
        self.ignore_terms = frozenset(ignore_terms)
        self.min_length = min_length

    def candidates(self, block: str) -> list[str]:
        """All distinct Tamil runs longer than min_length, in order of appearance."""
        seen: dict[str, None] = {}
        for match in _TAMIL_RUN_RE.finditer(block):
            run = match.group(0)
            name = re.sub(r"\s+", " ", run.replace(".", "")).strip()
            if len(name) <= self.min_length or self._is_label(run):
                continue
            seen.setdefault(name, None)
        return list(seen)

    def resolve(self, block: str) -> PartyNames:
        names = self.candidates(block)
        seller = names[0] if names else None
        buyer = names[1] if len(names) > 1 else None
        return seller, buyer

    def _is_label(self, run: str) -> bool:
        """True if a label term appears as whole words of the run.

        Dots separate words here ("ச.மீட்டர்"). Substrings do not count:
        "பட்டாபிராமன்" is a name, not the label "பட்டா".
        """
        words = " " + " ".join(_WORD_SPLIT_RE.split(run.strip(" \t."))) + " "
        return any(f" {term} " in words for term in self.ignore_terms)
