"""
Static recognition vocabulary shared by the segmenter, extractor and
party-name resolver.

Everything here is read-only data. Tables are ordered tuples where
priority matters (first match wins), frozensets where it doesn't.
"""

from __future__ import annotations

import re

# ─── Document Reference ──────────────────────────────────────────────
# "200/2013" but not the "02/2013" tail of a "06/02/2013" date.

DOCUMENT_NUMBER_RE = re.compile(r"(?<![\d/])(\d+)/(\d{4})(?![\d/])")

# Same token anchored at the start of a (stripped) line.
ENTRY_START_RE = re.compile(r"^\d+/\d{4}(?![\d/])")

# ─── Tamil Script ────────────────────────────────────────────────────

TAMIL_CHAR_RE = re.compile(r"[\u0B80-\u0BFF]")


def contains_tamil(text: str | None) -> bool:
    """True if the text holds at least one Tamil-script code point."""
    return bool(text) and TAMIL_CHAR_RE.search(text) is not None


# ─── Classification Keywords ─────────────────────────────────────────
# (keyword as it appears in the document, canonical English value)

NATURE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("Conveyance", "Conveyance"),
    ("கிரையம்", "Conveyance"),
    ("Sale Deed", "Conveyance"),
    ("Settlement", "Settlement"),
    ("செட்டில்மெண்ட்", "Settlement"),
    ("Mortgage", "Mortgage"),
    ("அடமானம்", "Mortgage"),
    ("Partition", "Partition"),
    ("பாகப்பிரிவினை", "Partition"),
    ("Release", "Release"),
    ("விடுதலை", "Release"),
    ("Gift", "Gift"),
    ("தானம்", "Gift"),
)

PROPERTY_TYPE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("House Site", "House Site"),
    ("வீட்டுமனை", "House Site"),
    ("Vacant Site", "Vacant Site"),
    ("காலிமனை", "Vacant Site"),
    ("Agricultural Land", "Agricultural Land"),
    ("விவசாய நிலம்", "Agricultural Land"),
)

# Literal village names recognized verbatim when no label is present.
KNOWN_VILLAGES: tuple[tuple[str, str], ...] = (
    ("Thiruvennainallur", "Thiruvennainallur"),
    ("திருவெண்ணைநல்லூர்", "Thiruvennainallur"),
)

# ─── Tamil Label Vocabulary ──────────────────────────────────────────
# Tamil runs containing any of these as whole words are labels, units or
# place names, not party names.

TAMIL_LABEL_TERMS: frozenset[str] = frozenset(
    {
        "எண்",  # "number", as in புல எண் / மனை எண் / கதவு எண்
        "கிராமம்",
        "தெரு",
        "எல்லை",
        "பட்டா",
        "மீட்டர்",
        "சதுர",
        "ஏக்கர்",
        "சென்ட்",
        "ஹெக்டேர்",
        "மதிப்பு",
        "ரூபாய்",
    }
    | {keyword for keyword, _ in NATURE_KEYWORDS if contains_tamil(keyword)}
    | {keyword for keyword, _ in PROPERTY_TYPE_KEYWORDS if contains_tamil(keyword)}
    | {keyword for keyword, _ in KNOWN_VILLAGES if contains_tamil(keyword)}
)


def has_classification_keyword(line: str) -> bool:
    """True if the line names a document nature (Conveyance, கிரையம், ...)."""
    return any(keyword in line for keyword, _ in NATURE_KEYWORDS)
