"""
Deterministic regex-based field extraction for one document block.

Every recognizer is independent and conservative: it returns None rather
than a guess. The block layouts are not reliable, so a miss is normal and
is never replaced with a default.

All functions are pure (no I/O, no state), so extracting the same block
twice gives the same RawTransaction.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from .models import RawTransaction
from .party_resolver import PartyNameResolver, PositionalPartyResolver
from .vocabulary import (
    DOCUMENT_NUMBER_RE,
    KNOWN_VILLAGES,
    NATURE_KEYWORDS,
    PROPERTY_TYPE_KEYWORDS,
)

_DEFAULT_RESOLVER = PositionalPartyResolver()

_MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_LAKH = Decimal(100_000)

# ─── Patterns ────────────────────────────────────────────────────────

# "06-Feb-2013" or "06/02/2013" (day first)
_DATE_RE = re.compile(
    r"\b(\d{1,2})-([A-Za-z]{3})-(\d{4})\b|(?<![\d/])(\d{1,2})/(\d{1,2})/(\d{4})(?![\d/])"
)

# "ரூ. 3,14,068/-", "₹ 5,00,000", "Rs. 2500" or "3.14 Lakhs"
_AMOUNT_TOKEN_RE = re.compile(
    r"(?P<symbol>ரூ\.?|₹|Rs\.)\s*(?P<amount>\d[\d,]*(?:\.\d+)?)"
    r"|(?P<lakhs>\d+(?:\.\d+)?)\s*(?i:lakhs?)(?![A-Za-z])"
)
_CONSIDERATION_LABEL_RE = re.compile(r"(?i:Consideration\s+Value)")
_MARKET_LABEL_RE = re.compile(r"(?i:Market\s+Value)")

# Optional label tail ("./Sub Division :") followed by same-line spacing.
_LABEL_TAIL = r"\.?(?:[^:\n\d]{0,30}:)?[^\S\n]*"
_SURVEY_VALUE = r"(\d+[A-Z]?(?:/\d+[A-Z]?)*(?:[^\S\n]*,[^\S\n]*\d+[A-Z]?(?:/\d+[A-Z]?)*)*)"

_SURVEY_RES = (
    re.compile(rf"(?i:Survey[^\S\n]*No){_LABEL_TAIL}{_SURVEY_VALUE}"),
    re.compile(rf"(?:புல|சர்வே)[^\S\n]*எண்{_LABEL_TAIL}{_SURVEY_VALUE}"),
)
_PLOT_RES = (
    re.compile(rf"\b(?i:Plot|Lot)(?:[^\S\n]*(?i:No))?{_LABEL_TAIL}(\d+[A-Z]?)"),
    re.compile(rf"(?:மனை|மைன)[^\S\n]*எண்{_LABEL_TAIL}(\d+[A-Z]?)"),
)
_HOUSE_RES = (
    re.compile(rf"\b(?i:Door|House)[^\S\n]*(?i:No){_LABEL_TAIL}(\d+[A-Za-z]?(?:[/-]\d+[A-Za-z]?)*)"),
    re.compile(rf"கதவு[^\S\n]*எண்{_LABEL_TAIL}(\d+[A-Za-z]?(?:[/-]\d+[A-Za-z]?)*)"),
)
_VOLUME_RE = re.compile(r"\b(?i:Vol(?:ume)?)\.?(?:[^\S\n]*(?i:No))?\.?[^\S\n]*[:\-]?[^\S\n]*(\d+)")
# Colon required: "Page 3 of 12" is a page-break artifact, not a record detail.
_PAGE_RE = re.compile(r"\b(?i:Page)(?:[^\S\n]*(?i:No))?\.?[^\S\n]*:[^\S\n]*(\d+)")
_PREVIOUS_DOC_RE = re.compile(
    rf"(?i:Prev(?:ious)?\.?[^\S\n]*Doc(?:ument)?\.?[^\S\n]*No){_LABEL_TAIL}(\d+/\d{{4}})"
)

_AREA_UNIT = (
    r"(?:(?i:Sq\.?[^\S\n]*(?:Ft|Feet|Mtrs?|Metres?|Meters?|M)\b\.?"
    r"|Acres?\b|Hectares?\b|Cents?\b)"
    r"|ச\.?[^\S\n]*மீ(?:ட்டர்)?|சதுர[^\S\n]*(?:அடி|மீட்டர்)|ஏக்கர்|சென்ட்|ஹெக்டேர்)"
)
_EXTENT_RE = re.compile(rf"(?<![\d.])\d+(?:\.\d+)?[^\S\n]*{_AREA_UNIT}")

_PLACE_VALUE = r"([A-Za-z\u0B80-\u0BFF][A-Za-z\u0B80-\u0BFF .]*)"
_VILLAGE_RES = (
    re.compile(rf"\b(?i:Village)(?:[^\S\n]*(?i:Name))?[^\S\n]*[:\-][^\S\n]*{_PLACE_VALUE}"),
    re.compile(rf"கிராமம்[^\S\n]*[:\-][^\S\n]*{_PLACE_VALUE}"),
)
_STREET_RES = (
    re.compile(rf"\b(?i:Street)(?:[^\S\n]*(?i:Name))?[^\S\n]*[:\-][^\S\n]*{_PLACE_VALUE}"),
    re.compile(rf"தெரு[^\S\n]*[:\-][^\S\n]*{_PLACE_VALUE}"),
)
# A free-text value ends where the next "Label :" on the same line begins.
_NEXT_LABEL_RE = re.compile(
    r"\s+(?=(?i:Survey|Plot|Lot|Street|Door|House|Village|Taluk|District|Extent|Ward|Block)\b[^:\n]{0,20}:)"
)
_PLACE_CHARS_RE = re.compile(r"[A-Za-z\u0B80-\u0BFF .]*")

_BOUNDARY_LINE_RE = re.compile(r"^.*(?:எல்லை|(?i:Boundar(?:y|ies))).*$", re.MULTILINE)
_SCHEDULE_REMARKS_RE = re.compile(r"(?i:Schedule[^\S\n]*Remarks)[^\S\n]*[:\-]?[^\S\n]*(\S.*)$", re.MULTILINE)
_PATTA_LINE_RE = re.compile(r"^.*பட்டா.*$", re.MULTILINE)
_DOCUMENT_REMARKS_RE = re.compile(r"(?i:Document[^\S\n]*Remarks)[^\S\n]*[:\-]?[^\S\n]*(\S.*)$", re.MULTILINE)


# ─── Public API ──────────────────────────────────────────────────────


def extract_transaction(
    block: str, resolver: PartyNameResolver | None = None
) -> RawTransaction | None:
    """Extract every recognizable field from one document block.

    Args:
        block: Text of a single registration entry.
        resolver: Seller/buyer strategy; positional by default.

    Returns:
        RawTransaction, or None if the block carries no "number/year"
        reference (such blocks are dropped, not emitted empty).
    """
    doc_match = DOCUMENT_NUMBER_RE.search(block)
    if doc_match is None:
        return None

    dates = extract_dates(block)
    consideration, market = extract_amounts(block)
    seller, buyer = (resolver or _DEFAULT_RESOLVER).resolve(block)

    return RawTransaction(
        document_number=doc_match.group(1),
        document_year=doc_match.group(2),
        document_date=dates[0] if len(dates) > 0 else None,
        execution_date=dates[1] if len(dates) > 1 else None,
        presentation_date=dates[2] if len(dates) > 2 else None,
        nature_of_document=_first_keyword(block, NATURE_KEYWORDS),
        property_type=_first_keyword(block, PROPERTY_TYPE_KEYWORDS),
        seller_name_tamil=seller,
        buyer_name_tamil=buyer,
        house_number=_first_group(block, _HOUSE_RES),
        survey_number=_first_group(block, _SURVEY_RES),
        plot_number=_first_group(block, _PLOT_RES),
        property_extent=extract_property_extent(block),
        village=extract_village(block),
        street=_extract_place(block, _STREET_RES),
        consideration_value=consideration,
        market_value=market,
        volume_number=_first_group(block, (_VOLUME_RE,)),
        page_number=_first_group(block, (_PAGE_RE,)),
        boundary_details=_first_line(block, _BOUNDARY_LINE_RE),
        schedule_remarks=_first_group(block, (_SCHEDULE_REMARKS_RE,))
        or _first_line(block, _PATTA_LINE_RE),
        document_remarks=_first_group(block, (_DOCUMENT_REMARKS_RE,)),
        previous_document_number=_first_group(block, (_PREVIOUS_DOC_RE,)),
    )


def extract_identity(block: str) -> RawTransaction | None:
    """Identity-only record, used for blocks produced by the fallback scan."""
    doc_match = DOCUMENT_NUMBER_RE.search(block)
    if doc_match is None:
        return None
    return RawTransaction(document_number=doc_match.group(1), document_year=doc_match.group(2))


# ─── Individual Field Extractors ─────────────────────────────────────


def extract_dates(block: str) -> list[date]:
    """All calendar-valid date tokens, in order of appearance.

    Positional only: nothing here knows which date is which. Tokens that are
    not real dates (31-Feb-2013) are skipped rather than guessed.
    """
    dates: list[date] = []
    for match in _DATE_RE.finditer(block):
        parsed = _parse_date_match(match)
        if parsed is not None:
            dates.append(parsed)
    return dates


def extract_amounts(block: str) -> tuple[Decimal | None, Decimal | None]:
    """Return (consideration_value, market_value).

    Consideration is the first amount after a "Consideration Value" label,
    else the first currency / Lakhs amount not claimed by a "Market Value"
    label. Market value is the first amount after a "Market Value" label,
    else the next amount after the consideration one. That order
    convention comes from the sample documents and has not been validated
    further.
    """
    tokens = list(_AMOUNT_TOKEN_RE.finditer(block))
    if not tokens:
        return None, None

    market_label = _MARKET_LABEL_RE.search(block)
    market_labelled = None
    if market_label:
        market_labelled = next((t for t in tokens if t.start() >= market_label.end()), None)

    consideration_token = None
    label = _CONSIDERATION_LABEL_RE.search(block)
    if label:
        consideration_token = next((t for t in tokens if t.start() >= label.end()), None)
    if consideration_token is None:
        # Never the amount that a "Market Value" label points at.
        consideration_token = next((t for t in tokens if t is not market_labelled), None)

    market_token = None
    if market_label:
        market_token = next(
            (
                t
                for t in tokens
                if t.start() >= market_label.end() and t is not consideration_token
            ),
            None,
        )
    elif consideration_token is not None:
        market_token = next((t for t in tokens if t.start() > consideration_token.start()), None)

    return _token_amount(consideration_token), _token_amount(market_token)


def parse_amount(raw: str) -> Decimal | None:
    """'3,14,068' → Decimal('314068'). Zero, negative or garbage → None."""
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def extract_property_extent(block: str) -> str | None:
    match = _EXTENT_RE.search(block)
    return re.sub(r"\s+", " ", match.group(0)).strip() if match else None


def extract_village(block: str) -> str | None:
    """Labeled village name, else a known village name appearing verbatim."""
    labeled = _extract_place(block, _VILLAGE_RES)
    if labeled:
        return labeled
    return _first_keyword(block, KNOWN_VILLAGES)


# ─── Internal Helpers ────────────────────────────────────────────────


def _parse_date_match(match: re.Match[str]) -> date | None:
    if match.group(1):
        day, month, year = match.group(1), _MONTHS.get(match.group(2).lower()), match.group(3)
    else:
        day, month, year = match.group(4), int(match.group(5)), match.group(6)
    if month is None:
        return None
    try:
        return date(int(year), month, int(day))
    except ValueError:
        return None


def _token_amount(token: re.Match[str] | None) -> Decimal | None:
    if token is None:
        return None
    if token.group("lakhs"):
        value = parse_amount(token.group("lakhs"))
        return value * _LAKH if value is not None else None
    return parse_amount(token.group("amount"))


def _first_keyword(block: str, table: tuple[tuple[str, str], ...]) -> str | None:
    for keyword, canonical in table:
        if keyword in block:
            return canonical
    return None


def _first_group(block: str, patterns: tuple[re.Pattern[str], ...]) -> str | None:
    for pattern in patterns:
        match = pattern.search(block)
        if match:
            value = re.sub(r"\s+", " ", match.group(1)).strip(" ,")
            if value:
                return value
    return None


def _first_line(block: str, pattern: re.Pattern[str]) -> str | None:
    match = pattern.search(block)
    if match is None:
        return None
    return re.sub(r"\s+", " ", match.group(0)).strip() or None


def _extract_place(block: str, patterns: tuple[re.Pattern[str], ...]) -> str | None:
    """Free-text place name, cut at a column gap or at the next label."""
    for pattern in patterns:
        match = pattern.search(block)
        if match is None:
            continue
        line = block[match.start(1) :].split("\n", 1)[0]
        line = _NEXT_LABEL_RE.split(line, maxsplit=1)[0]
        line = re.split(r"\s{2,}", line)[0]
        value = _PLACE_CHARS_RE.match(line).group(0).strip(" .")
        if value:
            return value
    return None
