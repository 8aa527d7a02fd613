"""
Tamil → Latin transliteration, used when the translation provider fails.

This produces a romanized APPROXIMATION ("நித்யா" → "nithyaa"), never a
translation. Callers must treat it as a best-effort substitute only.

Algorithm (character by character):
    consonant          → its Latin form plus the inherent "a"
    consonant + sign   → the sign's vowel replaces the inherent "a"
    consonant + pulli  → the bare consonant (no vowel)
    independent vowel  → its Latin form
    Tamil digit        → ASCII digit
    anything non-Tamil → kept as is
    unknown Tamil      → dropped
Finally whitespace is collapsed.

The tables are module-level read-only mappings, safe to share between
concurrent pipeline runs.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

from .vocabulary import TAMIL_CHAR_RE

# ─── Lookup Tables ───────────────────────────────────────────────────

VOWELS: Mapping[str, str] = MappingProxyType(
    {
        "அ": "a",
        "ஆ": "aa",
        "இ": "i",
        "ஈ": "ee",
        "உ": "u",
        "ஊ": "oo",
        "எ": "e",
        "ஏ": "ae",
        "ஐ": "ai",
        "ஒ": "o",
        "ஓ": "oo",
        "ஔ": "au",
        "ஃ": "h",
    }
)

CONSONANTS: Mapping[str, str] = MappingProxyType(
    {
        "க": "k",
        "ங": "ng",
        "ச": "s",
        "ஞ": "ny",
        "ட": "t",
        "ண": "n",
        "த": "th",
        "ந": "n",
        "ப": "p",
        "ம": "m",
        "ய": "y",
        "ர": "r",
        "ல": "l",
        "வ": "v",
        "ழ": "zh",
        "ள": "l",
        "ற": "r",
        "ன": "n",
        "ஜ": "j",
        "ஷ": "sh",
        "ஸ": "s",
        "ஹ": "h",
    }
)

VOWEL_SIGNS: Mapping[str, str] = MappingProxyType(
    {
        "ா": "aa",
        "ி": "i",
        "ீ": "ee",
        "ு": "u",
        "ூ": "oo",
        "ெ": "e",
        "ே": "ae",
        "ை": "ai",
        "ொ": "o",
        "ோ": "oo",
        "ௌ": "au",
    }
)

PULLI = "்"  # virama: kills the inherent vowel

DIGITS: Mapping[str, str] = MappingProxyType(
    {chr(0x0BE6 + n): str(n) for n in range(10)}
)

_INHERENT_VOWEL = "a"


# ─── Main Converter ─────────────────────────────────────────────────


def transliterate(text: str) -> str:
    """Romanize Tamil text. Returns "" when nothing usable remains.

    Args:
        text: e.g. "நித்யா"

    Returns:
        "nithyaa"
    """
    out: list[str] = []
    chars = list(text)
    i = 0

    while i < len(chars):
        char = chars[i]
        following = chars[i + 1] if i + 1 < len(chars) else ""

        if char in CONSONANTS:
            base = CONSONANTS[char]
            if following == PULLI:
                out.append(base)
                i += 2
                continue
            if following in VOWEL_SIGNS:
                out.append(base + VOWEL_SIGNS[following])
                i += 2
                continue
            out.append(base + _INHERENT_VOWEL)
        elif char in VOWELS:
            out.append(VOWELS[char])
        elif char in DIGITS:
            out.append(DIGITS[char])
        elif not TAMIL_CHAR_RE.match(char):
            out.append(char)
        # Stray signs and unmapped Tamil characters are dropped.
        i += 1

    return re.sub(r"\s+", " ", "".join(out)).strip()
