"""
EC Transactions — structured records from Tamil Nadu encumbrance certificates.

Architecture: Segment → Extract (regex) → Translate (provider / transliteration) → Assemble
Philosophy:  Best effort, never invented. An absent field beats a guessed one.
"""

__version__ = "1.0.0"
