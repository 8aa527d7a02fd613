"""Pytest configuration — ensures the project root is importable."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))


@pytest.fixture(autouse=True)
def _no_provider_calls(monkeypatch):
    """Keep real translation keys out of the environment so no test hits the network."""
    for var in ("OPENAI_API_KEY", "GOOGLE_TRANSLATE_API_KEY", "EC_TRANSLATION_PROVIDER"):
        monkeypatch.delenv(var, raising=False)
    yield
