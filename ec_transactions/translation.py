"""
Tamil → English translation providers.

Every provider exposes one capability: `translate(text, context) -> str`.
Which backend answers is deployment configuration:

  - OpenAIChatProvider: chat-completion model prompted as a translator
  - GoogleTranslateProvider: Cloud Translation v2 REST API

Providers never fall back on their own. Any failure (quota, network,
timeout, empty answer) is raised as TranslationError so the augmenter can
decide what to do with that single field.
"""

from __future__ import annotations

import logging
from typing import Protocol

import openai
import requests
from openai import OpenAI

from .config import PipelineSettings
from .exceptions import TranslationError

logger = logging.getLogger(__name__)


class TranslationProvider(Protocol):
    name: str

    def translate(self, text: str, context: str = "") -> str: ...


# ─── OpenAI Chat Completions ─────────────────────────────────────────

SYSTEM_PROMPT = """\
You are a Tamil to English translator specializing in Indian real estate documents.
Translate the given Tamil text to English.
For names, use transliteration that preserves the original pronunciation.
For places and common terms, use standard English equivalents.
Context: this is a {context} from a Tamil Nadu property transaction document.
Return ONLY the translated text, nothing else.
"""


class OpenAIChatProvider:
    """Translation through a general-purpose chat model."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = 30.0,
        client: OpenAI | None = None,
    ):
        self.model = model
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def translate(self, text: str, context: str = "") -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": SYSTEM_PROMPT.format(context=context or "text fragment"),
                    },
                    {"role": "user", "content": text},
                ],
                temperature=0.3,
                max_tokens=500,
            )
        except openai.OpenAIError as e:
            raise TranslationError(
                f"OpenAI translation request failed: {e}",
                details={"provider": self.name, "error_type": type(e).__name__},
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise TranslationError(
                "OpenAI returned an empty translation", details={"provider": self.name}
            )
        return content.strip()


# ─── Google Cloud Translation (v2 REST) ──────────────────────────────

GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"


class GoogleTranslateProvider:
    """Translation through the managed Google Cloud Translation service."""

    name = "google"

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def translate(self, text: str, context: str = "") -> str:
        try:
            response = self.session.post(
                GOOGLE_TRANSLATE_URL,
                params={"key": self.api_key},
                data={"q": text, "source": "ta", "target": "en", "format": "text"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            translated = response.json()["data"]["translations"][0]["translatedText"]
        except requests.RequestException as e:
            raise TranslationError(
                f"Google Translate request failed: {e}",
                details={"provider": self.name, "error_type": type(e).__name__},
            ) from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TranslationError(
                f"Unexpected Google Translate response: {e}",
                details={"provider": self.name},
            ) from e

        if not isinstance(translated, str) or not translated.strip():
            raise TranslationError(
                "Google Translate returned an empty translation", details={"provider": self.name}
            )
        return translated.strip()


# ─── Factory ─────────────────────────────────────────────────────────


def build_provider(settings: PipelineSettings) -> TranslationProvider | None:
    """Pick the provider named in settings.

    "auto" prefers OpenAI, then Google, depending on which key is set.
    Returns None when no usable provider is configured; the augmenter then
    applies its fallback directly.
    """
    choice = settings.translation_provider
    if choice == "none":
        return None

    if choice in ("auto", "openai") and settings.openai_api_key:
        return OpenAIChatProvider(
            settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.provider_timeout_seconds,
        )
    if choice in ("auto", "google") and settings.google_api_key:
        return GoogleTranslateProvider(
            settings.google_api_key, timeout=settings.provider_timeout_seconds
        )

    if choice == "auto":
        logger.info("No translation API key set — using transliteration fallback only")
    else:
        logger.warning("Translation provider %r selected but its API key is not set", choice)
    return None
