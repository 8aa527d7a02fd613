"""
Test suite for translation providers, the augmenter and settings.

Providers are faked or mocked — no network, no API keys.

Run: pytest tests/ -v
"""

from __future__ import annotations

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock

import openai
import pytest
import requests
from pydantic import ValidationError

from ec_transactions.augmenter import TranslationAugmenter
from ec_transactions.config import PipelineSettings
from ec_transactions.exceptions import ConfigurationError, TranslationError
from ec_transactions.models import RawTransaction, SegmentationMode, TranslationSource
from ec_transactions.translation import (
    GOOGLE_TRANSLATE_URL,
    GoogleTranslateProvider,
    OpenAIChatProvider,
    build_provider,
)
from ec_transactions.transliteration import transliterate


# ─── Fakes ───────────────────────────────────────────────────────────


class FakeProvider:
    """Answers from a fixed table; records every call."""

    name = "fake"

    def __init__(self, answers: dict[str, str] | None = None, fail_on: set[str] | None = None):
        self.answers = answers or {}
        self.fail_on = fail_on or set()
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def translate(self, text: str, context: str = "") -> str:
        with self._lock:
            self.calls.append((text, context))
        if text in self.fail_on:
            raise TranslationError("quota exceeded")
        return self.answers.get(text, f"EN:{text}")


class FailingProvider:
    name = "failing"

    def __init__(self, error: Exception | None = None):
        self.error = error or TranslationError("service unavailable")

    def translate(self, text: str, context: str = "") -> str:
        raise self.error


class EmptyProvider:
    name = "empty"

    def translate(self, text: str, context: str = "") -> str:
        return "   "


def _raw(number: str = "200", **fields) -> RawTransaction:
    return RawTransaction(document_number=number, document_year="2013", **fields)


def _augmenter(provider, sleeps: list | None = None, **settings) -> TranslationAugmenter:
    sink = sleeps if sleeps is not None else []
    return TranslationAugmenter(provider, PipelineSettings(**settings), sleep=sink.append)


# ═══════════════════════════════════════════════════════════════════════
# AUGMENTER — FIELD TRANSLATION
# ═══════════════════════════════════════════════════════════════════════


class TestTranslateOne:
    def test_provider_translation(self):
        provider = FakeProvider({"நித்யா": "Nithya"})
        txn = _augmenter(provider).translate_one(_raw(buyer_name_tamil="நித்யா"))
        assert txn.buyer_name == "Nithya"
        assert txn.buyer_name_tamil == "நித்யா"
        assert txn.translation_sources == {"buyer_name": TranslationSource.PROVIDER}

    def test_context_is_passed_to_provider(self):
        provider = FakeProvider()
        _augmenter(provider).translate_one(_raw(seller_name_tamil="சுப்பிரமணியன்"))
        assert provider.calls == [("சுப்பிரமணியன்", "seller name")]

    def test_in_place_fields(self):
        provider = FakeProvider({"திருவெண்ணைநல்லூர்": "Thiruvennainallur"})
        txn = _augmenter(provider).translate_one(_raw(village="திருவெண்ணைநல்லூர்"))
        assert txn.village == "Thiruvennainallur"
        assert txn.translation_sources["village"] is TranslationSource.PROVIDER

    def test_failure_falls_back_to_transliteration(self):
        txn = _augmenter(FailingProvider()).translate_one(
            _raw(seller_name_tamil="சுப்பிரமணியன்", buyer_name_tamil="நித்யா")
        )
        assert txn.seller_name == transliterate("சுப்பிரமணியன்")
        assert txn.buyer_name == "nithyaa"
        assert set(txn.translation_sources.values()) == {TranslationSource.TRANSLITERATION}

    def test_unexpected_exception_also_falls_back(self):
        provider = FailingProvider(RuntimeError("connection reset"))
        txn = _augmenter(provider).translate_one(_raw(buyer_name_tamil="நித்யா"))
        assert txn.buyer_name == "nithyaa"

    def test_omit_fallback_leaves_field_unset(self):
        txn = _augmenter(FailingProvider(), translation_fallback="omit").translate_one(
            _raw(buyer_name_tamil="நித்யா")
        )
        assert txn.buyer_name is None
        assert txn.buyer_name_tamil == "நித்யா"
        assert txn.translation_sources == {}

    def test_empty_provider_answer_falls_back(self):
        txn = _augmenter(EmptyProvider()).translate_one(_raw(buyer_name_tamil="நித்யா"))
        assert txn.buyer_name == "nithyaa"
        assert txn.translation_sources["buyer_name"] is TranslationSource.TRANSLITERATION

    def test_one_failed_field_does_not_affect_others(self):
        provider = FakeProvider({"நித்யா": "Nithya"}, fail_on={"சுப்பிரமணியன்"})
        txn = _augmenter(provider).translate_one(
            _raw(seller_name_tamil="சுப்பிரமணியன்", buyer_name_tamil="நித்யா")
        )
        assert txn.seller_name == "suppiramaniyan"
        assert txn.buyer_name == "Nithya"

    def test_non_tamil_text_is_not_sent(self):
        provider = FakeProvider()
        txn = _augmenter(provider).translate_one(_raw(village="Thiruvennainallur"))
        assert provider.calls == []
        assert txn.village == "Thiruvennainallur"

    def test_absent_fields_stay_absent(self):
        provider = FakeProvider()
        txn = _augmenter(provider).translate_one(_raw())
        assert provider.calls == []
        assert txn.seller_name is None
        assert txn.buyer_name is None
        assert txn.village is None

    def test_no_provider_uses_fallback(self):
        txn = _augmenter(None).translate_one(_raw(buyer_name_tamil="நித்யா"))
        assert txn.buyer_name == "nithyaa"

    def test_other_fields_copied_through(self):
        raw = _raw(survey_number="329/1", buyer_name_tamil="நித்யா")
        txn = _augmenter(FakeProvider()).translate_one(raw)
        assert txn.survey_number == "329/1"
        assert txn.document_key == "200/2013"

    def test_result_is_immutable(self):
        txn = _augmenter(None).translate_one(_raw(buyer_name_tamil="நித்யா"))
        with pytest.raises(ValidationError):
            txn.buyer_name = "changed"


# ═══════════════════════════════════════════════════════════════════════
# AUGMENTER — SCHEDULING
# ═══════════════════════════════════════════════════════════════════════


class TestAugmentScheduling:
    def test_sequential_preserves_order_and_rate_limits(self):
        sleeps: list[float] = []
        raws = [_raw(str(n), buyer_name_tamil="நித்யா") for n in range(3)]
        result = _augmenter(FakeProvider(), sleeps).augment(raws)
        assert [t.document_number for t in result] == ["0", "1", "2"]
        assert sleeps == [0.1, 0.1]

    def test_batch_preserves_order(self):
        sleeps: list[float] = []
        raws = [_raw(str(n), buyer_name_tamil="நித்யா") for n in range(5)]
        augmenter = _augmenter(FakeProvider(), sleeps, translation_mode="batch", batch_size=2)
        result = augmenter.augment(raws)
        assert [t.document_number for t in result] == ["0", "1", "2", "3", "4"]
        # delay after the first two batches, not after the last
        assert sleeps == [0.5, 0.5]

    def test_explicit_delay(self):
        sleeps: list[float] = []
        raws = [_raw(str(n)) for n in range(2)]
        _augmenter(FakeProvider(), sleeps, delay_seconds=0.0).augment(raws)
        assert sleeps == [0.0]

    def test_no_delay_without_provider(self):
        sleeps: list[float] = []
        _augmenter(None, sleeps).augment([_raw("1"), _raw("2")])
        assert sleeps == []

    def test_empty_input(self):
        assert _augmenter(FakeProvider()).augment([]) == []

    def test_cancel_before_start(self):
        cancel = threading.Event()
        cancel.set()
        result = _augmenter(FakeProvider()).augment([_raw("1"), _raw("2")], cancel)
        assert result == []

    def test_cancel_mid_run_keeps_finished_records(self):
        cancel = threading.Event()

        class CancellingProvider(FakeProvider):
            def translate(self, text, context=""):
                cancel.set()
                return super().translate(text, context)

        raws = [
            _raw("1", seller_name_tamil="சுப்பிரமணியன்", buyer_name_tamil="நித்யா"),
            _raw("2", buyer_name_tamil="ராமன்"),
        ]
        result = _augmenter(CancellingProvider()).augment(raws, cancel)
        assert len(result) == 1
        # The record in flight is finished completely
        assert result[0].seller_name == "EN:சுப்பிரமணியன்"
        assert result[0].buyer_name == "EN:நித்யா"

    def test_batch_cancel_between_batches(self):
        cancel = threading.Event()
        raws = [_raw(str(n)) for n in range(4)]
        augmenter = TranslationAugmenter(
            FakeProvider(),
            PipelineSettings(translation_mode="batch", batch_size=2),
            sleep=lambda _: cancel.set(),
        )
        result = augmenter.augment(raws, cancel)
        assert [t.document_number for t in result] == ["0", "1"]

    def test_provider_name(self):
        assert _augmenter(FakeProvider()).provider_name == "fake"
        assert _augmenter(None).provider_name == "none"


# ═══════════════════════════════════════════════════════════════════════
# PROVIDERS
# ═══════════════════════════════════════════════════════════════════════


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestOpenAIChatProvider:
    def test_translates(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _completion(" Nithya \n")
        provider = OpenAIChatProvider("sk-test", model="gpt-4o-mini", client=client)

        assert provider.translate("நித்யா", "buyer name") == "Nithya"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][1] == {"role": "user", "content": "நித்யா"}
        assert "buyer name" in kwargs["messages"][0]["content"]

    def test_api_error_raises_translation_error(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError("quota exceeded")
        provider = OpenAIChatProvider("sk-test", client=client)

        with pytest.raises(TranslationError) as exc_info:
            provider.translate("நித்யா")
        assert exc_info.value.code == "TRANSLATION_FAILED"
        assert exc_info.value.details["provider"] == "openai"

    def test_empty_answer_raises(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _completion("")
        with pytest.raises(TranslationError):
            OpenAIChatProvider("sk-test", client=client).translate("நித்யா")


class TestGoogleTranslateProvider:
    def _session(self, payload):
        session = MagicMock()
        session.post.return_value.json.return_value = payload
        return session

    def test_translates(self):
        session = self._session({"data": {"translations": [{"translatedText": "Nithya"}]}})
        provider = GoogleTranslateProvider("g-key", timeout=5, session=session)

        assert provider.translate("நித்யா") == "Nithya"
        args, kwargs = session.post.call_args
        assert args[0] == GOOGLE_TRANSLATE_URL
        assert kwargs["params"] == {"key": "g-key"}
        assert kwargs["data"]["source"] == "ta"
        assert kwargs["data"]["target"] == "en"
        assert kwargs["timeout"] == 5

    def test_network_error_raises_translation_error(self):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("timed out")
        with pytest.raises(TranslationError) as exc_info:
            GoogleTranslateProvider("g-key", session=session).translate("நித்யா")
        assert exc_info.value.details["error_type"] == "Timeout"

    def test_http_error_raises_translation_error(self):
        session = MagicMock()
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("403")
        with pytest.raises(TranslationError):
            GoogleTranslateProvider("g-key", session=session).translate("நித்யா")

    def test_unexpected_payload_raises_translation_error(self):
        session = self._session({"error": {"message": "bad key"}})
        with pytest.raises(TranslationError):
            GoogleTranslateProvider("g-key", session=session).translate("நித்யா")


class TestBuildProvider:
    def test_none(self):
        assert build_provider(PipelineSettings(translation_provider="none", openai_api_key="k")) is None

    def test_auto_without_keys(self):
        assert build_provider(PipelineSettings()) is None

    def test_auto_prefers_openai(self):
        provider = build_provider(PipelineSettings(openai_api_key="sk-test", google_api_key="g"))
        assert isinstance(provider, OpenAIChatProvider)

    def test_auto_uses_google_when_only_google_key(self):
        provider = build_provider(PipelineSettings(google_api_key="g-key"))
        assert isinstance(provider, GoogleTranslateProvider)

    def test_named_provider_without_key(self):
        settings = PipelineSettings(translation_provider="google", openai_api_key="sk-test")
        assert build_provider(settings) is None


# ═══════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════


class TestPipelineSettings:
    def test_defaults(self):
        settings = PipelineSettings.from_env({})
        assert settings.segmentation_mode is SegmentationMode.WHOLE_BLOCK
        assert settings.min_block_length == 80
        assert settings.translation_mode == "sequential"
        assert settings.effective_delay == 0.1

    def test_reads_environment(self):
        settings = PipelineSettings.from_env(
            {
                "EC_SEGMENTATION_MODE": "line_scan",
                "EC_TRANSLATION_MODE": "batch",
                "EC_TRANSLATION_BATCH_SIZE": "4",
                "EC_TRANSLATION_FALLBACK": "omit",
                "OPENAI_API_KEY": "sk-test",
            }
        )
        assert settings.segmentation_mode is SegmentationMode.LINE_SCAN
        assert settings.batch_size == 4
        assert settings.translation_fallback == "omit"
        assert settings.openai_api_key == "sk-test"
        assert settings.effective_delay == 0.5

    def test_blank_values_keep_defaults(self):
        settings = PipelineSettings.from_env({"EC_TRANSLATION_BATCH_SIZE": "  "})
        assert settings.batch_size == 10

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("EC_MIN_BLOCK_LENGTH", "40")
        assert PipelineSettings.from_env().min_block_length == 40

    @pytest.mark.parametrize(
        "env",
        [
            {"EC_TRANSLATION_BATCH_SIZE": "0"},
            {"EC_TRANSLATION_PROVIDER": "deepl"},
            {"EC_SEGMENTATION_MODE": "paragraph"},
            {"EC_TRANSLATION_DELAY_SECONDS": "-1"},
        ],
    )
    def test_invalid_values_raise(self, env):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineSettings.from_env(env)
        assert exc_info.value.code == "INVALID_CONFIGURATION"
