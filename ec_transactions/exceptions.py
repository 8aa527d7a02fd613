"""
Custom exception hierarchy for the transaction pipeline.

Only MalformedInputError is allowed to reject a whole upload. Everything
else is caught close to where it happens and turned into a fallback.
"""

from __future__ import annotations


class TransactionPipelineError(Exception):
    """Base exception for all pipeline failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class MalformedInputError(TransactionPipelineError):
    """The uploaded content is not text that any recognizer can work on."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("MALFORMED_INPUT", message, details)


class TranslationError(TransactionPipelineError):
    """The translation provider failed (quota, network, empty answer)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("TRANSLATION_FAILED", message, details)


class ConfigurationError(TransactionPipelineError):
    """An environment setting could not be parsed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("INVALID_CONFIGURATION", message, details)
