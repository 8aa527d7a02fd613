"""
Pipeline settings, read from the environment.

Entry points (main.py, api.py) load a `.env` file first with python-dotenv;
this module only reads os.environ.
"""

from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .models import SegmentationMode

_ENV_FIELDS: dict[str, str] = {
    "segmentation_mode": "EC_SEGMENTATION_MODE",
    "min_block_length": "EC_MIN_BLOCK_LENGTH",
    "translation_provider": "EC_TRANSLATION_PROVIDER",
    "openai_api_key": "OPENAI_API_KEY",
    "openai_model": "EC_OPENAI_MODEL",
    "google_api_key": "GOOGLE_TRANSLATE_API_KEY",
    "translation_mode": "EC_TRANSLATION_MODE",
    "batch_size": "EC_TRANSLATION_BATCH_SIZE",
    "delay_seconds": "EC_TRANSLATION_DELAY_SECONDS",
    "translation_fallback": "EC_TRANSLATION_FALLBACK",
    "provider_timeout_seconds": "EC_PROVIDER_TIMEOUT_SECONDS",
}


class PipelineSettings(BaseModel):
    """Knobs for segmentation and for the outbound translation rate."""

    segmentation_mode: SegmentationMode = SegmentationMode.WHOLE_BLOCK
    min_block_length: int = Field(default=80, ge=0)

    translation_provider: Literal["auto", "openai", "google", "none"] = "auto"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    google_api_key: Optional[str] = None

    translation_mode: Literal["sequential", "batch"] = "sequential"
    batch_size: int = Field(default=10, ge=1)
    # None means: 0.1s after each record (sequential), 0.5s after each batch
    delay_seconds: Optional[float] = Field(default=None, ge=0)
    translation_fallback: Literal["transliterate", "omit"] = "transliterate"
    provider_timeout_seconds: float = Field(default=30.0, gt=0)

    @property
    def effective_delay(self) -> float:
        if self.delay_seconds is not None:
            return self.delay_seconds
        return 0.5 if self.translation_mode == "batch" else 0.1

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineSettings:
        """Build settings from environment variables; unset ones keep defaults.

        Raises:
            ConfigurationError: If a variable is set to an unusable value.
        """
        env = os.environ if environ is None else environ
        values = {
            field_name: env[var].strip()
            for field_name, var in _ENV_FIELDS.items()
            if env.get(var, "").strip()
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid pipeline configuration in environment",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e
