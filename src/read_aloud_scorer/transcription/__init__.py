from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import Dict, Mapping

from ..config import ScorerConfig, WhisperSettings
from .base import SpeechTranscriber, child_reading_prompt
from .google import GoogleSpeechTranscriber
from .whisper import WhisperTranscriber

logger = logging.getLogger(__name__)

__all__ = [
    "SpeechTranscriber",
    "WhisperTranscriber",
    "GoogleSpeechTranscriber",
    "child_reading_prompt",
    "resolve_openai_api_key",
    "build_transcribers_from_config",
]


def resolve_openai_api_key(
    settings: WhisperSettings, environ: Mapping[str, str] | None = None
) -> str | None:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env = os.environ if environ is None else environ
    env_name = settings.api_key_env or "OPENAI_API_KEY"
    return env.get(env_name) or None


def build_transcribers_from_config(
    config: ScorerConfig, environ: Mapping[str, str] | None = None
) -> Dict[str, SpeechTranscriber]:
    """
    Build every enabled transcriber that has credentials.

    Services that cannot be configured are left out and reported by the
    service layer as unavailable.
    """
    env = os.environ if environ is None else environ
    transcribers: Dict[str, SpeechTranscriber] = {}

    if config.whisper.enabled:
        api_key = resolve_openai_api_key(config.whisper, env)
        if not api_key:
            logger.warning(
                "Whisper disabled: %s is not set.", config.whisper.api_key_env
            )
        else:
            try:
                transcribers["whisper"] = WhisperTranscriber(config.whisper, api_key)
            except RuntimeError as exc:
                logger.warning("Whisper disabled: %s", exc)

    if config.google.enabled:
        google_settings = config.google
        credentials = google_settings.credentials_path or env.get(
            google_settings.credentials_env
        )
        if not credentials:
            logger.warning(
                "Google speech disabled: %s is not set.", google_settings.credentials_env
            )
        else:
            try:
                transcribers["google"] = GoogleSpeechTranscriber(
                    replace(google_settings, credentials_path=credentials)
                )
            except Exception as exc:
                logger.warning("Google speech disabled: %s", exc)

    return transcribers
