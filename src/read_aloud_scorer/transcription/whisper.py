from __future__ import annotations

import importlib
import logging
import time
from typing import Any, Callable, List, cast

from ..config import WhisperSettings
from ..errors import TranscriptionError
from ..models import TimingSegment, Transcription, WordTiming
from .base import SpeechTranscriber, child_reading_prompt

logger = logging.getLogger(__name__)

OpenAI: Callable[..., Any] | None = None

DEFAULT_CONFIDENCE = 0.8

AUDIO_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/mp3": "mp3",
    "audio/mpeg": "mp3",
    "audio/m4a": "m4a",
    "audio/webm": "webm",
}


class WhisperTranscriber(SpeechTranscriber):
    """Thin wrapper around the OpenAI transcription API with retries."""

    name = "whisper"

    def __init__(self, settings: WhisperSettings, api_key: str) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required for Whisper transcription.")
        self._settings = settings
        self._api_key = api_key
        self._client_factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None
        self._max_attempts = max(1, settings.max_attempts)

    @property
    def settings(self) -> WhisperSettings:
        return self._settings

    def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        prompt: str | None = None,
        content_type: str = "audio/webm",
    ) -> Transcription:
        """Send the audio to Whisper and map the verbose response."""
        extension = AUDIO_EXTENSIONS.get(content_type, "webm")
        attempt = 0
        last_error: Exception | None = None
        while attempt < self._max_attempts:
            attempt += 1
            try:
                client = self._ensure_client()
                response: Any = client.audio.transcriptions.create(
                    file=(f"audio.{extension}", audio, content_type),
                    model=self._settings.model,
                    language=language,
                    prompt=prompt or child_reading_prompt(),
                    temperature=self._settings.temperature,
                    response_format="verbose_json",
                    timestamp_granularities=["segment", "word"],
                    timeout=self._settings.request_timeout,
                )
                transcription = self._to_transcription(response, language)
                logger.debug(
                    "Whisper transcription succeeded: %s segments, %s chars",
                    len(transcription.segments),
                    len(transcription.transcript),
                )
                return transcription
            except TranscriptionError:
                # Malformed responses are not transient.
                raise
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "Whisper transcription failed (attempt %s/%s): %s",
                    attempt,
                    self._max_attempts,
                    exc,
                )
                if attempt >= self._max_attempts:
                    break
                time.sleep(min(2 ** (attempt - 1), 5))
        raise TranscriptionError("Whisper transcription failed after retries.") from last_error

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    def _to_transcription(self, response: Any, language: str) -> Transcription:
        if isinstance(response, str):
            return Transcription(
                transcript=response,
                confidence=DEFAULT_CONFIDENCE,
                language=language,
                service=self.name,
            )
        data = _materialize_item(response)
        words = [
            WordTiming(
                word=str(item.get("word", "")).strip(),
                start=float(item.get("start", 0.0)),
                end=float(item.get("end", 0.0)),
                confidence=float(item.get("probability") or DEFAULT_CONFIDENCE),
            )
            for item in (_materialize_item(raw) for raw in data.get("words") or [])
        ]
        segments: List[TimingSegment] = []
        for raw in data.get("segments") or []:
            item = _materialize_item(raw)
            start = float(item.get("start", 0.0))
            end = float(item.get("end", 0.0))
            segment_words = [w for w in words if start <= w.start < end]
            segments.append(
                TimingSegment(
                    start=start,
                    end=end,
                    confidence=_average_confidence(segment_words),
                    text=str(item.get("text", "")).strip(),
                    words=segment_words,
                )
            )
        return Transcription(
            transcript=str(data.get("text") or ""),
            confidence=_average_confidence(segments),
            language=str(data.get("language") or language),
            segments=segments,
            service=self.name,
        )


def _average_confidence(items: List[Any]) -> float:
    if not items:
        return DEFAULT_CONFIDENCE
    total = sum(item.confidence or DEFAULT_CONFIDENCE for item in items)
    return total / len(items)


def _materialize_item(item: Any) -> dict[str, Any]:
    if isinstance(item, dict):
        return cast(dict[str, Any], item)
    if hasattr(item, "model_dump"):
        dumpable: Any = item
        raw_dump: dict[str, Any] = dumpable.model_dump()
        return raw_dump
    if hasattr(item, "__dict__"):
        dumpable = item
        raw_dict: dict[str, Any] = dict(dumpable.__dict__)
        return raw_dict
    raise TranscriptionError("Unexpected Whisper response format.")


def _load_openai_factory() -> Callable[..., Any]:
    """Import the OpenAI client factory on first use."""
    global OpenAI
    if OpenAI is not None:
        return OpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install extras via 'pip install .[whisper]'."
        ) from exc
    openai_cls = getattr(module, "OpenAI", None)
    if openai_cls is None:  # pragma: no cover
        raise RuntimeError("openai.OpenAI client class is unavailable in this environment.")
    OpenAI = cast(Callable[..., Any], openai_cls)
    return OpenAI
