from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from .config import ScorerConfig
from .errors import (
    ErrorKind,
    NoSpeechDetected,
    Ok,
    Result,
    TranscriptionError,
    fail,
)
from .feedback import generate_session_feedback, pronunciation_suggestions
from .models import ReadingAnalysis, SessionFeedback, TimingSegment, Transcription
from .pipeline import analyze_reading
from .transcription import SpeechTranscriber, child_reading_prompt

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RecognitionOutcome:
    """Transcription of an uploaded recording, scored when a passage was given."""

    transcription: Transcription
    reading: ReadingAnalysis | None = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"transcription": self.transcription.to_dict()}
        if self.reading is not None:
            payload.update(self.reading.to_dict())
            payload["suggestions"] = list(self.suggestions)
        return payload


class ReadingService:
    """Scoring and transcription entry points shared by the HTTP API and CLI."""

    def __init__(
        self,
        config: ScorerConfig | None = None,
        transcribers: Mapping[str, SpeechTranscriber] | None = None,
    ) -> None:
        self._config = config or ScorerConfig()
        self._transcribers: Dict[str, SpeechTranscriber] = dict(transcribers or {})

    @property
    def config(self) -> ScorerConfig:
        return self._config

    @property
    def available_services(self) -> List[str]:
        return sorted(self._transcribers)

    def analyze_transcript(
        self,
        transcript: str,
        expected_text: str,
        child_age: int | None = None,
        segments: Sequence[TimingSegment] | None = None,
    ) -> Result[ReadingAnalysis]:
        """Score a transcript that was recognized elsewhere, with optional timing."""
        if not (expected_text or "").strip() or not (transcript or "").strip():
            return fail(
                ErrorKind.INVALID_INPUT, "Transcript and expected text are required"
            )
        return Ok(
            analyze_reading(
                expected_text,
                transcript,
                child_age=child_age,
                segments=segments,
                config=self._config,
            )
        )

    def recognize(
        self,
        audio: bytes,
        content_type: str,
        *,
        expected_text: str | None = None,
        service: str | None = None,
        child_age: int | None = None,
        language: str | None = None,
    ) -> Result[RecognitionOutcome]:
        """Transcribe a recording and, when a passage is supplied, score it."""
        if content_type not in self._config.allowed_audio_types:
            return fail(ErrorKind.UNSUPPORTED_MEDIA, f"Invalid audio format: {content_type}")
        if not audio:
            return fail(ErrorKind.INVALID_INPUT, "No audio file provided")
        if len(audio) > self._config.max_audio_bytes:
            return fail(
                ErrorKind.PAYLOAD_TOO_LARGE,
                f"Audio exceeds {self._config.max_audio_bytes} bytes",
            )

        name = (service or self._config.default_service).lower()
        transcriber = self._transcribers.get(name)
        if transcriber is None:
            logger.warning("Recognition requested from unavailable service '%s'", name)
            return fail(
                ErrorKind.SERVICE_UNAVAILABLE,
                f"Speech service '{name}' is not configured",
            )

        age = self._config.default_child_age if child_age is None else child_age
        passage = (expected_text or "").strip()
        try:
            transcription = transcriber.transcribe(
                audio,
                language=language or self._config.default_language,
                prompt=child_reading_prompt(age, passage or None),
                content_type=content_type,
            )
        except NoSpeechDetected as exc:
            return fail(ErrorKind.INVALID_INPUT, str(exc))
        except TranscriptionError as exc:
            logger.error("Transcription via %s failed: %s", name, exc)
            return fail(ErrorKind.UPSTREAM_FAILURE, str(exc))

        if not passage:
            return Ok(RecognitionOutcome(transcription=transcription))

        reading = analyze_reading(
            passage,
            transcription.transcript,
            child_age=age,
            segments=transcription.segments,
            config=self._config,
        )
        return Ok(
            RecognitionOutcome(
                transcription=transcription,
                reading=reading,
                suggestions=pronunciation_suggestions(reading.analysis.mistakes),
            )
        )

    def session_feedback(
        self,
        accuracy: float,
        words_per_minute: float,
        mistakes: Sequence[Any] = (),
        reading_time: float = 0.0,
    ) -> Result[SessionFeedback]:
        """Summarize a finished session for the parent and child dashboards."""
        if accuracy < 0 or words_per_minute < 0 or reading_time < 0:
            return fail(ErrorKind.INVALID_INPUT, "Metrics must not be negative")
        return Ok(
            generate_session_feedback(
                accuracy, words_per_minute, mistakes, reading_time
            )
        )
