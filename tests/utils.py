from __future__ import annotations

from typing import Any

from read_aloud_scorer.errors import TranscriptionError
from read_aloud_scorer.models import TimingSegment, Transcription
from read_aloud_scorer.transcription import SpeechTranscriber


def make_segments(*spans: tuple[float, float]) -> list[TimingSegment]:
    """Build timing segments from (start, end) pairs."""
    return [TimingSegment(start=start, end=end, confidence=0.9) for start, end in spans]


class FakeTranscriber(SpeechTranscriber):
    """Returns a canned transcription and records each call."""

    def __init__(
        self,
        transcript: str,
        segments: list[TimingSegment] | None = None,
        *,
        name: str = "fake",
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.transcript = transcript
        self.segments = segments or []
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        prompt: str | None = None,
        content_type: str = "audio/webm",
    ) -> Transcription:
        self.calls.append(
            {
                "audio": audio,
                "language": language,
                "prompt": prompt,
                "content_type": content_type,
            }
        )
        if self.error is not None:
            raise self.error
        return Transcription(
            transcript=self.transcript,
            confidence=0.9,
            language=language,
            segments=list(self.segments),
            service=self.name,
        )


def failing_transcriber(name: str = "whisper") -> FakeTranscriber:
    return FakeTranscriber("", name=name, error=TranscriptionError("upstream down"))
