from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Transcription


class SpeechTranscriber(ABC):
    """Abstract speech-to-text collaborator."""

    name: str = "base"

    @abstractmethod
    def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        prompt: str | None = None,
        content_type: str = "audio/webm",
    ) -> Transcription:
        """Return the recognized transcript and optional timing segments."""
        raise NotImplementedError


def child_reading_prompt(child_age: int = 8, expected_text: str | None = None) -> str:
    """Prompt that primes a recognizer for a child reading aloud."""
    if not expected_text:
        return (
            "This is a child reading a story aloud. "
            "Please transcribe accurately with proper punctuation."
        )
    return (
        f"This is a {child_age}-year-old child reading the following text: "
        f'"{expected_text}". Please transcribe accurately, considering typical '
        "child speech patterns and mispronunciations."
    )
