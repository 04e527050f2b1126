from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Any, List

from ..config import GoogleSpeechSettings
from ..errors import NoSpeechDetected, TranscriptionError
from ..models import TimingSegment, Transcription, TranscriptAlternative, WordTiming
from .base import SpeechTranscriber

logger = logging.getLogger(__name__)

# Common sight words boosted so short words from young readers are not dropped.
SIGHT_WORDS = (
    "the", "and", "a", "to", "of", "in", "I", "you", "it", "for", "not", "on",
    "with", "as", "was", "his", "that", "at", "he", "have", "from", "or", "one",
    "had", "by", "word", "but", "what", "some", "we", "can", "out", "other",
    "were", "all", "there", "when", "up", "use", "your", "how", "said", "an",
    "each", "which", "she", "do", "their", "time", "if", "will", "way", "about",
    "many", "then", "them", "write", "would", "like", "so", "these", "her",
    "long", "make", "thing", "see", "him", "two", "more", "go", "no", "man",
    "first", "been", "call", "who", "its", "now", "find", "may", "down", "side",
    "my", "very", "me", "get", "here", "could", "came", "made", "only", "over",
    "new", "sound", "take", "little", "work", "know", "place", "year", "live",
    "back", "give", "most", "good", "where", "much", "before", "move", "right",
    "too", "any", "same", "tell", "boy", "follow", "want", "show", "around",
    "great", "think", "help", "line", "turn", "come", "every", "should",
    "thought", "does", "part", "hear", "because", "play", "still", "try", "ask",
    "put", "end", "why", "let", "big", "say", "keep", "must", "under", "last",
    "never", "us", "left", "away", "something", "head", "might", "close",
    "hard", "open", "begin", "always", "those", "both", "together", "got", "run",
)


class GoogleSpeechTranscriber(SpeechTranscriber):
    """Google Cloud Speech-to-Text recognizer tuned for children's speech."""

    name = "google"

    def __init__(self, settings: GoogleSpeechSettings, client: Any | None = None) -> None:
        self._settings = settings
        self._speech: Any = _load_speech_module()
        self._client = client if client is not None else self._build_client()

    @property
    def settings(self) -> GoogleSpeechSettings:
        return self._settings

    def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        prompt: str | None = None,
        content_type: str = "audio/webm",
    ) -> Transcription:
        speech = self._speech
        language_code = to_language_code(language)
        config = speech.RecognitionConfig(
            encoding=getattr(speech.RecognitionConfig.AudioEncoding, self._settings.encoding),
            sample_rate_hertz=self._settings.sample_rate_hertz,
            language_code=language_code,
            enable_word_time_offsets=True,
            enable_automatic_punctuation=True,
            model=self._settings.model,
            use_enhanced=self._settings.use_enhanced,
            speech_contexts=[
                speech.SpeechContext(
                    phrases=list(SIGHT_WORDS), boost=self._settings.phrase_boost
                )
            ],
        )
        try:
            response = self._client.recognize(
                config=config, audio=speech.RecognitionAudio(content=audio)
            )
        except Exception as exc:
            logger.warning("Google speech recognition failed: %s", exc)
            raise TranscriptionError("Speech recognition failed") from exc

        results = list(getattr(response, "results", None) or [])
        if not results or not results[0].alternatives:
            raise NoSpeechDetected("No speech recognized in audio")

        segments: List[TimingSegment] = []
        transcripts: List[str] = []
        for result in results:
            if not result.alternatives:
                continue
            best = result.alternatives[0]
            transcripts.append(best.transcript.strip())
            segment = _segment_from_alternative(best)
            if segment is not None:
                segments.append(segment)

        first = results[0]
        logger.debug(
            "Google recognition returned %s results, %s segments with timing",
            len(results),
            len(segments),
        )
        return Transcription(
            transcript=" ".join(t for t in transcripts if t),
            confidence=float(first.alternatives[0].confidence or 0.0),
            language=language_code,
            segments=segments,
            alternatives=[
                TranscriptAlternative(
                    transcript=alt.transcript, confidence=float(alt.confidence or 0.0)
                )
                for alt in list(first.alternatives)[1:]
            ],
            service=self.name,
        )

    def _build_client(self) -> Any:
        client_cls = self._speech.SpeechClient
        if self._settings.credentials_path:
            return client_cls.from_service_account_file(self._settings.credentials_path)
        return client_cls()


def to_language_code(language: str) -> str:
    """Expand a bare language ('en') into the BCP-47 code Google expects."""
    if not language:
        return "en-US"
    if "-" in language:
        return language
    return {"en": "en-US"}.get(language.lower(), language)


def _segment_from_alternative(alternative: Any) -> TimingSegment | None:
    words = [
        WordTiming(
            word=info.word,
            start=_seconds(info.start_time),
            end=_seconds(info.end_time),
            confidence=float(info.confidence or 0.0),
        )
        for info in alternative.words
    ]
    if not words:
        return None
    return TimingSegment(
        start=min(w.start for w in words),
        end=max(w.end for w in words),
        confidence=float(alternative.confidence or 0.0),
        text=alternative.transcript.strip(),
        words=words,
    )


def _seconds(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float)):
        return float(value)
    seconds = getattr(value, "seconds", 0) or 0
    nanos = getattr(value, "nanos", 0) or 0
    return float(seconds) + nanos / 1e9


def _load_speech_module() -> Any:
    """Import google.cloud.speech on first use."""
    try:  # pragma: no cover - import guard
        return importlib.import_module("google.cloud.speech")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "google-cloud-speech is not installed. Install extras via 'pip install .[google]'."
        ) from exc
