from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List


class MistakeKind(str, Enum):
    """Classification of a single aligned position."""

    CORRECT = "correct"
    SUBSTITUTION = "substitution"
    MISSING = "missing"
    EXTRA = "extra"


@dataclass(slots=True)
class WordTiming:
    """A recognized word with its start/end offsets in seconds."""

    word: str
    start: float
    end: float
    confidence: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "word": self.word,
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
        }


@dataclass(slots=True)
class TimingSegment:
    """A span of recognized speech as reported by a speech recognizer."""

    start: float
    end: float
    confidence: float = 0.0
    text: str = ""
    words: List[WordTiming] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "confidence": self.confidence,
            "text": self.text,
            "words": [word.to_dict() for word in self.words],
        }


@dataclass(slots=True)
class AlignmentEntry:
    """Pairing of the expected and actual token found at one position."""

    position: int
    expected: str
    actual: str
    kind: MistakeKind

    @property
    def is_mistake(self) -> bool:
        return self.kind is not MistakeKind.CORRECT

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "expected": self.expected,
            "actual": self.actual,
            "type": self.kind.value,
        }


@dataclass(slots=True)
class WordResult:
    """An expected word with the recognizer timing found at its position."""

    entry: AlignmentEntry
    timing: WordTiming | None = None

    @property
    def correct(self) -> bool:
        return not self.entry.is_mistake

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.entry.to_dict(),
            "correct": self.correct,
            "confidence": self.timing.confidence if self.timing else 0.0,
            "timing": (
                {"start": self.timing.start, "end": self.timing.end}
                if self.timing
                else None
            ),
        }


@dataclass(slots=True)
class ScoreResult:
    """Accuracy and fluency metrics for one read-aloud attempt."""

    accuracy: float
    total_words: int
    correct_words: int
    mistakes: List[AlignmentEntry]
    words_per_minute: float
    fluency_score: float
    words_recognized: int = 0
    reading_time: float = 0.0
    word_results: List[WordResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the HTTP contract."""
        return {
            "accuracy": self.accuracy,
            "totalWords": self.total_words,
            "correctWords": self.correct_words,
            "mistakes": [entry.to_dict() for entry in self.mistakes],
            "wordsPerMinute": self.words_per_minute,
            "fluencyScore": self.fluency_score,
            "wordsRecognized": self.words_recognized,
            "readingTime": self.reading_time,
            "wordResults": [item.to_dict() for item in self.word_results],
        }


@dataclass(slots=True)
class FeedbackResult:
    """Child-facing feedback derived from a ScoreResult."""

    overall_score: int
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    encouragement: str = ""
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
            "encouragement": self.encouragement,
            "suggestions": list(self.suggestions),
        }


@dataclass(slots=True)
class Achievement:
    name: str
    description: str
    icon: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "icon": self.icon}


@dataclass(slots=True)
class SessionFeedback:
    """Summary feedback for a finished reading session."""

    overall_score: int
    accuracy: float
    speed: float
    message: str
    suggestions: List[str] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "accuracy": self.accuracy,
            "speed": self.speed,
            "message": self.message,
            "suggestions": list(self.suggestions),
            "achievements": [item.to_dict() for item in self.achievements],
        }


@dataclass(slots=True)
class TranscriptAlternative:
    transcript: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"transcript": self.transcript, "confidence": self.confidence}


@dataclass(slots=True)
class Transcription:
    """Output of a speech-to-text collaborator."""

    transcript: str
    confidence: float
    language: str
    segments: List[TimingSegment] = field(default_factory=list)
    alternatives: List[TranscriptAlternative] = field(default_factory=list)
    service: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "transcript": self.transcript,
            "confidence": self.confidence,
            "language": self.language,
            "segments": [segment.to_dict() for segment in self.segments],
            "alternatives": [alt.to_dict() for alt in self.alternatives],
            "service": self.service,
        }


@dataclass(slots=True)
class ReadingAnalysis:
    """Score plus feedback for one attempt."""

    analysis: ScoreResult
    feedback: FeedbackResult

    def to_dict(self) -> dict[str, Any]:
        return {"analysis": self.analysis.to_dict(), "feedback": self.feedback.to_dict()}
