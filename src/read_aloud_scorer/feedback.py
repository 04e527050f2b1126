"""
Child-facing feedback built from reading metrics.

Every function here is a pure threshold mapping: identical inputs always
produce identical feedback.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, List, Mapping, Sequence

from .config import ScorerConfig
from .metrics import overall_score, round_half_up
from .models import (
    Achievement,
    AlignmentEntry,
    FeedbackResult,
    MistakeKind,
    ScoreResult,
    SessionFeedback,
)

FAST_READING_FACTOR = 1.2
SLOW_READING_FACTOR = 0.7

MISTAKE_KIND_SUGGESTIONS = (
    (MistakeKind.SUBSTITUTION, "Sound out words carefully"),
    (MistakeKind.MISSING, "Make sure to read every word"),
    (MistakeKind.EXTRA, "Follow along with your finger"),
)


def generate_child_feedback(
    score: ScoreResult,
    child_age: int,
    config: ScorerConfig | None = None,
) -> FeedbackResult:
    """Map accuracy, fluency, speed and mistakes to encouragement for a child."""
    cfg = config or ScorerConfig()
    feedback = FeedbackResult(
        overall_score=overall_score(score.accuracy, score.fluency_score)
    )

    accuracy = score.accuracy
    if accuracy >= 95:
        feedback.strengths.append("Excellent word recognition!")
        feedback.encouragement = "You are an amazing reader! 🌟"
    elif accuracy >= 85:
        feedback.strengths.append("Great job reading most words correctly!")
        feedback.encouragement = "You're doing really well! Keep it up! 📚"
    elif accuracy >= 70:
        feedback.strengths.append("Good effort on your reading!")
        feedback.encouragement = "You're getting better! Practice makes perfect! 💪"
        feedback.improvements.append("Try to read a little more slowly and carefully")
    else:
        feedback.encouragement = "Great job trying! Reading takes practice! 🎯"
        feedback.improvements.append("Let's practice these words together")
        feedback.improvements.append("Try reading word by word first")

    if score.fluency_score >= 80:
        feedback.strengths.append("Smooth and steady reading!")
    elif score.fluency_score >= 60:
        feedback.improvements.append("Try to read with fewer pauses")
    else:
        feedback.improvements.append("Practice reading phrases together")

    expected_wpm = cfg.wpm_baseline(child_age)
    if score.words_per_minute >= expected_wpm * FAST_READING_FACTOR:
        feedback.strengths.append("Great reading speed!")
    elif score.words_per_minute < expected_wpm * SLOW_READING_FACTOR:
        feedback.suggestions.append(
            "Try reading a little faster as you get comfortable"
        )

    kinds = Counter(entry.kind for entry in score.mistakes)
    for kind, suggestion in MISTAKE_KIND_SUGGESTIONS:
        if kinds[kind] > 0:
            feedback.suggestions.append(suggestion)

    return feedback


def encouraging_message(accuracy: float) -> str:
    if accuracy >= 95:
        return "Fantastic reading! You're doing amazing! 🌟"
    if accuracy >= 85:
        return "Great job! You're reading really well! 📚"
    if accuracy >= 70:
        return "Good work! Keep practicing and you'll get even better! 💪"
    return "Nice try! Reading takes practice. You're getting better! 🎯"


def session_suggestions(
    accuracy: float, words_per_minute: float, mistakes: Sequence[Any] = ()
) -> List[str]:
    """Suggestions for the end of a reading session."""
    suggestions: List[str] = []

    if accuracy < 85:
        suggestions.append("Try reading more slowly and carefully")
        suggestions.append("Sound out each word")

    if words_per_minute < 50:
        suggestions.append("Practice reading common words quickly")
    elif words_per_minute > 150:
        suggestions.append("Try reading a bit slower for better accuracy")

    practice_words = [w for w in (_expected_word(m) for m in mistakes[:3]) if w]
    if practice_words:
        suggestions.append(f"Practice these words: {', '.join(practice_words)}")

    if not suggestions:
        suggestions.append("Keep up the excellent reading!")
    return suggestions


def check_achievements(
    accuracy: float, words_per_minute: float, reading_time: float
) -> List[Achievement]:
    achievements: List[Achievement] = []
    if accuracy >= 95:
        achievements.append(
            Achievement("Accuracy Master", "Read with 95% accuracy!", "🎯")
        )
    if words_per_minute >= 100:
        achievements.append(
            Achievement("Speed Reader", "Read 100+ words per minute!", "⚡")
        )
    if reading_time >= 300:
        achievements.append(
            Achievement("Reading Endurance", "Read for 5+ minutes!", "🏃")
        )
    return achievements


def generate_session_feedback(
    accuracy: float,
    words_per_minute: float,
    mistakes: Sequence[Any] = (),
    reading_time: float = 0.0,
) -> SessionFeedback:
    """
    Summarize a finished session.

    ``mistakes`` may hold AlignmentEntry objects or plain mappings with an
    ``expected`` key, as posted by the client apps.
    """
    return SessionFeedback(
        overall_score=round_half_up((accuracy + min(100.0, words_per_minute)) / 2),
        accuracy=accuracy,
        speed=words_per_minute,
        message=encouraging_message(accuracy),
        suggestions=session_suggestions(accuracy, words_per_minute, mistakes),
        achievements=check_achievements(accuracy, words_per_minute, reading_time),
    )


def pronunciation_suggestions(mistakes: Sequence[AlignmentEntry]) -> List[str]:
    """Per-word pronunciation tips followed by a summary line."""
    # Extra words have nothing to practise.
    missed = [m for m in mistakes if m.expected]
    suggestions: List[str] = []
    for mistake in missed:
        if mistake.kind is MistakeKind.SUBSTITUTION:
            suggestions.append(f'Try saying "{mistake.expected}" more clearly.')
        elif mistake.kind is MistakeKind.MISSING:
            suggestions.append(f'Don\'t forget to say "{mistake.expected}".')

    if not missed:
        suggestions.append("Great job! Your pronunciation is excellent!")
    elif len(missed) <= 2:
        suggestions.append("Good reading! Just practice those few words a bit more.")
    else:
        suggestions.append("Keep practicing! Try reading more slowly and clearly.")
    return suggestions


def _expected_word(mistake: Any) -> str:
    if isinstance(mistake, AlignmentEntry):
        return mistake.expected
    if isinstance(mistake, Mapping):
        return str(mistake.get("expected") or "")
    return str(getattr(mistake, "expected", "") or "")
