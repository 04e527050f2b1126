from read_aloud_scorer.config import ScorerConfig
from read_aloud_scorer.feedback import (
    check_achievements,
    encouraging_message,
    generate_child_feedback,
    generate_session_feedback,
    pronunciation_suggestions,
)
from read_aloud_scorer.models import AlignmentEntry, MistakeKind, ScoreResult


def _score(
    accuracy: float,
    fluency: float,
    wpm: float,
    mistakes: list[AlignmentEntry] | None = None,
) -> ScoreResult:
    return ScoreResult(
        accuracy=accuracy,
        total_words=10,
        correct_words=int(accuracy / 10),
        mistakes=mistakes or [],
        words_per_minute=wpm,
        fluency_score=fluency,
    )


def test_top_tier_feedback_praises_accuracy_fluency_and_speed():
    feedback = generate_child_feedback(_score(100, 90, 90), child_age=8)

    assert feedback.overall_score == 95
    assert feedback.encouragement.startswith("You are an amazing reader!")
    assert feedback.strengths == [
        "Excellent word recognition!",
        "Smooth and steady reading!",
        "Great reading speed!",
    ]
    assert feedback.improvements == []
    assert feedback.suggestions == []


def test_constructive_feedback_for_middle_accuracy():
    feedback = generate_child_feedback(_score(75, 65, 60), child_age=8)

    assert feedback.strengths == ["Good effort on your reading!"]
    assert feedback.improvements == [
        "Try to read a little more slowly and carefully",
        "Try to read with fewer pauses",
    ]


def test_supportive_feedback_lists_mistake_kind_suggestions():
    mistakes = [
        AlignmentEntry(0, "cat", "hat", MistakeKind.SUBSTITUTION),
        AlignmentEntry(1, "sat", "", MistakeKind.MISSING),
        AlignmentEntry(2, "", "down", MistakeKind.EXTRA),
    ]
    feedback = generate_child_feedback(_score(40, 30, 20, mistakes), child_age=6)

    assert feedback.encouragement.startswith("Great job trying!")
    assert "Practice reading phrases together" in feedback.improvements
    assert feedback.suggestions == [
        "Try reading a little faster as you get comfortable",
        "Sound out words carefully",
        "Make sure to read every word",
        "Follow along with your finger",
    ]


def test_wpm_baseline_depends_on_age():
    config = ScorerConfig()

    assert config.wpm_baseline(12) == 90.0
    assert config.wpm_baseline(8) == 70.0
    assert config.wpm_baseline(5) == 50.0
    older = generate_child_feedback(_score(90, 85, 62), child_age=10)
    younger = generate_child_feedback(_score(90, 85, 62), child_age=6)
    assert "Try reading a little faster as you get comfortable" in older.suggestions
    assert "Great reading speed!" in younger.strengths


def test_encouraging_message_thresholds():
    assert encouraging_message(95).startswith("Fantastic reading!")
    assert encouraging_message(85).startswith("Great job!")
    assert encouraging_message(70).startswith("Good work!")
    assert encouraging_message(69.9).startswith("Nice try!")


def test_session_feedback_combines_score_suggestions_and_achievements():
    feedback = generate_session_feedback(
        accuracy=80,
        words_per_minute=160,
        mistakes=[{"expected": "dragon"}, {"expected": "castle"}],
        reading_time=320,
    )

    assert feedback.overall_score == 90
    assert feedback.suggestions == [
        "Try reading more slowly and carefully",
        "Sound out each word",
        "Try reading a bit slower for better accuracy",
        "Practice these words: dragon, castle",
    ]
    assert [a.name for a in feedback.achievements] == ["Speed Reader", "Reading Endurance"]


def test_session_feedback_default_praise():
    feedback = generate_session_feedback(accuracy=96, words_per_minute=90)

    assert feedback.suggestions == ["Keep up the excellent reading!"]
    assert [a.name for a in check_achievements(96, 90, 0)] == ["Accuracy Master"]


def test_pronunciation_suggestions():
    mistakes = [
        AlignmentEntry(0, "frog", "fog", MistakeKind.SUBSTITUTION),
        AlignmentEntry(1, "jumped", "", MistakeKind.MISSING),
    ]

    assert pronunciation_suggestions(mistakes) == [
        'Try saying "frog" more clearly.',
        'Don\'t forget to say "jumped".',
        "Good reading! Just practice those few words a bit more.",
    ]
    assert pronunciation_suggestions([]) == ["Great job! Your pronunciation is excellent!"]


def test_pronunciation_suggestions_ignore_extra_words():
    extra_only = [AlignmentEntry(2, "", "sat", MistakeKind.EXTRA)]

    assert pronunciation_suggestions(extra_only) == [
        "Great job! Your pronunciation is excellent!"
    ]
