from __future__ import annotations

from typing import Sequence

from .alignment import (
    align_tokens,
    compute_accuracy,
    count_correct,
    mistakes_of,
    word_results,
)
from .config import ScorerConfig
from .feedback import generate_child_feedback
from .metrics import fluency_score, reading_time, words_per_minute
from .models import ReadingAnalysis, ScoreResult, TimingSegment
from .normalization import tokenize


def score_reading(
    expected_text: str | None,
    transcript: str | None,
    segments: Sequence[TimingSegment] | None = None,
    config: ScorerConfig | None = None,
) -> ScoreResult:
    """Normalize, align and aggregate a single read-aloud attempt."""
    cfg = config or ScorerConfig()
    timing = list(segments or [])

    expected_tokens = tokenize(expected_text)
    actual_tokens = tokenize(transcript)
    entries = align_tokens(expected_tokens, actual_tokens)

    correct_words = count_correct(entries)
    mistakes = mistakes_of(entries)

    return ScoreResult(
        accuracy=compute_accuracy(correct_words, len(expected_tokens)),
        total_words=len(expected_tokens),
        correct_words=correct_words,
        mistakes=mistakes,
        words_per_minute=words_per_minute(len(actual_tokens), timing),
        fluency_score=fluency_score(
            timing,
            len(mistakes),
            pause_threshold=cfg.pause_threshold,
            pause_penalty=cfg.pause_penalty,
            mistake_penalty=cfg.mistake_penalty,
            default_score=cfg.default_fluency_score,
            default_average_pause=cfg.default_average_pause,
        ),
        words_recognized=len(actual_tokens),
        reading_time=reading_time(timing),
        word_results=word_results(
            entries, [word for segment in timing for word in segment.words]
        ),
    )


def analyze_reading(
    expected_text: str | None,
    transcript: str | None,
    child_age: int | None = None,
    segments: Sequence[TimingSegment] | None = None,
    config: ScorerConfig | None = None,
) -> ReadingAnalysis:
    """Score an attempt and attach child-facing feedback."""
    cfg = config or ScorerConfig()
    score = score_reading(expected_text, transcript, segments, cfg)
    age = cfg.default_child_age if child_age is None else child_age
    return ReadingAnalysis(
        analysis=score, feedback=generate_child_feedback(score, age, cfg)
    )
