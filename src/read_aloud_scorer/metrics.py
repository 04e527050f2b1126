from __future__ import annotations

import math
from typing import List, Sequence

from .models import TimingSegment

DEFAULT_FLUENCY_SCORE = 70.0
PAUSE_THRESHOLD = 0.1
PAUSE_PENALTY = 50.0
MISTAKE_PENALTY = 5.0
DEFAULT_AVERAGE_PAUSE = 0.3


def reading_time(segments: Sequence[TimingSegment]) -> float:
    """Elapsed seconds from the earliest segment start to the latest end."""
    if not segments:
        return 0.0
    return max(s.end for s in segments) - min(s.start for s in segments)


def words_per_minute(word_count: int, segments: Sequence[TimingSegment]) -> float:
    """Recognized words per minute; 0 when no timing is available."""
    total_time = reading_time(segments)
    if total_time <= 0:
        return 0.0
    return word_count / total_time * 60


def segment_pauses(
    segments: Sequence[TimingSegment], threshold: float = PAUSE_THRESHOLD
) -> List[float]:
    """Gaps between adjacent segments that are longer than the threshold."""
    pauses: List[float] = []
    for previous, current in zip(segments, segments[1:]):
        pause = current.start - previous.end
        if pause > threshold:
            pauses.append(pause)
    return pauses


def fluency_score(
    segments: Sequence[TimingSegment],
    mistake_count: int,
    *,
    pause_threshold: float = PAUSE_THRESHOLD,
    pause_penalty: float = PAUSE_PENALTY,
    mistake_penalty: float = MISTAKE_PENALTY,
    default_score: float = DEFAULT_FLUENCY_SCORE,
    default_average_pause: float = DEFAULT_AVERAGE_PAUSE,
) -> float:
    """
    Heuristic 0-100 smoothness score.

    Long pauses between segments and mistakes both reduce the score. Plain
    text comparisons carry no timing, so they get ``default_score`` instead
    of a computed value. When timing exists but no gap exceeds the pause
    threshold, ``default_average_pause`` stands in for the average pause.
    """
    if not segments:
        return default_score

    pauses = segment_pauses(segments, pause_threshold)
    average_pause = sum(pauses) / len(pauses) if pauses else default_average_pause

    score = 100.0 - average_pause * pause_penalty
    score -= mistake_count * mistake_penalty
    return max(0.0, min(100.0, score))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def overall_score(accuracy: float, fluency: float) -> int:
    """Combine accuracy and fluency into a single rounded score."""
    return round_half_up((accuracy + fluency) / 2)
