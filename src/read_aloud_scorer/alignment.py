from __future__ import annotations

from typing import List, Sequence

from .models import AlignmentEntry, MistakeKind, WordResult, WordTiming


def align_tokens(
    expected: Sequence[str], actual: Sequence[str]
) -> List[AlignmentEntry]:
    """
    Pair expected and actual tokens strictly by position.

    There is no resynchronization: a dropped or inserted word shifts every
    later comparison, so the rest of the passage is reported as mistakes.
    """
    entries: List[AlignmentEntry] = []
    length = max(len(expected), len(actual))

    for position in range(length):
        expected_token = expected[position] if position < len(expected) else ""
        actual_token = actual[position] if position < len(actual) else ""
        entries.append(
            AlignmentEntry(
                position=position,
                expected=expected_token,
                actual=actual_token,
                kind=classify(expected_token, actual_token),
            )
        )

    return entries


def classify(expected: str, actual: str) -> MistakeKind:
    """Classify a single aligned position."""
    if expected and not actual:
        return MistakeKind.MISSING
    if actual and not expected:
        return MistakeKind.EXTRA
    if expected == actual:
        return MistakeKind.CORRECT
    return MistakeKind.SUBSTITUTION


def count_correct(entries: Sequence[AlignmentEntry]) -> int:
    return sum(1 for entry in entries if entry.kind is MistakeKind.CORRECT)


def mistakes_of(entries: Sequence[AlignmentEntry]) -> List[AlignmentEntry]:
    """Return every entry that is not a correct match, in position order."""
    return [entry for entry in entries if entry.is_mistake]


def word_results(
    entries: Sequence[AlignmentEntry], timings: Sequence[WordTiming] = ()
) -> List[WordResult]:
    """
    Return a result for every entry that carries an expected token.

    Recognized word timings are matched by position, the same way tokens are.
    """
    return [
        WordResult(
            entry=entry,
            timing=timings[entry.position] if entry.position < len(timings) else None,
        )
        for entry in entries
        if entry.expected
    ]


def compute_accuracy(correct_words: int, total_words: int) -> float:
    """Percentage of expected words read correctly; 0 when nothing was expected."""
    if total_words <= 0:
        return 0.0
    return correct_words / total_words * 100
