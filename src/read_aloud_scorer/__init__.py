"""
read_aloud_scorer package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .config import ScorerConfig, config_from_dict, config_from_yaml, load_config
from .feedback import generate_child_feedback, generate_session_feedback
from .models import AlignmentEntry, MistakeKind, ScoreResult, TimingSegment
from .pipeline import analyze_reading, score_reading
from .service import ReadingService

__all__ = [
    "ScorerConfig",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "AlignmentEntry",
    "MistakeKind",
    "ScoreResult",
    "TimingSegment",
    "score_reading",
    "analyze_reading",
    "generate_child_feedback",
    "generate_session_feedback",
    "ReadingService",
]

__version__ = "0.1.0"
