from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping

import yaml


@dataclass(slots=True)
class WhisperSettings:
    """Configuration block for OpenAI Whisper transcription."""

    enabled: bool = True
    model: str = "whisper-1"
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    organization: str | None = None
    temperature: float = 0.1
    request_timeout: float = 60.0
    max_attempts: int = 3


@dataclass(slots=True)
class GoogleSpeechSettings:
    """Configuration block for Google Cloud Speech-to-Text."""

    enabled: bool = True
    credentials_path: str | None = None
    credentials_env: str = "GOOGLE_APPLICATION_CREDENTIALS"
    encoding: str = "WEBM_OPUS"
    sample_rate_hertz: int = 16000
    model: str = "latest_long"
    use_enhanced: bool = True
    phrase_boost: float = 10.0


@dataclass(slots=True)
class ScorerConfig:
    """Configuration options for scoring, feedback and transcription."""

    pause_threshold: float = 0.1
    pause_penalty: float = 50.0
    mistake_penalty: float = 5.0
    default_fluency_score: float = 70.0
    default_average_pause: float = 0.3
    default_child_age: int = 8
    wpm_baselines: Dict[int, float] = field(
        default_factory=lambda: {10: 90.0, 8: 70.0, 0: 50.0}
    )
    default_service: str = "google"
    default_language: str = "en"
    max_audio_bytes: int = 10 * 1024 * 1024
    allowed_audio_types: List[str] = field(
        default_factory=lambda: [
            "audio/wav",
            "audio/mp3",
            "audio/mpeg",
            "audio/m4a",
            "audio/webm",
        ]
    )
    whisper: WhisperSettings = field(default_factory=WhisperSettings)
    google: GoogleSpeechSettings = field(default_factory=GoogleSpeechSettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))

    def wpm_baseline(self, child_age: int) -> float:
        """Expected words per minute for a child of the given age."""
        for min_age in sorted(self.wpm_baselines, reverse=True):
            if child_age >= min_age:
                return float(self.wpm_baselines[min_age])
        return float(min(self.wpm_baselines.values(), default=0.0))


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {field.name for field in fields(ScorerConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    if "whisper" in data:
        kwargs["whisper"] = _build_block(WhisperSettings, data["whisper"])
    if "google" in data:
        kwargs["google"] = _build_block(GoogleSpeechSettings, data["google"])
    if "wpm_baselines" in data:
        baselines = data["wpm_baselines"]
        if not isinstance(baselines, Mapping) or not baselines:
            raise ValueError("wpm_baselines must be a non-empty mapping of age to wpm.")
        kwargs["wpm_baselines"] = {
            int(age): float(wpm) for age, wpm in baselines.items()
        }
    return kwargs


def _build_block(cls: type, value: Any) -> Any:
    if isinstance(value, cls):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"'{cls.__name__}' configuration must be a mapping.")
    allowed = {field.name for field in fields(cls)}
    return cls(**{key: value[key] for key in value if key in allowed})


def config_from_dict(data: Mapping[str, Any] | None) -> ScorerConfig:
    """Build a ScorerConfig from a dictionary-like input."""
    if data is None:
        return ScorerConfig()
    return ScorerConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> ScorerConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> ScorerConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return ScorerConfig()
    return config_from_yaml(path)
