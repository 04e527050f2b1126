from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace
from typing import Any

import pytest

from read_aloud_scorer.config import GoogleSpeechSettings, ScorerConfig, WhisperSettings
from read_aloud_scorer.errors import NoSpeechDetected, TranscriptionError
from read_aloud_scorer.transcription import (
    build_transcribers_from_config,
    child_reading_prompt,
    resolve_openai_api_key,
)
from read_aloud_scorer.transcription import google as google_module
from read_aloud_scorer.transcription import whisper as whisper_module

VERBOSE_RESPONSE = {
    "text": "The cat sat. On the mat.",
    "language": "english",
    "segments": [
        {"id": 0, "start": 0.0, "end": 1.2, "text": " The cat sat."},
        {"id": 1, "start": 1.8, "end": 3.0, "text": " On the mat."},
    ],
    "words": [
        {"word": "The", "start": 0.0, "end": 0.3},
        {"word": "cat", "start": 0.3, "end": 0.7},
        {"word": "sat", "start": 0.7, "end": 1.2},
        {"word": "On", "start": 1.8, "end": 2.0},
        {"word": "the", "start": 2.0, "end": 2.3},
        {"word": "mat", "start": 2.3, "end": 3.0},
    ],
}


def _dummy_openai(responses: list[Any], calls: dict[str, Any]):
    class DummyTranscriptions:
        def create(self, **kwargs: Any):
            calls.setdefault("requests", []).append(kwargs)
            outcome = responses.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

    class DummyOpenAI:
        def __init__(self, **kwargs: Any) -> None:
            calls["client_kwargs"] = kwargs
            self.audio = SimpleNamespace(transcriptions=DummyTranscriptions())

    return DummyOpenAI


def test_whisper_transcriber_requires_api_key(monkeypatch):
    monkeypatch.setattr(whisper_module, "OpenAI", object())
    with pytest.raises(ValueError):
        whisper_module.WhisperTranscriber(WhisperSettings(), api_key="")


def test_whisper_transcriber_maps_verbose_response(monkeypatch):
    calls: dict[str, Any] = {}
    monkeypatch.setattr(
        whisper_module, "OpenAI", _dummy_openai([VERBOSE_RESPONSE], calls)
    )
    transcriber = whisper_module.WhisperTranscriber(WhisperSettings(), api_key="token")

    result = transcriber.transcribe(
        b"RIFF", language="en", prompt="child reading", content_type="audio/wav"
    )

    assert result.transcript == "The cat sat. On the mat."
    assert result.service == "whisper"
    assert [(s.start, s.end) for s in result.segments] == [(0.0, 1.2), (1.8, 3.0)]
    assert [w.word for w in result.segments[0].words] == ["The", "cat", "sat"]
    assert result.confidence == pytest.approx(0.8)
    request = calls["requests"][0]
    assert request["model"] == "whisper-1"
    assert request["response_format"] == "verbose_json"
    assert request["file"] == ("audio.wav", b"RIFF", "audio/wav")
    assert request["prompt"] == "child reading"
    assert calls["client_kwargs"]["api_key"] == "token"


def test_whisper_transcriber_retries_then_succeeds(monkeypatch):
    calls: dict[str, Any] = {}
    monkeypatch.setattr(
        whisper_module,
        "OpenAI",
        _dummy_openai([RuntimeError("transient"), VERBOSE_RESPONSE], calls),
    )
    monkeypatch.setattr(whisper_module.time, "sleep", lambda _: None)
    transcriber = whisper_module.WhisperTranscriber(WhisperSettings(), api_key="token")

    result = transcriber.transcribe(b"audio")

    assert result.transcript.startswith("The cat")
    assert len(calls["requests"]) == 2


def test_whisper_transcriber_raises_after_exhausting_retries(monkeypatch):
    calls: dict[str, Any] = {}
    errors: list[Any] = [RuntimeError("down"), RuntimeError("still down")]
    monkeypatch.setattr(whisper_module, "OpenAI", _dummy_openai(errors, calls))
    monkeypatch.setattr(whisper_module.time, "sleep", lambda _: None)
    transcriber = whisper_module.WhisperTranscriber(
        WhisperSettings(max_attempts=2), api_key="token"
    )

    with pytest.raises(TranscriptionError):
        transcriber.transcribe(b"audio")


class _FakeRecognitionConfig:
    class AudioEncoding:
        WEBM_OPUS = "WEBM_OPUS"
        LINEAR16 = "LINEAR16"

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs


FAKE_SPEECH = SimpleNamespace(
    RecognitionConfig=_FakeRecognitionConfig,
    RecognitionAudio=lambda **kwargs: kwargs,
    SpeechContext=lambda **kwargs: kwargs,
    SpeechClient=None,
)


def _word(word: str, start: float, end: float) -> SimpleNamespace:
    return SimpleNamespace(
        word=word,
        start_time=timedelta(seconds=start),
        end_time=timedelta(seconds=end),
        confidence=0.9,
    )


class _FakeSpeechClient:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def recognize(self, *, config: Any, audio: Any) -> Any:
        self.requests.append({"config": config, "audio": audio})
        if self.error is not None:
            raise self.error
        return self.response


def test_google_transcriber_builds_segments_from_word_offsets(monkeypatch):
    monkeypatch.setattr(google_module, "_load_speech_module", lambda: FAKE_SPEECH)
    response = SimpleNamespace(
        results=[
            SimpleNamespace(
                alternatives=[
                    SimpleNamespace(
                        transcript="The cat sat.",
                        confidence=0.93,
                        words=[
                            _word("The", 0.1, 0.4),
                            _word("cat", 0.4, 0.8),
                            _word("sat", 0.8, 1.3),
                        ],
                    ),
                    SimpleNamespace(transcript="The hat sat.", confidence=0.41, words=[]),
                ]
            )
        ]
    )
    client = _FakeSpeechClient(response)
    transcriber = google_module.GoogleSpeechTranscriber(
        GoogleSpeechSettings(), client=client
    )

    result = transcriber.transcribe(b"audio", language="en")

    assert result.transcript == "The cat sat."
    assert result.language == "en-US"
    assert result.confidence == pytest.approx(0.93)
    assert len(result.segments) == 1
    assert result.segments[0].start == pytest.approx(0.1)
    assert result.segments[0].end == pytest.approx(1.3)
    assert [alt.transcript for alt in result.alternatives] == ["The hat sat."]
    config = client.requests[0]["config"].kwargs
    assert config["encoding"] == "WEBM_OPUS"
    assert config["model"] == "latest_long"
    assert config["speech_contexts"][0]["boost"] == 10.0


def test_google_transcriber_reports_no_speech(monkeypatch):
    monkeypatch.setattr(google_module, "_load_speech_module", lambda: FAKE_SPEECH)
    transcriber = google_module.GoogleSpeechTranscriber(
        GoogleSpeechSettings(), client=_FakeSpeechClient(SimpleNamespace(results=[]))
    )

    with pytest.raises(NoSpeechDetected):
        transcriber.transcribe(b"audio")


def test_google_transcriber_wraps_api_errors(monkeypatch):
    monkeypatch.setattr(google_module, "_load_speech_module", lambda: FAKE_SPEECH)
    transcriber = google_module.GoogleSpeechTranscriber(
        GoogleSpeechSettings(), client=_FakeSpeechClient(error=RuntimeError("quota"))
    )

    with pytest.raises(TranscriptionError):
        transcriber.transcribe(b"audio")


def test_to_language_code():
    assert google_module.to_language_code("en") == "en-US"
    assert google_module.to_language_code("en-GB") == "en-GB"
    assert google_module.to_language_code("") == "en-US"


def test_child_reading_prompt_mentions_age_and_passage():
    prompt = child_reading_prompt(7, "The dog ran.")

    assert "7-year-old" in prompt
    assert '"The dog ran."' in prompt
    assert "child reading a story aloud" in child_reading_prompt()


def test_resolve_openai_api_key_prefers_explicit_value():
    assert resolve_openai_api_key(WhisperSettings(api_key="explicit"), {}) == "explicit"
    assert resolve_openai_api_key(WhisperSettings(), {"OPENAI_API_KEY": "env"}) == "env"
    assert resolve_openai_api_key(WhisperSettings(), {}) is None


def test_build_transcribers_skips_services_without_credentials(monkeypatch):
    monkeypatch.setattr(whisper_module, "OpenAI", _dummy_openai([], {}))
    config = ScorerConfig()

    transcribers = build_transcribers_from_config(config, environ={"OPENAI_API_KEY": "k"})

    assert sorted(transcribers) == ["whisper"]
    assert build_transcribers_from_config(config, environ={}) == {}


def test_whisper_transcriber_does_not_retry_malformed_response(monkeypatch):
    calls: dict[str, Any] = {}
    monkeypatch.setattr(whisper_module, "OpenAI", _dummy_openai([42, VERBOSE_RESPONSE], calls))
    monkeypatch.setattr(
        whisper_module.time, "sleep", lambda _: pytest.fail("should not back off")
    )
    transcriber = whisper_module.WhisperTranscriber(WhisperSettings(), api_key="token")

    with pytest.raises(TranscriptionError, match="Unexpected Whisper response"):
        transcriber.transcribe(b"audio")
    assert len(calls["requests"]) == 1
