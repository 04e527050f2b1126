"""Minimal example: transcribe a recording with Whisper and score it."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from read_aloud_scorer.config import load_config
from read_aloud_scorer.errors import Err
from read_aloud_scorer.service import ReadingService
from read_aloud_scorer.transcription import WhisperTranscriber, resolve_openai_api_key


def main() -> None:
    if len(sys.argv) < 2:
        raise SystemExit("usage: run_whisper_transcription.py AUDIO.webm [CONFIG.yaml]")
    audio_path = Path(sys.argv[1])
    config = load_config(Path(sys.argv[2]) if len(sys.argv) > 2 else None)
    api_key = resolve_openai_api_key(config.whisper)
    if not api_key:
        raise RuntimeError(
            "Set the OpenAI API key before running this example "
            f"({config.whisper.api_key_env})."
        )

    service = ReadingService(
        config, {"whisper": WhisperTranscriber(config.whisper, api_key=api_key)}
    )
    passage = (
        "Once upon a time a little fox found a shiny red ball in the garden. "
        "She rolled it all the way home."
    )
    result = service.recognize(
        audio_path.read_bytes(),
        "audio/webm",
        expected_text=passage,
        service="whisper",
        child_age=7,
    )
    if isinstance(result, Err):
        raise RuntimeError(f"{result.error.kind.value}: {result.error.message}")
    print(json.dumps(result.value.to_dict(), indent=2))


if __name__ == "__main__":
    main()
