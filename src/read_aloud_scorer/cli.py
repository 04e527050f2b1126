from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, TypedDict

import pandas as pd
import typer
import uvicorn
import yaml

from .api import create_app
from .config import ScorerConfig, load_config
from .errors import Err
from .metrics import overall_score
from .models import TimingSegment, WordTiming
from .service import ReadingService
from .transcription import build_transcribers_from_config

app = typer.Typer(help="Read Aloud Scorer CLI.", no_args_is_help=True)

LOGGER = logging.getLogger(__name__)

# Audio suffixes the transcribe command can send, mapped to MIME types.
AUDIO_CONTENT_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/m4a",
    ".webm": "audio/webm",
}

REQUIRED_BATCH_COLUMNS = ("expected_text", "transcript")
MIN_CHILD_AGE = 1
MAX_CHILD_AGE = 18


class SessionRow(TypedDict):
    session_id: str
    accuracy: float | None
    fluency_score: float | None
    words_per_minute: float | None
    overall_score: int | None
    mistakes: int | None
    error: str | None


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."
    ),
) -> None:
    """Score children's read-aloud attempts."""
    ctx.ensure_object(dict)["log_level"] = log_level.upper()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def score(
    expected_text: str | None = typer.Option(None, "--expected-text", "-e"),
    expected_file: Path | None = typer.Option(
        None, "--expected-file", exists=True, readable=True, dir_okay=False
    ),
    transcript: str | None = typer.Option(None, "--transcript", "-t"),
    transcript_file: Path | None = typer.Option(
        None, "--transcript-file", exists=True, readable=True, dir_okay=False
    ),
    segments: Path | None = typer.Option(
        None,
        "--segments",
        exists=True,
        readable=True,
        dir_okay=False,
        help="JSON list of timing segments ({start, end, confidence, words}).",
    ),
    child_age: int | None = typer.Option(None, "--child-age", min=1, max=18),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Score a transcript against the expected passage and emit JSON."""
    cfg = load_config(config)
    expected = _resolve_text(expected_text, expected_file, "expected text")
    actual = _resolve_text(transcript, transcript_file, "transcript")
    timing = _load_segments(segments) if segments is not None else None

    result = ReadingService(cfg).analyze_transcript(
        actual, expected, child_age=child_age, segments=timing
    )
    if isinstance(result, Err):
        raise typer.BadParameter(result.error.message)
    typer.echo(json.dumps(result.value.to_dict(), indent=2, ensure_ascii=False))


@app.command("score-batch")
def score_batch(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, help="CSV or JSONL of sessions."
    ),
    output_path: Path | None = typer.Option(
        None, "--output-path", help="Optional CSV to write per-session scores to."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Score many sessions and emit a JSON summary."""
    cfg = load_config(config)
    frame = _read_sessions(input_path)
    missing = [col for col in REQUIRED_BATCH_COLUMNS if col not in frame.columns]
    if missing:
        raise typer.BadParameter(f"Input is missing required columns: {', '.join(missing)}")

    service = ReadingService(cfg)
    rows: List[SessionRow] = []
    for index, record in enumerate(frame.to_dict(orient="records")):
        session_id = _cell_text(record.get("session_id")) or str(index)
        try:
            child_age = _cell_age(record.get("child_age"))
        except ValueError as exc:
            LOGGER.info("Skipping session %s: %s", session_id, exc)
            rows.append(_empty_row(session_id, str(exc)))
            continue
        result = service.analyze_transcript(
            _cell_text(record.get("transcript")),
            _cell_text(record.get("expected_text")),
            child_age=child_age,
        )
        if isinstance(result, Err):
            LOGGER.info("Skipping session %s: %s", session_id, result.error.message)
            rows.append(_empty_row(session_id, result.error.message))
            continue
        analysis = result.value.analysis
        rows.append(
            {
                "session_id": session_id,
                "accuracy": analysis.accuracy,
                "fluency_score": analysis.fluency_score,
                "words_per_minute": analysis.words_per_minute,
                "overall_score": result.value.feedback.overall_score,
                "mistakes": len(analysis.mistakes),
                "error": None,
            }
        )

    results = pd.DataFrame(rows, columns=list(SessionRow.__annotations__))
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        results.to_csv(output_path, index=False)

    typer.echo(json.dumps({"sessions": rows, "summary": _summarize(results)}, indent=2))


@app.command()
def transcribe(
    audio_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    expected_text: str | None = typer.Option(None, "--expected-text", "-e"),
    service_name: str | None = typer.Option(
        None, "--service", "-s", help="Speech service to use ('google' or 'whisper')."
    ),
    child_age: int | None = typer.Option(None, "--child-age", min=1, max=18),
    language: str | None = typer.Option(None, "--language"),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Transcribe a recording, scoring it when the expected passage is given."""
    cfg = load_config(config)
    content_type = AUDIO_CONTENT_TYPES.get(audio_path.suffix.lower())
    if content_type is None:
        raise typer.BadParameter(f"Unsupported audio file type: {audio_path.suffix}")
    service = ReadingService(cfg, build_transcribers_from_config(cfg))
    result = service.recognize(
        audio_path.read_bytes(),
        content_type,
        expected_text=expected_text,
        service=service_name,
        child_age=child_age,
        language=language,
    )
    if isinstance(result, Err):
        typer.echo(f"{result.error.kind.value}: {result.error.message}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result.value.to_dict(), indent=2, ensure_ascii=False))


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Run the HTTP API, logging at the level given to --log-level."""
    cfg = load_config(config)
    service = ReadingService(cfg, build_transcribers_from_config(cfg))
    log_level = (ctx.obj or {}).get("log_level", "WARNING")
    LOGGER.info("Starting API with services: %s", service.available_services)
    uvicorn.run(create_app(service), host=host, port=port, log_level=log_level.lower())


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = ScorerConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False, allow_unicode=True))


def main() -> None:
    app()


def _resolve_text(value: str | None, path: Path | None, label: str) -> str:
    """Prefer an inline value, otherwise read the file."""
    if value is not None:
        return value
    if path is not None:
        return path.read_text(encoding="utf-8")
    raise typer.BadParameter(f"Provide the {label} inline or as a file.")


def _load_segments(path: Path) -> List[TimingSegment]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Segments file is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise typer.BadParameter("Segments file must contain a JSON list.")
    segments: List[TimingSegment] = []
    for item in raw:
        try:
            segments.append(
                TimingSegment(
                    start=float(item["start"]),
                    end=float(item["end"]),
                    confidence=float(item.get("confidence", 0.0)),
                    text=str(item.get("text", "")),
                    words=[
                        WordTiming(
                            word=str(word["word"]),
                            start=float(word["start"]),
                            end=float(word["end"]),
                            confidence=float(word.get("confidence", 0.0)),
                        )
                        for word in item.get("words", [])
                    ],
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise typer.BadParameter(f"Invalid timing segment {item!r}: {exc}") from exc
    return segments


def _read_sessions(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in {".jsonl", ".ndjson"}:
        return pd.read_json(path, lines=True, dtype=False)
    return pd.read_csv(path, dtype=str)


def _cell_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value)


def _cell_age(value: Any) -> int | None:
    """Parse an optional child_age cell; raises ValueError outside 1-18."""
    text = _cell_text(value).strip()
    if not text:
        return None
    try:
        age = int(float(text))
    except (ValueError, OverflowError):
        raise ValueError(f"child_age must be a whole number, got {text!r}") from None
    if not MIN_CHILD_AGE <= age <= MAX_CHILD_AGE:
        raise ValueError(
            f"child_age must be between {MIN_CHILD_AGE} and {MAX_CHILD_AGE}, got {age}"
        )
    return age


def _empty_row(session_id: str, error: str) -> SessionRow:
    return {
        "session_id": session_id,
        "accuracy": None,
        "fluency_score": None,
        "words_per_minute": None,
        "overall_score": None,
        "mistakes": None,
        "error": error,
    }


def _summarize(results: pd.DataFrame) -> Dict[str, Any]:
    scored = results[results["error"].isna()]
    if scored.empty:
        return {"sessions": len(results), "scored": 0}
    mean_accuracy = float(scored["accuracy"].mean())
    mean_fluency = float(scored["fluency_score"].mean())
    return {
        "sessions": len(results),
        "scored": len(scored),
        "mean_accuracy": mean_accuracy,
        "mean_fluency": mean_fluency,
        "mean_overall": overall_score(mean_accuracy, mean_fluency),
    }


if __name__ == "__main__":
    main()
