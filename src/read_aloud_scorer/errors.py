from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories surfaced by the service layer."""

    INVALID_INPUT = "invalid_input"
    UNSUPPORTED_MEDIA = "unsupported_media"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UPSTREAM_FAILURE = "upstream_failure"


@dataclass(slots=True, frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str


@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(slots=True, frozen=True)
class Err:
    error: ServiceError


Result = Union[Ok[T], Err]


def fail(kind: ErrorKind, message: str) -> Err:
    return Err(ServiceError(kind=kind, message=message))


class TranscriptionError(RuntimeError):
    """Raised when a speech-to-text collaborator fails."""


class NoSpeechDetected(TranscriptionError):
    """Raised when the recognizer returns no usable speech for the audio."""
