from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from .errors import Err, ErrorKind, ServiceError
from .schemas import AnalyzeRequest, ErrorResponse, FeedbackRequest, SuccessResponse
from .service import ReadingService

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UNSUPPORTED_MEDIA: 415,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
    ErrorKind.UPSTREAM_FAILURE: 502,
}

router = APIRouter(prefix="/speech", tags=["speech"])


def get_service(request: Request) -> ReadingService:
    return request.app.state.reading_service


def error_response(error: ServiceError) -> JSONResponse:
    status = STATUS_BY_KIND[error.kind]
    if status >= 500:
        logger.warning("Request failed with %s: %s", error.kind.value, error.message)
    body = ErrorResponse(error=error.message, kind=error.kind.value)
    return JSONResponse(status_code=status, content=body.model_dump())


@router.post("/analyze", response_model=SuccessResponse)
def analyze(req: AnalyzeRequest, service: ReadingService = Depends(get_service)):
    result = service.analyze_transcript(
        req.transcript, req.expected_text, child_age=req.child_age
    )
    if isinstance(result, Err):
        return error_response(result.error)
    return SuccessResponse(data=result.value.to_dict())


@router.post("/recognize", response_model=SuccessResponse)
async def recognize(
    audio: UploadFile = File(...),
    expected_text: Optional[str] = Form(default=None, alias="expectedText"),
    speech_service: Optional[str] = Form(default=None, alias="service"),
    child_age: Optional[int] = Form(default=None, alias="childAge", ge=1, le=18),
    language: Optional[str] = Form(default=None),
    service: ReadingService = Depends(get_service),
):
    content = await audio.read()
    name = speech_service or service.config.default_service
    result = service.recognize(
        content,
        audio.content_type or "",
        expected_text=expected_text,
        service=name,
        child_age=child_age,
        language=language,
    )
    if isinstance(result, Err):
        return error_response(result.error)
    return SuccessResponse(data=result.value.to_dict(), service=name)


@router.post("/feedback", response_model=SuccessResponse)
def feedback(req: FeedbackRequest, service: ReadingService = Depends(get_service)):
    result = service.session_feedback(
        req.accuracy,
        req.words_per_minute,
        [m.model_dump() for m in req.mistakes],
        req.reading_time,
    )
    if isinstance(result, Err):
        return error_response(result.error)
    return SuccessResponse(data=result.value.to_dict())


def create_app(service: ReadingService | None = None) -> FastAPI:
    """Build the HTTP application around an injected ReadingService."""
    app = FastAPI(title="Read Aloud Scorer API")
    app.state.reading_service = service or ReadingService()
    app.include_router(router)

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "services": app.state.reading_service.available_services,
        }

    return app
