from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AnalyzeRequest(_CamelModel):
    transcript: str
    expected_text: str = Field(alias="expectedText")
    child_age: Optional[int] = Field(default=None, alias="childAge", ge=1, le=18)


class MistakeIn(_CamelModel):
    position: Optional[int] = None
    expected: str = ""
    actual: str = ""
    type: Optional[str] = None


class FeedbackRequest(_CamelModel):
    accuracy: float = Field(ge=0, le=100)
    words_per_minute: float = Field(alias="wordsPerMinute", ge=0)
    mistakes: List[MistakeIn] = Field(default_factory=list)
    reading_time: float = Field(default=0.0, alias="readingTime", ge=0)
    child_name: Optional[str] = Field(default=None, alias="childName")
    story_title: Optional[str] = Field(default=None, alias="storyTitle")


class SuccessResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    service: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    kind: str
