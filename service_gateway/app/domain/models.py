"""
Request and response models for the gateway routes.
"""

import json
from typing import Any, List, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.errors import ValidationError


def _optional_identifier(value: Union[str, int, None]) -> Optional[str]:
    """Accept string or numeric identifiers; blank values mean "not given"."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


class KeywordIdeasRequest(BaseModel):
    """Body of ``POST /keyword-ideas``."""

    model_config = ConfigDict(extra="ignore")

    keyword: Optional[str] = None
    regionId: Optional[str] = None
    languageId: Optional[str] = None
    pageSize: int = Field(default=15, ge=1, le=10000)

    @field_validator("regionId", "languageId", mode="before")
    @classmethod
    def _coerce_identifier(cls, value):
        return _optional_identifier(value)

    @field_validator("pageSize", mode="before")
    @classmethod
    def _default_page_size(cls, value):
        return 15 if value is None else value


class TopResultsRequest(BaseModel):
    """Body of ``POST /top-results``."""

    model_config = ConfigDict(extra="ignore")

    q: Optional[str] = None
    languageId: Optional[str] = None
    regionId: Optional[str] = None

    @field_validator("regionId", "languageId", mode="before")
    @classmethod
    def _coerce_identifier(cls, value):
        return _optional_identifier(value)


class KeywordIdea(BaseModel):
    keyword: str
    avgMonthlySearches: int
    competitionIndex: int


class KeywordIdeasResponse(BaseModel):
    elapsedMs: int
    results: List[KeywordIdea]
    nextPageToken: Optional[str] = None


class SearchResult(BaseModel):
    title: str
    link: str
    displayLink: str


class SearchParams(BaseModel):
    lr: Optional[str] = None
    cr: Optional[str] = None


class TopResultsResponse(BaseModel):
    results: List[SearchResult]
    params: SearchParams
    q: str
    paramsUsed: str
    serpKey: str


def parse_request_body(model, body: Any, required_field: str, message: str):
    """Decode and validate a request body, rejecting a blank required field.

    ``body`` may be the raw bytes of the request or an already decoded value.
    """
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body) if body else None
        except ValueError as exc:
            raise ValidationError("Request body must be valid JSON", details=str(exc)) from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        request = model.model_validate(body)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid request body",
            details=[
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ],
        ) from exc
    value = getattr(request, required_field)
    if not value or not value.strip():
        raise ValidationError(message)
    return request
