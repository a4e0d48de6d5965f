"""Pydantic schemas for the team chat and diagnostic APIs."""
from __future__ import annotations

from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from agents.prompts import SECTORS
from agents.types import Grade, Pack, ScoreSet
from config.settings import settings
from services.deliverable import DeliverableType

PersonaSelector = Literal["lea", "marc", "sophie", "auto"]
Sector = Literal[SECTORS]  # type: ignore[valid-type]
EMAIL_PATTERN = r"^\s*[^\s@]+@[^\s@]+\.[^\s@]+\s*$"


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TeamChatReq(ApiModel):
    session_id: UUID
    persona: PersonaSelector = "auto"
    message: str = Field(min_length=1, max_length=settings.MAX_MESSAGE_CHARS)
    is_returning_user: bool = False


class TeamChatResp(ApiModel):
    message: str
    persona: str
    persona_name: str
    persona_role: str
    persona_changed: bool
    auto_routed: bool
    is_greeting: bool
    turn_count: int
    articles_cited: List[str] = Field(default_factory=list)


class ConferenceReq(ApiModel):
    session_id: Optional[UUID] = None
    message: str = Field(min_length=1, max_length=settings.MAX_MESSAGE_CHARS)
    conversation_context: Optional[str] = Field(default=None, max_length=8000)


class ConferenceEntry(ApiModel):
    persona: str
    persona_name: str
    persona_role: str
    color: str
    message: str


class ConferenceResp(ApiModel):
    question: str
    mode: Literal["conference"] = "conference"
    responses: List[ConferenceEntry]


class DiagnosticStartReq(ApiModel):
    first_name: str = Field(min_length=2, max_length=50)
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN)
    company: Optional[str] = Field(default=None, max_length=100)
    sector: Sector
    website: Optional[str] = None

    @field_validator("first_name", "company")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class DiagnosticStartResp(ApiModel):
    session_id: str
    first_name: str
    greeting: str


class DiagnosticChatReq(ApiModel):
    session_id: UUID
    message: str = Field(min_length=1, max_length=settings.MAX_MESSAGE_CHARS)


class DiagnosticChatResp(ApiModel):
    message: str
    is_complete: bool
    question_count: int
    scores: Optional[ScoreSet] = None
    grade: Optional[Grade] = None
    summary: Optional[str] = None
    recommendations: Optional[List[str]] = None
    pack: Optional[Pack] = None


class DiagnosticStatusResp(DiagnosticChatResp):
    session_id: str
    first_name: str
    sector: Optional[str] = None
    message: str = ""


class DeliverableReq(ApiModel):
    type: DeliverableType
    conversation_context: str = Field(min_length=1, max_length=8000)
    user_name: Optional[str] = Field(default=None, max_length=50)
    company_name: Optional[str] = Field(default=None, max_length=100)
    sector: Optional[str] = Field(default=None, max_length=100)


class DeliverableSectionResp(ApiModel):
    heading: str
    content: List[str]


class DeliverableContentResp(ApiModel):
    title: str
    sections: List[DeliverableSectionResp]


class DeliverableResp(ApiModel):
    success: bool = True
    agent: str
    agent_name: str
    deliverable_type: DeliverableType
    content: DeliverableContentResp
    generated: bool


class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorResp(BaseModel):
    error: str
    details: List[ErrorDetail] = Field(default_factory=list)
