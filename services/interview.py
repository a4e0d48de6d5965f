"""Seven-question diagnostic interview state machine."""
from __future__ import annotations

import logging
import re
import time
import uuid
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from agents.prompts import (
    COMPLETION_SENTINEL,
    PLACEHOLDER_FIRST_NAME,
    QUESTIONS,
    greeting,
    interview_system_prompt,
    scripted_reply,
)
from agents.score_extractor import ScoreExtractor
from agents.types import DiagnosticResult, Grade, Message, Pack, ScoreSet
from config.settings import settings
from llm_gateway import CompletionService, LlmGatewayError
from observability import log_event
from services.conversation import completion_turns
from services.errors import InvalidMessage, SessionNotFound
from services.sanitizer import sanitize_message
from services.session_store import DIAGNOSTIC_PREFIX, SessionStore, SessionStoreError, session_key

logger = logging.getLogger(__name__)

TOTAL_QUESTIONS = len(QUESTIONS)
ALREADY_COMPLETE_MESSAGE = "Le diagnostic est déjà terminé."
_SENTINEL_RE = re.compile(re.escape(COMPLETION_SENTINEL), re.IGNORECASE)


class InterviewStage(str, Enum):
    Q1 = "q1"
    Q2 = "q2"
    Q3 = "q3"
    Q4 = "q4"
    Q5 = "q5"
    Q6 = "q6"
    Q7 = "q7"
    COMPLETE = "complete"

    @property
    def question_number(self) -> int:
        if self is InterviewStage.COMPLETE:
            return TOTAL_QUESTIONS
        return int(self.value[1:])

    @classmethod
    def for_question(cls, number: int) -> "InterviewStage":
        if not 1 <= number <= TOTAL_QUESTIONS:
            raise ValueError(f"question number out of range: {number}")
        return cls(f"q{number}")


def next_stage(stage: InterviewStage) -> InterviewStage:
    """Advance one question; the last question only leaves through ``complete``."""

    if stage is InterviewStage.COMPLETE:
        raise ValueError("interview already complete")
    if stage.question_number >= TOTAL_QUESTIONS:
        return stage
    return InterviewStage.for_question(stage.question_number + 1)


class DiagnosticSession(BaseModel):
    session_id: str
    first_name: str = PLACEHOLDER_FIRST_NAME
    email: Optional[str] = None
    sector: Optional[str] = None
    company: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    stage: InterviewStage = InterviewStage.Q1
    result: Optional[DiagnosticResult] = None
    created_at: float = Field(default_factory=time.time)

    @model_validator(mode="after")
    def _result_iff_complete(self) -> "DiagnosticSession":
        if (self.result is not None) != (self.stage is InterviewStage.COMPLETE):
            raise ValueError("result must be present exactly when the interview is complete")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def question_count(self) -> int:
        return self.stage.question_number

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_complete(self) -> bool:
        return self.stage is InterviewStage.COMPLETE

    def answers(self) -> int:
        return sum(1 for message in self.messages if message.role == "user")

    def complete(self, result: DiagnosticResult) -> None:
        if self.stage is InterviewStage.COMPLETE:
            raise ValueError("interview already complete")
        self.result = result
        self.stage = InterviewStage.COMPLETE


class InterviewReply(BaseModel):
    message: str
    is_complete: bool
    question_count: int
    scores: Optional[ScoreSet] = None
    grade: Optional[Grade] = None
    summary: Optional[str] = None
    recommendations: Optional[List[str]] = None
    pack: Optional[Pack] = None

    @classmethod
    def from_session(cls, session: DiagnosticSession, message: str) -> "InterviewReply":
        result = session.result
        if result is None:
            return cls(message=message, is_complete=session.is_complete, question_count=session.question_count)
        return cls(
            message=message,
            is_complete=True,
            question_count=session.question_count,
            scores=result.scores,
            grade=result.grade,
            summary=result.summary,
            recommendations=list(result.recommendations),
            pack=result.pack,
        )


def strip_sentinel(text: str) -> tuple[str, bool]:
    found = bool(_SENTINEL_RE.search(text or ""))
    return _SENTINEL_RE.sub("", text or "").strip(), found


ResultRecorder = Callable[[DiagnosticSession], None]


def _new_session(
    first_name: str,
    *,
    email: Optional[str] = None,
    sector: Optional[str] = None,
    company: Optional[str] = None,
    session_id: Optional[str] = None,
) -> DiagnosticSession:
    return DiagnosticSession(
        session_id=session_id or str(uuid.uuid4()),
        first_name=first_name,
        email=email,
        sector=sector,
        company=company,
        messages=[Message(role="assistant", content=greeting(first_name))],
    )


class InterviewController:
    def __init__(
        self,
        store: SessionStore,
        completion: Optional[CompletionService],
        extractor: Optional[ScoreExtractor] = None,
        *,
        record_result: Optional[ResultRecorder] = None,
        ttl_seconds: Optional[int] = None,
        sanitize: Callable[[str], str] = sanitize_message,
    ) -> None:
        self.store = store
        self.completion = completion
        self.extractor = extractor or ScoreExtractor(completion)
        self.record_result = record_result
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SESSION_TTL_SECONDS
        self.sanitize = sanitize

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self, session_id: str) -> Optional[DiagnosticSession]:
        raw = self.store.get(session_key(DIAGNOSTIC_PREFIX, session_id))
        if raw is None:
            return None
        try:
            return DiagnosticSession.model_validate(raw)
        except ValueError as exc:
            logger.warning("Discarding invalid diagnostic session %s: %s", session_id, exc)
            return None

    def save(self, session: DiagnosticSession) -> None:
        self.store.set(
            session_key(DIAGNOSTIC_PREFIX, session.session_id),
            session.model_dump(mode="json"),
            self.ttl_seconds,
        )

    def status(self, session_id: str) -> DiagnosticSession:
        session = self.load(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    # ------------------------------------------------------------------
    # Flow
    # ------------------------------------------------------------------
    def start(
        self,
        first_name: str,
        *,
        email: Optional[str] = None,
        sector: Optional[str] = None,
        company: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> DiagnosticSession:
        session = _new_session(first_name, email=email, sector=sector, company=company, session_id=session_id)
        self.save(session)
        log_event("interview_start", session.session_id, question_count=session.question_count)
        return session

    def chat(self, session_id: str, message: str) -> InterviewReply:
        text = self.sanitize(message)
        if not text:
            raise InvalidMessage("message is empty once control tokens are removed")

        persist = True
        try:
            session = self.load(session_id)
        except SessionStoreError as exc:
            # reply from a throwaway session so the stored one is never overwritten
            logger.warning("Diagnostic session %s unreadable, replying without saving: %s", session_id, exc)
            session, persist = _new_session(PLACEHOLDER_FIRST_NAME, session_id=session_id), False
        if session is None:
            session = self.start(PLACEHOLDER_FIRST_NAME, session_id=session_id)

        if session.is_complete:
            log_event("interview_reentry", session_id, grade=session.result.grade if session.result else None)
            return InterviewReply.from_session(session, ALREADY_COMPLETE_MESSAGE)

        session.messages.append(Message(role="user", content=text))
        raw_reply = self._complete(session)
        reply, signalled = strip_sentinel(raw_reply)

        if session.answers() >= TOTAL_QUESTIONS:
            if not signalled:
                logger.warning("Final answer received without completion marker for %s", session_id)
            session.messages.append(Message(role="assistant", content=reply))
            self._finish(session)
        else:
            if signalled:
                logger.warning(
                    "Ignoring early completion marker for %s at question %d", session_id, session.question_count
                )
            session.messages.append(Message(role="assistant", content=reply))
            session.stage = next_stage(session.stage)
            log_event("interview_turn", session_id, question_count=session.question_count)

        if persist:
            self.save(session)
        return InterviewReply.from_session(session, reply)

    def _complete(self, session: DiagnosticSession) -> str:
        if self.completion is not None:
            try:
                return self.completion.complete(
                    interview_system_prompt(session.first_name),
                    completion_turns(session.messages),
                    route="interview",
                )
            except LlmGatewayError as exc:
                logger.warning("Interview completion unavailable: %s", exc)
        return scripted_reply(session.answers(), session.first_name)

    def _finish(self, session: DiagnosticSession) -> None:
        result, used_fallback = self.extractor.extract(session.messages)
        if used_fallback:
            log_event("scoring_fallback", session.session_id)
        session.complete(result)
        log_event(
            "interview_complete",
            session.session_id,
            grade=result.grade,
            pack=result.pack,
            scores=result.scores.model_dump(),
        )
        if self.record_result is not None:
            try:
                self.record_result(session)
            except Exception as exc:  # noqa: BLE001
                logger.error("Could not record diagnostic result for %s: %s", session.session_id, exc)


__all__ = [
    "ALREADY_COMPLETE_MESSAGE",
    "DiagnosticSession",
    "InterviewController",
    "InterviewReply",
    "InterviewStage",
    "TOTAL_QUESTIONS",
    "next_stage",
    "strip_sentinel",
]
