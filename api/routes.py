"""FastAPI routes for persona chat, conference mode, deliverables and the diagnostic interview."""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import (
    ConferenceEntry,
    ConferenceReq,
    ConferenceResp,
    DeliverableContentResp,
    DeliverableReq,
    DeliverableResp,
    DiagnosticChatReq,
    DiagnosticChatResp,
    DiagnosticStartReq,
    DiagnosticStartResp,
    DiagnosticStatusResp,
    TeamChatReq,
    TeamChatResp,
)
from agents.prompts import greeting
from services.conference import ConferenceService
from services.conversation import ConversationController
from services.deliverable import DeliverableService
from services.errors import SessionNotFound
from services.interview import InterviewController
from services.session_store import SessionStoreError


@dataclass(frozen=True)
class Services:
    conversation: ConversationController
    interview: InterviewController
    conference: ConferenceService
    deliverable: DeliverableService


def get_services(request: Request) -> Services:
    return request.app.state.services


team_router = APIRouter(prefix="/api/team")
diagnostic_router = APIRouter(prefix="/api/diagnostic")


@team_router.post("/chat", response_model=TeamChatResp)
def team_chat(req: TeamChatReq, services: Services = Depends(get_services)) -> TeamChatResp:
    reply = services.conversation.handle(
        str(req.session_id),
        req.message,
        req.persona,
        returning_user=req.is_returning_user,
    )
    return TeamChatResp(
        message=reply.message,
        persona=reply.persona.value,
        persona_name=reply.persona_name,
        persona_role=reply.persona_role,
        persona_changed=reply.persona_changed,
        auto_routed=reply.auto_routed,
        is_greeting=reply.is_greeting,
        turn_count=reply.turn_count,
        articles_cited=reply.articles_cited,
    )


@team_router.post("/conference", response_model=ConferenceResp)
def team_conference(req: ConferenceReq, services: Services = Depends(get_services)) -> ConferenceResp:
    answers = services.conference.ask(req.message, req.conversation_context)
    return ConferenceResp(
        question=req.message,
        responses=[
            ConferenceEntry(
                persona=answer.persona.value,
                persona_name=answer.persona_name,
                persona_role=answer.persona_role,
                color=answer.color,
                message=answer.message,
            )
            for answer in answers
        ],
    )


@team_router.post("/deliverable", response_model=DeliverableResp)
def team_deliverable(req: DeliverableReq, services: Services = Depends(get_services)) -> DeliverableResp:
    deliverable = services.deliverable.generate(
        req.type,
        req.conversation_context,
        user_name=req.user_name,
        company_name=req.company_name,
        sector=req.sector,
    )
    return DeliverableResp(
        agent=deliverable.persona.value,
        agent_name=deliverable.persona_name,
        deliverable_type=deliverable.deliverable_type,
        content=DeliverableContentResp.model_validate(deliverable.content.model_dump()),
        generated=deliverable.generated,
    )


@diagnostic_router.post("/start", response_model=DiagnosticStartResp)
def diagnostic_start(req: DiagnosticStartReq, services: Services = Depends(get_services)) -> DiagnosticStartResp:
    if req.website and req.website.strip():
        # honeypot filled: answer like a success without creating state
        return DiagnosticStartResp(session_id=str(uuid.uuid4()), first_name=req.first_name, greeting=greeting(req.first_name))
    session = services.interview.start(
        req.first_name,
        email=req.email,
        sector=req.sector,
        company=req.company,
    )
    return DiagnosticStartResp(
        session_id=session.session_id,
        first_name=session.first_name,
        greeting=session.messages[0].content,
    )


@diagnostic_router.post("/chat", response_model=DiagnosticChatResp, response_model_exclude_none=True)
def diagnostic_chat(req: DiagnosticChatReq, services: Services = Depends(get_services)) -> DiagnosticChatResp:
    reply = services.interview.chat(str(req.session_id), req.message)
    return DiagnosticChatResp.model_validate(reply.model_dump())


@diagnostic_router.get("/{session_id}", response_model=DiagnosticStatusResp, response_model_exclude_none=True)
def diagnostic_status(session_id: uuid.UUID, services: Services = Depends(get_services)) -> DiagnosticStatusResp:
    try:
        session = services.interview.status(str(session_id))
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="session not found")
    except SessionStoreError:
        raise HTTPException(status_code=503, detail="session store unavailable")
    result = session.result
    return DiagnosticStatusResp(
        session_id=session.session_id,
        first_name=session.first_name,
        sector=session.sector,
        message=session.messages[-1].content if session.messages else "",
        is_complete=session.is_complete,
        question_count=session.question_count,
        scores=result.scores if result else None,
        grade=result.grade if result else None,
        summary=result.summary if result else None,
        recommendations=list(result.recommendations) if result else None,
        pack=result.pack if result else None,
    )
