from __future__ import annotations  # FastAPI application factory for the advisor desk

import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agents.redirector import MidConversationRedirector
from agents.router import SmartRouter
from agents.score_extractor import ScoreExtractor
from api.routes import Services, diagnostic_router, team_router
from api.schemas import ErrorDetail, ErrorResp
from config import Settings, resolve_routes, settings
from llm_gateway import CompletionGateway, CompletionService
from services.conference import ConferenceService
from services.conversation import ConversationController
from services.deliverable import DeliverableService
from services.errors import InvalidMessage
from services.interview import InterviewController
from services.session_store import SessionStore, build_session_store
from storage.diagnostics import record_session_result
from storage.migrate import migrate


logger = logging.getLogger(__name__)


def build_services(
    cfg: Settings = settings,
    *,
    completion: Optional[CompletionService] = None,
    store: Optional[SessionStore] = None,
) -> Services:  # Wire controllers around one shared completion client and session store
    if completion is None:
        completion = CompletionGateway(resolve_routes(cfg))
    if store is None:
        store = build_session_store(cfg)
    router = SmartRouter.build(completion, confident_hits=cfg.ROUTER_CONFIDENCE_HITS)
    return Services(
        conversation=ConversationController(
            store,
            completion,
            router,
            MidConversationRedirector(),
            ttl_seconds=cfg.SESSION_TTL_SECONDS,
        ),
        interview=InterviewController(
            store,
            completion,
            ScoreExtractor(completion),
            record_result=partial(record_session_result, db_path=cfg.DB_PATH),
            ttl_seconds=cfg.SESSION_TTL_SECONDS,
        ),
        conference=ConferenceService(completion),
        deliverable=DeliverableService(completion),
    )


def _field(loc) -> str:  # Join a pydantic error location, dropping the body prefix
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    payload = ErrorResp(
        error="invalid request",
        details=[ErrorDetail(field=_field(err.get("loc", ())), message=err.get("msg", "")) for err in exc.errors()],
    )
    return JSONResponse(status_code=400, content=payload.model_dump())


async def _invalid_message(request: Request, exc: InvalidMessage) -> JSONResponse:
    payload = ErrorResp(error="invalid request", details=[ErrorDetail(field=exc.field, message=str(exc))])
    return JSONResponse(status_code=400, content=payload.model_dump())


def create_app(services: Optional[Services] = None, cfg: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        migrate(cfg.DB_PATH)
        yield

    app = FastAPI(title="Advisor Desk API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.services = services or build_services(cfg)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(InvalidMessage, _invalid_message)
    app.include_router(team_router)
    app.include_router(diagnostic_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8000)
