"""Per-session persona conversation state machine."""
from __future__ import annotations

import logging
import re
import time
from enum import Enum
from typing import Callable, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from agents.personas import Persona, PersonaProfile, get_profile
from agents.redirector import MidConversationRedirector
from agents.router import SmartRouter
from agents.types import Message
from config.settings import settings
from llm_gateway import CompletionService, LlmGatewayError
from observability import log_event
from services.articles import find_relevant_articles, format_citation
from services.errors import InvalidMessage
from services.sanitizer import sanitize_message
from services.session_store import TEAM_PREFIX, SessionStore, SessionStoreError, session_key

logger = logging.getLogger(__name__)

AUTO = "auto"
Selector = Union[Persona, Literal["auto"]]

GREETING_TOKENS = (
    "bonjour", "bonsoir", "salut", "coucou", "hello", "hi", "hey",
    "merci", "thanks", "thank you", "ok", "okay", "d'accord", "au revoir", "bye",
)
_GREETING_RE = re.compile(
    r"^(?:" + "|".join(re.escape(token) for token in GREETING_TOKENS) + r")[\s!?.,]*$",
    re.IGNORECASE,
)
HANDOFF_WINDOW = 6
FALLBACK_REPLY = "Une erreur est survenue. Pouvez-vous reformuler ?"


def is_greeting_only(text: str) -> bool:
    return bool(_GREETING_RE.match((text or "").strip()))


class ConversationPhase(str, Enum):
    NEW = "new"
    ACTIVE = "active"
    SWITCHING = "switching"


class ConversationSession(BaseModel):
    session_id: str
    messages: List[Message] = Field(min_length=1)
    current_persona: Persona
    created_at: float

    @model_validator(mode="after")
    def _persona_matches_last_reply(self) -> "ConversationSession":
        for message in reversed(self.messages):
            if message.role == "assistant":
                if message.persona != self.current_persona:
                    raise ValueError("current_persona must match the latest assistant message")
                break
        return self

    def append(self, message: Message) -> None:
        self.messages.append(message)
        if message.role == "assistant" and message.persona is not None:
            self.current_persona = message.persona

    def user_turns(self) -> int:
        return sum(1 for message in self.messages if message.role == "user")


class ConversationReply(BaseModel):
    message: str
    persona: Persona
    persona_name: str
    persona_role: str
    persona_changed: bool = False
    auto_routed: bool = False
    is_greeting: bool = False
    turn_count: int
    articles_cited: List[str] = Field(default_factory=list)


def handoff_narration(messages: List[Message], previous: Optional[Persona], incoming: Persona) -> str:
    """Synthesize the hand-off line shown when ``incoming`` takes over."""

    profile = get_profile(incoming)
    recent = messages[-HANDOFF_WINDOW:]
    if len(recent) <= 1:
        return profile.greeting
    previous_name = get_profile(previous).name if previous is not None and previous != incoming else "mon collègue"
    return (
        f"Salut ! C'est {profile.name}. Je vois que tu discutais avec {previous_name}. "
        f"Je peux reprendre sur les aspects {profile.role.lower()}. Comment puis-je t'aider ?"
    )


def completion_turns(messages: List[Message]) -> List[dict]:
    """History replayed to the completion service: user-first, alternating roles."""

    turns: List[dict] = []
    for message in messages:
        if not message.content:
            continue
        if not turns and message.role == "assistant":
            continue
        if turns and turns[-1]["role"] == message.role:
            turns[-1]["content"] += "\n\n" + message.content
            continue
        turns.append(message.as_turn())
    return turns


class ConversationController:
    def __init__(
        self,
        store: SessionStore,
        completion: Optional[CompletionService],
        router: SmartRouter,
        redirector: Optional[MidConversationRedirector] = None,
        *,
        ttl_seconds: Optional[int] = None,
        sanitize: Callable[[str], str] = sanitize_message,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.completion = completion
        self.router = router
        self.redirector = redirector or MidConversationRedirector()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SESSION_TTL_SECONDS
        self.sanitize = sanitize
        self.clock = clock

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self, session_id: str) -> Optional[ConversationSession]:
        raw = self.store.get(session_key(TEAM_PREFIX, session_id))
        if raw is None:
            return None
        try:
            return ConversationSession.model_validate(raw)
        except ValueError as exc:
            logger.warning("Discarding invalid team session %s: %s", session_id, exc)
            return None

    def save(self, session: ConversationSession) -> None:
        self.store.set(session_key(TEAM_PREFIX, session.session_id), session.model_dump(mode="json"), self.ttl_seconds)

    def phase(self, session: Optional[ConversationSession], target: Persona) -> ConversationPhase:
        if session is None:
            return ConversationPhase.NEW
        if session.current_persona != target:
            return ConversationPhase.SWITCHING
        return ConversationPhase.ACTIVE

    # ------------------------------------------------------------------
    # Turn handling
    # ------------------------------------------------------------------
    def handle(
        self,
        session_id: str,
        message: str,
        selector: Selector = AUTO,
        *,
        returning_user: bool = False,
    ) -> ConversationReply:
        text = self.sanitize(message)
        if not text:
            raise InvalidMessage("message is empty once control tokens are removed")
        auto_routed = selector == AUTO
        if auto_routed:
            decision = self.router.decide(text)
            target = decision.persona
            log_event("route", session_id, persona=target.value, source=decision.source)
        else:
            target = Persona(selector)

        try:
            session = self.load(session_id)
        except SessionStoreError as exc:
            # answer this turn only; the stored session stays untouched
            logger.warning("Team session %s unreadable, replying without saving: %s", session_id, exc)
            return self._open(session_id, text, target, auto_routed, returning_user, persist=False)
        if session is None:
            return self._open(session_id, text, target, auto_routed, returning_user)

        redirect = self.redirector.evaluate(text, target)
        if redirect is not None and redirect != target:
            log_event("redirect", session_id, persona=redirect.value, previous=target.value)
            target = redirect

        changed = self.phase(session, target) is ConversationPhase.SWITCHING
        if changed:
            previous = session.current_persona
            narration = handoff_narration(session.messages, previous, target)
            session.append(Message(role="assistant", content=narration, persona=target))
            log_event("handoff", session_id, persona=target.value, previous=previous.value)

        return self._answer(session, text, target, auto_routed=auto_routed, changed=changed)

    def _open(
        self,
        session_id: str,
        text: str,
        target: Persona,
        auto_routed: bool,
        returning_user: bool,
        *,
        persist: bool = True,
    ) -> ConversationReply:
        profile = get_profile(target)
        greeting = profile.returning_greeting() if returning_user else profile.greeting
        session = ConversationSession(
            session_id=session_id,
            messages=[Message(role="assistant", content=greeting, persona=target)],
            current_persona=target,
            created_at=self.clock(),
        )
        if text and not is_greeting_only(text):
            return self._answer(session, text, target, auto_routed=auto_routed, changed=False, persist=persist)

        if persist:
            self.save(session)
        log_event("turn", session_id, persona=target.value, source="greeting")
        return ConversationReply(
            message=greeting,
            persona=target,
            persona_name=profile.name,
            persona_role=profile.role,
            auto_routed=auto_routed,
            is_greeting=True,
            turn_count=len(session.messages),
        )

    def _answer(
        self,
        session: ConversationSession,
        text: str,
        target: Persona,
        *,
        auto_routed: bool,
        changed: bool,
        persist: bool = True,
    ) -> ConversationReply:
        profile = get_profile(target)
        session.append(Message(role="user", content=text))
        reply = self._complete(session, profile)
        articles = find_relevant_articles(text, target)
        reply += format_citation(articles)
        session.append(Message(role="assistant", content=reply, persona=target))
        if persist:
            self.save(session)
        log_event("turn", session.session_id, persona=target.value, source="completion")
        return ConversationReply(
            message=reply,
            persona=target,
            persona_name=profile.name,
            persona_role=profile.role,
            persona_changed=changed,
            auto_routed=auto_routed,
            turn_count=len(session.messages),
            articles_cited=[article.slug for article in articles],
        )

    def _complete(self, session: ConversationSession, profile: PersonaProfile) -> str:
        if self.completion is not None:
            try:
                reply = self.completion.complete(
                    profile.system_prompt,
                    completion_turns(session.messages),
                    route="persona_chat",
                )
                return reply.strip() or FALLBACK_REPLY
            except LlmGatewayError as exc:
                logger.warning("Persona completion unavailable for %s: %s", profile.persona.value, exc)
        return canned_reply(profile, session.user_turns())


def canned_reply(profile: PersonaProfile, user_turns: int) -> str:
    index = min(max(user_turns - 1, 0), len(profile.canned_replies) - 1)
    return profile.canned_replies[index]


__all__ = [
    "AUTO",
    "ConversationController",
    "ConversationPhase",
    "ConversationReply",
    "ConversationSession",
    "GREETING_TOKENS",
    "canned_reply",
    "completion_turns",
    "handoff_narration",
    "is_greeting_only",
]
