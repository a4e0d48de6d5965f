"""Persona routing: keyword rules, completion-assisted routing and the composed policy."""
from __future__ import annotations

import logging
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from agents.keyword_scorer import KeywordScorer
from agents.personas import DEFAULT_PERSONA, PERSONA_ORDER, ROUTER_SYSTEM_PROMPT, Persona, parse_persona
from llm_gateway import CompletionService, LlmGatewayError

logger = logging.getLogger(__name__)

CONFIDENT_HITS = 2

RouteSource = Literal["keywords", "completion", "fallback"]


class RouteDecision(BaseModel):
    persona: Persona
    source: RouteSource
    scores: Dict[Persona, int] = Field(default_factory=dict)


def _best(scores: Dict[Persona, int], default: Persona) -> Persona:
    top = max(scores.values(), default=0)
    if top == 0 or scores.get(default, 0) == top:
        return default
    for persona in PERSONA_ORDER:
        if scores.get(persona, 0) == top:
            return persona
    return default


class RuleBasedRouter:
    """Highest keyword score wins; the default persona wins every tie."""

    def __init__(self, scorer: Optional[KeywordScorer] = None, default: Persona = DEFAULT_PERSONA) -> None:
        self.scorer = scorer or KeywordScorer()
        self.default = default

    def decide(self, message: str) -> RouteDecision:
        scores = self.scorer.score(message)
        return RouteDecision(persona=_best(scores, self.default), source="keywords", scores=scores)

    def route(self, message: str) -> Persona:
        return self.decide(message).persona


class CompletionRouter:
    """Ask the completion service for a persona id, falling back to keyword rules."""

    def __init__(self, completion: Optional[CompletionService], fallback: RuleBasedRouter) -> None:
        self.completion = completion
        self.fallback = fallback

    def decide(self, message: str) -> RouteDecision:
        if self.completion is None:
            return self._fallback(message, "completion service not configured")
        try:
            reply = self.completion.complete(
                ROUTER_SYSTEM_PROMPT,
                [{"role": "user", "content": message}],
                route="router",
            )
        except LlmGatewayError as exc:
            return self._fallback(message, str(exc))
        persona = parse_persona(reply)
        if persona is None:
            return self._fallback(message, f"unrecognized router reply {reply!r}")
        return RouteDecision(persona=persona, source="completion")

    def _fallback(self, message: str, reason: str) -> RouteDecision:
        logger.warning("Completion routing unavailable, using keyword rules: %s", reason)
        decision = self.fallback.decide(message)
        return RouteDecision(persona=decision.persona, source="fallback", scores=decision.scores)


class SmartRouter:
    """Use the keyword result when it is confident, otherwise defer to the completion router."""

    def __init__(
        self,
        rules: RuleBasedRouter,
        completion_router: CompletionRouter,
        confident_hits: int = CONFIDENT_HITS,
    ) -> None:
        self.rules = rules
        self.completion_router = completion_router
        self.confident_hits = confident_hits

    @classmethod
    def build(cls, completion: Optional[CompletionService], confident_hits: int = CONFIDENT_HITS) -> "SmartRouter":
        rules = RuleBasedRouter()
        return cls(rules, CompletionRouter(completion, rules), confident_hits)

    def decide(self, message: str) -> RouteDecision:
        decision = self.rules.decide(message)
        if max(decision.scores.values(), default=0) >= self.confident_hits:
            return decision
        deferred = self.completion_router.decide(message)
        if not deferred.scores:
            deferred = deferred.model_copy(update={"scores": decision.scores})
        return deferred

    def route(self, message: str) -> Persona:
        return self.decide(message).persona


__all__ = ["CONFIDENT_HITS", "CompletionRouter", "RouteDecision", "RuleBasedRouter", "SmartRouter"]
