"""Conference mode: every persona answers the same question in a fixed order."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel

from agents.personas import PERSONA_ORDER, Persona, PersonaProfile, get_profile
from llm_gateway import CompletionService, LlmGatewayError
from services.conversation import canned_reply
from services.errors import InvalidMessage
from services.sanitizer import sanitize_message

logger = logging.getLogger(__name__)

_OVERRIDE = """

## MODE CONFÉRENCE (PRIORITAIRE)
Tu es en réunion d'équipe avec tes collègues et vous répondez ENSEMBLE au client.
1. Tu réponds directement depuis TON expertise, sans rediriger vers un collègue
2. Tu apportes ta perspective unique de {role}
3. Deux à trois phrases maximum, à la première personne
"""


class ConferenceAnswer(BaseModel):
    persona: Persona
    persona_name: str
    persona_role: str
    color: str
    message: str


def conference_prompt(profile: PersonaProfile, previous: List[str], context: Optional[str] = None) -> str:
    prompt = profile.system_prompt
    if context:
        prompt += f"\n\n## CONTEXTE DE LA CONVERSATION PRÉCÉDENTE\n{context}"
    prompt += _OVERRIDE.format(role=profile.role)
    if previous:
        prompt += (
            "\n## CE QUE TES COLLÈGUES ONT DIT :\n"
            + "\n\n".join(previous)
            + "\n\nComplète leurs propos avec TA perspective. Ne répète pas ce qu'ils ont dit."
        )
    else:
        prompt += f"\nTu es le premier à parler. Donne ta perspective de {profile.role} sur la question."
    return prompt


class ConferenceService:
    def __init__(
        self,
        completion: Optional[CompletionService],
        *,
        sanitize: Callable[[str], str] = sanitize_message,
    ) -> None:
        self.completion = completion
        self.sanitize = sanitize

    def ask(self, message: str, context: Optional[str] = None) -> List[ConferenceAnswer]:
        text = self.sanitize(message)
        if not text:
            raise InvalidMessage("message is empty once control tokens are removed")
        clean_context = self.sanitize(context) if context else None

        answers: List[ConferenceAnswer] = []
        for persona in PERSONA_ORDER:
            profile = get_profile(persona)
            previous = [f"{answer.persona_name} ({answer.persona_role}) : {answer.message}" for answer in answers]
            answers.append(
                ConferenceAnswer(
                    persona=persona,
                    persona_name=profile.name,
                    persona_role=profile.role,
                    color=profile.color,
                    message=self._answer(profile, text, previous, clean_context),
                )
            )
        return answers

    def _answer(self, profile: PersonaProfile, text: str, previous: List[str], context: Optional[str]) -> str:
        if self.completion is not None:
            try:
                reply = self.completion.complete(
                    conference_prompt(profile, previous, context),
                    [{"role": "user", "content": text}],
                    route="conference",
                )
                if reply.strip():
                    return reply.strip()
            except LlmGatewayError as exc:
                logger.warning("Conference completion unavailable for %s: %s", profile.persona.value, exc)
        return canned_reply(profile, 1)


__all__ = ["ConferenceAnswer", "ConferenceService", "conference_prompt"]
