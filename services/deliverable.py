"""Persona-owned mini deliverables generated from a conversation excerpt."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from agents.personas import Persona, get_profile
from agents.score_extractor import first_json_object
from llm_gateway import CompletionService, LlmGatewayError
from services.errors import InvalidMessage
from services.sanitizer import sanitize_message

logger = logging.getLogger(__name__)

DeliverableType = Literal["prioritization", "tool-comparison", "project-planning"]

UNAVAILABLE_TEXT = "Le livrable n'a pas pu être généré pour le moment. Réessaie dans quelques instants."


class DeliverableSection(BaseModel):
    heading: str = Field(min_length=1)
    content: List[str] = Field(default_factory=list)


class DeliverableContent(BaseModel):
    title: str = Field(min_length=1)
    sections: List[DeliverableSection] = Field(min_length=1)


class Deliverable(BaseModel):
    persona: Persona
    persona_name: str
    deliverable_type: DeliverableType
    content: DeliverableContent
    generated: bool = True


@dataclass(frozen=True)
class DeliverableSpec:
    persona: Persona
    label: str
    sections: tuple[str, ...]


DELIVERABLES: Dict[str, DeliverableSpec] = {
    "prioritization": DeliverableSpec(
        persona=Persona.STRATEGY,
        label="Fiche de Priorisation IA",
        sections=(
            "Contexte et Objectifs",
            "Top 3 Cas d'Usage Prioritaires",
            "Critères de Priorisation (impact, faisabilité, adoption, délai)",
            "Pack recommandé et justification",
            "Prochaines Étapes",
        ),
    ),
    "tool-comparison": DeliverableSpec(
        persona=Persona.TECHNICAL,
        label="Comparatif Outils IA",
        sections=(
            "Besoin Identifié",
            "Options Analysées (forces, limites, coût estimé, idéal pour)",
            "Synthèse Comparative",
            "Recommandation Technique",
        ),
    ),
    "project-planning": DeliverableSpec(
        persona=Persona.PROJECT,
        label="Planning Projet IA",
        sections=(
            "Périmètre du Projet",
            "Phase 1 : Cadrage (semaines 1-2)",
            "Phase 2 : Conception (semaines 3-4)",
            "Phase 3 : Développement (semaines 5-10)",
            "Phase 4 : Déploiement (semaines 11-12)",
            "Équipe Projet Côté Client",
            "Facteurs Clés de Succès",
        ),
    ),
}


def deliverable_prompt(kind: str, context: str) -> str:
    spec = DELIVERABLES[kind]
    profile = get_profile(spec.persona)
    headings = "\n".join(f"- {heading}" for heading in spec.sections)
    return (
        f"Tu es {profile.name}, {profile.role.lower()}. Rédige une « {spec.label} » personnalisée "
        "à partir de la conversation ci-dessous.\n\n"
        "Réponds UNIQUEMENT avec un JSON valide de la forme :\n"
        '{"title": "...", "sections": [{"heading": "...", "content": ["ligne 1", "ligne 2"]}]}\n\n'
        f"Sections attendues, dans cet ordre :\n{headings}\n\n"
        f"Contexte de la conversation :\n{context}"
    )


def enrich_context(
    context: str,
    *,
    user_name: Optional[str] = None,
    company_name: Optional[str] = None,
    sector: Optional[str] = None,
) -> str:
    lines = [context]
    if user_name:
        lines.append(f"Nom du visiteur : {user_name}")
    if company_name:
        lines.append(f"Entreprise : {company_name}")
    if sector:
        lines.append(f"Secteur : {sector}")
    return "\n".join(lines)


def parse_deliverable(text: str) -> Optional[DeliverableContent]:
    region = first_json_object(text or "")
    if region is None:
        return None
    try:
        return DeliverableContent.model_validate(json.loads(region))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Deliverable reply rejected: %s", exc)
        return None


def fallback_content(kind: str, text: str) -> DeliverableContent:
    """Wrap raw model text (or an apology) in a single-section deliverable."""

    return DeliverableContent(
        title=f"Livrable {kind} - Génération",
        sections=[DeliverableSection(heading="Contenu généré", content=[text.strip() or UNAVAILABLE_TEXT])],
    )


class DeliverableService:
    def __init__(
        self,
        completion: Optional[CompletionService],
        *,
        sanitize: Callable[[str], str] = sanitize_message,
    ) -> None:
        self.completion = completion
        self.sanitize = sanitize

    def generate(
        self,
        kind: DeliverableType,
        context: str,
        *,
        user_name: Optional[str] = None,
        company_name: Optional[str] = None,
        sector: Optional[str] = None,
    ) -> Deliverable:
        spec = DELIVERABLES[kind]
        clean = self.sanitize(context)
        if not clean:
            raise InvalidMessage(
                "conversation context is empty once control tokens are removed",
                field="conversationContext",
            )

        prompt = deliverable_prompt(
            kind,
            enrich_context(clean, user_name=user_name, company_name=company_name, sector=sector),
        )
        reply = ""
        if self.completion is not None:
            try:
                reply = self.completion.complete(
                    get_profile(spec.persona).system_prompt,
                    [{"role": "user", "content": prompt}],
                    route="deliverable",
                )
            except LlmGatewayError as exc:
                logger.warning("Deliverable completion unavailable for %s: %s", kind, exc)

        content = parse_deliverable(reply)
        generated = content is not None
        if content is None:
            content = fallback_content(kind, reply)
        return Deliverable(
            persona=spec.persona,
            persona_name=get_profile(spec.persona).name,
            deliverable_type=kind,
            content=content,
            generated=generated,
        )


__all__ = [
    "DELIVERABLES",
    "Deliverable",
    "DeliverableContent",
    "DeliverableSection",
    "DeliverableService",
    "DeliverableType",
    "deliverable_prompt",
    "enrich_context",
    "fallback_content",
    "parse_deliverable",
]
