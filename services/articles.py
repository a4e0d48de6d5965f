"""Static article index used to append reading suggestions to persona answers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from agents.personas import Persona

PERSONA_BONUS = 1
KEYWORD_POINTS = 2
MIN_SCORE = 3


@dataclass(frozen=True)
class Article:
    slug: str
    title: str
    keywords: Tuple[str, ...]
    personas: Tuple[Persona, ...]
    summary: str


ARTICLES: Tuple[Article, ...] = (
    Article(
        slug="gouvernance-ia-pme",
        title="Gouvernance IA : par où commencer pour une PME ?",
        keywords=(
            "gouvernance", "règles", "politique", "encadrement", "charte", "déploiement", "commencer",
            "débuter", "premier pas", "pme", "organisation", "cadre", "bonnes pratiques",
        ),
        personas=(Persona.STRATEGY, Persona.PROJECT),
        summary="Les 5 règles fondamentales de gouvernance IA pour une PME.",
    ),
    Article(
        slug="loi-25-ia",
        title="Loi 25 et IA : ce que les PME doivent savoir",
        keywords=(
            "loi 25", "loi25", "rgpd", "conformité", "données personnelles", "vie privée", "consentement",
            "québec", "légal", "juridique", "protection", "confidentialité", "réglementation",
        ),
        personas=(Persona.STRATEGY, Persona.PROJECT),
        summary="Documenter les usages IA, informer les utilisateurs et protéger les données personnelles.",
    ),
    Article(
        slug="shadow-ai-risques",
        title="Shadow AI : les risques cachés de ChatGPT en entreprise",
        keywords=(
            "shadow ai", "chatgpt", "risque", "risques", "employés", "usage", "non contrôlé", "encadrer",
            "bloquer", "sécurité", "fuite", "données", "confidentialité", "copilot", "claude",
        ),
        personas=(Persona.STRATEGY, Persona.TECHNICAL),
        summary="Offrir des outils encadrés plutôt qu'interdire limite les fuites de données.",
    ),
)


def _score(article: Article, question: str, persona: Optional[Persona]) -> int:
    score = PERSONA_BONUS if persona is not None and persona in article.personas else 0
    for keyword in article.keywords:
        if keyword in question:
            score += KEYWORD_POINTS
    return score


def find_relevant_articles(question: str, persona: Optional[Persona] = None, max_results: int = 1) -> List[Article]:
    lowered = (question or "").lower()
    scored = [(article, _score(article, lowered, persona)) for article in ARTICLES]
    kept = [pair for pair in scored if pair[1] >= MIN_SCORE]
    kept.sort(key=lambda pair: pair[1], reverse=True)
    return [article for article, _ in kept[:max_results]]


def format_citation(articles: List[Article]) -> str:
    if not articles:
        return ""
    lines = [
        f'Pour en savoir plus, consulte notre article "{article.title}" sur notre blog (/blog/{article.slug}).'
        for article in articles
    ]
    return "\n\n" + "\n".join(lines)


__all__ = ["ARTICLES", "Article", "find_relevant_articles", "format_citation"]
