"""Substring keyword scoring against per-persona taxonomies."""
from __future__ import annotations

from typing import Dict, Iterable, Mapping

from agents.personas import PERSONA_ORDER, PERSONAS, Persona

Taxonomy = Mapping[Persona, Iterable[str]]


def routing_taxonomy() -> Dict[Persona, tuple[str, ...]]:
    return {persona: PERSONAS[persona].routing_keywords for persona in PERSONA_ORDER}


def redirect_taxonomy() -> Dict[Persona, tuple[str, ...]]:
    return {persona: PERSONAS[persona].redirect_keywords for persona in PERSONA_ORDER}


def score_keywords(text: str, taxonomy: Taxonomy) -> Dict[Persona, int]:
    """Count, per persona, how many distinct phrases occur anywhere in ``text``.

    Matching is case-insensitive substring search; a phrase repeated in the
    text still counts once.
    """

    sample = (text or "").lower()
    scores: Dict[Persona, int] = {}
    for persona, phrases in taxonomy.items():
        unique = {phrase.lower() for phrase in phrases if phrase}
        scores[persona] = sum(1 for phrase in unique if phrase in sample)
    return scores


class KeywordScorer:
    def __init__(self, taxonomy: Taxonomy | None = None) -> None:
        self.taxonomy = taxonomy if taxonomy is not None else routing_taxonomy()

    def score(self, text: str) -> Dict[Persona, int]:
        return score_keywords(text, self.taxonomy)


__all__ = ["KeywordScorer", "Taxonomy", "redirect_taxonomy", "routing_taxonomy", "score_keywords"]
