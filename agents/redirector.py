"""Mid-conversation persona re-evaluation with hysteresis."""
from __future__ import annotations

from typing import Dict, Optional

from agents.keyword_scorer import KeywordScorer, redirect_taxonomy
from agents.personas import PERSONA_ORDER, Persona


class MidConversationRedirector:
    """Suggest a hand-off only when a challenger clearly out-scores the current persona.

    Uses the narrower redirect taxonomy. A challenger must score at least one
    hit and strictly more than the current persona on the same message.
    """

    def __init__(self, scorer: Optional[KeywordScorer] = None) -> None:
        self.scorer = scorer or KeywordScorer(redirect_taxonomy())

    def scores(self, message: str) -> Dict[Persona, int]:
        return self.scorer.score(message)

    def evaluate(self, message: str, current: Persona) -> Optional[Persona]:
        scores = self.scores(message)
        current_score = scores.get(current, 0)
        challenger: Optional[Persona] = None
        best = 0
        for persona in PERSONA_ORDER:
            if persona == current:
                continue
            score = scores.get(persona, 0)
            if score > best:
                challenger, best = persona, score
        if challenger is not None and best >= 1 and best > current_score:
            return challenger
        return None


__all__ = ["MidConversationRedirector"]
