"""Tolerant extraction of diagnostic scores from free-form completion text."""
from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from agents.prompts import SCORING_PROMPT, transcript
from agents.types import DiagnosticResult, Grade, Message, Pack, ScoreSet
from llm_gateway import CompletionService, LlmGatewayError

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 3

FALLBACK_RESULT = DiagnosticResult(
    scores=ScoreSet(vision=50, competences=50, gouvernance=50, processus=50, data=50, outils=50),
    grade="C",
    summary="Analyse en cours.",
    recommendations=["Contactez-nous pour plus de détails."],
    pack="Pack 1",
)


def grade_for_mean(mean: float) -> Grade:
    if mean >= 80:
        return "A"
    if mean >= 60:
        return "B"
    if mean >= 40:
        return "C"
    if mean >= 20:
        return "D"
    return "E"


def pack_for_grade(grade: Grade) -> Pack:
    if grade == "A":
        return "Pack 3"
    if grade in ("B", "C"):
        return "Pack 2"
    return "Pack 1"


def first_json_object(text: str) -> Optional[str]:
    """Return the first balanced top-level ``{...}`` region of ``text``.

    Braces inside JSON string literals are ignored so prose, code fences or
    trailing commentary around the object do not confuse the scan.
    """

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def _recommendations(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        raise ValueError("recommendations must be a list")
    cleaned = [item.strip() for item in raw if isinstance(item, str) and item.strip()]
    if not cleaned:
        raise ValueError("recommendations empty")
    return cleaned[:MAX_RECOMMENDATIONS]


def parse_scoring_reply(text: str) -> Optional[DiagnosticResult]:
    """Parse a scoring reply; ``None`` when it is unusable.

    Grade and pack are always recomputed from the scores.
    """

    region = first_json_object(text or "")
    if region is None:
        return None
    try:
        data = json.loads(region)
        if not isinstance(data, dict):
            return None
        scores = ScoreSet.model_validate(data.get("scores"))
        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise ValueError("summary missing")
        recommendations = _recommendations(data.get("recommendations"))
    except (json.JSONDecodeError, ValidationError, ValueError) as exc:
        logger.warning("Scoring reply rejected: %s", exc)
        return None

    grade = grade_for_mean(scores.mean())
    if data.get("grade") not in (None, grade):
        logger.info("Model grade %r overridden by computed grade %s", data.get("grade"), grade)
    return DiagnosticResult(
        scores=scores,
        grade=grade,
        summary=summary.strip(),
        recommendations=recommendations,
        pack=pack_for_grade(grade),
    )


class ScoreExtractor:
    """Run the scoring pass; never raises, always returns a valid result."""

    def __init__(self, completion: Optional[CompletionService]) -> None:
        self.completion = completion

    def extract(self, messages: Sequence[Message]) -> tuple[DiagnosticResult, bool]:
        """Return ``(result, used_fallback)``."""

        if self.completion is None:
            return FALLBACK_RESULT, True
        try:
            reply = self.completion.complete(
                SCORING_PROMPT,
                [{"role": "user", "content": f"Voici la conversation à analyser :\n\n{transcript(messages)}"}],
                route="scoring",
            )
        except LlmGatewayError as exc:
            logger.warning("Scoring call failed: %s", exc)
            return FALLBACK_RESULT, True
        parsed = parse_scoring_reply(reply)
        if parsed is None:
            logger.error("Unparsable scoring reply, using neutral fallback: %.200s", reply)
            return FALLBACK_RESULT, True
        return parsed, False


__all__ = [
    "FALLBACK_RESULT",
    "ScoreExtractor",
    "first_json_object",
    "grade_for_mean",
    "pack_for_grade",
    "parse_scoring_reply",
]
