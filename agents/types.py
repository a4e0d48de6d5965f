"""Shared type definitions for agents and controllers."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from agents.personas import Persona

Role = Literal["user", "assistant"]
Grade = Literal["A", "B", "C", "D", "E"]
Pack = Literal["Pack 1", "Pack 2", "Pack 3"]

DIMENSIONS = ("vision", "competences", "gouvernance", "processus", "data", "outils")


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    persona: Optional[Persona] = None

    def as_turn(self) -> dict:
        return {"role": self.role, "content": self.content}


class ScoreSet(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    vision: int = Field(ge=0, le=100)
    competences: int = Field(ge=0, le=100)
    gouvernance: int = Field(ge=0, le=100)
    processus: int = Field(ge=0, le=100)
    data: int = Field(ge=0, le=100)
    outils: int = Field(ge=0, le=100)

    def mean(self) -> float:
        return sum(getattr(self, name) for name in DIMENSIONS) / len(DIMENSIONS)


class DiagnosticResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    scores: ScoreSet
    grade: Grade
    summary: str
    recommendations: List[str] = Field(min_length=1)
    pack: Pack
