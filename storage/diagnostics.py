"""Persistence helpers for completed diagnostics."""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .sqlite import get_conn


class DiagnosticResultPayload(BaseModel):
    session_id: str
    first_name: str
    email: Optional[str] = None
    company: Optional[str] = None
    sector: Optional[str] = None
    scores: Dict[str, int]
    grade: str
    pack: str
    summary: str
    recommendations: List[str] = Field(default_factory=list)

    def mean_score(self) -> float:
        if not self.scores:
            return 0.0
        return round(sum(self.scores.values()) / len(self.scores), 1)


def insert_diagnostic_result(*, db_path: Optional[str] = None, **data: Any) -> int:
    """Insert (or replace) the result row for a completed interview."""

    payload = DiagnosticResultPayload(**data)
    with get_conn(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT OR REPLACE INTO diagnostic_results
               (timestamp, session_id, first_name, email, company, sector, scores_json,
                mean_score, grade, pack, summary, recommendations_json)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                dt.datetime.now(dt.timezone.utc).isoformat(),
                payload.session_id,
                payload.first_name,
                payload.email,
                payload.company,
                payload.sector,
                json.dumps(payload.scores),
                payload.mean_score(),
                payload.grade,
                payload.pack,
                payload.summary,
                json.dumps(payload.recommendations, ensure_ascii=False),
            ),
        )
        return int(cur.lastrowid)


def fetch_diagnostic_result(session_id: str, db_path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    with get_conn(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM diagnostic_results WHERE session_id = ?",
            (session_id,),
        ).fetchone()
    if row is None:
        return None
    record = dict(row)
    record["scores"] = json.loads(record.pop("scores_json"))
    record["recommendations"] = json.loads(record.pop("recommendations_json"))
    return record


def record_session_result(session, db_path: Optional[str] = None) -> int:
    """Adapter used by the interview controller once a session completes."""

    result = session.result
    return insert_diagnostic_result(
        db_path=db_path,
        session_id=session.session_id,
        first_name=session.first_name,
        email=session.email,
        company=session.company,
        sector=session.sector,
        scores=result.scores.model_dump(),
        grade=result.grade,
        pack=result.pack,
        summary=result.summary,
        recommendations=list(result.recommendations),
    )


__all__ = ["DiagnosticResultPayload", "fetch_diagnostic_result", "insert_diagnostic_result", "record_session_result"]
