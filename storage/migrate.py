"""SQLite schema migrations."""
from __future__ import annotations

from typing import Iterable, Optional

from .sqlite import get_conn

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS diagnostic_results (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  timestamp TEXT NOT NULL,
  session_id TEXT NOT NULL UNIQUE,
  first_name TEXT NOT NULL,
  email TEXT,
  company TEXT,
  sector TEXT,
  scores_json TEXT NOT NULL,
  mean_score REAL NOT NULL,
  grade TEXT NOT NULL,
  pack TEXT NOT NULL,
  summary TEXT NOT NULL,
  recommendations_json TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_diagnostic_results_grade ON diagnostic_results (grade);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    with get_conn(db_path) as conn:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)


if __name__ == "__main__":
    migrate()
