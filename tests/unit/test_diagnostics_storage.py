import sqlite3

from api_server import build_services
from agents.score_extractor import FALLBACK_RESULT
from agents.types import Message
from config.settings import Settings
from llm_gateway import LlmGatewayError
from services.interview import DiagnosticSession, InterviewStage
from services.session_store import InMemorySessionStore
from storage.diagnostics import fetch_diagnostic_result, insert_diagnostic_result, record_session_result
from storage.migrate import migrate


def test_migrate_creates_results_table(tmp_db):
    conn = sqlite3.connect(tmp_db)
    try:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()
    assert "diagnostic_results" in tables


def test_insert_and_fetch(tmp_db):
    insert_diagnostic_result(
        session_id="d1",
        first_name="Alex",
        email="alex@pme.ca",
        sector="Santé",
        scores={"vision": 80, "data": 40},
        grade="C",
        pack="Pack 2",
        summary="Profil équilibré.",
        recommendations=["Former les équipes"],
    )
    record = fetch_diagnostic_result("d1")
    assert record["first_name"] == "Alex"
    assert record["scores"] == {"vision": 80, "data": 40}
    assert record["mean_score"] == 60.0
    assert record["recommendations"] == ["Former les équipes"]
    assert record["timestamp"].endswith("+00:00")
    assert fetch_diagnostic_result("missing") is None


def test_record_session_result_replaces_existing_row(tmp_db):
    session = DiagnosticSession(
        session_id="d2",
        first_name="Sam",
        messages=[Message(role="assistant", content="Bonjour Sam")],
        stage=InterviewStage.COMPLETE,
        result=FALLBACK_RESULT,
    )
    record_session_result(session)
    record_session_result(session)
    conn = sqlite3.connect(tmp_db)
    try:
        count = conn.execute("SELECT COUNT(*) FROM diagnostic_results WHERE session_id = 'd2'").fetchone()[0]
    finally:
        conn.close()
    assert count == 1
    assert fetch_diagnostic_result("d2")["pack"] == "Pack 1"


def test_results_follow_injected_database(tmp_path, stub_completion):
    other_db = str(tmp_path / "other.db")
    migrate(other_db)
    stub = stub_completion({"scoring": LlmGatewayError("down")})
    services = build_services(Settings(DB_PATH=other_db), completion=stub, store=InMemorySessionStore())

    services.interview.start("Sam", session_id="d3")
    for answer in range(7):
        reply = services.interview.chat("d3", f"Réponse {answer}")
    assert reply.is_complete

    assert fetch_diagnostic_result("d3", db_path=other_db)["first_name"] == "Sam"
    assert fetch_diagnostic_result("d3") is None
