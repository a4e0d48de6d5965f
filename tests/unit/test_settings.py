import json

from config import ROUTE_NAMES, Settings, resolve_routes


def test_default_routes_cover_every_purpose():
    routes = resolve_routes(Settings(LLM_ROUTES_PATH=None))
    assert set(routes) == set(ROUTE_NAMES)
    assert routes["router"].max_tokens == 10
    assert routes["deliverable"].max_tokens == 2000
    assert routes["scoring"].api_key_env == "ANTHROPIC_API_KEY"


def test_route_file_overrides_defaults(tmp_path):
    path = tmp_path / "routes.json"
    path.write_text(
        json.dumps(
            {
                "llm_routes": {
                    "scoring": {
                        "name": "scoring",
                        "base_url": "http://localhost:8080",
                        "endpoint": "/v1/chat/completions",
                        "model": "local-model",
                        "timeout_s": 60,
                        "api_key_env": None,
                    }
                }
            }
        ),
        encoding="utf-8",
    )
    routes = resolve_routes(Settings(LLM_ROUTES_PATH=str(path)))
    assert routes["scoring"].model == "local-model"
    assert routes["scoring"].api_key_env is None
    assert routes["router"].model == Settings().LLM_MODEL


def test_allowed_origins_split():
    cfg = Settings(ALLOWED_ORIGINS="http://a.test, http://b.test,")
    assert cfg.allowed_origins() == ["http://a.test", "http://b.test"]


def test_interview_length_is_fixed():
    from agents.prompts import QUESTIONS
    from services.interview import TOTAL_QUESTIONS

    assert TOTAL_QUESTIONS == len(QUESTIONS) == 7
    assert "INTERVIEW_QUESTIONS" not in Settings.model_fields
