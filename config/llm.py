from __future__ import annotations  # Configuration schema for completion routes

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field

from .settings import Settings

ROUTE_NAMES = ("router", "persona_chat", "interview", "scoring", "conference", "deliverable")

_DEFAULT_MAX_TOKENS: Dict[str, int] = {
    "router": 10,
    "persona_chat": 1000,
    "interview": 500,
    "scoring": 1000,
    "conference": 400,
    "deliverable": 2000,
}


class LlmRoute(BaseModel):  # Completion endpoint configuration
    name: str
    base_url: str
    endpoint: str = "/v1/messages"
    model: str
    timeout_s: float = Field(ge=0.1)
    max_tokens: int = Field(default=1000, ge=1)
    api_key_env: str | None = None
    api_version: str | None = "2023-06-01"
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):  # Route table root
    llm_routes: Dict[str, LlmRoute]


def load_config(path: Path) -> AppConfig:  # Load route table from disk
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def default_routes(cfg: Settings) -> Dict[str, LlmRoute]:  # Derive one route per purpose from settings
    return {
        name: LlmRoute(
            name=name,
            base_url=cfg.LLM_BASE_URL,
            model=cfg.LLM_MODEL,
            timeout_s=cfg.LLM_TIMEOUT_S,
            max_tokens=_DEFAULT_MAX_TOKENS[name],
            api_key_env=cfg.LLM_API_KEY_ENV,
        )
        for name in ROUTE_NAMES
    }


def resolve_routes(cfg: Settings) -> Dict[str, LlmRoute]:  # Prefer the JSON route file, fill gaps from settings
    routes = default_routes(cfg)
    if cfg.LLM_ROUTES_PATH:
        loaded = load_config(Path(cfg.LLM_ROUTES_PATH))
        routes.update(loaded.llm_routes)
    return routes
