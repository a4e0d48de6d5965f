from __future__ import annotations  # Completion service gateway module

import logging
import os
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence, Tuple

from config import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class CompletionService(Protocol):  # Contract consumed by routers and controllers
    def complete(self, system: str, messages: Sequence[Dict[str, str]], *, route: str) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


class CompletionGateway:
    """Read-only completion client built once per process and shared by reference."""

    def __init__(self, routes: Mapping[str, LlmRoute], *, client: Optional[HttpClient] = None) -> None:
        self._routes = dict(routes)
        self._client = client

    def route(self, name: str) -> LlmRoute:
        try:
            return self._routes[name]
        except KeyError as exc:
            raise LlmGatewayError(f"Unknown completion route '{name}'") from exc

    def complete(self, system: str, messages: Sequence[Dict[str, str]], *, route: str) -> str:
        cfg = self.route(route)
        api_key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
        if cfg.api_key_env and not (api_key or "").strip():
            raise LlmGatewayError(f"Completion credentials missing ({cfg.api_key_env})")

        turns = _normalize_messages(messages)
        payload: Dict[str, Any] = {
            "model": cfg.model,
            "max_tokens": cfg.max_tokens,
            "system": system,
            "messages": turns,
        }
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["x-api-key"] = api_key.strip()
        if cfg.api_version:
            headers["anthropic-version"] = cfg.api_version
        headers.update(cfg.extra_headers)

        preview = _preview(turns)
        if len(preview) > 120:
            preview = preview[:117] + "..."
        logger.info("LLM request send route=%s model=%s preview=%s", cfg.name, cfg.model, preview)
        try:
            response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, self._client)
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", exc)
            raise LlmGatewayError("LLM transport failed") from exc
        try:
            if response.status_code >= 400:
                logger.error("LLM error status: %s", response.status_code)
                raise LlmGatewayError(f"LLM returned status {response.status_code}")
            try:
                data = response.json()
            except Exception as exc:  # noqa: BLE001
                logger.error("Invalid JSON payload from LLM: %s", exc)
                raise LlmGatewayError("LLM payload was not JSON") from exc
            content = _extract_content(data)
        finally:
            _close_safely(close_cb)
        logger.info("LLM request done route=%s model=%s chars=%d", cfg.name, cfg.model, len(content))
        return content


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        return client.post(url, json=payload, headers=headers, timeout=timeout), None
    import httpx

    http_client = httpx.Client(timeout=timeout)
    response = http_client.post(url, json=payload, headers=headers)
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        if not content:
            continue
        normalized.append({"role": role, "content": content})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in reversed(messages):
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _extract_content(data: Any) -> str:  # Extract reply text from either messages or chat-completions payloads
    if isinstance(data, dict):
        blocks = data.get("content")
        if isinstance(blocks, list):
            for block in blocks:
                if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
                    return block["text"]
        if isinstance(blocks, str):
            return blocks
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
    raise LlmGatewayError("LLM response missing content")
