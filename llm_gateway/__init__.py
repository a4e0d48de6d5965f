from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import CompletionGateway, CompletionService, HttpClient, HttpResponse, LlmGatewayError

__all__ = ["CompletionGateway", "CompletionService", "HttpClient", "HttpResponse", "LlmGatewayError"]
