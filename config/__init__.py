"""Configuration package for the advisor desk services."""
from .llm import AppConfig, LlmRoute, ROUTE_NAMES, default_routes, load_config, resolve_routes
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "ROUTE_NAMES",
    "default_routes",
    "load_config",
    "resolve_routes",
    "Settings",
    "settings",
]
