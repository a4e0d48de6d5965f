"""Observability utilities for the advisor desk services."""
from .logger import log_event

__all__ = ["log_event"]
