"""YAML-driven stripping of role markers and control tokens from visitor text."""
from __future__ import annotations

import os
import re
import time
from typing import List, Optional

import yaml

from config.settings import settings

DEFAULT_CONFIG: dict = {
    "version": 1,
    "patterns": [
        r"(?i)\[SYSTEM\]",
        r"(?i)\[ASSISTANT\]",
        r"(?i)\[USER\]",
        r"(?i)\[DIAGNOSTIC_COMPLETE\]",
        r"<\|.*?\|>",
        r"```",
    ],
    "normalizers": ["strip_whitespace", "collapse_spaces"],
}


def _load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


class InputSanitizer:
    """Compile strip patterns from YAML and apply them to inbound messages."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or settings.SANITIZER_CONFIG
        self._mtime = 0.0
        self._config: dict = {}
        self._compiled: List[re.Pattern[str]] = []
        self.reload_if_changed(force=True)

    # ------------------------------------------------------------------
    # Loading & compilation
    # ------------------------------------------------------------------
    def reload_if_changed(self, force: bool = False) -> None:
        """Reload YAML configuration when the file timestamp changes."""

        try:
            stat = os.stat(self.path)
            if not force and stat.st_mtime <= self._mtime:
                return
            cfg = _load_yaml(self.path)
            self._mtime = stat.st_mtime
        except FileNotFoundError:
            if not force and self._compiled:
                return
            cfg = DEFAULT_CONFIG
            self._mtime = time.time()

        self._config = cfg
        patterns = cfg.get("patterns") or DEFAULT_CONFIG["patterns"]
        self._compiled = [re.compile(pattern) for pattern in patterns]

    # ------------------------------------------------------------------
    # Normalization helpers
    # ------------------------------------------------------------------
    def _normalize(self, text: str) -> str:
        ops = self._config.get("normalizers", [])
        sample = text
        if "collapse_spaces" in ops:
            sample = re.sub(r"[ \t]{2,}", " ", sample)
        if "strip_whitespace" in ops:
            sample = sample.strip()
        return sample

    def sanitize(self, text: str) -> str:
        self.reload_if_changed()
        sample = text or ""
        # removing one token can splice the remains of another back together
        previous = None
        while sample != previous:
            previous = sample
            for pattern in self._compiled:
                sample = pattern.sub("", sample)
        return self._normalize(sample)


_sanitizer: Optional[InputSanitizer] = None


def input_sanitizer() -> InputSanitizer:
    global _sanitizer
    if _sanitizer is None:
        _sanitizer = InputSanitizer()
    return _sanitizer


def sanitize_message(text: str) -> str:
    """Convenience wrapper around the shared sanitizer."""

    return input_sanitizer().sanitize(text)


__all__ = ["DEFAULT_CONFIG", "InputSanitizer", "input_sanitizer", "sanitize_message"]
