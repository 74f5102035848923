"""Hosted provider catalog shown on the admin models page."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

from .errors import ValidationError
from .models import ProviderConfig, parse_model

logger = logging.getLogger(__name__)

DEFAULT_PROVIDERS: dict[str, dict[str, Any]] = {
    "groq": {
        "api_key_env": "GROQ_API_KEY",
        "models": ["llama3-70b-8192", "llama3-8b-8192", "mixtral-8x7b-32768"],
    },
    "openai": {
        "api_key_env": "OPENAI_API_KEY",
        "models": ["gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"],
    },
    "anthropic": {
        "api_key_env": "ANTHROPIC_API_KEY",
        "models": ["claude-3-5-sonnet-20241022", "claude-3-haiku-20240307"],
    },
    "xai": {
        "api_key_env": "XAI_API_KEY",
        "models": ["grok-beta"],
    },
}


class ProviderCatalog:
    """Provider name -> API key and model list. Keys never leave the process."""

    def __init__(self, providers: dict[str, ProviderConfig] | None = None):
        self._lock = threading.Lock()
        if providers is None:
            providers = {
                name: ProviderConfig(api_key=os.getenv(preset["api_key_env"], ""), models=list(preset["models"]))
                for name, preset in DEFAULT_PROVIDERS.items()
            }
        self._providers: dict[str, ProviderConfig] = dict(providers)

    def available(self) -> list[str]:
        """Providers that have an API key configured."""
        with self._lock:
            return [name for name, config in self._providers.items() if config.api_key]

    def public_view(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {
                name: {"apiKeyConfigured": bool(config.api_key), "models": list(config.models)}
                for name, config in self._providers.items()
            }

    def update(self, updates: dict[str, Any]) -> dict[str, dict[str, Any]]:
        """Merge per-provider updates; omitted fields keep their current value."""
        if not isinstance(updates, dict) or not updates:
            raise ValidationError("Body must map provider names to their settings")
        merged: dict[str, ProviderConfig] = {}
        for name, raw in updates.items():
            name = str(name).strip().lower()
            if not name:
                raise ValidationError("Provider name must not be blank")
            if not isinstance(raw, dict):
                raise ValidationError(f"Settings for '{name}' must be an object")
            with self._lock:
                current = self._providers.get(name, ProviderConfig())
            merged[name] = parse_model(ProviderConfig, {**current.to_wire(), **raw})

        with self._lock:
            self._providers.update(merged)
        for name, config in merged.items():
            if config.api_key:
                logger.info("Provider %s updated (%d models)", name, len(config.models))
            else:
                logger.warning("Provider %s has no API key configured; it cannot serve requests", name)
        return self.public_view()
