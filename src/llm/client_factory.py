# src/llm/client_factory.py
"""Resolve a provider name to a configured LLM adapter."""

from __future__ import annotations

import importlib
import logging
from typing import Any, NamedTuple

from cloudbatch.config.settings import Settings
from cloudbatch.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


class _Provider(NamedTuple):
    class_path: str
    setting: str | None
    kwarg: str = "api_key"


_ADAPTERS = "cloudbatch.llm.adapters"

_PROVIDERS: dict[str, _Provider] = {}


class UnsupportedProviderError(ValueError):
    """No adapter is registered under the requested name."""


def available_providers() -> list[str]:
    return sorted(_PROVIDERS)


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: Any,
) -> BaseLLMClient:
    """Build the adapter for ``provider``.

    Credentials (or the Ollama host) come from ``settings`` unless passed
    explicitly in ``kwargs``.

    Raises:
        UnsupportedProviderError: ``provider`` is not registered.
    """
    entry = _PROVIDERS.get(provider)
    if entry is None:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r} "
            f"(available: {', '.join(available_providers())})"
        )

    if settings is not None and entry.setting:
        kwargs.setdefault(entry.kwarg, getattr(settings, entry.setting))

    module_path, _, class_name = entry.class_path.rpartition(".")
    adapter_cls = getattr(importlib.import_module(module_path), class_name)
    logger.debug("LLM client %s/%s", provider, model)
    return adapter_cls(model=model, **kwargs)


def register_provider(
    name: str, class_path: str, setting: str | None = None, kwarg: str = "api_key",
) -> None:
    """Make an adapter available under ``name``.

    ``setting`` names the Settings field passed to the adapter as ``kwarg``.
    """
    _PROVIDERS[name] = _Provider(class_path, setting, kwarg)
    logger.debug("Registered LLM provider %s (%s)", name, class_path)


register_provider("anthropic", f"{_ADAPTERS}.anthropic_adapter.AnthropicAdapter", "anthropic_api_key")
register_provider("openai", f"{_ADAPTERS}.openai_adapter.OpenAIAdapter", "openai_api_key")
register_provider(
    "ollama", f"{_ADAPTERS}.ollama_adapter.OllamaAdapter", "ollama_base_url", kwarg="base_url",
)
