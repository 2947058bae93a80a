# src/llm/client_factory.py — v3
"""Factory: instantiate an LLM client from a provider name.

Clients are built from explicit Settings (API keys, base URLs, timeout);
there are no module-level client singletons.
"""

from __future__ import annotations

import importlib
import logging
from typing import Callable

from repodoc.config.settings import Settings
from repodoc.llm.base_client import BaseLLMClient
from repodoc.llm.config import resolve_llm

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "openai": "repodoc.llm.adapters.openai_adapter.OpenAIAdapter",
    "groq": "repodoc.llm.adapters.openai_adapter.OpenAIAdapter",
    "anthropic": "repodoc.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "ollama": "repodoc.llm.adapters.ollama_adapter.OllamaAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (openai, groq, anthropic, ollama).
        model: Model name.
        settings: Application settings (API keys, endpoints, timeout).
        **kwargs: Additional adapter arguments; they win over settings.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model

    if settings is not None:
        init_kwargs.setdefault("timeout", settings.llm_request_timeout_s)
        if provider == "openai":
            init_kwargs.setdefault("api_key", settings.openai_api_key)
        elif provider == "groq":
            init_kwargs.setdefault("api_key", settings.groq_api_key)
            init_kwargs.setdefault("base_url", settings.groq_base_url)
        elif provider == "anthropic":
            init_kwargs.setdefault("api_key", settings.anthropic_api_key)
        elif provider == "ollama":
            init_kwargs.setdefault("base_url", settings.ollama_base_url)
    if provider == "groq":
        init_kwargs.setdefault("provider", "groq")

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def client_factory_from_settings(settings: Settings) -> Callable[[str], BaseLLMClient]:
    """Return ``factory(component) -> client`` that honours per-component routing.

    Clients are cached per provider:model so both pipeline components can
    share one connection pool.
    """
    cache: dict[str, BaseLLMClient] = {}

    def factory(component: str) -> BaseLLMClient:
        assignment = resolve_llm(component, settings)
        if assignment.key not in cache:
            cache[assignment.key] = create_llm_client(
                assignment.provider, assignment.model, settings=settings,
            )
        return cache[assignment.key]

    return factory


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseLLMClient.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
