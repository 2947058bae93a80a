# tests/unit/llm/test_unit_client_factory.py — v1
"""Tests for llm/client_factory.py."""

from __future__ import annotations

import pytest

from repodoc.config.settings import Settings
from repodoc.llm import client_factory
from repodoc.llm.adapters.anthropic_adapter import AnthropicAdapter
from repodoc.llm.adapters.ollama_adapter import OllamaAdapter
from repodoc.llm.adapters.openai_adapter import OpenAIAdapter
from repodoc.llm.client_factory import (
    UnsupportedProviderError,
    client_factory_from_settings,
    create_llm_client,
    register_provider,
)


class TestCreateLLMClient:
    def test_openai(self):
        s = Settings(_env_file=None, openai_api_key="sk-test", llm_request_timeout_s=30)
        client = create_llm_client("openai", "gpt-4o", settings=s)
        assert isinstance(client, OpenAIAdapter)
        assert client.provider_name == "openai"
        assert client._model == "gpt-4o"
        assert client._api_key == "sk-test"
        assert client._timeout == 30

    def test_groq_uses_openai_adapter(self):
        s = Settings(_env_file=None, groq_api_key="gsk-test")
        client = create_llm_client("groq", "llama-3.1-70b", settings=s)
        assert isinstance(client, OpenAIAdapter)
        assert client.provider_name == "groq"
        assert client._base_url == s.groq_base_url
        assert client._api_key == "gsk-test"

    def test_anthropic(self, settings):
        assert isinstance(create_llm_client("anthropic", "claude-3", settings), AnthropicAdapter)

    def test_ollama(self):
        s = Settings(_env_file=None, ollama_base_url="http://gpu-box:11434")
        client = create_llm_client("ollama", "llama3.1", settings=s)
        assert isinstance(client, OllamaAdapter)
        assert client._host == "http://gpu-box:11434"

    def test_explicit_kwargs_win(self, settings):
        client = create_llm_client("openai", "gpt-4o", settings, api_key="explicit")
        assert client._api_key == "explicit"

    def test_unsupported(self):
        with pytest.raises(UnsupportedProviderError, match="Available"):
            create_llm_client("nope", "model")


class TestRegisterProvider:
    def test_register_custom(self, monkeypatch):
        monkeypatch.setattr(client_factory, "_PROVIDER_REGISTRY", dict(client_factory._PROVIDER_REGISTRY))
        register_provider("local", "repodoc.llm.adapters.ollama_adapter.OllamaAdapter")
        assert isinstance(create_llm_client("local", "phi3"), OllamaAdapter)


class TestClientFactoryFromSettings:
    def test_components_share_client_for_same_assignment(self, settings):
        factory = client_factory_from_settings(settings)
        assert factory("batch_analyzer") is factory("synthesizer")

    def test_component_routing(self):
        s = Settings(_env_file=None, llm_synthesizer="anthropic:claude-3")
        factory = client_factory_from_settings(s)
        assert isinstance(factory("batch_analyzer"), OpenAIAdapter)
        assert isinstance(factory("synthesizer"), AnthropicAdapter)
