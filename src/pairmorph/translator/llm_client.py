"""
Engine client for translation requests.

Handles communication with Anthropic, OpenAI and OpenRouter. Every call is
streamed to the operator and buffered in full. Conversation history is an
immutable value: ask() takes a Conversation and returns a new one.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

import anthropic
import openai
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from pairmorph.config.models import LLMConfig, LLMProvider, ModelEntry

load_dotenv()

logger = logging.getLogger(__name__)

TextCallback = Callable[[str], None]


class InvalidModelError(Exception):
    """Raised when a model selector key is not in the catalog."""

    def __init__(self, key: str, available: list[str]):
        self.key = key
        self.available = available
        super().__init__(f"Invalid model '{key}'. Available models: {', '.join(available)}")


class CredentialError(Exception):
    """Raised when no API key can be found for a vendor."""

    pass


class EngineInvocationError(Exception):
    """Raised when the engine call fails (network, auth, quota...)."""

    pass


# ============================================================================
# Conversation state
# ============================================================================


class ChatMessage(BaseModel):
    """A single turn of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: str
    content: str


class Conversation(BaseModel):
    """Immutable conversation history."""

    model_config = ConfigDict(frozen=True)

    messages: tuple[ChatMessage, ...] = ()

    def with_message(self, role: str, content: str) -> "Conversation":
        """Return a new conversation with one more message."""
        return Conversation(messages=(*self.messages, ChatMessage(role=role, content=content)))

    def as_dicts(self) -> list[dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in self.messages]


# ============================================================================
# Model selection & credentials
# ============================================================================


def resolve_model(key: str, config: LLMConfig) -> ModelEntry:
    """Look up a model selector key in the configured catalog."""
    if key not in config.models:
        raise InvalidModelError(key, list(config.models))
    return config.models[key]


ENV_KEYS = {
    LLMProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.OPENROUTER: "OPENROUTER_API_KEY",
}


def read_api_key(provider: LLMProvider, credentials_dir: Path) -> str:
    """
    Read the API key for a vendor.

    Looks for <credentials_dir>/<vendor>.token first, then the vendor's
    environment variable.

    Raises:
        CredentialError: If neither source has a key
    """
    token_path = credentials_dir.expanduser() / f"{provider.value}.token"
    try:
        token = token_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.debug(f"No token file for {provider.value}: {e}")
        token = ""

    if token:
        return token

    token = os.environ.get(ENV_KEYS[provider], "").strip()
    if token:
        return token

    raise CredentialError(
        f"No API key for {provider.value}: create {token_path} "
        f"or set {ENV_KEYS[provider]}"
    )


# ============================================================================
# Engine clients
# ============================================================================


class EngineClient(ABC):
    """Base class for vendor clients."""

    def __init__(self, entry: ModelEntry, api_key: str, config: LLMConfig):
        self.entry = entry
        self.config = config
        self.api_key = api_key

    @property
    def model(self) -> str:
        return self.entry.model

    def ask(
        self,
        conversation: Conversation,
        user_message: str,
        system: str | None = None,
        on_text: TextCallback | None = None,
        extend: Callable[[str], str] | None = None,
        shorten: Callable[[str], str] | None = None,
    ) -> tuple[str, Conversation]:
        """
        Send one user message and wait for the full reply.

        Args:
            conversation: History to continue (not modified)
            user_message: The message to send
            system: System instructions
            on_text: Called with each streamed chunk
            extend: Transforms the outgoing message without storing the result
            shorten: Transforms the reply before it is stored in the history

        Returns:
            Tuple of (full reply text, conversation including this exchange)

        Raises:
            EngineInvocationError: If the vendor call fails
        """
        outgoing = extend(user_message) if extend else user_message
        messages = [*conversation.as_dicts(), {"role": "user", "content": outgoing}]

        logger.info(f"Calling {self.entry.provider.value}/{self.model} ({len(outgoing)} chars)")
        text = self._stream(messages, system, on_text)

        stored = shorten(text) if shorten else text
        updated = conversation.with_message("user", user_message).with_message("assistant", stored)
        return text, updated

    @abstractmethod
    def _stream(
        self, messages: list[dict[str, str]], system: str | None, on_text: TextCallback | None
    ) -> str:
        """Run the streamed request and return the concatenated reply."""
        pass


class AnthropicClient(EngineClient):
    """Client for the Anthropic Messages API."""

    def __init__(self, entry: ModelEntry, api_key: str, config: LLMConfig):
        super().__init__(entry, api_key, config)
        self.client = anthropic.Anthropic(api_key=api_key, timeout=config.timeout)

    def _system_param(self, system: str):
        if self.config.system_cacheable:
            return [{"type": "text", "text": system, "cache_control": {"type": "ephemeral"}}]
        return system

    def _stream(self, messages, system, on_text):
        kwargs = {
            "model": self.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": messages,
        }
        if system:
            kwargs["system"] = self._system_param(system)

        parts: list[str] = []
        try:
            with self.client.messages.stream(**kwargs) as stream:
                for text in stream.text_stream:
                    if on_text:
                        on_text(text)
                    parts.append(text)
        except anthropic.APIError as e:
            raise EngineInvocationError(f"Anthropic call failed ({self.model}): {e}") from e

        return "".join(parts)


class OpenAIClient(EngineClient):
    """Client for OpenAI-compatible APIs (OpenAI, OpenRouter)."""

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(self, entry: ModelEntry, api_key: str, config: LLMConfig):
        super().__init__(entry, api_key, config)
        client_kwargs = {"api_key": api_key, "timeout": config.timeout}
        if entry.provider == LLMProvider.OPENROUTER:
            client_kwargs["base_url"] = self.OPENROUTER_BASE_URL
        self.client = openai.OpenAI(**client_kwargs)

    def _is_reasoning_model(self) -> bool:
        # o1 models take neither a system role nor a temperature
        return self.entry.provider == LLMProvider.OPENAI and self.model.startswith("o1")

    def _stream(self, messages, system, on_text):
        messages = list(messages)
        kwargs = {"model": self.model, "stream": True}

        if self._is_reasoning_model():
            if system:
                first = messages[0]
                messages[0] = {"role": first["role"], "content": f"{system}\n\n{first['content']}"}
            kwargs["max_completion_tokens"] = self.config.max_tokens
        else:
            if system:
                messages.insert(0, {"role": "system", "content": system})
            kwargs["temperature"] = self.config.temperature
            kwargs["max_tokens"] = self.config.max_tokens

        parts: list[str] = []
        try:
            response = self.client.chat.completions.create(messages=messages, **kwargs)
            for chunk in response:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if not text:
                    continue
                if on_text:
                    on_text(text)
                parts.append(text)
        except openai.OpenAIError as e:
            raise EngineInvocationError(f"OpenAI call failed ({self.model}): {e}") from e

        return "".join(parts)


def create_engine(entry: ModelEntry, config: LLMConfig) -> EngineClient:
    """Factory function to create the client for a model's vendor."""
    api_key = read_api_key(entry.provider, config.credentials_dir)

    if entry.provider == LLMProvider.ANTHROPIC:
        return AnthropicClient(entry, api_key, config)
    elif entry.provider in (LLMProvider.OPENAI, LLMProvider.OPENROUTER):
        return OpenAIClient(entry, api_key, config)
    else:
        raise ValueError(f"Unsupported LLM provider: {entry.provider}")
