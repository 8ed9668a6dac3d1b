"""Provider detection and the adapter registry."""

import logging

from ..provider import ConversationAdapter, SourcePath
from .chatgpt import ChatGPTAdapter
from .claude_code import ClaudeCodeAdapter
from .claude_web import ClaudeWebAdapter
from .cowork import CoworkAdapter

logger = logging.getLogger(__name__)

# Probe order matters: Cowork's layout also satisfies the Claude Code
# check, so Cowork must come first.
ADAPTERS: tuple[type[ConversationAdapter], ...] = (
    ChatGPTAdapter,
    ClaudeWebAdapter,
    CoworkAdapter,
    ClaudeCodeAdapter,
)

PROVIDERS = tuple(cls.provider for cls in ADAPTERS)


class UnknownProviderError(ValueError):
    """Raised for a provider tag no adapter handles."""


def detect_provider(path: SourcePath) -> ConversationAdapter | None:
    """Return an adapter for the first provider whose layout matches path."""
    for adapter_class in ADAPTERS:
        adapter = adapter_class()
        if adapter.detect(path):
            logger.info("Detected %s export at %s", adapter.provider, path)
            return adapter
    return None


def get_adapter(provider: str) -> ConversationAdapter:
    """Return a fresh adapter for a provider tag."""
    for adapter_class in ADAPTERS:
        if adapter_class.provider == provider:
            return adapter_class()
    raise UnknownProviderError(
        f"Unknown provider: {provider} (expected one of {', '.join(PROVIDERS)})"
    )


__all__ = [
    "ADAPTERS",
    "PROVIDERS",
    "ChatGPTAdapter",
    "ClaudeCodeAdapter",
    "ClaudeWebAdapter",
    "CoworkAdapter",
    "UnknownProviderError",
    "detect_provider",
    "get_adapter",
]
