"""Abstract base class for conversation export adapters."""

import os
from abc import ABC, abstractmethod
from typing import Iterator, Union

from .core import CanonicalConversation, CanonicalProject

SourcePath = Union[str, "os.PathLike[str]"]


class ConversationAdapter(ABC):
    """Base class for provider export adapters.

    Each adapter (ChatGPT, Claude web, Claude Code, Cowork) turns one
    provider's on-disk layout into canonical conversations and projects.
    Both sequences are lazy generators, so a consumer can start persisting
    early items while later files are still unread.
    """

    provider: str  # "chatgpt", "claude-web", "claude-code", "cowork"

    @abstractmethod
    def detect(self, path: SourcePath) -> bool:
        """Return True if this adapter understands the layout at path.

        Must be cheap, side-effect free and must never raise.
        """
        ...

    @abstractmethod
    def parse(self, source_path: SourcePath) -> Iterator[CanonicalConversation]:
        """Yield every non-empty conversation under source_path."""
        ...

    def parse_projects(self, source_path: SourcePath) -> Iterator[CanonicalProject]:
        """Yield projects under source_path. Most adapters override this."""
        return iter(())
