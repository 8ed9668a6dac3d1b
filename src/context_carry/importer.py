"""Drain an adapter's projects and conversations into a persistence sink.

The sink decides how things are stored; this module only guarantees the
order (projects before conversations), project reference resolution by
source_id, and that one failing item never stops the rest.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from .adapters import detect_provider, get_adapter
from .core import CanonicalConversation, CanonicalProject, ImportResult
from .provider import ConversationAdapter, SourcePath

logger = logging.getLogger(__name__)


class ProviderNotDetectedError(LookupError):
    """No adapter recognised the layout of the given path."""


class ImportSink(ABC):
    """Persistence target. Upserts are keyed by (provider, source_id)."""

    @abstractmethod
    def upsert_project(self, project: CanonicalProject) -> Any:
        """Store a project and return a key conversations can refer to."""
        ...

    @abstractmethod
    def upsert_conversation(self, conversation: CanonicalConversation, project_key: Any = None) -> None:
        """Store a conversation (replacing its messages if it exists)."""
        ...


class MemorySink(ImportSink):
    """Keeps everything in dicts. Useful for dry runs and tests."""

    def __init__(self):
        self.projects: dict[tuple[str, str], CanonicalProject] = {}
        self.conversations: dict[tuple[str, str], CanonicalConversation] = {}
        self.project_links: dict[tuple[str, str], Any] = {}

    def upsert_project(self, project: CanonicalProject) -> tuple[str, str]:
        key = (project.provider, project.source_id)
        self.projects[key] = project
        return key

    def upsert_conversation(self, conversation: CanonicalConversation, project_key: Any = None) -> None:
        key = (conversation.provider, conversation.source_id)
        self.conversations[key] = conversation
        self.project_links[key] = project_key


def resolve_adapter(source_path: SourcePath, provider: str | None = None) -> ConversationAdapter:
    """Forced provider wins; otherwise auto-detect."""
    if provider:
        return get_adapter(provider)

    adapter = detect_provider(source_path)
    if adapter is None:
        raise ProviderNotDetectedError(
            f"Could not auto-detect provider for {source_path}. "
            "Use --provider to specify one explicitly."
        )
    return adapter


def run_import(source_path: SourcePath, sink: ImportSink, provider: str | None = None) -> ImportResult:
    """Import everything under source_path into sink."""
    adapter = resolve_adapter(source_path, provider)
    result = ImportResult(provider=adapter.provider)

    project_keys: dict[str, Any] = {}
    for project in adapter.parse_projects(source_path):
        try:
            project_keys[project.source_id] = sink.upsert_project(project)
        except Exception as e:
            logger.error("Failed to store project %s: %s", project.source_id, e)
            result.errors.append(f"Project {project.source_id}: {e}")
            continue
        result.projects_imported += 1

    for conversation in adapter.parse(source_path):
        project_key = project_keys.get(conversation.project_source_id) if conversation.project_source_id else None
        try:
            sink.upsert_conversation(conversation, project_key)
        except Exception as e:
            logger.error("Failed to store conversation %s: %s", conversation.source_id, e)
            result.errors.append(f"Conversation {conversation.source_id}: {e}")
            result.conversations_skipped += 1
            continue
        result.conversations_imported += 1
        result.messages_imported += conversation.message_count

    logger.info(
        "Imported %d conversations, %d messages, %d projects from %s",
        result.conversations_imported,
        result.messages_imported,
        result.projects_imported,
        source_path,
    )
    return result
