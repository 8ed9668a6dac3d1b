"""Canonical data model shared by every provider adapter."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from .normalize import count_words

Provider = Literal["chatgpt", "claude-web", "claude-code", "cowork"]
Role = Literal["user", "assistant", "system", "tool"]
ContentType = Literal["text", "code", "image", "file", "tool_call", "tool_result", "thinking"]


@dataclass
class ContentPart:
    """One typed fragment of a message."""

    type: str  # one of ContentType
    text: Optional[str] = None
    language: Optional[str] = None  # code blocks
    tool_name: Optional[str] = None  # tool_call / tool_result
    file_name: Optional[str] = None  # file / image
    mime_type: Optional[str] = None  # file / image


@dataclass
class CanonicalMessage:
    """A single message, normalized from any provider."""

    source_id: str
    role: str  # "user" | "assistant" | "system" | "tool"
    content: list[ContentPart]
    text: str  # flattened plain text, see normalize.flatten_content
    created_at: datetime
    model: Optional[str] = None
    is_subagent: bool = False

    @property
    def word_count(self) -> int:
        return count_words(self.text)


@dataclass
class CanonicalConversation:
    """A conversation in true conversational order."""

    source_id: str
    provider: str  # one of Provider
    title: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    model: Optional[str] = None  # primary assistant model
    project_source_id: Optional[str] = None
    messages: list[CanonicalMessage] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def total_words(self) -> int:
        return sum(m.word_count for m in self.messages)


@dataclass
class CanonicalProject:
    """A project/workspace grouping conversations."""

    source_id: str
    provider: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    conversation_count: Optional[int] = None  # hint only, not authoritative


@dataclass
class ImportResult:
    """Outcome of draining one adapter into a sink."""

    provider: str
    conversations_imported: int = 0
    conversations_skipped: int = 0
    messages_imported: int = 0
    projects_imported: int = 0
    errors: list[str] = field(default_factory=list)
