"""Claude.ai web export adapter.

Reads the official Claude data export: conversations.json plus an optional
projects.json. Unlike ChatGPT, messages are a flat list already in
conversational order, so no tree traversal is needed.

Message content blocks:
- "text": the message body.
- "thinking": extended thinking, kept as a part of its own.
- "tool_use": a tool call; artifact tools get an [Artifact: title] label.
- "tool_result": a tool result, labelled with the tool name.
Older exports have no blocks and carry the body in a message-level "text".
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from ..core import CanonicalConversation, CanonicalMessage, CanonicalProject, ContentPart
from ..normalize import flatten_content, read_json, to_timestamp
from ..provider import ConversationAdapter, SourcePath

logger = logging.getLogger(__name__)

CONVERSATIONS_FILE = "conversations.json"
PROJECTS_FILE = "projects.json"

ARTIFACT_TOOLS = ("create_artifact", "artifacts")


@dataclass
class RawClaudeMessage:
    uuid: str
    sender: str
    created_at: Any
    content: list[dict] = field(default_factory=list)
    text: str = ""
    attachments: list[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "RawClaudeMessage":
        attachments = [a for a in data.get("attachments") or [] if isinstance(a, dict)]
        attachments += [f for f in data.get("files") or [] if isinstance(f, dict)]
        return cls(
            uuid=str(data.get("uuid", "")),
            sender=data.get("sender") or "unknown",
            created_at=data.get("created_at"),
            content=[b for b in data.get("content") or [] if isinstance(b, dict)],
            text=data.get("text") or "",
            attachments=attachments,
        )


class ClaudeWebAdapter(ConversationAdapter):
    """Adapter for the Claude.ai data export."""

    provider = "claude-web"

    def detect(self, path: SourcePath) -> bool:
        conv_path = Path(path) / CONVERSATIONS_FILE
        if not conv_path.is_file():
            return False
        data = read_json(conv_path)
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return False
        return "chat_messages" in data[0] and "uuid" in data[0]

    def parse(self, source_path: SourcePath) -> Iterator[CanonicalConversation]:
        path = Path(source_path) / CONVERSATIONS_FILE
        data = read_json(path)
        if not isinstance(data, list):
            logger.warning("No Claude conversation list found at %s", path)
            return

        for raw in data:
            if not isinstance(raw, dict):
                continue
            try:
                conversation = self._parse_conversation(raw)
            except (AttributeError, TypeError, ValueError, OverflowError) as e:
                logger.warning("Skipping malformed Claude conversation %s: %s", raw.get("uuid"), e)
                continue
            if conversation:
                yield conversation

    def parse_projects(self, source_path: SourcePath) -> Iterator[CanonicalProject]:
        path = Path(source_path) / PROJECTS_FILE
        if not path.is_file():
            return

        data = read_json(path)
        if not isinstance(data, list):
            logger.warning("Ignoring unreadable %s", path)
            return

        for raw in data:
            if not isinstance(raw, dict) or not raw.get("uuid"):
                continue
            yield CanonicalProject(
                source_id=raw["uuid"],
                provider=self.provider,
                name=raw.get("name") or "Unnamed Project",
                created_at=to_timestamp(raw["created_at"]) if raw.get("created_at") else None,
                updated_at=to_timestamp(raw["updated_at"]) if raw.get("updated_at") else None,
            )

    # ── Private helpers ──────────────────────────────────────────────

    def _parse_conversation(self, raw: dict) -> CanonicalConversation | None:
        messages = []
        for msg_data in raw.get("chat_messages") or []:
            if not isinstance(msg_data, dict):
                continue
            msg = self._parse_message(RawClaudeMessage.from_dict(msg_data))
            if msg:
                messages.append(msg)

        if not messages:
            return None

        return CanonicalConversation(
            source_id=str(raw.get("uuid", "")),
            provider=self.provider,
            title=raw.get("name") or "Untitled",
            created_at=to_timestamp(raw.get("created_at")),
            updated_at=to_timestamp(raw["updated_at"]) if raw.get("updated_at") else None,
            model=raw.get("model") or None,
            project_source_id=raw.get("project_uuid") or None,
            messages=messages,
        )

    def _parse_message(self, msg: RawClaudeMessage) -> CanonicalMessage | None:
        """Map one chat message; returns None when it has nothing to show."""
        role = "user" if msg.sender == "human" else msg.sender
        parts = []

        for block in msg.content:
            block_type = block.get("type")

            if block_type == "text" and block.get("text"):
                parts.append(ContentPart(type="text", text=block["text"]))

            elif block_type == "thinking" and block.get("thinking"):
                parts.append(ContentPart(type="thinking", text=block["thinking"]))

            elif block_type == "tool_use":
                name = block.get("name")
                if name in ARTIFACT_TOOLS:
                    tool_input = block.get("input") or {}
                    title = tool_input.get("title") if isinstance(tool_input, dict) else None
                    label = f"[Artifact: {title or 'untitled'}]"
                else:
                    label = f"[Tool: {name or 'unknown'}]"
                parts.append(ContentPart(type="tool_call", tool_name=name, text=label))

            elif block_type == "tool_result":
                parts.append(ContentPart(type="tool_result", tool_name=block.get("name")))

        if not parts and msg.text:
            parts.append(ContentPart(type="text", text=msg.text))

        for attachment in msg.attachments:
            parts.append(ContentPart(
                type="file",
                file_name=attachment.get("file_name"),
                mime_type=attachment.get("file_type"),
            ))

        if not parts:
            return None

        return CanonicalMessage(
            source_id=msg.uuid,
            role=role,
            content=parts,
            text=flatten_content(parts),
            created_at=to_timestamp(msg.created_at),
        )
