"""ChatGPT data export adapter.

Reads conversations.json from an unpacked ChatGPT export. Each conversation
stores its messages as a DAG in ``mapping``: every node has an optional
parent and an ordered list of children. Regenerating or editing a message
adds a sibling, so a parent can have several children; the last child is
always the most recent edit.

We linearize by starting at the root and following children[-1] at every
node ("main branch"). Abandoned regenerations are dropped.

Content types handled:
- "text": parts are strings.
- "code": parts are strings, optional ``language``.
- "multimodal_text": strings mixed with objects; image_asset_pointer objects
  become image parts.
Everything else (tether_browsing_display, system_error, ...) yields no parts.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

from ..core import CanonicalConversation, CanonicalMessage, CanonicalProject, ContentPart
from ..normalize import flatten_content, primary_model, read_json, to_timestamp
from ..provider import ConversationAdapter, SourcePath

logger = logging.getLogger(__name__)

CONVERSATIONS_FILE = "conversations.json"

CANONICAL_ROLES = ("user", "assistant", "system", "tool")

PROJECT_NAME_WORDS = 4

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
    "for", "of", "with", "by", "from", "is", "it", "this", "that",
    "how", "what", "when", "where", "why", "which", "who",
    "help", "please", "fix", "update", "add", "new", "create",
    "using", "make", "get", "set", "test", "debug", "issue",
})

_PUNCTUATION = re.compile(r"[.,!?:;()\[\]{}'\"–-]")


# ── Raw export shapes ────────────────────────────────────────────


@dataclass
class RawMessage:
    id: str
    role: str
    content_type: str
    parts: list
    create_time: Any = None
    model_slug: Optional[str] = None
    language: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawMessage | None":
        if not isinstance(data, dict):
            return None
        author = _as_dict(data.get("author"))
        content = _as_dict(data.get("content"))
        metadata = _as_dict(data.get("metadata"))
        parts = content.get("parts")
        model_slug = metadata.get("model_slug")
        return cls(
            id=str(data.get("id", "")),
            role=author.get("role", ""),
            content_type=content.get("content_type", ""),
            parts=parts if isinstance(parts, list) else [],
            create_time=data.get("create_time"),
            model_slug=model_slug if isinstance(model_slug, str) else None,
            language=content.get("language"),
        )


@dataclass
class RawNode:
    id: str
    parent: Optional[str] = None
    children: list[str] = field(default_factory=list)
    message: Optional[RawMessage] = None

    @classmethod
    def from_dict(cls, node_id: str, data: Any) -> "RawNode | None":
        if not isinstance(data, dict):
            return None
        children = data.get("children")
        parent = data.get("parent")
        return cls(
            id=data.get("id") or node_id,
            parent=parent if isinstance(parent, str) else None,
            children=[c for c in children if isinstance(c, str)] if isinstance(children, list) else [],
            message=RawMessage.from_dict(data.get("message")),
        )


@dataclass
class RawConversation:
    id: str
    title: str
    create_time: Any
    update_time: Any
    mapping: dict[str, RawNode]
    gizmo_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RawConversation":
        mapping = {}
        for node_id, raw_node in _as_dict(data.get("mapping")).items():
            node = RawNode.from_dict(node_id, raw_node)
            if node is not None:
                mapping[node_id] = node
        return cls(
            id=str(data.get("id") or data.get("conversation_id") or ""),
            title=_as_title(data.get("title")),
            create_time=data.get("create_time"),
            update_time=data.get("update_time"),
            mapping=mapping,
            gizmo_id=_as_gizmo_id(data.get("gizmo_id")),
        )


# ── Adapter ──────────────────────────────────────────────────────


class ChatGPTAdapter(ConversationAdapter):
    """Adapter for the ChatGPT data export."""

    provider = "chatgpt"

    def detect(self, path: SourcePath) -> bool:
        data = read_json(Path(path) / CONVERSATIONS_FILE)
        if not isinstance(data, list) or not data:
            return False
        return isinstance(data[0], dict) and "mapping" in data[0]

    def parse(self, source_path: SourcePath) -> Iterator[CanonicalConversation]:
        for raw in self._load(source_path):
            try:
                conversation = self._parse_conversation(RawConversation.from_dict(raw))
            except (AttributeError, TypeError, ValueError, OverflowError) as e:
                logger.warning("Skipping malformed ChatGPT conversation %s: %s", raw.get("id"), e)
                continue
            if conversation:
                yield conversation

    def parse_projects(self, source_path: SourcePath) -> Iterator[CanonicalProject]:
        """Group conversations by gizmo_id; each group is one project."""
        groups: dict[str, list[str]] = {}
        for raw in self._load(source_path):
            gizmo_id = _as_gizmo_id(raw.get("gizmo_id"))
            if gizmo_id is None:
                continue
            groups.setdefault(gizmo_id, []).append(_as_title(raw.get("title")))

        for gizmo_id, titles in groups.items():
            yield CanonicalProject(
                source_id=gizmo_id,
                provider=self.provider,
                name=infer_project_name(titles),
                conversation_count=len(titles),
            )

    # ── Private helpers ──────────────────────────────────────────────

    def _load(self, source_path: SourcePath) -> list[dict]:
        path = Path(source_path) / CONVERSATIONS_FILE
        data = read_json(path)
        if not isinstance(data, list):
            logger.warning("No ChatGPT conversation list found at %s", path)
            return []
        return [c for c in data if isinstance(c, dict)]

    def _parse_conversation(self, conv: RawConversation) -> CanonicalConversation | None:
        messages = []
        for node in linearize(conv.mapping):
            msg = node.message
            if msg is None or msg.role not in CANONICAL_ROLES:
                continue

            parts = extract_content(msg)
            text = flatten_content(parts)
            if not text and msg.role != "system":
                continue

            messages.append(CanonicalMessage(
                source_id=msg.id,
                role=msg.role,
                content=parts,
                text=text,
                created_at=to_timestamp(msg.create_time if msg.create_time else conv.create_time),
                model=msg.model_slug,
            ))

        if not messages:
            return None

        return CanonicalConversation(
            source_id=conv.id,
            provider=self.provider,
            title=conv.title,
            created_at=to_timestamp(conv.create_time),
            updated_at=to_timestamp(conv.update_time) if conv.update_time else None,
            model=primary_model(m.model for m in messages if m.role == "assistant"),
            project_source_id=conv.gizmo_id,
            messages=messages,
        )


def linearize(mapping: dict[str, RawNode]) -> list[RawNode]:
    """Walk the main branch of a conversation DAG.

    The root is the first node whose parent is missing from the mapping.
    From there we always step to the last child. A node id seen twice ends
    the walk, so a corrupt cyclic mapping still terminates.
    """
    root_id = None
    for node_id, node in mapping.items():
        if not node.parent or node.parent not in mapping:
            root_id = node_id
            break
    if root_id is None:
        return []

    path = []
    visited = set()
    cursor: str | None = root_id
    while cursor is not None and cursor not in visited:
        node = mapping.get(cursor)
        if node is None:
            break
        visited.add(cursor)
        path.append(node)
        cursor = node.children[-1] if node.children else None
    return path


def extract_content(msg: RawMessage) -> list[ContentPart]:
    """Turn a raw message's content into ContentParts."""
    parts = []

    if msg.content_type == "text":
        for part in msg.parts:
            if isinstance(part, str) and part.strip():
                parts.append(ContentPart(type="text", text=part))

    elif msg.content_type == "code":
        for part in msg.parts:
            if isinstance(part, str):
                parts.append(ContentPart(type="code", text=part, language=msg.language))

    elif msg.content_type == "multimodal_text":
        for part in msg.parts:
            if isinstance(part, str):
                parts.append(ContentPart(type="text", text=part))
            elif isinstance(part, dict) and part.get("content_type") == "image_asset_pointer":
                metadata = _as_dict(part.get("metadata"))
                parts.append(ContentPart(
                    type="image",
                    file_name=metadata.get("dalle_metadata_prompt") or "image",
                ))

    return parts


def infer_project_name(titles: list[str]) -> str:
    """Synthesize a project name from its conversations' titles.

    Takes the most frequent non-stopword tokens (ties by first appearance)
    and title-cases them, falling back to the first title.
    """
    counts: Counter[str] = Counter()
    for title in titles:
        for word in title.lower().split():
            clean = _PUNCTUATION.sub("", word)
            if len(clean) > 2 and clean not in STOP_WORDS:
                counts[clean] += 1

    top_words = [word.capitalize() for word, _ in counts.most_common(PROJECT_NAME_WORDS)]
    if top_words:
        return " ".join(top_words)
    return titles[0] if titles and titles[0] else "Unnamed Project"


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_title(value: Any) -> str:
    return value if isinstance(value, str) and value else "Untitled"


def _as_gizmo_id(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None
