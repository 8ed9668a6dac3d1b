"""Claude Code session log adapter.

Reads the ~/.claude/ directory structure:

    projects/<encoded-path>/<session-id>.jsonl

Each project directory name is the project's working directory with path
separators replaced by "-" (e.g. -Users-alice-dev-myapp). Each .jsonl file is
one session, one JSON record per line.

JSONL record types:
- "user": user prompts. Content is a string or an array of blocks. Records
  holding only tool_result blocks, or starting with a slash-command marker,
  are dropped.
- "assistant": AI responses. Text and tool_use blocks of one record become
  one aggregate message.
- Everything else ("progress", "system", "summary", "file-history-snapshot",
  ...) is skipped.

Sessions have no titles; we infer one from the first user message.
Directories prefixed "-sessions-" belong to Cowork and are left to
CoworkAdapter.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from ..core import CanonicalConversation, CanonicalMessage, CanonicalProject, ContentPart
from ..normalize import EPOCH, flatten_content, primary_model, read_jsonl, to_timestamp
from ..provider import ConversationAdapter, SourcePath

logger = logging.getLogger(__name__)

PROJECTS_DIR = "projects"
SESSION_SUFFIX = ".jsonl"

# Project slugs with this prefix are Cowork VM sessions.
COWORK_SLUG_PREFIX = "-sessions-"

CONTROL_MARKERS = (
    "<command-message>",
    "<command-name>",
    "<local-command-stdout>",
    "<local-command-stderr>",
    "<local-command-caveat>",
)

HOME_MARKERS = ("users", "home")

TITLE_LENGTH = 80


@dataclass
class LogMessage:
    role: Optional[str]
    content: Any
    model: Optional[str] = None


@dataclass
class LogRecord:
    """One line of a session log."""

    type: str
    uuid: str = ""
    timestamp: Optional[str] = None
    message: Optional[LogMessage] = None

    @classmethod
    def from_dict(cls, data: dict) -> "LogRecord":
        raw_message = data.get("message")
        message = None
        if isinstance(raw_message, dict):
            model = raw_message.get("model")
            message = LogMessage(
                role=raw_message.get("role"),
                content=raw_message.get("content"),
                model=model if isinstance(model, str) else None,
            )
        timestamp = data.get("timestamp")
        return cls(
            type=str(data.get("type", "")),
            uuid=str(data.get("uuid") or ""),
            timestamp=timestamp if isinstance(timestamp, str) else None,
            message=message,
        )


class ClaudeCodeAdapter(ConversationAdapter):
    """Adapter for Claude Code session logs."""

    provider = "claude-code"
    untitled = "Untitled Claude Code Session"

    def detect(self, path: SourcePath) -> bool:
        projects_dir = Path(path) / PROJECTS_DIR
        if not projects_dir.is_dir():
            return False
        return any(
            _session_files(project_dir)
            for project_dir in self._project_dirs(projects_dir)
        )

    def parse(self, source_path: SourcePath) -> Iterator[CanonicalConversation]:
        projects_dir = Path(source_path) / PROJECTS_DIR
        if not projects_dir.is_dir():
            return

        for project_dir in self._project_dirs(projects_dir):
            for session_file in _session_files(project_dir):
                try:
                    conversation = self._parse_session(session_file, project_dir.name)
                except (AttributeError, TypeError, ValueError, OverflowError) as e:
                    logger.warning("Skipping malformed session %s: %s", session_file, e)
                    continue
                if conversation:
                    yield conversation

    def parse_projects(self, source_path: SourcePath) -> Iterator[CanonicalProject]:
        projects_dir = Path(source_path) / PROJECTS_DIR
        if not projects_dir.is_dir():
            return

        for project_dir in self._project_dirs(projects_dir):
            session_count = len(_session_files(project_dir))
            if session_count == 0:
                continue
            yield CanonicalProject(
                source_id=project_dir.name,
                provider=self.provider,
                name=decode_project_path(project_dir.name),
                conversation_count=session_count,
            )

    # ── Private helpers ──────────────────────────────────────────────

    def _project_dirs(self, projects_dir: Path) -> list[Path]:
        """Project directories in name order, Cowork slugs excluded."""
        return [
            d for d in list_dir(projects_dir)
            if d.is_dir() and not d.name.startswith(COWORK_SLUG_PREFIX)
        ]

    def _read_records(self, path: Path) -> list[LogRecord]:
        return [LogRecord.from_dict(entry) for entry in read_jsonl(path)]

    def _parse_session(self, session_file: Path, project_id: str) -> CanonicalConversation | None:
        records = self._read_records(session_file)
        if not records:
            return None

        timestamps = [r.timestamp for r in records if r.timestamp]
        messages = [m for m in map(self._record_to_message, records) if m]
        if not messages:
            return None

        return self._build_conversation(
            session_id=session_file.stem,
            messages=messages,
            timestamps=timestamps,
            project_id=project_id,
            title=infer_title(messages, self.untitled),
        )

    def _build_conversation(
        self,
        session_id: str,
        messages: list[CanonicalMessage],
        timestamps: list[str],
        project_id: str,
        title: str,
    ) -> CanonicalConversation:
        return CanonicalConversation(
            source_id=session_id,
            provider=self.provider,
            title=title,
            created_at=to_timestamp(timestamps[0]) if timestamps else EPOCH,
            updated_at=to_timestamp(timestamps[-1]) if len(timestamps) > 1 else None,
            model=primary_model(m.model for m in messages),
            project_source_id=project_id,
            messages=messages,
        )

    def _record_to_message(self, record: LogRecord) -> CanonicalMessage | None:
        """Convert a log record to at most one message."""
        if record.type == "user":
            return self._parse_user_record(record)
        if record.type == "assistant":
            return self._parse_assistant_record(record)
        return None

    def _parse_user_record(self, record: LogRecord) -> CanonicalMessage | None:
        """Keep typed prompts; drop tool results and slash-command echoes."""
        if record.message is None:
            return None

        parts = []
        content = record.message.content
        if isinstance(content, str):
            if content:
                parts.append(ContentPart(type="text", text=content))
        elif isinstance(content, list):
            for block in content:
                if isinstance(block, str):
                    if block:
                        parts.append(ContentPart(type="text", text=block))
                elif isinstance(block, dict) and block.get("type") == "text":
                    text = block.get("text")
                    if isinstance(text, str) and text:
                        parts.append(ContentPart(type="text", text=text))

        text = flatten_content(parts)
        if not text or text.startswith(CONTROL_MARKERS):
            return None

        return CanonicalMessage(
            source_id=record.uuid,
            role="user",
            content=parts,
            text=text,
            created_at=to_timestamp(record.timestamp),
        )

    def _parse_assistant_record(self, record: LogRecord) -> CanonicalMessage | None:
        """Aggregate text and tool_use blocks into a single message."""
        if record.message is None:
            return None

        parts = []
        content = record.message.content
        if isinstance(content, str):
            if content.strip():
                parts.append(ContentPart(type="text", text=content))
        elif isinstance(content, list):
            for block in content:
                if not isinstance(block, dict):
                    continue
                block_type = block.get("type")
                if block_type == "text":
                    text = block.get("text")
                    if isinstance(text, str) and text:
                        parts.append(ContentPart(type="text", text=text))
                elif block_type == "tool_use":
                    parts.append(ContentPart(type="tool_call", tool_name=block.get("name")))

        if not parts:
            return None

        return CanonicalMessage(
            source_id=record.uuid,
            role="assistant",
            content=parts,
            text=flatten_content(parts),
            created_at=to_timestamp(record.timestamp),
            model=record.message.model,
        )


def decode_project_path(encoded: str) -> str:
    """Decode a project slug to a short human-readable name.

    '-Users-alice-dev-myapp' -> 'dev/myapp', '-var-data-myapp' -> 'myapp'.
    Everything up to and including the user name is dropped.
    """
    parts = [p for p in encoded.replace("-", "/").lstrip("/").split("/") if p]
    if not parts:
        return encoded

    for i, part in enumerate(parts):
        if part.lower() in HOME_MARKERS:
            meaningful = parts[i + 2:]
            return "/".join(meaningful) if meaningful else parts[-1]
    return parts[-1]


def infer_title(
    messages: Iterable[CanonicalMessage],
    fallback: str,
    min_length: int | None = None,
) -> str:
    """Title from the first user message, truncated and single-lined.

    With min_length set, user messages whose stripped text is not longer
    than min_length are passed over.
    """
    for msg in messages:
        if msg.role != "user" or not msg.text:
            continue
        text = msg.text
        if min_length is not None:
            text = text.strip()
            if len(text) <= min_length:
                continue
        title = text[:TITLE_LENGTH].strip()
        if len(text) > TITLE_LENGTH:
            title += "..."
        return title.replace("\n", " ").strip()
    return fallback


def list_dir(path: Path) -> list[Path]:
    """Children of path in name order; empty if it cannot be listed."""
    try:
        return sorted(path.iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", path, e)
        return []


def _session_files(project_dir: Path) -> list[Path]:
    return [
        f for f in list_dir(project_dir)
        if f.name.endswith(SESSION_SUFFIX) and f.is_file()
    ]
