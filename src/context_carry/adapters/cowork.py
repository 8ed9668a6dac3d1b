"""Cowork session adapter.

Cowork writes the same JSONL records as Claude Code, but sessions turn up in
three overlapping layouts:

1. Standard: ``<root>/projects/-sessions-<slug>/<session>.jsonl``. Only the
   "-sessions-" prefixed slugs are Cowork; the rest is Claude Code.
2. LAMS (local agent mode sessions): ``<root>/local-agent-mode-sessions/``
   holds nested ``<...>/<dir>/.claude/projects/<slug>/`` trees a few levels
   down. Each match is labelled by the directory names walked to reach it,
   since the same slug can appear under different nested origins.
3. Subagents: ``<project>/<session>/subagents/agent-*.jsonl`` next to a
   session's main log. Their messages are merged into the parent session's
   timeline.

Roots are the given path, or with "auto" both the Claude home directory and
the desktop app's data directory.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from ..config import get_claude_desktop_path, get_claude_home_path
from ..core import CanonicalConversation, CanonicalMessage, CanonicalProject
from ..provider import SourcePath
from .claude_code import (
    COWORK_SLUG_PREFIX,
    PROJECTS_DIR,
    SESSION_SUFFIX,
    ClaudeCodeAdapter,
    LogRecord,
    decode_project_path,
    infer_title,
    list_dir,
)

logger = logging.getLogger(__name__)

AUTO = "auto"

LAMS_DIR = "local-agent-mode-sessions"
LAMS_MAX_DEPTH = 5
LAMS_KEY_PREFIX = "lams:"

SUBAGENTS_DIR = "subagents"
SUBAGENT_PREFIX = "agent-"

TITLE_MIN_LENGTH = 10

# Tools whose use suggests a Cowork rather than a Claude Code session.
# Reserved: detection currently relies on directory layout only.
COWORK_INDICATOR_TOOLS = frozenset({
    "mcp__Claude_in_Chrome__computer",
    "mcp__Claude_in_Chrome__read_page",
    "mcp__Claude_in_Chrome__navigate",
    "Skill",
    "AskUserQuestion",
    "EnterPlanMode",
    "ExitPlanMode",
    "TodoWrite",
    "WebFetch",
    "WebSearch",
    "NotebookEdit",
})


@dataclass
class SessionInfo:
    session_id: str
    main_file: Path
    subagent_files: list[Path] = field(default_factory=list)


class CoworkAdapter(ClaudeCodeAdapter):
    """Adapter for Cowork sessions (standard, LAMS and subagent layouts)."""

    provider = "cowork"
    untitled = "Untitled Cowork Session"

    def detect(self, path: SourcePath) -> bool:
        root = Path(path)
        projects_dir = root / PROJECTS_DIR
        if projects_dir.is_dir() and any(
            d.name.startswith(COWORK_SLUG_PREFIX) for d in list_dir(projects_dir)
        ):
            return True
        return (root / LAMS_DIR).is_dir()

    def parse(self, source_path: SourcePath) -> Iterator[CanonicalConversation]:
        for project_key, sessions in self._discover_all_sessions(source_path).items():
            for session in sessions:
                try:
                    conversation = self._parse_cowork_session(session, project_key)
                except (AttributeError, TypeError, ValueError, OverflowError) as e:
                    logger.warning("Skipping malformed Cowork session %s: %s", session.main_file, e)
                    continue
                if conversation:
                    yield conversation

    def parse_projects(self, source_path: SourcePath) -> Iterator[CanonicalProject]:
        for project_key, sessions in self._discover_all_sessions(source_path).items():
            yield CanonicalProject(
                source_id=project_key,
                provider=self.provider,
                name=decode_cowork_project_path(project_key),
                conversation_count=len(sessions),
            )

    # ── Discovery ────────────────────────────────────────────────────

    def _resolve_sources(self, source_path: SourcePath) -> list[Path]:
        """Roots to search.

        "auto" means both well-known locations that exist. An explicit path
        that is one of them pulls in the other as well.
        """
        home = get_claude_home_path()
        desktop = get_claude_desktop_path()

        if str(source_path) == AUTO:
            return [p for p in (home, desktop) if p.exists()]

        source = Path(source_path)
        sources = [source]
        if source == home and desktop.exists():
            sources.append(desktop)
        elif source == desktop and home.exists():
            sources.append(home)
        return sources

    def _discover_all_sessions(self, source_path: SourcePath) -> dict[str, list[SessionInfo]]:
        all_sessions: dict[str, list[SessionInfo]] = {}

        for source in self._resolve_sources(source_path):
            if not source.exists():
                continue

            projects_dir = source / PROJECTS_DIR
            if projects_dir.is_dir():
                for key, sessions in self._discover_project_sessions(projects_dir, cowork_only=True).items():
                    all_sessions.setdefault(key, []).extend(sessions)

            lams_dir = source / LAMS_DIR
            if lams_dir.is_dir():
                for key, sessions in self._discover_lams_sessions(lams_dir).items():
                    all_sessions.setdefault(key, []).extend(sessions)

        return all_sessions

    def _discover_project_sessions(self, projects_dir: Path, cowork_only: bool) -> dict[str, list[SessionInfo]]:
        found = {}
        for project_dir in list_dir(projects_dir):
            if not project_dir.is_dir():
                continue
            if cowork_only and not project_dir.name.startswith(COWORK_SLUG_PREFIX):
                continue
            sessions = self._scan_project_dir(project_dir)
            if sessions:
                found[project_dir.name] = sessions
        return found

    def _scan_project_dir(self, project_dir: Path) -> list[SessionInfo]:
        sessions = []
        for main_file in list_dir(project_dir):
            if not main_file.name.endswith(SESSION_SUFFIX) or not main_file.is_file():
                continue
            session_id = main_file.name[: -len(SESSION_SUFFIX)]
            subagent_dir = project_dir / session_id / SUBAGENTS_DIR
            subagent_files = [
                f for f in list_dir(subagent_dir)
                if f.name.startswith(SUBAGENT_PREFIX) and f.name.endswith(SESSION_SUFFIX)
            ]
            sessions.append(SessionInfo(
                session_id=session_id,
                main_file=main_file,
                subagent_files=subagent_files,
            ))
        return sessions

    def _discover_lams_sessions(self, lams_dir: Path) -> dict[str, list[SessionInfo]]:
        found = {}
        for label, projects_dir in find_nested_projects(lams_dir, LAMS_MAX_DEPTH):
            for slug, sessions in self._discover_project_sessions(projects_dir, cowork_only=False).items():
                found[f"{LAMS_KEY_PREFIX}{label}:{slug}"] = sessions
        return found

    # ── Session assembly ─────────────────────────────────────────────

    def _parse_cowork_session(self, session: SessionInfo, project_key: str) -> CanonicalConversation | None:
        """Merge the main log and its subagent logs into one timeline."""
        main_records = self._read_records(session.main_file)
        if not main_records:
            return None

        timeline: list[tuple[str, CanonicalMessage]] = []
        timestamps: list[str] = []

        self._collect(main_records, timeline, timestamps, is_subagent=False)
        for subagent_file in session.subagent_files:
            self._collect(self._read_records(subagent_file), timeline, timestamps, is_subagent=True)

        # Stable sort: equal timestamps keep main-log messages first.
        timeline.sort(key=lambda item: item[0])
        messages = [msg for _, msg in timeline]
        if not messages:
            return None

        timestamps.sort()
        return self._build_conversation(
            session_id=session.session_id,
            messages=messages,
            timestamps=timestamps,
            project_id=project_key,
            title=infer_title(messages, self.untitled, min_length=TITLE_MIN_LENGTH),
        )

    def _collect(
        self,
        records: list[LogRecord],
        timeline: list[tuple[str, CanonicalMessage]],
        timestamps: list[str],
        is_subagent: bool,
    ) -> None:
        for record in records:
            if record.timestamp:
                timestamps.append(record.timestamp)
            msg = self._record_to_message(record)
            if msg is None:
                continue
            msg.is_subagent = is_subagent
            timeline.append((record.timestamp or "", msg))


def find_nested_projects(root: Path, max_depth: int) -> list[tuple[str, Path]]:
    """Find ``.claude/projects`` directories nested under root.

    Returns (label, projects_dir) pairs in depth-first name order, where the
    label joins the directory names walked from root with "_". Entries of a
    directory at depth > max_depth are not examined. Only directories whose
    name is at least 8 characters long or starts with "local_" are descended.
    """
    results = []
    # Worklist of (entry, label parts leading to it, depth of its parent listing).
    # Children are pushed in reverse so pops come out in name order.
    stack = [(entry, [], 0) for entry in reversed(list_dir(root))]
    while stack:
        entry, label_parts, depth = stack.pop()
        if entry.name.startswith("."):
            continue

        nested = entry / ".claude" / PROJECTS_DIR
        if nested.exists():
            results.append(("_".join(label_parts + [entry.name]), nested))
            continue

        descend = len(entry.name) >= 8 or entry.name.startswith("local_")
        if descend and depth + 1 <= max_depth and entry.is_dir():
            child_parts = label_parts + [entry.name]
            stack.extend(
                (child, child_parts, depth + 1) for child in reversed(list_dir(entry))
            )
    return results


def decode_cowork_project_path(encoded: str) -> str:
    """Human-readable name for a Cowork project key."""
    if encoded.startswith(LAMS_KEY_PREFIX):
        return decode_cowork_project_path(encoded.split(":")[-1])
    if encoded.startswith(COWORK_SLUG_PREFIX):
        return encoded[len(COWORK_SLUG_PREFIX):]
    return decode_project_path(encoded)
