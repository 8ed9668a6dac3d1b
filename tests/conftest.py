"""Shared test fixtures for context-carry."""

import json

import pytest


def _write_jsonl(path, records):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _user(text, ts, uuid):
    return {"type": "user", "uuid": uuid, "timestamp": ts,
            "message": {"role": "user", "content": text}}


def _assistant(text, ts, uuid, model="claude-sonnet-4"):
    return {"type": "assistant", "uuid": uuid, "timestamp": ts,
            "message": {"role": "assistant", "model": model,
                        "content": [{"type": "text", "text": text}]}}


@pytest.fixture
def write_jsonl():
    """Helper to write a list of records (dicts or raw strings) as JSONL."""
    return _write_jsonl


@pytest.fixture
def chatgpt_export(tmp_path):
    """Create a synthetic ChatGPT export directory.

    Includes:
    - A conversation in a gizmo project, with a system node and a user
      message lacking its own create_time
    - A conversation with a regenerated answer (two children at a fork)
    - A cyclic mapping with no root (dropped)
    - A second gizmo conversation with multimodal, code and blank messages
    """
    root = tmp_path / "chatgpt"
    root.mkdir()

    conv1 = {
        "id": "conv-chatgpt-1",
        "title": "Hello World Test",
        "create_time": 1700000000,
        "update_time": 1700000100.5,
        "gizmo_id": "gizmo-project-1",
        "mapping": {
            "root": {"id": "root", "parent": None, "children": ["sys"], "message": None},
            "sys": {"id": "sys", "parent": "root", "children": ["u1"], "message": {
                "id": "msg-sys", "author": {"role": "system"},
                "content": {"content_type": "text", "parts": [""]}, "create_time": None,
            }},
            "u1": {"id": "u1", "parent": "sys", "children": ["a1"], "message": {
                "id": "msg-u1", "author": {"role": "user"},
                "content": {"content_type": "text", "parts": ["How do I write a TypeScript interface?"]},
                "create_time": None,
            }},
            "a1": {"id": "a1", "parent": "u1", "children": [], "message": {
                "id": "msg-a1", "author": {"role": "assistant"},
                "content": {"content_type": "text", "parts": ["Use the interface keyword."]},
                "create_time": 1700000050, "metadata": {"model_slug": "gpt-4"},
            }},
        },
    }

    conv2 = {
        "id": "conv-chatgpt-2",
        "title": "Messaging protocols",
        "create_time": 1700001000000,
        "update_time": None,
        "mapping": {
            "n-root": {"id": "n-root", "children": ["q"]},
            "q": {"id": "q", "parent": "n-root", "children": ["b1", "b2"], "message": {
                "id": "msg-q", "author": {"role": "user"},
                "content": {"content_type": "text", "parts": ["Which protocol for IoT messaging?"]},
                "create_time": 1700001001,
            }},
            "b1": {"id": "b1", "parent": "q", "children": [], "message": {
                "id": "msg-b1", "author": {"role": "assistant"},
                "content": {"content_type": "text", "parts": ["HTTP polling works fine."]},
                "create_time": 1700001002, "metadata": {"model_slug": "gpt-4"},
            }},
            "b2": {"id": "b2", "parent": "q", "children": ["thanks"], "message": {
                "id": "msg-b2", "author": {"role": "assistant"},
                "content": {"content_type": "text", "parts": ["Use MQTT, it is built for IoT."]},
                "create_time": 1700001003, "metadata": {"model_slug": "gpt-4o"},
            }},
            "thanks": {"id": "thanks", "parent": "b2", "children": [], "message": {
                "id": "msg-thanks", "author": {"role": "user"},
                "content": {"content_type": "text", "parts": ["Thanks"]},
                "create_time": 1700001004,
            }},
        },
    }

    conv3 = {
        "id": "conv-chatgpt-cyclic",
        "title": "Broken",
        "create_time": 1700002000,
        "mapping": {
            "x": {"id": "x", "parent": "y", "children": ["y"], "message": None},
            "y": {"id": "y", "parent": "x", "children": ["x"], "message": None},
        },
    }

    conv4 = {
        "id": "conv-chatgpt-4",
        "title": "Refactor TypeScript build pipeline",
        "create_time": 1700003000,
        "gizmo_id": "gizmo-project-1",
        "mapping": {
            "r": {"id": "r", "children": ["u"]},
            "u": {"id": "u", "parent": "r", "children": ["img"], "message": {
                "id": "msg-u", "author": {"role": "user"},
                "content": {"content_type": "text", "parts": ["Draw the build pipeline"]},
                "create_time": 1700003001,
            }},
            "img": {"id": "img", "parent": "u", "children": ["code"], "message": {
                "id": "msg-img", "author": {"role": "assistant"},
                "content": {"content_type": "multimodal_text", "parts": [
                    "Here is the diagram",
                    {"content_type": "image_asset_pointer",
                     "metadata": {"dalle_metadata_prompt": "pipeline diagram"}},
                ]},
                "create_time": 1700003002, "metadata": {"model_slug": "gpt-4o"},
            }},
            "code": {"id": "code", "parent": "img", "children": ["blank"], "message": {
                "id": "msg-code", "author": {"role": "assistant"},
                "content": {"content_type": "code", "language": "python", "parts": ["print('hi')"]},
                "create_time": 1700003003, "metadata": {"model_slug": "gpt-4o"},
            }},
            "blank": {"id": "blank", "parent": "code", "children": [], "message": {
                "id": "msg-blank", "author": {"role": "assistant"},
                "content": {"content_type": "text", "parts": ["   "]},
                "create_time": 1700003004,
            }},
        },
    }

    (root / "conversations.json").write_text(json.dumps([conv1, conv2, conv3, conv4]), encoding="utf-8")
    return root


@pytest.fixture
def claude_web_export(tmp_path):
    """Create a synthetic Claude.ai export with conversations and projects."""
    root = tmp_path / "claude-web"
    root.mkdir()

    conversations = [
        {
            "uuid": "cw-1",
            "name": "Planning a garden",
            "created_at": "2024-03-01T10:00:00.000000Z",
            "updated_at": "2024-03-01T11:00:00.000000Z",
            "chat_messages": [
                {"uuid": "m1", "sender": "human", "created_at": "2024-03-01T10:00:00Z",
                 "content": [{"type": "text", "text": "What vegetables grow well in shade?"}]},
                {"uuid": "m2", "sender": "assistant", "created_at": "2024-03-01T10:00:10Z",
                 "content": [
                     {"type": "thinking", "thinking": "User wants shade crops"},
                     {"type": "text", "text": "Lettuce and spinach grow well."},
                 ]},
                {"uuid": "m3", "sender": "assistant", "created_at": "2024-03-01T10:00:20Z",
                 "content": [{"type": "tool_use", "name": "create_artifact",
                              "input": {"title": "Shade planting guide"}}]},
                {"uuid": "m4", "sender": "assistant", "created_at": "2024-03-01T10:00:30Z",
                 "content": [
                     {"type": "tool_use", "name": "web_search", "input": {"query": "shade crops"}},
                     {"type": "tool_result", "name": "web_search"},
                 ]},
                {"uuid": "m5", "sender": "human", "created_at": "2024-03-01T10:01:00Z",
                 "content": [], "text": "legacy body text"},
                {"uuid": "m6", "sender": "human", "created_at": "2024-03-01T10:02:00Z",
                 "content": [], "text": "",
                 "attachments": [{"file_name": "plot.csv", "file_type": "text/csv"}]},
                {"uuid": "m7", "sender": "human", "created_at": "2024-03-01T10:03:00Z",
                 "content": [], "text": ""},
            ],
        },
        {
            "uuid": "cw-empty",
            "name": "Nothing here",
            "created_at": "2024-03-02T10:00:00Z",
            "updated_at": "2024-03-02T10:00:00Z",
            "chat_messages": [],
        },
        {
            "uuid": "cw-3",
            "name": "",
            "created_at": "2024-03-03T10:00:00Z",
            "updated_at": "2024-03-03T10:05:00Z",
            "model": "claude-3-opus",
            "project_uuid": "proj-1",
            "chat_messages": [
                {"uuid": "m8", "sender": "human", "created_at": "2024-03-03T10:00:00Z",
                 "content": [{"type": "text", "text": "hi"}]},
                {"uuid": "m9", "sender": "system", "created_at": "2024-03-03T10:00:01Z",
                 "content": [{"type": "text", "text": "Conversation resumed"}]},
            ],
        },
    ]
    projects = [
        {"uuid": "proj-1", "name": "Garden", "created_at": "2024-01-01T00:00:00Z"},
        {"uuid": "proj-2", "name": ""},
    ]

    (root / "conversations.json").write_text(json.dumps(conversations), encoding="utf-8")
    (root / "projects.json").write_text(json.dumps(projects), encoding="utf-8")
    return root


@pytest.fixture
def claude_code_home(tmp_path):
    """Create a bare Claude Code home (no Cowork slugs).

    session-001 mixes kept records with tool results, slash-command echoes,
    progress entries, a malformed line and an empty assistant record.
    session-002 has no usable messages.
    """
    home = tmp_path / "claude-home"
    project_dir = home / "projects" / "-Users-test-myproject"

    _write_jsonl(project_dir / "session-001.jsonl", [
        _user("Refactor the auth module", "2025-01-20T10:00:00Z", "u1"),
        {"type": "assistant", "uuid": "a1", "timestamp": "2025-01-20T10:00:30Z",
         "message": {"role": "assistant", "model": "claude-sonnet-4", "content": [
             {"type": "text", "text": "Sure, reading it now."},
             {"type": "tool_use", "id": "toolu_1", "name": "Read", "input": {"file_path": "/src/auth.ts"}},
         ]}},
        {"type": "user", "uuid": "u2", "timestamp": "2025-01-20T10:00:31Z",
         "message": {"role": "user", "content": [
             {"type": "tool_result", "tool_use_id": "toolu_1", "content": "export function auth() {}"},
         ]}},
        _user("<command-message>init is analyzing</command-message>", "2025-01-20T10:00:40Z", "u3"),
        {"type": "progress", "data": {"type": "hook_progress"}},
        "{not valid json",
        _assistant("Done.", "2025-01-20T10:01:00Z", "a2"),
        {"type": "assistant", "uuid": "a3", "timestamp": "2025-01-20T10:02:00Z",
         "message": {"role": "assistant", "content": []}},
    ])
    _write_jsonl(project_dir / "session-002.jsonl", [
        {"type": "progress", "data": {"type": "hook_progress"}},
        {"type": "summary", "summary": "Nothing happened"},
    ])
    (project_dir / "notes.txt").write_text("not a session", encoding="utf-8")
    (home / "projects" / "-var-data-empty").mkdir()

    return home


@pytest.fixture
def cowork_home(tmp_path):
    """Create a Cowork layout with all three discovery paths.

    - projects/-sessions-friendly-helpful-pasteur: one session with a
      subagent log (plus a non-agent file that must be ignored)
    - projects/-Users-test-plain: a Claude Code project Cowork must skip
    - local-agent-mode-sessions/local_abc123/vm-sess-xyz/.claude/projects:
      a nested LAMS tree
    - local-agent-mode-sessions/short/...: too short a name to descend into
    """
    home = tmp_path / "cowork-home"
    project_dir = home / "projects" / "-sessions-friendly-helpful-pasteur"

    _write_jsonl(project_dir / "session-cw-001.jsonl", [
        _user("ok", "2025-02-01T09:00:00Z", "m-u1"),
        _user("Build a sales dashboard for Q3", "2025-02-01T09:00:05Z", "m-u2"),
        _assistant("Starting on the dashboard", "2025-02-01T09:00:20Z", "m-a1"),
    ])
    subagents = project_dir / "session-cw-001" / "subagents"
    _write_jsonl(subagents / "agent-a1.jsonl", [
        _assistant("Subagent gathered data", "2025-02-01T09:00:10Z", "s-a1", model="claude-haiku"),
        _assistant("Subagent tie", "2025-02-01T09:00:20Z", "s-a2", model="claude-haiku"),
    ])
    _write_jsonl(subagents / "notes.jsonl", [
        _assistant("Should never appear", "2025-02-01T09:00:01Z", "x-1"),
    ])

    _write_jsonl(home / "projects" / "-Users-test-plain" / "plain.jsonl", [
        _user("A plain Claude Code session", "2025-02-01T08:00:00Z", "p-1"),
    ])

    lams = home / "local-agent-mode-sessions"
    _write_jsonl(
        lams / "local_abc123" / "vm-sess-xyz" / ".claude" / "projects" / "-sessions-lams-slug" / "lams-001.jsonl",
        [
            _user("Summarize the quarterly report please", "2025-02-02T12:00:00Z", "l-u1"),
            _assistant("Here is the summary.", "2025-02-02T12:00:30Z", "l-a1"),
        ],
    )
    _write_jsonl(
        lams / "short" / "inner-directory" / ".claude" / "projects" / "-sessions-hidden" / "h.jsonl",
        [_user("This one is never discovered", "2025-02-03T12:00:00Z", "h-1")],
    )

    return home
