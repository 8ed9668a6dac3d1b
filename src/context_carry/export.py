"""Render canonical conversations as Markdown or JSON."""

import json
from dataclasses import asdict
from datetime import datetime

from .core import CanonicalConversation, CanonicalProject
from .normalize import is_unknown_timestamp


def _iso(value: datetime | None) -> str | None:
    """ISO string, or None for absent/unknown instants."""
    if is_unknown_timestamp(value):
        return None
    return value.isoformat()


def conversation_to_markdown(conversation: CanonicalConversation) -> str:
    """Export a conversation and its messages as clean Markdown."""
    lines = [f"# {conversation.title}", ""]

    if conversation.project_source_id:
        lines.append(f"**Project:** {conversation.project_source_id}")
    lines.append(f"**Source:** {conversation.provider}")
    if conversation.model:
        lines.append(f"**Model:** {conversation.model}")
    if _iso(conversation.created_at):
        lines.append(f"**Created:** {_iso(conversation.created_at)}")
    if _iso(conversation.updated_at):
        lines.append(f"**Updated:** {_iso(conversation.updated_at)}")
    lines.append(f"**Messages:** {conversation.message_count}")
    lines.append(f"**Words:** {conversation.total_words}")
    lines.extend(["", "---", ""])

    for msg in conversation.messages:
        role_label = msg.role.capitalize()
        if msg.is_subagent:
            role_label += " (subagent)"
        ts = ""
        if not is_unknown_timestamp(msg.created_at):
            ts = f" ({msg.created_at.strftime('%Y-%m-%d %H:%M')})"
        lines.append(f"## {role_label}{ts}")
        lines.append("")
        lines.append(msg.text)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def conversation_to_dict(conversation: CanonicalConversation) -> dict:
    """JSON-serializable dict, including the derived counts."""
    return {
        "source_id": conversation.source_id,
        "provider": conversation.provider,
        "title": conversation.title,
        "created_at": _iso(conversation.created_at),
        "updated_at": _iso(conversation.updated_at),
        "message_count": conversation.message_count,
        "total_words": conversation.total_words,
        "model": conversation.model,
        "project_source_id": conversation.project_source_id,
        "messages": [
            {
                "source_id": msg.source_id,
                "role": msg.role,
                "content": [
                    {k: v for k, v in asdict(part).items() if v is not None}
                    for part in msg.content
                ],
                "text": msg.text,
                "word_count": msg.word_count,
                "created_at": _iso(msg.created_at),
                "model": msg.model,
                "is_subagent": msg.is_subagent,
            }
            for msg in conversation.messages
        ],
    }


def conversation_to_json(conversation: CanonicalConversation) -> str:
    """Export a conversation and its messages as structured JSON."""
    return json.dumps(conversation_to_dict(conversation), indent=2, ensure_ascii=False)


def project_to_dict(project: CanonicalProject) -> dict:
    return {
        "source_id": project.source_id,
        "provider": project.provider,
        "name": project.name,
        "created_at": _iso(project.created_at),
        "updated_at": _iso(project.updated_at),
        "conversation_count": project.conversation_count,
    }
