"""Platform-aware path resolution for well-known Claude data directories."""

import os
import sys
from pathlib import Path


def get_claude_home_path() -> Path:
    """Return the Claude Code home directory (holds projects/)."""
    env = os.environ.get("CONTEXT_CARRY_CLAUDE_HOME")
    if env:
        return Path(env)

    return Path.home() / ".claude"


def get_claude_desktop_path() -> Path:
    """Return the Claude desktop app's data directory (Cowork sessions live here)."""
    env = os.environ.get("CONTEXT_CARRY_CLAUDE_DESKTOP_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "Claude"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "Claude"
    else:  # Linux
        return Path.home() / ".config" / "Claude"
