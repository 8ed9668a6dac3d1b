"""Normalize AI conversation exports into one canonical model."""

from .adapters import detect_provider, get_adapter
from .core import (
    CanonicalConversation,
    CanonicalMessage,
    CanonicalProject,
    ContentPart,
    ImportResult,
)
from .importer import ImportSink, MemorySink, run_import

__version__ = "0.1.0"

__all__ = [
    "CanonicalConversation",
    "CanonicalMessage",
    "CanonicalProject",
    "ContentPart",
    "ImportResult",
    "ImportSink",
    "MemorySink",
    "detect_provider",
    "get_adapter",
    "run_import",
]
