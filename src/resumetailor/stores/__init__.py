"""Resume, attempt and progress storage."""

from resumetailor.stores.base import AttemptStore, ProgressStore, ResumeStore
from resumetailor.stores.json_file import JsonFileStore
from resumetailor.stores.memory import InMemoryStore

__all__ = [
    "ResumeStore",
    "AttemptStore",
    "ProgressStore",
    "InMemoryStore",
    "JsonFileStore",
]
