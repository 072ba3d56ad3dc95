"""Repository layer: task store accessors and vault discovery."""

from .memory import MemoryTaskStore
from .protocol import TaskStore
from .taskwarrior import TaskwarriorStore
from .vault import CandidateLine, VaultScanner

__all__ = [
    "CandidateLine",
    "MemoryTaskStore",
    "TaskStore",
    "TaskwarriorStore",
    "VaultScanner",
]
