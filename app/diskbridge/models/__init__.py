"""Data models for diskbridge.

This module exports the core data structures used throughout the application.
"""

from diskbridge.models.history import (
    HistoryEntry,
    HistoryOperation,
    entry_from_mount_result,
    entry_from_unmount_result,
)
from diskbridge.models.mount import AccessMode, ActiveMount
from diskbridge.models.outcome import (
    AccessInfo,
    AccessOutcome,
    AttachOutcome,
    DetachOutcome,
    RemoveAccessOutcome,
)
from diskbridge.models.result import FailedStep, MountAndMapResult, UnmountAndUnmapResult

__all__ = [
    "AccessInfo",
    "AccessMode",
    "AccessOutcome",
    "ActiveMount",
    "AttachOutcome",
    "DetachOutcome",
    "FailedStep",
    "HistoryEntry",
    "HistoryOperation",
    "MountAndMapResult",
    "RemoveAccessOutcome",
    "UnmountAndUnmapResult",
    "entry_from_mount_result",
    "entry_from_unmount_result",
]
