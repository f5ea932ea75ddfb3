"""History entry model for tracking mount operations.

This module defines data structures for recording every mount and unmount
attempt in an append-only history file.
"""

import json
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from diskbridge.models.mount import AccessMode
from diskbridge.models.result import FailedStep, MountAndMapResult, UnmountAndUnmapResult


class HistoryOperation(str, Enum):
    """Type of operation recorded in history.

    Attributes:
        MOUNT: Attach + access surface creation.
        UNMOUNT: Access surface removal + detach.
    """

    MOUNT = "mount"
    UNMOUNT = "unmount"


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single completed mount or unmount attempt.

    Immutable. Failed attempts are recorded too, with their diagnostics.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the operation completed (ISO 8601 with timezone).
        operation: Mount or unmount.
        disk_index: Disk the operation targeted.
        partition_number: Partition (mount only).
        access_mode: Access mode requested.
        drive_letter: Drive letter involved, if any.
        network_location_name: Network location alias involved, if any.
        distro_name: Guest distribution (mount only).
        guest_path: Mount point inside the guest (mount only).
        host_path: Host path to the mount (mount only).
        success: Whether the operation succeeded.
        error_message: Failure description.
        error_code: Gateway failure code.
        error_hint: Gateway remedy hint.
        failed_step: Step that failed.
    """

    id: str
    timestamp: str
    operation: HistoryOperation
    disk_index: int
    partition_number: int | None = None
    access_mode: AccessMode = AccessMode.NETWORK_LOCATION
    drive_letter: str | None = None
    network_location_name: str | None = None
    distro_name: str | None = None
    guest_path: str | None = None
    host_path: str | None = None
    success: bool = True
    error_message: str | None = None
    error_code: str | None = None
    error_hint: str | None = None
    failed_step: FailedStep = FailedStep.NONE

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Optional fields are omitted when unset.
        """
        result: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "operation": self.operation.value,
            "disk_index": self.disk_index,
            "access_mode": self.access_mode.value,
            "success": self.success,
            "failed_step": self.failed_step.value,
        }
        optional = {
            "partition_number": self.partition_number,
            "drive_letter": self.drive_letter,
            "network_location_name": self.network_location_name,
            "distro_name": self.distro_name,
            "guest_path": self.guest_path,
            "host_path": self.host_path,
            "error_message": self.error_message,
            "error_code": self.error_code,
            "error_hint": self.error_hint,
        }
        result.update({key: value for key, value in optional.items() if value is not None})
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If an enum value is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            operation=HistoryOperation(data["operation"]),
            disk_index=int(data["disk_index"]),
            partition_number=data.get("partition_number"),
            access_mode=AccessMode(data.get("access_mode", AccessMode.NETWORK_LOCATION.value)),
            drive_letter=data.get("drive_letter"),
            network_location_name=data.get("network_location_name"),
            distro_name=data.get("distro_name"),
            guest_path=data.get("guest_path"),
            host_path=data.get("host_path"),
            success=data.get("success", True),
            error_message=data.get("error_message"),
            error_code=data.get("error_code"),
            error_hint=data.get("error_hint"),
            failed_step=FailedStep(data.get("failed_step", FailedStep.NONE.value)),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> "HistoryEntry":
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        data = json.loads(line.strip())
        return cls.from_dict(data)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def entry_from_mount_result(result: MountAndMapResult) -> HistoryEntry:
    """Create a history entry describing a mount attempt."""
    return HistoryEntry(
        id=_new_id(),
        timestamp=result.timestamp,
        operation=HistoryOperation.MOUNT,
        disk_index=result.disk_index,
        partition_number=result.partition,
        access_mode=result.access_mode,
        drive_letter=result.drive_letter,
        network_location_name=result.network_location_name,
        distro_name=result.distro_name,
        guest_path=result.guest_path,
        host_path=result.host_path,
        success=result.success,
        error_message=result.error_message,
        error_code=result.error_code,
        error_hint=result.error_hint,
        failed_step=result.failed_step,
    )


def entry_from_unmount_result(result: UnmountAndUnmapResult) -> HistoryEntry:
    """Create a history entry describing an unmount attempt."""
    return HistoryEntry(
        id=_new_id(),
        timestamp=result.timestamp,
        operation=HistoryOperation.UNMOUNT,
        disk_index=result.disk_index,
        access_mode=result.access_mode,
        drive_letter=result.drive_letter,
        network_location_name=result.network_location_name,
        success=result.success,
        error_message=result.error_message,
        failed_step=result.failed_step,
    )
