"""Active mount model.

This module defines the persisted record of a partition that is currently
attached to the guest and exposed on the host.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class AccessMode(str, Enum):
    """How a mounted partition is exposed on the host.

    Attributes:
        DRIVE_LETTER_LEGACY: Mapped to a host drive letter (e.g. ``Z:``).
        NETWORK_LOCATION: Exposed as an Explorer network location alias.
        NONE: Only reachable through the raw host path.
    """

    DRIVE_LETTER_LEGACY = "drive_letter_legacy"
    NETWORK_LOCATION = "network_location"
    NONE = "none"

    @property
    def requires_drive_letter(self) -> bool:
        """Check if this mode needs a drive letter."""
        return self is AccessMode.DRIVE_LETTER_LEGACY


def utc_now() -> str:
    """Current time as an ISO 8601 UTC string."""
    return datetime.now(UTC).isoformat()


def is_valid_drive_letter(letter: str | None) -> bool:
    """Check if ``letter`` is a single ASCII letter A-Z (any case)."""
    return letter is not None and len(letter) == 1 and letter.isascii() and letter.isalpha()


def normalize_drive_letter(letter: str | None) -> str | None:
    """Upper-case a drive letter, tolerating a trailing colon (``"z:"``)."""
    if letter is None:
        return None
    letter = letter.strip().rstrip(":")
    return letter.upper() if letter else None


@dataclass(frozen=True, slots=True)
class ActiveMount:
    """A partition currently attached to the guest and exposed on the host.

    Exactly one ActiveMount exists per (disk_index, partition_number) in the
    state store. Mode-specific fields are only populated for their mode.

    Attributes:
        disk_index: Physical disk index on the host.
        partition_number: 1-based partition number on that disk.
        access_mode: How the mount is exposed on the host.
        drive_letter: Host drive letter (drive-letter-legacy only).
        network_location_name: Network location alias (network-location only).
        distro_name: Guest distribution that owns the mount.
        guest_path: Mount point inside the guest (e.g. /mnt/wsl/PHYSICALDRIVE2p1).
        host_path: Host path to the guest mount (e.g. \\\\wsl.localhost\\Ubuntu\\...).
        is_verified: Whether the host path was reachable at last check.
        last_verified: ISO timestamp of the last successful check.
        mounted_at: ISO timestamp of registration.
        id: Opaque identifier.
    """

    disk_index: int
    partition_number: int
    access_mode: AccessMode = AccessMode.NETWORK_LOCATION
    drive_letter: str | None = None
    network_location_name: str | None = None
    distro_name: str = ""
    guest_path: str = ""
    host_path: str = ""
    is_verified: bool = False
    last_verified: str | None = None
    mounted_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        """Validate identity and mode-specific fields."""
        if self.disk_index < 0:
            msg = "Disk index must be non-negative"
            raise ValueError(msg)
        if self.partition_number < 1:
            msg = "Partition number must be greater than 0"
            raise ValueError(msg)
        if self.access_mode.requires_drive_letter:
            if not is_valid_drive_letter(self.drive_letter):
                msg = "Drive letter (A-Z) is required for drive-letter mode"
                raise ValueError(msg)
            # Frozen dataclass: normalize through object.__setattr__
            object.__setattr__(self, "drive_letter", normalize_drive_letter(self.drive_letter))
        elif self.drive_letter is not None:
            msg = f"Drive letter is not used in {self.access_mode.value} mode"
            raise ValueError(msg)
        if self.access_mode is not AccessMode.NETWORK_LOCATION and self.network_location_name:
            msg = f"Network location name is not used in {self.access_mode.value} mode"
            raise ValueError(msg)

    @property
    def key(self) -> tuple[int, int]:
        """Identity of the mount in the state store."""
        return (self.disk_index, self.partition_number)

    @property
    def access_label(self) -> str:
        """Short human-readable description of the access surface."""
        if self.access_mode is AccessMode.DRIVE_LETTER_LEGACY:
            return f"{self.drive_letter}:"
        if self.access_mode is AccessMode.NETWORK_LOCATION:
            return self.network_location_name or "(network location)"
        return "-"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "disk_index": self.disk_index,
            "partition_number": self.partition_number,
            "access_mode": self.access_mode.value,
            "drive_letter": self.drive_letter,
            "network_location_name": self.network_location_name,
            "distro_name": self.distro_name,
            "guest_path": self.guest_path,
            "host_path": self.host_path,
            "is_verified": self.is_verified,
            "last_verified": self.last_verified,
            "mounted_at": self.mounted_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActiveMount":
        """Deserialize from dictionary.

        Raises:
            KeyError: If disk_index or partition_number is missing.
            ValueError: If any field fails validation.
        """
        return cls(
            id=data.get("id") or uuid.uuid4().hex,
            disk_index=int(data["disk_index"]),
            partition_number=int(data["partition_number"]),
            access_mode=AccessMode(data.get("access_mode", AccessMode.NETWORK_LOCATION.value)),
            drive_letter=data.get("drive_letter"),
            network_location_name=data.get("network_location_name"),
            distro_name=data.get("distro_name") or "",
            guest_path=data.get("guest_path") or "",
            host_path=data.get("host_path") or "",
            is_verified=bool(data.get("is_verified", False)),
            last_verified=data.get("last_verified"),
            mounted_at=data.get("mounted_at") or utc_now(),
        )
