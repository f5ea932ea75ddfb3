"""Typed outcomes reported by the attach and access gateways.

Gateway outcomes are produced once per call, consumed by an orchestrator
and never persisted.
"""

from dataclasses import dataclass

from diskbridge.models.mount import AccessMode
from diskbridge.utils.keyvalue import get_bool, get_error_message, is_ok

# Fragments of detach errors that mean the disk is no longer attached.
ALREADY_DETACHED_MARKERS: tuple[str, ...] = (
    "error_file_not_found",
    "not found",
    "not attached",
    "not mounted",
    "already detached",
    "already unmounted",
    "no such device",
)


@dataclass(frozen=True, slots=True)
class AttachOutcome:
    """Result of attaching a disk to the guest.

    Attributes:
        success: Whether the disk is attached and mounted in the guest.
        distro_name: Guest distribution used for the mount.
        guest_path: Mount point inside the guest.
        host_path: Host-side path to the guest mount point.
        already_attached: The disk was attached before this call.
        host_path_verified: Whether the helper could see ``host_path``
            (None when it did not check).
        error_message: Failure description from the helper.
        error_code: Machine-readable failure code (e.g. XFS_UNSUPPORTED_FEATURES).
        error_hint: Suggested remedy for the user.
        diagnostic_excerpt: Kernel log lines related to the failure.
    """

    success: bool
    distro_name: str | None = None
    guest_path: str | None = None
    host_path: str | None = None
    already_attached: bool = False
    host_path_verified: bool | None = None
    error_message: str | None = None
    error_code: str | None = None
    error_hint: str | None = None
    diagnostic_excerpt: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the attach failed."""
        return not self.success

    @classmethod
    def from_key_values(cls, values: dict[str, str]) -> "AttachOutcome":
        """Build an outcome from parsed helper output.

        Args:
            values: Case-insensitive mapping from :func:`parse_key_values`.

        Returns:
            AttachOutcome; ``success`` is True only for ``STATUS=OK``.
        """
        return cls(
            success=is_ok(values),
            distro_name=values.get("DistroName") or None,
            guest_path=values.get("MountPathLinux") or None,
            host_path=values.get("MountPathUNC") or None,
            already_attached=get_bool(values, "AlreadyMounted") or False,
            host_path_verified=get_bool(values, "UncVerified"),
            error_message=get_error_message(values),
            error_code=values.get("ErrorCode") or None,
            error_hint=values.get("ErrorHint") or None,
            diagnostic_excerpt=values.get("DmesgSummary") or None,
        )


@dataclass(frozen=True, slots=True)
class DetachOutcome:
    """Result of detaching a disk from the guest."""

    success: bool
    disk_index: int
    error_message: str | None = None

    @property
    def is_already_detached(self) -> bool:
        """Check if the failure only says the disk was not attached anymore."""
        if self.success or not self.error_message:
            return False
        message = self.error_message.lower()
        return any(marker in message for marker in ALREADY_DETACHED_MARKERS)

    @classmethod
    def from_key_values(cls, values: dict[str, str], disk_index: int) -> "DetachOutcome":
        """Build an outcome from parsed helper output."""
        reported = values.get("DiskIndex", "")
        return cls(
            success=is_ok(values),
            disk_index=int(reported) if reported.isdigit() else disk_index,
            error_message=get_error_message(values),
        )


@dataclass(frozen=True, slots=True)
class AccessInfo:
    """Description of an access surface that exists (or existed) on the host."""

    access_mode: AccessMode
    host_path: str = ""
    drive_letter: str | None = None
    network_location_name: str | None = None


@dataclass(frozen=True, slots=True)
class AccessOutcome:
    """Result of creating an access surface.

    Attributes:
        success: Whether the surface was created.
        access_info: The created surface (success only).
        error_message: Failure description (failure only).
        failed_step_hint: Step the gateway attributes the failure to.
    """

    success: bool
    access_info: AccessInfo | None = None
    error_message: str | None = None
    failed_step_hint: str | None = None

    @classmethod
    def ok(cls, access_info: AccessInfo) -> "AccessOutcome":
        """Create a successful outcome."""
        return cls(success=True, access_info=access_info)

    @classmethod
    def fail(cls, error_message: str, failed_step_hint: str | None = "map") -> "AccessOutcome":
        """Create a failed outcome."""
        return cls(success=False, error_message=error_message, failed_step_hint=failed_step_hint)


@dataclass(frozen=True, slots=True)
class RemoveAccessOutcome:
    """Result of removing an access surface.

    Attributes:
        success: Whether the surface is gone.
        error_message: Failure description.
        failed_step_hint: Step the gateway attributes the failure to.
        exit_code: Exit code of the helper process, when one ran.
    """

    success: bool
    error_message: str | None = None
    failed_step_hint: str | None = None
    exit_code: int | None = None

    @property
    def is_silent_success(self) -> bool:
        """Failure without any error text from a helper that exited with 0."""
        return not self.success and not self.error_message and self.exit_code == 0

    @classmethod
    def ok(cls, exit_code: int | None = None) -> "RemoveAccessOutcome":
        """Create a successful outcome."""
        return cls(success=True, exit_code=exit_code)

    @classmethod
    def fail(
        cls,
        error_message: str | None,
        exit_code: int | None = None,
        failed_step_hint: str | None = "unmap",
    ) -> "RemoveAccessOutcome":
        """Create a failed outcome."""
        return cls(
            success=False,
            error_message=error_message,
            failed_step_hint=failed_step_hint,
            exit_code=exit_code,
        )
