"""Combined results returned by the mount and unmount orchestrators.

These are the external return contract: every orchestrator call yields
exactly one result, with a failed step tag on failure and no error message
on success.
"""

from dataclasses import dataclass, field
from enum import Enum

from diskbridge.models.mount import AccessMode, utc_now


class FailedStep(str, Enum):
    """Workflow step a combined result failed at."""

    VALIDATION = "validation"
    MOUNT = "mount"
    MAP = "map"
    UNMOUNT = "unmount"
    UNMAP = "unmap"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class MountAndMapResult:
    """Outcome of attaching a partition and creating its access surface.

    Attributes:
        success: Whether the whole workflow succeeded.
        disk_index: Requested disk index.
        partition: Requested partition number.
        access_mode: Requested access mode.
        drive_letter: Assigned drive letter (drive-letter mode, success only).
        network_location_name: Created alias (network-location mode).
        distro_name: Guest distribution used.
        guest_path: Mount point inside the guest.
        host_path: Host path to the guest mount.
        error_message: Failure description (failure only).
        error_code: Gateway failure code, passed through verbatim.
        error_hint: Gateway remedy hint, passed through verbatim.
        diagnostic_excerpt: Gateway diagnostic lines, passed through verbatim.
        failed_step: Step that failed, NONE on success.
        warnings: Non-fatal problems (persistence, verification).
        timestamp: ISO timestamp of completion.
    """

    success: bool
    disk_index: int
    partition: int
    access_mode: AccessMode = AccessMode.NETWORK_LOCATION
    drive_letter: str | None = None
    network_location_name: str | None = None
    distro_name: str | None = None
    guest_path: str | None = None
    host_path: str | None = None
    error_message: str | None = None
    error_code: str | None = None
    error_hint: str | None = None
    diagnostic_excerpt: str | None = None
    failed_step: FailedStep = FailedStep.NONE
    warnings: tuple[str, ...] = ()
    timestamp: str = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Enforce the message/step contract."""
        if self.success and (self.error_message or self.failed_step is not FailedStep.NONE):
            msg = "Successful result cannot carry an error message or failed step"
            raise ValueError(msg)
        if not self.success and (not self.error_message or self.failed_step is FailedStep.NONE):
            msg = "Failed result requires an error message and a failed step"
            raise ValueError(msg)

    @property
    def failed(self) -> bool:
        """Check if the workflow failed."""
        return not self.success

    @classmethod
    def failure(
        cls,
        disk_index: int,
        partition: int,
        access_mode: AccessMode,
        error_message: str,
        failed_step: FailedStep,
        **details: object,
    ) -> "MountAndMapResult":
        """Create a failed result.

        Args:
            disk_index: Requested disk index.
            partition: Requested partition number.
            access_mode: Requested access mode.
            error_message: Failure description.
            failed_step: Step that failed.
            **details: Any other field (error_code, distro_name, ...).
        """
        return cls(
            success=False,
            disk_index=disk_index,
            partition=partition,
            access_mode=access_mode,
            error_message=error_message,
            failed_step=failed_step,
            **details,  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True)
class UnmountAndUnmapResult:
    """Outcome of removing an access surface and detaching the disk."""

    success: bool
    disk_index: int
    access_mode: AccessMode = AccessMode.NETWORK_LOCATION
    drive_letter: str | None = None
    network_location_name: str | None = None
    error_message: str | None = None
    failed_step: FailedStep = FailedStep.NONE
    warnings: tuple[str, ...] = ()
    timestamp: str = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Enforce the message/step contract."""
        if self.success and (self.error_message or self.failed_step is not FailedStep.NONE):
            msg = "Successful result cannot carry an error message or failed step"
            raise ValueError(msg)
        if not self.success and (not self.error_message or self.failed_step is FailedStep.NONE):
            msg = "Failed result requires an error message and a failed step"
            raise ValueError(msg)

    @property
    def failed(self) -> bool:
        """Check if the workflow failed."""
        return not self.success

    @classmethod
    def failure(
        cls,
        disk_index: int,
        access_mode: AccessMode,
        error_message: str,
        failed_step: FailedStep,
        **details: object,
    ) -> "UnmountAndUnmapResult":
        """Create a failed result."""
        return cls(
            success=False,
            disk_index=disk_index,
            access_mode=access_mode,
            error_message=error_message,
            failed_step=failed_step,
            **details,  # type: ignore[arg-type]
        )
