"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from diskbridge.core.config import DiskBridgeConfig, MountOperationsConfig, StartupConfig
from diskbridge.core.factory import Services
from diskbridge.core.history import HistoryLog
from diskbridge.core.mount import MountOrchestrator
from diskbridge.core.state import MountStateStore
from diskbridge.core.unmount import UnmountOrchestrator
from diskbridge.gateways.base import (
    AccessGateway,
    AttachGateway,
    DriveLetterTable,
    FilesystemDetector,
)
from diskbridge.models.mount import AccessMode
from diskbridge.models.outcome import (
    AccessInfo,
    AccessOutcome,
    AttachOutcome,
    DetachOutcome,
    RemoveAccessOutcome,
)

HOST_PATH = "\\\\wsl.localhost\\Ubuntu\\mnt\\wsl\\PHYSICALDRIVE1p1"


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point per-user config and state directories into tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    return tmp_path


@pytest.fixture
def lsblk_before() -> str:
    """lsblk -P snapshot before a disk is attached."""
    return """NAME="sda" PKNAME="" FSTYPE=""
NAME="sdb" PKNAME="" FSTYPE="ext4"
NAME="sdc" PKNAME="" FSTYPE="swap\""""


@pytest.fixture
def lsblk_after_one_disk() -> str:
    """lsblk -P snapshot after attaching a disk with an xfs first partition."""
    return """NAME="sda" PKNAME="" FSTYPE=""
NAME="sdb" PKNAME="" FSTYPE="ext4"
NAME="sdc" PKNAME="" FSTYPE="swap"
NAME="sdd" PKNAME="" FSTYPE=""
NAME="sdd1" PKNAME="sdd" FSTYPE="xfs"
NAME="sdd2" PKNAME="sdd" FSTYPE="ext4\""""


@pytest.fixture
def lsblk_after_two_disks() -> str:
    """lsblk -P snapshot in which two new disks appeared."""
    return """NAME="sda" PKNAME="" FSTYPE=""
NAME="sdb" PKNAME="" FSTYPE="ext4"
NAME="sdc" PKNAME="" FSTYPE="swap"
NAME="sdd" PKNAME="" FSTYPE=""
NAME="sdd1" PKNAME="sdd" FSTYPE="xfs"
NAME="sde" PKNAME="" FSTYPE=""
NAME="sde1" PKNAME="sde" FSTYPE="ext4\""""


@pytest.fixture
def attach_ok() -> AttachOutcome:
    """Successful attach outcome with a verified host path."""
    return AttachOutcome(
        success=True,
        distro_name="Ubuntu",
        guest_path="/mnt/wsl/PHYSICALDRIVE1p1",
        host_path=HOST_PATH,
        host_path_verified=True,
    )


@pytest.fixture
def attach_gateway(attach_ok: AttachOutcome) -> AsyncMock:
    """AttachGateway fake that succeeds by default."""
    gateway = AsyncMock(spec=AttachGateway)
    gateway.attach.return_value = attach_ok
    gateway.attach_bare.return_value = AttachOutcome(success=True)
    gateway.detach.side_effect = lambda disk: DetachOutcome(success=True, disk_index=disk)
    return gateway


@pytest.fixture
def access_gateway() -> AsyncMock:
    """AccessGateway fake that echoes the requested surface back."""

    async def create_access(
        mode: AccessMode,
        host_path: str,
        drive_letter: str | None = None,
        network_location_name: str | None = None,
        disk_index: int = 0,
        partition: int = 1,
    ) -> AccessOutcome:
        name = network_location_name or f"Disk {disk_index} Partition {partition}"
        return AccessOutcome.ok(
            AccessInfo(
                access_mode=mode,
                host_path=host_path,
                drive_letter=drive_letter if mode is AccessMode.DRIVE_LETTER_LEGACY else None,
                network_location_name=name if mode is AccessMode.NETWORK_LOCATION else None,
            )
        )

    gateway = AsyncMock(spec=AccessGateway)
    gateway.create_access.side_effect = create_access
    gateway.remove_access.return_value = RemoveAccessOutcome.ok(exit_code=0)
    return gateway


@pytest.fixture
def drive_letters() -> AsyncMock:
    """DriveLetterTable fake with C: and Z: assigned."""
    table = AsyncMock(spec=DriveLetterTable)
    table.assigned_letters.return_value = {"C", "Z"}
    return table


@pytest.fixture
def state_store(tmp_path: Path, drive_letters: AsyncMock) -> MountStateStore:
    """MountStateStore backed by a temporary file."""
    return MountStateStore(
        tmp_path / "mount-state.json",
        drive_letters=drive_letters,
        reconcile_timeout_ms=500,
    )


@pytest.fixture
def history_log(tmp_path: Path) -> HistoryLog:
    """HistoryLog backed by a temporary file."""
    return HistoryLog(tmp_path / "history.jsonl", max_entries=100)


@pytest.fixture
def fast_mount_config() -> MountOperationsConfig:
    """Mount settings with the shortest allowed polling delay."""
    return MountOperationsConfig(host_path_retries=3, host_path_delay_ms=10)


@pytest.fixture
def services(
    attach_gateway: AsyncMock,
    access_gateway: AsyncMock,
    state_store: MountStateStore,
    history_log: HistoryLog,
    fast_mount_config: MountOperationsConfig,
) -> Services:
    """Services wired to the gateway fakes, with startup reconciliation off."""
    config = DiskBridgeConfig(mount=fast_mount_config, startup=StartupConfig(auto_reconcile=False))
    return Services(
        config=config,
        state=state_store,
        history=history_log,
        mounter=MountOrchestrator(
            attach_gateway, access_gateway, state_store, history_log, fast_mount_config
        ),
        unmounter=UnmountOrchestrator(attach_gateway, access_gateway, state_store, history_log),
        detector=AsyncMock(spec=FilesystemDetector),
    )
