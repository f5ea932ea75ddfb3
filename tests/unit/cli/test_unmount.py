"""Unit tests for the unmount command."""

import asyncio
from unittest.mock import AsyncMock, call, patch

from diskbridge.cli.main import app
from diskbridge.core.factory import Services
from diskbridge.models.history import HistoryEntry, HistoryOperation
from diskbridge.models.mount import AccessMode, ActiveMount
from diskbridge.models.outcome import AccessInfo, RemoveAccessOutcome
from typer.testing import CliRunner

runner = CliRunner()


def _record_letter_mount(services: Services, partition: int = 1, letter: str = "Z") -> None:
    asyncio.run(
        services.state.register(
            ActiveMount(
                disk_index=1,
                partition_number=partition,
                access_mode=AccessMode.DRIVE_LETTER_LEGACY,
                drive_letter=letter,
                host_path=f"\\\\wsl.localhost\\Ubuntu\\mnt\\wsl\\PHYSICALDRIVE1p{partition}",
            )
        )
    )


class TestUnmountCommand:
    """Tests for diskbridge unmount."""

    def test_uses_recorded_mount(self, services: Services, access_gateway: AsyncMock) -> None:
        """Mode and letter come from the state record."""
        _record_letter_mount(services)

        with patch("diskbridge.cli.commands.unmount.get_services", return_value=services):
            result = runner.invoke(app, ["unmount", "1"])

        assert result.exit_code == 0
        assert "Disk 1 unmounted successfully." in result.output
        access_gateway.remove_access.assert_awaited_once_with(
            AccessInfo(access_mode=AccessMode.DRIVE_LETTER_LEGACY, drive_letter="Z")
        )
        assert not asyncio.run(services.state.is_disk_mounted(1))

    def test_falls_back_to_history(self, services: Services, access_gateway: AsyncMock) -> None:
        """Without a record the last successful mount in history is used."""
        asyncio.run(
            services.history.append(
                HistoryEntry(
                    id="abc123456789",
                    timestamp="2026-01-26T14:30:00+00:00",
                    operation=HistoryOperation.MOUNT,
                    disk_index=1,
                    partition_number=1,
                    access_mode=AccessMode.NETWORK_LOCATION,
                    network_location_name="Data",
                )
            )
        )

        with patch("diskbridge.cli.commands.unmount.get_services", return_value=services):
            result = runner.invoke(app, ["unmount", "1"])

        assert result.exit_code == 0
        access_gateway.remove_access.assert_awaited_once_with(
            AccessInfo(access_mode=AccessMode.NETWORK_LOCATION, network_location_name="Data")
        )

    def test_nothing_known_detaches_only(
        self, services: Services, access_gateway: AsyncMock, attach_gateway: AsyncMock
    ) -> None:
        """An unknown disk is only detached."""
        with patch("diskbridge.cli.commands.unmount.get_services", return_value=services):
            result = runner.invoke(app, ["unmount", "4"])

        assert result.exit_code == 0
        access_gateway.remove_access.assert_not_awaited()
        attach_gateway.detach.assert_awaited_once_with(4)

    def test_explicit_mode_still_unmaps_record(
        self, services: Services, access_gateway: AsyncMock
    ) -> None:
        """An explicit different mode still removes the recorded letter."""
        _record_letter_mount(services)

        with patch("diskbridge.cli.commands.unmount.get_services", return_value=services):
            result = runner.invoke(app, ["unmount", "1", "--mode", "none"])

        assert result.exit_code == 0
        access_gateway.remove_access.assert_awaited_once_with(
            AccessInfo(access_mode=AccessMode.DRIVE_LETTER_LEGACY, drive_letter="Z")
        )
        assert not asyncio.run(services.state.is_disk_mounted(1))

    def test_unmaps_every_partition_of_the_disk(
        self, services: Services, access_gateway: AsyncMock
    ) -> None:
        """Each recorded partition's letter is removed before the records go."""
        _record_letter_mount(services)
        _record_letter_mount(services, partition=2, letter="Y")

        with patch("diskbridge.cli.commands.unmount.get_services", return_value=services):
            result = runner.invoke(app, ["unmount", "1"])

        assert result.exit_code == 0
        assert access_gateway.remove_access.await_args_list == [
            call(AccessInfo(access_mode=AccessMode.DRIVE_LETTER_LEGACY, drive_letter="Z")),
            call(AccessInfo(access_mode=AccessMode.DRIVE_LETTER_LEGACY, drive_letter="Y")),
        ]
        assert not asyncio.run(services.state.is_disk_mounted(1))

    def test_unmap_failure(self, services: Services, access_gateway: AsyncMock) -> None:
        """A failed unmap exits with 1 and hints at manual cleanup."""
        _record_letter_mount(services)
        access_gateway.remove_access.return_value = RemoveAccessOutcome.fail(
            "Drive Z: is in use", exit_code=1
        )

        with patch("diskbridge.cli.commands.unmount.get_services", return_value=services):
            result = runner.invoke(app, ["unmount", "1"])

        assert result.exit_code == 1
        assert "unmap step failed" in result.output
        assert asyncio.run(services.state.is_disk_mounted(1))
