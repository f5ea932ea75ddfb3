"""Service construction and startup reconciliation.

Builds the gateways, stores and orchestrators from configuration. These
functions are shared by all CLI commands.
"""

import logging
from dataclasses import dataclass

from diskbridge.core.config import DiskBridgeConfig, load_config
from diskbridge.core.detector import FilesystemTypeDetector
from diskbridge.core.history import HistoryLog
from diskbridge.core.mount import MountOrchestrator
from diskbridge.core.state import MountStateStore
from diskbridge.core.unmount import UnmountOrchestrator
from diskbridge.gateways.access import HostAccessGateway, HostDriveLetterTable
from diskbridge.gateways.helper import HelperRunner
from diskbridge.gateways.wsl import WslAttachGateway, WslGuestShell
from diskbridge.models.mount import ActiveMount

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Services:
    """Everything a command needs, wired from one configuration."""

    config: DiskBridgeConfig
    state: MountStateStore
    history: HistoryLog
    mounter: MountOrchestrator
    unmounter: UnmountOrchestrator
    detector: FilesystemTypeDetector


def build_services(
    config: DiskBridgeConfig | None = None, distro_name: str | None = None
) -> Services:
    """Create the helper-backed services.

    Args:
        config: Configuration to use. If None, loads the default config file.
        distro_name: Guest distribution for detection commands.

    Returns:
        Services ready for use.

    Raises:
        ConfigError: If the configuration file is invalid.
    """
    config = config or load_config()

    runner = HelperRunner(config.helpers)
    attach = WslAttachGateway(runner)
    access = HostAccessGateway(runner)

    state = MountStateStore(
        config.history.effective_state_path,
        drive_letters=HostDriveLetterTable(),
        reconcile_timeout_ms=config.mount.reconcile_timeout_ms,
    )
    history = HistoryLog(config.history.effective_history_path, config.history.max_entries)

    return Services(
        config=config,
        state=state,
        history=history,
        mounter=MountOrchestrator(attach, access, state, history, config.mount),
        unmounter=UnmountOrchestrator(attach, access, state, history),
        detector=FilesystemTypeDetector(attach, WslGuestShell(distro_name)),
    )


async def reconcile_on_startup(services: Services) -> list[ActiveMount]:
    """Reconcile recorded mounts if enabled by ``startup.auto_reconcile``.

    Returns:
        Mounts dropped as orphaned (empty when disabled).
    """
    if not services.config.startup.auto_reconcile:
        return []
    orphaned = await services.state.reconcile()
    if orphaned:
        logger.info("Startup reconciliation dropped %d orphaned mount(s)", len(orphaned))
    return orphaned
