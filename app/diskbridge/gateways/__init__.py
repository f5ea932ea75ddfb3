"""Gateways to the host and guest.

This module exports the gateway interfaces and their helper-backed
implementations.
"""

from diskbridge.gateways.access import HostAccessGateway, HostDriveLetterTable
from diskbridge.gateways.base import (
    AccessGateway,
    AttachGateway,
    DriveLetterTable,
    FilesystemDetector,
    GuestShell,
)
from diskbridge.gateways.helper import HelperRunner
from diskbridge.gateways.wsl import WslAttachGateway, WslGuestShell

__all__ = [
    "AccessGateway",
    "AttachGateway",
    "DriveLetterTable",
    "FilesystemDetector",
    "GuestShell",
    "HelperRunner",
    "HostAccessGateway",
    "HostDriveLetterTable",
    "WslAttachGateway",
    "WslGuestShell",
]
