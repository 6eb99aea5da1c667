#!/usr/bin/env python3
"""
Device topology walker - drive letter to physical disk index

Forward walk: Win32_LogicalDisk -> Win32_LogicalDiskToPartition ->
Win32_DiskDriveToDiskPartition -> Win32_DiskDrive.Index.
Reverse lookup (used when the forward walk finds nothing, e.g. a provider
quirk on the logical disk association): enumerate every Win32_DiskPartition,
find the one associated with the drive letter and read its DiskIndex.
"""

import re
from typing import Optional

from core.logger import logger
from core.exceptions import StorageQueryError

from .models import DiagnosticRecord


_DRIVE_PATTERN = re.compile(r"^([A-Za-z])(:\\?)?$")


def normalize_drive_letter(drive_letter: str) -> str:
    """
    Normalize "c", "C:", "C:\\" to "C:"

    Raises:
        ValueError: If the value does not name a single drive letter
    """
    match = _DRIVE_PATTERN.match(str(drive_letter or "").strip())
    if not match:
        raise ValueError(f"Invalid drive letter: {drive_letter!r}")
    return f"{match.group(1).upper()}:"


class TopologyWalker:
    """Resolves the physical disk index backing a logical drive"""

    def __init__(self, session):
        """
        Args:
            session: StorageSession providing the association queries
        """
        self.session = session

    def find_physical_disk_index(self, drive: str,
                                 record: Optional[DiagnosticRecord] = None) -> Optional[int]:
        """
        Find the physical disk index for a normalized drive ("C:")

        Provider errors are treated as "not found"; never raises.

        Returns:
            Physical disk index, or None if neither walk finds one
        """
        record = record or DiagnosticRecord("topology")

        index = self._forward_walk(drive, record)
        if index is not None:
            return index

        record.note("Forward walk found nothing, trying reverse partition lookup")
        index = self._reverse_lookup(drive, record)
        if index is None:
            record.note(f"No physical disk found for {drive}")
            logger.debug(f"Topology: no physical disk found for {drive}")
        return index

    def _forward_walk(self, drive: str, record: DiagnosticRecord) -> Optional[int]:
        try:
            partitions = self.session.logical_disk_partitions(drive)
            for partition in partitions:
                record.note(f"Partition: {getattr(partition, 'DeviceID', '?')}")
                for disk in self.session.partition_disk_drives(partition):
                    index = getattr(disk, 'Index', None)
                    if index is not None:
                        record.note(f"Physical disk index: {index}")
                        return int(index)
        except StorageQueryError as e:
            record.note(f"Forward walk failed: {e.message}")
            logger.debug(f"Topology forward walk for {drive} failed: {e.message}")
        except Exception as e:
            record.note(f"Forward walk failed: {type(e).__name__}: {e}")
            logger.debug(f"Topology forward walk for {drive} raised {type(e).__name__}: {e}")
        return None

    def _reverse_lookup(self, drive: str, record: DiagnosticRecord) -> Optional[int]:
        try:
            for partition in self.session.all_partitions():
                for logical_disk in self.session.partition_logical_disks(partition):
                    if str(getattr(logical_disk, 'DeviceID', '')).upper() != drive:
                        continue
                    disk_index = getattr(partition, 'DiskIndex', None)
                    if disk_index is not None:
                        record.note(f"Reverse lookup physical disk index: {disk_index}")
                        return int(disk_index)
        except StorageQueryError as e:
            record.note(f"Reverse lookup failed: {e.message}")
            logger.debug(f"Topology reverse lookup for {drive} failed: {e.message}")
        except Exception as e:
            record.note(f"Reverse lookup failed: {type(e).__name__}: {e}")
            logger.debug(f"Topology reverse lookup for {drive} raised {type(e).__name__}: {e}")
        return None
