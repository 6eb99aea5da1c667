#!/usr/bin/env python3
"""
Disk information service - the "Disk" section of the system information report

Enumerates local fixed drives with psutil, reads their capacity, and asks the
media type resolver for the "Type" of each. The whole pass runs under one
deadline; if it expires the pass as a whole is reported as timed out.
"""

import sys
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional, Callable

import psutil

from core.exceptions import CollectionTimeoutError, ProviderUnavailableError
from core.result_types import Result
from core.services.base_service import BaseService

from .interfaces import IDiskInfoService, IMediaTypeService
from ..core.models import SystemInfoItem
from ..core.topology import normalize_drive_letter


DISK_CATEGORY = "Disk"
IS_WINDOWS = sys.platform == 'win32'
_GIB = 1024 ** 3


def format_gb(byte_count: int) -> str:
    """Bytes to 'N.NN GB'"""
    return f"{byte_count / _GIB:.2f} GB"


class DiskInfoService(BaseService, IDiskInfoService):
    """Builds SystemInfoItem rows for every fixed drive"""

    def __init__(self, resolver: Optional[IMediaTypeService] = None, settings=None):
        """
        Args:
            resolver: Media type resolver, default built from settings on first use
            settings: SettingsManager, default the application settings
        """
        if settings is None:
            from core.settings_manager import settings
        self.settings = settings
        self._resolver = resolver

    @property
    def resolver(self) -> IMediaTypeService:
        if self._resolver is None:
            from ..core.media_type_resolver import MediaTypeResolver, ResolverConfig
            self._resolver = MediaTypeResolver(config=ResolverConfig.from_settings(self.settings))
        return self._resolver

    def list_fixed_drives(self) -> List[str]:
        drives = []
        for partition in psutil.disk_partitions(all=False):
            opts = partition.opts.lower().split(',') if partition.opts else []
            if 'cdrom' in opts:
                continue
            if IS_WINDOWS and 'fixed' not in opts:
                continue
            try:
                drive = normalize_drive_letter(partition.mountpoint or partition.device)
            except ValueError:
                # Mount points without a drive letter (POSIX, mounted folders)
                continue
            if drive not in drives:
                drives.append(drive)
        return drives

    def collect_drive(self, drive: str) -> List[SystemInfoItem]:
        drive = normalize_drive_letter(drive)
        rows = [SystemInfoItem(DISK_CATEGORY, f"Drive {drive}", f"{drive}\\")]

        try:
            usage = psutil.disk_usage(f"{drive}\\")
        except OSError as e:
            self._log_operation("Capacity unavailable", f"{drive}: {e}", level="warning")
            rows.append(SystemInfoItem(DISK_CATEGORY, "Error", f"Capacity unavailable: {e}"))
        else:
            # Used is derived from total and free to match what Explorer shows
            rows.append(SystemInfoItem(DISK_CATEGORY, "Total", format_gb(usage.total)))
            rows.append(SystemInfoItem(DISK_CATEGORY, "Used", format_gb(usage.total - usage.free)))
            rows.append(SystemInfoItem(DISK_CATEGORY, "Free", format_gb(usage.free)))

        classification = self.resolver.resolve(drive)
        rows.append(SystemInfoItem(DISK_CATEGORY, "Type", classification.label))
        if classification.diagnostics:
            rows.append(SystemInfoItem(DISK_CATEGORY, "Detection", classification.diagnostic_text()))
        return rows

    def _collect_all(self, progress_callback: Optional[Callable[[int, str], None]]) -> List[SystemInfoItem]:
        drives = self.list_fixed_drives()
        self._log_operation("Collecting disk information", f"{len(drives)} fixed drive(s)", level="debug")

        rows: List[SystemInfoItem] = []
        for position, drive in enumerate(drives):
            if progress_callback:
                progress_callback(int(position * 100 / len(drives)), f"Inspecting drive {drive}")
            try:
                rows.extend(self.collect_drive(drive))
            except Exception as e:
                # One broken drive must not cost the rest of the report
                self._log_operation("Drive inspection failed", f"{drive}: {e}", level="error")
                rows.append(SystemInfoItem(DISK_CATEGORY, f"Drive {drive}", f"{drive}\\"))
                rows.append(SystemInfoItem(DISK_CATEGORY, "Error", str(e)))

        if progress_callback:
            progress_callback(100, "Disk information collected")
        return rows

    def collect(
        self,
        timeout: Optional[float] = None,
        progress_callback: Optional[Callable[[int, str], None]] = None
    ) -> Result[List[SystemInfoItem]]:
        timeout = self.settings.collection_timeout if timeout is None else timeout

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="DiskInfo")
        try:
            future = executor.submit(self._collect_all, progress_callback)
            rows = future.result(timeout=timeout)
        except FutureTimeoutError:
            error = CollectionTimeoutError(timeout)
            self._handle_error(error, {'method': 'collect'})
            return Result.error(error)
        except OSError as e:
            error = ProviderUnavailableError(f"Cannot enumerate drives: {e}", source="psutil")
            self._handle_error(error, {'method': 'collect'})
            return Result.error(error)
        finally:
            # A timed-out pass is abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)

        return Result.success(rows, drive_count=sum(1 for row in rows if row.item.startswith("Drive ")))
