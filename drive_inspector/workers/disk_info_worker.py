#!/usr/bin/env python3
"""
Disk information worker - runs the disk section collection off the UI thread
"""

from typing import List, Optional

from core.result_types import Result
from core.services import get_service
from core.workers.base_worker import BaseWorkerThread

from ..core.models import SystemInfoItem
from ..services.interfaces import IDiskInfoService


class DiskInfoWorker(BaseWorkerThread):
    """
    Collects SystemInfoItem rows for every fixed drive

    Signals (inherited):
        result_ready(Result): Result[List[SystemInfoItem]] or the error
        progress_update(int, str): per-drive progress
    """

    def __init__(self, service: Optional[IDiskInfoService] = None,
                 timeout: Optional[float] = None, parent=None):
        """
        Args:
            service: Disk info service, default the registered IDiskInfoService
            timeout: Overall deadline in seconds, default from settings
            parent: Parent QObject
        """
        super().__init__(parent)
        self.service = service
        self.timeout = timeout
        self.set_operation_name("Disk Information Collection")

    def execute(self) -> Result[List[SystemInfoItem]]:
        service = self.service or get_service(IDiskInfoService)

        result = service.collect(timeout=self.timeout, progress_callback=self._on_progress)

        if self.is_cancelled():
            result.add_warning("Collection finished after cancellation was requested")
        return result

    def _on_progress(self, percentage: int, message: str):
        self.emit_progress(percentage, message)
