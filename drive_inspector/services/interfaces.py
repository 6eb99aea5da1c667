#!/usr/bin/env python3
"""
Service Interfaces - Contracts for drive inspection

These interfaces define what the worker threads and the console entry point
rely on, so that either side can run against a test double.
"""

from abc import abstractmethod
from typing import List, Optional, Callable, Iterable, Dict

from core.result_types import Result
from core.services.interfaces import IService

from ..core.models import ClassificationResult, SystemInfoItem


class IMediaTypeService(IService):
    """Interface for per-drive media type resolution"""

    @abstractmethod
    def resolve(self, drive_letter: str) -> ClassificationResult:
        """
        Classify the physical disk backing a drive letter

        Args:
            drive_letter: "C", "C:" or "C:\\"

        Returns:
            ClassificationResult, "Unknown" when undeterminable; never raises
        """
        pass

    @abstractmethod
    def resolve_many(self, drive_letters: Iterable[str]) -> Dict[str, ClassificationResult]:
        pass


class IDiskInfoService(IService):
    """Interface for the disk section of the system information report"""

    @abstractmethod
    def list_fixed_drives(self) -> List[str]:
        """
        Enumerate local fixed drives

        Returns:
            Normalized drive letters ("C:") in mount order
        """
        pass

    @abstractmethod
    def collect_drive(self, drive: str) -> List[SystemInfoItem]:
        """
        Build the rows for one drive

        Args:
            drive: Drive letter in any accepted form

        Returns:
            Rows "Drive X:", "Total", "Used", "Free" and "Type", plus "Error"
            when capacity could not be read
        """
        pass

    @abstractmethod
    def collect(
        self,
        timeout: Optional[float] = None,
        progress_callback: Optional[Callable[[int, str], None]] = None
    ) -> Result[List[SystemInfoItem]]:
        """
        Collect rows for every fixed drive under an overall deadline

        Args:
            timeout: Seconds for the whole pass, default from settings
            progress_callback: Optional (percentage, message) callback

        Returns:
            Result with the rows, or CollectionTimeoutError on expiry
        """
        pass
