#!/usr/bin/env python3
"""
Storage information providers - WMI and registry access for one resolution

Every media type resolution opens its own StorageSession through
StorageProviders.session(). The session initialises COM for the calling
thread (worker threads need this before any WMI call), connects lazily to
the namespaces it actually uses, and releases everything on exit, including
exceptional exits.

Provider failures are translated into the StorageQueryError taxonomy:
- ProviderUnavailableError: wmi/pywin32/winreg missing, namespace or access denied
- QueryMalformedError: query or association rejected by WMI
- NoMatchError: the query ran but found nothing
- DataAmbiguousError: values present but not usable
"""

import time
from contextlib import contextmanager
from typing import Optional, List, Any, Iterator

from core.logger import logger
from core.exceptions import (
    ProviderUnavailableError, QueryMalformedError, NoMatchError, DataAmbiguousError
)

from .models import DiskDescriptor, MediaKind, BusType


CIMV2_NAMESPACE = r"root\cimv2"
STORAGE_NAMESPACE = r"root\Microsoft\Windows\Storage"
DISK_ENUM_KEY = r"SYSTEM\CurrentControlSet\Services\Disk\Enum"

# Raw average-timer counters are 32 bit and wrap
_COUNTER_WRAP = 2 ** 32


def _text(value: Any) -> str:
    """WMI string property to str ('' for NULL)"""
    if value is None:
        return ""
    return str(value).strip()


def _int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class RegistryReader:
    """Read-only access to the disk enumeration key under HKEY_LOCAL_MACHINE"""

    def __init__(self, winreg_module=None):
        """
        Args:
            winreg_module: winreg replacement for tests; imported lazily otherwise
        """
        self._winreg = winreg_module

    def _module(self):
        if self._winreg is None:
            try:
                import winreg
            except ImportError:
                raise ProviderUnavailableError(
                    "Windows registry is not available on this platform",
                    source="registry"
                )
            self._winreg = winreg
        return self._winreg

    def disk_device_ids(self) -> List[str]:
        """
        List the device identifiers the disk driver enumerated, by ordinal

        Returns:
            Device id strings in ordinal order (empty entries skipped)

        Raises:
            ProviderUnavailableError: Registry or key not accessible
            NoMatchError: Key present but lists no devices
        """
        winreg = self._module()
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, DISK_ENUM_KEY, 0, winreg.KEY_READ) as key:
                try:
                    count, _ = winreg.QueryValueEx(key, "Count")
                except FileNotFoundError:
                    raise NoMatchError(f"{DISK_ENUM_KEY} has no Count value", source="registry")

                device_ids = []
                for ordinal in range(int(count)):
                    try:
                        value, _ = winreg.QueryValueEx(key, str(ordinal))
                    except FileNotFoundError:
                        continue
                    if value:
                        device_ids.append(str(value))
        except FileNotFoundError:
            raise ProviderUnavailableError(f"Registry key {DISK_ENUM_KEY} not found", source="registry")
        except PermissionError as e:
            raise ProviderUnavailableError(f"Registry access denied: {e}", source="registry")

        if not device_ids:
            raise NoMatchError("No disk devices enumerated in registry", source="registry")
        return device_ids


class StorageSession:
    """
    Live provider connections for one resolution

    Returns raw WMI objects for the association graph (the topology walker
    only reads DeviceID/Index/DiskIndex from them) and DiskDescriptors for
    everything a classifier consumes.
    """

    def __init__(self, wmi_module, registry: RegistryReader, latency_sample_interval: float = 0.25):
        self._wmi = wmi_module
        self._registry = registry
        self._latency_sample_interval = latency_sample_interval
        self._connections = {}

    # ---- connection handling -------------------------------------------------

    def _connect(self, namespace: str):
        if namespace in self._connections:
            return self._connections[namespace]
        if self._wmi is None:
            raise ProviderUnavailableError("WMI is not available (install with: pip install wmi)",
                                           source=namespace)
        try:
            connection = self._wmi.WMI(namespace=namespace)
        except self._wmi.x_wmi as e:
            raise ProviderUnavailableError(f"Cannot connect to {namespace}: {e}", source=namespace)
        self._connections[namespace] = connection
        logger.debug(f"Connected to WMI namespace {namespace}")
        return connection

    @property
    def cimv2(self):
        return self._connect(CIMV2_NAMESPACE)

    @property
    def storage(self):
        return self._connect(STORAGE_NAMESPACE)

    def _run(self, description: str, func, *args, **kwargs):
        """Execute a provider call, translating wmi exceptions"""
        try:
            return list(func(*args, **kwargs))
        except self._wmi.x_wmi as e:
            if isinstance(e, getattr(self._wmi, 'x_access_denied', ())):
                raise ProviderUnavailableError(f"{description}: access denied", source=description)
            raise QueryMalformedError(f"{description} failed: {e}", query=description,
                                      source=description)

    def close(self):
        self._connections.clear()

    # ---- association graph ---------------------------------------------------

    def logical_disk_partitions(self, drive: str) -> List[Any]:
        """Partitions associated with logical disk `drive` ("C:")"""
        logical_disks = self._run(f"Win32_LogicalDisk {drive}",
                                  self.cimv2.Win32_LogicalDisk, DeviceID=drive)
        partitions = []
        for logical_disk in logical_disks:
            partitions.extend(self._run("Win32_LogicalDiskToPartition",
                                        logical_disk.associators, "Win32_LogicalDiskToPartition"))
        return partitions

    def partition_disk_drives(self, partition) -> List[Any]:
        """Physical disk drives associated with a Win32_DiskPartition"""
        return self._run("Win32_DiskDriveToDiskPartition",
                         partition.associators, "Win32_DiskDriveToDiskPartition")

    def all_partitions(self) -> List[Any]:
        return self._run("Win32_DiskPartition", self.cimv2.Win32_DiskPartition)

    def partition_logical_disks(self, partition) -> List[Any]:
        """Logical disks associated with a Win32_DiskPartition"""
        return self._run("Win32_LogicalDiskToPartition",
                         partition.associators, "Win32_LogicalDiskToPartition")

    # ---- descriptors -----------------------------------------------------------

    def storage_physical_disks(self, device_id: Optional[int] = None) -> List[DiskDescriptor]:
        """
        MSFT_PhysicalDisk records from the storage management provider

        Args:
            device_id: Physical disk number, or None for every disk
        """
        if device_id is None:
            disks = self._run("MSFT_PhysicalDisk", self.storage.MSFT_PhysicalDisk)
        else:
            query = f"SELECT * FROM MSFT_PhysicalDisk WHERE DeviceId = '{int(device_id)}'"
            disks = self._run(query, self.storage.query, query)

        return [
            DiskDescriptor(
                source="MSFT_PhysicalDisk",
                index=_int_or_none(getattr(disk, 'DeviceId', None)),
                media_kind=MediaKind.from_raw(getattr(disk, 'MediaType', None)),
                bus_type=BusType.from_raw(getattr(disk, 'BusType', None)),
                friendly_name=_text(getattr(disk, 'FriendlyName', None)),
                model=_text(getattr(disk, 'Model', None)),
                serial_number=_text(getattr(disk, 'SerialNumber', None)),
            )
            for disk in disks
        ]

    def disk_drive(self, index: int) -> Optional[DiskDescriptor]:
        """Win32_DiskDrive record for a physical disk index, None if absent"""
        drives = self._run(f"Win32_DiskDrive Index={index}",
                           self.cimv2.Win32_DiskDrive, Index=int(index))
        if not drives:
            return None
        drive = drives[0]
        return DiskDescriptor(
            source="Win32_DiskDrive",
            index=_int_or_none(getattr(drive, 'Index', index)),
            friendly_name=_text(getattr(drive, 'Caption', None)),
            model=_text(getattr(drive, 'Model', None)),
            media_type_text=_text(getattr(drive, 'MediaType', None)),
            interface_type=_text(getattr(drive, 'InterfaceType', None)),
            device_path=_text(getattr(drive, 'PNPDeviceID', None)),
            serial_number=_text(getattr(drive, 'SerialNumber', None)),
        )

    def _latency_counters(self, index: int):
        rows = self._run("Win32_PerfRawData_PerfDisk_PhysicalDisk",
                         self.cimv2.Win32_PerfRawData_PerfDisk_PhysicalDisk)
        # Instance names look like "0 C: D:"; "_Total" is skipped
        for row in rows:
            name = _text(getattr(row, 'Name', None))
            if name == str(index) or name.startswith(f"{index} "):
                return row
        return None

    @staticmethod
    def _average_seconds(raw_now, base_now, raw_before, base_before, frequency) -> Optional[float]:
        raw_now, base_now = _int_or_none(raw_now), _int_or_none(base_now)
        if raw_now is None or base_now is None:
            return None

        raw_before, base_before = _int_or_none(raw_before), _int_or_none(base_before)
        if raw_before is not None and base_before is not None:
            # Idle between samples: the lifetime totals may have wrapped
            if base_now <= base_before:
                return None
            ticks = (raw_now - raw_before) % _COUNTER_WRAP
            return ticks / frequency / (base_now - base_before)
        if base_now > 0:
            return raw_now / frequency / base_now
        return None

    def disk_latency(self, index: int) -> Optional[DiskDescriptor]:
        """
        Average seconds per read and per write for a physical disk

        Takes two raw counter samples latency_sample_interval apart and
        averages over the operations in between. A disk idle between the
        samples gives None (inconclusive). With sampling disabled, or when the
        second sample is missing, the single sample's lifetime average is used.

        Returns:
            DiskDescriptor with read/write latency, None if the disk has no counters

        Raises:
            DataAmbiguousError: Counters present but no timer frequency reported
        """
        before = self._latency_counters(index)
        if before is None:
            return None
        if self._latency_sample_interval > 0:
            time.sleep(self._latency_sample_interval)
            after = self._latency_counters(index) or before
        else:
            after = before

        frequency = _int_or_none(getattr(after, 'Frequency_PerfTime', None))
        if not frequency:
            raise DataAmbiguousError(f"Disk {index} counters report no timer frequency",
                                     source="Win32_PerfRawData_PerfDisk_PhysicalDisk")

        read_latency = self._average_seconds(
            getattr(after, 'AvgDiskSecPerRead', None), getattr(after, 'AvgDiskSecPerRead_Base', None),
            getattr(before, 'AvgDiskSecPerRead', None) if after is not before else None,
            getattr(before, 'AvgDiskSecPerRead_Base', None) if after is not before else None,
            frequency
        )
        write_latency = self._average_seconds(
            getattr(after, 'AvgDiskSecPerWrite', None), getattr(after, 'AvgDiskSecPerWrite_Base', None),
            getattr(before, 'AvgDiskSecPerWrite', None) if after is not before else None,
            getattr(before, 'AvgDiskSecPerWrite_Base', None) if after is not before else None,
            frequency
        )

        return DiskDescriptor(
            source="Win32_PerfRawData_PerfDisk_PhysicalDisk",
            index=index,
            friendly_name=_text(getattr(after, 'Name', None)),
            read_latency=read_latency,
            write_latency=write_latency,
        )

    # ---- registry ----------------------------------------------------------------

    def registry_disk_device_ids(self) -> List[str]:
        return self._registry.disk_device_ids()


class StorageProviders:
    """
    Factory for per-resolution StorageSessions

    Holds no connections itself, so one instance can be shared by resolvers
    running on different threads.
    """

    def __init__(self, wmi_module=None, registry: Optional[RegistryReader] = None,
                 latency_sample_interval: float = 0.25):
        """
        Args:
            wmi_module: wmi module replacement for tests; imported lazily otherwise
            registry: Registry reader, default reads the live registry
            latency_sample_interval: Seconds between the two latency counter samples
        """
        self.wmi_available = False
        self._wmi = wmi_module
        if self._wmi is None:
            try:
                import wmi
                self._wmi = wmi
                logger.debug("WMI available for storage detection")
            except ImportError:
                logger.debug("WMI not available (install with: pip install wmi)")
        self.wmi_available = self._wmi is not None
        self.registry = registry or RegistryReader()
        self.latency_sample_interval = latency_sample_interval

    @staticmethod
    def _initialize_com() -> bool:
        """CoInitialize the calling thread; False when pywin32 is absent"""
        try:
            import pythoncom
        except ImportError:
            return False
        pythoncom.CoInitialize()
        return True

    @staticmethod
    def _uninitialize_com():
        import pythoncom
        pythoncom.CoUninitialize()

    @contextmanager
    def session(self) -> Iterator[StorageSession]:
        """Open a session; COM and connections are released on every exit path"""
        com_initialized = self.wmi_available and self._initialize_com()
        session = StorageSession(self._wmi, self.registry, self.latency_sample_interval)
        try:
            yield session
        finally:
            session.close()
            if com_initialized:
                self._uninitialize_com()
