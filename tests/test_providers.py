#!/usr/bin/env python3
"""
Tests for the WMI/registry provider layer using fake wmi and winreg modules
"""

import sys
from contextlib import nullcontext
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from core.exceptions import (
    ProviderUnavailableError, QueryMalformedError, NoMatchError, DataAmbiguousError
)
from drive_inspector.core.models import MediaKind, BusType
from drive_inspector.core.providers import (
    RegistryReader, StorageSession, StorageProviders,
    CIMV2_NAMESPACE, STORAGE_NAMESPACE, DISK_ENUM_KEY
)


class FakeWinreg:
    """Minimal winreg stand-in serving one key"""
    HKEY_LOCAL_MACHINE = object()
    KEY_READ = 0x20019

    def __init__(self, values=None, open_error=None):
        self.values = values or {}
        self.open_error = open_error
        self.opened = []

    def OpenKey(self, root, path, reserved=0, access=0):
        self.opened.append(path)
        if self.open_error:
            raise self.open_error
        return nullcontext("key")

    def QueryValueEx(self, key, name):
        if name not in self.values:
            raise FileNotFoundError(name)
        return self.values[name], 1


class FakeXWmi(Exception):
    pass


class FakeAccessDenied(FakeXWmi):
    pass


def make_wmi(connections=None, connect_error=None):
    """Fake wmi module; WMI(namespace=...) returns the matching connection"""
    connections = connections or {}

    def WMI(namespace=None):
        if connect_error:
            raise connect_error
        return connections.setdefault(namespace, MagicMock(name=namespace))

    return SimpleNamespace(WMI=WMI, x_wmi=FakeXWmi, x_access_denied=FakeAccessDenied)


def counter_row(name, read_raw, read_base, write_raw, write_base, frequency=10_000_000):
    return SimpleNamespace(Name=name, Frequency_PerfTime=frequency,
                           AvgDiskSecPerRead=read_raw, AvgDiskSecPerRead_Base=read_base,
                           AvgDiskSecPerWrite=write_raw, AvgDiskSecPerWrite_Base=write_base)


class TestRegistryReader:

    def test_device_ids_in_ordinal_order(self):
        winreg = FakeWinreg({"Count": 3, "0": r"SCSI\Disk&Ven_NVMe&Prod_Samsung_SSD_980",
                             "2": r"USBSTOR\Disk&Ven_SanDisk"})

        device_ids = RegistryReader(winreg).disk_device_ids()

        assert device_ids == [r"SCSI\Disk&Ven_NVMe&Prod_Samsung_SSD_980", r"USBSTOR\Disk&Ven_SanDisk"]
        assert winreg.opened == [DISK_ENUM_KEY]

    def test_missing_key(self):
        reader = RegistryReader(FakeWinreg(open_error=FileNotFoundError(DISK_ENUM_KEY)))

        with pytest.raises(ProviderUnavailableError):
            reader.disk_device_ids()

    def test_access_denied(self):
        reader = RegistryReader(FakeWinreg(open_error=PermissionError("denied")))

        with pytest.raises(ProviderUnavailableError, match="access denied"):
            reader.disk_device_ids()

    @pytest.mark.parametrize("values", [{}, {"Count": 0}, {"Count": 1, "0": ""}])
    def test_nothing_enumerated(self, values):
        with pytest.raises(NoMatchError):
            RegistryReader(FakeWinreg(values)).disk_device_ids()

    def test_no_winreg_module(self):
        with patch.dict(sys.modules, {'winreg': None}):
            with pytest.raises(ProviderUnavailableError):
                RegistryReader().disk_device_ids()


class TestStorageSessionQueries:

    def test_scoped_physical_disk_query(self):
        connections = {}
        storage = MagicMock()
        storage.query.return_value = [SimpleNamespace(
            DeviceId="0", MediaType=4, BusType=17, FriendlyName="Samsung SSD 980 PRO 1TB",
            Model=None, SerialNumber=" S5GXNF0R "
        )]
        connections[STORAGE_NAMESPACE] = storage
        session = StorageSession(make_wmi(connections), RegistryReader(FakeWinreg()))

        disks = session.storage_physical_disks(device_id=0)

        storage.query.assert_called_once_with("SELECT * FROM MSFT_PhysicalDisk WHERE DeviceId = '0'")
        assert len(disks) == 1
        disk = disks[0]
        assert disk.index == 0
        assert disk.media_kind == MediaKind.SSD
        assert disk.bus_type == BusType.NVME
        assert disk.model == ""
        assert disk.serial_number == "S5GXNF0R"

    def test_unrecognized_enum_values(self):
        storage = MagicMock()
        storage.MSFT_PhysicalDisk.return_value = [SimpleNamespace(DeviceId=None, MediaType=None, BusType=99)]
        session = StorageSession(make_wmi({STORAGE_NAMESPACE: storage}), RegistryReader(FakeWinreg()))

        disk = session.storage_physical_disks()[0]

        assert disk.index is None
        assert disk.media_kind == MediaKind.UNSPECIFIED
        assert disk.bus_type == BusType.UNKNOWN

    def test_access_denied_query(self):
        storage = MagicMock()
        storage.MSFT_PhysicalDisk.side_effect = FakeAccessDenied("0x80041003")
        session = StorageSession(make_wmi({STORAGE_NAMESPACE: storage}), RegistryReader(FakeWinreg()))

        with pytest.raises(ProviderUnavailableError):
            session.storage_physical_disks()

    def test_rejected_query(self):
        cimv2 = MagicMock()
        cimv2.Win32_DiskDrive.side_effect = FakeXWmi("Invalid query")
        session = StorageSession(make_wmi({CIMV2_NAMESPACE: cimv2}), RegistryReader(FakeWinreg()))

        with pytest.raises(QueryMalformedError):
            session.disk_drive(0)

    def test_namespace_unavailable(self):
        session = StorageSession(make_wmi(connect_error=FakeXWmi("Invalid namespace")),
                                 RegistryReader(FakeWinreg()))

        with pytest.raises(ProviderUnavailableError, match="Cannot connect"):
            session.storage_physical_disks()

    def test_without_wmi(self):
        session = StorageSession(None, RegistryReader(FakeWinreg()))

        with pytest.raises(ProviderUnavailableError):
            session.all_partitions()

    def test_disk_drive_descriptor(self):
        cimv2 = MagicMock()
        cimv2.Win32_DiskDrive.return_value = [SimpleNamespace(
            Index=1, Caption="WDC WD10EZEX", Model="WDC WD10EZEX-08WN4A0",
            MediaType="Fixed hard disk media", InterfaceType="IDE",
            PNPDeviceID=r"SCSI\DISK&VEN_WDC", SerialNumber=None
        )]
        session = StorageSession(make_wmi({CIMV2_NAMESPACE: cimv2}), RegistryReader(FakeWinreg()))

        disk = session.disk_drive(1)

        cimv2.Win32_DiskDrive.assert_called_once_with(Index=1)
        assert disk.model == "WDC WD10EZEX-08WN4A0"
        assert disk.interface_type == "IDE"
        assert disk.device_path == r"SCSI\DISK&VEN_WDC"
        assert disk.serial_number == ""

    def test_disk_drive_absent(self):
        cimv2 = MagicMock()
        cimv2.Win32_DiskDrive.return_value = []
        session = StorageSession(make_wmi({CIMV2_NAMESPACE: cimv2}), RegistryReader(FakeWinreg()))

        assert session.disk_drive(4) is None

    def test_logical_disk_association(self):
        partition = MagicMock()
        logical_disk = MagicMock()
        logical_disk.associators.return_value = [partition]
        cimv2 = MagicMock()
        cimv2.Win32_LogicalDisk.return_value = [logical_disk]
        session = StorageSession(make_wmi({CIMV2_NAMESPACE: cimv2}), RegistryReader(FakeWinreg()))

        assert session.logical_disk_partitions("C:") == [partition]
        cimv2.Win32_LogicalDisk.assert_called_once_with(DeviceID="C:")
        logical_disk.associators.assert_called_once_with("Win32_LogicalDiskToPartition")

    def test_connection_reused_within_session(self):
        calls = []
        wmi_module = make_wmi()
        original = wmi_module.WMI
        wmi_module.WMI = lambda namespace=None: calls.append(namespace) or original(namespace)
        session = StorageSession(wmi_module, RegistryReader(FakeWinreg()))

        session.all_partitions()
        session.disk_drive(0)

        assert calls == [CIMV2_NAMESPACE]


class TestLatencySampling:

    def make_session(self, *samples, interval=0.25):
        cimv2 = MagicMock()
        cimv2.Win32_PerfRawData_PerfDisk_PhysicalDisk.side_effect = [list(rows) for rows in samples]
        return StorageSession(make_wmi({CIMV2_NAMESPACE: cimv2}), RegistryReader(FakeWinreg()),
                              latency_sample_interval=interval)

    @patch('drive_inspector.core.providers.time.sleep')
    def test_two_sample_average(self, mock_sleep):
        before = [counter_row("_Total", 0, 0, 0, 0), counter_row("0 C:", 1000, 10, 5000, 10)]
        after = [counter_row("_Total", 0, 0, 0, 0), counter_row("0 C:", 41000, 20, 45000, 20)]
        session = self.make_session(before, after)

        sample = session.disk_latency(0)

        mock_sleep.assert_called_once_with(0.25)
        assert sample.read_latency == pytest.approx(0.0004)
        assert sample.write_latency == pytest.approx(0.0004)

    @patch('drive_inspector.core.providers.time.sleep')
    def test_counter_wraparound(self, mock_sleep):
        before = [counter_row("1 D:", 2 ** 32 - 1000, 10, 2 ** 32 - 1000, 10)]
        after = [counter_row("1 D:", 39000, 20, 39000, 20)]
        session = self.make_session(before, after)

        sample = session.disk_latency(1)

        assert sample.read_latency == pytest.approx(0.0004)

    @patch('drive_inspector.core.providers.time.sleep')
    def test_idle_disk_is_inconclusive(self, mock_sleep):
        # Lifetime totals after a wrap would understate the latency
        row = [counter_row("0 C:", 41000, 20, 41000, 20)]
        session = self.make_session(row, row)

        sample = session.disk_latency(0)

        assert sample.read_latency is None
        assert sample.write_latency is None

    @patch('drive_inspector.core.providers.time.sleep')
    def test_reads_only_between_samples(self, mock_sleep):
        before = [counter_row("0 C:", 1000, 10, 5000, 10)]
        after = [counter_row("0 C:", 41000, 20, 5000, 10)]
        session = self.make_session(before, after)

        sample = session.disk_latency(0)

        assert sample.read_latency == pytest.approx(0.0004)
        assert sample.write_latency is None

    def test_single_sample_when_interval_disabled(self):
        session = self.make_session([counter_row("0", 20000, 10, 30000, 10)], interval=0)

        sample = session.disk_latency(0)

        assert sample.read_latency == pytest.approx(0.0002)
        assert sample.write_latency == pytest.approx(0.0003)

    def test_no_operations_recorded(self):
        session = self.make_session([counter_row("0 C:", 0, 0, 0, 0)], interval=0)

        sample = session.disk_latency(0)

        assert sample.read_latency is None
        assert sample.write_latency is None

    def test_missing_frequency(self):
        session = self.make_session([counter_row("0 C:", 100, 1, 100, 1, frequency=0)], interval=0)

        with pytest.raises(DataAmbiguousError):
            session.disk_latency(0)

    def test_instance_prefix_must_match_exactly(self):
        session = self.make_session([counter_row("10 E:", 100, 1, 100, 1)], interval=0)

        assert session.disk_latency(1) is None


class TestStorageProviders:

    def test_com_released_on_error(self):
        with patch.object(StorageProviders, '_initialize_com', return_value=True) as mock_init, \
                patch.object(StorageProviders, '_uninitialize_com') as mock_uninit:
            providers = StorageProviders(wmi_module=make_wmi(), registry=RegistryReader(FakeWinreg()))

            with pytest.raises(RuntimeError):
                with providers.session():
                    raise RuntimeError("boom")

        mock_init.assert_called_once()
        mock_uninit.assert_called_once()

    def test_com_not_touched_without_wmi(self):
        with patch.dict(sys.modules, {'wmi': None}), \
                patch.object(StorageProviders, '_initialize_com') as mock_init:
            providers = StorageProviders(registry=RegistryReader(FakeWinreg()))

            with providers.session() as session:
                assert isinstance(session, StorageSession)

        assert providers.wmi_available is False
        mock_init.assert_not_called()
