#!/usr/bin/env python3
"""
Storage classification data model

Value objects shared by the media type resolver, its classifiers and the
provider session layer. Everything here is call-scoped: nothing is cached
across resolve() calls.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple


class MediaKind(Enum):
    """MSFT_PhysicalDisk.MediaType values"""
    UNSPECIFIED = 0
    HDD = 3
    SSD = 4
    SCM = 5  # Storage Class Memory

    @classmethod
    def from_raw(cls, value) -> 'MediaKind':
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNSPECIFIED


class BusType(Enum):
    """Storage bus type classification (STORAGE_BUS_TYPE / MSFT_PhysicalDisk.BusType)"""
    UNKNOWN = 0
    SCSI = 1
    ATAPI = 2
    ATA = 3
    IEEE1394 = 4
    SSA = 5
    FIBRE_CHANNEL = 6
    USB = 7
    RAID = 8
    ISCSI = 9
    SAS = 10
    SATA = 11
    SD = 12
    MMC = 13
    VIRTUAL = 14
    FILE_BACKED_VIRTUAL = 15
    SPACES = 16
    NVME = 17
    SCM = 18  # Storage Class Memory

    @classmethod
    def from_raw(cls, value) -> 'BusType':
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


class MediaClassification(Enum):
    """Classification strings shown in the system info "Type" column"""
    HDD = "HDD"
    SSD = "SSD"
    NVME_SSD = "SSD (NVMe)"
    SCM = "SCM"
    UNKNOWN = "Unknown"


class UnscopedFallback(Enum):
    """
    When a storage-provider verdict may come from a scan of all disks

    NEVER: only the drive's own disk counts
    SINGLE_DISK: the scan counts only if exactly one physical disk exists
    ALWAYS: first disk with a verdict wins, even on multi-disk machines
    """
    NEVER = "never"
    SINGLE_DISK = "single_disk"
    ALWAYS = "always"


@dataclass(frozen=True)
class DiskDescriptor:
    """
    Facts about one physical disk as reported by one information source

    Attributes:
        source: Provider that produced the descriptor (e.g. "MSFT_PhysicalDisk")
        index: Physical disk index, if the source reports one
        media_kind: Declared media kind (storage-management provider only)
        bus_type: Declared bus kind (storage-management provider only)
        friendly_name: Free-text friendly name
        model: Free-text model name
        media_type_text: Free-text media type (legacy disk-drive provider)
        interface_type: Free-text interface type (legacy disk-drive provider)
        device_path: PnP device id
        serial_number: Free-text serial number
        read_latency: Average seconds per read, if sampled
        write_latency: Average seconds per write, if sampled
    """
    source: str
    index: Optional[int] = None
    media_kind: MediaKind = MediaKind.UNSPECIFIED
    bus_type: BusType = BusType.UNKNOWN
    friendly_name: str = ""
    model: str = ""
    media_type_text: str = ""
    interface_type: str = ""
    device_path: str = ""
    serial_number: str = ""
    read_latency: Optional[float] = None
    write_latency: Optional[float] = None

    @property
    def display_name(self) -> str:
        return self.friendly_name or self.model or f"{self.source} #{self.index}"


@dataclass
class DiagnosticRecord:
    """Notes collected by one classifier step during one resolution"""
    classifier: str
    notes: List[str] = field(default_factory=list)
    outcome: str = MediaClassification.UNKNOWN.value
    error: Optional[str] = None

    def note(self, message: str):
        self.notes.append(message)

    def render(self) -> str:
        lines = [f"[{self.classifier}] -> {self.outcome}"]
        lines.extend(f"    {note}" for note in self.notes)
        if self.error:
            lines.append(f"    error: {self.error}")
        return "\n".join(lines)


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of one media type resolution

    The only value handed back to callers. `label` is what the system
    info table displays.
    """
    classification: MediaClassification
    source: Optional[str] = None
    qualifier: Optional[str] = None
    error: Optional[str] = None
    diagnostics: Tuple[DiagnosticRecord, ...] = ()

    @classmethod
    def unknown(cls, error: Optional[str] = None,
                diagnostics: Tuple[DiagnosticRecord, ...] = ()) -> 'ClassificationResult':
        return cls(MediaClassification.UNKNOWN, error=error, diagnostics=diagnostics)

    @property
    def is_unknown(self) -> bool:
        return self.classification == MediaClassification.UNKNOWN

    @property
    def label(self) -> str:
        if self.qualifier and self.classification == MediaClassification.SSD:
            return f"SSD ({self.qualifier})"
        return self.classification.value

    def diagnostic_text(self) -> str:
        """Concatenated diagnostic records, empty when none were kept"""
        return "\n".join(record.render() for record in self.diagnostics)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class SystemInfoItem:
    """One row of the system info table"""
    category: str
    item: str
    value: str
