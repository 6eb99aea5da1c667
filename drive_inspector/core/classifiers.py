#!/usr/bin/env python3
"""
Storage media classifiers

Each classifier reads one information source and either produces a verdict
(Result.success(ClassificationResult)) or reports why it could not
(Result.error with a StorageQueryError subclass). They never consult each
other's data; the resolver decides the order.

Sources, most to least reliable:
1. AuthoritativeClassifier - MSFT_PhysicalDisk MediaType/BusType
2. RegistryClassifier - disk driver enumeration key device ids
3. DiskDriveClassifier - Win32_DiskDrive free-text fields
4. LatencyClassifier - raw performance counters (estimate only)
"""

from typing import Optional

from core.logger import logger
from core.result_types import Result
from core.exceptions import StorageQueryError, NoMatchError, DataAmbiguousError

from .models import (
    ClassificationResult, DiagnosticRecord, DiskDescriptor, MediaClassification,
    MediaKind, BusType, UnscopedFallback
)
from .heuristics import HeuristicRules, contains_any


def verdict(classification: MediaClassification, source: str,
            qualifier: Optional[str] = None) -> Result[ClassificationResult]:
    """Wrap a definitive classification in a successful Result"""
    return Result.success(ClassificationResult(classification, source=source, qualifier=qualifier))


def _mentions_nvme(*texts: str) -> bool:
    return any(contains_any(text, ('NVMe',)) for text in texts)


def _nvme_or_ssd(is_nvme: bool) -> MediaClassification:
    return MediaClassification.NVME_SSD if is_nvme else MediaClassification.SSD


class AuthoritativeClassifier:
    """
    Storage management provider (MSFT_PhysicalDisk) classifier

    MediaType: 3=HDD, 4=SSD, 5=SCM. An SSD on BusType 17 is NVMe. Disks that
    declare no media type are matched by friendly name/model indicators.
    """

    name = "MSFT_PhysicalDisk"

    def __init__(self, rules: HeuristicRules,
                 unscoped_fallback: UnscopedFallback = UnscopedFallback.SINGLE_DISK):
        self.rules = rules
        self.unscoped_fallback = unscoped_fallback

    def classify_descriptor(self, disk: DiskDescriptor,
                            record: DiagnosticRecord) -> Optional[MediaClassification]:
        """Classify one MSFT_PhysicalDisk descriptor, None if inconclusive"""
        record.note(f"Disk {disk.index}: {disk.friendly_name or '-'}, model: {disk.model or '-'}, "
                    f"MediaType={disk.media_kind.value}, BusType={disk.bus_type.value}")

        if disk.media_kind == MediaKind.SSD:
            return _nvme_or_ssd(disk.bus_type == BusType.NVME)
        if disk.media_kind == MediaKind.HDD:
            return MediaClassification.HDD
        if disk.media_kind == MediaKind.SCM:
            return MediaClassification.SCM

        indicator = (contains_any(disk.friendly_name, self.rules.storage_name_indicators)
                     or contains_any(disk.model, self.rules.storage_name_indicators))
        if indicator:
            record.note(f"No media type declared, name indicator matched: {indicator}")
            is_nvme = _mentions_nvme(disk.friendly_name, disk.model)
            return _nvme_or_ssd(is_nvme)
        return None

    def classify(self, session, disk_index: Optional[int],
                 record: DiagnosticRecord) -> Result[ClassificationResult]:
        """
        Classify the disk with the given index, falling back to an all-disks scan

        Args:
            session: StorageSession
            disk_index: Physical disk index, None when the topology walk failed
            record: Diagnostic record for this step
        """
        if disk_index is not None:
            try:
                for disk in session.storage_physical_disks(device_id=disk_index):
                    classification = self.classify_descriptor(disk, record)
                    if classification:
                        return verdict(classification, self.name)
                record.note(f"Disk {disk_index}: scoped query gave no verdict")
            except StorageQueryError as e:
                record.note(f"Scoped query for disk {disk_index} failed: {e.message}")
        else:
            record.note("Physical disk index unknown")

        return self._classify_unscoped(session, record)

    def _classify_unscoped(self, session, record: DiagnosticRecord) -> Result[ClassificationResult]:
        if self.unscoped_fallback == UnscopedFallback.NEVER:
            return Result.error(NoMatchError("No verdict for the drive's own disk; all-disks scan disabled",
                                             source=self.name))
        try:
            disks = session.storage_physical_disks()
        except StorageQueryError as e:
            return Result.error(e)

        record.note(f"All-disks scan: {len(disks)} disk(s) reported")
        if self.unscoped_fallback == UnscopedFallback.SINGLE_DISK and len(disks) != 1:
            return Result.error(DataAmbiguousError(
                f"{len(disks)} physical disks reported; cannot attribute a verdict to this drive",
                source=self.name
            ))

        for disk in disks:
            classification = self.classify_descriptor(disk, record)
            if classification:
                record.note(f"Using first identified disk ({disk.display_name})")
                return verdict(classification, self.name)
        return Result.error(NoMatchError("No physical disk declared a usable media type", source=self.name))


class RegistryClassifier:
    """
    Disk driver enumeration key classifier

    Device ids such as SCSI\\Disk&Ven_NVMe&Prod_Samsung_SSD_970 carry
    vendor/product strings. Reading them needs no WMI associator queries.
    """

    name = "registry"

    def __init__(self, rules: HeuristicRules):
        self.rules = rules

    def classify(self, session, record: DiagnosticRecord) -> Result[ClassificationResult]:
        for device_id in session.registry_disk_device_ids():
            record.note(f"Device id: {device_id}")

            if contains_any(device_id, self.rules.registry_keywords):
                return verdict(_nvme_or_ssd(_mentions_nvme(device_id)), self.name)

            prefix = contains_any(device_id, self.rules.registry_vendor_prefixes)
            if prefix:
                record.note(f"Vendor prefix matched: {prefix}")
                return verdict(MediaClassification.SSD, self.name)

        return Result.error(NoMatchError("No solid state device id in registry", source=self.name))


class DiskDriveClassifier:
    """
    Legacy disk drive provider (Win32_DiskDrive) classifier

    The free-text fields are vendor-inconsistent, so several tiers are tried
    in order: media type text, PnP device id, model keywords, model patterns,
    SCSI-reported NVMe hints, serial number.
    """

    name = "Win32_DiskDrive"

    def __init__(self, rules: HeuristicRules):
        self.rules = rules

    def classify_descriptor(self, disk: DiskDescriptor,
                            record: DiagnosticRecord) -> Optional[MediaClassification]:
        """Classify one Win32_DiskDrive descriptor, None if no tier matches"""
        rules = self.rules
        model = disk.model
        record.note(f"Model: {model or '-'}, interface: {disk.interface_type or '-'}, "
                    f"PNP: {disk.device_path or '-'}")

        if contains_any(disk.media_type_text, ('SSD',)):
            record.note(f"Media type text: {disk.media_type_text}")
            return MediaClassification.SSD

        if _mentions_nvme(disk.device_path):
            return MediaClassification.NVME_SSD
        if contains_any(disk.device_path, ('SSD',)):
            return MediaClassification.SSD

        keyword = contains_any(model, rules.model_keywords)
        if keyword:
            record.note(f"Model keyword matched: {keyword}")
            return _nvme_or_ssd(_mentions_nvme(model))

        for model_pattern in rules.model_patterns:
            if model_pattern.matches(model):
                record.note(f"Model pattern matched: {model_pattern.pattern}")
                return _nvme_or_ssd(model_pattern.nvme or rules.is_nvme_model(model))

        # NVMe disks are commonly reported with a SCSI interface type
        if contains_any(disk.interface_type, ('SCSI',)):
            if contains_any(model, rules.scsi_nvme_tokens) or rules.matches_nvme_family(model):
                record.note("SCSI interface with NVMe model hint")
                return MediaClassification.NVME_SSD

        if contains_any(disk.serial_number, ('SSD',)):
            record.note("Serial number mentions SSD")
            return MediaClassification.SSD

        return None

    def classify(self, session, disk_index: int, record: DiagnosticRecord) -> Result[ClassificationResult]:
        disk = session.disk_drive(disk_index)
        if disk is None:
            return Result.error(NoMatchError(f"No Win32_DiskDrive with Index={disk_index}", source=self.name))

        classification = self.classify_descriptor(disk, record)
        if classification:
            return verdict(classification, self.name)
        return Result.error(NoMatchError(f"Disk {disk_index} model text gave no hint", source=self.name))


class LatencyClassifier:
    """
    Performance counter classifier (lowest confidence)

    Sub-threshold average read and write latency is typical of solid state
    media; the verdict is qualified as an estimate. Slow latency is not
    taken as proof of a hard disk.
    """

    name = "performance_counters"
    QUALIFIER = "estimated"

    def __init__(self, threshold_seconds: float = 0.001):
        self.threshold_seconds = threshold_seconds

    def classify(self, session, disk_index: int, record: DiagnosticRecord) -> Result[ClassificationResult]:
        sample = session.disk_latency(disk_index)
        if sample is None:
            return Result.error(NoMatchError(f"No performance counters for disk {disk_index}", source=self.name))

        read_latency, write_latency = sample.read_latency, sample.write_latency
        if read_latency is None or write_latency is None:
            return Result.error(DataAmbiguousError(
                f"Disk {disk_index} has no read/write latency samples", source=self.name
            ))

        record.note(f"Counter instance {sample.friendly_name!r}: "
                    f"read={read_latency * 1000:.3f} ms, write={write_latency * 1000:.3f} ms")

        if read_latency < self.threshold_seconds and write_latency < self.threshold_seconds:
            logger.debug(f"Disk {disk_index} latency below {self.threshold_seconds * 1000:g} ms")
            return verdict(MediaClassification.SSD, self.name, qualifier=self.QUALIFIER)

        return Result.error(NoMatchError(
            f"Disk {disk_index} latency above {self.threshold_seconds * 1000:g} ms threshold",
            source=self.name
        ))
