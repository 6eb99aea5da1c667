#!/usr/bin/env python3
"""
Media Type Resolver - Multi-source SSD/HDD/NVMe/SCM classification per drive letter

Detection sources (in priority order):
1. Storage management provider, MSFT_PhysicalDisk (most reliable)
2. Registry disk enumeration (no associator queries, rarely access-denied)
3. Win32_DiskDrive model/interface heuristics
4. Performance counter latency (estimate only)
5. "Unknown" sentinel

Every source is fault-isolated: an exception or empty answer from one of
them is recorded and the chain moves on. The first verdict wins and later
sources are never queried. resolve() never raises.

Usage:
    resolver = MediaTypeResolver()
    result = resolver.resolve("C")
    print(result.label)          # "SSD (NVMe)"
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, List, Dict, Iterable, Callable

from core.logger import logger
from core.result_types import Result, first_success
from core.exceptions import StorageQueryError, NoMatchError

from .models import ClassificationResult, DiagnosticRecord, UnscopedFallback
from .heuristics import HeuristicRules
from .providers import StorageProviders
from .topology import TopologyWalker, normalize_drive_letter
from .classifiers import (
    AuthoritativeClassifier, RegistryClassifier, DiskDriveClassifier, LatencyClassifier
)


@dataclass(frozen=True)
class ResolverConfig:
    """
    Resolver tuning

    Attributes:
        latency_threshold: Seconds per read/write below which a disk is estimated SSD
        unscoped_fallback: All-disks scan policy of the storage provider step
        heuristics_path: Custom heuristic rule file, None for the bundled one
        include_diagnostics: Attach per-classifier diagnostic records to results
        latency_sample_interval: Seconds between the two latency counter samples
    """
    latency_threshold: float = 0.001
    unscoped_fallback: UnscopedFallback = UnscopedFallback.SINGLE_DISK
    heuristics_path: Optional[Path] = None
    include_diagnostics: bool = False
    latency_sample_interval: float = 0.25

    @classmethod
    def from_settings(cls, settings=None) -> 'ResolverConfig':
        """Build a config from the application SettingsManager"""
        if settings is None:
            from core.settings_manager import settings
        return cls(
            latency_threshold=settings.latency_threshold_seconds,
            unscoped_fallback=UnscopedFallback(settings.unscoped_fallback),
            heuristics_path=settings.heuristics_path,
            include_diagnostics=settings.include_diagnostics,
        )


class _ResolutionContext:
    """Call-scoped state: the session and the physical disk index, walked at most once"""

    _UNRESOLVED = object()

    def __init__(self, drive: str, session, topology_record: DiagnosticRecord):
        self.drive = drive
        self.session = session
        self.topology_record = topology_record
        self._disk_index = self._UNRESOLVED

    @property
    def disk_index(self) -> Optional[int]:
        if self._disk_index is self._UNRESOLVED:
            try:
                self._disk_index = TopologyWalker(self.session).find_physical_disk_index(
                    self.drive, self.topology_record
                )
            except (TypeError, ValueError) as e:
                self.topology_record.error = f"Unusable disk index: {e}"
                self._disk_index = None
            except Exception as e:
                self.topology_record.error = f"{type(e).__name__}: {e}"
                logger.warning(f"Topology walk for {self.drive} raised {type(e).__name__}: {e}")
                self._disk_index = None
            self.topology_record.outcome = (
                f"disk {self._disk_index}" if self._disk_index is not None else "not found"
            )
        return self._disk_index


@dataclass(frozen=True)
class _Step:
    name: str
    run: Callable[[_ResolutionContext, DiagnosticRecord], Result[ClassificationResult]]


class MediaTypeResolver:
    """
    Resolves the media type of the physical disk behind a drive letter

    Stateless between calls: every resolve() opens its own provider session
    and walks the topology afresh, so instances may be shared across threads.
    """

    def __init__(self, providers: Optional[StorageProviders] = None,
                 rules: Optional[HeuristicRules] = None,
                 config: Optional[ResolverConfig] = None):
        """
        Args:
            providers: Session factory, default queries the live system
            rules: Heuristic rule set, default loads config.heuristics_path or the bundled rules
            config: Resolver configuration, default ResolverConfig()
        """
        self.config = config or ResolverConfig()
        self.providers = providers or StorageProviders(
            latency_sample_interval=self.config.latency_sample_interval
        )
        self.rules = rules or HeuristicRules.load(self.config.heuristics_path)

        self.authoritative = AuthoritativeClassifier(self.rules, self.config.unscoped_fallback)
        self.registry = RegistryClassifier(self.rules)
        self.disk_drive = DiskDriveClassifier(self.rules)
        self.latency = LatencyClassifier(self.config.latency_threshold)

        self._steps = (
            _Step(self.authoritative.name,
                  lambda ctx, record: self.authoritative.classify(ctx.session, ctx.disk_index, record)),
            _Step(self.registry.name,
                  lambda ctx, record: self.registry.classify(ctx.session, record)),
            _Step(self.disk_drive.name,
                  lambda ctx, record: self._with_index(ctx, record, self.disk_drive.classify)),
            _Step(self.latency.name,
                  lambda ctx, record: self._with_index(ctx, record, self.latency.classify)),
        )

        logger.debug(f"MediaTypeResolver initialized (rules v{self.rules.version}, "
                     f"unscoped fallback: {self.config.unscoped_fallback.value})")

    @staticmethod
    def _with_index(ctx: _ResolutionContext, record: DiagnosticRecord, classify) -> Result:
        disk_index = ctx.disk_index
        if disk_index is None:
            return Result.error(NoMatchError(f"No physical disk index for {ctx.drive}", source=record.classifier))
        return classify(ctx.session, disk_index, record)

    def resolve(self, drive_letter: str) -> ClassificationResult:
        """
        Classify the physical disk backing a drive letter

        Args:
            drive_letter: "C", "C:" or "C:\\"

        Returns:
            ClassificationResult; "Unknown" when every source is inconclusive
        """
        try:
            drive = normalize_drive_letter(drive_letter)
        except ValueError as e:
            logger.warning(str(e))
            return ClassificationResult.unknown(error=str(e))

        logger.debug(f"Resolving media type for drive {drive}")

        try:
            with self.providers.session() as session:
                return self._resolve_in_session(drive, session)
        except Exception as e:
            # Session setup/teardown (COM) failures still yield a classification
            logger.debug(f"Media type resolution for {drive} aborted: {e.__class__.__name__}: {e}")
            return ClassificationResult.unknown(error=str(e))

    def resolve_many(self, drive_letters: Iterable[str]) -> Dict[str, ClassificationResult]:
        """Resolve several drives independently, keyed by the given drive strings"""
        return {drive_letter: self.resolve(drive_letter) for drive_letter in drive_letters}

    def _resolve_in_session(self, drive: str, session) -> ClassificationResult:
        topology_record = DiagnosticRecord("topology", outcome="not walked")
        records: List[DiagnosticRecord] = [topology_record]
        ctx = _ResolutionContext(drive, session, topology_record)

        outcome = first_success(
            (lambda step=step: self._attempt(step, ctx, records)) for step in self._steps
        )

        diagnostics = tuple(records) if self.config.include_diagnostics else ()

        if outcome.success:
            result = outcome.value
            logger.info(f"Drive {drive}: {result.label} (via {result.source})")
            return replace(result, diagnostics=diagnostics)

        logger.info(f"Drive {drive}: media type unknown, all detection methods inconclusive")
        return ClassificationResult.unknown(diagnostics=diagnostics)

    def _attempt(self, step: _Step, ctx: _ResolutionContext,
                 records: List[DiagnosticRecord]) -> Result[ClassificationResult]:
        record = DiagnosticRecord(step.name)
        records.append(record)
        try:
            result = step.run(ctx, record)
        except StorageQueryError as e:
            result = Result.error(e)
        except Exception as e:
            logger.debug(f"{step.name} raised {e.__class__.__name__}: {e}")
            result = Result.error(StorageQueryError(f"{step.name} failed: {e}", source=step.name))

        if result.success:
            record.outcome = result.value.label
        else:
            record.error = result.error.message
            logger.debug(f"{step.name} inconclusive for {ctx.drive}: {result.error.message}")
        return result
