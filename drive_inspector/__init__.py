#!/usr/bin/env python3
"""
Drive Inspector - storage media type detection for system information reports

Resolves, for a drive letter, whether the physical disk behind it is an HDD,
an SSD, an NVMe SSD or storage class memory, consulting several Windows
information sources in decreasing order of reliability.

Features:
- Storage management provider (MSFT_PhysicalDisk) classification
- Registry, model text and latency heuristics as fallbacks
- Versioned, replaceable heuristic rule file
- Disk section of the system information report with an overall deadline
- SOA/DI architecture with service registration
"""

from dataclasses import replace
from typing import Optional

from core.logger import logger

from .core.models import ClassificationResult, MediaClassification, SystemInfoItem, UnscopedFallback
from .core.media_type_resolver import MediaTypeResolver, ResolverConfig
from .services.interfaces import IDiskInfoService, IMediaTypeService

IMediaTypeService.register(MediaTypeResolver)


def register_services(settings=None, include_diagnostics: Optional[bool] = None):
    """
    Register drive inspection services with the service registry

    Services registered:
    - IMediaTypeService -> MediaTypeResolver (configured from settings)
    - IDiskInfoService -> DiskInfoService

    Args:
        settings: SettingsManager, default the application settings
        include_diagnostics: Override the stored diagnostics setting for this run
    """
    from core.services import register_service, is_registered
    from .services.disk_info_service import DiskInfoService

    if is_registered(IDiskInfoService):
        logger.debug("Drive inspector services already registered")
        return

    if settings is None:
        from core.settings_manager import settings

    config = ResolverConfig.from_settings(settings)
    if include_diagnostics is not None:
        config = replace(config, include_diagnostics=include_diagnostics)

    resolver = MediaTypeResolver(config=config)
    register_service(IMediaTypeService, resolver)
    register_service(IDiskInfoService, DiskInfoService(resolver=resolver, settings=settings))

    logger.info("Drive inspector services registered successfully")


__all__ = [
    'ClassificationResult', 'MediaClassification', 'SystemInfoItem', 'UnscopedFallback',
    'MediaTypeResolver', 'ResolverConfig',
    'IDiskInfoService', 'IMediaTypeService',
    'register_services',
]
