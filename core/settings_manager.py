#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Centralized settings management for Drive Inspector
"""

from typing import Any, Optional
from pathlib import Path
from PySide6.QtCore import QSettings


class SettingsManager:
    """Centralized settings management backed by QSettings"""

    # Canonical keys for all settings
    KEYS = {
        # Detection settings
        'LATENCY_THRESHOLD_MS': 'detection.latency_threshold_ms',
        'UNSCOPED_FALLBACK': 'detection.unscoped_fallback',
        'HEURISTICS_PATH': 'detection.heuristics_path',
        'INCLUDE_DIAGNOSTICS': 'detection.include_diagnostics',

        # Collection settings
        'COLLECTION_TIMEOUT': 'collection.timeout_seconds',

        # Debug settings
        'DEBUG_LOGGING': 'debug.enable_logging',
        'LOG_RETENTION_DAYS': 'debug.log_retention_days',
    }

    UNSCOPED_FALLBACK_VALUES = ('never', 'single_disk', 'always')

    _instance = None

    def __new__(cls):
        """Singleton pattern for settings manager"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize settings manager"""
        if self._initialized:
            return

        self._initialized = True
        self._settings = QSettings('DriveInspector', 'Settings')

        self._set_defaults()

    def _set_defaults(self):
        """Set default values for missing keys"""
        defaults = {
            self.KEYS['LATENCY_THRESHOLD_MS']: 1.0,
            self.KEYS['UNSCOPED_FALLBACK']: 'single_disk',
            self.KEYS['HEURISTICS_PATH']: '',
            self.KEYS['INCLUDE_DIAGNOSTICS']: False,
            self.KEYS['COLLECTION_TIMEOUT']: 60,
            self.KEYS['DEBUG_LOGGING']: False,
            self.KEYS['LOG_RETENTION_DAYS']: 30,
        }

        for key, default in defaults.items():
            if not self._settings.contains(key):
                self._settings.setValue(key, default)

    def use_backend(self, backend: QSettings):
        """Swap the QSettings store (portable INI files, tests)

        Args:
            backend: QSettings instance to read and write from now on
        """
        self._settings = backend
        self._set_defaults()

    def get(self, key: str, default: Any = None) -> Any:
        """Get setting value

        Args:
            key: Either a KEYS constant or direct key string
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        canonical_key = self.KEYS.get(key, key)
        return self._settings.value(canonical_key, default)

    def set(self, key: str, value: Any):
        """Set setting value

        Args:
            key: Either a KEYS constant or direct key string
            value: Value to set
        """
        canonical_key = self.KEYS.get(key, key)
        self._settings.setValue(canonical_key, value)

    def sync(self):
        """Force settings to disk"""
        self._settings.sync()

    def contains(self, key: str) -> bool:
        """Check if settings contains key

        Args:
            key: Either a KEYS constant or direct key string

        Returns:
            True if key exists
        """
        canonical_key = self.KEYS.get(key, key)
        return self._settings.contains(canonical_key)

    @staticmethod
    def _as_bool(value: Any) -> bool:
        # INI-backed QSettings hands booleans back as strings
        if isinstance(value, str):
            return value.strip().lower() in ('true', '1', 'yes', 'on')
        return bool(value)

    # Convenience properties for common settings
    @property
    def latency_threshold_seconds(self) -> float:
        """Latency below which a disk is estimated to be solid state (clamped 0.01-50 ms)"""
        try:
            threshold_ms = float(self.get('LATENCY_THRESHOLD_MS', 1.0))
        except (TypeError, ValueError):
            threshold_ms = 1.0
        return min(max(threshold_ms, 0.01), 50.0) / 1000.0

    @property
    def unscoped_fallback(self) -> str:
        """All-disks fallback policy: 'never', 'single_disk' or 'always'"""
        value = str(self.get('UNSCOPED_FALLBACK', 'single_disk')).lower()
        if value not in self.UNSCOPED_FALLBACK_VALUES:
            return 'single_disk'  # Safe fallback
        return value

    @unscoped_fallback.setter
    def unscoped_fallback(self, value: str):
        policy = str(value).lower()
        if policy not in self.UNSCOPED_FALLBACK_VALUES:
            raise ValueError(
                f"Unsupported fallback policy: {value}. "
                f"Must be one of {', '.join(self.UNSCOPED_FALLBACK_VALUES)}"
            )
        self.set('UNSCOPED_FALLBACK', policy)

    @property
    def heuristics_path(self) -> Optional[Path]:
        """Custom heuristic rule file, None for the bundled rules"""
        path_str = self.get('HEURISTICS_PATH', '')
        return Path(path_str) if path_str else None

    @property
    def include_diagnostics(self) -> bool:
        """Whether resolutions keep per-classifier diagnostic records"""
        return self._as_bool(self.get('INCLUDE_DIAGNOSTICS', False))

    @property
    def collection_timeout(self) -> float:
        """Deadline for a whole system information pass (clamped 5-600 s)"""
        try:
            seconds = float(self.get('COLLECTION_TIMEOUT', 60))
        except (TypeError, ValueError):
            seconds = 60.0
        return min(max(seconds, 5.0), 600.0)

    @property
    def debug_logging(self) -> bool:
        """Whether debug logging is enabled"""
        return self._as_bool(self.get('DEBUG_LOGGING', False))

    @property
    def log_retention_days(self) -> int:
        """Days of daily log files kept at startup (clamped 1-365)"""
        try:
            days = int(self.get('LOG_RETENTION_DAYS', 30))
        except (TypeError, ValueError):
            days = 30
        return min(max(days, 1), 365)

    def reset_all_settings(self):
        """Clear all stored settings and restore defaults"""
        from core.logger import logger

        self._settings.clear()
        self._settings.sync()

        self._set_defaults()

        logger.info("All settings reset to defaults")


# Global settings instance
settings = SettingsManager()
