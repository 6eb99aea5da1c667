#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Application logging: console plus a daily log file, mirrored on a Qt signal
"""

import logging
import sys
from pathlib import Path
from datetime import datetime, timedelta
from typing import Optional
from PySide6.QtCore import QObject, Signal


LOG_DIRECTORY = Path.home() / '.drive_inspector' / 'logs'
LOG_FILE_PATTERN = 'inspector_*.log'


class AppLogger(QObject):
    """Singleton logger; listeners can subscribe to log_message(level, message)"""

    log_message = Signal(str, str)

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        super().__init__()
        self._initialized = True
        self._debug_enabled = False

        self.logger = logging.getLogger('DriveInspector')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()

        self._console_handler = logging.StreamHandler(sys.stdout)
        self._console_handler.setLevel(logging.INFO)
        self._console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S'
        ))
        self.logger.addHandler(self._console_handler)

        self._add_file_handler()

    def _add_file_handler(self):
        """Daily file under LOG_DIRECTORY, always at DEBUG"""
        try:
            LOG_DIRECTORY.mkdir(parents=True, exist_ok=True)
            log_file = LOG_DIRECTORY / f"inspector_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            # Read-only home directories still get console logging
            self.logger.warning(f"File logging disabled: {e}")
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        self.logger.addHandler(file_handler)

    def enable_debug(self, enabled: bool = True):
        """Show (or hide) DEBUG messages on the console"""
        self._debug_enabled = enabled
        self._console_handler.setLevel(logging.DEBUG if enabled else logging.INFO)
        self.info(f"Debug logging {'enabled' if enabled else 'disabled'}")

    def debug(self, message: str):
        self.logger.debug(message)
        if self._debug_enabled:
            self.log_message.emit('DEBUG', message)

    def info(self, message: str):
        self.logger.info(message)
        self.log_message.emit('INFO', message)

    def warning(self, message: str):
        self.logger.warning(message)
        self.log_message.emit('WARNING', message)

    def error(self, message: str):
        self.logger.error(message)
        self.log_message.emit('ERROR', message)

    def cleanup_old_logs(self, days_to_keep: int = 30,
                         directory: Optional[Path] = None) -> int:
        """
        Delete daily log files last written more than days_to_keep days ago

        Args:
            days_to_keep: Retention window in days
            directory: Log directory, default LOG_DIRECTORY

        Returns:
            Number of files deleted
        """
        directory = directory or LOG_DIRECTORY
        if not directory.exists():
            return 0

        cutoff = (datetime.now() - timedelta(days=days_to_keep)).timestamp()
        deleted = 0
        for log_file in directory.glob(LOG_FILE_PATTERN):
            try:
                if log_file.stat().st_mtime < cutoff:
                    log_file.unlink()
                    deleted += 1
                    self.debug(f"Deleted old log file: {log_file.name}")
            except OSError as e:
                self.warning(f"Failed to delete old log {log_file.name}: {e}")
        return deleted


logger = AppLogger()
