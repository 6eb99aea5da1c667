#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Thread-aware exception hierarchy for Drive Inspector

This module provides the exception system shared by the storage resolver,
the disk information service and the worker threads. Every error carries a
technical message, a user-facing message, a severity and a context dict,
and records which Qt thread raised it.
"""

from PySide6.QtCore import QThread
from typing import Dict, Any, Optional
from datetime import datetime
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for categorization and UI display"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class InspectorError(Exception):
    """
    Base exception for all Drive Inspector errors

    Thread-aware exception that captures context information and provides
    user-friendly messages for UI display.
    """

    def __init__(self,
                 message: str,
                 error_code: Optional[str] = None,
                 user_message: Optional[str] = None,
                 recoverable: bool = False,
                 severity: ErrorSeverity = ErrorSeverity.ERROR,
                 context: Optional[Dict[str, Any]] = None):
        """
        Initialize inspector error

        Args:
            message: Technical error message for logging
            error_code: Unique error code for categorization
            user_message: User-friendly message for UI display
            recoverable: Whether operation can be retried
            severity: Error severity level
            context: Additional context information
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.user_message = user_message or self._generate_user_message()
        self.recoverable = recoverable
        self.severity = severity
        self.timestamp = datetime.utcnow()

        # Thread context information
        current_thread = QThread.currentThread()
        self.thread_name = current_thread.objectName() or current_thread.__class__.__name__

    def _generate_user_message(self) -> str:
        """Generate user-friendly message from technical message"""
        return "An error occurred during the operation. Please check the logs for details."

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and serialization"""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'user_message': self.user_message,
            'severity': self.severity.value,
            'recoverable': self.recoverable,
            'timestamp': self.timestamp.isoformat(),
            'thread_name': self.thread_name,
            'context': self.context
        }


class StorageQueryError(InspectorError):
    """
    Base class for storage information source failures

    None of these are fatal: the media type resolver degrades every one of
    them to an "Unknown" step and moves on to the next source.
    """

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        """
        Initialize storage query error

        Args:
            message: Technical error message
            source: Name of the provider or classifier that failed
            **kwargs: Additional InspectorError arguments
        """
        self.source = source
        context = kwargs.get('context', {})
        if source:
            context['source'] = source
        kwargs['context'] = context

        if 'severity' not in kwargs:
            kwargs['severity'] = ErrorSeverity.WARNING
        kwargs.setdefault('recoverable', True)

        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "Storage information could not be read."


class ProviderUnavailableError(StorageQueryError):
    """Provider could not be reached (permissions, service not running, non-Windows host)"""

    def _generate_user_message(self) -> str:
        return "A storage information provider is not available on this system."


class QueryMalformedError(StorageQueryError):
    """Query or association syntax/parameter rejected by the provider"""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        """
        Initialize malformed query error

        Args:
            message: Technical error message
            query: The query text that was rejected
            **kwargs: Additional StorageQueryError arguments
        """
        self.query = query
        context = kwargs.get('context', {})
        if query:
            context['query'] = query
        kwargs['context'] = context

        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "A storage query was rejected by the system."


class NoMatchError(StorageQueryError):
    """Query succeeded but returned nothing of interest"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', ErrorSeverity.INFO)
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "No matching storage information was found."


class DataAmbiguousError(StorageQueryError):
    """Information present but not interpretable (e.g. empty media type field)"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', ErrorSeverity.INFO)
        super().__init__(message, **kwargs)

    def _generate_user_message(self) -> str:
        return "Storage information was found but could not be interpreted."


class ConfigurationError(InspectorError):
    """Configuration, settings and heuristic rule file errors"""

    def __init__(self, message: str, setting_key: Optional[str] = None, **kwargs):
        """
        Initialize configuration error

        Args:
            message: Technical error message
            setting_key: Configuration key that caused the error
            **kwargs: Additional InspectorError arguments
        """
        context = kwargs.get('context', {})
        if setting_key:
            context['setting_key'] = setting_key
        kwargs['context'] = context

        super().__init__(message, severity=ErrorSeverity.WARNING, **kwargs)

    def _generate_user_message(self) -> str:
        return "Configuration error. Please check application settings."


class CollectionTimeoutError(InspectorError):
    """The system information pass exceeded its overall deadline"""

    def __init__(self, timeout_seconds: float, **kwargs):
        """
        Initialize collection timeout error

        Args:
            timeout_seconds: Deadline that elapsed
            **kwargs: Additional InspectorError arguments
        """
        self.timeout_seconds = timeout_seconds
        context = kwargs.get('context', {})
        context['timeout_seconds'] = timeout_seconds
        kwargs['context'] = context
        kwargs.setdefault('recoverable', True)

        super().__init__(
            f"System information collection timed out after {timeout_seconds:g}s",
            **kwargs
        )

    def _generate_user_message(self) -> str:
        return "System information collection timed out."


class ThreadError(InspectorError):
    """Worker thread failures"""

    def __init__(self, message: str, thread_name: Optional[str] = None, **kwargs):
        """
        Initialize thread error

        Args:
            message: Technical error message
            thread_name: Name of problematic thread
            **kwargs: Additional InspectorError arguments
        """
        context = kwargs.get('context', {})
        if thread_name:
            context['problem_thread'] = thread_name
        kwargs['context'] = context

        super().__init__(message, severity=ErrorSeverity.CRITICAL, **kwargs)

    def _generate_user_message(self) -> str:
        return "Internal processing error. Please restart the operation."
