#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base worker thread class with unified error handling for Drive Inspector

Collection passes run on these threads so the foreground thread stays
responsive; outcomes are reported as a single Result through result_ready.
"""

from PySide6.QtCore import QThread, Signal
from typing import Optional
from datetime import datetime

from ..result_types import Result
from ..exceptions import InspectorError, ThreadError
from ..logger import logger


class BaseWorkerThread(QThread):
    """
    Base class for all worker threads with unified error handling

    Provides standardized signals, error handling, and cancellation support
    for all background operations in the application.
    """

    result_ready = Signal(Result)
    progress_update = Signal(int, str)

    def __init__(self, parent=None):
        """
        Initialize base worker thread

        Args:
            parent: Parent QObject for proper Qt lifecycle management
        """
        super().__init__(parent)

        self.cancelled = False
        self.operation_start_time = None
        self.operation_name = self.__class__.__name__

        self.setObjectName(f"{self.__class__.__name__}_{id(self)}")

    def run(self):
        """
        Main thread execution method

        Subclasses implement execute(); anything it raises is converted to
        an error Result here.
        """
        try:
            self.operation_start_time = datetime.utcnow()
            self.emit_progress(0, f"Starting {self.operation_name}...")

            result = self.execute()

            if result is None:
                result = Result.success(None)
            self.emit_result(result)

        except Exception as e:
            self.handle_unexpected_error(e)

    def execute(self) -> Optional[Result]:
        """
        Execute the worker operation

        Returns:
            Result object indicating operation outcome, or None for default success
        """
        raise NotImplementedError("Subclasses must implement execute() method")

    def emit_progress(self, percentage: int, message: str):
        """
        Thread-safe progress emission

        Args:
            percentage: Progress percentage (0-100)
            message: Status message describing current operation
        """
        percentage = max(0, min(100, percentage))

        if not self.cancelled:
            self.progress_update.emit(percentage, message)

    def emit_result(self, result: Result):
        """
        Thread-safe result emission

        Args:
            result: Result object containing operation outcome
        """
        if self.operation_start_time:
            duration = (datetime.utcnow() - self.operation_start_time).total_seconds()
            result.add_metadata('duration_seconds', duration)
            result.add_metadata('operation_name', self.operation_name)

        result.add_metadata('worker_thread', self.objectName())

        self.result_ready.emit(result)

    def handle_error(self, error: InspectorError):
        """
        Log an error and emit it as the worker's result

        Args:
            error: The inspector error that occurred
        """
        error.context.update({
            'worker_class': self.__class__.__name__,
            'worker_object_name': self.objectName(),
            'operation_name': self.operation_name,
            'cancelled': self.cancelled
        })
        logger.error(f"{self.operation_name} failed: {error.message}")
        self.emit_result(Result.error(error))

    def handle_unexpected_error(self, exception: Exception):
        """
        Handle exceptions that weren't converted to InspectorError

        Args:
            exception: The unexpected exception
        """
        if isinstance(exception, InspectorError):
            self.handle_error(exception)
            return

        error = ThreadError(
            f"Unexpected error in {self.operation_name}: {exception}",
            thread_name=self.objectName(),
            user_message="An unexpected error occurred. Please try the operation again.",
            context={'exception_type': exception.__class__.__name__}
        )
        self.handle_error(error)

    def cancel(self):
        """
        Request cancellation of the operation

        Cancellation is cooperative; execute() implementations check
        is_cancelled() between units of work.
        """
        self.cancelled = True
        self.progress_update.emit(100, f"{self.operation_name} cancelled by user")

    def is_cancelled(self) -> bool:
        return self.cancelled

    def set_operation_name(self, name: str):
        """
        Set a descriptive name for this operation

        Args:
            name: Human-readable operation name for progress messages
        """
        self.operation_name = name
