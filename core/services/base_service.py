#!/usr/bin/env python3
"""
Base service class with common functionality
"""
from abc import ABC
from typing import Optional, Dict, Any

from .interfaces import IService
from ..exceptions import InspectorError, ErrorSeverity
from ..logger import logger


class BaseService(IService, ABC):
    """Base class for all services with common functionality"""

    def _handle_error(self, error: InspectorError, context: Optional[Dict[str, Any]] = None):
        """Attach service context to an error and log it at its severity"""
        if context is None:
            context = {}

        context.update({
            'service': self.__class__.__name__,
            'service_method': context.get('method', 'unknown')
        })
        error.context.update(context)

        message = f"[{self.__class__.__name__}] {error.message}"
        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR):
            logger.error(message)
        elif error.severity == ErrorSeverity.WARNING:
            logger.warning(message)
        else:
            logger.info(message)

    def _log_operation(self, operation: str, details: str = "", level: str = "info"):
        """Log service operation with consistent format"""
        message = f"[{self.__class__.__name__}] {operation}"
        if details:
            message += f" - {details}"

        if level == "debug":
            logger.debug(message)
        elif level == "warning":
            logger.warning(message)
        elif level == "error":
            logger.error(message)
        else:
            logger.info(message)
