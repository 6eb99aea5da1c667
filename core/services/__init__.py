#!/usr/bin/env python3
"""
Service layer for Drive Inspector

Dependency injection through a service registry so that workers, the
console entry point and tests all obtain services through interfaces.
"""

from .service_registry import (
    ServiceRegistry, get_service, register_service, register_factory, is_registered
)
from .interfaces import IService
from .base_service import BaseService

__all__ = [
    'ServiceRegistry', 'get_service', 'register_service', 'register_factory', 'is_registered',
    'IService', 'BaseService',
]
