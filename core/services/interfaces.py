#!/usr/bin/env python3
"""
Service interfaces for dependency injection and testing
"""
from abc import ABC


class IService(ABC):
    """Base interface for all services"""
    pass
