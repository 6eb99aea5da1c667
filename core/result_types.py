#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Result objects system for Drive Inspector

Rich result objects replace boolean and sentinel-string returns throughout
the application, carrying either a value or an InspectorError plus any
warnings and metadata collected along the way.
"""

from typing import TypeVar, Generic, Optional, List, Dict, Any, Callable, Iterable
from dataclasses import dataclass, field

from .exceptions import InspectorError

# Type variable for generic result values
T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """
    Universal result object that replaces boolean returns

    Provides type-safe error handling with rich context information
    and support for warnings and metadata.
    """
    success: bool
    value: Optional[T] = None
    error: Optional[InspectorError] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T, warnings: Optional[List[str]] = None, **metadata) -> 'Result[T]':
        """
        Create a successful result

        Args:
            value: The successful result value
            warnings: Optional list of warnings
            **metadata: Additional metadata to store

        Returns:
            Result object indicating success
        """
        return cls(
            success=True,
            value=value,
            warnings=warnings or [],
            metadata=metadata
        )

    @classmethod
    def error(cls, error: InspectorError, warnings: Optional[List[str]] = None) -> 'Result[T]':
        """
        Create an error result

        Args:
            error: The error that occurred
            warnings: Optional list of warnings that occurred before the error

        Returns:
            Result object indicating failure
        """
        return cls(
            success=False,
            error=error,
            warnings=warnings or []
        )

    def unwrap(self) -> T:
        """
        Get value or raise error

        Returns:
            The result value if successful

        Raises:
            InspectorError: If the result indicates failure
        """
        if not self.success:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        """
        Get value or return default

        Args:
            default: Default value to return if failed

        Returns:
            The result value if successful, otherwise the default
        """
        return self.value if self.success else default

    def map(self, func) -> 'Result':
        """
        Transform the value if successful

        Args:
            func: Function to apply to the value

        Returns:
            New Result with transformed value, or original error
        """
        if self.success:
            try:
                new_value = func(self.value)
                return Result.success(new_value, self.warnings, **self.metadata)
            except Exception as e:
                if isinstance(e, InspectorError):
                    return Result.error(e, self.warnings)
                error = InspectorError(f"Mapping function failed: {e}")
                return Result.error(error, self.warnings)
        return self

    def has_warnings(self) -> bool:
        """Check if result has warnings"""
        return len(self.warnings) > 0

    def add_warning(self, warning: str) -> 'Result[T]':
        """Add a warning to this result"""
        self.warnings.append(warning)
        return self

    def add_metadata(self, key: str, value: Any) -> 'Result[T]':
        """Add metadata to this result"""
        self.metadata[key] = value
        return self


def first_success(attempts: Iterable[Callable[[], Result[T]]]) -> Result[T]:
    """
    Run attempts in order and return the first successful result

    Attempts are zero-argument callables so that nothing after the first
    success is evaluated. Warnings of failed attempts are carried over.

    Args:
        attempts: Callables producing Result objects

    Returns:
        First successful result, or the last error if all fail
    """
    last_error = None
    all_warnings = []

    for attempt in attempts:
        result = attempt()
        if result.success:
            result.warnings[:0] = all_warnings
            return result
        last_error = result
        all_warnings.extend(result.warnings)

    if last_error:
        last_error.warnings = all_warnings
        return last_error

    return Result.error(InspectorError("No results provided"))
