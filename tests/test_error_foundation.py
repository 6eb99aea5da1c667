#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for the error handling foundation: exception hierarchy and Result objects
"""

import pytest

from core.exceptions import (
    InspectorError, StorageQueryError, ProviderUnavailableError, QueryMalformedError,
    NoMatchError, DataAmbiguousError, ConfigurationError, CollectionTimeoutError,
    ThreadError, ErrorSeverity
)
from core.result_types import Result, first_success


class TestExceptionHierarchy:

    @pytest.mark.parametrize("error_class", [
        ProviderUnavailableError, QueryMalformedError, NoMatchError, DataAmbiguousError
    ])
    def test_storage_taxonomy_is_recoverable(self, error_class):
        error = error_class("query failed", source="MSFT_PhysicalDisk")

        assert isinstance(error, StorageQueryError)
        assert isinstance(error, InspectorError)
        assert error.recoverable
        assert error.context['source'] == "MSFT_PhysicalDisk"
        assert error.error_code == error_class.__name__

    def test_severity_defaults(self):
        assert ProviderUnavailableError("x").severity == ErrorSeverity.WARNING
        assert NoMatchError("x").severity == ErrorSeverity.INFO
        assert DataAmbiguousError("x").severity == ErrorSeverity.INFO
        assert ThreadError("x").severity == ErrorSeverity.CRITICAL

    def test_query_is_kept(self):
        error = QueryMalformedError("bad", query="SELECT * FROM MSFT_PhysicalDisk WHERE DeviceId = '0'")

        assert error.query.startswith("SELECT")
        assert error.context['query'] == error.query

    def test_serialization(self):
        error = ConfigurationError("bad rules", setting_key='detection.heuristics_path')

        data = error.to_dict()

        assert data['error_code'] == "ConfigurationError"
        assert data['severity'] == "warning"
        assert data['context'] == {'setting_key': 'detection.heuristics_path'}
        assert data['thread_name']
        assert data['user_message'] == "Configuration error. Please check application settings."

    def test_collection_timeout_message(self):
        error = CollectionTimeoutError(60)

        assert error.message == "System information collection timed out after 60s"
        assert error.recoverable


class TestResult:

    def test_success_and_unwrap(self):
        result = Result.success("SSD", source="registry")

        assert result.unwrap() == "SSD"
        assert result.metadata == {'source': "registry"}

    def test_error_unwrap_raises(self):
        result = Result.error(NoMatchError("nothing"))

        with pytest.raises(NoMatchError):
            result.unwrap()
        assert result.unwrap_or("Unknown") == "Unknown"

    def test_map(self):
        assert Result.success(2).map(lambda x: x * 2).value == 4

        failed = Result.success(2).map(lambda x: x / 0)
        assert not failed.success
        assert "Mapping function failed" in failed.error.message


class TestFirstSuccess:

    def test_stops_at_first_success(self):
        calls = []

        def attempt(name, result):
            def run():
                calls.append(name)
                return result
            return run

        result = first_success([
            attempt("a", Result.error(NoMatchError("a")).add_warning("a skipped")),
            attempt("b", Result.success("b")),
            attempt("c", Result.success("c")),
        ])

        assert result.value == "b"
        assert calls == ["a", "b"]
        assert result.warnings == ["a skipped"]

    def test_returns_last_error(self):
        result = first_success([
            lambda: Result.error(NoMatchError("first")),
            lambda: Result.error(DataAmbiguousError("second")),
        ])

        assert isinstance(result.error, DataAmbiguousError)

    def test_empty(self):
        result = first_success([])

        assert not result.success
        assert result.error.message == "No results provided"
