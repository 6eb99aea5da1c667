#!/usr/bin/env python3
"""
Tests for the console entry point
"""

from unittest.mock import MagicMock, patch

import pytest

import main
from core.logger import logger
from drive_inspector.core.models import ClassificationResult, MediaClassification


def test_parse_args():
    args = main.parse_args(["--drive", "C", "-d", "D:", "--debug", "--diagnostics", "--timeout", "30"])

    assert args.drive == ["C", "D:"]
    assert args.debug and args.diagnostics
    assert args.timeout == 30.0


def test_parse_args_defaults():
    args = main.parse_args([])

    assert args.drive is None
    assert not args.debug
    assert args.timeout is None


@pytest.fixture
def resolver():
    mock_resolver = MagicMock()
    mock_resolver.resolve_many.return_value = {
        "C": ClassificationResult(MediaClassification.NVME_SSD, source="MSFT_PhysicalDisk"),
        "Q": ClassificationResult.unknown(),
    }
    return mock_resolver


def test_resolve_drives_exit_code(resolver):
    with patch('core.services.get_service', return_value=resolver):
        exit_code = main.resolve_drives(["C", "Q"])

    resolver.resolve_many.assert_called_once_with(["C", "Q"])
    assert exit_code == 1


def test_main_single_drive(qapp, resolver):
    resolver.resolve_many.return_value = {
        "C": ClassificationResult(MediaClassification.SSD, source="registry")
    }

    with patch('drive_inspector.register_services') as mock_register, \
            patch('core.services.get_service', return_value=resolver), \
            patch.object(logger, 'cleanup_old_logs') as mock_cleanup:
        exit_code = main.main(["--drive", "C", "--diagnostics"])

    assert exit_code == 0
    assert mock_register.call_args.kwargs == {'include_diagnostics': True}
    mock_cleanup.assert_called_once_with(30)


def test_main_initialization_failure(qapp):
    with patch('drive_inspector.register_services', side_effect=RuntimeError("no rules")), \
            patch.object(logger, 'cleanup_old_logs'):
        assert main.main(["--drive", "C"]) == 2
