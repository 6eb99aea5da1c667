"""
Shared fixtures for the Drive Inspector test suite
"""

import sys
from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication, QSettings

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.settings_manager import settings as app_settings
from drive_inspector.core.heuristics import HeuristicRules


@pytest.fixture(scope="session")
def qapp():
    """Qt application for tests that run worker threads"""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture(scope="session")
def rules():
    """Bundled heuristic rule set"""
    return HeuristicRules.load()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path_factory):
    """Keep every test off the user's real QSettings store"""
    previous = app_settings._settings
    ini_path = tmp_path_factory.mktemp("qsettings") / "settings.ini"
    app_settings.use_backend(QSettings(str(ini_path), QSettings.Format.IniFormat))
    yield
    app_settings._settings = previous


@pytest.fixture
def temp_settings(isolated_settings):
    """Application settings backed by a throwaway INI file"""
    return app_settings
