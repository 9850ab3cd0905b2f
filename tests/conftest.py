"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from automode.autorun import (  # noqa: E402
    AdaptiveOrchestrator,
    ProgressionEngine,
    RunStore,
    TopicSequencer,
    new_run,
)
from automode.config import Settings  # noqa: E402
from automode.curriculum import CurriculumCatalog  # noqa: E402
from automode.curriculum.models import CurriculumFile  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


SMALL_CURRICULUM = {
    "version": "test",
    "modules": [
        {
            "id": "strings",
            "name": "Strings",
            "order": 1,
            "subtopics": [
                {
                    "id": "basics",
                    "name": "Basics",
                    "problemTypes": [
                        {"id": "reverse", "name": "Reverse"},
                        {"id": "count", "name": "Count"},
                    ],
                },
                {
                    "id": "palindromes",
                    "name": "Palindromes",
                    "problemTypes": [{"id": "is-palindrome", "name": "Is Palindrome"}],
                },
            ],
        }
    ],
}


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def small_catalog():
    """Three-topic curriculum: reverse, count, is-palindrome."""
    return CurriculumCatalog(CurriculumFile.model_validate(SMALL_CURRICULUM))


@pytest.fixture
def engine(small_catalog):
    return ProgressionEngine(small_catalog.topic_ids(), module_ids=small_catalog.module_ids())


@pytest.fixture
def sequencer(small_catalog, engine):
    return TopicSequencer(small_catalog, engine)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def store(settings):
    return RunStore(settings.data_dir)


@pytest.fixture
def orchestrator(store, sequencer, settings):
    return AdaptiveOrchestrator(store, sequencer, settings=settings)


@pytest.fixture
def fresh_run():
    """Run at the start of the curriculum with default toggles."""
    return new_run("slot-1", name="Test Run", remediation_mode=False, now=1_000)
