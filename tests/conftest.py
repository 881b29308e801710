"""Pytest configuration and shared fixtures for the page2mhtml test suite.

This module provides shared fixtures and test configuration that are used
across the entire test suite.
"""

import os

import pytest
from fixtures.generators.mhtml_fixtures import (
    create_child_batch,
    create_content_id_table,
    create_simple_batch,
)

from page2mhtml import ContentIdTable, ResourceBatch

# Configure Hypothesis for property-based testing
try:
    from hypothesis import Phase, Verbosity, settings

    # Register custom Hypothesis profiles
    settings.register_profile("ci", max_examples=200, verbosity=Verbosity.verbose)
    settings.register_profile("dev", max_examples=50)
    settings.register_profile(
        "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
    )

    # Load profile from environment or use default
    settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))
except ImportError:
    # Hypothesis not installed, skip configuration
    pass


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "mhtml: MHTML archive tests")
    config.addinivalue_line("markers", "fuzzing: Property-based tests")


@pytest.fixture
def content_id_table() -> ContentIdTable:
    """Provide the root/child content-id table."""
    return create_content_id_table()


@pytest.fixture
def root_batch() -> ResourceBatch:
    """Provide the root frame's batch: document, image and stylesheet."""
    return create_simple_batch()


@pytest.fixture
def child_batch() -> ResourceBatch:
    """Provide the child frame's batch."""
    return create_child_batch()
