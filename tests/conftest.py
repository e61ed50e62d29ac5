"""
Pytest configuration for BANK inference tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# =============================================================================
# VALIDATION ON TEST RUN
# =============================================================================

def pytest_configure(config):
    """
    Validate the feature table and event weights before running tests.

    A broken table surfaces as a collection failure rather than as a
    scattering of numeric assertion errors.
    """
    from game.bank.validation import FeatureTableError, validate_bank_definitions

    try:
        validate_bank_definitions()
    except FeatureTableError as e:
        pytest.fail(f"Feature table validation failed:\n{e}", pytrace=False)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def _restore_config():
    """Tests that swap the active config never leak it to the next test."""
    from game.bank.config import reset_config

    yield
    reset_config()


@pytest.fixture
def defaults_yaml() -> Path:
    """Path to the shipped defaults file."""
    return project_root / "config" / "bank_defaults.yaml"
