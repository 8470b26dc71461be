"""
NIBRS Pipeline - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- Sample raw agency data
- Mocked source download
"""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

# Set test environment
os.environ["NP_ENVIRONMENT"] = "dev"

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get the configs directory."""
    return project_root / "configs"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config() -> Any:
    """Get test configuration."""
    from nibrs_pipeline.shared.config import get_config, reload_config

    # Ensure fresh config for tests
    reload_config("dev")
    return get_config("dev")


@pytest.fixture
def tmp_config(test_config: Any, tmp_path: Path) -> Any:
    """Test configuration with storage pointed at a temporary directory."""
    storage = test_config.storage.model_copy(
        update={
            "raw_dir": str(tmp_path / "raw"),
            "processed_dir": str(tmp_path / "processed"),
        }
    )
    return test_config.model_copy(update={"storage": storage})


@pytest.fixture
def strict_config(test_config: Any) -> Any:
    """Test configuration with strict validation enabled."""
    validation = test_config.validation.model_copy(update={"strict_mode": True})
    return test_config.model_copy(update={"validation": validation})


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def raw_agencies() -> pd.DataFrame:
    """Raw agencies table as published, with strings for dates and flags."""
    return pd.DataFrame(
        {
            "ori": ["GA0010000", "GA0010000", "GA0020000", "GA0030000", "IL0010000", "MA0010000"],
            "county": ["LEE", "LEE", "LEE", "Unknown", "SANGAMON", "HAMPDEN"],
            "state": ["Georgia", "Georgia", "Georgia", "Georgia", "Illinois", "Massachusetts"],
            "agency_name": [
                "Lee County Sheriff's Office",
                "Lee County Sheriff's Office",
                "Leesburg Police Department",
                "Georgia Bureau of Investigation",
                "Springfield Police Department",
                "Springfield Police Department",
            ],
            "agency_type": ["Other", "Other", "City", "Other State Agency", "City", None],
            "latitude": ["31.73", "31.73", "31.75", None, "39.80", "42.10"],
            "longitude": ["-84.17", "-84.17", "-84.15", None, "-89.64", "-72.59"],
            "is_nibrs": ["FALSE", "FALSE", "TRUE", "TRUE", "FALSE", None],
            "nibrs_start_date": [
                "2020-01-01T05:00:00.000Z",
                "2020-01-01T05:00:00.000Z",
                "2018-06-01T05:00:00.000Z",
                None,
                None,
                "not-a-date",
            ],
        }
    )


@pytest.fixture
def mock_agencies_source(mocker: Any, raw_agencies: pd.DataFrame) -> Any:
    """Mock the agencies CSV download with the raw fixture table."""
    mock_response = mocker.MagicMock()
    mock_response.status_code = 200
    mock_response.text = raw_agencies.to_csv(index=False)
    mocker.patch(
        "nibrs_pipeline.datasets.agencies.ingest.requests.get", return_value=mock_response
    )
    return mock_response


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def cleanup_env() -> Generator[None, None, None]:
    """Clean up environment variables after each test."""
    original_env = os.environ.copy()
    yield
    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)
