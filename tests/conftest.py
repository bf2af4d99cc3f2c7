"""
Regional Leaderboards - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- A small synthetic region catalog
- In-memory record stores seeded with legacy-shaped documents
- Mock fixtures for external services
"""

import os
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

# Set test environment
os.environ["RL_ENVIRONMENT"] = "dev"

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)

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
    from regionpipe.shared.config import get_config, reload_config

    # Ensure fresh config for tests
    reload_config("dev")
    return get_config("dev")


@pytest.fixture
def piedmont_regions() -> list[dict[str, Any]]:
    """Raw catalog entries: two claimed regions and one state fallback."""
    return [
        {
            "key": "piedmont",
            "display_name": "Piedmont Triad, NC",
            "state": "nc",
            "primary_city": "Greensboro",
            "major_cities": ["Greensboro", "Winston-Salem", "High Point"],
            "center_point": {"lat": 35.0, "lon": -79.0},
            "geohash_prefixes": ["dnxx"],
            "radius_miles": 40,
        },
        {
            "key": "gotham",
            "display_name": "Gotham Metro, NY-NJ",
            "state": "ny",
            "states": ["ny", "nj"],
            "primary_city": "New York",
            "major_cities": ["New York", "Newark"],
            "center_point": {"lat": 40.7128, "lon": -74.006},
            "geohash_prefixes": ["dr5r"],
            "radius_miles": 50,
        },
        {
            "key": "us_nc_misc",
            "display_name": "North Carolina - Other",
            "state": "nc",
            "center_point": {"lat": 35.5, "lon": -79.5},
            "is_fallback": True,
        },
    ]


@pytest.fixture
def catalog(piedmont_regions: list[dict[str, Any]]) -> Any:
    """Synthetic region catalog."""
    from regionpipe.regions.catalog import RegionCatalog, parse_regions

    return RegionCatalog(parse_regions(piedmont_regions))


@pytest.fixture
def fixed_now() -> datetime:
    """Clock value used by migration contexts in tests."""
    return FIXED_NOW


@pytest.fixture
def resolver() -> Any:
    """Resolver with default precision, radius and fallback template."""
    from regionpipe.regions.resolver import RegionResolver

    return RegionResolver()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def sample_collections() -> dict[str, dict[str, dict[str, Any]]]:
    """Legacy-shaped documents across every collection."""
    return {
        "users": {
            "u1": {
                "displayName": "Ana",
                "currentLatitude": 36.47,
                "currentLongitude": -79.28,
                "currentState": "NC",
                "photoURL": "https://img/ana.png",
            },
            "u2": {
                "displayName": "Ben",
                "latitude": 40.7128,
                "longitude": -74.006,
                "state": "NY",
            },
            "u3": {"displayName": "Cy"},
            "course_account": {
                "displayName": "Pine Valley Pro Shop",
                "homeLatitude": 36.47,
                "homeLongitude": -79.28,
                "homeState": "NC",
                "userType": "Course",
            },
        },
        "courses": {
            "c1": {
                "id": 101,
                "course_name": "Triad Links",
                "location": {"latitude": 36.45, "longitude": -79.3, "state": "NC"},
            },
            "c2": {
                "id": "202",
                "courseName": "Harbor Park",
                "latitude": 40.72,
                "longitude": -74.0,
                "state": "NY",
            },
        },
        "scores": {
            "s1": {"userId": "u1", "courseId": "101", "netScore": 70, "grossScore": 80, "par": 72},
            "s2": {"userId": "u2", "courseId": 101, "netScore": 68, "grossScore": 75, "par": 72},
            "s3": {"userId": "u1", "courseId": "202", "netScore": 71, "tees": "Blue"},
            "s4": {"userId": "u2", "courseId": "999", "netScore": 72},
        },
        "thoughts": {
            "t1": {"userId": "u1", "text": "Great round"},
            "t2": {"userId": "ghost", "text": "Who am I"},
        },
    }


@pytest.fixture
def memory_store(sample_collections: dict[str, Any]) -> Any:
    """In-memory store seeded with the sample collections."""
    from regionpipe.store.memory import InMemoryRecordStore

    return InMemoryRecordStore(sample_collections)


@pytest.fixture
def migration_context(memory_store: Any, catalog: Any, resolver: Any) -> Any:
    """Committing migration context with a fixed clock."""
    from regionpipe.migration.base import MigrationContext

    return MigrationContext(
        store=memory_store, catalog=catalog, resolver=resolver, clock=lambda: FIXED_NOW
    )


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_firestore_client(mocker: Any) -> Any:
    """Mock Google Cloud Firestore client."""
    mock_client = mocker.MagicMock()
    mocker.patch("google.cloud.firestore.Client", return_value=mock_client)
    return mock_client


@pytest.fixture
def mock_slack(mocker: Any) -> Any:
    """Mock Slack webhook responses."""
    mock_response = mocker.MagicMock()
    mock_response.status_code = 200
    return mocker.patch("requests.post", return_value=mock_response)


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

    from regionpipe.shared.config import get_config

    get_config.cache_clear()
