"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample detection records
- Mock data store and brigade clients
- FastAPI test client wired to the mocks
"""
import os

# Settings are read at import time: keep retries instant and the limiter out of the way
os.environ.setdefault("RETRY_MIN_WAIT", "0")
os.environ.setdefault("RETRY_MAX_WAIT", "0")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "100000")
os.environ.setdefault("AUTH_ENABLED", "false")

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from app.main import app
from app.api.dependencies import get_brigade_client, get_data_store
from app.domain.models import DetectionRecord
from app.infrastructure.brigade_client import BrigadeClient
from app.infrastructure.data_store_client import DataStoreClient


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def sample_records() -> list[DetectionRecord]:
    """A small subparcel with mixed conditions and sizes."""
    return [
        DetectionRecord(id=1, subparcel_id=10, conglomerate_id=1, tree_number=1,
                        species="Quercus humboldtii", diameter=3.0, height=2.5, condition="alive"),
        DetectionRecord(id=2, subparcel_id=10, conglomerate_id=1, tree_number=2,
                        species="Quercus humboldtii", diameter=7.5, height=6.0, condition="alive"),
        DetectionRecord(id=3, subparcel_id=10, conglomerate_id=1, tree_number=3,
                        species="Cedrela odorata", diameter=24.0, height=15.0, condition="dead"),
        DetectionRecord(id=4, subparcel_id=10, conglomerate_id=1, tree_number=4,
                        species="Ceiba pentandra", diameter=65.5, height=None, condition="sick"),
        DetectionRecord(id=5, subparcel_id=10, conglomerate_id=1, tree_number=5,
                        species=None, diameter=None, height=None, condition=None),
    ]


@pytest.fixture
def sample_conglomerate() -> dict:
    return {"id": 1, "code": "CONG-001", "department": "Antioquia"}


@pytest.fixture
def sample_subparcels() -> list[dict]:
    return [
        {"id": 10, "conglomerate_id": 1, "number": 1},
        {"id": 11, "conglomerate_id": 1, "number": 2},
    ]


# ============================================================
# Mock Client Fixtures
# ============================================================

@pytest.fixture
def mock_data_store(sample_records, sample_conglomerate, sample_subparcels):
    """Create a mock data store client."""
    mock_client = AsyncMock(spec=DataStoreClient)
    mock_client.get_conglomerate.return_value = sample_conglomerate
    mock_client.list_subparcels.return_value = sample_subparcels
    mock_client.list_detections_by_subparcel.return_value = sample_records
    mock_client.list_detections_by_conglomerate.return_value = sample_records
    mock_client.insert_detections.side_effect = lambda rows: [
        DetectionRecord(id=100 + i, **row) for i, row in enumerate(rows)
    ]
    mock_client.update_detection.return_value = sample_records[0]
    mock_client.delete_detection.return_value = None
    mock_client.insert_summary.side_effect = lambda row: {"id": 1, **row}
    return mock_client


@pytest.fixture
def mock_brigade_client():
    """Create a mock brigade registry client."""
    mock_client = AsyncMock(spec=BrigadeClient)
    mock_client.get_conglomerate_coordinates.return_value = (6.2442, -75.5812)
    return mock_client


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client(mock_data_store, mock_brigade_client) -> TestClient:
    """Synchronous test client with the outbound clients replaced by mocks."""
    app.dependency_overrides[get_data_store] = lambda: mock_data_store
    app.dependency_overrides[get_brigade_client] = lambda: mock_brigade_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
