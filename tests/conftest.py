"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import mlflow
import pytest

from landhunt.config import Settings
from landhunt.core.types import Parcel
from landhunt.services import Services


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests — no side effects, no mlruns/ writes."""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()


def _make_parcel(**kwargs) -> Parcel:
    defaults = {
        "id": "parcel-1",
        "address": "1 Mill Lane, Little Snoring, NR21 0AA",
        "area_sq_m": 4200.0,
        "use_class": "Agricultural",
        "local_plan_designation": "Outside settlement boundary",
        "flood_zone": "1",
        "constraints": None,
        "ppd_snapshot": None,
    }
    defaults.update(kwargs)
    return Parcel(**defaults)


@pytest.fixture
def fake_services() -> Services:
    """Services with every collaborator mocked; tests configure return values."""
    store = MagicMock()
    store.get_parcel = AsyncMock(return_value=_make_parcel())
    store.get_scores = AsyncMock(return_value=None)
    store.get_planning_summary = AsyncMock(return_value=None)
    store.upsert_scores = AsyncMock(return_value=True)
    store.upsert_planning_summary = AsyncMock(return_value=True)
    store.append_passport = AsyncMock(return_value=True)

    llm = MagicMock()
    llm.complete = AsyncMock()

    blob = MagicMock()
    blob.upload = AsyncMock()

    return Services(
        settings=Settings(summary_source_max_chars=12_000, pipeline_timeout_s=5),
        store=store,
        llm=llm,
        blob=blob,
        http=MagicMock(),
    )
