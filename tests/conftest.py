"""
Pytest configuration and fixtures for Rami tests.
"""

import os
import pytest
from unittest.mock import MagicMock

# Set test environment before importing rami modules
os.environ["RAMI_ENV"] = "development"
os.environ["DRAFT_BACKEND"] = "memory"
os.environ["SESSION_LOG_ENABLED"] = "false"
os.environ["DRAFT_BACKGROUND_WRITES"] = "false"  # Store assertions right after a write

from onboarding.answers import AnswerModel, SetField
from onboarding.controller import WizardController
from onboarding.drafts import DraftPersistence, MemoryDraftStore


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.upsert.return_value = mock_table
    mock_table.delete.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table

    return mock_client


@pytest.fixture
def memory_store():
    return MemoryDraftStore()


@pytest.fixture
def drafts(memory_store):
    """Foreground draft slot on a fresh memory store."""
    return DraftPersistence(memory_store, "rami_wizard_v2_test-user")


@pytest.fixture
def controller(drafts):
    return WizardController(drafts=drafts, user_id="test-user")


@pytest.fixture
def seed_answers() -> AnswerModel:
    """Every step answered, seed branch."""
    return AnswerModel.from_dict({
        "area": {"value": 600, "unit": "m2"},
        "crop": "Arugula",
        "soil": {"corrected": True},
        "planting": {"method": "bed"},
        "irrigation": {"uses": True, "kind": "drip"},
        "fertigation": "no",
        "propagation": {
            "method": "seed",
            "seed": {"brand": "Isla", "variety": "Wild", "substrate": "Coconut fiber", "tray": 200},
        },
        "location": {"plot": "Plot 3"},
        "materials": {"status": "purchased", "items": ["Tray"]},
        "fertilizer": {"kind": "organic"},
    })


def _set(field: str, value) -> SetField:
    return SetField(field=field, value=value)


def _fill_current_step(controller: WizardController) -> None:
    """Answer the current step with a valid value (seed path)."""
    answers = {
        "area": [("area.value", "600"), ("area.unit", "m2")],
        "crop": [("crop", "Arugula")],
        "soil": [("soil.corrected", True)],
        "planting_method": [("planting.method", "bed")],
        "irrigation": [("irrigation.uses", True), ("irrigation.kind", "drip")],
        "fertigation": [("fertigation", "no")],
        "propagation_method": [("propagation.method", "seed")],
        "seed_brand": [("propagation.seed.brand", "Isla")],
        "seed_variety": [("propagation.seed.variety", "Wild")],
        "seed_substrate": [("propagation.seed.substrate", "Coconut fiber")],
        "seed_tray": [("propagation.seed.tray", 200)],
        "seedling_variety": [("propagation.seedling.variety", "Broad Leaf")],
        "seedling_supplier": [("propagation.seedling.supplier", "Green Nursery")],
        "seedling_tray": [("propagation.seedling.tray", 128)],
        "location": [("location.plot", "Plot 3")],
        "materials": [("materials.status", "not_purchased")],
        "fertilizer": [("fertilizer.kind", "granular")],
    }
    for field, value in answers.get(controller.current_step.value, []):
        controller.mutate(_set(field, value))


@pytest.fixture
def fill_step():
    """Function that answers the controller's current step validly."""
    return _fill_current_step
