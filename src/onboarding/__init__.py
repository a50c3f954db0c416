"""
Rami Onboarding Wizard.

Step engine for registering a planting area. Collects answers one step at a
time and produces a PlantingRecord for the downstream collaborator.

Flow:
1. Answers    - SetField / ToggleItem updates on an AnswerModel
2. Steps      - step list recomputed from answers after every update
3. Validation - per-step checks, run only when moving forward
4. Drafts     - snapshot saved after every update, restored on start
5. Completion - review step confirmed -> PlantingRecord, draft cleared

The FastAPI router lives in onboarding.api (imported separately).
"""

from .answers import AnswerModel, InvalidUpdateError, SetField, ToggleItem, apply_update
from .controller import WizardCompletedError, WizardController
from .drafts import (
    DraftPersistence,
    DraftStore,
    FileDraftStore,
    MemoryDraftStore,
    SupabaseDraftStore,
    draft_key,
)
from .payload import PlantingRecord, build_record_from_answers
from .steps import StepId, resolve_steps
from .validation import ErrorKind, StepError, ValidationResult, validate_step

__all__ = [
    "AnswerModel",
    "InvalidUpdateError",
    "SetField",
    "ToggleItem",
    "apply_update",
    "StepId",
    "resolve_steps",
    "ErrorKind",
    "StepError",
    "ValidationResult",
    "validate_step",
    "DraftPersistence",
    "DraftStore",
    "MemoryDraftStore",
    "FileDraftStore",
    "SupabaseDraftStore",
    "draft_key",
    "WizardController",
    "WizardCompletedError",
    "PlantingRecord",
    "build_record_from_answers",
]
