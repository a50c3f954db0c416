"""
Wizard Steps.

Defines the closed set of step identifiers and resolves which of them are
active for a given answer snapshot.

The step list is always rebuilt from scratch. Nothing patches it in place,
so a branch toggled on and off can never leave a stale step behind.
"""

from enum import Enum

from .answers import AnswerModel


class StepId(str, Enum):
    """One focused question screen."""
    AREA = "area"
    CROP = "crop"
    SOIL = "soil"
    SOIL_PENDING_ITEMS = "soil_pending_items"  # Only when soil not corrected yet
    SOIL_REMINDER = "soil_reminder"
    PLANTING_METHOD = "planting_method"
    IRRIGATION = "irrigation"
    FERTIGATION = "fertigation"
    PROPAGATION_METHOD = "propagation_method"
    SEED_BRAND = "seed_brand"                  # Seed branch
    SEED_VARIETY = "seed_variety"
    SEED_SUBSTRATE = "seed_substrate"
    SEED_TRAY = "seed_tray"
    SEEDLING_VARIETY = "seedling_variety"      # Seedling branch
    SEEDLING_SUPPLIER = "seedling_supplier"
    SEEDLING_TRAY = "seedling_tray"
    LOCATION = "location"
    MATERIALS = "materials"
    FERTILIZER = "fertilizer"
    REVIEW = "review"


BACKBONE_HEAD = (StepId.AREA, StepId.CROP, StepId.SOIL)

SOIL_BRANCH = (StepId.SOIL_PENDING_ITEMS, StepId.SOIL_REMINDER)

BACKBONE_MIDDLE = (
    StepId.PLANTING_METHOD,
    StepId.IRRIGATION,
    StepId.FERTIGATION,
    StepId.PROPAGATION_METHOD,
)

SEED_BRANCH = (
    StepId.SEED_BRAND,
    StepId.SEED_VARIETY,
    StepId.SEED_SUBSTRATE,
    StepId.SEED_TRAY,
)

SEEDLING_BRANCH = (
    StepId.SEEDLING_VARIETY,
    StepId.SEEDLING_SUPPLIER,
    StepId.SEEDLING_TRAY,
)

TAIL = (StepId.LOCATION, StepId.MATERIALS, StepId.FERTILIZER, StepId.REVIEW)


def resolve_steps(answers: AnswerModel) -> list[StepId]:
    """
    Build the ordered list of active steps for an answer snapshot.

    Branch rules:
    - Soil pending items + reminder only when soil correction is explicitly
      False. Unknown (None) and True both leave them out.
    - Seed or seedling sub-steps follow the propagation choice; nothing is
      inserted while the choice is unset.
    """
    steps: list[StepId] = list(BACKBONE_HEAD)

    if answers.soil.corrected is False:
        steps.extend(SOIL_BRANCH)

    steps.extend(BACKBONE_MIDDLE)

    method = answers.propagation.method
    if method == "seed":
        steps.extend(SEED_BRANCH)
    elif method == "seedling":
        steps.extend(SEEDLING_BRANCH)

    steps.extend(TAIL)
    return steps


def is_informational(step: StepId) -> bool:
    """Steps that never block advancing."""
    return step in (StepId.SOIL_PENDING_ITEMS, StepId.SOIL_REMINDER, StepId.REVIEW)
