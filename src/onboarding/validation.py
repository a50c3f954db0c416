"""
Step Validation.

Each step has one independent rule that decides whether the user may leave
it. Rules read the answer snapshot and never modify it.

Validation only runs for the step being left on advance. Going back or
jumping from the review screen never validates anything.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .answers import AnswerModel
from .steps import StepId, is_informational


class ErrorKind(Enum):
    """Error taxonomy for the wizard."""
    MISSING_VALUE = "missing_value"          # Required field absent/empty
    OUT_OF_RANGE = "out_of_range"            # Present but fails a numeric bound
    PERSISTENCE_FAILURE = "persistence_failure"  # Draft read/write failed (never blocks)


@dataclass(frozen=True)
class StepError:
    """The single current error shown to the user."""
    kind: ErrorKind
    message: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    error: StepError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def missing(cls, message: str) -> "ValidationResult":
        return cls(StepError(ErrorKind.MISSING_VALUE, message))

    @classmethod
    def out_of_range(cls, message: str) -> "ValidationResult":
        return cls(StepError(ErrorKind.OUT_OF_RANGE, message))


# =============================================================================
# Rule Building Blocks
# =============================================================================


def _blank(text: str | None) -> bool:
    return text is None or not text.strip()


def _positive_number(value: float | None, missing: str, out_of_range: str) -> ValidationResult:
    if value is None:
        return ValidationResult.missing(missing)
    if value <= 0:
        return ValidationResult.out_of_range(out_of_range)
    return ValidationResult.passed()


def _free_text(text: str | None, message: str) -> ValidationResult:
    if _blank(text):
        return ValidationResult.missing(message)
    return ValidationResult.passed()


def _choice(value: object, message: str) -> ValidationResult:
    if value is None:
        return ValidationResult.missing(message)
    return ValidationResult.passed()


# =============================================================================
# Per-Step Rules
# =============================================================================


def _validate_area(a: AnswerModel) -> ValidationResult:
    return _positive_number(
        a.area.value,
        "Enter the size of the area.",
        "Enter a number greater than 0.",
    )


def _validate_irrigation(a: AnswerModel) -> ValidationResult:
    if a.irrigation.uses is None:
        return ValidationResult.missing("Choose Yes or No.")
    if a.irrigation.uses and a.irrigation.kind is None:
        return ValidationResult.missing("Select the irrigation type.")
    return ValidationResult.passed()


def _validate_fertilizer(a: AnswerModel) -> ValidationResult:
    if a.fertilizer.kind is None:
        return ValidationResult.missing("Choose an option.")
    if a.fertilizer.kind == "already_owned" and _blank(a.fertilizer.description):
        return ValidationResult.missing("Describe the fertilizer you already have.")
    return ValidationResult.passed()


_RULES: dict[StepId, Callable[[AnswerModel], ValidationResult]] = {
    StepId.AREA: _validate_area,
    StepId.CROP: lambda a: _free_text(a.crop, "Tell us the crop (e.g. Arugula)."),
    StepId.SOIL: lambda a: _choice(a.soil.corrected, "Choose an option."),
    StepId.PLANTING_METHOD: lambda a: _choice(a.planting.method, "Choose Row or Bed."),
    StepId.IRRIGATION: _validate_irrigation,
    StepId.FERTIGATION: lambda a: _choice(a.fertigation, "Choose an option."),
    StepId.PROPAGATION_METHOD: lambda a: _choice(
        a.propagation.method, "Choose Seed or Seedling."
    ),
    StepId.SEED_BRAND: lambda a: _free_text(a.propagation.seed.brand, "Enter the brand."),
    StepId.SEED_VARIETY: lambda a: _free_text(
        a.propagation.seed.variety, "Enter the variety."
    ),
    StepId.SEED_SUBSTRATE: lambda a: _free_text(
        a.propagation.seed.substrate, "Enter the substrate."
    ),
    StepId.SEED_TRAY: lambda a: _positive_number(
        a.propagation.seed.tray, "Choose the tray.", "Tray size must be greater than 0."
    ),
    StepId.SEEDLING_VARIETY: lambda a: _free_text(
        a.propagation.seedling.variety, "Enter the seedling variety."
    ),
    StepId.SEEDLING_SUPPLIER: lambda a: _free_text(
        a.propagation.seedling.supplier, "Enter the supplier."
    ),
    StepId.SEEDLING_TRAY: lambda a: _positive_number(
        a.propagation.seedling.tray, "Choose the tray.", "Tray size must be greater than 0."
    ),
    StepId.LOCATION: lambda a: _free_text(
        a.location.plot, "Enter the location (plot/lot)."
    ),
    StepId.MATERIALS: lambda a: _choice(a.materials.status, "Choose an option."),
    StepId.FERTILIZER: _validate_fertilizer,
}


def validate_step(step: StepId, answers: AnswerModel) -> ValidationResult:
    """
    Check whether the user may leave `step` with the given answers.

    Returns:
        ValidationResult; `.error` carries kind + message on failure
    """
    if is_informational(step):
        return ValidationResult.passed()
    return _RULES[step](answers)
