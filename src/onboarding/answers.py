"""
Answer Model for the Planting Wizard.

The partially-filled record built up one step at a time. Every topic is
optional; requiredness is decided per step by the validator, never here.

Updates arrive as typed commands (SetField / ToggleItem) scoped to a single
field. apply_update() returns a new snapshot and leaves the input untouched,
so the step resolver always sees a consistent answer set.
"""

import logging
import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


AreaUnit = Literal["m2", "ha"]
PlantingMethod = Literal["row", "bed"]
IrrigationKind = Literal["drip", "sprinkler", "other"]
FertigationChoice = Literal["yes", "no", "unsure"]
PropagationMethod = Literal["seed", "seedling"]
MaterialsStatus = Literal["purchased", "not_purchased"]
FertilizerKind = Literal["granular", "organic", "already_owned"]

# Spellings users (and older drafts) send for the area unit
_UNIT_ALIASES = {
    "m2": "m2",
    "m²": "m2",
    "m^2": "m2",
    "sqm": "m2",
    "ha": "ha",
    "hectare": "ha",
    "hectares": "ha",
}


class InvalidUpdateError(ValueError):
    """Raised when an update names an unknown field or an illegal value."""


# =============================================================================
# Topic Models
# =============================================================================


class AreaAnswer(BaseModel):
    value: float | None = None
    unit: AreaUnit = "m2"

    @field_validator("unit", mode="before")
    @classmethod
    def normalize_unit(cls, v: Any) -> Any:
        """Accept m², M2, hectares etc."""
        if isinstance(v, str):
            return _UNIT_ALIASES.get(v.strip().lower(), v)
        return v


class SoilAnswer(BaseModel):
    corrected: bool | None = None
    pending_items: list[str] = Field(default_factory=list)
    reminder: bool = False


class PlantingAnswer(BaseModel):
    method: PlantingMethod | None = None
    dimensions: str | None = None  # Only shown for row planting, optional


class IrrigationAnswer(BaseModel):
    uses: bool | None = None
    kind: IrrigationKind | None = None


class SeedAnswer(BaseModel):
    brand: str | None = None
    variety: str | None = None
    substrate: str | None = None
    tray: int | None = None  # Cells per tray


class SeedlingAnswer(BaseModel):
    variety: str | None = None
    supplier: str | None = None
    tray: int | None = None


class PropagationAnswer(BaseModel):
    method: PropagationMethod | None = None
    seed: SeedAnswer = Field(default_factory=SeedAnswer)
    seedling: SeedlingAnswer = Field(default_factory=SeedlingAnswer)


class GeoPoint(BaseModel):
    lat: float
    lng: float


class LocationAnswer(BaseModel):
    plot: str | None = None  # Plot / field label the farmer uses
    geo: GeoPoint | None = None


class MaterialsAnswer(BaseModel):
    status: MaterialsStatus | None = None
    items: list[str] = Field(default_factory=list)


class FertilizerAnswer(BaseModel):
    kind: FertilizerKind | None = None
    description: str | None = None


class AnswerModel(BaseModel):
    """
    Complete answer snapshot for one wizard session.

    Values from a branch that is no longer active (e.g. seed fields after
    switching to seedlings) are kept as-is. The resolver ignores them.
    """

    area: AreaAnswer = Field(default_factory=AreaAnswer)
    crop: str | None = None
    soil: SoilAnswer = Field(default_factory=SoilAnswer)
    planting: PlantingAnswer = Field(default_factory=PlantingAnswer)
    irrigation: IrrigationAnswer = Field(default_factory=IrrigationAnswer)
    fertigation: FertigationChoice | None = None
    propagation: PropagationAnswer = Field(default_factory=PropagationAnswer)
    location: LocationAnswer = Field(default_factory=LocationAnswer)
    materials: MaterialsAnswer = Field(default_factory=MaterialsAnswer)
    fertilizer: FertilizerAnswer = Field(default_factory=FertilizerAnswer)

    def to_dict(self) -> dict:
        """Serialize for JSON storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "AnswerModel":
        return cls.model_validate(data)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, json_str: str) -> "AnswerModel":
        return cls.model_validate_json(json_str)


# =============================================================================
# Update Commands
# =============================================================================

FieldPath = Literal[
    "area.value",
    "area.unit",
    "crop",
    "soil.corrected",
    "soil.reminder",
    "planting.method",
    "planting.dimensions",
    "irrigation.uses",
    "irrigation.kind",
    "fertigation",
    "propagation.method",
    "propagation.seed.brand",
    "propagation.seed.variety",
    "propagation.seed.substrate",
    "propagation.seed.tray",
    "propagation.seedling.variety",
    "propagation.seedling.supplier",
    "propagation.seedling.tray",
    "location.plot",
    "location.geo",
    "materials.status",
    "fertilizer.kind",
    "fertilizer.description",
]

ListFieldPath = Literal["soil.pending_items", "materials.items"]

NUMERIC_FIELDS = {
    "area.value",
    "propagation.seed.tray",
    "propagation.seedling.tray",
}


class SetField(BaseModel):
    """Set a single answer field."""
    op: Literal["set"] = "set"
    field: FieldPath
    value: Any = None


class ToggleItem(BaseModel):
    """Add an item to a multi-select list, or remove it if already there."""
    op: Literal["toggle"] = "toggle"
    field: ListFieldPath
    item: str


AnswerUpdate = Annotated[Union[SetField, ToggleItem], Field(discriminator="op")]


def coerce_number(raw: Any) -> float | None:
    """
    Coerce raw numeric input from the presentation layer.

    "1,5" -> 1.5, "" -> None (never zero). Unparseable or non-finite
    input also becomes None so the step validator reports it as missing.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(",", ".")
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            logger.info(f"Unparseable numeric input ignored: {raw!r}")
            return None

    if not math.isfinite(value):
        return None
    return value


def _set_path(data: dict, path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    node = data
    for key in parents:
        node = node[key]
    node[leaf] = value


def _get_path(data: dict, path: str) -> Any:
    node = data
    for key in path.split("."):
        node = node[key]
    return node


def _apply_coupled_resets(answers: AnswerModel, path: str) -> None:
    """Clear sub-answers that only make sense under the previous choice."""
    if path == "irrigation.uses" and answers.irrigation.uses is False:
        answers.irrigation.kind = None
    elif path == "materials.status" and answers.materials.status == "not_purchased":
        answers.materials.items = []
    elif path == "fertilizer.kind" and answers.fertilizer.kind in ("granular", "organic"):
        answers.fertilizer.description = None


def apply_update(answers: AnswerModel, update: SetField | ToggleItem) -> AnswerModel:
    """
    Apply one field update and return the new snapshot.

    Raises:
        InvalidUpdateError: unknown field path or a value the model rejects
    """
    data = answers.model_dump()

    if isinstance(update, SetField):
        value = update.value
        if update.field in NUMERIC_FIELDS:
            value = coerce_number(value)
        try:
            _set_path(data, update.field, value)
        except (KeyError, TypeError) as e:
            raise InvalidUpdateError(f"Unknown answer field: {update.field}") from e

    elif isinstance(update, ToggleItem):
        try:
            items = list(_get_path(data, update.field))
        except (KeyError, TypeError) as e:
            raise InvalidUpdateError(f"Unknown answer field: {update.field}") from e
        if update.item in items:
            items.remove(update.item)
        else:
            items.append(update.item)
        _set_path(data, update.field, items)

    else:
        raise InvalidUpdateError(f"Unsupported update: {update!r}")

    try:
        new = AnswerModel.model_validate(data)
    except ValidationError as e:
        raise InvalidUpdateError(str(e)) from e

    # Checked on the validated values, so "false" or 0 count as False
    if isinstance(update, SetField):
        _apply_coupled_resets(new, update.field)
    return new
