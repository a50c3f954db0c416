"""
Review Summary.

Builds the cards shown on the review step. Each card points at the step
that edits it, which is what the review screen jumps to.
"""

from dataclasses import dataclass

from .answers import AnswerModel
from .options import (
    FERTIGATION_CHOICES,
    FERTILIZER_KINDS,
    IRRIGATION_KINDS,
    PLANTING_METHODS,
    PROPAGATION_METHODS,
    label_for,
)
from .steps import StepId, resolve_steps

EMPTY = "—"


@dataclass(frozen=True)
class ReviewItem:
    title: str
    value: str
    step: StepId

    def to_dict(self) -> dict:
        return {"title": self.title, "value": self.value, "step": self.step.value}


def _text(value: str | None) -> str:
    return value.strip() if value and value.strip() else EMPTY


def _tray(cells: int | None) -> str:
    return f"{cells} cells" if cells else EMPTY


def _area(a: AnswerModel) -> str:
    if not a.area.value:
        return EMPTY
    unit = "m²" if a.area.unit == "m2" else "ha"
    return f"{a.area.value:g} {unit}"


def _soil(a: AnswerModel) -> str:
    if a.soil.corrected is None:
        return EMPTY
    return "Done" if a.soil.corrected else "Not yet"


def _planting(a: AnswerModel) -> str:
    method = label_for(PLANTING_METHODS, a.planting.method)
    if method is None:
        return EMPTY
    if a.planting.method == "row" and a.planting.dimensions:
        return f"{method} – {a.planting.dimensions}"
    return method


def _irrigation(a: AnswerModel) -> str:
    if a.irrigation.uses is None:
        return EMPTY
    if not a.irrigation.uses:
        return "No"
    kind = label_for(IRRIGATION_KINDS, a.irrigation.kind)
    return f"Yes – {kind}" if kind else "Yes"


def _materials(a: AnswerModel) -> str:
    if a.materials.status == "purchased":
        if a.materials.items:
            return f"Has: {', '.join(a.materials.items)}"
        return "Already bought"
    if a.materials.status == "not_purchased":
        return "Not bought yet"
    return EMPTY


def _fertilizer(a: AnswerModel) -> str:
    if a.fertilizer.kind == "already_owned":
        return _text(a.fertilizer.description) if a.fertilizer.description else "I already have it"
    return label_for(FERTILIZER_KINDS, a.fertilizer.kind) or EMPTY


def build_review_summary(answers: AnswerModel) -> list[ReviewItem]:
    """
    Review cards for every active step, in step order.

    Cards for inactive branches are left out, so every card's step is a
    valid jump target.
    """
    a = answers
    seed = a.propagation.seed
    seedling = a.propagation.seedling

    cards = {
        StepId.AREA: ("Area", _area(a)),
        StepId.CROP: ("Crop", _text(a.crop)),
        StepId.SOIL: ("Soil correction", _soil(a)),
        StepId.SOIL_PENDING_ITEMS: (
            "Soil pending items",
            ", ".join(a.soil.pending_items) if a.soil.pending_items else EMPTY,
        ),
        StepId.PLANTING_METHOD: ("Planting", _planting(a)),
        StepId.IRRIGATION: ("Irrigation", _irrigation(a)),
        StepId.FERTIGATION: (
            "Fertigation",
            label_for(FERTIGATION_CHOICES, a.fertigation) or EMPTY,
        ),
        StepId.PROPAGATION_METHOD: (
            "Propagation",
            label_for(PROPAGATION_METHODS, a.propagation.method) or EMPTY,
        ),
        StepId.SEED_BRAND: ("Seed – Brand", _text(seed.brand)),
        StepId.SEED_VARIETY: ("Seed – Variety", _text(seed.variety)),
        StepId.SEED_SUBSTRATE: ("Seed – Substrate", _text(seed.substrate)),
        StepId.SEED_TRAY: ("Seed – Tray", _tray(seed.tray)),
        StepId.SEEDLING_VARIETY: ("Seedling – Variety", _text(seedling.variety)),
        StepId.SEEDLING_SUPPLIER: ("Seedling – Supplier", _text(seedling.supplier)),
        StepId.SEEDLING_TRAY: ("Seedling – Tray", _tray(seedling.tray)),
        StepId.LOCATION: ("Location", _text(a.location.plot)),
        StepId.MATERIALS: ("Materials", _materials(a)),
        StepId.FERTILIZER: ("Planting fertilizer", _fertilizer(a)),
    }

    return [
        ReviewItem(title=cards[step][0], value=cards[step][1], step=step)
        for step in resolve_steps(answers)
        if step in cards
    ]
