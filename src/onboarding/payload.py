"""
Finished Planting Record.

The PlantingRecord is the contract between the wizard and whatever stores
planting areas downstream. It carries every answer unchanged plus the
derived fields the area list needs (canonical hectares, display name).

Derivation happens exactly once, when the last step is confirmed.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .answers import AnswerModel

SQUARE_METERS_PER_HECTARE = 10_000

UNNAMED_AREA = "Unnamed area"


def area_to_hectares(value: float | None, unit: str) -> float | None:
    """
    Normalize an area to hectares.

    Square meters are rounded to 2 decimals (600 m² -> 0.06 ha);
    values already in hectares pass through unchanged.
    """
    if value is None:
        return None
    if unit == "ha":
        return value
    return round(value / SQUARE_METERS_PER_HECTARE, 2)


def derive_area_name(answers: AnswerModel) -> str:
    """Plot label if given, else the crop, else a placeholder."""
    if answers.location.plot and answers.location.plot.strip():
        return answers.location.plot.strip()
    if answers.crop and answers.crop.strip():
        return answers.crop.strip()
    return UNNAMED_AREA


@dataclass
class PlantingRecord:
    """
    Output of a completed wizard.

    `answers` is the full snapshot (including stale values from inactive
    branches, consumers should read the branch matching propagation.method).
    """

    id: str
    user_id: str | None
    name: str
    crop: str | None
    area_hectares: float | None
    uses_irrigation: bool
    geo: dict | None
    answers: dict = field(default_factory=dict)

    status: str = "registered"
    progress: int = 0
    created_at: str = ""
    record_version: str = "1.0"

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        """Serialize for storage/transfer."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "crop": self.crop,
            "area_hectares": self.area_hectares,
            "uses_irrigation": self.uses_irrigation,
            "geo": self.geo,
            "answers": self.answers,
            "status": self.status,
            "progress": self.progress,
            "created_at": self.created_at,
            "record_version": self.record_version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlantingRecord":
        return cls(**data)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def build_record_from_answers(answers: AnswerModel, user_id: str | None = None) -> PlantingRecord:
    """
    Assemble the finished record from a validated answer snapshot.

    Called once, when the review step is confirmed.
    """
    geo = answers.location.geo.model_dump() if answers.location.geo else None

    return PlantingRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=derive_area_name(answers),
        crop=answers.crop.strip() if answers.crop else None,
        area_hectares=area_to_hectares(answers.area.value, answers.area.unit),
        uses_irrigation=answers.irrigation.uses is True,
        geo=geo,
        answers=answers.to_dict(),
    )
