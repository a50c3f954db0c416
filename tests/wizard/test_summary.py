"""
Tests for review cards and option lookups.
"""

from onboarding.answers import AnswerModel
from onboarding.options import (
    MAX_CROP_SUGGESTIONS,
    PLANTING_METHODS,
    get_variety_suggestions,
    get_wizard_options,
    label_for,
    search_crops,
)
from onboarding.steps import StepId, resolve_steps
from onboarding.summary import EMPTY, build_review_summary


class TestReviewSummary:

    def test_cards_follow_active_steps(self, seed_answers):
        items = build_review_summary(seed_answers)
        steps = [item.step for item in items]
        active = [s for s in resolve_steps(seed_answers) if s not in (StepId.SOIL_REMINDER, StepId.REVIEW)]
        assert steps == active

    def test_values(self, seed_answers):
        values = {item.step: item.value for item in build_review_summary(seed_answers)}
        assert values[StepId.AREA] == "600 m²"
        assert values[StepId.IRRIGATION] == "Yes – Drip"
        assert values[StepId.SEED_TRAY] == "200 cells"
        assert values[StepId.MATERIALS] == "Has: Tray"
        assert values[StepId.FERTILIZER] == "Organic"

    def test_inactive_branch_hidden(self, seed_answers):
        steps = {item.step for item in build_review_summary(seed_answers)}
        assert StepId.SEEDLING_VARIETY not in steps

    def test_empty_values(self):
        values = {item.step: item.value for item in build_review_summary(AnswerModel())}
        assert values[StepId.CROP] == EMPTY
        assert values[StepId.SOIL] == EMPTY

    def test_to_dict(self, seed_answers):
        item = build_review_summary(seed_answers)[0]
        assert item.to_dict() == {"title": "Area", "value": "600 m²", "step": "area"}


class TestOptions:

    def test_search_crops(self):
        assert search_crops("to") == ["Tomato"]
        assert len(search_crops("")) <= MAX_CROP_SUGGESTIONS

    def test_variety_by_crop_alias(self):
        assert get_variety_suggestions("Rúcula") == ["Broad Leaf", "Wild", "Astro"]
        assert get_variety_suggestions("Rúcula", "seedling") == ["Broad Leaf", "Wild"]

    def test_variety_without_crop(self):
        assert get_variety_suggestions(None, "seedling") == ["Common", "Premium"]

    def test_variety_unknown_crop(self):
        assert get_variety_suggestions("Okra") == ["Variety A", "Variety B", "Variety C"]

    def test_label_for(self):
        assert label_for(PLANTING_METHODS, "bed") == "Bed"
        assert label_for(PLANTING_METHODS, None) is None

    def test_wizard_options(self):
        options = get_wizard_options()
        assert options["tray_sizes"] == [128, 200, 288]
        assert {o["id"] for o in options["fertilizer_kinds"]} == {"granular", "organic", "already_owned"}
