"""
Wizard Options - choice lists with display metadata.

These are suggestions and labels for the presentation layer. Free-text
answers (crop, variety, supplier...) are never restricted to them.
"""

import unicodedata


# =============================================================================
# Choice Lists
# =============================================================================

SUGGESTED_CROPS = ["Arugula", "Lettuce", "Tomato", "Chives", "Kale", "Cilantro"]

MAX_CROP_SUGGESTIONS = 6

SOIL_PENDING_ITEMS = ["Soil analysis", "Limestone", "Gypsum", "Other"]

TRAY_SIZES = [128, 200, 288]  # Cells per tray

MATERIAL_ITEMS = ["Seed/Seedling", "Substrate", "Tray", "Hose/Pipe", "Valve"]

AREA_UNITS = [
    {"id": "m2", "label": "m²"},
    {"id": "ha", "label": "ha"},
]

PLANTING_METHODS = [
    {"id": "row", "label": "Row", "description": "Furrows"},
    {"id": "bed", "label": "Bed", "description": "Raised"},
]

IRRIGATION_KINDS = [
    {"id": "drip", "label": "Drip"},
    {"id": "sprinkler", "label": "Sprinkler"},
    {"id": "other", "label": "Other"},
]

FERTIGATION_CHOICES = [
    {"id": "yes", "label": "Yes"},
    {"id": "unsure", "label": "I don't know what that is"},
    {"id": "no", "label": "No"},
]

PROPAGATION_METHODS = [
    {"id": "seed", "label": "Seed"},
    {"id": "seedling", "label": "Seedling"},
]

MATERIALS_STATUSES = [
    {"id": "purchased", "label": "Already bought"},
    {"id": "not_purchased", "label": "Not yet"},
]

FERTILIZER_KINDS = [
    {"id": "granular", "label": "Granular"},
    {"id": "organic", "label": "Organic"},
    {"id": "already_owned", "label": "I already have it"},
]


# Variety suggestions keyed by a crop keyword (accents ignored)
_SEED_VARIETIES = {
    "arugula": ["Broad Leaf", "Wild", "Astro"],
    "lettuce": ["Curly", "Iceberg", "Butterhead"],
    "tomato": ["Santa Clara", "Cherry", "Italian"],
}
_SEEDLING_VARIETIES = {
    "arugula": ["Broad Leaf", "Wild"],
    "lettuce": ["Curly", "Iceberg"],
    "tomato": ["Santa Clara", "Cherry"],
}
_CROP_ALIASES = {
    "rucula": "arugula",
    "rocket": "arugula",
    "alface": "lettuce",
    "tomate": "tomato",
}


def _fold(text: str) -> str:
    """Lowercase and strip accents ("Rúcula" -> "rucula")."""
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c)).lower()


def _crop_keyword(crop: str) -> str | None:
    folded = _fold(crop)
    for alias, keyword in _CROP_ALIASES.items():
        if alias in folded:
            return keyword
    for keyword in _SEED_VARIETIES:
        if keyword in folded:
            return keyword
    return None


# =============================================================================
# Lookups
# =============================================================================


def search_crops(query: str = "") -> list[str]:
    """Filter suggested crops by a case-insensitive substring."""
    q = _fold(query.strip())
    return [c for c in SUGGESTED_CROPS if q in _fold(c)][:MAX_CROP_SUGGESTIONS]


def get_variety_suggestions(crop: str | None, method: str = "seed") -> list[str]:
    """Variety chips for the seed or seedling variety step."""
    table = _SEEDLING_VARIETIES if method == "seedling" else _SEED_VARIETIES

    if not crop:
        if method == "seedling":
            return ["Common", "Premium"]
        return ["Variety 1", "Variety 2", "Variety 3"]

    keyword = _crop_keyword(crop)
    if keyword in table:
        return list(table[keyword])

    if method == "seedling":
        return ["Variety A", "Variety B"]
    return ["Variety A", "Variety B", "Variety C"]


def label_for(options: list[dict], choice_id: str | None) -> str | None:
    """Display label for a choice id."""
    for option in options:
        if option["id"] == choice_id:
            return option["label"]
    return None


def get_wizard_options() -> dict:
    """All option lists for frontend rendering."""
    return {
        "crops": SUGGESTED_CROPS,
        "area_units": AREA_UNITS,
        "soil_pending_items": SOIL_PENDING_ITEMS,
        "planting_methods": PLANTING_METHODS,
        "irrigation_kinds": IRRIGATION_KINDS,
        "fertigation": FERTIGATION_CHOICES,
        "propagation_methods": PROPAGATION_METHODS,
        "tray_sizes": TRAY_SIZES,
        "materials_statuses": MATERIALS_STATUSES,
        "material_items": MATERIAL_ITEMS,
        "fertilizer_kinds": FERTILIZER_KINDS,
    }
