"""
Static timing and food rules per medication.

Lookup order matters: partial matches return the first entry whose key is
contained in the query (or contains it), so TIMING_TABLE is an ordered list.
"""
import copy
from typing import Any, Dict, List, Tuple

TimingData = Dict[str, Any]

TIMING_TABLE: List[Tuple[str, TimingData]] = [
    # Thyroid
    ("levothyroxine", {
        "with_food": False,
        "time_of_day": "morning",
        "before_meal_minutes": 60,
        "separation_required_minutes": 240,  # from calcium, iron
        "avoid_foods": ["calcium", "iron", "coffee", "soy"],
        "acidic_environment": True,
    }),
    ("synthroid", {
        "with_food": False,
        "time_of_day": "morning",
        "before_meal_minutes": 60,
        "separation_required_minutes": 240,
        "avoid_foods": ["calcium", "iron", "coffee", "soy"],
        "acidic_environment": True,
    }),

    # Diabetes
    ("metformin", {
        "with_food": True,
        "time_of_day": "any",
        "after_meal_minutes": 0,
        "avoid_foods": ["alcohol"],
        "alcohol_interaction": True,
    }),
    ("insulin", {
        "before_meal_minutes": 15,
        "time_of_day": "any",
    }),

    # Blood pressure
    ("lisinopril", {
        "with_food": False,
        "time_of_day": "morning",
        "avoid_foods": ["potassium supplements", "salt substitutes"],
    }),
    ("amlodipine", {
        "with_food": False,
        "time_of_day": "any",
        "avoid_foods": ["grapefruit"],
    }),
    ("losartan", {
        "with_food": False,
        "time_of_day": "any",
    }),

    # Cholesterol
    ("atorvastatin", {
        "with_food": False,
        "time_of_day": "evening",
        "avoid_foods": ["grapefruit"],
        "fat_soluble": True,
    }),
    ("simvastatin", {
        "with_food": False,
        "time_of_day": "evening",
        "avoid_foods": ["grapefruit"],
        "fat_soluble": True,
    }),

    # Antibiotics
    ("amoxicillin", {
        "with_food": True,
        "separation_required_minutes": 120,
        "avoid_foods": ["dairy"],
    }),
    ("doxycycline", {
        "with_food": True,
        "separation_required_minutes": 120,
        "avoid_foods": ["dairy", "calcium", "iron"],
        "photosensitivity": True,
    }),
    ("ciprofloxacin", {
        "with_food": False,
        "separation_required_minutes": 120,
        "avoid_foods": ["dairy", "calcium", "caffeine"],
    }),

    # Pain
    ("ibuprofen", {
        "with_food": True,
        "after_meal_minutes": 0,
        "alcohol_interaction": True,
    }),
    ("acetaminophen", {
        "with_food": False,
        "time_of_day": "any",
        "alcohol_interaction": True,
    }),

    # Heart
    ("warfarin", {
        "with_food": False,
        "time_of_day": "evening",
        "avoid_foods": ["vitamin k foods", "alcohol", "cranberry"],
        "alcohol_interaction": True,
    }),
    ("digoxin", {
        "with_food": False,
        "separation_required_minutes": 120,
        "avoid_foods": ["high fiber foods"],
    }),

    # Mental health
    ("sertraline", {
        "with_food": True,
        "time_of_day": "morning",
        "alcohol_interaction": True,
    }),
    ("fluoxetine", {
        "with_food": True,
        "time_of_day": "morning",
        "alcohol_interaction": True,
    }),
    ("lorazepam", {
        "with_food": False,
        "time_of_day": "evening",
        "drowsiness": True,
        "alcohol_interaction": True,
    }),

    # Supplements
    ("calcium", {
        "with_food": True,
        "separation_required_minutes": 240,  # from thyroid meds
        "require_foods": ["vitamin d"],
        "acidic_environment": True,
    }),
    ("iron", {
        "with_food": False,
        "separation_required_minutes": 120,
        "avoid_foods": ["calcium", "coffee", "tea"],
        "require_foods": ["vitamin c"],
    }),
    ("vitamin d", {
        "with_food": True,
        "fat_soluble": True,
        "require_foods": ["fat"],
    }),
]

_EXACT: Dict[str, TimingData] = {}
for _key, _data in TIMING_TABLE:
    _EXACT.setdefault(_key, _data)


def lookup(name: str) -> TimingData:
    """
    Return known timing constraints for a medication name.

    Exact (case-insensitive) key match first, then the first table entry
    where either string contains the other. Unknown names give {}.
    The result is a copy and safe to modify.
    """
    query = (name or "").strip().lower()
    if not query:
        return {}

    if query in _EXACT:
        return copy.deepcopy(_EXACT[query])

    for key, data in TIMING_TABLE:
        if key in query or query in key:
            return copy.deepcopy(data)

    return {}
