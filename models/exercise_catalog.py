# exercise_catalog.py
"""
Exercise lookup table keyed by exercise name.
Resolves canonical keys, display names and aliases case-insensitively.
"""

from typing import Dict, List

from models import (
    bent_over_row, bicep_curl, chest_fly, lateral_raise, lunge, russian_twist,
    shoulder_press, tricep_extension,
)
from models.metric_base import ExerciseDefinition

EXERCISE_CATALOG: Dict[str, ExerciseDefinition] = {
    definition.key: definition
    for definition in (
        bicep_curl.DEFINITION,
        shoulder_press.DEFINITION,
        lateral_raise.DEFINITION,
        bent_over_row.DEFINITION,
        chest_fly.DEFINITION,
        tricep_extension.DEFINITION,
        lunge.DEFINITION,
        russian_twist.DEFINITION,
    )
}


def _normalize(name: str) -> str:
    return " ".join(name.strip().lower().replace("_", " ").replace("-", " ").split())


EXERCISE_ALIASES: Dict[str, str] = {}
for _definition in EXERCISE_CATALOG.values():
    for _name in (_definition.key, _definition.display_name, *_definition.aliases):
        EXERCISE_ALIASES[_normalize(_name)] = _definition.key


def get_exercise(name: str) -> ExerciseDefinition:
    """Look up an exercise by key, display name or alias; unknown names raise KeyError"""
    key = EXERCISE_ALIASES.get(_normalize(name or ""))
    if key is None:
        raise KeyError(f"Unknown exercise: {name}")
    return EXERCISE_CATALOG[key]


def list_exercises() -> List[ExerciseDefinition]:
    return list(EXERCISE_CATALOG.values())
