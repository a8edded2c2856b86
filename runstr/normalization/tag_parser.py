"""
Tag parser for extracting distance and exercise type from workout events.

Workout events carry their distance in a tag such as
``["distance", "5.00", "km"]`` and the activity in ``["exercise", "run"]``.
Older clients only wrote free text ("Ran 3.1 miles"), so the content is the
fallback source. Units and exercise names are case-insensitive.
"""

import math
import re
from typing import Callable, Optional, Tuple

import bittensor as bt

from runstr.reward_engine.models.raw_record import RawRecord
from runstr.reward_engine.models.workout_record import ExerciseType

KM_PER_MILE = 1.609344

UNIT_TO_KM = {
    "km": 1.0,
    "kilometer": 1.0,
    "kilometers": 1.0,
    "kilometre": 1.0,
    "kilometres": 1.0,
    "mi": KM_PER_MILE,
    "mile": KM_PER_MILE,
    "miles": KM_PER_MILE,
    "m": 0.001,
    "meter": 0.001,
    "meters": 0.001,
    "metre": 0.001,
    "metres": 0.001,
}
DEFAULT_UNIT = "km"

MIN_DISTANCE_KM = 0.01
MAX_DISTANCE_KM = 500.0

EXERCISE_SYNONYMS = {
    "run": ExerciseType.RUN,
    "running": ExerciseType.RUN,
    "jog": ExerciseType.RUN,
    "jogging": ExerciseType.RUN,
    "cycle": ExerciseType.CYCLE,
    "cycling": ExerciseType.CYCLE,
    "bike": ExerciseType.CYCLE,
    "biking": ExerciseType.CYCLE,
    "walk": ExerciseType.WALK,
    "walking": ExerciseType.WALK,
    "hike": ExerciseType.WALK,
    "hiking": ExerciseType.WALK,
}

# "number followed by unit word"; longer unit spellings first so "miles" is not read as "mi"
CONTENT_DISTANCE_PATTERN = re.compile(
    r'(\d+(?:\.\d+)?)\s*'
    r'(kilometres|kilometers|kilometre|kilometer|km|miles|mile|mi|metres|meters|metre|meter|m)\b',
    re.IGNORECASE
)


def to_kilometres(value: float, unit: Optional[str]) -> float:
    """
    Convert a distance to kilometres.

    A missing unit means kilometres. An unrecognized unit is treated as
    kilometres and logged.
    """
    unit_key = (unit or DEFAULT_UNIT).strip().lower()
    factor = UNIT_TO_KM.get(unit_key)
    if factor is None:
        bt.logging.warning(f"Unrecognized distance unit '{unit}', assuming {DEFAULT_UNIT}")
        factor = UNIT_TO_KM[DEFAULT_UNIT]
    return value * factor


def _parse_number(text: str) -> Optional[float]:
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def distance_from_tag(record: RawRecord) -> Optional[float]:
    """Distance in km from a ["distance", value, unit?] tag, or None."""
    tag = record.first_tag("distance")
    if tag is None or len(tag) < 2:
        return None
    value = _parse_number(tag[1])
    if value is None:
        bt.logging.debug(f"Unparseable distance tag {list(tag)} on {record.id}")
        return None
    unit = tag[2] if len(tag) > 2 and tag[2] else None
    return to_kilometres(value, unit)


def distance_from_content(record: RawRecord) -> Optional[float]:
    """Distance in km from free text like 'Ran 3.1 miles', or None."""
    if not record.content:
        return None
    match = CONTENT_DISTANCE_PATTERN.search(record.content)
    if not match:
        return None
    value = _parse_number(match.group(1))
    if value is None:
        return None
    return to_kilometres(value, match.group(2))


# Ordered by precedence; the first extractor that yields a value wins.
DISTANCE_EXTRACTORS: Tuple[Callable[[RawRecord], Optional[float]], ...] = (
    distance_from_tag,
    distance_from_content,
)


def extract_distance_km(record: RawRecord) -> Optional[float]:
    """
    Run the extraction chain and return the first distance found.

    Returns None when no extractor finds a distance. The caller applies the
    plausibility bounds; a distance is never guessed.
    """
    for extractor in DISTANCE_EXTRACTORS:
        distance = extractor(record)
        if distance is not None:
            return distance
    return None


def is_plausible_distance(distance_km: float) -> bool:
    return MIN_DISTANCE_KM <= distance_km <= MAX_DISTANCE_KM


def parse_exercise_type(value: Optional[str]) -> ExerciseType:
    """Map an exercise name or synonym to its ExerciseType."""
    if not value:
        return ExerciseType.UNKNOWN
    return EXERCISE_SYNONYMS.get(value.strip().lower(), ExerciseType.UNKNOWN)


def extract_exercise_type(record: RawRecord) -> ExerciseType:
    tag = record.first_tag("exercise")
    if tag is None or len(tag) < 2:
        return ExerciseType.UNKNOWN
    return parse_exercise_type(tag[1])
