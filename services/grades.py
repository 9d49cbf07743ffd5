"""Conversion between grades and their ordinal scores."""

from __future__ import annotations

import math
from typing import Dict, Union

from models.records import Grade

_ORDINALS: Dict[Grade, int] = {
    Grade.poor: 1,
    Grade.moderate: 2,
    Grade.good: 3,
}
_BY_ORDINAL: Dict[int, Grade] = {ordinal: grade for grade, ordinal in _ORDINALS.items()}

MIN_SCORE = min(_BY_ORDINAL)
MAX_SCORE = max(_BY_ORDINAL)

# Labels written by the original sensor pipeline.
_LEGACY_LABELS: Dict[str, Grade] = {
    "ruim": Grade.poor,
    "moderado": Grade.moderate,
    "bom": Grade.good,
}


def encode(grade: Grade) -> int:
    return _ORDINALS[grade]


def decode(score: float) -> Grade:
    """Map any real-valued score to the nearest grade.

    The score is clamped to ``[1, 3]`` and rounded half up, so an exact tie
    between two grades resolves to the higher one (``2.5`` is ``Good``).
    """
    if math.isnan(score):
        raise ValueError("Cannot decode a NaN grade score.")
    clamped = min(max(score, MIN_SCORE), MAX_SCORE)
    return _BY_ORDINAL[int(math.floor(clamped + 0.5))]


def parse_grade(value: Union[str, Grade]) -> Grade:
    """Accept a ``Grade``, its label in any case, or a legacy label."""
    if isinstance(value, Grade):
        return value
    candidate = value.strip().lower()
    for grade in Grade:
        if grade.value.lower() == candidate:
            return grade
    try:
        return _LEGACY_LABELS[candidate]
    except KeyError:
        raise ValueError(f"Unknown grade label {value!r}.") from None
