"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

MEASUREMENTS = ("luminosity", "sound", "temperature", "humidity")


def grade_field(measurement: str) -> str:
    return f"{measurement}_grade"


class Grade(str, Enum):
    """Three-level quality classification attached to every measurement."""

    poor = "Poor"
    moderate = "Moderate"
    good = "Good"


@dataclass(frozen=True, slots=True)
class Reading:
    """One environmental sensor sample; immutable once stored."""

    luminosity: float
    luminosity_grade: Grade
    sound: float
    sound_grade: Grade
    temperature: float
    temperature_grade: Grade
    humidity: float
    humidity_grade: Grade
    taken_at: datetime


@dataclass(frozen=True, slots=True)
class AggregateSnapshot:
    """Window averages as of the last successful aggregation run."""

    luminosity: float
    luminosity_grade: Grade
    sound: float
    sound_grade: Grade
    temperature: float
    temperature_grade: Grade
    humidity: float
    humidity_grade: Grade
    reading_count: int
