"""Pydantic schemas shared by the HTTP API and the persistence layer."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from models.records import AggregateSnapshot, Grade, Reading
from services.grades import parse_grade


class MeasurementSet(BaseModel):
    """The four measurements and their grades.

    Accepts both the canonical field names and the names written by the
    original realtime database (``luminosidade``, ``som_status``...).
    """

    model_config = ConfigDict(frozen=True)

    luminosity: float = Field(
        ..., validation_alias=AliasChoices("luminosity", "luminosidade")
    )
    luminosity_grade: Grade = Field(
        ...,
        validation_alias=AliasChoices("luminosity_grade", "luminosityStatus", "luminosidade_status"),
    )
    sound: float = Field(..., validation_alias=AliasChoices("sound", "sounds", "som"))
    sound_grade: Grade = Field(
        ..., validation_alias=AliasChoices("sound_grade", "soundsStatus", "som_status")
    )
    temperature: float = Field(
        ..., validation_alias=AliasChoices("temperature", "temperatura")
    )
    temperature_grade: Grade = Field(
        ...,
        validation_alias=AliasChoices("temperature_grade", "temperatureStatus", "temperatura_status"),
    )
    humidity: float = Field(..., validation_alias=AliasChoices("humidity", "umidade"))
    humidity_grade: Grade = Field(
        ..., validation_alias=AliasChoices("humidity_grade", "humidityStatus", "umidade_status")
    )

    @field_validator(
        "luminosity_grade",
        "sound_grade",
        "temperature_grade",
        "humidity_grade",
        mode="before",
    )
    @classmethod
    def _coerce_grade(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_grade(value)
        return value


class ReadingRecord(MeasurementSet):
    """A single stored sensor reading."""

    taken_at: datetime = Field(
        ...,
        validation_alias=AliasChoices("taken_at", "timestamp"),
        description="UTC time the sample was taken.",
    )

    @field_validator("taken_at")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingRecord":
        return cls.model_validate(asdict(reading))

    def to_reading(self) -> Reading:
        return Reading(**{name: getattr(self, name) for name in type(self).model_fields})


class SnapshotRecord(MeasurementSet):
    """Averages over the most recent aggregation window."""

    reading_count: int = Field(
        default=0, ge=0, description="Number of readings the averages were computed from."
    )

    @classmethod
    def from_snapshot(cls, snapshot: AggregateSnapshot) -> "SnapshotRecord":
        return cls.model_validate(asdict(snapshot))

    def to_snapshot(self) -> AggregateSnapshot:
        return AggregateSnapshot(
            **{name: getattr(self, name) for name in type(self).model_fields}
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    scheduler_running: bool = False
    skipped_ticks: int = Field(default=0, ge=0)
