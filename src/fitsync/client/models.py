"""Syncable records persisted by the local store.

This module provides:
- SyncableRecord: Base dataclass carrying id, last_modified and sync_status
- WorkoutPlan, AppUser, ExerciseTemplate, WorkoutHistory: Top-level records
- PlanExercise, HistoryExercise, HistorySet: Child records

Every record type is identified by a UUID that is assigned on creation and
doubles as the remote document id. Mutation paths must call
``mark_for_sync()`` so that the record is picked up by the next sync pass.
"""

from __future__ import annotations

import types
import typing
import uuid
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

from fitsync.core.types import SyncStatus


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class MuscleGroup(str, Enum):
    """Primary muscle group trained by an exercise."""

    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    LEGS = "legs"
    CORE = "core"


class LegSubgroup(str, Enum):
    """Leg subdivision, only set when the muscle group is LEGS."""

    QUADRICEPS = "quadriceps"
    HAMSTRINGS = "hamstrings"
    GLUTES = "glutes"
    CALVES = "calves"


def _decode(hint: Any, value: Any) -> Any:
    """Decode a JSON payload value according to a resolved type hint."""
    if value is None:
        return None
    candidates = typing.get_args(hint) if isinstance(hint, types.UnionType) else (hint,)
    for candidate in candidates:
        if candidate is datetime:
            return ensure_utc(datetime.fromisoformat(value))
        if candidate is UUID:
            return UUID(value)
        if candidate is SyncStatus:
            return SyncStatus(value)
        if isinstance(candidate, type) and issubclass(candidate, Enum):
            return candidate(value)
    return value


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass
class SyncableRecord:
    """Base class for every record taking part in synchronization.

    Attributes:
        id: Stable identifier, never reassigned. Also the remote document id.
        last_modified: Updated by every local mutation (UTC).
        sync_status: PENDING until a verified upload or an accepted remote version.
    """

    KIND: ClassVar[str] = ""

    id: UUID = field(default_factory=uuid.uuid4)
    last_modified: datetime = field(default_factory=utcnow)
    sync_status: SyncStatus = SyncStatus.PENDING

    def __post_init__(self) -> None:
        self.last_modified = ensure_utc(self.last_modified)

    @property
    def needs_sync(self) -> bool:
        """True if the record has local changes not yet uploaded."""
        return self.sync_status.needs_sync

    def mark_for_sync(self) -> None:
        """Flag a local mutation: status PENDING and last_modified bumped."""
        self.sync_status = SyncStatus.PENDING
        self.last_modified = utcnow()

    def mark_as_synced(self) -> None:
        """Flag the record as matching the remote; last_modified is preserved."""
        self.sync_status = SyncStatus.SYNCED

    def to_payload(self) -> dict[str, Any]:
        """Serialize all fields to a JSON-safe dictionary."""
        return {f.name: _encode(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> typing.Self:
        """Rebuild a record from ``to_payload()`` output."""
        hints = typing.get_type_hints(cls)
        kwargs = {
            f.name: _decode(hints[f.name], payload[f.name])
            for f in fields(cls)
            if f.name in payload
        }
        return cls(**kwargs)


@dataclass
class AppUser(SyncableRecord):
    """Owner of plans and histories."""

    KIND: ClassVar[str] = "user"

    name: str = ""
    email: str | None = None
    birth_date: datetime | None = None
    height: float | None = None
    weight: float | None = None
    provider: str | None = None  # "google", "facebook", "apple", ...
    provider_id: str | None = None
    locale: str | None = None
    gender: str | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class WorkoutPlan(SyncableRecord):
    """A named, ordered list of exercises belonging to one user."""

    KIND: ClassVar[str] = "workout_plan"

    auto_title: str = "Workout"
    custom_title: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    order: int = 0
    user_id: UUID | None = None

    @property
    def compact_title(self) -> str:
        """Custom title if set, otherwise the automatic one."""
        custom = (self.custom_title or "").strip()
        return custom or self.auto_title

    @property
    def display_title(self) -> str:
        """Title shown to the user, e.g. "Heavy Chest (Workout A)"."""
        custom = (self.custom_title or "").strip()
        if custom:
            return f"{custom} ({self.auto_title})"
        return self.auto_title


@dataclass
class ExerciseTemplate(SyncableRecord):
    """Catalog entry an exercise in a plan points to."""

    KIND: ClassVar[str] = "exercise_template"

    template_id: str = ""
    name: str = ""
    muscle_group: MuscleGroup = MuscleGroup.CHEST
    leg_subgroup: LegSubgroup | None = None
    equipment: str = ""
    grip_variation: str | None = None
    image_name: str | None = None


@dataclass
class WorkoutHistory(SyncableRecord):
    """A completed workout session."""

    KIND: ClassVar[str] = "workout_history"

    date: datetime = field(default_factory=utcnow)
    user_id: UUID | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_accuracy: float | None = None

    @property
    def has_location_data(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class PlanExercise(SyncableRecord):
    """Exercise slot inside a workout plan."""

    KIND: ClassVar[str] = "plan_exercise"

    plan_id: UUID | None = None
    template_id: str | None = None
    order: int = 0


@dataclass
class HistoryExercise(SyncableRecord):
    """Exercise performed during a workout session."""

    KIND: ClassVar[str] = "history_exercise"

    history_id: UUID | None = None
    name: str = ""
    order: int = 0


@dataclass
class HistorySet(SyncableRecord):
    """One set of a performed exercise. Raw sensor samples are not synced."""

    KIND: ClassVar[str] = "history_set"

    exercise_id: UUID | None = None
    order: int = 0
    reps: int = 0
    reps_counter: int | None = None  # Reps counted by the ML model
    weight: float = 0.0
    start_time: datetime | None = None
    end_time: datetime | None = None
    timestamp: datetime = field(default_factory=utcnow)
    rest_time: float | None = None  # seconds
    heart_rate: int | None = None
    calories_burned: float | None = None

    @property
    def duration(self) -> float | None:
        """Set duration in seconds, if both bounds are known."""
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


RECORD_TYPES: dict[str, type[SyncableRecord]] = {
    record_type.KIND: record_type
    for record_type in (
        WorkoutPlan,
        AppUser,
        ExerciseTemplate,
        WorkoutHistory,
        PlanExercise,
        HistoryExercise,
        HistorySet,
    )
}
