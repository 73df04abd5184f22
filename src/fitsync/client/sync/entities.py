"""Entity registry: how each record kind maps to a remote collection.

This module provides:
- EntityMapping: (kind, collection, record type, to_document, from_document)
- DEFAULT_ENTITIES: Registered mappings in sync order

The engine runs one generic upload/download path over this list. Documents
are flat maps of primitive values; timestamps travel as ISO-8601 strings.
Fields marked derived (exerciseCount, setCount, title) are computed on
upload and ignored on download.

Collections:
    | Collection        | Required on download                                   |
    |-------------------|--------------------------------------------------------|
    | workoutPlans      | id, autoTitle, createdAt, lastModified, order          |
    | users             | id, name, createdAt, lastModified                      |
    | exerciseTemplates | id, templateId, name, muscleGroup, equipment, lastModified |
    | workoutHistories  | id, date, lastModified                                 |
    | planExercises     | id, planId, order, lastModified                        |
    | historyExercises  | id, historyId, name, order, lastModified               |
    | historySets       | id, exerciseId, order, reps, weight, timestamp, lastModified |
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fitsync.client.models import (
    AppUser,
    ExerciseTemplate,
    HistoryExercise,
    HistorySet,
    LegSubgroup,
    MuscleGroup,
    PlanExercise,
    SyncableRecord,
    WorkoutHistory,
    WorkoutPlan,
    ensure_utc,
)
from fitsync.client.sync.types import MalformedDocumentError
from fitsync.core.types import SyncStatus

if TYPE_CHECKING:
    from fitsync.client.remote import RemoteDocument
    from fitsync.client.store import LocalStore

Document = dict[str, Any]


@dataclass(frozen=True)
class EntityMapping:
    """Binding between a local record kind and a remote collection.

    Attributes:
        kind: Local record kind (``SyncableRecord.KIND``)
        collection: Remote collection name
        record_type: Record class
        to_document: Builds the flat field map for upload
        from_document: Parses a remote document into an unsaved record
    """

    kind: str
    collection: str
    record_type: type[SyncableRecord]
    to_document: Callable[[Any, LocalStore], Document]
    from_document: Callable[[RemoteDocument, str], SyncableRecord]


# === Field helpers ===


def _ts(value: datetime | None) -> str | None:
    return ensure_utc(value).isoformat() if value is not None else None


def _uuid_str(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


class _Reader:
    """Validating accessor over a remote document's fields."""

    def __init__(self, document: RemoteDocument, collection: str) -> None:
        self._fields = document.fields
        self._collection = collection
        self._doc_id = document.id

    def _fail(self, reason: str) -> MalformedDocumentError:
        return MalformedDocumentError(self._collection, self._doc_id, reason)

    def _get(self, name: str, required: bool) -> Any:
        value = self._fields.get(name)
        if value is None and required:
            raise self._fail(f"missing field {name!r}")
        return value

    def id(self) -> UUID:
        """The record id; must agree with the document id."""
        raw = self._get("id", required=True)
        record_id = self._to_uuid("id", raw)
        if str(record_id) != self._doc_id.lower():
            raise self._fail(f"id field {raw!r} does not match document id")
        return record_id

    def _to_uuid(self, name: str, raw: Any) -> UUID:
        try:
            return UUID(str(raw))
        except ValueError:
            raise self._fail(f"field {name!r} is not a UUID: {raw!r}") from None

    def uuid(self, name: str, required: bool = True) -> UUID | None:
        raw = self._get(name, required)
        if raw is None or raw == "":
            if required:
                raise self._fail(f"missing field {name!r}")
            return None
        return self._to_uuid(name, raw)

    def text(self, name: str, required: bool = True) -> str | None:
        value = self._get(name, required)
        if value is not None and not isinstance(value, str):
            raise self._fail(f"field {name!r} is not a string")
        return value

    def _finite(self, name: str, value: Any) -> float | int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._fail(f"field {name!r} is not a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise self._fail(f"field {name!r} is not finite: {value!r}")
        return value

    def integer(self, name: str, required: bool = True) -> int | None:
        value = self._get(name, required)
        if value is None:
            return None
        value = self._finite(name, value)
        if isinstance(value, float) and not value.is_integer():
            raise self._fail(f"field {name!r} is not an integer: {value!r}")
        return int(value)

    def number(self, name: str, required: bool = True) -> float | None:
        value = self._get(name, required)
        if value is None:
            return None
        return float(self._finite(name, value))

    def timestamp(self, name: str, required: bool = True) -> datetime | None:
        value = self._get(name, required)
        if value is None:
            return None
        try:
            return ensure_utc(datetime.fromisoformat(str(value)))
        except ValueError:
            raise self._fail(f"field {name!r} is not a timestamp: {value!r}") from None

    def enum(self, name: str, enum_type: Any, required: bool = True) -> Any:
        value = self._get(name, required)
        if value is None:
            return None
        try:
            return enum_type(value)
        except ValueError:
            raise self._fail(f"field {name!r} has unknown value {value!r}") from None


# === Workout plans ===


def plan_to_document(plan: WorkoutPlan, store: LocalStore) -> Document:
    exercises = store.children_of(PlanExercise.KIND, "plan_id", plan.id)
    return {
        "id": str(plan.id),
        "title": plan.display_title,
        "autoTitle": plan.auto_title,
        "customTitle": plan.custom_title,
        "createdAt": _ts(plan.created_at),
        "lastModified": _ts(plan.last_modified),
        "order": plan.order,
        "userId": _uuid_str(plan.user_id) or "",
        "exerciseCount": len(exercises),
    }


def plan_from_document(document: RemoteDocument, collection: str) -> WorkoutPlan:
    r = _Reader(document, collection)
    return WorkoutPlan(
        id=r.id(),
        auto_title=r.text("autoTitle"),
        custom_title=r.text("customTitle", required=False),
        created_at=r.timestamp("createdAt"),
        last_modified=r.timestamp("lastModified"),
        order=r.integer("order"),
        user_id=r.uuid("userId", required=False),
        sync_status=SyncStatus.SYNCED,
    )


# === Users ===


def user_to_document(user: AppUser, store: LocalStore) -> Document:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email or "",
        "birthDate": _ts(user.birth_date),
        "height": user.height,
        "weight": user.weight,
        "provider": user.provider,
        "providerId": user.provider_id,
        "locale": user.locale,
        "gender": user.gender,
        "createdAt": _ts(user.created_at),
        "lastModified": _ts(user.last_modified),
    }


def user_from_document(document: RemoteDocument, collection: str) -> AppUser:
    r = _Reader(document, collection)
    return AppUser(
        id=r.id(),
        name=r.text("name"),
        email=r.text("email", required=False) or None,
        birth_date=r.timestamp("birthDate", required=False),
        height=r.number("height", required=False),
        weight=r.number("weight", required=False),
        provider=r.text("provider", required=False),
        provider_id=r.text("providerId", required=False),
        locale=r.text("locale", required=False),
        gender=r.text("gender", required=False),
        created_at=r.timestamp("createdAt"),
        last_modified=r.timestamp("lastModified"),
        sync_status=SyncStatus.SYNCED,
    )


# === Exercise templates ===


def template_to_document(template: ExerciseTemplate, store: LocalStore) -> Document:
    return {
        "id": str(template.id),
        "templateId": template.template_id,
        "name": template.name,
        "muscleGroup": template.muscle_group.value,
        "legSubgroup": template.leg_subgroup.value if template.leg_subgroup else None,
        "equipment": template.equipment,
        "gripVariation": template.grip_variation,
        "imageName": template.image_name,
        "lastModified": _ts(template.last_modified),
    }


def template_from_document(
    document: RemoteDocument, collection: str
) -> ExerciseTemplate:
    r = _Reader(document, collection)
    return ExerciseTemplate(
        id=r.id(),
        template_id=r.text("templateId"),
        name=r.text("name"),
        muscle_group=r.enum("muscleGroup", MuscleGroup),
        leg_subgroup=r.enum("legSubgroup", LegSubgroup, required=False),
        equipment=r.text("equipment"),
        grip_variation=r.text("gripVariation", required=False),
        image_name=r.text("imageName", required=False),
        last_modified=r.timestamp("lastModified"),
        sync_status=SyncStatus.SYNCED,
    )


# === Workout histories ===


def history_to_document(history: WorkoutHistory, store: LocalStore) -> Document:
    exercises = store.children_of(HistoryExercise.KIND, "history_id", history.id)
    return {
        "id": str(history.id),
        "date": _ts(history.date),
        "userId": _uuid_str(history.user_id) or "",
        "latitude": history.latitude,
        "longitude": history.longitude,
        "locationAccuracy": history.location_accuracy,
        "lastModified": _ts(history.last_modified),
        "exerciseCount": len(exercises),
    }


def history_from_document(
    document: RemoteDocument, collection: str
) -> WorkoutHistory:
    r = _Reader(document, collection)
    return WorkoutHistory(
        id=r.id(),
        date=r.timestamp("date"),
        user_id=r.uuid("userId", required=False),
        latitude=r.number("latitude", required=False),
        longitude=r.number("longitude", required=False),
        location_accuracy=r.number("locationAccuracy", required=False),
        last_modified=r.timestamp("lastModified"),
        sync_status=SyncStatus.SYNCED,
    )


# === Children ===


def plan_exercise_to_document(exercise: PlanExercise, store: LocalStore) -> Document:
    return {
        "id": str(exercise.id),
        "planId": _uuid_str(exercise.plan_id),
        "templateId": exercise.template_id,
        "order": exercise.order,
        "lastModified": _ts(exercise.last_modified),
    }


def plan_exercise_from_document(
    document: RemoteDocument, collection: str
) -> PlanExercise:
    r = _Reader(document, collection)
    return PlanExercise(
        id=r.id(),
        plan_id=r.uuid("planId"),
        template_id=r.text("templateId", required=False),
        order=r.integer("order"),
        last_modified=r.timestamp("lastModified"),
        sync_status=SyncStatus.SYNCED,
    )


def history_exercise_to_document(
    exercise: HistoryExercise, store: LocalStore
) -> Document:
    sets = store.children_of(HistorySet.KIND, "exercise_id", exercise.id)
    return {
        "id": str(exercise.id),
        "historyId": _uuid_str(exercise.history_id),
        "name": exercise.name,
        "order": exercise.order,
        "lastModified": _ts(exercise.last_modified),
        "setCount": len(sets),
    }


def history_exercise_from_document(
    document: RemoteDocument, collection: str
) -> HistoryExercise:
    r = _Reader(document, collection)
    return HistoryExercise(
        id=r.id(),
        history_id=r.uuid("historyId"),
        name=r.text("name"),
        order=r.integer("order"),
        last_modified=r.timestamp("lastModified"),
        sync_status=SyncStatus.SYNCED,
    )


def history_set_to_document(history_set: HistorySet, store: LocalStore) -> Document:
    return {
        "id": str(history_set.id),
        "exerciseId": _uuid_str(history_set.exercise_id),
        "order": history_set.order,
        "reps": history_set.reps,
        "repsCounter": history_set.reps_counter,
        "weight": history_set.weight,
        "startTime": _ts(history_set.start_time),
        "endTime": _ts(history_set.end_time),
        "timestamp": _ts(history_set.timestamp),
        "restTime": history_set.rest_time,
        "heartRate": history_set.heart_rate,
        "caloriesBurned": history_set.calories_burned,
        "lastModified": _ts(history_set.last_modified),
    }


def history_set_from_document(document: RemoteDocument, collection: str) -> HistorySet:
    r = _Reader(document, collection)
    return HistorySet(
        id=r.id(),
        exercise_id=r.uuid("exerciseId"),
        order=r.integer("order"),
        reps=r.integer("reps"),
        reps_counter=r.integer("repsCounter", required=False),
        weight=r.number("weight"),
        start_time=r.timestamp("startTime", required=False),
        end_time=r.timestamp("endTime", required=False),
        timestamp=r.timestamp("timestamp"),
        rest_time=r.number("restTime", required=False),
        heart_rate=r.integer("heartRate", required=False),
        calories_burned=r.number("caloriesBurned", required=False),
        last_modified=r.timestamp("lastModified"),
        sync_status=SyncStatus.SYNCED,
    )


# Parents before children: plans, users, templates, histories, then nested records.
DEFAULT_ENTITIES: tuple[EntityMapping, ...] = (
    EntityMapping(
        WorkoutPlan.KIND, "workoutPlans", WorkoutPlan,
        plan_to_document, plan_from_document,
    ),
    EntityMapping(
        AppUser.KIND, "users", AppUser,
        user_to_document, user_from_document,
    ),
    EntityMapping(
        ExerciseTemplate.KIND, "exerciseTemplates", ExerciseTemplate,
        template_to_document, template_from_document,
    ),
    EntityMapping(
        WorkoutHistory.KIND, "workoutHistories", WorkoutHistory,
        history_to_document, history_from_document,
    ),
    EntityMapping(
        PlanExercise.KIND, "planExercises", PlanExercise,
        plan_exercise_to_document, plan_exercise_from_document,
    ),
    EntityMapping(
        HistoryExercise.KIND, "historyExercises", HistoryExercise,
        history_exercise_to_document, history_exercise_from_document,
    ),
    EntityMapping(
        HistorySet.KIND, "historySets", HistorySet,
        history_set_to_document, history_set_from_document,
    ),
)
