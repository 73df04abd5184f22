"""Tests for syncable record models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from uuid import UUID, uuid4

from fitsync.client.models import (
    RECORD_TYPES,
    ExerciseTemplate,
    HistorySet,
    LegSubgroup,
    MuscleGroup,
    WorkoutHistory,
    WorkoutPlan,
    ensure_utc,
)
from fitsync.core.types import SyncStatus


class TestSyncableRecord:
    """Tests for the shared sync fields."""

    def test_defaults(self) -> None:
        """New records should get a fresh id and start PENDING."""
        a, b = WorkoutPlan(), WorkoutPlan()
        assert isinstance(a.id, UUID)
        assert a.id != b.id
        assert a.sync_status == SyncStatus.PENDING
        assert a.needs_sync is True
        assert a.last_modified.tzinfo is not None

    def test_mark_for_sync_bumps_last_modified(self) -> None:
        """mark_for_sync should set PENDING and refresh last_modified."""
        old = datetime(2024, 1, 1, tzinfo=UTC)
        plan = WorkoutPlan(last_modified=old, sync_status=SyncStatus.SYNCED)

        plan.mark_for_sync()

        assert plan.sync_status == SyncStatus.PENDING
        assert plan.last_modified > old

    def test_mark_as_synced_keeps_last_modified(self) -> None:
        """mark_as_synced should not touch last_modified."""
        old = datetime(2024, 1, 1, tzinfo=UTC)
        plan = WorkoutPlan(last_modified=old)

        plan.mark_as_synced()

        assert plan.sync_status == SyncStatus.SYNCED
        assert plan.needs_sync is False
        assert plan.last_modified == old

    def test_naive_datetime_treated_as_utc(self) -> None:
        """Naive timestamps should be normalized to UTC."""
        plan = WorkoutPlan(last_modified=datetime(2024, 1, 1, 12, 0))
        assert plan.last_modified == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def test_ensure_utc_converts_offsets(self) -> None:
        """Aware timestamps should be converted to UTC."""
        paris = timezone(timedelta(hours=1))
        value = ensure_utc(datetime(2024, 1, 1, 13, 0, tzinfo=paris))
        assert value == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        assert value.tzinfo == UTC

    def test_payload_preserves_typed_fields(self) -> None:
        """from_payload should restore UUIDs, enums and datetimes."""
        template = ExerciseTemplate(
            template_id="squat",
            name="Squat",
            muscle_group=MuscleGroup.LEGS,
            leg_subgroup=LegSubgroup.QUADRICEPS,
            equipment="barbell",
            sync_status=SyncStatus.SYNCED,
        )

        payload = template.to_payload()
        assert payload["muscle_group"] == "legs"
        assert payload["sync_status"] == 1

        restored = ExerciseTemplate.from_payload(payload)
        assert restored == template
        assert restored.leg_subgroup is LegSubgroup.QUADRICEPS


class TestRecordTypes:
    """Tests for individual record types."""

    def test_registry_kinds(self) -> None:
        """Every record type should be registered under its kind."""
        assert set(RECORD_TYPES) == {
            "workout_plan",
            "user",
            "exercise_template",
            "workout_history",
            "plan_exercise",
            "history_exercise",
            "history_set",
        }
        for kind, record_type in RECORD_TYPES.items():
            assert record_type.KIND == kind

    def test_plan_titles(self) -> None:
        """Custom titles should be shown alongside the automatic one."""
        plan = WorkoutPlan(auto_title="Workout A")
        assert plan.compact_title == "Workout A"
        assert plan.display_title == "Workout A"

        plan.custom_title = "Heavy Chest"
        assert plan.compact_title == "Heavy Chest"
        assert plan.display_title == "Heavy Chest (Workout A)"

        plan.custom_title = "   "
        assert plan.display_title == "Workout A"

    def test_history_location(self) -> None:
        """has_location_data requires both coordinates."""
        assert WorkoutHistory(latitude=48.8).has_location_data is False
        assert WorkoutHistory(latitude=48.8, longitude=2.3).has_location_data is True

    def test_set_duration(self) -> None:
        """duration should be end minus start, when both are known."""
        start = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        history_set = HistorySet(exercise_id=uuid4(), start_time=start)
        assert history_set.duration is None

        history_set.end_time = start + timedelta(seconds=45)
        assert history_set.duration == 45.0
