"""End-to-end sync between two local stores through the document server.

The server runs in-process behind FastAPI's TestClient; each simulated
device has its own LocalStore and CloudSyncEngine.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fitsync.client.connectivity import ConnectivityMonitor
from fitsync.client.models import HistoryExercise, HistorySet, WorkoutHistory, WorkoutPlan
from fitsync.client.remote import HTTPDocumentStore
from fitsync.client.store import LocalStore
from fitsync.client.sync import CloudSyncEngine
from fitsync.core.config import RemoteConfig
from fitsync.core.types import NetworkType, SyncStatus
from fitsync.server.app import create_app
from fitsync.server.database import Database


@dataclass
class Device:
    """A simulated client device."""

    store: LocalStore
    remote: HTTPDocumentStore
    engine: CloudSyncEngine

    def close(self) -> None:
        self.remote.close()
        self.store.close()


@pytest.fixture
def server_db(tmp_path: Path) -> Generator[Database, None, None]:
    database = Database(tmp_path / "server.db")
    yield database
    database.close()


@pytest.fixture
def app(server_db: Database) -> FastAPI:
    return create_app(server_db)


@pytest.fixture
def device_factory(
    app: FastAPI,
    server_db: Database,
    tmp_path: Path,
) -> Generator[Callable[[str], Device], None, None]:
    devices: list[Device] = []

    def factory(name: str) -> Device:
        raw_token, _ = server_db.create_token(name)
        remote = HTTPDocumentStore(
            RemoteConfig(server_url="http://testserver", token=raw_token),
            client=TestClient(app),
        )
        store = LocalStore(tmp_path / f"{name}.db")
        monitor = ConnectivityMonitor(remote.health_check, lambda: NetworkType.WIFI)
        engine = CloudSyncEngine(store, remote, monitor, auto_sync=False)
        device = Device(store=store, remote=remote, engine=engine)
        devices.append(device)
        return device

    yield factory

    for device in devices:
        device.close()


class TestSyncRoundTrip:
    """Tests for multi-device synchronization."""

    def test_record_propagates_between_devices(self, device_factory) -> None:
        """A plan created on one device should appear on another."""
        phone, tablet = device_factory("phone"), device_factory("tablet")
        plan = WorkoutPlan(auto_title="Workout A", custom_title="Legs day")
        phone.store.save(plan)
        phone.engine.schedule_upload(plan.id)

        assert phone.engine.run_sync_pass(raise_on_error=True).uploaded == [str(plan.id)]
        result = tablet.engine.run_sync_pass(raise_on_error=True)

        assert str(plan.id) in result.created
        copy = tablet.store.fetch_by_id(WorkoutPlan.KIND, plan.id)
        assert copy.custom_title == "Legs day"
        assert copy.last_modified == plan.last_modified
        assert copy.sync_status == SyncStatus.SYNCED

    def test_latest_edit_wins(self, device_factory) -> None:
        """An edit made later on another device should replace the original."""
        phone, tablet = device_factory("phone"), device_factory("tablet")
        plan = WorkoutPlan(auto_title="Workout A")
        phone.store.save(plan)
        phone.engine.run_sync_pass(raise_on_error=True)
        tablet.engine.run_sync_pass(raise_on_error=True)

        edited = tablet.store.fetch_by_id(WorkoutPlan.KIND, plan.id)
        edited.custom_title = "Renamed on tablet"
        edited.mark_for_sync()
        tablet.store.save(edited)
        tablet.engine.run_sync_pass(raise_on_error=True)

        result = phone.engine.run_sync_pass(raise_on_error=True)

        assert result.updated == [str(plan.id)]
        assert phone.store.fetch_by_id(WorkoutPlan.KIND, plan.id).custom_title == "Renamed on tablet"

    def test_workout_tree_syncs(self, device_factory, server_db: Database) -> None:
        """Histories, exercises and sets should each land in their own collection."""
        phone, tablet = device_factory("phone"), device_factory("tablet")
        history = WorkoutHistory(latitude=48.85, longitude=2.35)
        exercise = HistoryExercise(history_id=history.id, name="Squat")
        sets = [HistorySet(exercise_id=exercise.id, order=i, reps=5, weight=100.0) for i in range(3)]
        for record in (history, exercise, *sets):
            phone.store.save(record)

        phone.engine.run_sync_pass(raise_on_error=True)
        tablet.engine.run_sync_pass(raise_on_error=True)

        assert server_db.get_document("workoutHistories", str(history.id)).fields["exerciseCount"] == 1
        assert server_db.get_document("historyExercises", str(exercise.id)).fields["setCount"] == 3
        assert len(tablet.store.children_of(HistorySet.KIND, "exercise_id", exercise.id)) == 3
        assert tablet.store.fetch_by_id(WorkoutHistory.KIND, history.id).has_location_data

    def test_deletion_reaches_server(self, device_factory, server_db: Database) -> None:
        """A locally deleted record should be removed from the server."""
        phone = device_factory("phone")
        plan = WorkoutPlan()
        phone.store.save(plan)
        phone.engine.run_sync_pass(raise_on_error=True)
        assert server_db.get_document("workoutPlans", str(plan.id)) is not None

        phone.store.delete(WorkoutPlan.KIND, plan.id)
        phone.engine.schedule_deletion(plan.id)
        result = phone.engine.run_sync_pass(raise_on_error=True)

        assert result.deleted == [str(plan.id)]
        assert server_db.get_document("workoutPlans", str(plan.id)) is None
        assert phone.store.fetch_by_id(WorkoutPlan.KIND, plan.id) is None
        assert result.created == []
        assert phone.engine.pending_deletions == []
