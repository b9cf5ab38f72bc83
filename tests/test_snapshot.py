"""Tests for pooled tick snapshots."""

import numpy as np
import pytest

from kinerace.simulation.race import RaceOutcome
from kinerace.simulation.snapshot import RECORD_LENGTH, SnapshotPool, TickSnapshot
from kinerace.vehicle.forces import ForceProfile
from kinerace.vehicle.vehicle import VehicleState


def _vehicles():
    v1 = VehicleState(1000.0, 100.0, ForceProfile(), position=1.0, velocity=2.0,
                      acceleration=0.5, net_force=500.0, cumulative_work=42.0,
                      max_velocity_observed=2.5)
    v2 = VehicleState(250.0, 80.0, ForceProfile(), position=3.0, velocity=4.0,
                      acceleration=1.5, net_force=375.0, cumulative_work=7.0,
                      max_velocity_observed=4.0)
    return v1, v2


class TestSnapshotPool:
    """Test the snapshot record arena."""

    def test_preallocated_records(self):
        """Pool starts with its configured records free."""
        pool = SnapshotPool(size=2)
        assert pool.free_count == 2
        assert pool.outstanding_count == 0

    def test_release_returns_record(self):
        """A released record is reused by the next acquire."""
        pool = SnapshotPool(size=1)
        record = pool.acquire()
        pool.release(record)
        assert pool.acquire() is record
        assert pool.allocated == 1

    def test_outstanding_records_not_reused(self):
        """Records still held by a consumer are never handed out again."""
        pool = SnapshotPool(size=2)
        records = [pool.acquire() for _ in range(3)]
        assert len({id(r) for r in records}) == 3
        assert pool.allocated == 3
        assert pool.outstanding_count == 3

    def test_double_release_rejected(self):
        """Returning a record twice is an error."""
        pool = SnapshotPool()
        record = pool.acquire()
        pool.release(record)
        with pytest.raises(ValueError):
            pool.release(record)

    def test_foreign_record_rejected(self):
        """Records from elsewhere cannot be released into a pool."""
        with pytest.raises(ValueError):
            SnapshotPool().release(np.zeros(RECORD_LENGTH))


class TestTickSnapshot:
    """Test snapshot views."""

    def test_layout(self):
        """Flat record follows the fixed field order."""
        pool = SnapshotPool()
        snapshot = pool.emit(1.25, _vehicles(), RaceOutcome.ONGOING, frame=75)
        data = snapshot.as_array()

        assert data.shape == (RECORD_LENGTH,)
        np.testing.assert_allclose(
            data[:13],
            [1.25, 1.0, 2.0, 0.5, 500.0, 2000.0, 42.0, 3.0, 4.0, 1.5, 375.0, 2000.0, 7.0],
        )
        np.testing.assert_allclose(data[13:], [2.5, 4.0])

    def test_readings(self):
        """Vehicle readings expose named fields."""
        snapshot = SnapshotPool().emit(0.5, _vehicles())
        assert snapshot.time == 0.5
        assert snapshot.vehicle1.work == 42.0
        assert snapshot.vehicle2.max_velocity == 4.0
        with pytest.raises(IndexError):
            snapshot.vehicle(2)

    def test_read_only(self):
        """Consumers cannot modify a snapshot."""
        snapshot = SnapshotPool().emit(0.5, _vehicles())
        with pytest.raises(ValueError):
            snapshot.as_array()[1] = 0.0

    def test_released_snapshot_unreadable(self):
        """Reading after release is an error."""
        pool = SnapshotPool()
        snapshot = pool.emit(0.5, _vehicles())
        snapshot.release()

        assert snapshot.released
        assert pool.outstanding_count == 0
        with pytest.raises(RuntimeError):
            _ = snapshot.time
        with pytest.raises(RuntimeError):
            snapshot.release()

    def test_detach_survives_release(self):
        """A detached copy stays valid after the original is released."""
        snapshot = SnapshotPool().emit(0.5, _vehicles(), RaceOutcome.TIE)
        copy = snapshot.detach()
        snapshot.release()

        assert copy.time == 0.5
        assert copy.is_terminal
        copy.release()  # unpooled release is allowed once

    def test_terminal_flag(self):
        """Only finished outcomes are terminal."""
        data = np.zeros(RECORD_LENGTH)
        assert not TickSnapshot(data.copy(), RaceOutcome.ONGOING).is_terminal
        assert not TickSnapshot(data.copy()).is_terminal
        assert TickSnapshot(data.copy(), RaceOutcome.TIME_EXPIRED).is_terminal

    def test_to_dict(self):
        """Dictionary form names outcome and vehicles."""
        state = SnapshotPool().emit(2.0, _vehicles(), RaceOutcome.VEHICLE2_WINS, frame=120).to_dict()
        assert state["outcome"] == "vehicle2_wins"
        assert state["frame"] == 120
        assert state["vehicles"][0]["position"] == 1.0
