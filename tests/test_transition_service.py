# tests/test_transition_service.py
"""Unit tests for attempt_transition (validation, single commit, rollback, observers)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from datetime import date
from sqlalchemy.exc import OperationalError
from conftest import make_vehicle
from app.models.vehicle_movement import VehicleMovement
from app.services import transition_service
from app.services.errors import (
    FieldsWithoutTransition, InvalidTransition, MissingRequiredField, PersistenceFailure,
)
from app.services.transition_service import attempt_transition
from app.services.vehicle_cache import snapshot, vehicle_cache


def added_movements(db):
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], VehicleMovement)]


class TestAttemptTransition:
    @pytest.mark.asyncio
    async def test_location_only_move(self):
        db = MagicMock()
        vehicle = make_vehicle(location="CAR_INVENTORY", status="AVAILABLE", pdi_completed=True)

        result = await attempt_transition(db, vehicle, target_location="SHOWROOM_1", changed_by="sam")

        assert result.location == "SHOWROOM_1"
        assert result.status == "AVAILABLE"
        assert result.updated_at is not None
        db.commit.assert_called_once()
        moves = added_movements(db)
        assert len(moves) == 1
        assert (moves[0].kind, moves[0].from_value, moves[0].to_value) == ("location", "CAR_INVENTORY", "SHOWROOM_1")
        assert moves[0].changed_by == "sam"

    @pytest.mark.asyncio
    async def test_sell_then_sold_is_terminal(self):
        db = MagicMock()
        vehicle = make_vehicle(location="SHOWROOM_1", status="AVAILABLE")
        fields = {
            "selling_price": 50000, "invoice_id": "INV-1",
            "delivery_date": date(2025, 6, 1), "client_name": "Jane Doe",
        }

        await attempt_transition(db, vehicle, target_status="SOLD", field_updates=fields)
        assert vehicle.status == "SOLD"
        assert vehicle.invoice_id == "INV-1"

        with pytest.raises(InvalidTransition):
            await attempt_transition(db, vehicle, target_status="AVAILABLE")
        assert vehicle.status == "SOLD"

    @pytest.mark.asyncio
    async def test_move_and_status_write_two_history_rows_in_one_commit(self):
        db = MagicMock()
        vehicle = make_vehicle(work_order_id="WO-9")

        await attempt_transition(db, vehicle, target_location="GARAGE_INVENTORY", target_status="IN_SERVICE")

        assert [m.kind for m in added_movements(db)] == ["location", "status"]
        db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_validation_error_never_touches_db(self):
        db = MagicMock()
        vehicle = make_vehicle()

        with pytest.raises(MissingRequiredField) as exc:
            await attempt_transition(db, vehicle, target_status="RESERVED",
                                     field_updates={"client_name": "Jane Doe"})

        assert exc.value.missing_fields == ["expected_price", "reservation_date"]
        db.add.assert_not_called()
        db.commit.assert_not_called()
        assert vehicle.client_name is None
        assert vehicle.status == "AVAILABLE"

    @pytest.mark.asyncio
    async def test_noop_writes_nothing(self):
        db = MagicMock()
        vehicle = make_vehicle(status="RESERVED")

        result = await attempt_transition(db, vehicle, target_location="CAR_INVENTORY", target_status="RESERVED")

        assert result is vehicle
        db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_noop_with_deal_fields_rejected(self):
        db = MagicMock()
        vehicle = make_vehicle(status="RESERVED", client_name="Jane Doe")

        with pytest.raises(FieldsWithoutTransition) as exc:
            await attempt_transition(db, vehicle, target_status="RESERVED",
                                     field_updates={"client_name": "John Roe", "expected_price": 47000})

        assert exc.value.fields == ["client_name", "expected_price"]
        assert vehicle.client_name == "Jane Doe"
        db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_commit_failure_restores_record(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("UPDATE vehicles", {}, Exception("connection reset"))
        vehicle = make_vehicle(updated_at=None)

        with pytest.raises(PersistenceFailure) as exc:
            await attempt_transition(db, vehicle, target_location="SHOWROOM_2",
                                     field_updates={"client_name": "Jane Doe"})

        assert "connection reset" in exc.value.message
        db.rollback.assert_called_once()
        assert vehicle.location == "CAR_INVENTORY"
        assert vehicle.client_name is None
        assert vehicle.updated_at is None

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            await attempt_transition(MagicMock(), make_vehicle(), target_location="SHOWROOM_1",
                                     field_updates={"location": "SCHEDULE"})


class TestObservers:
    @pytest.mark.asyncio
    async def test_observer_called_after_commit(self):
        seen = []
        observer = lambda vehicle, plan: seen.append((vehicle.vin, plan.to_location))
        transition_service.add_observer(observer)
        try:
            await attempt_transition(MagicMock(), make_vehicle(), target_location="SCHEDULE")
        finally:
            transition_service.remove_observer(observer)
        assert seen == [("LDP95H961PE300001", "SCHEDULE")]

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_fail_transition(self):
        def broken(vehicle, plan):
            raise RuntimeError("listener down")

        transition_service.add_observer(broken)
        try:
            vehicle = await attempt_transition(MagicMock(), make_vehicle(), target_location="SCHEDULE")
        finally:
            transition_service.remove_observer(broken)
        assert vehicle.location == "SCHEDULE"

    @pytest.mark.asyncio
    async def test_cache_invalidated(self):
        vehicle = make_vehicle()
        vehicle_cache.put(snapshot(vehicle))

        await attempt_transition(MagicMock(), vehicle, target_location="SHOWROOM_2")

        assert vehicle_cache.get(vehicle.id) is None
        assert vehicle_cache.get(vehicle.vin) is None
