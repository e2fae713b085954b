# tests/test_vehicle_service.py
"""Unit tests for the vehicle registry (registration, receive, PDI, warranty edits)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from datetime import date, datetime
from sqlalchemy.exc import OperationalError
from conftest import make_vehicle, VALID_VIN
from app.models.vehicle import Vehicle
from app.models.vehicle_movement import VehicleMovement
from app.services import vehicle_service
from app.services.errors import (
    DuplicateVehicle, InvalidTransition, InvalidVIN, MissingClient, MissingRequiredField,
    PersistenceFailure, VehicleNotFound,
)
from app.services.vehicle_cache import snapshot, vehicle_cache


def empty_db():
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = None
    return db


class TestRegisterVehicle:
    def test_new_arrival_lands_in_car_inventory(self):
        db = empty_db()
        vehicle = vehicle_service.register_vehicle(db, {"vin": " ldp95h961pe300001 ", "brand": "Voyah"}, "clerk")

        assert vehicle.vin == VALID_VIN
        assert vehicle.location == "CAR_INVENTORY"
        assert vehicle.status == "AVAILABLE"
        assert vehicle.pdi_completed is False
        added = [c.args[0] for c in db.add.call_args_list]
        assert isinstance(added[0], Vehicle)
        assert isinstance(added[1], VehicleMovement)
        assert added[1].reason == "Initial arrival"
        db.commit.assert_called_once()

    def test_ordered_vehicle_lands_in_ordered_cars(self):
        vehicle = vehicle_service.register_vehicle(empty_db(), {"vin": VALID_VIN, "ordered": True})
        assert vehicle.location == "ORDERED_CARS"

    @pytest.mark.parametrize("vin", ["SHORT", "LDP95H961PE30000I", "LDP95H961PE3000-1", ""])
    def test_invalid_vin_rejected(self, vin):
        db = empty_db()
        with pytest.raises(InvalidVIN):
            vehicle_service.register_vehicle(db, {"vin": vin})
        db.add.assert_not_called()

    def test_duplicate_vin_rejected(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = make_vehicle()
        with pytest.raises(DuplicateVehicle):
            vehicle_service.register_vehicle(db, {"vin": VALID_VIN})
        db.add.assert_not_called()


class TestLookups:
    def test_resolve_by_id_and_vin(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = make_vehicle()
        assert vehicle_service.resolve_vehicle(db, "1").vin == VALID_VIN
        assert vehicle_service.resolve_vehicle(db, VALID_VIN.lower()).id == 1

    def test_missing_vehicle_raises(self):
        with pytest.raises(VehicleNotFound):
            vehicle_service.resolve_vehicle(empty_db(), "999")

    def test_snapshot_served_from_cache(self):
        vehicle_cache.put(snapshot(make_vehicle(location="SHOWROOM_2")))
        db = MagicMock()
        data = vehicle_service.get_vehicle_snapshot(db, VALID_VIN)
        assert data["location"] == "SHOWROOM_2"
        db.query.assert_not_called()

    def test_snapshot_miss_reads_db_and_fills_cache(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = make_vehicle()
        data = vehicle_service.get_vehicle_snapshot(db, "1")
        assert data["vin"] == VALID_VIN
        assert vehicle_cache.get(1)["vin"] == VALID_VIN


class TestReceive:
    def test_receive_ordered_vehicle(self):
        db = MagicMock()
        vehicle = make_vehicle(location="ORDERED_CARS", status="RESERVED")

        vehicle_service.receive_ordered_vehicle(db, vehicle, received_by="yard")

        assert vehicle.location == "CAR_INVENTORY"
        assert vehicle.status == "RESERVED"
        movement = db.add.call_args[0][0]
        assert (movement.from_value, movement.to_value) == ("ORDERED_CARS", "CAR_INVENTORY")
        db.commit.assert_called_once()

    def test_receive_only_from_ordered_cars(self):
        db = MagicMock()
        with pytest.raises(InvalidTransition):
            vehicle_service.receive_ordered_vehicle(db, make_vehicle(location="SHOWROOM_1"))
        db.commit.assert_not_called()

    def test_receive_failure_keeps_vehicle_ordered(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("UPDATE", {}, Exception("timeout"))
        vehicle = make_vehicle(location="ORDERED_CARS")
        with pytest.raises(PersistenceFailure):
            vehicle_service.receive_ordered_vehicle(db, vehicle)
        assert vehicle.location == "ORDERED_CARS"


class TestEdits:
    def test_record_pdi(self):
        db = MagicMock()
        vehicle = make_vehicle(pdi_completed=False)
        vehicle_service.record_pdi(db, vehicle, True, technician="Rami", notes="All good")
        assert vehicle.pdi_completed is True
        assert vehicle.pdi_technician == "Rami"
        assert vehicle.pdi_date is not None

    def test_failed_pdi_clears_flag(self):
        vehicle = make_vehicle(pdi_completed=True)
        vehicle_service.record_pdi(MagicMock(), vehicle, False)
        assert vehicle.pdi_completed is False

    def test_update_warranty_dates_sets_and_clears(self):
        vehicle = make_vehicle(battery_warranty_expiry=date(2030, 1, 1))
        vehicle_service.update_warranty_dates(MagicMock(), vehicle, {
            "vehicle_warranty_expiry": date(2028, 5, 1),
            "battery_warranty_expiry": None,
        })
        assert vehicle.vehicle_warranty_expiry == date(2028, 5, 1)
        assert vehicle.battery_warranty_expiry is None

    def test_update_warranty_rejects_other_fields(self):
        with pytest.raises(ValueError):
            vehicle_service.update_warranty_dates(MagicMock(), make_vehicle(), {"status": "SOLD"})

    def test_details_cannot_change_location(self):
        with pytest.raises(ValueError):
            vehicle_service.update_vehicle_details(MagicMock(), make_vehicle(), {"location": "SCHEDULE"})

    def test_edit_invalidates_cache(self):
        vehicle = make_vehicle()
        vehicle_cache.put(snapshot(vehicle))
        vehicle_service.update_vehicle_details(MagicMock(), vehicle, {"client_name": "Jane Doe"})
        assert vehicle_cache.get(vehicle.id) is None


class TestEditsKeepStatusFields:
    def sold_vehicle(self):
        return make_vehicle(
            status="SOLD", client_name="Jane Doe", selling_price=50000,
            invoice_id="INV-1", delivery_date=date(2025, 6, 1),
        )

    def test_cannot_blank_fields_a_sold_car_depends_on(self):
        db = MagicMock()
        vehicle = self.sold_vehicle()
        with pytest.raises(MissingRequiredField) as exc:
            vehicle_service.update_vehicle_details(db, vehicle, {
                "selling_price": None, "invoice_id": "  ", "delivery_date": None,
            })
        assert exc.value.missing_fields == ["selling_price", "invoice_id", "delivery_date"]
        assert vehicle.invoice_id == "INV-1"
        db.commit.assert_not_called()

    def test_cannot_remove_last_client_of_sold_car(self):
        db = MagicMock()
        vehicle = self.sold_vehicle()
        with pytest.raises(MissingClient):
            vehicle_service.update_vehicle_details(db, vehicle, {"client_name": None})
        assert vehicle.client_name == "Jane Doe"
        db.commit.assert_not_called()

    def test_client_can_be_swapped_for_client_id(self):
        vehicle = self.sold_vehicle()
        vehicle_service.update_vehicle_details(MagicMock(), vehicle, {"client_name": None, "client_id": "CRM-9"})
        assert vehicle.client_id == "CRM-9"

    def test_reserved_car_keeps_reservation_fields(self):
        vehicle = make_vehicle(status="RESERVED", client_name="Jane Doe", expected_price=48000,
                               reservation_date=date(2025, 5, 1))
        with pytest.raises(MissingRequiredField) as exc:
            vehicle_service.update_vehicle_details(MagicMock(), vehicle, {"expected_price": None})
        assert exc.value.missing_fields == ["expected_price"]

    def test_available_car_may_clear_deal_fields(self):
        vehicle = make_vehicle(client_name="Jane Doe", selling_price=50000)
        vehicle_service.update_vehicle_details(MagicMock(), vehicle, {"client_name": None, "selling_price": None})
        assert vehicle.client_name is None

    def test_other_fields_editable_when_record_already_incomplete(self):
        vehicle = make_vehicle(status="SOLD", client_name="Jane Doe")  # legacy row without invoice
        vehicle_service.update_vehicle_details(MagicMock(), vehicle, {"color": "Silver"})
        assert vehicle.color == "Silver"


class TestReceiveRollback:
    def test_failed_receive_restores_all_timestamps(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("UPDATE", {}, Exception("timeout"))
        arrived = datetime(2025, 1, 2, 9, 0)
        vehicle = make_vehicle(location="ORDERED_CARS", arrived_at=arrived, updated_at=arrived)
        with pytest.raises(PersistenceFailure):
            vehicle_service.receive_ordered_vehicle(db, vehicle)
        assert vehicle.location == "ORDERED_CARS"
        assert vehicle.arrived_at == arrived
        assert vehicle.updated_at == arrived
