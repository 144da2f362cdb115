"""
Unit tests for vendor pools and vehicle registration
"""

import pytest

from models import Vehicle
from services.errors import ErrorKind
from services.fleet_service import FleetService
from tests.factories import DriverFactory, DeviceFactory, VendorFactory


def vehicle_body(**overrides):
    body = {'id': 501, 'vehicleNumber': 'TN33CD9001', 'brand': 'Ashok Leyland',
            'capacity': 4, 'deviceId': 'DEV-FREE'}
    body.update(overrides)
    return body


class TestDriverPool:
    """Test FleetService driver pool membership"""

    def test_add_driver(self, fleet):
        newcomer = DriverFactory(name='A')

        success, error, vendor = FleetService().add_driver_to_vendor(fleet['vendor'].id, newcomer.id)

        assert success is True
        assert [d.name for d in FleetService().list_vendor_drivers(vendor.id)] == ['A', 'D', 'E']

    def test_add_twice_conflicts(self, fleet):
        success, error, _ = FleetService().add_driver_to_vendor(fleet['vendor'].id, fleet['D'].id)

        assert success is False
        assert error.kind == ErrorKind.CONFLICT

    def test_driver_may_work_for_two_vendors(self, fleet):
        other = VendorFactory()

        success, _, _ = FleetService().add_driver_to_vendor(other.id, fleet['D'].id)

        assert success is True
        assert fleet['D'] in other.drivers
        assert fleet['D'] in fleet['vendor'].drivers

    def test_remove_driver(self, fleet):
        success, error, vendor = FleetService().remove_driver_from_vendor(fleet['vendor'].id, fleet['D'].id)

        assert success is True
        assert [d.name for d in vendor.drivers] == ['E']

    def test_remove_non_member_is_noop(self, fleet):
        outsider = DriverFactory()

        success, error, vendor = FleetService().remove_driver_from_vendor(fleet['vendor'].id, outsider.id)

        assert success is True
        assert len(vendor.drivers) == 2

    @pytest.mark.parametrize('vendor_id, driver_id, kind', [
        (None, 1, ErrorKind.VALIDATION),
        ('abc', 1, ErrorKind.VALIDATION),
        (9999, 1, ErrorKind.NOT_FOUND),
    ])
    def test_bad_ids(self, fleet, vendor_id, driver_id, kind):
        success, error, _ = FleetService().add_driver_to_vendor(vendor_id, driver_id)
        assert error.kind == kind

    def test_unknown_driver(self, fleet):
        success, error, _ = FleetService().add_driver_to_vendor(fleet['vendor'].id, 9999)
        assert error.kind == ErrorKind.NOT_FOUND

    def test_listing_unknown_vendor(self, app):
        assert FleetService().list_vendor_drivers(9999) is None
        assert FleetService().list_vendor_vehicles(9999) is None


class TestAddVehicle:
    """Test vehicle registration and device binding"""

    def test_add_vehicle_binds_device(self, fleet):
        device = DeviceFactory(device_name='DEV-FREE')

        success, error, vehicle = FleetService().add_vehicle(fleet['vendor'].id, vehicle_body())

        assert success is True
        assert vehicle.id == 501
        assert vehicle.device_id == 'DEV-FREE'
        assert vehicle.capacity == '4'
        assert device.is_assigned is True
        assert vehicle in fleet['vendor'].vehicles
        assert device not in FleetService().list_available_devices()

    def test_accepts_underscore_id(self, fleet):
        DeviceFactory(device_name='DEV-FREE')
        body = vehicle_body()
        body['_id'] = body.pop('id')

        success, error, vehicle = FleetService().add_vehicle(fleet['vendor'].id, body)

        assert success is True
        assert vehicle.id == 501

    def test_assigned_device_rejected(self, fleet):
        success, error, _ = FleetService().add_vehicle(fleet['vendor'].id, vehicle_body(deviceId='DEV-7'))

        assert success is False
        assert error.kind == ErrorKind.VALIDATION
        assert error.message == "Device is already assigned or not found"

    def test_unknown_device_rejected(self, fleet):
        success, error, _ = FleetService().add_vehicle(fleet['vendor'].id, vehicle_body())
        assert error.kind == ErrorKind.VALIDATION

    def test_duplicate_vehicle_number(self, fleet):
        device = DeviceFactory(device_name='DEV-FREE')

        success, error, _ = FleetService().add_vehicle(
            fleet['vendor'].id, vehicle_body(vehicleNumber='TN33V0001'))

        assert error.kind == ErrorKind.CONFLICT
        assert device.is_assigned is False

    def test_duplicate_id(self, fleet):
        DeviceFactory(device_name='DEV-FREE')

        success, error, _ = FleetService().add_vehicle(fleet['vendor'].id, vehicle_body(id=fleet['V'].id))

        assert error.kind == ErrorKind.CONFLICT

    @pytest.mark.parametrize('missing', ['id', 'vehicleNumber', 'deviceId'])
    def test_required_fields(self, fleet, missing):
        body = vehicle_body()
        del body[missing]

        success, error, _ = FleetService().add_vehicle(fleet['vendor'].id, body)

        assert error.kind == ErrorKind.VALIDATION
        assert Vehicle.query.count() == 2

    def test_unknown_vendor(self, app):
        DeviceFactory(device_name='DEV-FREE')
        success, error, _ = FleetService().add_vehicle(9999, vehicle_body())
        assert error.kind == ErrorKind.NOT_FOUND
