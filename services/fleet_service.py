"""
Fleet Service

Handles a vendor's resource pool: which drivers work for the vendor, which
vehicles it owns, and binding telemetry devices to vehicles.
"""

from typing import Optional, Dict, Any, Tuple, List
import logging
from app import db
from models import Vendor, Driver, Vehicle, Device
from .transaction_helper import TransactionHelper
from .errors import ServiceError, validation_error, not_found, conflict, internal_error

logger = logging.getLogger(__name__)

class FleetService:
    """Service class for vendor fleet pools"""

    def list_vendor_drivers(self, vendor_id: int) -> Optional[List[Driver]]:
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            return None
        return sorted(vendor.drivers, key=lambda d: d.name)

    def list_all_drivers(self) -> List[Driver]:
        return Driver.query.order_by(Driver.name).all()

    def list_vendor_vehicles(self, vendor_id: int) -> Optional[List[Vehicle]]:
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            return None
        return sorted(vendor.vehicles, key=lambda v: v.vehicle_number)

    def list_available_devices(self) -> List[Device]:
        """Devices not yet bound to a vehicle"""
        return Device.query.filter_by(is_assigned=False).order_by(Device.device_name).all()

    def _load_pool_members(self, vendor_id, driver_id) -> Tuple[Optional[Vendor], Optional[Driver], Optional[ServiceError]]:
        if not vendor_id or not driver_id:
            return None, None, validation_error("Missing vendorId or driverId")
        try:
            vendor_id, driver_id = int(vendor_id), int(driver_id)
        except (TypeError, ValueError):
            return None, None, validation_error("vendorId and driverId must be numbers")
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            return None, None, not_found("Vendor not found")
        driver = db.session.get(Driver, driver_id)
        if not driver:
            return vendor, None, not_found("Driver not found")
        return vendor, driver, None

    @TransactionHelper.with_transaction
    def add_driver_to_vendor(self, vendor_id: int, driver_id: int) -> Tuple[bool, Optional[ServiceError], Optional[Vendor]]:
        try:
            vendor, driver, error = self._load_pool_members(vendor_id, driver_id)
            if error:
                return False, error, None

            if driver in vendor.drivers:
                return False, conflict("Driver already assigned"), None

            vendor.drivers.append(driver)
            logger.info(f"Driver {driver.id} added to vendor {vendor.id}")
            return True, None, vendor

        except Exception as e:
            logger.error(f"Error adding driver {driver_id} to vendor {vendor_id}: {str(e)}")
            return False, internal_error(f"Failed to add driver: {str(e)}"), None

    @TransactionHelper.with_transaction
    def remove_driver_from_vendor(self, vendor_id: int, driver_id: int) -> Tuple[bool, Optional[ServiceError], Optional[Vendor]]:
        """Remove a driver from the pool; existing exports keep their driver"""
        try:
            vendor, driver, error = self._load_pool_members(vendor_id, driver_id)
            if error:
                return False, error, None

            if driver in vendor.drivers:
                vendor.drivers.remove(driver)
                logger.info(f"Driver {driver.id} removed from vendor {vendor.id}")
            return True, None, vendor

        except Exception as e:
            logger.error(f"Error removing driver {driver_id} from vendor {vendor_id}: {str(e)}")
            return False, internal_error(f"Failed to remove driver: {str(e)}"), None

    @TransactionHelper.with_transaction
    def add_vehicle(self, vendor_id: int, data: Optional[Dict[str, Any]]) -> Tuple[bool, Optional[ServiceError], Optional[Vehicle]]:
        """
        Register a vehicle, bind it to a free device and add it to the vendor's pool.

        Args:
            vendor_id: Owning vendor
            data: {'id', 'vehicleNumber', 'brand', 'capacity', 'deviceId'} where
                  deviceId is the device *name*

        Returns:
            tuple: (success, error, vehicle)
        """
        try:
            data = data or {}
            vehicle_id = data.get('id', data.get('_id'))
            vehicle_number = str(data.get('vehicleNumber') or '').strip()
            device_name = str(data.get('deviceId') or '').strip()

            if vehicle_id in (None, '') or not vehicle_number or not device_name:
                return False, validation_error("id, vehicleNumber and deviceId are required"), None
            try:
                vehicle_id = int(vehicle_id)
            except (TypeError, ValueError):
                return False, validation_error("Vehicle id must be a number"), None

            try:
                vendor = db.session.get(Vendor, int(vendor_id))
            except (TypeError, ValueError):
                return False, validation_error("vendorId must be a number"), None
            if not vendor:
                return False, not_found("Vendor not found"), None

            device = Device.query.filter_by(device_name=device_name, is_assigned=False) \
                .with_for_update().first()
            if not device:
                return False, validation_error("Device is already assigned or not found"), None

            if db.session.get(Vehicle, vehicle_id):
                return False, conflict(f"Vehicle {vehicle_id} already exists"), None
            if Vehicle.query.filter_by(vehicle_number=vehicle_number).first():
                return False, conflict(f"Vehicle number {vehicle_number} already registered"), None

            vehicle = Vehicle()
            vehicle.id = vehicle_id
            vehicle.vehicle_number = vehicle_number
            vehicle.brand = data.get('brand')
            vehicle.capacity = None if data.get('capacity') is None else str(data.get('capacity'))
            vehicle.device_id = device.device_name
            db.session.add(vehicle)

            vendor.vehicles.append(vehicle)
            device.is_assigned = True

            logger.info(f"Vehicle {vehicle_number} added to vendor {vendor.id} with device {device_name}")
            return True, None, vehicle

        except Exception as e:
            logger.error(f"Error adding vehicle for vendor {vendor_id}: {str(e)}")
            return False, internal_error(f"Error adding vehicle: {str(e)}"), None
