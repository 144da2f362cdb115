"""
Conflict Service

Decides whether a driver or vehicle is free for a booking window and which
of a vendor's resources remain available.

Two windows overlap when start_a <= end_b and end_a >= start_b, so windows
that merely touch at an endpoint still conflict. Every existing export counts,
whatever its status: completed exports keep occupying their window.
"""

from typing import Dict, List, Optional, Any
import logging
from datetime import datetime
from sqlalchemy import or_
from app import db
from models import Export, Vendor

logger = logging.getLogger(__name__)

class ConflictService:
    """Service class for booking-window conflict checks"""

    def _overlapping(self, start: datetime, end: datetime):
        return Export.query.filter(
            Export.start_date <= end,
            Export.end_date >= start
        )

    def find_conflicts(self, driver_id: int, vehicle_id: int,
                       start: datetime, end: datetime) -> List[Export]:
        """
        Get exports that overlap the window and share the driver or the vehicle.

        Args:
            driver_id: Requested driver
            vehicle_id: Requested vehicle
            start: Window start (naive UTC)
            end: Window end (naive UTC)

        Returns:
            List of conflicting exports, oldest window first
        """
        query = self._overlapping(start, end).filter(
            or_(Export.driver_id == driver_id, Export.vehicle_id == vehicle_id)
        )
        return query.order_by(Export.start_date).all()

    def has_conflict(self, driver_id: int, vehicle_id: int,
                     start: datetime, end: datetime) -> bool:
        return len(self.find_conflicts(driver_id, vehicle_id, start, end)) > 0

    def describe_conflicts(self, conflicts: List[Export], driver_id: int, vehicle_id: int) -> str:
        """Human-readable reason naming which resource is taken"""
        driver_busy = any(export.driver_id == driver_id for export in conflicts)
        vehicle_busy = any(export.vehicle_id == vehicle_id for export in conflicts)
        if driver_busy and vehicle_busy:
            return "Driver and vehicle are already booked during this period"
        if driver_busy:
            return "Driver is already booked during this period"
        return "Vehicle is already booked during this period"

    def available_resources(self, vendor_id: int, start: datetime,
                            end: datetime) -> Optional[Dict[str, List[Dict[str, Any]]]]:
        """
        Get the vendor's drivers and vehicles not booked in the window.

        Returns:
            dict with 'drivers' and 'vehicles', or None if the vendor does not exist
        """
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            return None

        busy = self._overlapping(start, end).with_entities(
            Export.driver_id, Export.vehicle_id
        ).all()
        busy_drivers = {row.driver_id for row in busy}
        busy_vehicles = {row.vehicle_id for row in busy}

        drivers = [d.to_summary() for d in vendor.drivers if d.id not in busy_drivers]
        vehicles = [v.to_dict() for v in vendor.vehicles if v.id not in busy_vehicles]

        logger.debug(f"Vendor {vendor_id} availability {start} - {end}: "
                     f"{len(drivers)} drivers, {len(vehicles)} vehicles free")
        return {'drivers': drivers, 'vehicles': vehicles}
