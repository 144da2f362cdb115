"""
Telemetry Service

Reads device telemetry for an export and records what devices report.

An export reaches its device through its vehicle: Export -> Vehicle ->
Device where device.device_name == vehicle.device_id. Any missing link is
reported as not found.

Two location trails exist per export: the device's own GPS series and the
export's intermediate waypoints pushed by the driver app.
"""

from typing import Optional, Dict, Any, Tuple, List
import logging
from datetime import datetime
from flask import current_app
from app import db
from models import Export, Device, DeviceLocation, SensorReading
from timezone_utils import get_utc_time_naive
from utils.date_utils import parse_datetime, parse_day, day_start, day_end, single_day_range
from .transaction_helper import TransactionHelper
from .errors import ServiceError, validation_error, not_found, internal_error

logger = logging.getLogger(__name__)

HEALTH_OK = 'ok'
HEALTH_WARNING = 'warning'
HEALTH_CRITICAL = 'critical'


def classify(value: Optional[float], bands: Tuple[float, float]) -> Optional[str]:
    """Band for a reading: ok up to the first limit, warning up to the second, else critical"""
    if value is None:
        return None
    ok_limit, warn_limit = bands
    if value <= ok_limit:
        return HEALTH_OK
    if value <= warn_limit:
        return HEALTH_WARNING
    return HEALTH_CRITICAL


def parse_coordinates(data: Optional[Dict[str, Any]]) -> Tuple[Optional[Tuple[float, float]], Optional[ServiceError]]:
    data = data or {}
    if data.get('latitude') is None or data.get('longitude') is None:
        return None, validation_error("Latitude and Longitude are required")
    try:
        latitude = float(data['latitude'])
        longitude = float(data['longitude'])
    except (TypeError, ValueError):
        return None, validation_error("Latitude and Longitude must be numbers")
    if not -90 <= latitude <= 90:
        return None, validation_error("Latitude must be between -90 and 90")
    if not -180 <= longitude <= 180:
        return None, validation_error("Longitude must be between -180 and 180")
    return (latitude, longitude), None


class TelemetryService:
    """Service class for device telemetry and export waypoints"""

    def resolve_device(self, export_id: int) -> Tuple[Optional[Device], Optional[ServiceError]]:
        export = db.session.get(Export, export_id)
        if not export:
            return None, not_found("Export not found")

        vehicle = export.vehicle
        if not vehicle or not vehicle.device_id:
            return None, not_found("Associated vehicle or device not found")

        device = vehicle.device
        if not device:
            return None, not_found("Device not found")
        return device, None

    def resolve_window(self, date: Optional[str] = None, start_date: Optional[str] = None,
                       end_date: Optional[str] = None) -> Tuple[Optional[Tuple[datetime, datetime, bool]], Optional[ServiceError]]:
        """
        Turn query filters into a time window.

        'date' selects [date 00:00, next day 00:00) and wins over a range;
        'startDate'+'endDate' select [startDate 00:00, endDate end-of-day].

        Returns:
            ((start, end, end_inclusive) or None for no filter, error)
        """
        try:
            if date:
                start, end = single_day_range(parse_day(date))
                return (start, end, False), None
            if start_date and end_date:
                first, last = parse_day(start_date), parse_day(end_date)
                if first > last:
                    return None, validation_error("startDate must not be after endDate")
                return (day_start(first), day_end(last), True), None
        except ValueError:
            return None, validation_error("Dates must be in YYYY-MM-DD format")

        if start_date or end_date:
            return None, validation_error("startDate and endDate must be given together")
        return None, None

    def _in_window(self, timestamp: datetime, window) -> bool:
        if window is None:
            return True
        start, end, end_inclusive = window
        if timestamp < start:
            return False
        return timestamp <= end if end_inclusive else timestamp < end

    def get_sensor_series(self, export_id: int, date: Optional[str] = None,
                          start_date: Optional[str] = None,
                          end_date: Optional[str] = None) -> Tuple[bool, Optional[ServiceError], Optional[List[SensorReading]]]:
        """
        Get the device's sensor readings for an export, oldest first.

        Returns:
            tuple: (success, error, readings)
        """
        window, error = self.resolve_window(date, start_date, end_date)
        if error:
            return False, error, None

        device, error = self.resolve_device(export_id)
        if error:
            return False, error, None

        readings = [r for r in device.readings if self._in_window(r.timestamp, window)]
        return True, None, readings

    def get_location_series(self, export_id: int) -> Tuple[bool, Optional[ServiceError], Optional[List[DeviceLocation]]]:
        device, error = self.resolve_device(export_id)
        if error:
            return False, error, None
        return True, None, list(device.locations)

    def get_health_summary(self, export_id: int, date: Optional[str] = None) -> Tuple[bool, Optional[ServiceError], Optional[Dict[str, Any]]]:
        """
        Latest reading in the window with a cold-chain band per metric and an
        overall status (the worst band).
        """
        success, error, readings = self.get_sensor_series(export_id, date=date)
        if not success:
            return False, error, None

        if not readings:
            return True, None, {'exportId': export_id, 'latest': None, 'bands': {},
                                'status': None, 'readingCount': 0}

        latest = readings[-1]
        config = current_app.config
        bands = {
            'temperature': classify(latest.temperature, config['COLD_CHAIN_TEMPERATURE']),
            'humidity': classify(latest.humidity, config['COLD_CHAIN_HUMIDITY']),
            'ethyleneLevel': classify(latest.ethylene_level, config['COLD_CHAIN_ETHYLENE']),
        }
        order = [HEALTH_OK, HEALTH_WARNING, HEALTH_CRITICAL]
        status = max((b for b in bands.values() if b), key=order.index, default=None)

        return True, None, {
            'exportId': export_id,
            'latest': latest.to_dict(),
            'bands': bands,
            'status': status,
            'readingCount': len(readings),
        }

    @TransactionHelper.with_transaction
    def append_intermediate_location(self, export_id: int,
                                     data: Optional[Dict[str, Any]]) -> Tuple[bool, Optional[ServiceError], Optional[Export]]:
        """Append a driver-pushed waypoint to the export's own trail"""
        try:
            coordinates, error = parse_coordinates(data)
            if error:
                return False, error, None

            export = db.session.get(Export, export_id, with_for_update=True, populate_existing=True)
            if not export:
                return False, not_found("Export not found"), None

            points = export.get_intermediate_locations()
            points.append({'latitude': coordinates[0], 'longitude': coordinates[1]})
            export.set_intermediate_locations(points)

            logger.debug(f"Waypoint {len(points)} added to export {export_id}")
            return True, None, export

        except Exception as e:
            logger.error(f"Error adding intermediate location to export {export_id}: {str(e)}")
            return False, internal_error(f"Failed to update intermediate location: {str(e)}"), None

    def get_intermediate_locations(self, export_id: int) -> Tuple[bool, Optional[ServiceError], Optional[List[Dict[str, float]]]]:
        export = db.session.get(Export, export_id)
        if not export:
            return False, not_found("Export not found"), None
        return True, None, export.get_intermediate_locations()

    def _device_by_name(self, device_name: str) -> Optional[Device]:
        return Device.query.filter_by(device_name=device_name).first()

    def _timestamp(self, data: Dict[str, Any]) -> Tuple[Optional[datetime], Optional[ServiceError]]:
        try:
            return parse_datetime(data.get('timestamp')) or get_utc_time_naive(), None
        except ValueError:
            return None, validation_error("timestamp must be an ISO-8601 datetime")

    @TransactionHelper.with_transaction
    def record_location(self, device_name: str,
                        data: Optional[Dict[str, Any]]) -> Tuple[bool, Optional[ServiceError], Optional[DeviceLocation]]:
        """Append a GPS fix reported by a device"""
        try:
            data = data or {}
            coordinates, error = parse_coordinates(data)
            if error:
                return False, error, None
            timestamp, error = self._timestamp(data)
            if error:
                return False, error, None

            device = self._device_by_name(device_name)
            if not device:
                return False, not_found("Device not found"), None

            location = DeviceLocation()
            location.device_id = device.id
            location.latitude, location.longitude = coordinates
            location.timestamp = timestamp
            db.session.add(location)

            logger.debug(f"Location recorded for device {device_name}")
            return True, None, location

        except Exception as e:
            logger.error(f"Error recording location for device {device_name}: {str(e)}")
            return False, internal_error(f"Failed to record location: {str(e)}"), None

    @TransactionHelper.with_transaction
    def record_sensor_reading(self, device_name: str,
                              data: Optional[Dict[str, Any]]) -> Tuple[bool, Optional[ServiceError], Optional[SensorReading]]:
        """Append a humidity/temperature/ethylene sample reported by a device"""
        try:
            data = data or {}
            values = {}
            for key in ('humidity', 'temperature', 'ethyleneLevel'):
                if data.get(key) is None:
                    return False, validation_error(
                        "humidity, temperature and ethyleneLevel are required"), None
                try:
                    values[key] = float(data[key])
                except (TypeError, ValueError):
                    return False, validation_error(f"{key} must be a number"), None
            timestamp, error = self._timestamp(data)
            if error:
                return False, error, None

            device = self._device_by_name(device_name)
            if not device:
                return False, not_found("Device not found"), None

            reading = SensorReading()
            reading.device_id = device.id
            reading.humidity = values['humidity']
            reading.temperature = values['temperature']
            reading.ethylene_level = values['ethyleneLevel']
            reading.timestamp = timestamp
            db.session.add(reading)

            logger.debug(f"Sensor reading recorded for device {device_name}")
            return True, None, reading

        except Exception as e:
            logger.error(f"Error recording sensor reading for device {device_name}: {str(e)}")
            return False, internal_error(f"Failed to record sensor reading: {str(e)}"), None
