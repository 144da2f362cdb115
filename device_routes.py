"""
Device telemetry routes
Ingestion endpoints for devices, plus the export telemetry views shared by
the vendor and driver blueprints
"""

import logging
from flask import Blueprint, jsonify, request

from services.telemetry_service import TelemetryService
from utils.responses import error_response, json_body

device_bp = Blueprint('device', __name__)

logger = logging.getLogger(__name__)

telemetry_service = TelemetryService()


def sensor_data_view(export_id):
    """Sensor series for an export, filtered by ?date or ?startDate&endDate"""
    success, error, readings = telemetry_service.get_sensor_series(
        export_id,
        date=request.args.get('date'),
        start_date=request.args.get('startDate'),
        end_date=request.args.get('endDate'),
    )
    if not success:
        return error_response(error)
    return jsonify([r.to_dict() for r in readings])


def location_data_view(export_id):
    success, error, locations = telemetry_service.get_location_series(export_id)
    if not success:
        return error_response(error)
    return jsonify([loc.to_dict() for loc in locations])


def health_view(export_id):
    success, error, summary = telemetry_service.get_health_summary(
        export_id, date=request.args.get('date'))
    if not success:
        return error_response(error)
    return jsonify(summary)


@device_bp.route('/<device_name>/location', methods=['POST'])
def record_location(device_name):
    """Append a GPS fix: {latitude, longitude, timestamp?}"""
    success, error, location = telemetry_service.record_location(device_name, json_body())
    if not success:
        logger.warning(f"Rejected location from device {device_name}: {error}")
        return error_response(error)
    return jsonify({'message': 'Location recorded', 'location': location.to_dict()}), 201


@device_bp.route('/<device_name>/sensor-data', methods=['POST'])
def record_sensor_data(device_name):
    """Append a sensor sample: {humidity, temperature, ethyleneLevel, timestamp?}"""
    success, error, reading = telemetry_service.record_sensor_reading(device_name, json_body())
    if not success:
        logger.warning(f"Rejected sensor reading from device {device_name}: {error}")
        return error_response(error)
    return jsonify({'message': 'Sensor reading recorded', 'reading': reading.to_dict()}), 201
