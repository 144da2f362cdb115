"""
Vendor API routes
Fleet pool management, export lifecycle, telemetry views and customer service requests for vendors
"""

import logging
from flask import Blueprint, jsonify, request

from services.errors import validation_error, not_found
from services.conflict_service import ConflictService
from services.export_service import ExportService
from services.fleet_service import FleetService
from services.telemetry_service import TelemetryService
from services.service_request_service import ServiceRequestService
from utils.date_utils import parse_datetime
from utils.responses import error_response, json_body
from device_routes import sensor_data_view, location_data_view, health_view

vendor_bp = Blueprint('vendor', __name__)

logger = logging.getLogger(__name__)

conflict_service = ConflictService()
export_service = ExportService()
fleet_service = FleetService()
telemetry_service = TelemetryService()
service_request_service = ServiceRequestService()


# Driver pool

@vendor_bp.route('/all', methods=['GET'])
def vendor_drivers():
    """Drivers in the vendor's pool"""
    vendor_id = request.args.get('vendorId', type=int)
    if not vendor_id:
        return error_response(validation_error('Vendor ID is required'))

    drivers = fleet_service.list_vendor_drivers(vendor_id)
    if drivers is None:
        return error_response(not_found('Vendor not found'))
    return jsonify([d.to_dict() for d in drivers])


@vendor_bp.route('/available-drivers', methods=['GET'])
def all_drivers():
    """Every registered driver, for adding to a pool"""
    return jsonify([d.to_dict() for d in fleet_service.list_all_drivers()])


@vendor_bp.route('/add-driver', methods=['POST'])
def add_driver():
    data = json_body()
    success, error, _ = fleet_service.add_driver_to_vendor(data.get('vendorId'), data.get('driverId'))
    if not success:
        return error_response(error)
    return jsonify({'success': True, 'message': 'Driver added to vendor'})


@vendor_bp.route('/remove-driver', methods=['POST'])
def remove_driver():
    data = json_body()
    success, error, _ = fleet_service.remove_driver_from_vendor(data.get('vendorId'), data.get('driverId'))
    if not success:
        return error_response(error)
    return jsonify({'success': True, 'message': 'Driver removed from vendor'})


# Vehicles and devices

@vendor_bp.route('/vehicles', methods=['GET'])
def vendor_vehicles():
    vendor_id = request.args.get('vendorId', type=int)
    if not vendor_id:
        return error_response(validation_error('Vendor ID is required'))

    vehicles = fleet_service.list_vendor_vehicles(vendor_id)
    if vehicles is None:
        return error_response(not_found('Vendor not found'))
    return jsonify([v.to_dict() for v in vehicles])


@vendor_bp.route('/available-devices', methods=['GET'])
def available_devices():
    return jsonify([d.to_dict() for d in fleet_service.list_available_devices()])


@vendor_bp.route('/add-vehicle', methods=['POST'])
def add_vehicle():
    data = json_body()
    success, error, vehicle = fleet_service.add_vehicle(data.get('vendorId'), data)
    if not success:
        return error_response(error)
    return jsonify({'message': 'Vehicle added and assigned successfully',
                    'vehicle': vehicle.to_dict()}), 201


# Exports

@vendor_bp.route('/availableResources', methods=['GET'])
def available_resources():
    """Vendor's drivers and vehicles with no export overlapping the window"""
    vendor_id = request.args.get('vendorId', type=int)
    start_raw = request.args.get('startDate')
    end_raw = request.args.get('endDate')
    if not vendor_id or not start_raw or not end_raw:
        return error_response(validation_error('Vendor ID, start date, and end date are required'))

    try:
        start = parse_datetime(start_raw)
        end = parse_datetime(end_raw)
    except ValueError:
        return error_response(validation_error('startDate and endDate must be ISO-8601 dates'))
    if start > end:
        return error_response(validation_error('startDate must not be after endDate'))

    resources = conflict_service.available_resources(vendor_id, start, end)
    if resources is None:
        return error_response(not_found('Vendor not found'))
    return jsonify(resources)


def _vendor_exports(vendor_id):
    exports = export_service.list_vendor_exports(vendor_id)
    if exports is None:
        return error_response(not_found('Vendor not found'))
    return jsonify([e.to_dict() for e in exports])


@vendor_bp.route('/exports', methods=['GET'])
def vendor_exports_by_query():
    vendor_id = request.args.get('vendorId', type=int)
    if not vendor_id:
        return error_response(validation_error('Vendor ID is required'))
    return _vendor_exports(vendor_id)


@vendor_bp.route('/exports/<int:vendor_id>', methods=['GET'])
def vendor_exports(vendor_id):
    return _vendor_exports(vendor_id)


@vendor_bp.route('/export/add/<int:vendor_id>', methods=['POST'])
def create_export(vendor_id):
    success, error, export = export_service.create_export(vendor_id, json_body())
    if not success:
        logger.info(f"Export creation refused for vendor {vendor_id}: {error.kind.value}")
        return error_response(error)
    return jsonify({'message': 'Export created successfully', 'export': export.to_dict()}), 201


@vendor_bp.route('/export/<int:export_id>', methods=['GET'])
def get_export(export_id):
    export = export_service.get_export(export_id)
    if not export:
        return error_response(not_found('Export not found'))
    return jsonify(export.to_dict())


@vendor_bp.route('/export/<int:export_id>', methods=['DELETE'])
def delete_export(export_id):
    success, error, _ = export_service.delete_export(export_id)
    if not success:
        return error_response(error)
    return jsonify({'message': 'Export deleted successfully'})


@vendor_bp.route('/export/passedstatus/<int:vendor_id>', methods=['GET'])
def started_exports(vendor_id):
    """Exports of this vendor currently on the road"""
    return jsonify([e.to_dict() for e in export_service.list_started_exports(vendor_id)])


@vendor_bp.route('/export/start/<int:export_id>', methods=['PUT'])
def start_export(export_id):
    success, error, export = export_service.start_export_by_vendor(export_id)
    if not success:
        return error_response(error)
    return jsonify({'message': 'Export started', 'export': export.to_dict()})


@vendor_bp.route('/export/complete/<int:export_id>', methods=['PUT'])
def complete_export(export_id):
    success, error, export = export_service.complete_export(export_id)
    if not success:
        return error_response(error)
    return jsonify({'message': 'Export completed', 'export': export.to_dict()})


# Telemetry

vendor_bp.add_url_rule('/device/sensor-data/<int:export_id>', 'sensor_data',
                       sensor_data_view, methods=['GET'])
vendor_bp.add_url_rule('/device/location-data/<int:export_id>', 'location_data',
                       location_data_view, methods=['GET'])
vendor_bp.add_url_rule('/device/health/<int:export_id>', 'health',
                       health_view, methods=['GET'])


@vendor_bp.route('/export/intermediateLocation/push/<int:export_id>', methods=['POST'])
def push_intermediate_location(export_id):
    success, error, export = telemetry_service.append_intermediate_location(export_id, json_body())
    if not success:
        return error_response(error)
    return jsonify({'message': 'Intermediate location added successfully',
                    'updatedExport': export.to_dict()})


@vendor_bp.route('/export/intermediateLocation/get/<int:export_id>', methods=['GET'])
def get_intermediate_locations(export_id):
    success, error, points = telemetry_service.get_intermediate_locations(export_id)
    if not success:
        return error_response(error)
    return jsonify(points)


# Customer service requests

@vendor_bp.route('/service-requests/<int:vendor_id>', methods=['GET'])
def vendor_service_requests(vendor_id):
    service_requests = service_request_service.list_vendor_requests(vendor_id)
    if service_requests is None:
        return error_response(not_found('Vendor not found'))
    return jsonify([r.to_dict() for r in service_requests])


@vendor_bp.route('/service-requests', methods=['POST'])
def create_service_request():
    """Raised by a customer against a vendor"""
    success, error, service_request = service_request_service.create_request(json_body())
    if not success:
        return error_response(error)
    return jsonify({'success': True, 'message': 'Service request created successfully',
                    'request': service_request.to_dict()}), 201


def _service_request_result(result, message):
    success, error, service_request = result
    if not success:
        return error_response(error)
    return jsonify({'success': True, 'message': message, 'request': service_request.to_dict()})


@vendor_bp.route('/service-requests/<int:request_id>/accept', methods=['PUT'])
def accept_service_request(request_id):
    return _service_request_result(service_request_service.accept_request(request_id),
                                   'Request accepted')


@vendor_bp.route('/service-requests/<int:request_id>/reject', methods=['PUT'])
def reject_service_request(request_id):
    reason = json_body().get('reason')
    return _service_request_result(service_request_service.reject_request(request_id, reason),
                                   'Request rejected')


@vendor_bp.route('/service-requests/<int:request_id>/complete', methods=['PUT'])
def complete_service_request(request_id):
    response = json_body().get('response')
    return _service_request_result(service_request_service.complete_request(request_id, response),
                                   'Request completed')
