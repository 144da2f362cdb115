"""
Driver API routes
Assigned exports, accept/reject decisions, starting a delivery and telemetry views
"""

from flask import Blueprint, jsonify

from services.errors import not_found
from services.export_service import ExportService
from services.work_history_service import WorkHistoryService
from utils.responses import error_response, json_body
from device_routes import sensor_data_view, location_data_view

driver_bp = Blueprint('driver', __name__)

export_service = ExportService()
work_history_service = WorkHistoryService()


@driver_bp.route('/export/driver/<int:driver_id>', methods=['GET'])
def driver_exports(driver_id):
    """Exports assigned to a driver, latest window first"""
    exports = export_service.list_driver_exports(driver_id)
    if exports is None:
        return error_response(not_found('Driver not found'))

    result = []
    for export in exports:
        data = export.to_dict()
        data['vendor'] = {'id': export.vendor.id, 'name': export.vendor.name,
                          'mobileNo': export.vendor.mobile_no}
        result.append(data)
    return jsonify(result)


@driver_bp.route('/export/accept/<int:export_id>', methods=['PUT'])
def accept_export(export_id):
    success, error, export = export_service.accept_export(export_id)
    if not success:
        return error_response(error)
    return jsonify({'message': 'Export accepted', 'export': export.to_dict()})


@driver_bp.route('/export/reject/<int:export_id>', methods=['PUT'])
def reject_export(export_id):
    """Reject and remove the export; body may carry {reason}"""
    reason = json_body().get('reason')
    success, error, summary = export_service.reject_export(export_id, reason)
    if not success:
        return error_response(error)
    return jsonify({'message': 'Export rejected', 'export': summary})


@driver_bp.route('/export/start/<int:export_id>', methods=['PUT'])
def start_export(export_id):
    """Start the delivery and record the districts along its route"""
    success, error, export = export_service.start_export_by_driver(export_id)
    if not success:
        return error_response(error)
    return jsonify(export.to_dict())


@driver_bp.route('/map/export/<int:export_id>', methods=['GET'])
def export_map(export_id):
    export = export_service.get_export(export_id)
    if not export:
        return error_response(not_found('Export not found'))
    return jsonify(export.to_dict())


@driver_bp.route('/work-dates/<int:driver_id>', methods=['GET'])
def work_dates(driver_id):
    dates = work_history_service.booked_dates(driver_id)
    if dates is None:
        return error_response(not_found('Driver not found'))
    return jsonify({'driverId': driver_id, 'workDates': dates})


driver_bp.add_url_rule('/device/sensor-data/<int:export_id>', 'sensor_data',
                       sensor_data_view, methods=['GET'])
driver_bp.add_url_rule('/device/location-data/<int:export_id>', 'location_data',
                       location_data_view, methods=['GET'])
