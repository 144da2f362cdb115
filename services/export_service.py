"""
Export Service

Handles the export lifecycle: creation with conflict checks, the driver's
accept/reject decision, start (driver or vendor initiated), completion and
deletion. Every mutation keeps the driver's work history in step through
WorkHistoryService inside the same transaction.

Lifecycle: Pending -> Started -> Completed. A rejected export is deleted
rather than kept in a terminal state.
"""

from typing import Optional, Dict, Any, Tuple, List
import logging
from app import db
from models import Export, Vendor, Driver, Vehicle, ExportStatus, DriverResponse
from utils.date_utils import parse_datetime
from .transaction_helper import TransactionHelper
from .conflict_service import ConflictService
from .work_history_service import WorkHistoryService
from .route_service import RouteService
from .notification_service import NotificationService
from .errors import ServiceError, validation_error, not_found, state_guard, conflict, internal_error

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('itemName', 'startDate', 'endDate', 'quantity', 'costPrice',
                   'salePrice', 'driver', 'vehicle', 'salary', 'startLocation', 'endLocation')

ServiceResult = Tuple[bool, Optional[ServiceError], Optional[Any]]


def _parse_location(value, label: str) -> Tuple[Optional[Dict[str, float]], Optional[ServiceError]]:
    if not isinstance(value, dict):
        return None, validation_error(f"{label} must have latitude and longitude")
    try:
        latitude = float(value.get('latitude'))
        longitude = float(value.get('longitude'))
    except (TypeError, ValueError):
        return None, validation_error(f"{label} must have numeric latitude and longitude")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        return None, validation_error(f"{label} coordinates are out of range")
    return {'latitude': latitude, 'longitude': longitude}, None


class ExportService:
    """Service class for export lifecycle operations"""

    def __init__(self, route_service: Optional[RouteService] = None,
                 notification_service: Optional[NotificationService] = None):
        self.conflict_service = ConflictService()
        self.work_history = WorkHistoryService()
        self.route_service = route_service or RouteService()
        self.notification_service = notification_service or NotificationService()

    def validate_export_request(self, data: Optional[Dict[str, Any]]) -> Tuple[bool, Optional[ServiceError], Optional[Dict]]:
        """
        Validate and normalise an export creation payload.

        Driver and vehicle ids may be sent as 'driver'/'vehicle' or
        'driverId'/'vehicleId'.

        Returns:
            tuple: (is_valid, error, fields) with snake_case fields ready for the model
        """
        data = dict(data or {})
        data.setdefault('driver', data.get('driverId'))
        data.setdefault('vehicle', data.get('vehicleId'))

        missing = [name for name in REQUIRED_FIELDS if data.get(name) in (None, '')]
        if missing:
            return False, validation_error(f"All fields are required, missing: {', '.join(missing)}"), None

        try:
            start = parse_datetime(data['startDate'])
            end = parse_datetime(data['endDate'])
        except ValueError:
            return False, validation_error("startDate and endDate must be ISO-8601 dates"), None
        if start > end:
            return False, validation_error("startDate must not be after endDate"), None

        try:
            quantity = float(data['quantity'])
            cost_price = float(data['costPrice'])
            sale_price = float(data['salePrice'])
            salary = float(data['salary'])
            driver_id = int(data['driver'])
            vehicle_id = int(data['vehicle'])
        except (TypeError, ValueError):
            return False, validation_error("Numeric fields and resource ids must be numbers"), None

        if quantity <= 0:
            return False, validation_error("quantity must be positive"), None
        if min(cost_price, sale_price, salary) < 0:
            return False, validation_error("Prices and salary cannot be negative"), None

        start_location, error = _parse_location(data['startLocation'], 'startLocation')
        if error:
            return False, error, None
        end_location, error = _parse_location(data['endLocation'], 'endLocation')
        if error:
            return False, error, None

        return True, None, {
            'item_name': str(data['itemName']).strip(),
            'quantity': quantity,
            'cost_price': cost_price,
            'sale_price': sale_price,
            'salary': salary,
            'driver_id': driver_id,
            'vehicle_id': vehicle_id,
            'start_date': start,
            'end_date': end,
            'start_location': start_location,
            'end_location': end_location,
        }

    def create_export(self, vendor_id: int, data: Optional[Dict[str, Any]]) -> ServiceResult:
        """
        Create a Pending export and book its driver and vehicle.

        Returns:
            tuple: (success, error, export)
        """
        success, error, export = self._create_export(vendor_id, data)
        if success:
            self.notification_service.notify_export_assigned(export)
        return success, error, export

    @TransactionHelper.with_transaction
    def _create_export(self, vendor_id: int, data: Optional[Dict[str, Any]]) -> ServiceResult:
        try:
            is_valid, error, fields = self.validate_export_request(data)
            if not is_valid:
                return False, error, None

            vendor = db.session.get(Vendor, vendor_id)
            if not vendor:
                return False, not_found("Vendor not found"), None

            # Lock and reload both resources so concurrent bookings of either serialize here
            driver = db.session.get(Driver, fields['driver_id'], with_for_update=True, populate_existing=True)
            if not driver:
                return False, not_found("Driver not found"), None
            vehicle = db.session.get(Vehicle, fields['vehicle_id'], with_for_update=True, populate_existing=True)
            if not vehicle:
                return False, not_found("Vehicle not found"), None

            if driver not in vendor.drivers:
                return False, validation_error("Driver is not in this vendor's pool"), None
            if vehicle not in vendor.vehicles:
                return False, validation_error("Vehicle is not in this vendor's pool"), None

            conflicts = self.conflict_service.find_conflicts(
                driver.id, vehicle.id, fields['start_date'], fields['end_date'])
            if conflicts:
                logger.info(f"Export for vendor {vendor_id} blocked by exports "
                            f"{[c.id for c in conflicts]}")
                return False, conflict(self.conflict_service.describe_conflicts(
                    conflicts, driver.id, vehicle.id)), None

            export = Export()
            export.vendor_id = vendor.id
            export.driver_id = driver.id
            export.vehicle_id = vehicle.id
            export.item_name = fields['item_name']
            export.quantity = fields['quantity']
            export.cost_price = fields['cost_price']
            export.sale_price = fields['sale_price']
            export.start_date = fields['start_date']
            export.end_date = fields['end_date']
            export.start_latitude = fields['start_location']['latitude']
            export.start_longitude = fields['start_location']['longitude']
            export.end_latitude = fields['end_location']['latitude']
            export.end_longitude = fields['end_location']['longitude']
            export.set_intermediate_locations([])
            export.set_routes([])
            export.status = ExportStatus.PENDING
            export.driver_response = DriverResponse.PENDING

            db.session.add(export)
            db.session.flush()  # need export.id for the work entry

            self.work_history.record_assignment(
                driver, vendor.id, export.start_date, export.end_date,
                salary=fields['salary'], export_id=export.id)

            logger.info(f"Export {export.id} created for vendor {vendor_id}: "
                        f"driver {driver.id}, vehicle {vehicle.id}, "
                        f"{export.start_date} - {export.end_date}")
            return True, None, export

        except Exception as e:
            logger.error(f"Error creating export for vendor {vendor_id}: {str(e)}")
            return False, internal_error(f"Failed to create export: {str(e)}"), None

    def accept_export(self, export_id: int) -> ServiceResult:
        success, error, export = self._accept_export(export_id)
        if success:
            self.notification_service.notify_export_accepted(export)
        return success, error, export

    @TransactionHelper.with_transaction
    def _accept_export(self, export_id: int) -> ServiceResult:
        try:
            export = db.session.get(Export, export_id)
            if not export:
                return False, not_found("Export not found"), None

            if export.driver_response != DriverResponse.PENDING:
                return False, state_guard(
                    f"Export already {export.driver_response.value}"), None

            export.driver_response = DriverResponse.ACCEPTED
            logger.info(f"Export {export_id} accepted by driver {export.driver_id}")
            return True, None, export

        except Exception as e:
            logger.error(f"Error accepting export {export_id}: {str(e)}")
            return False, internal_error(f"Failed to accept export: {str(e)}"), None

    def reject_export(self, export_id: int, reason: Optional[str] = None) -> ServiceResult:
        """
        Reject a pending export. The export is deleted and the driver's booking
        released; the returned data is a summary of what was removed.
        """
        success, error, summary = self._reject_export(export_id, reason)
        if success:
            self.notification_service.notify_export_rejected(
                db.session.get(Vendor, summary['vendorId']), summary['id'],
                summary['itemName'], summary['driverName'], reason)
        return success, error, summary

    @TransactionHelper.with_transaction
    def _reject_export(self, export_id: int, reason: Optional[str]) -> ServiceResult:
        try:
            export = db.session.get(Export, export_id)
            if not export:
                return False, not_found("Export not found"), None

            if export.driver_response != DriverResponse.PENDING:
                return False, state_guard(
                    f"Export already {export.driver_response.value}"), None

            driver = db.session.get(Driver, export.driver_id, with_for_update=True, populate_existing=True)
            summary = {
                'id': export.id,
                'vendorId': export.vendor_id,
                'itemName': export.item_name,
                'driverName': driver.name if driver else 'Driver',
                'reason': reason,
            }
            self._release_and_delete(export, driver)

            logger.info(f"Export {export_id} rejected by driver {summary['driverName']}"
                        f"{': ' + reason if reason else ''}")
            return True, None, summary

        except Exception as e:
            logger.error(f"Error rejecting export {export_id}: {str(e)}")
            return False, internal_error(f"Failed to reject export: {str(e)}"), None

    def _release_and_delete(self, export: Export, driver: Optional[Driver]) -> None:
        if driver:
            self.work_history.remove_assignment(
                driver, export.vendor_id, export.start_date, export.end_date,
                export_id=export.id)
        db.session.delete(export)

    def _start_guard(self, export: Export) -> Optional[ServiceError]:
        if export.driver_response != DriverResponse.ACCEPTED:
            return state_guard("Export has not been accepted by the driver")
        if export.status != ExportStatus.PENDING:
            return state_guard(f"Export cannot be started from status {export.status.value}")
        return None

    def start_export_by_driver(self, export_id: int) -> ServiceResult:
        """
        Start an accepted export from the driver app, resolving the districts
        along its route first. Route lookup failures leave routes empty and
        never block the start.
        """
        export = db.session.get(Export, export_id)
        if not export:
            return False, not_found("Export not found"), None
        guard_error = self._start_guard(export)
        if guard_error:
            return False, guard_error, None

        # Looked up before the write transaction; external calls may be slow
        try:
            routes = self.route_service.get_districts_between(export.start_location, export.end_location)
        except Exception:
            logger.exception(f"Route lookup for export {export_id} failed; starting without routes")
            routes = []
        return self._mark_started(export_id, routes)

    def start_export_by_vendor(self, export_id: int) -> ServiceResult:
        return self._mark_started(export_id, None)

    @TransactionHelper.with_transaction
    def _mark_started(self, export_id: int, routes: Optional[List[str]]) -> ServiceResult:
        try:
            export = db.session.get(Export, export_id, with_for_update=True, populate_existing=True)
            if not export:
                return False, not_found("Export not found"), None
            guard_error = self._start_guard(export)
            if guard_error:
                return False, guard_error, None

            export.status = ExportStatus.STARTED
            if routes is not None:
                export.set_routes(routes)

            logger.info(f"Export {export_id} started"
                        f"{f' via {len(routes)} districts' if routes is not None else ' by vendor'}")
            return True, None, export

        except Exception as e:
            logger.error(f"Error starting export {export_id}: {str(e)}")
            return False, internal_error(f"Failed to start export: {str(e)}"), None

    @TransactionHelper.with_transaction
    def complete_export(self, export_id: int) -> ServiceResult:
        try:
            export = db.session.get(Export, export_id, with_for_update=True, populate_existing=True)
            if not export:
                return False, not_found("Export not found"), None

            if export.status != ExportStatus.STARTED:
                return False, state_guard(
                    f"Only started exports can be completed (status is {export.status.value})"), None

            export.status = ExportStatus.COMPLETED
            logger.info(f"Export {export_id} completed")
            return True, None, export

        except Exception as e:
            logger.error(f"Error completing export {export_id}: {str(e)}")
            return False, internal_error(f"Failed to complete export: {str(e)}"), None

    @TransactionHelper.with_transaction
    def delete_export(self, export_id: int) -> ServiceResult:
        try:
            export = db.session.get(Export, export_id)
            if not export:
                return False, not_found("Export not found"), None

            if export.status != ExportStatus.PENDING:
                return False, state_guard("Cannot delete export that is not pending"), None

            driver = db.session.get(Driver, export.driver_id, with_for_update=True, populate_existing=True)
            self._release_and_delete(export, driver)

            logger.info(f"Export {export_id} deleted")
            return True, None, {'id': export_id}

        except Exception as e:
            logger.error(f"Error deleting export {export_id}: {str(e)}")
            return False, internal_error(f"Failed to delete export: {str(e)}"), None

    def get_export(self, export_id: int) -> Optional[Export]:
        return db.session.get(Export, export_id)

    def list_vendor_exports(self, vendor_id: int) -> Optional[List[Export]]:
        """Newest first; None when the vendor does not exist"""
        if not db.session.get(Vendor, vendor_id):
            return None
        return Export.query.filter_by(vendor_id=vendor_id).order_by(
            Export.created_at.desc(), Export.id.desc()).all()

    def list_started_exports(self, vendor_id: int) -> List[Export]:
        return Export.query.filter_by(vendor_id=vendor_id, status=ExportStatus.STARTED).order_by(
            Export.start_date.desc()).all()

    def list_driver_exports(self, driver_id: int) -> Optional[List[Export]]:
        if not db.session.get(Driver, driver_id):
            return None
        return Export.query.filter_by(driver_id=driver_id).order_by(Export.start_date.desc()).all()
