"""
Service Layer Architecture

Business logic for the logistics backend lives here so route handlers stay
thin. Mutating operations return result tuples (success, error, data) where
error is a ServiceError carrying an ErrorKind the routes map to HTTP.

Services:
- **ExportService**: export lifecycle (create, accept, reject, start, complete, delete)
- **ConflictService**: booking-window overlap checks and resource availability
- **WorkHistoryService**: driver work entries and booked days
- **TelemetryService**: device sensor/location series, waypoints, cold-chain health
- **FleetService**: vendor driver and vehicle pools, device binding
- **CustomerService**: customer tracking views
- **ServiceRequestService**: customer-to-vendor service requests
- **RouteService**: route districts via external directions and geocoding
- **NotificationService**: Expo push notifications and push tokens
"""

from .errors import ErrorKind, ServiceError
from .transaction_helper import TransactionHelper
from .conflict_service import ConflictService
from .work_history_service import WorkHistoryService
from .route_service import RouteService
from .notification_service import NotificationService
from .export_service import ExportService
from .telemetry_service import TelemetryService
from .fleet_service import FleetService
from .customer_service import CustomerService
from .service_request_service import ServiceRequestService

__all__ = [
    'ErrorKind',
    'ServiceError',
    'TransactionHelper',
    'ConflictService',
    'WorkHistoryService',
    'RouteService',
    'NotificationService',
    'ExportService',
    'TelemetryService',
    'FleetService',
    'CustomerService',
    'ServiceRequestService',
]
