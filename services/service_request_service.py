"""
Service Request Service

Customer questions and complaints addressed to a vendor. A request moves
forward only: pending -> accepted -> completed, or pending -> rejected.
"""

from typing import Optional, Dict, Any, Tuple, List
import logging
from app import db
from models import ServiceRequest, ServiceRequestStatus, ServiceType, Customer, Vendor
from .transaction_helper import TransactionHelper
from .errors import ServiceError, validation_error, not_found, state_guard, internal_error

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 1000

# Status a request must be in before each transition
REQUIRED_STATUS = {
    ServiceRequestStatus.ACCEPTED: ServiceRequestStatus.PENDING,
    ServiceRequestStatus.REJECTED: ServiceRequestStatus.PENDING,
    ServiceRequestStatus.COMPLETED: ServiceRequestStatus.ACCEPTED,
}

ServiceResult = Tuple[bool, Optional[ServiceError], Optional[ServiceRequest]]

class ServiceRequestService:
    """Service class for customer-to-vendor service requests"""

    def list_vendor_requests(self, vendor_id: int) -> Optional[List[ServiceRequest]]:
        """Newest first; None when the vendor does not exist"""
        if not db.session.get(Vendor, vendor_id):
            return None
        return ServiceRequest.query.filter_by(vendor_id=vendor_id).order_by(
            ServiceRequest.created_at.desc(), ServiceRequest.id.desc()).all()

    def _parse_create(self, data: Dict[str, Any]) -> Tuple[Optional[ServiceError], Optional[Dict[str, Any]]]:
        customer_id = data.get('customerId')
        vendor_id = data.get('vendorId')
        message = data.get('message')
        if not customer_id or not vendor_id or not message:
            return validation_error("Missing required fields"), None
        try:
            customer_id, vendor_id = int(customer_id), int(vendor_id)
        except (TypeError, ValueError):
            return validation_error("customerId and vendorId must be numbers"), None
        if not isinstance(message, str) or len(message) > MAX_TEXT_LENGTH:
            return validation_error(f"message must be text of at most {MAX_TEXT_LENGTH} characters"), None
        try:
            service_type = ServiceType(data.get('serviceType') or ServiceType.OTHER.value)
        except ValueError:
            allowed = ', '.join(t.value for t in ServiceType)
            return validation_error(f"serviceType must be one of: {allowed}"), None
        return None, {'customer_id': customer_id, 'vendor_id': vendor_id,
                      'message': message, 'service_type': service_type}

    @TransactionHelper.with_transaction
    def create_request(self, data: Optional[Dict[str, Any]]) -> ServiceResult:
        try:
            error, fields = self._parse_create(data or {})
            if error:
                return False, error, None
            if not db.session.get(Customer, fields['customer_id']):
                return False, not_found("Customer not found"), None
            if not db.session.get(Vendor, fields['vendor_id']):
                return False, not_found("Vendor not found"), None

            service_request = ServiceRequest(**fields)
            db.session.add(service_request)
            db.session.flush()

            logger.info(f"Service request {service_request.id} ({fields['service_type'].value}) "
                        f"from customer {fields['customer_id']} to vendor {fields['vendor_id']}")
            return True, None, service_request

        except Exception as e:
            logger.error(f"Error creating service request: {str(e)}")
            return False, internal_error(f"Failed to create service request: {str(e)}"), None

    @TransactionHelper.with_transaction
    def _move(self, request_id: int, target: ServiceRequestStatus, note: Optional[str]) -> ServiceResult:
        try:
            if note is not None and (not isinstance(note, str) or len(note) > MAX_TEXT_LENGTH):
                return False, validation_error(
                    f"Response must be text of at most {MAX_TEXT_LENGTH} characters"), None

            service_request = db.session.get(ServiceRequest, request_id,
                                             with_for_update=True, populate_existing=True)
            if not service_request:
                return False, not_found("Request not found"), None

            required = REQUIRED_STATUS[target]
            if service_request.status != required:
                return False, state_guard(
                    f"Request cannot be {target.value} from status {service_request.status.value}"), None

            service_request.status = target
            if target != ServiceRequestStatus.ACCEPTED:
                service_request.response = note or ''

            logger.info(f"Service request {request_id} {target.value}")
            return True, None, service_request

        except Exception as e:
            logger.error(f"Error updating service request {request_id}: {str(e)}")
            return False, internal_error(f"Failed to update service request: {str(e)}"), None

    def accept_request(self, request_id: int) -> ServiceResult:
        return self._move(request_id, ServiceRequestStatus.ACCEPTED, None)

    def reject_request(self, request_id: int, reason: Optional[str] = None) -> ServiceResult:
        return self._move(request_id, ServiceRequestStatus.REJECTED, reason)

    def complete_request(self, request_id: int, response: Optional[str] = None) -> ServiceResult:
        return self._move(request_id, ServiceRequestStatus.COMPLETED, response)
