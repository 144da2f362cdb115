"""
Customer API routes
Vendor listings and shipment tracking for customers
"""

from flask import Blueprint, jsonify

from services.errors import not_found
from services.customer_service import CustomerService
from utils.responses import error_response

customer_bp = Blueprint('customer', __name__)

customer_service = CustomerService()


@customer_bp.route('/profile/<int:customer_id>', methods=['GET'])
def profile(customer_id):
    customer = customer_service.get_customer(customer_id)
    if not customer:
        return error_response(not_found('Customer not found'))
    return jsonify(customer.to_dict())


@customer_bp.route('/vendors', methods=['GET'])
def vendors():
    return jsonify([{
        'id': v.id,
        'name': v.name,
        'mobileNo': v.mobile_no,
        'state': v.state,
        'district': v.district,
    } for v in customer_service.list_vendors()])


@customer_bp.route('/vendors/<int:vendor_id>', methods=['GET'])
def vendor_detail(vendor_id):
    detail = customer_service.get_vendor_detail(vendor_id)
    if detail is None:
        return error_response(not_found('Vendor not found'))
    return jsonify(detail)


@customer_bp.route('/exports/available', methods=['GET'])
def available_exports():
    """Deliveries currently on the road, most recently started first"""
    return jsonify([e.to_dict() for e in customer_service.list_started_exports()])


@customer_bp.route('/track/<int:export_id>', methods=['GET'])
def track(export_id):
    tracking = customer_service.get_tracking(export_id)
    if tracking is None:
        return error_response(not_found('Export not found'))
    return jsonify(tracking)


@customer_bp.route('/dashboard/<int:customer_id>', methods=['GET'])
def dashboard(customer_id):
    data = customer_service.get_dashboard(customer_id)
    if data is None:
        return error_response(not_found('Customer not found'))
    return jsonify(data)
