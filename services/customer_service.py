"""
Customer Service

Read-only views for customers following deliveries: vendors, started
exports and the tracking details of a single export.
"""

from typing import Optional, Dict, Any, List
import logging
from app import db
from models import Customer, Vendor, Export, ExportStatus

logger = logging.getLogger(__name__)

AVAILABLE_EXPORTS_LIMIT = 50
NEARBY_EXPORTS_LIMIT = 10

class CustomerService:
    """Service class for customer tracking views"""

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        return db.session.get(Customer, customer_id)

    def list_vendors(self) -> List[Vendor]:
        return Vendor.query.order_by(Vendor.name).all()

    def get_vendor_detail(self, vendor_id: int) -> Optional[Dict[str, Any]]:
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            return None
        detail = vendor.to_dict()
        detail['drivers'] = [{'id': d.id, 'name': d.name} for d in vendor.drivers]
        detail['vehicles'] = [v.to_summary() for v in vendor.vehicles]
        return detail

    def list_started_exports(self, limit: int = AVAILABLE_EXPORTS_LIMIT) -> List[Export]:
        return Export.query.filter_by(status=ExportStatus.STARTED).order_by(
            Export.start_date.desc()).limit(limit).all()

    def get_tracking(self, export_id: int) -> Optional[Dict[str, Any]]:
        export = db.session.get(Export, export_id)
        if not export:
            return None
        return {
            'export': export.to_dict(),
            'startLocation': export.start_location,
            'endLocation': export.end_location,
            'intermediateLocations': export.get_intermediate_locations(),
            'routes': export.get_routes(),
            'status': export.status.value,
        }

    def get_dashboard(self, customer_id: int) -> Optional[Dict[str, Any]]:
        """
        Started exports whose route passes through the customer's district or
        state, plus overall counts.
        """
        customer = db.session.get(Customer, customer_id)
        if not customer:
            return None

        started = self.list_started_exports(limit=None)
        area = {customer.district, customer.state}
        nearby = [e for e in started if area.intersection(e.get_routes())]

        logger.debug(f"Customer {customer_id} dashboard: {len(nearby)} nearby of {len(started)} active")
        return {
            'customer': {
                'name': customer.name,
                'state': customer.state,
                'district': customer.district,
            },
            'stats': {
                'totalVendors': Vendor.query.count(),
                'activeDeliveries': len(started),
                'nearbyDeliveries': len(nearby),
            },
            'nearbyExports': [e.to_dict() for e in nearby[:NEARBY_EXPORTS_LIMIT]],
        }
