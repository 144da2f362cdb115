
import json
from app import db
from sqlalchemy import Index, CheckConstraint, UniqueConstraint
from enum import Enum
from timezone_utils import get_utc_time_naive

# Enums for better data integrity
class ExportStatus(Enum):
    PENDING = 'Pending'
    STARTED = 'Started'
    COMPLETED = 'Completed'

class DriverResponse(Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'

class UserRole(Enum):
    VENDOR = 'vendor'
    DRIVER = 'driver'
    CUSTOMER = 'customer'

class ServiceRequestStatus(Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    COMPLETED = 'completed'

class ServiceType(Enum):
    PRODUCT_INQUIRY = 'product_inquiry'
    DELIVERY_ISSUE = 'delivery_issue'
    SUPPORT = 'support'
    FEEDBACK = 'feedback'
    OTHER = 'other'


def _isoformat(value):
    return value.isoformat() if value else None


def _load_json_list(raw):
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


# Fleet pools: a vendor's drivers and vehicles
vendor_drivers = db.Table('vendor_drivers',
    db.Column('id', db.Integer, primary_key=True),
    db.Column('vendor_id', db.Integer, db.ForeignKey('vendors.id'), nullable=False),
    db.Column('driver_id', db.Integer, db.ForeignKey('drivers.id'), nullable=False),
    db.Column('assigned_at', db.DateTime, default=get_utc_time_naive),
    UniqueConstraint('vendor_id', 'driver_id', name='uq_vendor_driver')
)

vendor_vehicles = db.Table('vendor_vehicles',
    db.Column('id', db.Integer, primary_key=True),
    db.Column('vendor_id', db.Integer, db.ForeignKey('vendors.id'), nullable=False),
    db.Column('vehicle_id', db.Integer, db.ForeignKey('vehicles.id'), nullable=False),
    db.Column('assigned_at', db.DateTime, default=get_utc_time_naive),
    UniqueConstraint('vendor_id', 'vehicle_id', name='uq_vendor_vehicle')
)

class Vendor(db.Model):
    __tablename__ = 'vendors'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    mobile_no = db.Column(db.String(20), nullable=False)
    business_name = db.Column(db.String(150), nullable=False)
    state = db.Column(db.String(100), nullable=False)
    district = db.Column(db.String(100), nullable=False)

    expo_push_token = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=get_utc_time_naive)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    # Relationships
    drivers = db.relationship('Driver', secondary=vendor_drivers, lazy='select',
                              backref=db.backref('vendors', lazy=True))
    vehicles = db.relationship('Vehicle', secondary=vendor_vehicles, lazy='select',
                               backref=db.backref('vendors', lazy=True))
    exports = db.relationship('Export', backref='vendor', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'email': self.email,
            'mobileNo': self.mobile_no,
            'businessName': self.business_name,
            'state': self.state,
            'district': self.district,
        }

    def __repr__(self):
        return f'<Vendor {self.business_name}>'

class Driver(db.Model):
    __tablename__ = 'drivers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    mobile_no = db.Column(db.String(20), nullable=False)
    license_no = db.Column(db.String(50), nullable=False)
    state = db.Column(db.String(100), nullable=False)
    district = db.Column(db.String(100), nullable=False)

    expo_push_token = db.Column(db.String(255))

    # Work history, maintained by the work-history ledger only
    work = db.Column(db.Text)  # JSON list of work entries
    work_dates = db.Column(db.Text)  # JSON list of booked ISO dates

    created_at = db.Column(db.DateTime, default=get_utc_time_naive)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    # Relationships
    exports = db.relationship('Export', backref='driver', lazy=True)

    def get_work(self):
        """Get list of work entries"""
        return _load_json_list(self.work)

    def set_work(self, entries):
        self.work = json.dumps(entries or [])

    def get_work_dates(self):
        """Get flat list of booked dates (ISO strings, duplicates kept)"""
        return _load_json_list(self.work_dates)

    def set_work_dates(self, dates):
        self.work_dates = json.dumps(dates or [])

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'mobileNo': self.mobile_no}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'email': self.email,
            'mobileNo': self.mobile_no,
            'licenseNo': self.license_no,
            'state': self.state,
            'district': self.district,
            'work': self.get_work(),
            'workDates': self.get_work_dates(),
        }

    def __repr__(self):
        return f'<Driver {self.name}>'

class Vehicle(db.Model):
    __tablename__ = 'vehicles'

    # Vendor-supplied numeric identifier
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    vehicle_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    brand = db.Column(db.String(50))
    capacity = db.Column(db.String(50))

    # Name of the telemetry device (joins on Device.device_name)
    device_id = db.Column(db.String(100), unique=True)

    created_at = db.Column(db.DateTime, default=get_utc_time_naive)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    exports = db.relationship('Export', backref='vehicle', lazy=True)

    @property
    def device(self):
        if not self.device_id:
            return None
        return Device.query.filter_by(device_name=self.device_id).first()

    def to_summary(self):
        return {'id': self.id, 'vehicleNumber': self.vehicle_number, 'brand': self.brand}

    def to_dict(self):
        return {
            'id': self.id,
            'vehicleNumber': self.vehicle_number,
            'brand': self.brand,
            'capacity': self.capacity,
            'deviceId': self.device_id,
        }

    def __repr__(self):
        return f'<Vehicle {self.vehicle_number}>'

class Device(db.Model):
    __tablename__ = 'devices'

    id = db.Column(db.Integer, primary_key=True)
    device_name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    is_assigned = db.Column(db.Boolean, default=False, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=get_utc_time_naive)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    # Time series, oldest first
    locations = db.relationship('DeviceLocation', backref='device', lazy=True,
                                order_by='DeviceLocation.timestamp',
                                cascade='all, delete-orphan')
    readings = db.relationship('SensorReading', backref='device', lazy=True,
                               order_by='SensorReading.timestamp',
                               cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'deviceName': self.device_name,
            'isAssigned': self.is_assigned,
        }

    def __repr__(self):
        return f'<Device {self.device_name}>'

class DeviceLocation(db.Model):
    __tablename__ = 'device_locations'

    id = db.Column(db.Integer, primary_key=True)
    device_id = db.Column(db.Integer, db.ForeignKey('devices.id'), nullable=False, index=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=get_utc_time_naive)

    __table_args__ = (
        Index('idx_device_locations_device_time', 'device_id', 'timestamp'),
        CheckConstraint('latitude >= -90 AND latitude <= 90', name='check_device_latitude_range'),
        CheckConstraint('longitude >= -180 AND longitude <= 180', name='check_device_longitude_range'),
    )

    def to_dict(self):
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'timestamp': _isoformat(self.timestamp),
        }

    def __repr__(self):
        return f'<DeviceLocation device:{self.device_id} at {self.latitude},{self.longitude}>'

class SensorReading(db.Model):
    __tablename__ = 'sensor_readings'

    id = db.Column(db.Integer, primary_key=True)
    device_id = db.Column(db.Integer, db.ForeignKey('devices.id'), nullable=False, index=True)
    humidity = db.Column(db.Float, nullable=False)
    temperature = db.Column(db.Float, nullable=False)
    ethylene_level = db.Column(db.Float, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=get_utc_time_naive)

    __table_args__ = (
        Index('idx_sensor_readings_device_time', 'device_id', 'timestamp'),
    )

    def to_dict(self):
        return {
            'humidity': self.humidity,
            'temperature': self.temperature,
            'ethyleneLevel': self.ethylene_level,
            'timestamp': _isoformat(self.timestamp),
        }

    def __repr__(self):
        return f'<SensorReading device:{self.device_id} {self.temperature}C>'

class Export(db.Model):
    __tablename__ = 'exports'

    id = db.Column(db.Integer, primary_key=True)

    # Core relationships
    vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id'), nullable=False, index=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id'), nullable=False, index=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False, index=True)

    # Cargo
    item_name = db.Column(db.String(150), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    cost_price = db.Column(db.Float, nullable=False)
    sale_price = db.Column(db.Float, nullable=False)

    # Booking window
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)

    # Locations
    start_latitude = db.Column(db.Float, nullable=False)
    start_longitude = db.Column(db.Float, nullable=False)
    end_latitude = db.Column(db.Float, nullable=False)
    end_longitude = db.Column(db.Float, nullable=False)
    intermediate_locations = db.Column(db.Text)  # JSON list of {latitude, longitude}
    routes = db.Column(db.Text)  # JSON list of district names

    # Status and driver decision
    status = db.Column(db.Enum(ExportStatus), nullable=False, default=ExportStatus.PENDING, index=True)
    driver_response = db.Column(db.Enum(DriverResponse), nullable=False, default=DriverResponse.PENDING)

    created_at = db.Column(db.DateTime, default=get_utc_time_naive, index=True)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    __table_args__ = (
        Index('idx_export_vendor_status', 'vendor_id', 'status'),
        Index('idx_export_window', 'start_date', 'end_date'),
        CheckConstraint('end_date >= start_date', name='check_export_window'),
    )

    @property
    def start_location(self):
        return {'latitude': self.start_latitude, 'longitude': self.start_longitude}

    @property
    def end_location(self):
        return {'latitude': self.end_latitude, 'longitude': self.end_longitude}

    def get_intermediate_locations(self):
        return _load_json_list(self.intermediate_locations)

    def set_intermediate_locations(self, points):
        self.intermediate_locations = json.dumps(points or [])

    def get_routes(self):
        return _load_json_list(self.routes)

    def set_routes(self, names):
        self.routes = json.dumps(names or [])

    def to_dict(self):
        return {
            'id': self.id,
            'vendorId': self.vendor_id,
            'driverId': self.driver_id,
            'vehicleId': self.vehicle_id,
            'driver': self.driver.to_summary() if self.driver else None,
            'vehicle': self.vehicle.to_summary() if self.vehicle else None,
            'itemName': self.item_name,
            'quantity': self.quantity,
            'costPrice': self.cost_price,
            'salePrice': self.sale_price,
            'startDate': _isoformat(self.start_date),
            'endDate': _isoformat(self.end_date),
            'startLocation': self.start_location,
            'endLocation': self.end_location,
            'intermediateLocations': self.get_intermediate_locations(),
            'routes': self.get_routes(),
            'status': self.status.value if self.status else None,
            'driverResponse': self.driver_response.value if self.driver_response else None,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<Export {self.id} {self.item_name}>'

class Customer(db.Model):
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    mobile_no = db.Column(db.String(20), nullable=False)
    state = db.Column(db.String(100), nullable=False)
    district = db.Column(db.String(100), nullable=False)

    expo_push_token = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=get_utc_time_naive)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'email': self.email,
            'mobileNo': self.mobile_no,
            'state': self.state,
            'district': self.district,
        }

    def to_contact(self):
        return {'id': self.id, 'name': self.name, 'email': self.email, 'mobileNo': self.mobile_no}

    def __repr__(self):
        return f'<Customer {self.username}>'

class ServiceRequest(db.Model):
    """A customer's question or complaint addressed to a vendor"""
    __tablename__ = 'service_requests'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id'), nullable=False)

    service_type = db.Column(db.Enum(ServiceType), nullable=False, default=ServiceType.OTHER)
    message = db.Column(db.String(1000), nullable=False)
    status = db.Column(db.Enum(ServiceRequestStatus), nullable=False,
                       default=ServiceRequestStatus.PENDING)
    response = db.Column(db.String(1000))  # rejection reason or completion note

    created_at = db.Column(db.DateTime, default=get_utc_time_naive)
    updated_at = db.Column(db.DateTime, default=get_utc_time_naive, onupdate=get_utc_time_naive)

    customer = db.relationship('Customer', backref=db.backref('service_requests', lazy=True))
    vendor = db.relationship('Vendor', backref=db.backref('service_requests', lazy=True))

    __table_args__ = (
        Index('idx_service_request_vendor_created', 'vendor_id', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'vendorId': self.vendor_id,
            'customerId': self.customer_id,
            'customer': self.customer.to_contact() if self.customer else None,
            'serviceType': self.service_type.value if self.service_type else None,
            'message': self.message,
            'status': self.status.value if self.status else None,
            'response': self.response,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f'<ServiceRequest {self.id} for vendor {self.vendor_id}>'


# Role tag -> account model, for lookups that span user kinds
USER_MODELS = {
    UserRole.VENDOR: Vendor,
    UserRole.DRIVER: Driver,
    UserRole.CUSTOMER: Customer,
}
