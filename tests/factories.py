"""
factory_boy factories for the logistics models
"""

from datetime import datetime

import factory
from factory import Faker

from app import db
from models import (Vendor, Driver, Vehicle, Device, DeviceLocation, SensorReading,
                    Export, Customer, ServiceRequest, ExportStatus, DriverResponse,
                    ServiceRequestStatus, ServiceType)


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = db.session
        sqlalchemy_session_persistence = "commit"


class VendorFactory(BaseFactory):
    class Meta:
        model = Vendor

    name = Faker('name')
    username = factory.Sequence(lambda n: f"vendor{n}")
    email = factory.Sequence(lambda n: f"vendor{n}@example.com")
    mobile_no = factory.Sequence(lambda n: f"98400{n:05d}")
    business_name = factory.Sequence(lambda n: f"Fresh Farms {n}")
    state = "Tamil Nadu"
    district = "Erode"


class DriverFactory(BaseFactory):
    class Meta:
        model = Driver

    name = factory.Sequence(lambda n: f"Driver {n}")
    username = factory.Sequence(lambda n: f"driver{n}")
    email = factory.Sequence(lambda n: f"driver{n}@example.com")
    mobile_no = factory.Sequence(lambda n: f"97900{n:05d}")
    license_no = factory.Sequence(lambda n: f"TN33{n:08d}")
    state = "Tamil Nadu"
    district = "Salem"
    work = "[]"
    work_dates = "[]"


class DeviceFactory(BaseFactory):
    class Meta:
        model = Device

    device_name = factory.Sequence(lambda n: f"DEV-{n}")
    is_assigned = False


class VehicleFactory(BaseFactory):
    class Meta:
        model = Vehicle

    id = factory.Sequence(lambda n: 1000 + n)
    vehicle_number = factory.Sequence(lambda n: f"TN33AB{n:04d}")
    brand = "Tata"
    capacity = "2 tonnes"
    device_id = None


class CustomerFactory(BaseFactory):
    class Meta:
        model = Customer

    name = Faker('name')
    username = factory.Sequence(lambda n: f"customer{n}")
    email = factory.Sequence(lambda n: f"customer{n}@example.com")
    mobile_no = factory.Sequence(lambda n: f"96000{n:05d}")
    state = "Tamil Nadu"
    district = "Erode"


class ServiceRequestFactory(BaseFactory):
    class Meta:
        model = ServiceRequest

    customer = factory.SubFactory(CustomerFactory)
    vendor = factory.SubFactory(VendorFactory)
    service_type = ServiceType.DELIVERY_ISSUE
    message = "The tomatoes arrived bruised"
    status = ServiceRequestStatus.PENDING


class ExportFactory(BaseFactory):
    """Plain export row; does not touch the driver's work history"""

    class Meta:
        model = Export

    vendor = factory.SubFactory(VendorFactory)
    driver = factory.SubFactory(DriverFactory)
    vehicle = factory.SubFactory(VehicleFactory)
    item_name = "Tomatoes"
    quantity = 100
    cost_price = 2000
    sale_price = 2600
    start_date = datetime(2024, 6, 1, 8, 0)
    end_date = datetime(2024, 6, 3, 18, 0)
    start_latitude = 11.341
    start_longitude = 77.717
    end_latitude = 13.083
    end_longitude = 80.270
    intermediate_locations = "[]"
    routes = "[]"
    status = ExportStatus.PENDING
    driver_response = DriverResponse.PENDING


class DeviceLocationFactory(BaseFactory):
    class Meta:
        model = DeviceLocation

    device = factory.SubFactory(DeviceFactory)
    latitude = 11.341
    longitude = 77.717
    timestamp = datetime(2024, 6, 1, 8, 0)


class SensorReadingFactory(BaseFactory):
    class Meta:
        model = SensorReading

    device = factory.SubFactory(DeviceFactory)
    humidity = 45.0
    temperature = 22.0
    ethylene_level = 1.0
    timestamp = datetime(2024, 6, 1, 8, 0)


def export_payload(driver, vehicle, start='2024-06-01T08:00:00', end='2024-06-03T18:00:00', **overrides):
    """Valid export creation body for the given driver and vehicle"""
    payload = {
        'itemName': 'Tomatoes',
        'startDate': start,
        'endDate': end,
        'quantity': 100,
        'costPrice': 2000,
        'salePrice': 2600,
        'driver': driver.id,
        'vehicle': vehicle.id,
        'salary': 1500,
        'startLocation': {'latitude': 11.341, 'longitude': 77.717},
        'endLocation': {'latitude': 13.083, 'longitude': 80.270},
    }
    payload.update(overrides)
    return payload
