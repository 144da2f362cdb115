"""
Pytest configuration and fixtures for the FreshGoods backend
"""

import pytest

from app import create_app, db
from tests.factories import VendorFactory, DriverFactory, VehicleFactory, DeviceFactory


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'PUSH_NOTIFICATIONS_ENABLED': False,
        'ORS_API_KEY': 'test-ors-key',
        'ROUTE_LOOKUP_TIMEOUT': 1,
        'ROUTE_LOOKUP_BUDGET': 5,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Database session bound to the test app"""
    yield db.session
    db.session.rollback()


@pytest.fixture
def fleet(db_session):
    """
    A vendor whose pool holds drivers D and E and vehicles V and W,
    each vehicle bound to its own device.
    """
    vendor = VendorFactory()
    driver_d = DriverFactory(name='D')
    driver_e = DriverFactory(name='E')
    device_v = DeviceFactory(device_name='DEV-7', is_assigned=True)
    device_w = DeviceFactory(device_name='DEV-8', is_assigned=True)
    vehicle_v = VehicleFactory(vehicle_number='TN33V0001', device_id=device_v.device_name)
    vehicle_w = VehicleFactory(vehicle_number='TN33W0002', device_id=device_w.device_name)

    vendor.drivers.extend([driver_d, driver_e])
    vendor.vehicles.extend([vehicle_v, vehicle_w])
    db_session.commit()

    return {
        'vendor': vendor,
        'D': driver_d,
        'E': driver_e,
        'V': vehicle_v,
        'W': vehicle_w,
        'DEV-7': device_v,
        'DEV-8': device_w,
    }

