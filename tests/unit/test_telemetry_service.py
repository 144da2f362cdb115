"""
Unit tests for device telemetry and export waypoints
"""

from datetime import datetime

import pytest

from services.errors import ErrorKind
from services.telemetry_service import TelemetryService, classify
from tests.factories import (ExportFactory, VehicleFactory, SensorReadingFactory,
                             DeviceLocationFactory)


@pytest.fixture
def export(fleet):
    return ExportFactory(vendor=fleet['vendor'], driver=fleet['D'], vehicle=fleet['V'])


@pytest.fixture
def readings(fleet):
    device = fleet['DEV-7']
    return [
        SensorReadingFactory(device=device, timestamp=datetime(2024, 6, 1, 8, 0), temperature=21.0),
        SensorReadingFactory(device=device, timestamp=datetime(2024, 6, 2, 8, 0), temperature=25.0),
        SensorReadingFactory(device=device, timestamp=datetime(2024, 6, 3, 23, 30), temperature=27.5),
    ]


class TestSensorSeries:
    """Test sensor reads and date filters"""

    def test_single_date_selects_that_day(self, export, readings):
        success, error, series = TelemetryService().get_sensor_series(export.id, date='2024-06-01')

        assert success is True
        assert [r.timestamp for r in series] == [datetime(2024, 6, 1, 8, 0)]

    def test_range_includes_whole_end_day(self, export, readings):
        success, error, series = TelemetryService().get_sensor_series(
            export.id, start_date='2024-06-02', end_date='2024-06-03')

        assert [r.temperature for r in series] == [25.0, 27.5]

    def test_date_wins_over_range(self, export, readings):
        success, error, series = TelemetryService().get_sensor_series(
            export.id, date='2024-06-02', start_date='2024-06-01', end_date='2024-06-03')

        assert [r.temperature for r in series] == [25.0]

    def test_no_filter_returns_everything_in_order(self, export, readings):
        success, error, series = TelemetryService().get_sensor_series(export.id)

        assert [r.temperature for r in series] == [21.0, 25.0, 27.5]

    def test_partial_range_rejected(self, export, readings):
        success, error, series = TelemetryService().get_sensor_series(export.id, start_date='2024-06-01')

        assert success is False
        assert error.kind == ErrorKind.VALIDATION

    def test_bad_date_rejected(self, export):
        success, error, _ = TelemetryService().get_sensor_series(export.id, date='June first')

        assert error.kind == ErrorKind.VALIDATION

    def test_missing_export(self, app):
        success, error, _ = TelemetryService().get_sensor_series(9999)

        assert error.kind == ErrorKind.NOT_FOUND
        assert error.message == "Export not found"

    def test_vehicle_without_device(self, fleet):
        vehicle = VehicleFactory(device_id=None)
        export = ExportFactory(vendor=fleet['vendor'], driver=fleet['D'], vehicle=vehicle)

        success, error, _ = TelemetryService().get_sensor_series(export.id)

        assert error.kind == ErrorKind.NOT_FOUND
        assert error.message == "Associated vehicle or device not found"

    def test_device_name_without_device(self, fleet):
        vehicle = VehicleFactory(device_id='GHOST-1')
        export = ExportFactory(vendor=fleet['vendor'], driver=fleet['D'], vehicle=vehicle)

        success, error, _ = TelemetryService().get_location_series(export.id)

        assert error.kind == ErrorKind.NOT_FOUND
        assert error.message == "Device not found"


class TestLocationSeries:

    def test_location_series(self, export, fleet):
        DeviceLocationFactory(device=fleet['DEV-7'], timestamp=datetime(2024, 6, 1, 9), latitude=11.5)
        DeviceLocationFactory(device=fleet['DEV-7'], timestamp=datetime(2024, 6, 1, 8), latitude=11.4)
        DeviceLocationFactory(device=fleet['DEV-8'], timestamp=datetime(2024, 6, 1, 8), latitude=12.0)

        success, error, series = TelemetryService().get_location_series(export.id)

        assert success is True
        assert [p.latitude for p in series] == [11.4, 11.5]


class TestIntermediateLocations:

    def test_append_and_read(self, export):
        service = TelemetryService()

        service.append_intermediate_location(export.id, {'latitude': 11.66, 'longitude': 78.14})
        success, error, updated = service.append_intermediate_location(
            export.id, {'latitude': '12.1', 'longitude': '79.0'})

        assert success is True
        assert updated.get_intermediate_locations() == [
            {'latitude': 11.66, 'longitude': 78.14},
            {'latitude': 12.1, 'longitude': 79.0},
        ]
        assert service.get_intermediate_locations(export.id)[2] == updated.get_intermediate_locations()

    @pytest.mark.parametrize('body', [
        {}, {'latitude': 11.0}, {'longitude': 78.0}, {'latitude': 'north', 'longitude': 78.0},
        {'latitude': 91, 'longitude': 78.0}, {'latitude': 11.0, 'longitude': -181},
    ])
    def test_invalid_points(self, export, body):
        success, error, _ = TelemetryService().append_intermediate_location(export.id, body)

        assert success is False
        assert error.kind == ErrorKind.VALIDATION
        assert TelemetryService().get_intermediate_locations(export.id)[2] == []

    def test_missing_export(self, app):
        success, error, _ = TelemetryService().append_intermediate_location(
            9999, {'latitude': 11.0, 'longitude': 78.0})
        assert error.kind == ErrorKind.NOT_FOUND
        assert TelemetryService().get_intermediate_locations(9999)[1].kind == ErrorKind.NOT_FOUND


class TestIngestion:

    def test_record_sensor_reading(self, fleet):
        service = TelemetryService()

        success, error, reading = service.record_sensor_reading('DEV-7', {
            'humidity': 48, 'temperature': 23.5, 'ethyleneLevel': 1.2,
            'timestamp': '2024-06-01T10:00:00Z',
        })

        assert success is True
        assert reading.timestamp == datetime(2024, 6, 1, 10, 0)
        assert fleet['DEV-7'].readings[-1].temperature == 23.5

    def test_record_location_defaults_timestamp(self, fleet):
        success, error, location = TelemetryService().record_location(
            'DEV-8', {'latitude': 12.0, 'longitude': 79.0})

        assert success is True
        assert location.timestamp is not None

    def test_record_for_unknown_device(self, app):
        success, error, _ = TelemetryService().record_location('NOPE', {'latitude': 1, 'longitude': 2})
        assert error.kind == ErrorKind.NOT_FOUND

    def test_record_reading_requires_all_metrics(self, fleet):
        success, error, _ = TelemetryService().record_sensor_reading('DEV-7', {'humidity': 40})
        assert error.kind == ErrorKind.VALIDATION


class TestHealthSummary:

    @pytest.mark.parametrize('value, expected', [
        (20, 'ok'), (24, 'ok'), (25, 'warning'), (26, 'warning'), (26.1, 'critical'), (None, None),
    ])
    def test_classify(self, value, expected):
        assert classify(value, (24, 26)) == expected

    def test_latest_reading_drives_status(self, export, readings):
        success, error, summary = TelemetryService().get_health_summary(export.id)

        assert success is True
        assert summary['readingCount'] == 3
        assert summary['latest']['temperature'] == 27.5
        assert summary['bands'] == {'temperature': 'critical', 'humidity': 'ok', 'ethyleneLevel': 'ok'}
        assert summary['status'] == 'critical'

    def test_day_without_readings(self, export, readings):
        success, error, summary = TelemetryService().get_health_summary(export.id, date='2024-07-01')

        assert success is True
        assert summary['latest'] is None
        assert summary['readingCount'] == 0
