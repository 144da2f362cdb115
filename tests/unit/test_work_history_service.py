"""
Unit tests for the driver work-history ledger
"""

from datetime import datetime, date

from services.work_history_service import WorkHistoryService
from utils.date_utils import expand_days
from tests.factories import DriverFactory, ExportFactory


class TestExpandDays:

    def test_inclusive_of_both_ends(self):
        days = expand_days(datetime(2024, 6, 1, 8), datetime(2024, 6, 3, 6))
        assert days == ['2024-06-01', '2024-06-02', '2024-06-03']

    def test_same_day_window(self):
        assert expand_days(datetime(2024, 6, 2, 8), datetime(2024, 6, 2, 20)) == ['2024-06-02']

    def test_crosses_month_end(self):
        days = expand_days(datetime(2024, 2, 28), datetime(2024, 3, 1))
        assert days == ['2024-02-28', '2024-02-29', '2024-03-01']


class TestWorkHistoryService:
    """Test WorkHistoryService record/remove and reconciliation"""

    def test_record_assignment(self, db_session):
        driver = DriverFactory()
        service = WorkHistoryService()

        service.record_assignment(driver, 1, datetime(2024, 6, 1, 8), datetime(2024, 6, 3, 18),
                                  salary=1500, export_id=10)
        db_session.commit()

        work = driver.get_work()
        assert len(work) == 1
        assert work[0]['exportId'] == 10
        assert work[0]['vendorId'] == 1
        assert work[0]['salary'] == 1500
        assert work[0]['isPaid'] is False
        assert driver.get_work_dates() == ['2024-06-01', '2024-06-02', '2024-06-03']

    def test_remove_keeps_other_exports_days(self, db_session):
        """Overlapping bookings keep one copy of the shared day after a removal"""
        driver = DriverFactory()
        service = WorkHistoryService()
        service.record_assignment(driver, 1, datetime(2024, 6, 1), datetime(2024, 6, 3), export_id=1)
        service.record_assignment(driver, 1, datetime(2024, 6, 3), datetime(2024, 6, 4), export_id=2)

        removed = service.remove_assignment(driver, 1, datetime(2024, 6, 1), datetime(2024, 6, 3),
                                            export_id=1)
        db_session.commit()

        assert removed is True
        assert [e['exportId'] for e in driver.get_work()] == [2]
        assert sorted(driver.get_work_dates()) == ['2024-06-03', '2024-06-04']

    def test_remove_matches_legacy_entry_by_vendor_and_window(self, db_session):
        driver = DriverFactory()
        driver.set_work([{
            'vendorId': 5,
            'workDuration': [{'startDate': '2024-06-01T00:00:00', 'endDate': '2024-06-02T00:00:00'}],
            'salary': 100,
            'isPaid': False,
        }])
        driver.set_work_dates(['2024-06-01', '2024-06-02'])

        removed = WorkHistoryService().remove_assignment(
            driver, 5, datetime(2024, 6, 1), datetime(2024, 6, 2), export_id=42)

        assert removed is True
        assert driver.get_work() == []
        assert driver.get_work_dates() == []

    def test_booked_dates_and_lookup(self, db_session):
        driver = DriverFactory(work_dates='["2024-06-02", "2024-06-01"]')
        service = WorkHistoryService()

        assert service.booked_dates(driver.id) == ['2024-06-01', '2024-06-02']
        assert service.is_driver_booked(driver.id, date(2024, 6, 2)) is True
        assert service.is_driver_booked(driver.id, date(2024, 6, 5)) is False
        assert service.booked_dates(9999) is None

    def test_verify_reports_drift(self, db_session):
        export = ExportFactory(start_date=datetime(2024, 6, 1), end_date=datetime(2024, 6, 2))
        export.driver.set_work_dates(['2024-06-01', '2024-06-09'])
        db_session.commit()

        success, error, report = WorkHistoryService().verify_driver_history(export.driver_id)

        assert success is True
        assert report['consistent'] is False
        assert report['missingDates'] == ['2024-06-02']
        assert report['extraDates'] == ['2024-06-09']
        assert report['missingExports'] == [export.id]

    def test_rebuild_restores_dates_and_paid_flags(self, db_session):
        export = ExportFactory(start_date=datetime(2024, 6, 1), end_date=datetime(2024, 6, 2))
        driver = export.driver
        driver.set_work([
            {'exportId': export.id, 'vendorId': export.vendor_id, 'workDuration': [],
             'salary': 900, 'isPaid': True},
            {'exportId': 777, 'vendorId': export.vendor_id, 'workDuration': [],
             'salary': 10, 'isPaid': False},
        ])
        driver.set_work_dates(['2024-05-30'])
        db_session.commit()
        service = WorkHistoryService()

        success, error, rebuilt = service.rebuild_driver_history(driver.id)

        assert success is True
        assert error is None
        work = rebuilt.get_work()
        assert len(work) == 1
        assert work[0]['exportId'] == export.id
        assert work[0]['isPaid'] is True
        assert work[0]['salary'] == 900
        assert rebuilt.get_work_dates() == ['2024-06-01', '2024-06-02']
        assert service.verify_driver_history(driver.id)[2]['consistent'] is True

    def test_rebuild_unknown_driver(self, app):
        success, error, data = WorkHistoryService().rebuild_driver_history(9999)

        assert success is False
        assert error.kind.value == 'not_found'
