"""
Work History Service

Maintains each driver's work ledger: one work entry per export plus a flat
list of booked calendar days. The day list is a multiset, so a day booked by
two exports appears twice and removing one export leaves the other's day.

Only the export lifecycle calls record/remove; rebuild and verify recompute
the ledger from the exports themselves.
"""

from typing import Optional, Dict, Any, List, Tuple
import logging
from collections import Counter
from datetime import date, datetime
from app import db
from models import Driver, Export
from utils.date_utils import expand_days
from .transaction_helper import TransactionHelper
from .errors import not_found, internal_error

logger = logging.getLogger(__name__)


def _window_dict(start: datetime, end: datetime) -> Dict[str, str]:
    return {'startDate': start.isoformat(), 'endDate': end.isoformat()}


def _entry_matches(entry: Dict[str, Any], vendor_id: int, window: Dict[str, str],
                   export_id: Optional[int]) -> bool:
    if export_id is not None and entry.get('exportId') is not None:
        return entry.get('exportId') == export_id
    return entry.get('vendorId') == vendor_id and window in entry.get('workDuration', [])


class WorkHistoryService:
    """Service class for the driver work-history ledger"""

    def record_assignment(self, driver: Driver, vendor_id: int, start: datetime,
                          end: datetime, salary: float = 0,
                          export_id: Optional[int] = None) -> None:
        """
        Append a work entry and one booked day per calendar day of the window.

        Runs inside the caller's transaction; nothing is committed here.
        """
        entries = driver.get_work()
        entries.append({
            'exportId': export_id,
            'vendorId': vendor_id,
            'workDuration': [_window_dict(start, end)],
            'salary': salary,
            'isPaid': False,
        })
        driver.set_work(entries)

        days = driver.get_work_dates()
        days.extend(expand_days(start, end))
        driver.set_work_dates(days)

        logger.info(f"Recorded work for driver {driver.id} export {export_id}: "
                    f"{start.date()} - {end.date()}")

    def remove_assignment(self, driver: Driver, vendor_id: int, start: datetime,
                          end: datetime, export_id: Optional[int] = None) -> bool:
        """
        Remove the work entry for an export and one occurrence of each of its days.

        Returns:
            True if a matching work entry was found
        """
        window = _window_dict(start, end)
        entries = driver.get_work()
        removed = False
        kept = []
        for entry in entries:
            if not removed and _entry_matches(entry, vendor_id, window, export_id):
                removed = True
                continue
            kept.append(entry)
        driver.set_work(kept)

        days = driver.get_work_dates()
        for day in expand_days(start, end):
            if day in days:
                days.remove(day)
        driver.set_work_dates(days)

        if not removed:
            logger.warning(f"No work entry matched for driver {driver.id} export {export_id}")
        else:
            logger.info(f"Removed work for driver {driver.id} export {export_id}")
        return removed

    def booked_dates(self, driver_id: int) -> Optional[List[str]]:
        driver = db.session.get(Driver, driver_id)
        if not driver:
            return None
        return sorted(driver.get_work_dates())

    def is_driver_booked(self, driver_id: int, day: date) -> bool:
        dates = self.booked_dates(driver_id) or []
        return day.isoformat() in dates

    def expected_history(self, driver: Driver) -> Tuple[List[Dict[str, Any]], List[str]]:
        """
        Compute the ledger implied by the driver's exports.

        Paid flags and salaries of existing entries are carried over by export id.
        """
        previous = {entry.get('exportId'): entry for entry in driver.get_work()
                    if entry.get('exportId') is not None}

        entries = []
        days = []
        exports = Export.query.filter_by(driver_id=driver.id).order_by(Export.start_date).all()
        for export in exports:
            prior = previous.get(export.id, {})
            entries.append({
                'exportId': export.id,
                'vendorId': export.vendor_id,
                'workDuration': [_window_dict(export.start_date, export.end_date)],
                'salary': prior.get('salary', 0),
                'isPaid': prior.get('isPaid', False),
            })
            days.extend(expand_days(export.start_date, export.end_date))
        return entries, days

    def verify_driver_history(self, driver_id: int) -> Tuple[bool, Optional[Any], Optional[Dict[str, Any]]]:
        """
        Compare the stored ledger with the one implied by the driver's exports.

        Returns:
            tuple: (success, error, report) where report['consistent'] tells
            whether any drift was found
        """
        driver = db.session.get(Driver, driver_id)
        if not driver:
            return False, not_found(f"Driver {driver_id} not found"), None

        entries, days = self.expected_history(driver)
        stored = Counter(driver.get_work_dates())
        expected = Counter(days)

        stored_ids = sorted(e.get('exportId') for e in driver.get_work()
                            if e.get('exportId') is not None)
        expected_ids = sorted(e['exportId'] for e in entries)

        report = {
            'driverId': driver_id,
            'missingDates': sorted((expected - stored).elements()),
            'extraDates': sorted((stored - expected).elements()),
            'missingExports': sorted(set(expected_ids) - set(stored_ids)),
            'staleExports': sorted(set(stored_ids) - set(expected_ids)),
        }
        report['consistent'] = not any(
            report[key] for key in ('missingDates', 'extraDates', 'missingExports', 'staleExports')
        )
        return True, None, report

    @TransactionHelper.with_transaction
    def rebuild_driver_history(self, driver_id: int) -> Tuple[bool, Optional[Any], Optional[Driver]]:
        """Replace the stored ledger with the one implied by the driver's exports"""
        try:
            driver = db.session.get(Driver, driver_id, with_for_update=True, populate_existing=True)
            if not driver:
                return False, not_found(f"Driver {driver_id} not found"), None

            entries, days = self.expected_history(driver)
            driver.set_work(entries)
            driver.set_work_dates(days)

            logger.info(f"Rebuilt work history for driver {driver_id}: "
                        f"{len(entries)} entries, {len(days)} days")
            return True, None, driver

        except Exception as e:
            logger.error(f"Error rebuilding work history for driver {driver_id}: {str(e)}")
            return False, internal_error(f"Rebuild failed: {str(e)}"), None

