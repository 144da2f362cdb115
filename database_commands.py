#!/usr/bin/env python3
"""
Database Management Commands for FreshGoods

Maintenance commands for the logistics database:
- Connection and table status
- Driver work-history verification against exports
- Driver work-history rebuild from exports

Usage:
    python database_commands.py --help
    python database_commands.py status
    python database_commands.py verify-history [--driver-id ID]
    python database_commands.py rebuild-history [--driver-id ID]
"""

import sys
import argparse
import logging
from datetime import datetime
from sqlalchemy import inspect, text
from app import create_app, db
from services.transaction_helper import TransactionHelper

logger = logging.getLogger(__name__)

def setup_app_context(app=None):
    """Setup Flask application context for database operations."""
    if app is None:
        app = create_app()
    return app.app_context()

def _driver_ids(args):
    from models import Driver
    if args.driver_id:
        return [args.driver_id]
    return [row.id for row in Driver.query.with_entities(Driver.id).order_by(Driver.id).all()]

def cmd_status(args, app=None):
    """Display database connection and table statistics."""
    with setup_app_context(app):
        print("=" * 60)
        print("DATABASE STATUS REPORT")
        print("=" * 60)

        try:
            db.session.execute(text("SELECT 1"))
            print("Connection Status: HEALTHY")
        except Exception as e:
            print(f"Connection Status: FAILED ({str(e)})")
            return 1

        is_safe, warnings = TransactionHelper.validate_transaction_safety('status')
        print(f"Transaction Safety: {'OK' if is_safe else 'WARNINGS'}")
        for warning in warnings:
            print(f"  {warning}")

        print(f"Engine: {db.engine.url.get_backend_name()}")
        print("\nTable Statistics:")
        for table in sorted(inspect(db.engine).get_table_names()):
            count = db.session.execute(text(f'SELECT COUNT(*) FROM "{table}"')).scalar()
            print(f"  {table}: {count} records")

        print(f"\nReport Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        return 0

def cmd_verify_history(args, app=None):
    """Compare each driver's stored work history with their exports."""
    from services.work_history_service import WorkHistoryService

    with setup_app_context(app):
        service = WorkHistoryService()
        drifted = 0
        for driver_id in _driver_ids(args):
            success, error, report = service.verify_driver_history(driver_id)
            if not success:
                print(f"Driver {driver_id}: {error}")
                drifted += 1
                continue
            if report['consistent']:
                print(f"Driver {driver_id}: consistent")
                continue
            drifted += 1
            print(f"Driver {driver_id}: DRIFT")
            for key in ('missingDates', 'extraDates', 'missingExports', 'staleExports'):
                if report[key]:
                    print(f"  {key}: {', '.join(str(v) for v in report[key])}")

        if drifted:
            print(f"\n{drifted} driver(s) need attention; run rebuild-history to repair")
            return 1
        print("\nAll work histories match their exports")
        return 0

def cmd_rebuild_history(args, app=None):
    """Recompute work history from exports, keeping salaries and paid flags."""
    from services.work_history_service import WorkHistoryService

    with setup_app_context(app):
        service = WorkHistoryService()
        failures = 0
        for driver_id in _driver_ids(args):
            success, error, driver = service.rebuild_driver_history(driver_id)
            if success:
                print(f"Driver {driver_id}: rebuilt ({len(driver.get_work())} entries)")
            else:
                failures += 1
                print(f"Driver {driver_id}: FAILED - {error}")
        return 1 if failures else 0

COMMANDS = {
    'status': cmd_status,
    'verify-history': cmd_verify_history,
    'rebuild-history': cmd_rebuild_history,
}

def build_parser():
    parser = argparse.ArgumentParser(
        description="Database Management Commands for FreshGoods",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('status', help='Display database status')

    verify_parser = subparsers.add_parser('verify-history', help='Check driver work histories')
    verify_parser.add_argument('--driver-id', type=int, help='Only check this driver')

    rebuild_parser = subparsers.add_parser('rebuild-history', help='Rebuild driver work histories')
    rebuild_parser.add_argument('--driver-id', type=int, help='Only rebuild this driver')

    return parser

def main(argv=None, app=None):
    """Main command line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args, app)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        logger.exception(f"Command '{args.command}' failed")
        print(f"Command failed: {str(e)}")
        return 1

if __name__ == '__main__':
    sys.exit(main())
