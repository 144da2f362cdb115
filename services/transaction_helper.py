"""
Transaction Helper Service

Wraps service operations in a database transaction:
- Commit on success, rollback on a failed service result
- Retry on dropped connections
- Connection health checks for maintenance commands
"""

from functools import wraps
from typing import Callable, List, Tuple
import logging
import time
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, DisconnectionError
from app import db

logger = logging.getLogger(__name__)

class TransactionHelper:
    """Helper class for managing database transactions safely"""

    @staticmethod
    def with_transaction(func: Callable) -> Callable:
        """
        Decorator that wraps a function in a database transaction.
        Automatically handles commit/rollback and retries when the connection drops.

        Usage:
            @TransactionHelper.with_transaction
            def accept_export(self, export_id):
                # Your database operations here
                return True, None, export
        """
        @wraps(func)
        def wrapper(*args, **kwargs):
            max_retries = 3
            for attempt in range(max_retries):
                try:
                    result = func(*args, **kwargs)

                    # Handle service result pattern: (success: bool, error, ...)
                    if isinstance(result, tuple) and len(result) >= 2 and isinstance(result[0], bool):
                        if result[0]:
                            db.session.commit()
                        else:
                            db.session.rollback()
                        return result

                    # Non-service pattern, commit normally
                    db.session.commit()
                    return result

                except (OperationalError, DisconnectionError) as e:
                    db.session.rollback()
                    logger.error(f"Transaction error in {func.__name__} (attempt {attempt + 1}/{max_retries}): {str(e)}")

                    if attempt < max_retries - 1:
                        # Wait before retry to handle temporary connection issues
                        time.sleep(0.5 * (2 ** attempt))
                        continue
                    logger.error(f"Transaction failed after {max_retries} attempts: {str(e)}")
                    raise
                except Exception as e:
                    db.session.rollback()
                    logger.error(f"Transaction error in {func.__name__}: {str(e)}")
                    raise
            return None
        return wrapper

    @staticmethod
    def validate_transaction_safety(operation_name: str) -> Tuple[bool, List[str]]:
        """
        Validate that the database is in a safe state for transactions.

        Args:
            operation_name: Name of the operation being performed

        Returns:
            Tuple[bool, List[str]]: (is_safe, list_of_warnings)
        """
        warnings = []

        try:
            # Check connection health
            db.session.execute(text('SELECT 1'))

            # Check for uncommitted transactions
            if db.session.new or db.session.dirty or db.session.deleted:
                warnings.append(f"Uncommitted changes detected before {operation_name}")

            return len(warnings) == 0, warnings

        except Exception as e:
            warnings.append(f"Transaction safety check failed: {str(e)}")
            return False, warnings
