"""
Notification Service

Sends Expo push notifications for export lifecycle events and stores the
push tokens that mobile clients register.

Delivery is best-effort: a failed push is logged and reported as False,
it never fails the operation that triggered it.
"""

from typing import Optional, Dict, Any, Tuple
import logging
import requests
from flask import current_app
from app import db
from models import UserRole, USER_MODELS
from .transaction_helper import TransactionHelper
from .errors import validation_error, not_found, internal_error

logger = logging.getLogger(__name__)

EXPO_TOKEN_PREFIX = 'ExponentPushToken'

def is_valid_push_token(token: Optional[str]) -> bool:
    return bool(token) and token.startswith(EXPO_TOKEN_PREFIX)


class NotificationService:
    """Service class for push notifications"""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def _post(self, payload) -> Optional[Any]:
        if not current_app.config.get('PUSH_NOTIFICATIONS_ENABLED', True):
            logger.debug("Push notifications disabled, skipping send")
            return None
        try:
            response = self.session.post(
                current_app.config['EXPO_PUSH_URL'],
                json=payload,
                headers={
                    'Accept': 'application/json',
                    'Accept-Encoding': 'gzip, deflate',
                    'Content-Type': 'application/json',
                },
                timeout=current_app.config.get('PUSH_TIMEOUT', 5)
            )
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Error sending push notification: {str(e)}")
            return None

    def send_push(self, token: Optional[str], title: str, body: str,
                  data: Optional[Dict[str, Any]] = None, channel_id: str = 'default') -> bool:
        """
        Send one push notification.

        Returns:
            True if the push service accepted the message
        """
        if not is_valid_push_token(token):
            logger.info(f"Skipping push '{title}': no valid push token")
            return False

        result = self._post({
            'to': token,
            'sound': 'default',
            'title': title,
            'body': body,
            'data': data or {},
            'channelId': channel_id,
            'priority': 'high',
        })
        if result is None:
            return False
        logger.info(f"Push notification sent: {title}")
        return True

    def notify_export_assigned(self, export) -> bool:
        return self.send_push(
            export.driver.expo_push_token if export.driver else None,
            'New Export Assigned',
            f"{export.item_name} from {export.start_date.date()} to {export.end_date.date()}",
            {'type': 'export_assigned', 'exportId': export.id},
            'orders'
        )

    def notify_export_accepted(self, export) -> bool:
        driver_name = export.driver.name if export.driver else 'Driver'
        return self.send_push(
            export.vendor.expo_push_token if export.vendor else None,
            'Export Accepted',
            f"{driver_name} accepted the {export.item_name} export",
            {'type': 'export_accepted', 'exportId': export.id},
            'orders'
        )

    def notify_export_rejected(self, vendor, export_id: int, item_name: str,
                               driver_name: str, reason: Optional[str]) -> bool:
        body = f"{driver_name} rejected the {item_name} export"
        if reason:
            body = f"{body}: {reason}"
        return self.send_push(
            vendor.expo_push_token if vendor else None,
            'Export Rejected',
            body,
            {'type': 'export_rejected', 'exportId': export_id, 'reason': reason},
            'orders'
        )

    @TransactionHelper.with_transaction
    def register_push_token(self, role: str, user_id: int,
                            token: str) -> Tuple[bool, Optional[Any], Optional[Dict[str, Any]]]:
        """
        Store a push token on the account identified by role and id.

        Args:
            role: 'vendor', 'driver' or 'customer'
            user_id: Account id within that role
            token: Expo push token

        Returns:
            tuple: (success, error, data)
        """
        try:
            if not user_id or not token:
                return False, validation_error("Missing userId or pushToken"), None

            try:
                user_role = UserRole(role)
            except ValueError:
                return False, validation_error(
                    f"Invalid role '{role}', expected one of: "
                    f"{', '.join(r.value for r in UserRole)}"), None

            try:
                user_id = int(user_id)
            except (TypeError, ValueError):
                return False, validation_error("userId must be a number"), None

            user = db.session.get(USER_MODELS[user_role], user_id)
            if not user:
                return False, not_found("User not found"), None

            if not is_valid_push_token(token):
                logger.warning(f"Storing non-Expo push token for {user_role.value} {user_id}")

            user.expo_push_token = token
            logger.info(f"Push token saved for {user_role.value} {user_id}")
            return True, None, {'role': user_role.value, 'userId': user_id}

        except Exception as e:
            logger.error(f"Error saving push token for {role} {user_id}: {str(e)}")
            return False, internal_error(f"Saving push token failed: {str(e)}"), None
