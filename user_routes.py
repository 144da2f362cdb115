"""
User API routes
Push-token registration for vendor, driver and customer apps
"""

from flask import Blueprint, jsonify

from services.notification_service import NotificationService
from utils.responses import error_response, json_body

user_bp = Blueprint('user', __name__)

notification_service = NotificationService()


@user_bp.route('/token', methods=['POST'])
def register_token():
    """Store an Expo push token: {role, userId, pushToken}"""
    data = json_body()
    success, error, _ = notification_service.register_push_token(
        data.get('role'), data.get('userId'), data.get('pushToken'))
    if not success:
        return error_response(error)
    return jsonify({'success': True, 'message': 'Push token saved successfully'})
