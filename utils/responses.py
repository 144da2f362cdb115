"""
JSON response helpers shared by the API blueprints
"""
from flask import jsonify, request


def error_response(error):
    """Render a ServiceError as {'error', 'kind'} with its HTTP status"""
    return jsonify(error.to_dict()), error.status_code


def json_body():
    """Request body as a dict; missing or malformed JSON reads as empty"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
