"""Settings blueprint."""
from flask import Blueprint, jsonify

from swiftsale.database import get_store
from swiftsale.middleware import require_login
from swiftsale.services import settings_service
from swiftsale.utils.request_args import json_body

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@settings_bp.route('', methods=['GET'])
@require_login
def list_settings():
    return jsonify(settings_service.get_settings(get_store()))


@settings_bp.route('', methods=['PUT'])
@require_login
def update_settings():
    return jsonify(settings_service.update_settings(get_store(), json_body()))
