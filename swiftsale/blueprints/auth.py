"""Authentication blueprint (session login for the JSON API)."""
from flask import Blueprint, jsonify, session, g

from swiftsale.database import get_store
from swiftsale.services import get_activity_log
from swiftsale.services.auth_service import authenticate
from swiftsale.utils.request_args import json_body

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Check credentials and store the user id in the session."""
    data = json_body()
    user = authenticate(get_store(), data.get('email', ''), data.get('password', ''), activity=get_activity_log())
    session.clear()
    session['user_id'] = user['id']
    return jsonify({'status': 'ok', 'user': user})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'ok'})


@auth_bp.route('/me', methods=['GET'])
def me():
    return jsonify({'user': g.get('user')})
