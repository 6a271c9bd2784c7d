"""Middleware for authentication context."""
from functools import wraps
from flask import session, g, current_app, jsonify

from swiftsale.database import get_store
from swiftsale.models import Collections
from swiftsale.services.auth_service import public_user


def load_user():
    """
    Load current user into g (Flask's per-request global).

    Sets g.user to the user record (without password hash) or None.
    """
    g.user = None
    user_id = session.get('user_id')
    if not user_id:
        return
    user = get_store().get_by_id(Collections.USERS, user_id)
    if user is None:
        session.pop('user_id', None)
        return
    g.user = public_user(user)


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Returns a 401 JSON error if not authenticated and LOGIN_REQUIRED is on.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_app.config.get('LOGIN_REQUIRED', True) and g.get('user') is None:
            return jsonify({'status': 'error', 'message': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function
