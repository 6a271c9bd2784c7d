"""
Authentication service for user management.

Users live in the users collection with a scrypt password hash; plaintext
passwords are never stored.
"""
import logging
from typing import Any, Dict, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from swiftsale.exceptions import AuthenticationError, ValidationError
from swiftsale.models import Collections
from swiftsale.services.activity_log import NullActivityLog, AUTH

logger = logging.getLogger(__name__)

ROLES = ('admin', 'manager', 'cashier')


def public_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """User record without its password hash."""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k not in ('password', 'password_hash')}


def find_user_by_email(store, email: str) -> Optional[Dict[str, Any]]:
    email = (email or '').strip().lower()
    for user in store.get_all(Collections.USERS):
        if (user.get('email') or '').lower() == email:
            return user
    return None


def create_user(store, name: str, email: str, password: str, role: str = 'cashier', activity=None) -> Dict[str, Any]:
    """
    Create a user with a hashed password.

    Raises:
        ValidationError: If email/password are invalid, the role is unknown
            or the email is already registered
    """
    activity = activity or NullActivityLog()
    email = (email or '').strip().lower()
    if not email or '@' not in email:
        raise ValidationError('A valid email is required', payload={'field': 'email'})
    if not password or len(password) < 6:
        raise ValidationError('Password must be at least 6 characters', payload={'field': 'password'})
    if role not in ROLES:
        raise ValidationError(f'Unknown role: {role}', payload={'field': 'role'})

    with store.transaction():
        if find_user_by_email(store, email):
            raise ValidationError(f'Email already registered: {email}', payload={'field': 'email'})
        user = store.insert(Collections.USERS, {
            'name': name or email,
            'email': email,
            'password_hash': generate_password_hash(password, method='scrypt'),
            'role': role,
        })

    activity.log(AUTH, 'create_user', {'user_id': user['id'], 'email': email, 'role': role})
    return public_user(user)


def authenticate(store, email: str, password: str, activity=None) -> Dict[str, Any]:
    """
    Check credentials.

    Returns:
        The user record without its password hash

    Raises:
        AuthenticationError: If the email is unknown or the password is wrong
    """
    activity = activity or NullActivityLog()
    user = find_user_by_email(store, email)
    if not user or not user.get('password_hash') or not check_password_hash(user['password_hash'], password or ''):
        activity.log(AUTH, 'login_failed', {'email': email})
        logger.warning(f"Failed login attempt for {email}")
        raise AuthenticationError()
    activity.log(AUTH, 'login_success', {'user_id': user['id']})
    return public_user(user)


def create_default_user(store, email: str, password: str, activity=None) -> Optional[Dict[str, Any]]:
    """Create the default admin user unless it already exists."""
    if find_user_by_email(store, email):
        logger.info(f"Default user {email} already exists")
        return None
    return create_user(store, 'Admin User', email, password, role='admin', activity=activity)
