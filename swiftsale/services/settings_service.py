"""Application settings stored as key/value records."""
from typing import Any, Dict, Optional

from swiftsale.exceptions import ValidationError
from swiftsale.models import Collections


def get_setting(store, key: str, default: Optional[str] = None) -> Optional[str]:
    for setting in store.get_all(Collections.SETTINGS):
        if setting.get('key') == key:
            return setting.get('value')
    return default


def get_settings(store) -> Dict[str, Any]:
    """All settings as a dict (first record wins for duplicated keys)."""
    settings: Dict[str, Any] = {}
    for setting in store.get_all(Collections.SETTINGS):
        settings.setdefault(setting.get('key'), setting.get('value'))
    return settings


def set_setting(store, key: str, value: Any) -> Dict[str, Any]:
    """Update the setting if the key exists, insert it otherwise."""
    if not isinstance(key, str) or not key.strip():
        raise ValidationError('Setting key is required', payload={'field': 'key'})
    if isinstance(value, (dict, list)):
        raise ValidationError(f'Setting {key} must be a scalar value', payload={'field': key})
    with store.transaction():
        if any(s.get('key') == key for s in store.get_all(Collections.SETTINGS)):
            return store.update(Collections.SETTINGS, {'value': value}, 'key', key)
        return store.insert(Collections.SETTINGS, {'key': key, 'value': value})


def update_settings(store, values: Dict[str, Any]) -> Dict[str, Any]:
    """Apply several settings at once; all or none are saved."""
    with store.transaction():
        for key, value in values.items():
            set_setting(store, key, value)
    return get_settings(store)
