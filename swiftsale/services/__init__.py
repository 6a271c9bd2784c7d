"""Service accessors bound to the current Flask app."""
from flask import current_app


def get_product_service():
    return current_app.extensions['product_service']


def get_sale_service():
    return current_app.extensions['sale_service']


def get_activity_log():
    return current_app.extensions['activity']
