"""Dashboard blueprint."""
from flask import Blueprint, jsonify

from swiftsale.middleware import require_login
from swiftsale.services import get_product_service, get_sale_service

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


@dashboard_bp.route('/stats', methods=['GET'])
@require_login
def stats():
    return jsonify(get_sale_service().get_dashboard_stats())


@dashboard_bp.route('/low-stock', methods=['GET'])
@require_login
def low_stock():
    return jsonify(get_product_service().low_stock_products())
