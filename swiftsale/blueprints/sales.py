"""Sales blueprint: checkout and sale history."""
from flask import Blueprint, jsonify, current_app, request

from swiftsale.middleware import require_login
from swiftsale.services import get_sale_service
from swiftsale.utils.request_args import int_arg, json_body

sales_bp = Blueprint('sales', __name__, url_prefix='/api/sales')


@sales_bp.route('', methods=['POST'])
@require_login
def create_sale():
    """Submit a sale request; returns the complete sale (header, customer, items)."""
    sale = get_sale_service().create_sale(json_body())
    return jsonify(sale), 201


@sales_bp.route('', methods=['GET'])
@require_login
def list_sales():
    """Sales newest first (?page, page_size, start_date, end_date as YYYY-MM-DD)."""
    result = get_sale_service().list_sales(
        page=int_arg('page', 1),
        page_size=int_arg('page_size', current_app.config.get('DEFAULT_PAGE_SIZE', 20)),
        start_date=request.args.get('start_date') or None,
        end_date=request.args.get('end_date') or None,
    )
    return jsonify(result)


@sales_bp.route('/<int:sale_id>', methods=['GET'])
@require_login
def get_sale(sale_id):
    return jsonify(get_sale_service().get_sale(sale_id))
