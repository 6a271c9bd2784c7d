"""Catalog blueprint: products, categories, brands and stock adjustments."""
from flask import Blueprint, jsonify, current_app, request

from swiftsale.exceptions import ValidationError
from swiftsale.middleware import require_login
from swiftsale.services import get_product_service
from swiftsale.utils.request_args import int_arg, json_body

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api')


@catalog_bp.route('/products', methods=['GET'])
@require_login
def list_products():
    """Paginated active products (?page, page_size, search, category_id, brand_id)."""
    result = get_product_service().list_products(
        page=int_arg('page', 1),
        page_size=int_arg('page_size', current_app.config.get('DEFAULT_PAGE_SIZE', 20)),
        search=request.args.get('search', '').strip()[:100],
        category_id=int_arg('category_id'),
        brand_id=int_arg('brand_id'),
    )
    return jsonify(result)


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
@require_login
def get_product(product_id):
    return jsonify(get_product_service().get_product(product_id))


@catalog_bp.route('/products', methods=['POST'])
@require_login
def create_product():
    data = json_body()
    data.setdefault('min_stock', current_app.config.get('LOW_STOCK_THRESHOLD', 5))
    product = get_product_service().add_product(data)
    return jsonify(product), 201


@catalog_bp.route('/products/<int:product_id>', methods=['PUT'])
@require_login
def update_product(product_id):
    return jsonify(get_product_service().update_product(product_id, json_body()))


@catalog_bp.route('/products/<int:product_id>/stock', methods=['PUT'])
@require_login
def set_stock(product_id):
    """Manual stock adjustment: {"stock_quantity": N}."""
    data = json_body()
    if 'stock_quantity' not in data:
        raise ValidationError('stock_quantity is required', payload={'field': 'stock_quantity'})
    return jsonify(get_product_service().set_stock(product_id, data['stock_quantity']))


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_login
def delete_product(product_id):
    get_product_service().soft_delete(product_id)
    return jsonify({'status': 'ok'})


@catalog_bp.route('/categories', methods=['GET'])
@require_login
def list_categories():
    return jsonify(get_product_service().get_categories())


@catalog_bp.route('/brands', methods=['GET'])
@require_login
def list_brands():
    return jsonify(get_product_service().get_brands())
