"""Customers blueprint."""
from flask import Blueprint, jsonify, request

from swiftsale.database import get_store
from swiftsale.middleware import require_login
from swiftsale.services import customer_service
from swiftsale.utils.request_args import json_body

customers_bp = Blueprint('customers', __name__, url_prefix='/api/customers')


@customers_bp.route('', methods=['GET'])
@require_login
def list_customers():
    search = request.args.get('search', '').strip()[:100]
    return jsonify(customer_service.get_customers(get_store(), search))


@customers_bp.route('', methods=['POST'])
@require_login
def create_customer():
    return jsonify(customer_service.create_customer(get_store(), json_body())), 201


@customers_bp.route('/<int:customer_id>', methods=['GET'])
@require_login
def get_customer(customer_id):
    return jsonify(customer_service.get_customer(get_store(), customer_id))


@customers_bp.route('/<int:customer_id>', methods=['PUT'])
@require_login
def update_customer(customer_id):
    return jsonify(customer_service.update_customer(get_store(), customer_id, json_body()))


@customers_bp.route('/<int:customer_id>', methods=['DELETE'])
@require_login
def delete_customer(customer_id):
    customer_service.delete_customer(get_store(), customer_id)
    return jsonify({'status': 'ok'})
