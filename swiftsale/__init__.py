"""Flask application factory."""
from flask import Flask, jsonify

from swiftsale.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    from swiftsale.services.activity_log import ActivityLog
    from swiftsale.services.cache_service import init_cache
    from swiftsale.services.dashboard_service import invalidate_dashboard_cache
    from swiftsale.services.product_service import ProductService
    from swiftsale.services.sales_service import SaleService

    # Initialize database (document store over SQLAlchemy)
    store = init_db(app)
    activity = store.activity
    cache = init_cache(app)

    product_service = ProductService(
        store,
        activity=activity,
        on_stock_change=lambda: invalidate_dashboard_cache(cache),
    )
    app.extensions['activity'] = activity
    app.extensions['product_service'] = product_service
    app.extensions['sale_service'] = SaleService(
        store,
        products=product_service,
        activity=activity,
        strict_totals=app.config.get('SALE_STRICT_TOTALS', False),
        cache=cache,
        dashboard_ttl=app.config.get('CACHE_DASHBOARD_TTL'),
    )

    if app.config.get('SEED_ON_STARTUP'):
        from swiftsale.services.data_init_service import initialize_data
        initialize_data(
            store,
            app.config['DEFAULT_ADMIN_EMAIL'],
            app.config['DEFAULT_ADMIN_PASSWORD'],
            activity=activity,
        )

    from swiftsale.middleware import load_user

    @app.before_request
    def before_request_handler():
        """Load user context for each request."""
        load_user()

    # Error Handlers
    from swiftsale.exceptions import SwiftSaleError

    @app.errorhandler(SwiftSaleError)
    def handle_swiftsale_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"SwiftSaleError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"SwiftSaleError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from swiftsale.blueprints.auth import auth_bp
    from swiftsale.blueprints.catalog import catalog_bp
    from swiftsale.blueprints.sales import sales_bp
    from swiftsale.blueprints.customers import customers_bp
    from swiftsale.blueprints.dashboard import dashboard_bp
    from swiftsale.blueprints.settings import settings_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(settings_bp)

    # Register CLI commands
    from swiftsale.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Document store ready on {app.config.get('SQLALCHEMY_DATABASE_URI')}")

    return app
