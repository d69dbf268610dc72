"""Flask application factory."""
import os
import traceback

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException

from compras.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize CSRF protection
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'La sesión ha expirado. Recarga la página.'}), 400

    # Error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus metrics instrumentation
    from compras.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust X-Forwarded-* from the reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Load profile and account context before each request
    from compras.middleware import load_account_context

    @app.before_request
    def before_request_handler():
        load_account_context()

    # Error Handlers
    from compras.exceptions import ComprasError

    @app.errorhandler(ComprasError)
    def handle_compras_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"ComprasError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"ComprasError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'status': 'error', 'message': 'El archivo excede el tamaño máximo permitido.'}), 413

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from compras.blueprints.suppliers import suppliers_bp
    from compras.blueprints.materials import materials_bp
    from compras.blueprints.companies import companies_bp
    from compras.blueprints.quote_requests import quote_requests_bp
    from compras.blueprints.purchase_orders import purchase_orders_bp
    from compras.blueprints.price_history import price_history_bp
    from compras.blueprints.quote_comparisons import quote_comparisons_bp
    from compras.blueprints.fichas import fichas_bp
    from compras.blueprints.audit import audit_bp
    from compras.blueprints.profiles import profiles_bp
    from compras.blueprints.dashboard import dashboard_bp
    from compras.blueprints.bulk_upload import bulk_upload_bp
    from compras.blueprints.admin import admin_bp
    from compras.blueprints.cart import cart_bp
    from compras.blueprints.metrics import metrics_bp

    app.register_blueprint(suppliers_bp)
    app.register_blueprint(materials_bp)
    app.register_blueprint(companies_bp)
    app.register_blueprint(quote_requests_bp)
    app.register_blueprint(purchase_orders_bp)
    app.register_blueprint(price_history_bp)
    app.register_blueprint(quote_comparisons_bp)
    app.register_blueprint(fichas_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(profiles_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(bulk_upload_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from compras.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
