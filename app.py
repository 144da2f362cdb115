import os
import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_compress import Compress
from sqlalchemy.orm import DeclarativeBase
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from timezone_utils import get_utc_time_naive


class Base(DeclarativeBase):
    pass

db = SQLAlchemy(model_class=Base)
compress = Compress()

logger = logging.getLogger(__name__)

def create_app(test_config=None):
    # Create the app
    app = Flask(__name__)
    app.config.from_mapping(
        TESTING=False,
        # External collaborators
        ORS_API_KEY=os.environ.get('ORS_API_KEY', ''),
        ORS_DIRECTIONS_URL=os.environ.get(
            'ORS_DIRECTIONS_URL',
            'https://api.openrouteservice.org/v2/directions/driving-car/geojson'),
        ORS_REVERSE_URL=os.environ.get(
            'ORS_REVERSE_URL', 'https://api.openrouteservice.org/geocode/reverse'),
        NOMINATIM_REVERSE_URL=os.environ.get(
            'NOMINATIM_REVERSE_URL', 'https://nominatim.openstreetmap.org/reverse'),
        ROUTE_LOOKUP_TIMEOUT=float(os.environ.get('ROUTE_LOOKUP_TIMEOUT', 5)),
        ROUTE_LOOKUP_BUDGET=float(os.environ.get('ROUTE_LOOKUP_BUDGET', 20)),
        ROUTE_SAMPLE_EVERY=int(os.environ.get('ROUTE_SAMPLE_EVERY', 10)),
        EXPO_PUSH_URL=os.environ.get('EXPO_PUSH_URL', 'https://exp.host/--/api/v2/push/send'),
        PUSH_NOTIFICATIONS_ENABLED=os.environ.get('PUSH_NOTIFICATIONS_ENABLED', 'true').lower() == 'true',
        PUSH_TIMEOUT=float(os.environ.get('PUSH_TIMEOUT', 5)),
        # Cold-chain bands: (warning above, critical above)
        COLD_CHAIN_TEMPERATURE=(float(os.environ.get('COLD_CHAIN_TEMPERATURE_OK', 24)),
                                float(os.environ.get('COLD_CHAIN_TEMPERATURE_WARN', 26))),
        COLD_CHAIN_HUMIDITY=(float(os.environ.get('COLD_CHAIN_HUMIDITY_OK', 50)),
                             float(os.environ.get('COLD_CHAIN_HUMIDITY_WARN', 60))),
        COLD_CHAIN_ETHYLENE=(float(os.environ.get('COLD_CHAIN_ETHYLENE_OK', 2)),
                             float(os.environ.get('COLD_CHAIN_ETHYLENE_WARN', 9))),
    )
    if test_config:
        app.config.update(test_config)

    from utils.logging_config import setup_logging, log_request_start, log_request_end
    setup_logging(app)

    # Configure ProxyFix for proper client IP detection in production
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # CORS Configuration for production (restricted origins for security)
    production_origins = os.environ.get('ALLOWED_ORIGINS', '').split(',')
    allowed_origins = [origin.strip() for origin in production_origins if origin.strip()]

    # Mobile clients send no Origin header; fall back to open CORS for development
    if not allowed_origins:
        allowed_origins = "*"

    CORS(app, origins=allowed_origins,
         supports_credentials=False,
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"])

    app.config['COMPRESS_MIMETYPES'] = ['application/json']
    app.config['COMPRESS_LEVEL'] = 6
    app.config['COMPRESS_MIN_SIZE'] = 500
    compress.init_app(app)

    # Configure the database - use PostgreSQL in production, SQLite for development
    if 'SQLALCHEMY_DATABASE_URI' not in app.config:
        database_url = os.environ.get("DATABASE_URL") or "sqlite:///freshgoods.db"

        if database_url.startswith(("postgresql://", "postgres://")):
            # Ensure psycopg2 driver is specified
            database_url = database_url.replace("postgres://", "postgresql://", 1)
            database_url = database_url.replace("postgresql://", "postgresql+psycopg2://", 1)

            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
                "pool_size": 10,
                "pool_recycle": 280,
                "pool_pre_ping": True,
                "max_overflow": 15,
                "pool_timeout": 20,
                "connect_args": {
                    "connect_timeout": 10,
                    "application_name": "freshgoods",
                }
            }
        else:
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
                "pool_recycle": 300,
                "pool_pre_ping": True,
            }
        app.config["SQLALCHEMY_DATABASE_URI"] = database_url

    # Initialize extensions
    db.init_app(app)

    from utils.config_validator import get_config_status
    logger.info(f"Configuration: {get_config_status(app.config)}")

    # Register blueprints
    from vendor_routes import vendor_bp
    from driver_routes import driver_bp
    from customer_routes import customer_bp
    from device_routes import device_bp
    from user_routes import user_bp

    app.register_blueprint(vendor_bp, url_prefix='/api/vendor')
    app.register_blueprint(driver_bp, url_prefix='/api/driver')
    app.register_blueprint(customer_bp, url_prefix='/api/customer')
    app.register_blueprint(device_bp, url_prefix='/api/device')
    app.register_blueprint(user_bp, url_prefix='/api/user')

    app.before_request(log_request_start)
    app.after_request(log_request_end)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description, 'kind': 'http'}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {str(error)}")
        db.session.rollback()
        return jsonify({'error': 'Internal server error', 'kind': 'internal'}), 500

    with app.app_context():
        import models  # noqa: F401
        db.create_all()

    # Health check endpoint for deployment
    @app.route('/health')
    def health():
        """Simple health check endpoint for deployment readiness"""
        return {'status': 'ok', 'timestamp': get_utc_time_naive().isoformat()}, 200

    return app
