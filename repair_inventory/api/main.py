"""
Repair Shop Inventory API
Flask-based REST API for managing repair parts inventory and its audit trail.
"""

import logging
from flask import Flask
from flask_cors import CORS


def create_app(config_name='default'):
    """Application factory pattern for API"""
    app = Flask(__name__)
    
    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()
    
    # Load configuration
    from config import config, get_database_uri
    app.config.from_object(config.get(config_name, config['default']))
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = get_database_uri()
    
    # Configure logging
    if not app.testing:
        logging.basicConfig(
            level=getattr(logging, app.config['LOG_LEVEL']),
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )
    
    # Initialize correlation ID middleware
    from repair_inventory.api.middlewares.correlation_id import CorrelationIdMiddleware, init_correlation_id_logging
    CorrelationIdMiddleware(app)
    init_correlation_id_logging(app)
    
    # Initialize database
    from repair_inventory.database import init_db
    init_db(app)
    
    # CORS setup
    CORS(app, origins=app.config.get('CORS_ORIGINS', ['*']))
    
    # Register API blueprint
    from repair_inventory.api.controllers import inventory_bp
    app.register_blueprint(inventory_bp, url_prefix='/api/v1')
    
    # Register stats and operational endpoints
    from repair_inventory.api.controllers.stats import stats_bp
    from repair_inventory.api.controllers.health import health_bp
    app.register_blueprint(stats_bp)
    app.register_blueprint(health_bp)
    app.logger.info("Controllers registered successfully")
    
    # Register error handlers
    from repair_inventory.utils.error_handlers import register_error_handlers
    register_error_handlers(app)
    
    return app


def init_database(app):
    """Initialize database tables"""
    from repair_inventory.database import db
    with app.app_context():
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            db.create_all()
            app.logger.info("Database tables created successfully")
            return True
        except Exception as e:
            app.logger.error(f"Failed to create database tables: {e}")
            if app.config.get('ENV_NAME') == 'production':
                raise
            app.logger.warning("Continuing without database connection in development mode")
            return False

