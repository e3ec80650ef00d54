#!/usr/bin/env python3
"""
Repair Shop Inventory Service
Flask-based service for managing repair parts inventory.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from repair_inventory.api.main import create_app, init_database

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Main application entry point."""
    env = os.environ.get('FLASK_ENV', 'production')
    
    logger.info(f"Starting Repair Inventory Service in {env} mode")
    
    app = create_app(env)
    
    if app.config.get('INVENTORY_BACKEND') == 'sql':
        init_database(app)
    else:
        logger.info("Using in-memory inventory backend, data is not persisted")
    
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))
    debug = env == 'development'
    
    logger.info(f"Starting Repair Inventory Service on {host}:{port}")
    
    app.run(
        host=host,
        port=port,
        debug=debug,
        threaded=True
    )


if __name__ == '__main__':
    main()
