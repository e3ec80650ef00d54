"""
Health check endpoints for the inventory service
"""

from flask import Blueprint, current_app, jsonify
from datetime import datetime
import os
import logging
from repair_inventory.errors import BackendError
from repair_inventory.repositories import get_inventory_repository

logger = logging.getLogger(__name__)

# Create blueprint for health endpoints
health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """Main health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'service': os.environ.get('NAME', 'repair-inventory-service'),
        'timestamp': datetime.utcnow().isoformat() + 'Z',
        'version': os.environ.get('VERSION', '1.0.0'),
        'environment': os.environ.get('FLASK_ENV', 'development'),
    }), 200


@health_bp.route('/health/ready', methods=['GET'])
def readiness():
    """Readiness probe - checks the inventory backend answers"""
    backend = current_app.config.get('INVENTORY_BACKEND', 'sql')
    try:
        get_inventory_repository().ping()
        return jsonify({
            'status': 'ready',
            'backend': backend,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }), 200
    except BackendError as e:
        logger.error(f"Readiness check failed: {e.message}")
        return jsonify({
            'status': 'not ready',
            'backend': backend,
            'error': e.message,
            'timestamp': datetime.utcnow().isoformat() + 'Z'
        }), 503


@health_bp.route('/health/live', methods=['GET'])
def liveness():
    """Liveness probe - the process is up and serving requests"""
    return jsonify({
        'status': 'alive',
        'timestamp': datetime.utcnow().isoformat() + 'Z'
    }), 200
