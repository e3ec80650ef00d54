"""
Stats Controller - Provides inventory statistics for dashboards
"""

from flask import Blueprint, jsonify
from repair_inventory.api.middlewares.auth import require_auth
from repair_inventory.errors import InventoryError
from repair_inventory.services import InventoryService
from repair_inventory.utils.error_handlers import error_response, internal_error_response
import logging

logger = logging.getLogger(__name__)

# Create blueprint
stats_bp = Blueprint('stats', __name__)


@stats_bp.route('/api/stats', methods=['GET'])
@require_auth
def get_inventory_stats():
    """
    Get inventory statistics for the shop dashboard
    
    Returns:
        JSON with inventory metrics:
        - total_items: Total inventory items tracked
        - total_units: Total units across all items
        - low_stock_count: Count of items at or below their minimum level
        - out_of_stock_count: Count of items with zero stock
        - total_inventory_value: Sum of (stock_level * unit_cost)
    """
    try:
        stats = InventoryService().get_inventory_stats()
        logger.info(f"Stats retrieved: {stats}")
        return jsonify(stats), 200
        
    except InventoryError as e:
        logger.error(f"Error retrieving inventory stats: {e.message}")
        body, status_code = error_response(e)
        return jsonify(body), status_code
    except Exception as e:
        logger.error(f"Error retrieving inventory stats: {e}")
        body, status_code = internal_error_response()
        return jsonify(body), status_code
