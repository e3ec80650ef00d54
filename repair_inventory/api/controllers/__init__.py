"""
Controllers package initialization - Sets up Flask-RESTX API with all namespaces
"""

from flask import Blueprint
from flask_restx import Api
from repair_inventory.api.controllers.inventory import register_inventory_routes
from repair_inventory.api.controllers.repairs import register_repair_routes
from repair_inventory.api.controllers.audit import register_audit_routes

# Create Blueprint
inventory_bp = Blueprint('inventory', __name__)
api = Api(inventory_bp, version='1.0', title='Repair Shop Inventory API',
          description='Parts inventory and stock audit trail for repair shops',
          doc='/docs/')

# Define namespaces
inventory_ns = api.namespace('inventory', description='Inventory operations')
repairs_ns = api.namespace('repairs', description='Parts used in repairs')
audit_ns = api.namespace('audit-logs', description='Inventory audit trail')

# Register routes for each namespace
register_inventory_routes(api, inventory_ns)
register_repair_routes(api, repairs_ns)
register_audit_routes(api, audit_ns)
