"""
Inventory Controller - Handles inventory CRUD operations and stock management
"""

from flask import request
from flask_restx import Resource, fields
from marshmallow import ValidationError
from repair_inventory.api.middlewares.auth import require_auth, get_current_operator_id
from repair_inventory.errors import InventoryError
from repair_inventory.services import InventoryService
from repair_inventory.utils.error_handlers import (
    error_response, validation_error_response, internal_error_response
)
from repair_inventory.utils.schemas import (
    InventoryItemRequestSchema, InventoryItemUpdateSchema, InventoryItemResponseSchema,
    StockAdjustmentRequestSchema, SaleRequestSchema, AuditLogEntryResponseSchema,
    InventorySearchSchema
)
import logging

logger = logging.getLogger(__name__)

# Initialize schemas
inventory_request_schema = InventoryItemRequestSchema()
inventory_update_schema = InventoryItemUpdateSchema()
inventory_response_schema = InventoryItemResponseSchema()
stock_adjustment_schema = StockAdjustmentRequestSchema()
sale_schema = SaleRequestSchema()
audit_entry_schema = AuditLogEntryResponseSchema()
search_schema = InventorySearchSchema()


def get_inventory_models(api):
    """Define API models for inventory operations"""
    inventory_item_model = api.model('InventoryItem', {
        'name': fields.String(required=True, description='Display name'),
        'part_id': fields.String(description='External SKU / part code'),
        'category': fields.String(description='Category'),
        'description': fields.String(description='Description'),
        'supplier': fields.String(description='Supplier'),
        'location': fields.String(description='Storage location'),
        'stock_level': fields.Integer(required=True, description='Initial on-hand quantity'),
        'min_stock_level': fields.Integer(description='Low stock threshold'),
        'unit_cost': fields.Float(description='Cost per unit'),
        'selling_price': fields.Float(description='Selling price per unit')
    })

    stock_adjustment_model = api.model('StockAdjustment', {
        'quantity': fields.Integer(required=True, description='Signed, non-zero quantity change'),
        'reason': fields.String(required=True, description='Reason for the adjustment'),
        'notes': fields.String(description='Additional notes')
    })

    sale_model = api.model('Sale', {
        'quantity': fields.Integer(required=True, description='Units sold'),
        'customer_name': fields.String(required=True, description='Customer name'),
        'unit_price': fields.Float(description='Price per unit, defaults to the item selling price'),
        'notes': fields.String(description='Additional notes')
    })

    return inventory_item_model, stock_adjustment_model, sale_model


def register_inventory_routes(api, inventory_ns):
    """Register inventory routes on the namespace"""
    inventory_item_model, stock_adjustment_model, sale_model = get_inventory_models(api)

    @inventory_ns.route('/')
    class InventoryList(Resource):
        method_decorators = [require_auth]

        @inventory_ns.doc('list_inventory')
        def get(self):
            """List inventory items, low stock first"""
            try:
                search_params = search_schema.load(request.args.to_dict())
                
                inventory_service = InventoryService()
                items, total = inventory_service.list_inventory(
                    query=search_params.get('q'),
                    category=search_params.get('category'),
                    low_stock=search_params.get('low_stock'),
                    page=search_params['page'],
                    per_page=search_params['per_page']
                )
                
                per_page = search_params['per_page']
                return {
                    'items': inventory_response_schema.dump(items, many=True),
                    'pagination': {
                        'page': search_params['page'],
                        'per_page': per_page,
                        'total': total,
                        'pages': (total + per_page - 1) // per_page
                    }
                }, 200
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error listing inventory: {e}")
                return internal_error_response()

        @inventory_ns.doc('create_inventory_item')
        @inventory_ns.expect(inventory_item_model)
        def post(self):
            """Add a new inventory item with its initial stock"""
            try:
                data = inventory_request_schema.load(request.get_json(silent=True) or {})
                
                inventory_service = InventoryService()
                item = inventory_service.add_inventory_item(data, operator_id=get_current_operator_id())
                
                return inventory_response_schema.dump(item), 201
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error creating inventory item: {e}")
                return internal_error_response()

    @inventory_ns.route('/<string:item_id>')
    class InventoryItemResource(Resource):
        method_decorators = [require_auth]

        @inventory_ns.doc('get_inventory_item')
        def get(self, item_id):
            """Get inventory item by ID"""
            try:
                item = InventoryService().get_inventory_item(item_id)
                return inventory_response_schema.dump(item), 200
                
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error getting inventory item {item_id}: {e}")
                return internal_error_response()

        @inventory_ns.doc('update_inventory_item')
        def put(self, item_id):
            """Edit descriptive fields of an inventory item"""
            try:
                data = inventory_update_schema.load(request.get_json(silent=True) or {})
                
                inventory_service = InventoryService()
                item = inventory_service.update_inventory_item(item_id, data, operator_id=get_current_operator_id())
                
                return inventory_response_schema.dump(item), 200
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error updating inventory item {item_id}: {e}")
                return internal_error_response()

        @inventory_ns.doc('delete_inventory_item')
        def delete(self, item_id):
            """Delete an inventory item; its audit log is kept"""
            try:
                InventoryService().delete_inventory_item(item_id, operator_id=get_current_operator_id())
                return {'message': 'Inventory item deleted successfully'}, 200
                
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error deleting inventory item {item_id}: {e}")
                return internal_error_response()

    @inventory_ns.route('/<string:item_id>/adjust')
    class StockAdjustment(Resource):
        method_decorators = [require_auth]

        @inventory_ns.doc('adjust_stock')
        @inventory_ns.expect(stock_adjustment_model)
        def post(self, item_id):
            """Increase or decrease stock with a reason"""
            try:
                data = stock_adjustment_schema.load(request.get_json(silent=True) or {})
                
                inventory_service = InventoryService()
                item = inventory_service.adjust_inventory(
                    item_id,
                    data['quantity'],
                    data['reason'],
                    notes=data.get('notes'),
                    operator_id=get_current_operator_id()
                )
                
                return inventory_response_schema.dump(item), 200
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error adjusting stock for item {item_id}: {e}")
                return internal_error_response()

    @inventory_ns.route('/<string:item_id>/sale')
    class StockSale(Resource):
        method_decorators = [require_auth]

        @inventory_ns.doc('record_sale')
        @inventory_ns.expect(sale_model)
        def post(self, item_id):
            """Sell units of an item over the counter"""
            try:
                data = sale_schema.load(request.get_json(silent=True) or {})
                
                inventory_service = InventoryService()
                sale = inventory_service.record_sale(
                    item_id,
                    data['quantity'],
                    data['customer_name'],
                    operator_id=get_current_operator_id(),
                    notes=data.get('notes'),
                    unit_price=data.get('unit_price')
                )
                
                return {
                    'item': inventory_response_schema.dump(sale['item']),
                    'audit_entry': audit_entry_schema.dump(sale['audit_entry']),
                    'quantity': sale['quantity'],
                    'unit_price': sale['unit_price'],
                    'total': sale['total']
                }, 200
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error recording sale for item {item_id}: {e}")
                return internal_error_response()

    @inventory_ns.route('/<string:item_id>/audit-log')
    class ItemAuditLog(Resource):
        method_decorators = [require_auth]

        @inventory_ns.doc('get_item_audit_log')
        def get(self, item_id):
            """Audit entries for one item, newest first"""
            try:
                entries = InventoryService().get_audit_log(item_id=item_id)
                return {'item_id': item_id, 'entries': audit_entry_schema.dump(entries, many=True)}, 200
                
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error getting audit log for item {item_id}: {e}")
                return internal_error_response()

    @inventory_ns.route('/<string:item_id>/audit-log/verify')
    class ItemAuditVerification(Resource):
        method_decorators = [require_auth]

        @inventory_ns.doc('verify_item_audit_log')
        def get(self, item_id):
            """Replay the audit log and compare it with the stored stock level"""
            try:
                return InventoryService().verify_audit_trail(item_id), 200
                
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error verifying audit log for item {item_id}: {e}")
                return internal_error_response()
