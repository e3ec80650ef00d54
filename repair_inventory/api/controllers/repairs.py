"""
Repairs Controller - Consumes inventory parts for repair tickets
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
from repair_inventory.utils.schemas import PartsUsageRequestSchema
import logging

logger = logging.getLogger(__name__)

parts_usage_schema = PartsUsageRequestSchema()


def register_repair_routes(api, repairs_ns):
    """Register repair routes on the namespace"""
    part_model = api.model('PartUsage', {
        'item_id': fields.String(required=True, description='Inventory item ID'),
        'quantity': fields.Integer(required=True, description='Units used')
    })
    parts_usage_model = api.model('PartsUsage', {
        'parts': fields.List(fields.Nested(part_model), required=True),
        'atomic': fields.Boolean(description='Apply all parts or none')
    })

    @repairs_ns.route('/<string:repair_id>/parts')
    class RepairParts(Resource):
        method_decorators = [require_auth]

        @repairs_ns.doc('use_parts_in_repair')
        @repairs_ns.expect(parts_usage_model)
        def post(self, repair_id):
            """Use inventory parts in a repair"""
            try:
                data = parts_usage_schema.load(request.get_json(silent=True) or {})
                
                inventory_service = InventoryService()
                results = inventory_service.use_parts_in_repair(
                    repair_id,
                    data['parts'],
                    operator_id=get_current_operator_id(),
                    atomic=data.get('atomic')
                )
                
                return {'repair_id': repair_id, 'parts': results}, 200
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error using parts in repair {repair_id}: {e}")
                return internal_error_response()
