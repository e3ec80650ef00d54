"""
Audit Log Controller - Shop-wide inventory audit trail
"""

from flask import request
from flask_restx import Resource
from marshmallow import ValidationError
from repair_inventory.api.middlewares.auth import require_auth
from repair_inventory.errors import InventoryError
from repair_inventory.services import InventoryService
from repair_inventory.utils.error_handlers import (
    error_response, validation_error_response, internal_error_response
)
from repair_inventory.utils.schemas import AuditLogEntryResponseSchema, AuditLogQuerySchema
import logging

logger = logging.getLogger(__name__)

audit_entry_schema = AuditLogEntryResponseSchema()
audit_query_schema = AuditLogQuerySchema()


def register_audit_routes(api, audit_ns):
    """Register audit log routes on the namespace"""

    @audit_ns.route('/')
    class AuditLogList(Resource):
        method_decorators = [require_auth]

        @audit_ns.doc('list_audit_log')
        def get(self):
            """Audit entries for all items, newest first"""
            try:
                params = audit_query_schema.load(request.args.to_dict())
                entries = InventoryService().get_audit_log(limit=params.get('limit'))
                return {'entries': audit_entry_schema.dump(entries, many=True)}, 200
                
            except ValidationError as e:
                return validation_error_response(e)
            except InventoryError as e:
                return error_response(e)
            except Exception as e:
                logger.error(f"Error listing audit log: {e}")
                return internal_error_response()
