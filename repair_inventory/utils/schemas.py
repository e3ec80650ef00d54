from marshmallow import Schema, fields, validate, validates, post_load, ValidationError


class InventoryItemRequestSchema(Schema):
    """Schema for creating inventory items"""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    part_id = fields.Str(validate=validate.Length(max=100), allow_none=True)
    category = fields.Str(validate=validate.Length(max=100), allow_none=True)
    description = fields.Str(allow_none=True)
    supplier = fields.Str(validate=validate.Length(max=255), allow_none=True)
    location = fields.Str(validate=validate.Length(max=255), allow_none=True)
    stock_level = fields.Int(required=True, strict=True, validate=validate.Range(min=0))
    min_stock_level = fields.Int(strict=True, validate=validate.Range(min=0))
    unit_cost = fields.Float(validate=validate.Range(min=0), load_default=0.0)
    selling_price = fields.Float(validate=validate.Range(min=0), allow_none=True)
    notes = fields.Str(validate=validate.Length(max=500), allow_none=True)
    
    @validates('name')
    def validate_name(self, value, **kwargs):
        if not value.strip():
            raise ValidationError('Name is required')


class InventoryItemUpdateSchema(Schema):
    """Schema for editing descriptive fields; stock_level is rejected as unknown"""
    name = fields.Str(validate=validate.Length(min=1, max=255))
    part_id = fields.Str(validate=validate.Length(max=100), allow_none=True)
    category = fields.Str(validate=validate.Length(max=100), allow_none=True)
    description = fields.Str(allow_none=True)
    supplier = fields.Str(validate=validate.Length(max=255), allow_none=True)
    location = fields.Str(validate=validate.Length(max=255), allow_none=True)
    min_stock_level = fields.Int(strict=True, validate=validate.Range(min=0))
    unit_cost = fields.Float(validate=validate.Range(min=0))
    selling_price = fields.Float(validate=validate.Range(min=0), allow_none=True)
    
    @post_load
    def require_changes(self, data, **kwargs):
        if not data:
            raise ValidationError('At least one field must be provided')
        return data


class InventoryItemResponseSchema(Schema):
    """Schema for inventory item responses"""
    id = fields.Str()
    name = fields.Str()
    part_id = fields.Str(allow_none=True)
    category = fields.Str(allow_none=True)
    description = fields.Str(allow_none=True)
    supplier = fields.Str(allow_none=True)
    location = fields.Str(allow_none=True)
    stock_level = fields.Int()
    min_stock_level = fields.Int()
    unit_cost = fields.Float()
    selling_price = fields.Float(allow_none=True)
    stock_value = fields.Float(dump_only=True)
    is_low_stock = fields.Boolean(dump_only=True)
    version = fields.Int(dump_only=True)
    created_by = fields.Str(allow_none=True)
    updated_by = fields.Str(allow_none=True)
    created_at = fields.Str(dump_only=True)  # Already converted to ISO string
    updated_at = fields.Str(dump_only=True)  # Already converted to ISO string


class StockAdjustmentRequestSchema(Schema):
    """Schema for manual stock adjustments"""
    quantity = fields.Int(required=True, strict=True)
    reason = fields.Str(required=True, validate=validate.Length(min=1, max=500))
    notes = fields.Str(validate=validate.Length(max=500), allow_none=True)
    
    @validates('quantity')
    def validate_quantity(self, value, **kwargs):
        if value == 0:
            raise ValidationError('Quantity change must not be zero')
    
    @validates('reason')
    def validate_reason(self, value, **kwargs):
        if not value.strip():
            raise ValidationError('Reason is required')


class SaleRequestSchema(Schema):
    """Schema for counter sales"""
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    customer_name = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    unit_price = fields.Float(validate=validate.Range(min=0), allow_none=True)
    notes = fields.Str(validate=validate.Length(max=500), allow_none=True)


class PartUsageSchema(Schema):
    item_id = fields.Str(required=True, validate=validate.Length(min=1))
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1))


class PartsUsageRequestSchema(Schema):
    """Schema for consuming parts in a repair"""
    parts = fields.List(fields.Nested(PartUsageSchema), required=True, validate=validate.Length(min=1, max=100))
    atomic = fields.Bool(load_default=None, allow_none=True)


class AuditLogEntryResponseSchema(Schema):
    """Schema for audit log responses"""
    id = fields.Int()
    item_id = fields.Str()
    item_name = fields.Str(allow_none=True)
    action = fields.Str()
    quantity_change = fields.Int()
    previous_quantity = fields.Int()
    new_quantity = fields.Int()
    reason = fields.Str(allow_none=True)
    notes = fields.Str(allow_none=True)
    repair_id = fields.Str(allow_none=True)
    operator_id = fields.Str()
    timestamp = fields.Str()


class InventorySearchSchema(Schema):
    """Schema for inventory search parameters"""
    q = fields.Str(validate=validate.Length(min=1))
    category = fields.Str(validate=validate.Length(min=1))
    low_stock = fields.Bool()
    page = fields.Int(validate=validate.Range(min=1), load_default=1)
    per_page = fields.Int(validate=validate.Range(min=1, max=100), load_default=20)


class AuditLogQuerySchema(Schema):
    """Schema for audit log query parameters"""
    limit = fields.Int(validate=validate.Range(min=1, max=1000))
