"""
Inventory error taxonomy

Every failure raised by the service layer is an InventoryError. Controllers turn
them into JSON responses using ``status_code`` and ``to_dict()``.
"""


class InventoryError(Exception):
    """Base class for inventory workflow failures"""
    status_code = 400
    error = 'Inventory Error'

    def __init__(self, message, **details):
        self.message = message
        self.details = details
        # Per-part results already applied when a multi-item operation fails
        self.committed = []
        super().__init__(self.message)

    def to_dict(self):
        payload = {
            'error': self.error,
            'message': self.message,
            'status_code': self.status_code,
        }
        if self.details:
            payload['details'] = self.details
        if self.committed:
            payload['committed'] = self.committed
        return payload


class ValidationError(InventoryError):
    """Bad input: missing reason or operator, negative resulting stock"""
    status_code = 400
    error = 'Validation Error'


class NotFoundError(InventoryError):
    """Unknown inventory item"""
    status_code = 404
    error = 'Not Found'


class InsufficientStockError(InventoryError):
    """Requested usage exceeds the on-hand quantity"""
    status_code = 409
    error = 'Insufficient Stock'

    def __init__(self, message, item_id=None, **details):
        self.item_id = item_id
        super().__init__(message, item_id=item_id, **details)


class BackendError(InventoryError):
    """Underlying storage read or write failed"""
    status_code = 503
    error = 'Backend Error'


class ConflictError(BackendError):
    """A concurrent writer changed the item between read and write"""
    status_code = 409
    error = 'Conflict'
