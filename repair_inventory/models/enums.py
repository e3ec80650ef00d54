"""
Model Enums
"""

from enum import Enum


class AuditAction(Enum):
    ADD_ITEM = "add_item"
    STOCK_INCREASE = "stock_increase"
    STOCK_DECREASE = "stock_decrease"
    USED_IN_REPAIR = "used_in_repair"
