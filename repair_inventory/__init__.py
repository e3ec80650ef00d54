"""
Repair shop inventory service: parts stock, adjustments and their audit trail
"""

__version__ = '1.0.0'
