"""
Pytest configuration for integration tests
"""

import os

# Set test environment
os.environ['FLASK_ENV'] = 'testing'
