"""
Strain Tracker: community cannabis review service.
"""
__version__ = "0.1.0"
