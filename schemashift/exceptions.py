# schemashift/schemashift/exceptions.py
"""
Exception classes for schemashift.

This module defines the root of the exception hierarchy used throughout
the package.
"""

from typing import Optional, Dict, Any


class SchemaShiftError(Exception):
    """Base exception for all schemashift errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(SchemaShiftError):
    """Exception raised for configuration errors."""
    pass
