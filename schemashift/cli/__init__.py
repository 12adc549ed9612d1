"""
Command line interface for schemashift.
"""

from .main import app

__all__ = ["app"]
