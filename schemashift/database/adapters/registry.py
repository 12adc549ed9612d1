"""
Database Adapter Registry for schemashift.

This module maps database engines to adapter classes so that an adapter can
be created from a connection config or a connection URL.

Author: schemashift
Version: 1.0.0
"""

import logging
from typing import Dict, List, Type

from ..config import DatabaseConnectionConfig, DatabaseEngine
from ..exceptions import DatabaseConfigurationError
from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter


class AdapterRegistry:
    """Registry for database adapters."""

    _adapters: Dict[DatabaseEngine, Type[DatabaseAdapter]] = {}
    _logger = logging.getLogger(__name__)

    @classmethod
    def register_adapter(
        cls,
        engine: DatabaseEngine,
        adapter_class: Type[DatabaseAdapter]
    ) -> None:
        """Register a database adapter for a specific engine."""
        if not (isinstance(adapter_class, type) and issubclass(adapter_class, DatabaseAdapter)):
            raise DatabaseConfigurationError(
                "Adapter class must inherit from DatabaseAdapter",
                config_key="adapter_class",
                config_value=adapter_class
            )

        cls._adapters[engine] = adapter_class
        cls._logger.debug(f"Registered adapter {adapter_class.__name__} for engine {engine.value}")

    @classmethod
    def get_adapter_class(cls, engine: DatabaseEngine) -> Type[DatabaseAdapter]:
        """Get the adapter class for a specific engine."""
        if engine not in cls._adapters:
            raise DatabaseConfigurationError(
                f"No adapter registered for engine {engine.value}",
                config_key="engine",
                config_value=engine.value
            )
        return cls._adapters[engine]

    @classmethod
    def create_adapter(cls, config: DatabaseConnectionConfig) -> DatabaseAdapter:
        """Create a new adapter instance."""
        adapter_class = cls.get_adapter_class(config.engine)
        return adapter_class(config)

    @classmethod
    def create_adapter_from_url(cls, url: str) -> DatabaseAdapter:
        """Create a new adapter instance from a connection URL."""
        return cls.create_adapter(DatabaseConnectionConfig.from_url(url))

    @classmethod
    def list_registered_engines(cls) -> List[DatabaseEngine]:
        """List all registered database engines."""
        return list(cls._adapters.keys())

    @classmethod
    def is_engine_supported(cls, engine: DatabaseEngine) -> bool:
        """Check if an engine is supported."""
        return engine in cls._adapters


def _auto_register_adapters():
    """Register the built-in database adapters."""
    AdapterRegistry.register_adapter(DatabaseEngine.POSTGRESQL, PostgreSQLAdapter)
    AdapterRegistry.register_adapter(DatabaseEngine.MYSQL, MySQLAdapter)
    AdapterRegistry.register_adapter(DatabaseEngine.SQLITE, SQLiteAdapter)


# Auto-register adapters on module import
_auto_register_adapters()
