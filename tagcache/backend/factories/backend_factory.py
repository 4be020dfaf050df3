"""
Backend Factory for creating cache backends from the environment or a config mapping.
"""
import os
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from pymongo import MongoClient

from tagcache.backend.modules.cache.services.mongo_cache_backend import MongoCacheBackend
from tagcache.shared.modules.cache.exceptions import CacheBackendConfigurationError
from tagcache.shared.modules.cache.models.backend_options import BackendOptions

# option name -> config / environment key
CONFIG_KEYS = {
    "server": "MONGO_URI",
    "dbname": "CACHE_DB_NAME",
    "collection": "CACHE_COLLECTION",
    "ensure_index": "CACHE_ENSURE_INDEX",
    "check_utf8": "CACHE_CHECK_UTF8",
    "lifetime": "CACHE_LIFETIME",
}

_INFINITE_VALUES = ("", "none", "null", "infinite")


class BackendFactory:
    """
    Factory for creating MongoCacheBackend instances.
    """

    @staticmethod
    def options_from_mapping(config: Mapping[str, Any]) -> BackendOptions:
        """
        Build BackendOptions from a mapping keyed like the environment
        (MONGO_URI, CACHE_DB_NAME, ...). Missing keys keep their defaults.
        """
        values = {}
        for option, key in CONFIG_KEYS.items():
            if key not in config:
                continue
            value = config[key]
            if option == "lifetime" and isinstance(value, str) and value.strip().lower() in _INFINITE_VALUES:
                value = None
            values[option] = value
        try:
            return BackendOptions(**values)
        except ValidationError as e:
            raise CacheBackendConfigurationError(f"Invalid cache configuration: {e}") from e

    @staticmethod
    def from_mapping(config: Mapping[str, Any], client: Optional[MongoClient] = None) -> MongoCacheBackend:
        return MongoCacheBackend(BackendFactory.options_from_mapping(config), client=client)

    @staticmethod
    def create_cache_backend(client: Optional[MongoClient] = None) -> MongoCacheBackend:
        """
        Create a MongoCacheBackend configured from environment variables.

        Args:
            client: Optional MongoClient to share instead of opening a new one

        Returns:
            MongoCacheBackend: Configured backend
        """
        return BackendFactory.from_mapping(os.environ, client=client)
