"""
Database context for Flask applications.
Provides the cache backend without explicit dependency passing.
"""
from flask import current_app, g

from tagcache.backend.modules.cache.services.mongo_cache_backend import MongoCacheBackend
from tagcache.shared.modules.cache.exceptions import CacheBackendConfigurationError


class DatabaseContext:
    """
    Flask context accessor for the cache backend.
    Works in both request context (controllers) and application context (background threads).
    """

    @staticmethod
    def get_cache_backend() -> MongoCacheBackend:
        """
        Get the cache backend registered by FlaskTagCache.

        Raises:
            CacheBackendConfigurationError: outside an application context,
                or when FlaskTagCache was never initialised on the app
        """
        try:
            if "cache_backend" not in g:
                extension = current_app.extensions.get("tagcache")
                if extension is None or extension.backend is None:
                    raise CacheBackendConfigurationError(
                        "FlaskTagCache has not been initialised on this application"
                    )
                g.cache_backend = extension.backend
            return g.cache_backend
        except RuntimeError as e:
            raise CacheBackendConfigurationError(
                "The cache backend is only reachable inside a Flask application context"
            ) from e
