"""
Flask integration: wires a MongoCacheBackend onto an application.

The MongoClient is created once per application through Flask-PyMongo,
shared with the backend, and closed by FlaskTagCache.close().
"""
import logging
import os
from typing import Any, Mapping, Optional

from flask import Flask
from flask_pymongo import PyMongo

from tagcache.backend.factories.backend_factory import BackendFactory
from tagcache.backend.modules.cache.services.mongo_cache_backend import MongoCacheBackend
from tagcache.shared.modules.cache.models.backend_options import (
    DEFAULT_COLLECTION,
    DEFAULT_DBNAME,
    DEFAULT_LIFETIME,
    DEFAULT_SERVER,
)

EXTENSION_NAME = "tagcache"

logger = logging.getLogger(__name__)


class FlaskTagCache:
    """
    Flask extension exposing a MongoCacheBackend as app.extensions["tagcache"].

    Reads MONGO_URI, CACHE_DB_NAME, CACHE_COLLECTION, CACHE_ENSURE_INDEX,
    CACHE_CHECK_UTF8 and CACHE_LIFETIME from app.config.
    """

    def __init__(self, app: Optional[Flask] = None):
        self.mongo: Optional[PyMongo] = None
        self.backend: Optional[MongoCacheBackend] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.config.setdefault("MONGO_URI", os.environ.get("MONGO_URI", DEFAULT_SERVER))
        app.config.setdefault("CACHE_DB_NAME", DEFAULT_DBNAME)
        app.config.setdefault("CACHE_COLLECTION", DEFAULT_COLLECTION)
        app.config.setdefault("CACHE_ENSURE_INDEX", True)
        app.config.setdefault("CACHE_CHECK_UTF8", False)
        app.config.setdefault("CACHE_LIFETIME", DEFAULT_LIFETIME)

        self.mongo = PyMongo(app, tz_aware=True)
        self.backend = BackendFactory.from_mapping(app.config, client=self.mongo.cx)
        app.extensions[EXTENSION_NAME] = self
        logger.info(f"Cache backend registered: {self.backend!r}")

    def close(self) -> None:
        """Close the shared MongoClient. Call once on application shutdown."""
        if self.backend is not None:
            self.backend.close()
        if self.mongo is not None and self.mongo.cx is not None:
            self.mongo.cx.close()
            logger.info("Cache MongoClient closed")


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Create a Flask application with the cache backend registered.

    Args:
        config: Optional config values applied before the extension reads them

    Returns:
        Flask: The configured application
    """
    app = Flask(__name__)
    if config:
        app.config.update(config)
    FlaskTagCache(app)
    return app
