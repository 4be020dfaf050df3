"""Tag-addressable cache backend on MongoDB."""
from tagcache.backend.modules.cache.services.mongo_cache_backend import MongoCacheBackend
from tagcache.backend.factories.backend_factory import BackendFactory
from tagcache.shared.modules.cache.cache_store import CacheStore, USE_DEFAULT_LIFETIME
from tagcache.shared.modules.cache.enums.cleaning_mode_enum import CleaningMode
from tagcache.shared.modules.cache.enums.cache_error_kind_enum import CacheErrorKind
from tagcache.shared.modules.cache.exceptions import (
    CacheBackendError,
    CacheBackendConfigurationError,
    InvalidCleaningModeError,
)
from tagcache.shared.modules.cache.models.backend_options import BackendOptions
from tagcache.shared.modules.cache.models.cache_capabilities import CacheCapabilities
from tagcache.shared.modules.cache.models.cache_metadata import CacheMetadata
from tagcache.shared.modules.cache.models.cache_result import CacheResult

__all__ = [
    "BackendFactory",
    "BackendOptions",
    "CacheBackendConfigurationError",
    "CacheBackendError",
    "CacheCapabilities",
    "CacheErrorKind",
    "CacheMetadata",
    "CacheResult",
    "CacheStore",
    "CleaningMode",
    "InvalidCleaningModeError",
    "MongoCacheBackend",
    "USE_DEFAULT_LIFETIME",
]
