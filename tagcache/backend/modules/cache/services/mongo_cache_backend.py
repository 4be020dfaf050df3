"""
Mongo Cache Backend is responsible for:
1. Owning (or borrowing) the MongoClient and picking the cache collection
2. Provisioning indexes when asked to
3. Exposing the CacheStore contract: booleans and None instead of exceptions

All entry logic lives in CacheEntryModel; this service only resolves
lifetimes and unwraps CacheResult values.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from pymongo import MongoClient

from tagcache.backend.modules.cache.models.cache_entry_model import CacheEntryModel
from tagcache.shared.modules.cache.cache_store import CacheStore, USE_DEFAULT_LIFETIME
from tagcache.shared.modules.cache.enums.cleaning_mode_enum import CleaningMode
from tagcache.shared.modules.cache.exceptions import CacheBackendConfigurationError
from tagcache.shared.modules.cache.models.backend_options import BackendOptions
from tagcache.shared.modules.cache.models.cache_capabilities import CacheCapabilities
from tagcache.shared.modules.cache.models.cache_metadata import CacheMetadata
from tagcache.shared.modules.cache.models.cache_result import CacheResult
from tagcache.shared.modules.cache.tag_query_builder import TagsArg
from tagcache.shared.modules.log.simple_logger import get_logger

CAPABILITIES = CacheCapabilities(
    automatic_cleaning=False,
    tags=True,
    expired_read=False,
    priority=False,
    infinite_lifetime=True,
    get_list=True,
)


class MongoCacheBackend(CacheStore):
    """
    Tagged cache backend storing one document per cache id.

    Example:
        with MongoCacheBackend({"server": "mongodb://localhost:27017"}) as cache:
            cache.save("page_1", b"<html>...", tags=["pages"])
            cache.clean(CleaningMode.MATCHING_TAG, ["pages"])
    """

    def __init__(
        self,
        options: Union[BackendOptions, Dict[str, Any], None] = None,
        client: Optional[MongoClient] = None,
    ):
        """
        Args:
            options: BackendOptions or a dict of option values
            client: An existing MongoClient to borrow; it will not be closed by this backend

        Raises:
            CacheBackendConfigurationError: invalid options or index provisioning failed
        """
        self.options = self._parse_options(options)
        self.logger = get_logger("MongoCacheBackend", f"{self.options.dbname}.{self.options.collection}")

        self._owns_client = client is None
        self._client = client if client is not None else MongoClient(self.options.server, tz_aware=True)
        self._db = self._client[self.options.dbname]
        self._collection = self._db[self.options.collection]
        self.entries = CacheEntryModel(self._collection, check_utf8=self.options.check_utf8)

        if self.options.ensure_index:
            try:
                self.entries.ensure_indexes()
            except CacheBackendConfigurationError:
                self.close()
                raise

    @staticmethod
    def _parse_options(options) -> BackendOptions:
        if isinstance(options, BackendOptions):
            return options
        try:
            return BackendOptions(**(options or {}))
        except ValidationError as e:
            raise CacheBackendConfigurationError(f"Invalid cache backend options: {e}") from e

    @property
    def collection(self):
        return self._collection

    def close(self):
        """Close the client if this backend opened it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self.logger.info("MongoClient closed")
        self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get_lifetime(self, specific_lifetime=USE_DEFAULT_LIFETIME) -> Optional[int]:
        """Effective lifetime in seconds, None meaning infinite."""
        if specific_lifetime is USE_DEFAULT_LIFETIME:
            return self.options.lifetime
        return specific_lifetime

    # -------------------------------------------------------------------------
    # CacheStore contract
    # -------------------------------------------------------------------------

    def save(self, cache_id, data, tags=None, specific_lifetime=USE_DEFAULT_LIFETIME) -> bool:
        lifetime = self.get_lifetime(specific_lifetime)
        return self.entries.save(cache_id, data, tags, lifetime).ok

    def load(self, cache_id, do_not_test_cache_validity=False) -> Optional[bytes]:
        return self.entries.load(cache_id, do_not_test_cache_validity).value_or(None)

    def test(self, cache_id) -> Optional[int]:
        return self.entries.test(cache_id).value_or(None)

    def remove(self, cache_id) -> bool:
        return self.entries.remove(cache_id).ok

    def clean(self, mode=CleaningMode.ALL, tags=None) -> bool:
        return self.entries.clean(mode, tags).ok

    def get_ids(self) -> List[str]:
        return self.entries.get_ids(CleaningMode.ALL).value_or([])

    def get_tags(self) -> List[Union[str, bytes]]:
        return self.entries.get_tags().value_or([])

    def get_ids_matching_tags(self, tags: TagsArg = None) -> List[str]:
        return self.entries.get_ids(CleaningMode.MATCHING_TAG, tags).value_or([])

    def get_ids_not_matching_tags(self, tags: TagsArg = None) -> List[str]:
        return self.entries.get_ids(CleaningMode.NOT_MATCHING_TAG, tags).value_or([])

    def get_ids_matching_any_tags(self, tags: TagsArg = None) -> List[str]:
        return self.entries.get_ids(CleaningMode.MATCHING_ANY_TAG, tags).value_or([])

    def get_metadatas(self, cache_id) -> Optional[CacheMetadata]:
        return self.entries.get_metadata(cache_id).value_or(None)

    def touch(self, cache_id, extra_lifetime) -> bool:
        return self.entries.touch(cache_id, extra_lifetime).ok

    def get_filling_percentage(self) -> int:
        # Free disk space is the only limit
        return 0

    def get_capabilities(self) -> CacheCapabilities:
        return CAPABILITIES

    def expire(self, cache_id) -> bool:
        """Force an entry out of the cache (only used for testing purposes)."""
        return self.entries.expire(cache_id).ok

    # -------------------------------------------------------------------------
    # Tagged results, for callers that need to tell "not found" from "store down"
    # -------------------------------------------------------------------------

    def load_result(self, cache_id, do_not_test_cache_validity=False) -> CacheResult:
        return self.entries.load(cache_id, do_not_test_cache_validity)

    def save_result(self, cache_id, data, tags=None, specific_lifetime=USE_DEFAULT_LIFETIME) -> CacheResult:
        return self.entries.save(cache_id, data, tags, self.get_lifetime(specific_lifetime))

    def remove_result(self, cache_id) -> CacheResult:
        return self.entries.remove(cache_id)

    def __repr__(self) -> str:
        return (
            f"MongoCacheBackend(dbname={self.options.dbname!r}, "
            f"collection={self.options.collection!r}, check_utf8={self.options.check_utf8})"
        )
