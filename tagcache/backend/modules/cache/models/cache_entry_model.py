from datetime import timedelta
from typing import Optional, Union

from pydantic import ValidationError
from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from tagcache.backend.models.base_nosql_model import BaseNoSqlModel
from tagcache.shared.modules.cache.enums.cache_error_kind_enum import CacheErrorKind
from tagcache.shared.modules.cache.enums.cleaning_mode_enum import CleaningMode
from tagcache.shared.modules.cache.exceptions import CacheBackendConfigurationError
from tagcache.shared.modules.cache.models import cache_entry
from tagcache.shared.modules.cache.models.cache_entry import (
    CacheEntry,
    FIELD_DATA,
    FIELD_EXPIRE,
    FIELD_MODIFIED,
    FIELD_TAGS,
    to_timestamp,
)
from tagcache.shared.modules.cache.models.cache_metadata import CacheMetadata
from tagcache.shared.modules.cache.models.cache_result import CacheResult
from tagcache.shared.modules.cache.payload_codec import encode_if_binary, to_bytes, to_tag
from tagcache.shared.modules.cache.tag_query_builder import (
    TagsArg,
    build_clean_filter,
    build_validity_filter,
    normalize_tags,
)


class CacheEntryModel(BaseNoSqlModel):
    """
    MongoDB persistence for cache entries.

    Every operation returns a CacheResult so callers can tell a missing or
    expired entry (NOT_FOUND) apart from a store failure (TRANSPORT).
    """

    def __init__(self, collection: Collection, check_utf8: bool = False):
        super().__init__(collection)
        self.check_utf8 = check_utf8

    def ensure_indexes(self) -> None:
        """
        Create the tag index and the TTL index on expire.
        Raises CacheBackendConfigurationError: a backend without indexes is not usable.
        """
        try:
            self.collection.create_index([(FIELD_TAGS, ASCENDING)], background=True)
            self.collection.create_index(
                [(FIELD_EXPIRE, ASCENDING)], background=True, expireAfterSeconds=0
            )
        except PyMongoError as e:
            raise CacheBackendConfigurationError(f"Could not create cache indexes: {e}") from e
        self.logger.info("Cache indexes ensured")

    # -------------------------------------------------------------------------
    # Single entry operations
    # -------------------------------------------------------------------------

    def save(self, cache_id: str, data: Union[bytes, str], tags: TagsArg = None,
             lifetime: Optional[int] = None) -> CacheResult:
        """
        Create or fully replace an entry. A falsy lifetime means infinite.
        Values that cannot form an entry (non-string tags) give INVALID_VALUE.
        """
        if isinstance(data, str):
            data = data.encode("utf-8", "surrogateescape")
        try:
            entry = CacheEntry.build(
                cache_id, data, tags=normalize_tags(tags), lifetime=lifetime, now=cache_entry.utcnow()
            )
        except ValidationError as e:
            self.logger.warning(f"save rejected for id {cache_id!r}: {e}")
            return CacheResult.failure(CacheErrorKind.INVALID_VALUE, str(e))
        doc = entry.to_document()
        if self.check_utf8:
            doc = encode_if_binary(doc)
        return self.replace(cache_id, doc)

    def load(self, cache_id: str, do_not_test_cache_validity: bool = False) -> CacheResult:
        """Result value is the payload as bytes."""
        result = self._get_field(cache_id, FIELD_DATA, do_not_test_cache_validity)
        if result.ok:
            return CacheResult.success(to_bytes(result.value))
        return result

    def test(self, cache_id: str) -> CacheResult:
        """Result value is the modification time of a valid entry, in epoch seconds."""
        result = self._get_field(cache_id, FIELD_MODIFIED, False)
        if result.ok:
            return CacheResult.success(to_timestamp(result.value))
        return result

    def touch(self, cache_id: str, extra_lifetime: int) -> CacheResult:
        """
        Push the expire date of a valid entry back by extra_lifetime seconds.
        Entries with infinite lifetime have no date to extend and are reported NOT_FOUND.
        """
        result = self._get_field(cache_id, FIELD_EXPIRE, False)
        if not result.ok:
            return result
        if result.value is None:
            return CacheResult.not_found()
        expire = result.value + timedelta(seconds=extra_lifetime)
        return self.update(cache_id, {FIELD_EXPIRE: expire})

    def remove(self, cache_id: str) -> CacheResult:
        return self.delete(cache_id)

    def get_metadata(self, cache_id: str) -> CacheResult:
        """Metadata regardless of validity, so expired entries can be inspected."""
        result = self.find_by_id(cache_id, [FIELD_EXPIRE, FIELD_TAGS, FIELD_MODIFIED])
        if not result.ok:
            return result
        doc = result.value
        doc[FIELD_TAGS] = [to_tag(tag) for tag in doc.get(FIELD_TAGS) or []]
        return CacheResult.success(CacheMetadata.from_doc(doc))

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    def clean(self, mode: Union[CleaningMode, str] = CleaningMode.ALL, tags: TagsArg = None) -> CacheResult:
        """
        Delete the entries selected by mode/tags; the value is the number removed.
        A tag mode without tags is a successful no-op.
        """
        query = build_clean_filter(mode, tags, now=cache_entry.utcnow(), encode_tags=self.check_utf8)
        if query is None:
            return CacheResult.success(0)
        self.logger.debug(f"clean mode={mode} filter={query}")
        return self.delete_many(query)

    def get_ids(self, mode: Union[CleaningMode, str] = CleaningMode.ALL, tags: TagsArg = None) -> CacheResult:
        """Ids selected by mode/tags; a tag mode without tags selects nothing."""
        query = build_clean_filter(mode, tags, now=cache_entry.utcnow(), encode_tags=self.check_utf8)
        if query is None:
            return CacheResult.success([])
        return self.find_ids(query)

    def get_tags(self) -> CacheResult:
        result = self.distinct(FIELD_TAGS)
        if result.ok:
            return CacheResult.success([to_tag(tag) for tag in result.value])
        return result

    def expire(self, cache_id: str) -> CacheResult:
        """Force an entry out of the cache (test hook)."""
        return self.remove(cache_id)

    # -------------------------------------------------------------------------

    def _get_field(self, cache_id: str, field: str, do_not_test_cache_validity: bool) -> CacheResult:
        extra_filter = None
        if not do_not_test_cache_validity:
            extra_filter = build_validity_filter(cache_entry.utcnow())
        result = self.find_by_id(cache_id, [field], extra_filter)
        if result.ok:
            return CacheResult.success(result.value.get(field))
        return result
