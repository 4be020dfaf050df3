"""
Base model class for MongoDB operations on an injected collection.
Every driver call goes through _guarded so that store failures come back
as CacheResult values instead of exceptions.
"""
from typing import Any, Callable, Dict, List, Optional

from bson.errors import BSONError
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from tagcache.shared.modules.cache.enums.cache_error_kind_enum import CacheErrorKind
from tagcache.shared.modules.cache.models.cache_result import CacheResult
from tagcache.shared.modules.log.simple_logger import get_logger


class BaseNoSqlModel:
    """
    Thin CRUD layer over a single MongoDB collection.

    The collection is owned by whoever builds the model; the model never
    opens or closes connections itself.
    """

    def __init__(self, collection: Collection):
        self._collection = collection
        self.logger = get_logger(
            type(self).__name__,
            f"{collection.database.name}.{collection.name}",
        )

    @property
    def collection(self) -> Collection:
        return self._collection

    def _guarded(self, operation: str, call: Callable[[], CacheResult], doc_id: Optional[str] = None) -> CacheResult:
        """
        Run a store call. Driver errors become a TRANSPORT failure, values the
        driver cannot BSON encode become an INVALID_VALUE failure.
        """
        target = f" for id {doc_id!r}" if doc_id is not None else ""
        try:
            return call()
        except PyMongoError as e:
            self.logger.warning(f"{operation} failed{target}: {e}")
            return CacheResult.failure(CacheErrorKind.TRANSPORT, str(e))
        except (BSONError, UnicodeError) as e:
            self.logger.warning(f"{operation} could not encode value{target}: {e}")
            return CacheResult.failure(CacheErrorKind.INVALID_VALUE, str(e))

    # -------------------------------------------------------------------------
    # Common CRUD operations
    # -------------------------------------------------------------------------

    def find_by_id(
        self,
        doc_id: str,
        fields: List[str],
        extra_filter: Optional[Dict[str, Any]] = None,
    ) -> CacheResult:
        """
        Find a raw document by its ID, projected to the given fields.
        extra_filter is merged into the query (e.g. a validity filter).
        """
        query = {"_id": doc_id}
        if extra_filter:
            query.update(extra_filter)

        def call():
            doc = self.collection.find_one(query, {field: 1 for field in fields})
            if doc is None:
                return CacheResult.not_found()
            return CacheResult.success(doc)

        return self._guarded("find_by_id", call, doc_id)

    def replace(self, doc_id: str, doc: Dict[str, Any]) -> CacheResult:
        """Create or fully replace the document stored under doc_id."""
        def call():
            result = self.collection.replace_one({"_id": doc_id}, doc, upsert=True)
            if not result.acknowledged:
                return CacheResult.failure(CacheErrorKind.WRITE_NOT_ACKNOWLEDGED)
            return CacheResult.success()

        return self._guarded("replace", call, doc_id)

    def update(self, doc_id: str, fields: Dict[str, Any]) -> CacheResult:
        """$set the given fields on an existing document. Fails if nothing matched."""
        def call():
            result = self.collection.update_one({"_id": doc_id}, {"$set": fields})
            if not result.acknowledged:
                return CacheResult.failure(CacheErrorKind.WRITE_NOT_ACKNOWLEDGED)
            if result.matched_count == 0:
                return CacheResult.not_found()
            return CacheResult.success()

        return self._guarded("update", call, doc_id)

    def delete(self, doc_id: str) -> CacheResult:
        """Delete one document; not found when nothing was removed."""
        def call():
            result = self.collection.delete_one({"_id": doc_id})
            if not result.acknowledged:
                return CacheResult.failure(CacheErrorKind.WRITE_NOT_ACKNOWLEDGED)
            if result.deleted_count == 0:
                return CacheResult.not_found()
            return CacheResult.success()

        return self._guarded("delete", call, doc_id)

    def delete_many(self, query: Dict[str, Any]) -> CacheResult:
        """Delete every matching document; the value is the number removed."""
        def call():
            result = self.collection.delete_many(query)
            if not result.acknowledged:
                return CacheResult.failure(CacheErrorKind.WRITE_NOT_ACKNOWLEDGED)
            return CacheResult.success(result.deleted_count)

        return self._guarded("delete_many", call)

    def find_ids(self, query: Dict[str, Any]) -> CacheResult:
        """Ids of every matching document, materialised into a list."""
        def call():
            cursor = self.collection.find(query, {"_id": 1})
            return CacheResult.success([doc["_id"] for doc in cursor])

        return self._guarded("find_ids", call)

    def distinct(self, field: str) -> CacheResult:
        def call():
            return CacheResult.success(list(self.collection.distinct(field)))

        return self._guarded("distinct", call)
