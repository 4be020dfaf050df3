"""
Cache Store Interface

Abstract base class for every tagged cache backend. The cache facade
only talks to this interface, so it never depends on the storage
technology behind it.

Every method reports failures through its return value (False, None or
an empty list); implementations must not raise for store failures.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .enums.cleaning_mode_enum import CleaningMode
from .models.cache_capabilities import CacheCapabilities
from .models.cache_metadata import CacheMetadata
from .tag_query_builder import TagsArg


class _UseDefaultLifetime:
    def __repr__(self):
        return "USE_DEFAULT_LIFETIME"


# Passed as specific_lifetime to fall back to the backend's configured lifetime.
# None means infinite lifetime.
USE_DEFAULT_LIFETIME = _UseDefaultLifetime()


class CacheStore(ABC):

    @abstractmethod
    def save(self, cache_id: str, data: Union[bytes, str], tags: TagsArg = None,
             specific_lifetime=USE_DEFAULT_LIFETIME) -> bool:
        """
        Store data under cache_id, fully replacing any previous entry.

        Args:
            cache_id (str): Cache id.
            data (bytes): Payload; str is stored as its UTF-8 bytes.
            tags: Tags for the entry, a single tag or a list.
            specific_lifetime: Seconds, None for infinite, or USE_DEFAULT_LIFETIME.

        Returns:
            bool: True if the entry was written.
        """
        pass

    @abstractmethod
    def load(self, cache_id: str, do_not_test_cache_validity: bool = False) -> Optional[bytes]:
        """
        Return the payload of cache_id, or None when absent or expired.
        Expired entries are returned when do_not_test_cache_validity is set.
        """
        pass

    @abstractmethod
    def test(self, cache_id: str) -> Optional[int]:
        """Return the last modification timestamp of a valid entry, or None."""
        pass

    @abstractmethod
    def remove(self, cache_id: str) -> bool:
        """Remove cache_id. False when nothing was removed."""
        pass

    @abstractmethod
    def clean(self, mode: Union[CleaningMode, str] = CleaningMode.ALL, tags: TagsArg = None) -> bool:
        """
        Remove many entries at once.

        CleaningMode.ALL              remove everything (tags unused)
        CleaningMode.OLD              remove entries whose lifetime elapsed (tags unused)
        CleaningMode.MATCHING_TAG     remove entries carrying all given tags
        CleaningMode.NOT_MATCHING_TAG remove entries carrying none of the given tags
        CleaningMode.MATCHING_ANY_TAG remove entries carrying any given tag
        """
        pass

    @abstractmethod
    def get_ids(self) -> List[str]:
        pass

    @abstractmethod
    def get_tags(self) -> List[Union[str, bytes]]:
        pass

    @abstractmethod
    def get_ids_matching_tags(self, tags: TagsArg = None) -> List[str]:
        """Ids carrying every given tag (logical AND)."""
        pass

    @abstractmethod
    def get_ids_not_matching_tags(self, tags: TagsArg = None) -> List[str]:
        """Ids carrying none of the given tags."""
        pass

    @abstractmethod
    def get_ids_matching_any_tags(self, tags: TagsArg = None) -> List[str]:
        """Ids carrying at least one given tag (logical OR)."""
        pass

    @abstractmethod
    def get_metadatas(self, cache_id: str) -> Optional[CacheMetadata]:
        pass

    @abstractmethod
    def touch(self, cache_id: str, extra_lifetime: int) -> bool:
        """Give an extra lifetime to cache_id. False for infinite, expired or absent entries."""
        pass

    @abstractmethod
    def get_filling_percentage(self) -> int:
        pass

    @abstractmethod
    def get_capabilities(self) -> CacheCapabilities:
        pass
