from datetime import datetime, timedelta, timezone
from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field

# Short field names keep every cached document small
FIELD_ID = "_id"
FIELD_DATA = "d"
FIELD_TAGS = "t"
FIELD_MODIFIED = "m"
FIELD_EXPIRE = "e"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """
    One cached payload plus its tags and timing metadata.

    Example:
        entry = CacheEntry.build("user_42", b"...", tags=["user"], lifetime=60)
        collection.replace_one({"_id": entry.id}, entry.to_document(), upsert=True)
    """
    id: str = Field(..., description="Caller supplied cache id, stored as Mongo _id")
    data: bytes = Field(..., description="Raw payload bytes")
    tags: List[Union[str, bytes]] = Field(default_factory=list, description="Text tags, or raw bytes when not valid UTF-8")
    modified: datetime = Field(default_factory=utcnow)
    expire: Optional[datetime] = Field(None, description="None means infinite lifetime")

    @classmethod
    def build(
        cls,
        cache_id: str,
        data: bytes,
        tags: Optional[List[Union[str, bytes]]] = None,
        lifetime: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> "CacheEntry":
        """
        Create an entry stamped with the current time.
        A falsy lifetime (None or 0) leaves the entry without an expire date.
        """
        now = now or utcnow()
        expire = now + timedelta(seconds=lifetime) if lifetime else None
        return cls(
            id=cache_id,
            data=data,
            tags=list(tags or []),
            modified=now,
            expire=expire,
        )

    def to_document(self) -> Dict[str, Any]:
        """Convert into the Mongo document layout (expire omitted when infinite)."""
        doc = {
            FIELD_ID: self.id,
            FIELD_DATA: self.data,
            FIELD_TAGS: list(self.tags),
            FIELD_MODIFIED: self.modified,
        }
        if self.expire is not None:
            doc[FIELD_EXPIRE] = self.expire
        return doc


def to_timestamp(value: datetime) -> int:
    """
    Convert a BSON date to epoch seconds.
    pymongo hands back naive datetimes unless the client is tz_aware; those are UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())
