from datetime import datetime
from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field

from .cache_entry import FIELD_EXPIRE, FIELD_TAGS, FIELD_MODIFIED, to_timestamp


class CacheMetadata(BaseModel):
    """Expiry and modification metadata of a single entry, as epoch seconds."""
    expire: Optional[int] = Field(None, description="None for infinite lifetime")
    tags: List[Union[str, bytes]] = Field(default_factory=list)
    mtime: int

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "CacheMetadata":
        expire: Optional[datetime] = doc.get(FIELD_EXPIRE)
        return cls(
            expire=to_timestamp(expire) if expire is not None else None,
            tags=list(doc.get(FIELD_TAGS) or []),
            mtime=to_timestamp(doc[FIELD_MODIFIED]),
        )
