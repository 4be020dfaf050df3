from typing import Optional
from pydantic import BaseModel, Field

DEFAULT_SERVER = "mongodb://localhost:27017/?journal=false&w=1&wTimeoutMS=20000"
DEFAULT_DBNAME = "cm_cache"
DEFAULT_COLLECTION = "cm_cache"
DEFAULT_LIFETIME = 3600


class BackendOptions(BaseModel):
    """
    Construction options of the Mongo cache backend.

    Example:
        options = BackendOptions(server="mongodb://cache-db:27017", ensure_index=False)
    """
    server: str = Field(DEFAULT_SERVER, description="MongoClient connection string")
    dbname: str = Field(DEFAULT_DBNAME, min_length=1)
    collection: str = Field(DEFAULT_COLLECTION, min_length=1)
    ensure_index: bool = Field(True, description="Create the tag and TTL indexes on construction")
    check_utf8: bool = Field(False, description="Wrap non UTF-8 values in BSON binary before saving")
    lifetime: Optional[int] = Field(
        DEFAULT_LIFETIME, ge=0, description="Default lifetime in seconds, None for infinite"
    )
