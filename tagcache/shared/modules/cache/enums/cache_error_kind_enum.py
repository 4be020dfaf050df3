from enum import Enum

class CacheErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    WRITE_NOT_ACKNOWLEDGED = "write_not_acknowledged"
    INVALID_VALUE = "invalid_value"
