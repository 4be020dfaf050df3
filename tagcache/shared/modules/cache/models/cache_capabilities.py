from pydantic import BaseModel, ConfigDict


class CacheCapabilities(BaseModel):
    """
    Static capability descriptor read by the cache facade.

    automatic_cleaning: whether the facade must trigger clean(OLD) itself
    tags: whether tags are supported
    expired_read: whether expired records can be read back
    priority: whether save() honours a priority
    infinite_lifetime: whether entries may never expire
    get_list: whether ids and tags can be listed
    """
    model_config = ConfigDict(frozen=True)

    automatic_cleaning: bool = False
    tags: bool = True
    expired_read: bool = False
    priority: bool = False
    infinite_lifetime: bool = True
    get_list: bool = True
