"""
Translates invalidation requests into Mongo filter documents.

Nothing here talks to the database: the store only executes the filter
these functions decide on.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from .enums.cleaning_mode_enum import CleaningMode
from .exceptions import InvalidCleaningModeError
from .models.cache_entry import FIELD_EXPIRE, FIELD_TAGS
from .payload_codec import encode_if_binary

Tag = Union[str, bytes]
TagsArg = Union[str, bytes, Iterable[Tag], None]

TAG_MODES = (
    CleaningMode.MATCHING_TAG,
    CleaningMode.NOT_MATCHING_TAG,
    CleaningMode.MATCHING_ANY_TAG,
)

_TAG_OPERATORS = {
    CleaningMode.MATCHING_TAG: "$all",
    CleaningMode.NOT_MATCHING_TAG: "$nin",
    CleaningMode.MATCHING_ANY_TAG: "$in",
}


def _as_tag(tag):
    # Lone surrogates cannot be BSON encoded; keep their raw bytes instead
    if isinstance(tag, str):
        try:
            tag.encode("utf-8")
        except UnicodeEncodeError:
            return tag.encode("utf-8", "surrogateescape")
    return tag


def normalize_tags(tags: TagsArg) -> List[Tag]:
    """
    Accept a single tag or any iterable of tags; drop duplicates, keep order.
    Strings that are not valid UTF-8 become their raw bytes.
    """
    if tags is None:
        return []
    if isinstance(tags, (str, bytes)):
        tags = [tags]
    seen = []
    for tag in map(_as_tag, tags):
        if tag not in seen:
            seen.append(tag)
    return seen


def coerce_mode(mode: Union[CleaningMode, str]) -> CleaningMode:
    try:
        return CleaningMode(mode)
    except ValueError:
        raise InvalidCleaningModeError(mode) from None


def build_validity_filter(now: datetime) -> Dict[str, Any]:
    """Entries without expire, or expiring now or later."""
    return {FIELD_EXPIRE: {"$not": {"$lt": now}}}


def build_clean_filter(
    mode: Union[CleaningMode, str],
    tags: TagsArg = None,
    now: Optional[datetime] = None,
    encode_tags: bool = False,
) -> Optional[Dict[str, Any]]:
    """
    Build the filter selecting the entries a clean/get_ids call targets.

    Returns None when a tag mode is given no tags, meaning "select nothing":
    an empty tag list must never widen into a match-everything filter.
    Raises InvalidCleaningModeError for unknown modes.
    """
    mode = coerce_mode(mode)

    if mode == CleaningMode.ALL:
        return {}

    if mode == CleaningMode.OLD:
        if now is None:
            raise ValueError("OLD mode needs the current time")
        return {FIELD_EXPIRE: {"$lt": now}}

    tag_list = normalize_tags(tags)
    if not tag_list:
        return None
    if encode_tags:
        tag_list = encode_if_binary(tag_list)
    return {FIELD_TAGS: {_TAG_OPERATORS[mode]: tag_list}}
