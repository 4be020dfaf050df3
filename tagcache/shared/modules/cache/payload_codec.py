"""
Payload Codec

BSON strings must be valid UTF-8, so arbitrary bytes cannot be stored as
text. This module decides per value, based on its bytes, whether it can be
written as a string or has to travel inside a bson.Binary container.
"""
from typing import Any, Union
from bson.binary import Binary


def _is_utf8(raw: bytes) -> bool:
    try:
        raw.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def encode_if_binary(value: Any) -> Any:
    """
    Make a value safe for a UTF-8 only encoding.

    - bytes that decode as UTF-8 become str
    - other bytes are wrapped in Binary
    - str that cannot be encoded (lone surrogates) is wrapped as its surrogateescape bytes
    - lists, tuples and dicts are walked recursively
    - anything else (datetime, None, numbers) is returned unchanged
    """
    if isinstance(value, Binary):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if _is_utf8(raw):
            return raw.decode("utf-8")
        return Binary(raw)
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            return Binary(value.encode("utf-8", "surrogateescape"))
        return value
    if isinstance(value, (list, tuple)):
        return [encode_if_binary(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_if_binary(item) for key, item in value.items()}
    return value


def decode_if_binary(value: Any) -> Any:
    """Inverse of encode_if_binary: unwrap Binary containers to raw bytes."""
    if isinstance(value, Binary):
        return bytes(value)
    if isinstance(value, list):
        return [decode_if_binary(item) for item in value]
    if isinstance(value, dict):
        return {key: decode_if_binary(item) for key, item in value.items()}
    return value


def to_bytes(value: Union[str, bytes]) -> bytes:
    """Normalise a stored payload to bytes, whichever form it was written in."""
    value = decode_if_binary(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def to_tag(value: Union[str, bytes]) -> Union[str, bytes]:
    """Normalise a stored tag: text when it is valid UTF-8, raw bytes otherwise."""
    value = decode_if_binary(value)
    if isinstance(value, bytes) and _is_utf8(value):
        return value.decode("utf-8")
    return value
