"""
Result normalizers.

Nimiq node deployments disagree on reply shapes for the same method. These
helpers turn each accepted shape into one Python value.
"""

from typing import Any

# Object fields that may carry the head height, in lookup order
HEIGHT_FIELDS = ("data", "number", "height", "blockNumber")


def parse_hex_int(value: str) -> int:
    """
    Parse a base-16 integer string.

    Args:
        value: Hex digits, optionally 0x/0X prefixed

    Returns:
        Parsed integer

    Raises:
        ValueError: If the string is not hex
    """
    text = value.strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    if not text:
        raise ValueError(f"empty hex string: {value!r}")
    return int(text, 16)


def as_int(value: Any) -> int | None:
    """Read an integer from a JSON number or hex string, else None."""
    # bool is an int subclass but never a height
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return parse_hex_int(value)
        except ValueError:
            return None
    return None


def parse_head_height(result: Any) -> int | None:
    """
    Interpret a getBlockNumber result.

    Accepted shapes, tried in order: bare integer, hex string, object with
    the height under one of HEIGHT_FIELDS (number or hex string).

    Args:
        result: Raw JSON-RPC result

    Returns:
        Head height, or None if no shape matches
    """
    if isinstance(result, dict):
        for field in HEIGHT_FIELDS:
            height = as_int(result.get(field))
            if height is not None:
                return height
        return None

    return as_int(result)


def unwrap_list(result: Any, keys: tuple[str, ...] = ("data", "transactions")) -> list | None:
    """
    Find a list in a bare-array or enveloped result.

    Args:
        result: Raw JSON-RPC result
        keys: Envelope fields that may hold the list

    Returns:
        The list, or None if there is none
    """
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        for key in keys:
            value = result.get(key)
            if isinstance(value, list):
                return value
    return None


def unwrap_object(result: Any) -> dict | None:
    """
    Unwrap one level of {"data": {...}} envelope.

    Args:
        result: Raw JSON-RPC result

    Returns:
        The inner object, or None if there is none
    """
    if isinstance(result, dict) and isinstance(result.get("data"), dict):
        return result["data"]
    return None
