"""
Decoding of D-Bus property values as rendered by busctl.

`busctl get-property` prints a value as its type signature followed by
the value, e.g. ``t 1234567``. Timestamps are unsigned 64-bit (``t``).
"""

UINT64_MAX = 2**64 - 1


class ValueDecodeError(ValueError):
    """Raised when a property value is not an unsigned 64-bit integer."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        super().__init__(f"Cannot decode {raw!r}: {reason}")


def strip_type(raw: str) -> str:
    """
    Drop the D-Bus type token from a rendered value.

    Raises:
        IndexError: If the value has no type token
    """
    return raw.strip().split(" ")[1]


def decode_uint64(raw: str) -> int:
    """
    Decode a rendered ``t`` property into an int.

    Args:
        raw: Value as printed by busctl ("<type> <value>")

    Returns:
        Parsed unsigned integer

    Raises:
        IndexError: If the value lacks the two-token shape
        ValueDecodeError: If the value is not an unsigned 64-bit integer
    """
    text = strip_type(raw)
    if not text.isascii() or not text.isdigit():
        raise ValueDecodeError(raw, "not an unsigned integer")

    value = int(text)
    if value > UINT64_MAX:
        raise ValueDecodeError(raw, "out of uint64 range")
    return value
