"""
URL-safe base64 and base-36 transcoding helpers.
"""

import base64
import re
import string
from typing import Any, Optional, Union

_BASE36_DIGITS = string.digits + string.ascii_lowercase
_BASE36_RE = re.compile(r"[+-]?[0-9a-z]+", re.IGNORECASE)


def _to_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    return str(data).encode("utf-8")


def to_url_safe_base64(data: Any) -> str:
    """
    Encode data as URL-safe base64.

    Bytes-like values are encoded as-is; anything else is converted to
    text and UTF-8 encoded first. Padding is kept.
    """
    return base64.urlsafe_b64encode(_to_bytes(data)).decode("ascii")


def from_url_safe_base64(data: str, encoding: Optional[str] = None) -> Union[bytes, str]:
    """
    Decode URL-safe base64 text.

    Args:
        data: URL-safe base64 text, with or without trailing padding
        encoding: Text encoding for the result, or None to return bytes

    Returns:
        Decoded bytes, or text when an encoding is given

    Raises:
        binascii.Error: If the input is not valid base64
    """
    text = data.decode("ascii") if isinstance(data, (bytes, bytearray)) else str(data)
    text = text.rstrip("=")
    text += "=" * (-len(text) % 4)

    raw = base64.urlsafe_b64decode(text)
    return raw if encoding is None else raw.decode(encoding)


def to_base36(value: int) -> str:
    """Render an integer as lowercase base-36 text."""
    value = int(value)
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def parse_base36(text: str) -> int:
    """Parse base-36 text into an integer; raises ValueError on anything else."""
    if not isinstance(text, str) or not _BASE36_RE.fullmatch(text):
        raise ValueError(f"invalid base-36 value: {text!r}")
    return int(text, 36)
