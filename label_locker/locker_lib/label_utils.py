"""Small helpers for label normalization and token handling."""
from __future__ import annotations

import hmac
from typing import Optional

TokenLike = (bytes, bytearray, memoryview)


def normalize_label(value: Optional[str]) -> str:
    """Return a stable key for a label (strip + casefold)."""
    if value is None:
        return ""
    return value.strip().casefold()


def is_token(value: object) -> bool:
    return isinstance(value, TokenLike)


def tokens_match(stored: bytes, presented: bytes) -> bool:
    """Compare two version tokens for equality in constant time."""
    return hmac.compare_digest(bytes(stored), bytes(presented))


def encode_token(token: bytes) -> str:
    """Render a token as lowercase hex for CLI output."""
    return bytes(token).hex()


def decode_token(text: str) -> bytes:
    """Parse a hex token back into bytes.

    Raises:
        ValueError: If the text is empty or not valid hex
    """
    clean = (text or "").strip()
    if not clean:
        raise ValueError("token is required")
    try:
        return bytes.fromhex(clean)
    except ValueError as exc:
        raise ValueError(f"Invalid token: {clean!r}") from exc
