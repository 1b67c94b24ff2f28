from __future__ import annotations

import unicodedata

from .constraints import MAX_KEY_LENGTH
from .errors import KeyNotValidError


def _is_forbidden(char: str) -> bool:
    return char.isspace() or unicodedata.category(char) == "Cc"


def validate_key(key: str) -> None:
    if not isinstance(key, str):
        raise KeyNotValidError("Key must be a string")
    if not key:
        raise KeyNotValidError("Key cannot be empty")
    if len(key.encode("utf-8")) > MAX_KEY_LENGTH:
        raise KeyNotValidError(f"Key is too long (max {MAX_KEY_LENGTH} bytes)")
    if any(_is_forbidden(char) for char in key):
        raise KeyNotValidError("Key cannot contain whitespace or control characters")
