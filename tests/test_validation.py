import pytest

from memc.domain.errors import ErrorKind, KeyNotValidError
from memc.domain.validation import validate_key


pytestmark = [pytest.mark.unit]


def test_validate_key_accepts_normal_key():
    validate_key("normal")
    validate_key("user:42/profile")


def test_validate_key_rejects_empty():
    with pytest.raises(KeyNotValidError, match="Key cannot be empty"):
        validate_key("")


def test_validate_key_length_limit_is_250_bytes():
    validate_key("a" * 250)
    with pytest.raises(KeyNotValidError, match="too long"):
        validate_key("a" * 251)


def test_validate_key_counts_utf8_bytes():
    validate_key("ł" * 125)
    with pytest.raises(KeyNotValidError):
        validate_key("ł" * 126)


@pytest.mark.parametrize(
    "key",
    ["abc 123", "abc\t123", "abc\r\n", "abc\n123", "\x00abc", "abc\x7f", "abc\u0085", "abc　def"],
)
def test_validate_key_rejects_whitespace_and_control_characters(key):
    with pytest.raises(KeyNotValidError) as exc_info:
        validate_key(key)
    assert exc_info.value.kind is ErrorKind.KEY_NOT_VALID


def test_validate_key_rejects_non_string():
    with pytest.raises(KeyNotValidError, match="Key must be a string"):
        validate_key(123)  # type: ignore[arg-type]


def test_key_error_is_a_value_error():
    with pytest.raises(ValueError):
        validate_key("")
