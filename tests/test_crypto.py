"""Test the hash_generator tool."""
import pytest

from compute_tools.tools.catalog import default_registry
from compute_tools.tools.crypto import HashInput, hash_generator


@pytest.mark.parametrize(
    "algorithm,expected",
    [
        ("md5", "5d41402abc4b2a76b9719d911017c592"),
        ("sha256", "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"),
    ],
)
def test_hash_hex(algorithm: str, expected: str) -> None:
    """Well-known digests of 'hello'."""
    result = hash_generator(HashInput(text="hello", algorithm=algorithm))
    assert result.hash == expected
    assert result.format == "hex"
    assert result.string_length == len(expected)
    assert result.byte_length == len(expected) // 2
    assert result.input_length == 5


def test_hash_sha512_length() -> None:
    """SHA-512 digests are 64 bytes."""
    result = hash_generator(HashInput(text="hello", algorithm="sha512"))
    assert result.byte_length == 64
    assert len(result.hash) == 128


def test_hash_base64() -> None:
    """Digests can be rendered as base64."""
    result = hash_generator(HashInput(text="hello", algorithm="md5", format="base64"))
    assert result.hash == "XUFAKrxLKna5cZ2REBfFkg=="
    assert result.byte_length == 16


def test_hash_algorithm_case_insensitive() -> None:
    """Algorithm names are accepted in any letter case."""
    assert hash_generator(HashInput(text="", algorithm="SHA256")).algorithm == "sha256"


def test_hash_input_length_in_bytes() -> None:
    """The input length counts UTF-8 bytes."""
    assert hash_generator(HashInput(text="héllo", algorithm="md5")).input_length == 6


def test_hash_unsupported_algorithm() -> None:
    """Algorithms outside md5/sha256/sha512 are rejected."""
    response = default_registry().invoke("hash_generator", {"text": "x", "algorithm": "sha1"})
    assert response.is_error
    assert "algorithm" in response.payload()["error"]
