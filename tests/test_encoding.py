"""Test the base64, hex and URL encoding tools."""
import pytest

from compute_tools.common.errors import InvalidInputError
from compute_tools.tools import encoding
from compute_tools.tools.catalog import default_registry


@pytest.mark.parametrize(
    "text,variant,expected",
    [
        ("Hello", "standard", "SGVsbG8="),
        ("Hello", "standard_no_pad", "SGVsbG8"),
        ("??>", "standard", "Pz8+"),
        ("??>", "url_safe", "Pz8-"),
        ("???", "url_safe_no_pad", "Pz8_"),
    ],
)
def test_base64_encode_variants(text: str, variant: str, expected: str) -> None:
    """Each variant picks its alphabet and padding."""
    result = encoding.base64_encode(encoding.Base64EncodeInput(data=text, variant=variant))
    assert result.encoded == expected
    assert result.encoded_length == len(expected)
    assert result.original_length == len(text.encode("utf-8"))
    assert result.variant == variant


@pytest.mark.parametrize(
    "encoded,variant,expected",
    [
        ("SGVsbG8=", "standard", "Hello"),
        ("SGVs\nbG8=", "standard", "Hello"),
        ("SGVsbG8", "standard_no_pad", "Hello"),
        ("Pz8-", "url_safe", "??>"),
        ("Pz8_", "url_safe_no_pad", "???"),
    ],
)
def test_base64_decode_variants(encoded: str, variant: str, expected: str) -> None:
    """Decoding reverses each variant; whitespace is ignored."""
    result = encoding.base64_decode(encoding.Base64DecodeInput(encoded=encoded, variant=variant))
    assert result.decoded == expected
    assert result.decoded_utf8 == expected
    assert result.is_valid_utf8
    assert result.decoded_length == len(expected)


@pytest.mark.parametrize(
    "encoded,variant",
    [
        ("SGVsbG8", "standard"),
        ("SGVsbG8=", "standard_no_pad"),
        ("Pz8-", "standard"),
        ("Pz8+", "url_safe"),
        ("S*GV", "standard"),
    ],
)
def test_base64_decode_rejects_invalid(encoded: str, variant: str) -> None:
    """Wrong padding or characters outside the variant's alphabet are invalid input."""
    with pytest.raises(InvalidInputError, match="Failed to decode base64"):
        encoding.base64_decode(encoding.Base64DecodeInput(encoded=encoded, variant=variant))


def test_base64_decode_binary() -> None:
    """Bytes that are not UTF-8 are summarised instead of decoded."""
    result = encoding.base64_decode(encoding.Base64DecodeInput(encoded="/w=="))
    assert result.decoded == "[Binary data: 1 bytes]"
    assert result.decoded_utf8 is None
    assert not result.is_valid_utf8


@pytest.mark.parametrize("tool_name,field", [("base64_encode", "data"), ("base64_decode", "encoded")])
def test_base64_empty_input(tool_name: str, field: str) -> None:
    """Empty payloads come back as error envelopes."""
    response = default_registry().invoke(tool_name, {field: ""})
    assert response.is_error
    assert "cannot be empty" in response.payload()["error"]


def test_base64_unknown_variant() -> None:
    """Only the four documented variants are accepted."""
    response = default_registry().invoke("base64_encode", {"data": "x", "variant": "base32"})
    assert response.is_error


def test_hex_encode() -> None:
    """Two digits per byte, lowercase by default."""
    lower = encoding.hex_encode(encoding.HexEncodeInput(data="hello"))
    assert lower.encoded == "68656c6c6f"
    upper = encoding.hex_encode(encoding.HexEncodeInput(data="hello", case="uppercase"))
    assert upper.encoded == "68656C6C6F"
    assert upper.encoded_length == 10


def test_hex_decode_ignores_whitespace() -> None:
    """Whitespace between pairs is stripped by default."""
    result = encoding.hex_decode(encoding.HexDecodeInput(encoded="48 69\n"))
    assert result.decoded == "Hi"
    assert result.pairs_decoded == 2
    assert result.encoded_length == 6


@pytest.mark.parametrize(
    "encoded,ignore_whitespace,message",
    [
        ("48 69", False, "even length"),
        ("486", True, "even length"),
        ("4g", True, "invalid hex character"),
    ],
)
def test_hex_decode_rejects_invalid(encoded: str, ignore_whitespace: bool, message: str) -> None:
    """Odd lengths and non-hex characters are invalid input."""
    with pytest.raises(InvalidInputError, match=message):
        encoding.hex_decode(encoding.HexDecodeInput(encoded=encoded, ignore_whitespace=ignore_whitespace))


def test_hex_decode_binary() -> None:
    """A lone 0xff byte is not UTF-8."""
    result = encoding.hex_decode(encoding.HexDecodeInput(encoded="ff"))
    assert not result.is_valid_utf8
    assert result.decoded == "[Binary data: 1 bytes]"


@pytest.mark.parametrize(
    "text,mode,expected",
    [
        ("hello world&x=1", "component", "hello%20world%26x%3D1"),
        ("a b/c?d", "path", "a%20b/c%3Fd"),
        ("a b?c=d", "query", "a%20b?c=d"),
        ("a-b", "full", "a%2Db"),
        ("café", "component", "caf%C3%A9"),
    ],
)
def test_url_encode_modes(text: str, mode: str, expected: str) -> None:
    """Each mode leaves a different set of reserved characters alone."""
    result = encoding.url_encode(encoding.UrlEncodeInput(data=text, mode=mode))
    assert result.encoded == expected
    assert result.chars_encoded == expected.count("%")


def test_url_decode() -> None:
    """Percent sequences decode to UTF-8 text."""
    result = encoding.url_decode(encoding.UrlDecodeInput(encoded="caf%C3%A9%20au%20lait"))
    assert result.decoded == "café au lait"
    assert result.sequences_decoded == 4
    assert result.is_valid_utf8
    assert result.error is None


def test_url_decode_plus() -> None:
    """'+' becomes a space only when asked."""
    assert encoding.url_decode(encoding.UrlDecodeInput(encoded="a+b")).decoded == "a+b"
    assert encoding.url_decode(encoding.UrlDecodeInput(encoded="a+b", decode_plus=True)).decoded == "a b"


def test_url_decode_passes_through_malformed_sequences() -> None:
    """A '%' not followed by two hex digits is kept as is."""
    assert encoding.url_decode(encoding.UrlDecodeInput(encoded="100%zz")).decoded == "100%zz"


def test_url_decode_invalid_utf8_is_reported() -> None:
    """Invalid UTF-8 is decoded lossily and flagged in the result."""
    result = encoding.url_decode(encoding.UrlDecodeInput(encoded="%FF"))
    assert not result.is_valid_utf8
    assert result.decoded == "�"
    assert result.error.startswith("Invalid UTF-8 sequence")
