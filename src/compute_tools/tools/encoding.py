"""Base64, hex and percent (URL) encoding tools."""
import base64
import binascii
import re
import string
from typing import FrozenSet, Literal, Optional

from pydantic import Field

from compute_tools.common.errors import InvalidInputError
from compute_tools.common.models import ToolInput, ToolOutput
from compute_tools.tools.base import tool

Base64Variant = Literal["standard", "standard_no_pad", "url_safe", "url_safe_no_pad"]
UrlMode = Literal["component", "path", "query", "full"]

_BASE64_ALPHABETS = {
    "standard": re.compile(r"[A-Za-z0-9+/]*={0,2}"),
    "url_safe": re.compile(r"[A-Za-z0-9_-]*={0,2}"),
}
_PERCENT_SEQUENCE = re.compile(r"%[0-9A-Fa-f]{2}")
_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]*")

# ASCII characters percent-encoded by each URL mode; non-ASCII bytes are always encoded
_CONTROLS = frozenset(chr(code) for code in range(0x20)) | {"\x7f"}
_QUERY_SET = _CONTROLS | frozenset(' "<>`')
_PATH_SET = _QUERY_SET | frozenset("#?{}")
_USERINFO_SET = _PATH_SET | frozenset("/:;=@[\\]^|")
_COMPONENT_SET = _USERINFO_SET | frozenset("$%&+,")
_FULL_SET = frozenset(chr(code) for code in range(0x80)) - frozenset(string.ascii_letters + string.digits)

URL_ENCODE_SETS = {
    "component": _COMPONENT_SET,
    "path": _PATH_SET,
    "query": _QUERY_SET,
    "full": _FULL_SET,
}


class Base64EncodeInput(ToolInput):
    data: str = Field(..., description="Text to encode (UTF-8)")
    variant: Base64Variant = Field(default="standard", description="Alphabet and padding variant")


class Base64DecodeInput(ToolInput):
    encoded: str = Field(..., description="Base64 text; whitespace is ignored")
    variant: Base64Variant = Field(default="standard", description="Alphabet and padding variant")


class HexEncodeInput(ToolInput):
    data: str = Field(..., description="Text to encode (UTF-8)")
    case: Literal["lowercase", "uppercase"] = Field(default="lowercase")


class HexDecodeInput(ToolInput):
    encoded: str = Field(..., description="Hex digits, two per byte")
    ignore_whitespace: bool = Field(default=True, description="Strip whitespace before decoding")


class UrlEncodeInput(ToolInput):
    data: str = Field(..., description="Text to percent-encode")
    mode: UrlMode = Field(default="component", description="Which characters to encode")


class UrlDecodeInput(ToolInput):
    encoded: str = Field(..., description="Percent-encoded text")
    decode_plus: bool = Field(default=False, description="Treat '+' as a space")


class EncodeResult(ToolOutput):
    encoded: str
    original_length: int
    encoded_length: int


class Base64EncodeResult(EncodeResult):
    variant: str


class HexEncodeResult(EncodeResult):
    case: str


class UrlEncodeResult(EncodeResult):
    mode: str
    chars_encoded: int


class DecodeResult(ToolOutput):
    decoded: str = Field(..., description="Decoded text, or a byte count placeholder for binary data")
    decoded_utf8: Optional[str] = None
    encoded_length: int
    decoded_length: int
    is_valid_utf8: bool


class Base64DecodeResult(DecodeResult):
    variant: str


class HexDecodeResult(DecodeResult):
    pairs_decoded: int


class UrlDecodeResult(ToolOutput):
    decoded: str
    encoded_length: int
    decoded_length: int
    sequences_decoded: int
    is_valid_utf8: bool
    error: Optional[str] = None


def _require(value: str, message: str) -> None:
    if not value:
        raise InvalidInputError(message)


def _decoded_fields(raw: bytes) -> dict:
    """Text view of decoded bytes, with a placeholder when they are not UTF-8."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    return {
        "decoded": text if text is not None else f"[Binary data: {len(raw)} bytes]",
        "decoded_utf8": text,
        "decoded_length": len(raw),
        "is_valid_utf8": text is not None,
    }


@tool("base64_encode", Base64EncodeInput)
def base64_encode(data: Base64EncodeInput) -> Base64EncodeResult:
    """Encode text as base64."""
    _require(data.data, "Data cannot be empty")
    raw = data.data.encode("utf-8")
    if data.variant.startswith("url_safe"):
        encoded = base64.urlsafe_b64encode(raw).decode("ascii")
    else:
        encoded = base64.b64encode(raw).decode("ascii")
    if data.variant.endswith("_no_pad"):
        encoded = encoded.rstrip("=")
    return Base64EncodeResult(
        encoded=encoded,
        original_length=len(raw),
        encoded_length=len(encoded),
        variant=data.variant,
    )


@tool("base64_decode", Base64DecodeInput)
def base64_decode(data: Base64DecodeInput) -> Base64DecodeResult:
    """
    Decode base64 text.

    Padded variants require correct padding; unpadded variants reject it.

    :raises InvalidInputError: If the text is empty or not valid for the variant
    """
    _require(data.encoded, "Encoded data cannot be empty")
    cleaned = "".join(data.encoded.split())
    url_safe = data.variant.startswith("url_safe")
    alphabet = _BASE64_ALPHABETS["url_safe" if url_safe else "standard"]

    if not alphabet.fullmatch(cleaned):
        raise InvalidInputError("Failed to decode base64: invalid character for the selected variant")
    if data.variant.endswith("_no_pad"):
        if "=" in cleaned:
            raise InvalidInputError("Failed to decode base64: padding is not allowed for this variant")
        cleaned += "=" * (-len(cleaned) % 4)

    try:
        raw = base64.b64decode(cleaned, altchars=b"-_" if url_safe else None, validate=True)
    except binascii.Error as exc:
        raise InvalidInputError(f"Failed to decode base64: {exc}") from exc

    return Base64DecodeResult(
        encoded_length=len(data.encoded),
        variant=data.variant,
        **_decoded_fields(raw),
    )


@tool("hex_encode", HexEncodeInput)
def hex_encode(data: HexEncodeInput) -> HexEncodeResult:
    """Encode text as hexadecimal, two digits per byte."""
    _require(data.data, "Data cannot be empty")
    raw = data.data.encode("utf-8")
    encoded = raw.hex()
    if data.case == "uppercase":
        encoded = encoded.upper()
    return HexEncodeResult(
        encoded=encoded,
        original_length=len(raw),
        encoded_length=len(encoded),
        case=data.case,
    )


@tool("hex_decode", HexDecodeInput)
def hex_decode(data: HexDecodeInput) -> HexDecodeResult:
    """
    Decode hexadecimal text.

    :raises InvalidInputError: If the text is empty, of odd length, or not hex
    """
    _require(data.encoded, "Encoded data cannot be empty")
    cleaned = "".join(data.encoded.split()) if data.ignore_whitespace else data.encoded
    if len(cleaned) % 2:
        raise InvalidInputError("Hex string must have even length (pairs of characters)")
    if not _HEX_DIGITS.fullmatch(cleaned):
        raise InvalidInputError("Failed to decode hex: invalid hex character")
    raw = bytes.fromhex(cleaned)

    return HexDecodeResult(
        encoded_length=len(data.encoded),
        pairs_decoded=len(cleaned) // 2,
        **_decoded_fields(raw),
    )


def percent_encode(text: str, encode_set: FrozenSet[str]) -> str:
    """Percent-encode the UTF-8 bytes of ``text`` that are non-ASCII or in ``encode_set``."""
    out = []
    for byte in text.encode("utf-8"):
        char = chr(byte)
        if byte >= 0x80 or char in encode_set:
            out.append(f"%{byte:02X}")
        else:
            out.append(char)
    return "".join(out)


@tool("url_encode", UrlEncodeInput)
def url_encode(data: UrlEncodeInput) -> UrlEncodeResult:
    """Percent-encode text for use in a URL component, path, query, or everything non-alphanumeric."""
    _require(data.data, "Data cannot be empty")
    encoded = percent_encode(data.data, URL_ENCODE_SETS[data.mode])
    return UrlEncodeResult(
        encoded=encoded,
        original_length=len(data.data.encode("utf-8")),
        encoded_length=len(encoded),
        mode=data.mode,
        chars_encoded=encoded.count("%"),
    )


def percent_decode(text: str) -> bytes:
    """Decode ``%XX`` sequences; any other character passes through as UTF-8."""
    out = bytearray()
    position = 0
    for match in _PERCENT_SEQUENCE.finditer(text):
        out += text[position:match.start()].encode("utf-8")
        out.append(int(match.group()[1:], 16))
        position = match.end()
    out += text[position:].encode("utf-8")
    return bytes(out)


@tool("url_decode", UrlDecodeInput)
def url_decode(data: UrlDecodeInput) -> UrlDecodeResult:
    """
    Decode percent-encoded text.

    Invalid UTF-8 is decoded lossily and reported in ``error`` rather than failing.
    """
    _require(data.encoded, "Encoded data cannot be empty")
    source = data.encoded.replace("+", " ") if data.decode_plus else data.encoded
    raw = percent_decode(source)

    error = None
    try:
        decoded = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        decoded = raw.decode("utf-8", errors="replace")
        error = f"Invalid UTF-8 sequence: {exc}"

    return UrlDecodeResult(
        decoded=decoded,
        encoded_length=len(data.encoded),
        decoded_length=len(decoded),
        sequences_decoded=len(_PERCENT_SEQUENCE.findall(source)),
        is_valid_utf8=error is None,
        error=error,
    )
