"""Message digest tool."""
import base64
import hashlib
from typing import Any, Literal

from pydantic import Field, field_validator

from compute_tools.common.models import ToolInput, ToolOutput
from compute_tools.tools.base import tool


class HashInput(ToolInput):
    text: str = Field(..., description="Text to hash (UTF-8)")
    algorithm: Literal["md5", "sha256", "sha512"] = Field(..., description="Digest algorithm")
    format: Literal["hex", "base64"] = Field(default="hex", description="Digest representation")

    @field_validator("algorithm", "format", mode="before")
    def lowercase(cls, v: Any) -> Any:
        """Accept algorithm and format names in any letter case."""
        return v.lower() if isinstance(v, str) else v


class HashResult(ToolOutput):
    hash: str
    algorithm: str
    format: str
    byte_length: int = Field(..., description="Digest size in bytes")
    string_length: int = Field(..., description="Length of the rendered digest")
    input_length: int = Field(..., description="Input size in bytes")


@tool("hash_generator", HashInput)
def hash_generator(data: HashInput) -> HashResult:
    """Hash text with MD5, SHA-256 or SHA-512 and render the digest as hex or base64."""
    raw = data.text.encode("utf-8")
    digest = hashlib.new(data.algorithm, raw).digest()
    rendered = digest.hex() if data.format == "hex" else base64.b64encode(digest).decode("ascii")
    return HashResult(
        hash=rendered,
        algorithm=data.algorithm,
        format=data.format,
        byte_length=len(digest),
        string_length=len(rendered),
        input_length=len(raw),
    )
