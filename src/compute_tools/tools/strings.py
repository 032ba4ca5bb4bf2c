"""String case conversion, splitting and trimming/padding tools."""
import re
from typing import Callable, Dict, List, Literal, Optional

from pydantic import Field

from compute_tools.common.errors import InvalidInputError
from compute_tools.common.models import ToolInput, ToolOutput
from compute_tools.tools.base import tool

TargetCase = Literal[
    "lower",
    "upper",
    "title",
    "sentence",
    "camelCase",
    "PascalCase",
    "snake_case",
    "SCREAMING_SNAKE_CASE",
    "kebab-case",
    "SCREAMING-KEBAB-CASE",
]
SplitType = Literal["string", "regex", "whitespace", "lines", "chars", "words"]
TrimOperation = Literal[
    "trim",
    "trim_start",
    "trim_end",
    "trim_char",
    "trim_char_start",
    "trim_char_end",
    "pad",
    "pad_left",
    "pad_right",
    "pad_center",
]

# Acronym runs, capitalised or lowercase words, and digit runs
_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")
_WORD_BOUNDARY = re.compile(r"\b\w+\b")

# Upper bound on padded output, in characters
MAX_PAD_LENGTH = 1_000_000

DELIMITER_LABELS = {
    "whitespace": "<whitespace>",
    "lines": "<newline>",
    "chars": "<none>",
    "words": "<word-boundary>",
}


class CaseConvertInput(ToolInput):
    text: str
    target_case: TargetCase


class SplitInput(ToolInput):
    text: str
    delimiter: str = Field(default=" ", description="Separator for 'string' and pattern for 'regex'")
    split_type: SplitType = Field(default="string")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of parts")
    trim_parts: bool = False
    remove_empty: bool = False


class TrimInput(ToolInput):
    text: str
    operation: TrimOperation = Field(default="trim")
    char_to_trim: Optional[str] = Field(default=None, description="Character removed by trim_char operations")
    pad_length: Optional[int] = Field(
        default=None, ge=0, le=MAX_PAD_LENGTH, description="Target length for pad operations"
    )
    pad_char: str = Field(default=" ", min_length=1)
    pad_side: Literal["left", "right", "center"] = Field(default="right", description="Side used by 'pad'")


class CaseConvertResult(ToolOutput):
    converted: str
    original: str
    target_case: str
    changed: bool


class SplitResult(ToolOutput):
    parts: List[str]
    count: int
    original: str
    delimiter_used: str
    split_type: str


class TrimResult(ToolOutput):
    original: str
    processed: str
    operation: str
    length_before: int
    length_after: int


def split_words(text: str) -> List[str]:
    """Split an identifier or phrase into words on separators and case changes."""
    return _WORD.findall(text)


def _sentence(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


CASE_CONVERTERS: Dict[str, Callable[[str], str]] = {
    "lower": str.lower,
    "upper": str.upper,
    "title": lambda text: " ".join(word.capitalize() for word in split_words(text)),
    "sentence": _sentence,
    "camelCase": lambda text: "".join(
        word.lower() if i == 0 else word.capitalize() for i, word in enumerate(split_words(text))
    ),
    "PascalCase": lambda text: "".join(word.capitalize() for word in split_words(text)),
    "snake_case": lambda text: "_".join(word.lower() for word in split_words(text)),
    "SCREAMING_SNAKE_CASE": lambda text: "_".join(word.upper() for word in split_words(text)),
    "kebab-case": lambda text: "-".join(word.lower() for word in split_words(text)),
    "SCREAMING-KEBAB-CASE": lambda text: "-".join(word.upper() for word in split_words(text)),
}


@tool("string_case_converter", CaseConvertInput)
def string_case_converter(data: CaseConvertInput) -> CaseConvertResult:
    """Convert text to another letter case or identifier style."""
    if not data.text:
        raise InvalidInputError("Text cannot be empty")
    converted = CASE_CONVERTERS[data.target_case](data.text)
    return CaseConvertResult(
        converted=converted,
        original=data.text,
        target_case=data.target_case,
        changed=converted != data.text,
    )


@tool("string_splitter", SplitInput)
def string_splitter(data: SplitInput) -> SplitResult:
    """
    Split text by a delimiter, a regex, whitespace, lines, characters or words.

    ``limit`` caps the number of parts: for delimiter based splits the last part
    keeps the unsplit remainder, for the other types extra parts are dropped.

    :raises InvalidInputError: If the regex pattern does not compile
    """
    text, limit = data.text, data.limit

    if data.split_type == "string":
        if not data.delimiter:
            parts = list(text)
        else:
            parts = text.split(data.delimiter, -1 if limit is None else limit - 1)
    elif data.split_type == "regex":
        try:
            pattern = re.compile(data.delimiter)
        except re.error as exc:
            raise InvalidInputError(f"Invalid regex pattern: {exc}") from exc
        parts = pattern.split(text, maxsplit=0 if limit is None else limit - 1)
    elif data.split_type == "whitespace":
        parts = text.split(None, -1 if limit is None else limit - 1)
    elif data.split_type == "lines":
        parts = text.splitlines()[:limit]
    elif data.split_type == "chars":
        parts = list(text)[:limit]
    else:
        parts = _WORD_BOUNDARY.findall(text)[:limit]

    if data.trim_parts:
        parts = [part.strip() for part in parts]
    if data.remove_empty:
        parts = [part for part in parts if part]

    return SplitResult(
        parts=parts,
        count=len(parts),
        original=text,
        delimiter_used=DELIMITER_LABELS.get(data.split_type, data.delimiter),
        split_type=data.split_type,
    )


def _pad(text: str, length: int, char: str, side: str) -> str:
    missing = length - len(text)
    if missing <= 0:
        return text
    if side == "left":
        return char * missing + text
    if side == "center":
        left = missing // 2
        return char * left + text + char * (missing - left)
    return text + char * missing


@tool("string_trimmer", TrimInput)
def string_trimmer(data: TrimInput) -> TrimResult:
    """
    Trim whitespace or a given character, or pad text to a length.

    :raises InvalidInputError: If a trim_char operation has no ``char_to_trim`` or a
        pad operation has no ``pad_length``
    """
    text, operation = data.text, data.operation

    if operation == "trim":
        processed = text.strip()
    elif operation == "trim_start":
        processed = text.lstrip()
    elif operation == "trim_end":
        processed = text.rstrip()
    elif operation.startswith("trim_char"):
        if not data.char_to_trim:
            raise InvalidInputError(f"char_to_trim must be provided for {operation} operation")
        char = data.char_to_trim[0]
        if operation == "trim_char":
            processed = text.strip(char)
        elif operation == "trim_char_start":
            processed = text.lstrip(char)
        else:
            processed = text.rstrip(char)
    else:
        if data.pad_length is None:
            raise InvalidInputError("pad_length must be provided for padding operations")
        side = data.pad_side if operation == "pad" else operation[len("pad_"):]
        processed = _pad(text, data.pad_length, data.pad_char[0], side)

    return TrimResult(
        original=text,
        processed=processed,
        operation=operation,
        length_before=len(text),
        length_after=len(processed),
    )
