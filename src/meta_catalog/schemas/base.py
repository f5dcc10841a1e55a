"""Core pydantic types for catalog input.

Content hashes travel as lowercase hex at the edges of the system and as raw
bytes inside it. Metadata keys are restricted to ``[a-zA-Z0-9_-]``, and an
assignment is written ``key=value`` with a non-empty value.
"""

import re
from typing import Annotated, Sequence

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer, StringConstraints

KEY_PATTERN = r"^[a-zA-Z0-9_-]+$"
KEY_RE = re.compile(KEY_PATTERN)
ASSIGN_RE = re.compile(r"^([a-zA-Z0-9_-]+)=(.+)$", re.DOTALL)
KEY_SPLIT_RE = re.compile(r"\s*,\s*")


def parse_hex_hash(value: object) -> bytes:
    """Accept a hash as bytes or as a hex string."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes.fromhex(value.strip())
        except ValueError as e:
            raise ValueError(f"Content hash is not valid hex: {value!r}") from e
    raise ValueError(f"Content hash must be hex or bytes, got {type(value).__name__}")


ContentHash = Annotated[
    bytes,
    BeforeValidator(parse_hex_hash),
    PlainSerializer(lambda v: v.hex(), return_type=str),
]
"""Raw hash bytes, parsed from and serialized to hex."""

MetadataKey = Annotated[str, StringConstraints(pattern=KEY_PATTERN)]


class MetadataAssignment(BaseModel):
    """A single ``key=value`` assignment."""

    key: MetadataKey
    value: str = Field(min_length=1)

    @classmethod
    def parse(cls, assignment: str) -> "MetadataAssignment":
        """Parse ``key=value``. The value may itself contain ``=``.

        Raises:
            ValueError: If the text is not a valid assignment
        """
        match = ASSIGN_RE.match(assignment)
        if not match:
            raise ValueError(f"Invalid assignment '{assignment}', expected key=value")
        return cls(key=match.group(1), value=match.group(2))


def parse_key_list(args: Sequence[str]) -> list[str]:
    """Split comma separated key arguments into individual keys.

    Keys may be given as separate arguments, joined by commas, or both:
    ``["a", "b"]``, ``["a,b"]``, ``["a,", "b"]``, ``["a", ",b"]`` and
    ``["a, b"]`` all yield ``["a", "b"]``. A trailing comma is allowed.

    Raises:
        ValueError: On a doubled comma, including one split across two
            arguments, or on a key that does not match ``[a-zA-Z0-9_-]+``
    """
    keys: list[str] = []
    comma = False
    for index, arg in enumerate(args):
        if ",," in arg or (comma and arg.startswith(",")):
            raise ValueError(f"Unexpected comma in argument {index + 1}: '{arg}'")

        stripped = arg.strip(",")
        if stripped:
            for key in KEY_SPLIT_RE.split(stripped):
                if not KEY_RE.match(key):
                    raise ValueError(f"Invalid key '{key}'")
                keys.append(key)

        comma = arg.endswith(",")
    return keys
