# ============================================================================
# CLAUDE CONTEXT - CORE MODELS - BLOB PATH
# ============================================================================
# STATUS: Core models - blob path value type and pattern grammar
# PURPOSE: Immutable "container/blob" path, optionally carrying {placeholder} segments
# EXPORTS: BlobPath, PathToken
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: BlobPath
# DEPENDENCIES: pydantic, re
# SCOPE: Trigger input/output patterns and concrete blob paths
# VALIDATION: Placeholder syntax validated on construction
# PATTERNS: Value object
# ENTRY_POINTS: BlobPath.parse("container/{name}.txt")
# ============================================================================

"""
Blob path value type.

A BlobPath is either concrete ("images/cat.png") or a pattern
("images/{name}.png"). Patterns are tokenized here so that malformed
placeholders fail when the trigger is built, not on the first poll.
Matching and substitution live in core.logic.blob_path.
"""

import re
from typing import List, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


_PLACEHOLDER_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class PathToken(NamedTuple):
    """One piece of a tokenized pattern: literal text or a placeholder name."""
    is_placeholder: bool
    value: str


def tokenize(pattern: str) -> List[PathToken]:
    """
    Split a pattern into literal and placeholder tokens.

    Args:
        pattern: Text such as "out/{name}-{size}.png"

    Returns:
        Ordered list of PathToken

    Raises:
        ValueError: Unbalanced braces, bad placeholder names, or two
            placeholders with no literal text between them
    """
    tokens: List[PathToken] = []
    position = 0
    length = len(pattern)

    while position < length:
        open_index = pattern.find("{", position)
        close_index = pattern.find("}", position)

        if close_index != -1 and (open_index == -1 or close_index < open_index):
            raise ValueError(f"Unmatched '}}' at {close_index} in pattern '{pattern}'")

        if open_index == -1:
            tokens.append(PathToken(False, pattern[position:]))
            break

        if open_index > position:
            tokens.append(PathToken(False, pattern[position:open_index]))

        if close_index == -1:
            raise ValueError(f"Unmatched '{{' at {open_index} in pattern '{pattern}'")

        name = pattern[open_index + 1:close_index]
        if "{" in name:
            raise ValueError(f"Nested '{{' at {open_index} in pattern '{pattern}'")
        if not _PLACEHOLDER_NAME.match(name):
            raise ValueError(f"Invalid placeholder name '{name}' in pattern '{pattern}'")
        if tokens and tokens[-1].is_placeholder:
            raise ValueError(
                f"Adjacent placeholders '{{{tokens[-1].value}}}{{{name}}}' are ambiguous in pattern '{pattern}'"
            )

        tokens.append(PathToken(True, name))
        position = close_index + 1

    return tokens


class BlobPath(BaseModel):
    """
    A container name plus a blob name.

    Container names are lower case in Azure, so comparisons are exact.
    Either part may contain placeholders when the path is a pattern.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    container_name: str = Field(..., min_length=1, description="Container (may be a pattern)")
    blob_name: str = Field(..., min_length=1, description="Blob name within the container (may be a pattern)")

    @model_validator(mode="after")
    def _validate_placeholders(self) -> "BlobPath":
        tokenize(self.container_name)
        tokenize(self.blob_name)
        return self

    @classmethod
    def parse(cls, path: str) -> "BlobPath":
        """
        Parse "container/blob/name".

        Raises:
            ValueError: If the path has no '/' separating container and blob
        """
        container_name, separator, blob_name = path.partition("/")
        if not separator or not container_name or not blob_name:
            raise ValueError(f"Blob path must look like 'container/blob', got '{path}'")
        return cls(container_name=container_name, blob_name=blob_name)

    @classmethod
    def concrete(cls, container_name: str, blob_name: str) -> "BlobPath":
        """
        Build a path for a real blob without placeholder validation.

        Real blob names may legally contain braces.
        """
        return cls.model_construct(container_name=container_name, blob_name=blob_name)

    @property
    def placeholders(self) -> List[str]:
        """Placeholder names in order of appearance (container first)."""
        return [
            token.value
            for token in tokenize(self.container_name) + tokenize(self.blob_name)
            if token.is_placeholder
        ]

    @property
    def is_pattern(self) -> bool:
        return bool(self.placeholders)

    def __str__(self) -> str:
        return f"{self.container_name}/{self.blob_name}"