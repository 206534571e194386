# ============================================================================
# BLOB PATH MATCHING AND SUBSTITUTION
# ============================================================================
# STATUS: Core - Pure functions
# PURPOSE: Match concrete blob paths against trigger patterns and resolve output patterns
# ============================================================================
"""
Blob Path Matching.

A pattern such as "in/{name}.txt" is compiled once into an anchored
regex. Each placeholder captures a non-empty, non-greedy run of any
characters, including '/', so "in/{name}.txt" matches
"in/2024/report.txt" with name="2024/report". A placeholder repeated in
one pattern must capture the same text each time.

Exports:
    match: Concrete path against pattern, returning route values or None
    apply_names: Substitute route values into an output pattern
"""

import re
from functools import lru_cache
from typing import Dict, Optional, Pattern

from exceptions import UnresolvedRouteError
from ..models.blob_path import BlobPath, tokenize


RouteValues = Dict[str, str]


@lru_cache(maxsize=1024)
def _compile(pattern_text: str) -> Pattern:
    parts = []
    seen = set()
    for token in tokenize(pattern_text):
        if not token.is_placeholder:
            parts.append(re.escape(token.value))
        elif token.value in seen:
            parts.append(f"(?P={token.value})")
        else:
            seen.add(token.value)
            parts.append(f"(?P<{token.value}>.+?)")
    return re.compile("".join(parts), re.DOTALL)


def match(pattern: BlobPath, actual: BlobPath) -> Optional[RouteValues]:
    """
    Match a concrete blob path against an input pattern.

    Args:
        pattern: Trigger input pattern (literal container)
        actual: Concrete blob path

    Returns:
        Placeholder name to captured text, empty dict for a literal
        pattern that matches exactly, None when there is no match
    """
    if pattern.container_name != actual.container_name:
        return None

    found = _compile(pattern.blob_name).fullmatch(actual.blob_name)
    if found is None:
        return None
    return found.groupdict()


def _substitute(pattern_text: str, route_values: RouteValues, full_pattern: str) -> str:
    resolved = []
    for token in tokenize(pattern_text):
        if not token.is_placeholder:
            resolved.append(token.value)
            continue
        if token.value not in route_values:
            raise UnresolvedRouteError(token.value, full_pattern)
        resolved.append(route_values[token.value])
    return "".join(resolved)


def apply_names(pattern: BlobPath, route_values: RouteValues) -> BlobPath:
    """
    Resolve an output pattern with values captured from the input.

    Args:
        pattern: Output pattern; container and blob parts may both carry placeholders
        route_values: Captured values from match()

    Returns:
        Concrete BlobPath

    Raises:
        UnresolvedRouteError: A placeholder has no captured value
    """
    full_pattern = str(pattern)
    return BlobPath.concrete(
        _substitute(pattern.container_name, route_values, full_pattern),
        _substitute(pattern.blob_name, route_values, full_pattern),
    )
