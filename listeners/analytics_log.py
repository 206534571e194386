"""
Storage Analytics Log Parsing.

Blob-service analytics logs (version 1.0) are one request per line,
fields separated by ';', with quoted fields that may themselves contain
';'. Only successful blob writes matter to the listener.

Fields read (0-based):
    0   version-number        "1.0"
    1   request-start-time
    2   operation-type        PutBlob, PutBlockList, ...
    3   request-status        Success, SASSuccess, AnonymousSuccess, ...
    12  requested-object-key  "/account/container/blob", URL-encoded

Exports:
    BlobWrite: A parsed write record
    WRITE_OPERATIONS: Operation types that create or change a blob
    parse_log_line: One line to BlobWrite, or None
    parse_log_text: Whole log blob to BlobWrite list
"""

import csv
from typing import Iterable, List, NamedTuple, Optional
from urllib.parse import unquote

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.DETECTOR, "AnalyticsLog")

SUPPORTED_VERSION = "1.0"

WRITE_OPERATIONS = frozenset({
    "PutBlob",
    "PutBlockList",
    "CopyBlob",
    "SetBlobMetadata",
    "SetBlobProperties",
    "AppendBlock",
    "AppendBlockFromURL",
    "PutPage",
    "PutPageFromURL",
    "PutBlobFromURL",
    "CopyBlobFromURL",
})

# Log writers are not consistent about "URL" vs "Url"
_WRITE_OPERATIONS_LOWER = frozenset(op.lower() for op in WRITE_OPERATIONS)

_MIN_FIELDS = 13


class BlobWrite(NamedTuple):
    account_name: str
    container_name: str
    blob_name: str
    operation: str
    request_start_time: str


def _split_object_key(key: str) -> Optional[tuple]:
    # "/account/container/blob/with/slashes"
    parts = unquote(key).lstrip("/").split("/", 2)
    if len(parts) != 3 or not all(parts):
        return None
    return tuple(parts)


def parse_log_line(line: str) -> Optional[BlobWrite]:
    """
    Parse one log line.

    Returns:
        BlobWrite for a successful write to a blob, None for anything else
        (reads, failures, container-level operations, malformed lines)
    """
    if not line.strip():
        return None

    try:
        fields = next(csv.reader([line], delimiter=";", quotechar='"'))
    except (csv.Error, StopIteration) as e:
        logger.debug(f"Skipping unparseable log line: {e}")
        return None

    if len(fields) < _MIN_FIELDS:
        logger.debug(f"Skipping short log line ({len(fields)} fields)")
        return None
    if fields[0] != SUPPORTED_VERSION:
        logger.debug(f"Skipping log line with version {fields[0]}")
        return None

    operation, status = fields[2], fields[3]
    if operation.lower() not in _WRITE_OPERATIONS_LOWER or not status.endswith("Success"):
        return None

    key_parts = _split_object_key(fields[12])
    if key_parts is None:
        logger.debug(f"Skipping {operation} with unexpected object key: {fields[12]}")
        return None

    account_name, container_name, blob_name = key_parts
    return BlobWrite(account_name, container_name, blob_name, operation, fields[1])


def parse_log_text(lines: Iterable[str]) -> List[BlobWrite]:
    """Parse every line, dropping the ones that are not blob writes."""
    writes = []
    for line in lines:
        write = parse_log_line(line)
        if write is not None:
            writes.append(write)
    return writes
