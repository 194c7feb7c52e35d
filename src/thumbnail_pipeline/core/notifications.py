"""Conversion of S3 event notification envelopes into work items."""

import json
from typing import Any, Dict, List, Mapping, Optional, Union

from .logging_config import get_logger
from .models import EventKind, WorkItem

S3_EVENT_SOURCE = "aws:s3"

EVENT_NAME_PREFIXES = (
    ("ObjectCreated", EventKind.CREATED),
    ("ObjectRemoved", EventKind.REMOVED),
)

Payload = Union[str, bytes, Mapping[str, Any]]


def extract_records(payload: Payload) -> Optional[List[Any]]:
    """
    Return the ``Records`` array of a notification envelope.

    Args:
        payload: Raw message body (JSON text/bytes) or an already decoded object

    Returns:
        The list of records, or None when the envelope is malformed (not JSON,
        not an object, ``Records`` missing or not a list)
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            payload = json.loads(payload)
        except (ValueError, UnicodeDecodeError, RecursionError):
            # RecursionError: pathologically nested JSON
            return None

    if not isinstance(payload, Mapping):
        return None

    records = payload.get("Records")
    if not isinstance(records, list):
        return None
    return records


def record_to_work_item(record: Any) -> Optional[WorkItem]:
    """
    Convert a single event record, or return None if it is not relevant.

    A record is relevant when it comes from S3, its event name starts with
    ``ObjectCreated`` or ``ObjectRemoved``, and it carries ``s3.object.key``.
    """
    if not isinstance(record, dict):
        return None

    if record.get("eventSource") != S3_EVENT_SOURCE:
        return None

    event_name = record.get("eventName")
    if not isinstance(event_name, str):
        return None

    event_kind = None
    for prefix, kind in EVENT_NAME_PREFIXES:
        if event_name.startswith(prefix):
            event_kind = kind
            break
    if event_kind is None:
        return None

    key = _nested(record, "s3", "object", "key")
    if not isinstance(key, str):
        return None

    return WorkItem(event_kind=event_kind, object_key=key)


def parse_notification(payload: Payload) -> List[WorkItem]:
    """
    Parse a queue message body into work items.

    Never raises and performs no I/O. Irrelevant or incomplete records are
    dropped one by one; a malformed envelope yields an empty list.
    """
    records = extract_records(payload)
    if records is None:
        get_logger("notifications").warning(
            "Discarding malformed notification payload (no Records array)"
        )
        return []

    return work_items_from_records(records)


def work_items_from_records(records: List[Any]) -> List[WorkItem]:
    """Convert an already extracted Records array, dropping irrelevant records."""
    work_items = []
    for record in records:
        item = record_to_work_item(record)
        if item is not None:
            work_items.append(item)
    return work_items


def _nested(data: Dict[str, Any], *path: str) -> Any:
    current: Any = data
    for name in path:
        if not isinstance(current, dict):
            return None
        current = current.get(name)
    return current
