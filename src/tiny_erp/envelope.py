"""
Wrapping and unwrapping of Tiny's single-key container lists.

Tiny nests every collection element under a fixed key:
    {"contatos": [{"contato": {...}}, {"contato": {...}}]}

``unwrap`` turns such a list into a flat list of records and ``wrap`` goes
back. Which fields of a record are wrapped collections is declared per
entity as a tuple of ``Nested`` rules and applied by ``unwrap_record`` /
``wrap_record``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .client import TinyClientError


class TinyShapeError(TinyClientError):
    """A container lacked its wrapper key, or a batch result didn't correlate."""

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


@dataclass(frozen=True)
class Nested:
    """``field`` holds a collection wrapped under ``key``; ``children`` apply per element."""

    field: str
    key: str
    children: Tuple["Nested", ...] = ()


def unwrap_one(container: Any, key: str) -> Any:
    if not isinstance(container, Mapping) or key not in container:
        raise TinyShapeError(
            f"Expected a container with key {key!r}, got {_describe(container)}",
            key=key,
        )
    return container[key]


def unwrap(wrapped: Optional[Iterable[Any]], key: str) -> List[Any]:
    """
    Extract ``key`` from every container, preserving order.
    Example: unwrap([{"tipo": "Cliente"}], "tipo") -> ["Cliente"]
    A missing collection (None) unwraps to [].
    """
    if wrapped is None:
        return []
    if isinstance(wrapped, (str, bytes, Mapping)):
        raise TinyShapeError(
            f"Expected a list of {key!r} containers, got {_describe(wrapped)}",
            key=key,
        )
    return [unwrap_one(container, key) for container in wrapped]


def wrap(flat: Optional[Iterable[Any]], key: str) -> List[Dict[str, Any]]:
    """
    Put every record into a fresh single-key container.
    Example: wrap(["Cliente"], "tipo") -> [{"tipo": "Cliente"}]
    """
    if flat is None:
        return []
    return [{key: record} for record in flat]


def unwrap_record(record: Mapping[str, Any], plan: Sequence[Nested]) -> Dict[str, Any]:
    """Copy ``record`` with every planned field unwrapped (recursively)."""
    if not isinstance(record, Mapping):
        raise TinyShapeError(f"Expected a record object, got {_describe(record)}")
    clean = dict(record)
    for rule in plan:
        items = unwrap(record.get(rule.field), rule.key)
        if rule.children:
            items = [unwrap_record(_as_record(item, rule), rule.children) for item in items]
        clean[rule.field] = items
    return clean


def wrap_record(record: Mapping[str, Any], plan: Sequence[Nested]) -> Dict[str, Any]:
    """Copy ``record`` with every planned field wrapped; absent fields become []."""
    dirty = dict(record)
    for rule in plan:
        items = list(record.get(rule.field) or [])
        if rule.children:
            items = [wrap_record(_as_record(item, rule), rule.children) for item in items]
        dirty[rule.field] = wrap(items, rule.key)
    return dirty


def wrap_batch(
    entries: Iterable[Tuple[int, Mapping[str, Any]]],
    *,
    collection: str,
    key: str,
    plan: Sequence[Nested] = (),
) -> Dict[str, Any]:
    """
    Build a batch write payload: each record gets its ``sequencia`` and
    its nested collections wrapped, then the batch is wrapped under ``key``.
    """
    records = []
    for sequence, data in entries:
        record = wrap_record(data, plan)
        record["sequencia"] = sequence
        records.append(record)
    return {collection: wrap(records, key)}


def _as_record(item: Any, rule: Nested) -> Mapping[str, Any]:
    if not isinstance(item, Mapping):
        raise TinyShapeError(
            f"Expected {rule.key!r} to hold an object, got {_describe(item)}",
            key=rule.key,
        )
    return item


def _describe(value: Any) -> str:
    if isinstance(value, Mapping):
        return f"object with keys {sorted(value)}"
    return type(value).__name__
