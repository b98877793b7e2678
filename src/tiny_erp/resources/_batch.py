"""
Shared helpers for Tiny search and batch-write endpoints.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Type, Union

from pydantic import BaseModel, ValidationError

from tiny_erp.client import STATUS_OK, TinyClient, TinyModelValidationError
from tiny_erp.envelope import Nested, TinyShapeError, unwrap, unwrap_record, wrap_batch
from tiny_erp.logging import log_event
from tiny_erp.models import BatchEntry, BatchResult, Page, batch_results_adapter

EntryLike = Union[BatchEntry, Mapping[str, Any]]


def search_params(
    filters_model: Type[BaseModel], query: str, filters: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    Validate search filters and return query params in the order supplied.
    Filters may use the Python name (``page``) or the Tiny name (``pagina``).
    """
    try:
        options = filters_model.model_validate(dict(filters))
    except ValidationError as exc:
        raise ValueError(f"Invalid search filters: {exc}") from exc

    aliases: Dict[str, str] = {}
    for name, field in filters_model.model_fields.items():
        alias = field.alias or name
        aliases[name] = alias
        aliases[alias] = alias

    dumped = options.model_dump(by_alias=True, exclude_none=True)
    params: Dict[str, Any] = {"pesquisa": query}
    for key in filters:
        alias = aliases[key]
        if alias in dumped:
            params[alias] = dumped[alias]
    return params


def unwrap_page(
    payload: Dict[str, Any], *, collection: str, key: str, model: Type[BaseModel]
) -> Page:
    records = unwrap(payload.get(collection), key)
    return TinyClient.validate(
        Page[model],  # type: ignore[valid-type]
        {
            "items": records,
            "page": payload.get("pagina") or 1,
            "total_pages": payload.get("numero_paginas") or 1,
        },
    )


def coerce_entries(entries: Iterable[EntryLike]) -> List[BatchEntry]:
    """Validate batch entries; sequence numbers must be unique within one call."""
    coerced = [
        e if isinstance(e, BatchEntry) else BatchEntry.model_validate(e)
        for e in entries
    ]
    seen = set()
    for entry in coerced:
        if entry.sequence in seen:
            raise ValueError(f"Duplicate sequence number in batch: {entry.sequence}")
        seen.add(entry.sequence)
    return coerced


def batch_form(
    entries: Sequence[BatchEntry],
    *,
    field: str,
    collection: str,
    key: str,
    plan: Sequence[Nested],
) -> Dict[str, str]:
    """Form body for a batch write: one field holding the JSON batch."""
    payload = wrap_batch(
        ((e.sequence, e.data) for e in entries),
        collection=collection,
        key=key,
        plan=plan,
    )
    try:
        body = json.dumps(payload)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Batch data is not JSON serializable: {exc}") from exc
    return {field: body}


def unwrap_results(
    payload: Dict[str, Any],
    entries: Sequence[BatchEntry],
    *,
    plan: Sequence[Nested] = (),
) -> List[BatchResult]:
    raw = unwrap(payload.get("registros"), "registro")
    if plan:
        # failures carry no nested collections
        raw = [
            unwrap_record(r, plan)
            if isinstance(r, Mapping) and r.get("status") == STATUS_OK
            else r
            for r in raw
        ]
    try:
        results = batch_results_adapter.validate_python(raw)
    except ValidationError as exc:
        raise TinyModelValidationError(f"Unexpected batch result: {exc}") from exc

    submitted = sorted(e.sequence for e in entries)
    returned = sorted(r.sequence for r in results)
    if submitted != returned:
        raise TinyShapeError(
            f"Batch results do not correlate: submitted sequences {submitted}, "
            f"got {returned}",
            key="registro",
        )
    return results


def index_by_sequence(results: Iterable[BatchResult]) -> Dict[int, BatchResult]:
    """Map each batch result to the sequence number it answers."""
    return {r.sequence: r for r in results}


async def submit_batch(
    client: TinyClient,
    endpoint: str,
    entries: Iterable[EntryLike],
    *,
    resource: str,
    field: str,
    collection: str,
    key: str,
    plan: Sequence[Nested],
    result_plan: Sequence[Nested] = (),
) -> List[BatchResult]:
    """
    Send all entries in a single request and return one result per entry.
    Per-record failures come back as BatchFailure items, not exceptions.
    """
    batch = coerce_entries(entries)
    form = batch_form(batch, field=field, collection=collection, key=key, plan=plan)
    payload = await client.post(endpoint, data=form, resource=resource)
    results = unwrap_results(payload, batch, plan=result_plan)

    failed = sum(1 for r in results if not r.ok)
    log_event(
        "batch.completed",
        resource=resource,
        endpoint=endpoint,
        submitted=len(batch),
        succeeded=len(results) - failed,
        failed=failed,
    )
    return results
