"""
Logging for the Tiny client.

Two records carry the client's details as LogRecord extras:

    tiny.request     DEBUG, ``tiny_erp.client``, one per HTTP call
    batch.completed  INFO, ``tiny_erp.batch``, one per batch write

``TinyLogFormatter`` renders them as logfmt, with the fields of the known
events first and any other extras after in name order.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

REQUEST_FIELDS = ("resource", "method", "endpoint", "status", "duration_ms")
BATCH_FIELDS = ("resource", "endpoint", "submitted", "succeeded", "failed")
EVENT_FIELDS = {
    "tiny.request": REQUEST_FIELDS,
    "batch.completed": BATCH_FIELDS,
}

# Extras are whatever a record carries beyond the stock attributes.
_STOCK_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

# Never rendered, even if a caller passes them as extras.
_SECRET_FIELDS = frozenset({"token"})


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STOCK_ATTRS}


class TinyLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        event = record.getMessage()
        pairs: List[Tuple[str, Any]] = [
            ("level", record.levelname.lower()),
            ("logger", record.name),
        ]
        if event:
            pairs.append(("event", event))

        extras = record_extras(record)
        ordered = [k for k in EVENT_FIELDS.get(event, ()) if k in extras]
        ordered += sorted(k for k in extras if k not in ordered)
        for key in ordered:
            val = extras[key]
            if val is None:
                continue
            pairs.append((key, "***" if key in _SECRET_FIELDS else val))

        if record.exc_info and record.exc_info[0] is not None:
            pairs.append(("exc_type", record.exc_info[0].__name__))
        return " ".join(f"{k}={_quote(v)}" for k, v in pairs)


def _quote(val: Any) -> str:
    if isinstance(val, (bool, int, float)):
        return str(val)
    s = str(val)
    if not s or " " in s or "=" in s or '"' in s:
        s = '"' + s.replace('"', '\\"') + '"'
    return s


def setup_logging(level: str = "INFO") -> None:
    """Send ``tiny_erp`` records to stderr as logfmt. Safe to call twice."""
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(TinyLogFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def log_event(event: str, logger: Optional[logging.Logger] = None, **fields: Any) -> None:
    """Info record named ``event``; fields that would clash with stock attributes are dropped."""
    log = logger or logging.getLogger("tiny_erp.batch")
    log.info(event, extra={k: v for k, v in fields.items() if k not in _STOCK_ATTRS})


__all__ = [
    "BATCH_FIELDS",
    "REQUEST_FIELDS",
    "TinyLogFormatter",
    "log_event",
    "record_extras",
    "setup_logging",
]
