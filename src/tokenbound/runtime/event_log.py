from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict


Json = Dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit a single JSONL log event.

    Bytes fields are rendered as 0x-hex so revert payloads stay greppable.
    """
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    for k, v in fields.items():
        payload[k] = "0x" + bytes(v).hex() if isinstance(v, (bytes, bytearray)) else v
    try:
        logger.info(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    except (TypeError, ValueError):
        parts = [f"event={event}"] + [f"{k}={fields.get(k)!r}" for k in sorted(fields.keys())]
        logger.info(" ".join(parts))
