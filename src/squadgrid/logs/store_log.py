from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

logger = logging.getLogger("squadgrid.store")


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


def log_store_event(event: str, severity: int = logging.INFO, extra: Optional[Dict[str, Any]] = None, **fields: Any) -> None:
    """Emit one compact JSON line for a store mutation.

    Keys: event, component, schema_version, plus the provided fields.
    """
    try:
        payload: Dict[str, Any] = {
            "event": str(event),
            "component": "store",
            "schema_version": "v1",
        }
        payload.update({k: v for k, v in fields.items() if v is not None})
        if extra:
            payload["extra"] = extra
        logger.log(severity, json.dumps(payload, separators=(",", ":"), default=_default))
    except Exception:
        # Logging must never throw
        pass
