from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def create_trace_id() -> str:
    return str(uuid.uuid4())


def trace_event(
    trace_id: str,
    step_name: str,
    trace_dir: Optional[str],
    inputs_ref: Optional[Dict[str, Any]] = None,
    outputs_ref: Optional[Dict[str, Any]] = None,
    notes: Optional[str] = None,
) -> None:
    """Append one scan step to ``<trace_dir>/<trace_id>.jsonl``; no-op without a dir."""
    if not trace_dir:
        return
    event = {
        "trace_id": trace_id,
        "step_name": step_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "inputs_ref": inputs_ref or {},
        "outputs_ref": outputs_ref or {},
        "notes": notes or "",
    }
    try:
        os.makedirs(trace_dir, exist_ok=True)
        path = os.path.join(trace_dir, f"{trace_id}.jsonl")
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(json.dumps(event, ensure_ascii=False) + "\n")
    except OSError as exc:
        logger.warning("Could not write trace event %s/%s: %s", trace_id, step_name, exc)
