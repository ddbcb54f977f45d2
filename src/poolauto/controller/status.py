# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/status.py

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from poolauto.errors import PoolAutoError
from poolauto.types import constants as c

log = logging.getLogger("poolauto")


class StatusError(PoolAutoError):
    """Raised when existing status conditions can't be read."""


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def make_condition(cond_type: str, err: Optional[BaseException] = None) -> Dict[str, str]:
    """An error condition when *err* is given, its cleared form otherwise."""
    cond = {
        "type": cond_type,
        "status": c.CONDITION_TRUE if err is not None else c.CONDITION_FALSE,
        "lastObservedTime": _now(),
    }
    if err is not None:
        cond["reason"] = str(err)
    return cond


def observed_conditions(doc: Mapping[str, Any]) -> List[Dict[str, Any]]:
    status = doc.get("status")
    if status is None:
        return []
    if not isinstance(status, Mapping):
        raise StatusError(f"Invalid status: want map got {type(status).__name__}")
    conds = status.get("conditions") or []
    if not isinstance(conds, list) or not all(isinstance(x, Mapping) for x in conds):
        raise StatusError("Invalid status.conditions: want list of maps")
    return [dict(x) for x in conds]


def merge_conditions(existing: List[Dict[str, Any]], new: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Conditions keyed by type: the new one replaces any entry of the same
    type, every other entry is kept as is.
    """
    merged = [x for x in existing if x.get("type") != new["type"]]
    merged.append(new)
    return merged


def build_status(
    doc: Mapping[str, Any],
    cond_type: str,
    err: Optional[BaseException] = None,
) -> Optional[Dict[str, Any]]:
    """
    Status to return for *doc* after a reconcile.

    Returns None (leave the status alone) when the observed conditions
    can't be read, so conditions written by other controllers survive.
    """
    try:
        observed = observed_conditions(doc)
        new = make_condition(cond_type, err)
        same = next(
            (x for x in observed
             if x.get("type") == cond_type
             and x.get("status") == new["status"]
             and x.get("reason") == new.get("reason")),
            None,
        )
        # an unchanged condition keeps its timestamp so the write is a no-op
        conds = merge_conditions(observed, same or new)
    except StatusError as exc:
        log.error("Can't set status conditions: %s", exc)
        return None
    return {
        "phase": c.PHASE_ERROR if err is not None else c.PHASE_ONLINE,
        "conditions": conds,
    }
