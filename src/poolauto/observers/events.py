# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str             # ISO timestamp
    run_id: str         # correlates all events of one hook call
    controller: str     # clusterconfig/clusterplan/storageset/...
    watch: Optional[str]  # namespace/name of the watched resource

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(controller: str, watch: Optional[str]) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": str(uuid.uuid4()),
        "controller": controller,
        "watch": watch,
    }


# ---------------------------------------------------------------------
# Reconcile lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ReconcileStarted(BaseEvent):
    kind: str
    attachments: int

@dataclass(frozen=True)
class ReconcileSucceeded(BaseEvent):
    attachments: int
    duration_ms: int

@dataclass(frozen=True)
class ReconcileSkipped(BaseEvent):
    reason: str
    resync_after_seconds: Optional[float] = None

@dataclass(frozen=True)
class ReconcileFailed(BaseEvent):
    error: str
    condition: str


# ---------------------------------------------------------------------
# Planners
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class NodesPlanned(BaseEvent):
    nodes: List[str]

@dataclass(frozen=True)
class StorageSetsPlanned(BaseEvent):
    noop: int
    create: int
    update: int
    remove: int

@dataclass(frozen=True)
class DevicesReserved(BaseEvent):
    reserved: List[str]
    desired: int

@dataclass(frozen=True)
class PoolClusterAssembled(BaseEvent):
    name: str
    pools: int
