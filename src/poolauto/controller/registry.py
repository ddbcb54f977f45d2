# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/registry.py

from __future__ import annotations

from typing import Dict, Optional, Type

from poolauto.config.models import PlannerConfig
from poolauto.controller.base import Syncer
from poolauto.controller.blockdevice import BlockDeviceSyncer
from poolauto.controller.clusterconfig import ConfigSyncer
from poolauto.controller.clusterplan import PlanSyncer
from poolauto.controller.localdevice import LocalDeviceFinalizer, LocalDeviceSyncer
from poolauto.controller.poolcluster import PoolClusterSyncer
from poolauto.controller.storageset import StorageSetSyncer
from poolauto.errors import PoolAutoError
from poolauto.observers.dispatcher import EventBus
from poolauto.types.models import SyncRequest, SyncResponse


class UnknownControllerError(PoolAutoError, KeyError):
    pass


SYNCERS: Dict[str, Type[Syncer]] = {
    cls.name: cls
    for cls in (
        ConfigSyncer,
        PlanSyncer,
        StorageSetSyncer,
        BlockDeviceSyncer,
        PoolClusterSyncer,
        LocalDeviceSyncer,
    )
}

FINALIZERS: Dict[str, Type[Syncer]] = {
    "localdevice": LocalDeviceFinalizer,
}


def _lookup(table: Dict[str, Type[Syncer]], controller: str) -> Type[Syncer]:
    try:
        return table[controller]
    except KeyError:
        raise UnknownControllerError(
            f"Unknown controller {controller!r}: want one of {sorted(table)}"
        ) from None


def run_sync(
    controller: str,
    request: SyncRequest,
    *,
    bus: Optional[EventBus] = None,
    cfg: Optional[PlannerConfig] = None,
) -> SyncResponse:
    return _lookup(SYNCERS, controller)(request, bus=bus, cfg=cfg).sync()


def run_finalize(
    controller: str,
    request: SyncRequest,
    *,
    bus: Optional[EventBus] = None,
    cfg: Optional[PlannerConfig] = None,
) -> SyncResponse:
    return _lookup(FINALIZERS, controller)(request, bus=bus, cfg=cfg).sync()
