# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/storage.py

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Sequence

from poolauto.types import constants as c
from poolauto.types.models import StorageSetInfo
from poolauto.types.resources import name_of

log = logging.getLogger("poolauto")


class StoragePlanner:
    """
    Plans the Storage objects that back one storage set.

    Observed storages are kept (with capacity and node rewritten) up to
    the desired disk count; missing ones are created with names
    ``<storage set>-<index>`` using the lowest free indexes.
    """

    def __init__(self, storage_set: StorageSetInfo, observed: Sequence[Dict[str, Any]]):
        self.storage_set = storage_set
        self.observed = sorted(observed, key=name_of)

    def _spec(self) -> Dict[str, Any]:
        return {"capacity": self.storage_set.disk_capacity, "nodeName": self.storage_set.node_name}

    def _new(self, name: str) -> Dict[str, Any]:
        s = self.storage_set
        return {
            "apiVersion": c.API_VERSION_DAO_V1ALPHA1,
            "kind": c.KIND_STORAGE,
            "metadata": {
                "name": name,
                "namespace": s.namespace,
                "annotations": {c.ANN_STORAGE_SET_UID: s.uid},
                "labels": {c.ANN_STORAGE_SET_UID: s.uid},
            },
            "spec": self._spec(),
        }

    def _free_names(self, count: int) -> List[str]:
        used = {name_of(o) for o in self.observed}
        names: List[str] = []
        index = 0
        while len(names) < count:
            candidate = f"{self.storage_set.name}-{index}"
            if candidate not in used:
                names.append(candidate)
            index += 1
        return names

    def plan(self) -> List[Dict[str, Any]]:
        want = self.storage_set.disk_count
        desired: List[Dict[str, Any]] = []
        for storage in self.observed[:want]:
            updated = copy.deepcopy(storage)
            updated.setdefault("spec", {}).update(self._spec())
            desired.append(updated)
        missing = want - len(desired)
        if missing > 0:
            desired.extend(self._new(n) for n in self._free_names(missing))
        log.debug(
            "storages planned for %s/%s: keep=%d create=%d",
            self.storage_set.namespace, self.storage_set.name, want - max(missing, 0), max(missing, 0),
        )
        return desired
