# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/reservation.py

from __future__ import annotations

import copy
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from poolauto.errors import ReservationConflictError
from poolauto.types import constants as c
from poolauto.types.models import BlockDeviceCandidate, StorageSetInfo
from poolauto.util.quantity import parse_quantity
from poolauto.util.selector import ResourceSelector
from poolauto.planner.devices import select_eligible

log = logging.getLogger("poolauto")

_RESERVATION_KEYS = (c.ANN_STORAGE_SET_UID, c.ANN_CLUSTER_PLAN_UID)


def claim(
    device: BlockDeviceCandidate,
    owner_uid: str,
    plan_uid: str,
    expected_version: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Return the device document annotated as reserved by *owner_uid*.

    The returned document carries ``metadata.resourceVersion`` so the
    write is rejected by the API server if the device changed since it
    was observed. When *expected_version* is given and already differs
    from the observed version the claim fails here.
    """
    if device.reservation_owner and device.reservation_owner != owner_uid:
        raise ReservationConflictError(
            f"BlockDevice {device.namespace}/{device.name} is reserved by {device.reservation_owner}"
        )
    if expected_version is not None and device.resource_version != expected_version:
        raise ReservationConflictError(
            f"BlockDevice {device.namespace}/{device.name} changed: "
            f"want version {expected_version!r} got {device.resource_version!r}"
        )
    doc = copy.deepcopy(device.doc)
    meta = doc.setdefault("metadata", {})
    meta.setdefault("annotations", {}).update({
        c.ANN_STORAGE_SET_UID: owner_uid,
        c.ANN_CLUSTER_PLAN_UID: plan_uid,
    })
    if device.resource_version:
        meta["resourceVersion"] = device.resource_version
    return doc


def release(device: BlockDeviceCandidate) -> Dict[str, Any]:
    doc = copy.deepcopy(device.doc)
    annotations = doc.get("metadata", {}).get("annotations") or {}
    for key in _RESERVATION_KEYS:
        annotations.pop(key, None)
    return doc


class DeviceReserver:
    """
    Reserves block devices on a storage set's node.

    Devices already reserved by the storage set are kept first, then
    free eligible devices fill up to the desired disk count. Devices
    held by another storage set are never touched. Surplus devices
    reserved by this storage set are released, including devices on
    other nodes.
    """

    def __init__(
        self,
        storage_set: StorageSetInfo,
        plan_uid: str,
        devices: Sequence[BlockDeviceCandidate],
        selector: Optional[ResourceSelector] = None,
    ):
        self.storage_set = storage_set
        self.plan_uid = plan_uid
        self.devices = sorted(devices, key=lambda d: d.name)
        self.selector = selector

    def _capacity(self) -> Decimal:
        if not self.storage_set.disk_capacity:
            return Decimal(0)
        return parse_quantity(self.storage_set.disk_capacity, field="spec.disk.capacity")

    def plan(self) -> List[Dict[str, Any]]:
        owner = self.storage_set.uid
        on_node = [d for d in self.devices if d.host_name == self.storage_set.node_name]
        eligible = select_eligible(on_node, self.selector, self._capacity(), owner)

        mine = [d for d in eligible if d.reservation_owner == owner]
        free = [d for d in eligible if not d.reservation_owner]
        chosen = (mine + free)[: self.storage_set.disk_count]
        chosen_names = {d.name for d in chosen}

        desired = [claim(d, owner, self.plan_uid) for d in chosen]
        # off-node devices are left over from a storage set move
        surplus = [d for d in self.devices if d.reservation_owner == owner and d.name not in chosen_names]
        desired.extend(release(d) for d in surplus)

        if len(chosen) < self.storage_set.disk_count:
            log.info(
                "storage set %s/%s: reserved %d of %d desired block device(s)",
                self.storage_set.namespace, self.storage_set.name,
                len(chosen), self.storage_set.disk_count,
            )
        return desired
