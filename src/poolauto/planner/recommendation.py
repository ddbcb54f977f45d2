# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/recommendation.py

"""
Pool capacity and block device recommendations.

Eligible block devices are grouped by topology: device type and drive
type, and once more with the physical sector size when the device
reports one. Within a topology each node is looked at on its own, and
only devices of the same capacity are put into one raid group.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from poolauto.errors import ValidationError
from poolauto.planner.devices import is_eligible
from poolauto.types.models import BlockDeviceCandidate, RaidGroupConfig, RecommendationRequest
from poolauto.types.resources import decode_block_device
from poolauto.util.quantity import parse_count, parse_quantity
from poolauto.util.selector import nested_get

log = logging.getLogger("poolauto")

UNKNOWN = "Unknown"

# node name -> device capacity -> devices
NodeDevices = Dict[str, Dict[int, List[BlockDeviceCandidate]]]


def topology_keys(device: BlockDeviceCandidate) -> List[str]:
    """``<deviceType>-<driveType>``, plus ``-<physicalSectorSize>`` when known."""
    device_type, _ = nested_get(device.doc, "spec.details.deviceType")
    drive_type, _ = nested_get(device.doc, "spec.details.driveType")
    key = f"{device_type or UNKNOWN}-{drive_type or UNKNOWN}"

    sector, _ = nested_get(device.doc, "spec.capacity.physicalSectorSize")
    if sector in (None, ""):
        return [key]
    try:
        size = parse_quantity(sector, field="spec.capacity.physicalSectorSize")
    except ValidationError as exc:
        log.debug("BlockDevice %s/%s: %s", device.namespace, device.name, exc)
        return [key]
    if size == 0:
        return [key]
    return [key, f"{key}-{int(size)}"]


def group_by_topology(devices: Sequence[BlockDeviceCandidate]) -> Dict[str, NodeDevices]:
    out: Dict[str, NodeDevices] = {}
    for d in devices:
        if not is_eligible(d, Decimal(0)):
            continue
        if not d.host_name:
            log.warning("BlockDevice %s/%s not considered for recommendation: no host name", d.namespace, d.name)
            continue
        if not d.capacity:
            log.warning("BlockDevice %s/%s not considered for recommendation: no capacity", d.namespace, d.name)
            continue
        for key in topology_keys(d):
            by_capacity = out.setdefault(key, {}).setdefault(d.host_name, {})
            by_capacity.setdefault(int(d.capacity), []).append(d)
    return out


def _checked(config: RaidGroupConfig, what: str) -> RaidGroupConfig:
    try:
        config = config.with_defaults()
        config.check()
    except ValidationError as exc:
        raise type(exc)(f"Unable to create {what} recommendation request: {exc}") from exc
    return config


# ---------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------
def capacity_recommendation(
    devices: Sequence[BlockDeviceCandidate],
    raid_config: RaidGroupConfig,
) -> Dict[str, Dict[str, str]]:
    """
    Smallest and largest pool a single node can offer, per topology.

    The smallest pool is one raid group of the node's smallest usable
    devices; the largest uses every full raid group of one capacity.
    Topologies without a single full raid group are left out.
    """
    config = _checked(raid_config, "capacity")
    group = config.group_device_count
    data = config.data_device_count()

    out: Dict[str, Dict[str, str]] = {}
    for key, nodes in sorted(group_by_topology(devices).items()):
        low = high = 0
        for by_capacity in nodes.values():
            for capacity, found in by_capacity.items():
                if len(found) < group:
                    continue
                smallest = capacity * data
                largest = capacity * (len(found) // group) * data
                if high == 0 or low > smallest:
                    low = smallest
                if high == 0 or high < largest:
                    high = largest
        if high:
            out[key] = {"minCapacity": str(low), "maxCapacity": str(high)}
    return out


# ---------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------
def _reference(device: BlockDeviceCandidate) -> Dict[str, str]:
    meta = device.doc.get("metadata") or {}
    return {
        "apiVersion": device.doc.get("apiVersion") or "",
        "kind": device.doc.get("kind") or "",
        "name": device.name,
        "namespace": device.namespace,
        "uid": meta.get("uid") or "",
    }


class DeviceRecommender:
    """
    Picks the block devices of one pool instance per node.

    Device capacities are tried smallest first. Each capacity that holds
    the requested pool in whole raid groups replaces the previous pick,
    until a capacity larger than the whole request comes up after a
    pick was made.
    """

    def __init__(self, request: RecommendationRequest, devices: Sequence[BlockDeviceCandidate]):
        capacity = parse_count(request.pool_capacity or 0, field="poolCapacity")
        if capacity == 0:
            raise ValidationError("Unable to create device recommendation request: Got zero pool capacity")
        if capacity < 0:
            raise ValidationError(f"Invalid poolCapacity {request.pool_capacity!r}: want positive value")
        self.request = request
        self.pool_capacity = capacity
        self.raid_config = _checked(request.data_config, "device")
        self.devices = list(devices)

    def _pool_instance(self, node: str, by_capacity: Dict[int, List[BlockDeviceCandidate]]) -> Optional[Dict[str, Any]]:
        group = self.raid_config.group_device_count
        data = self.raid_config.data_device_count()
        wanted = self.pool_capacity

        picked: List[BlockDeviceCandidate] = []
        picked_capacity = 0
        for capacity in sorted(by_capacity):
            found = by_capacity[capacity]
            if len(found) < group:
                continue
            if (len(found) // group) * data * capacity < wanted:
                continue
            groups = -(-wanted // (data * capacity))
            chosen = found[: groups * group]
            if picked and wanted < capacity:
                break
            picked, picked_capacity = chosen, capacity

        if not picked:
            return None
        return {
            "node": {"name": node},
            "capacity": str((len(picked) // group) * data * picked_capacity),
            "blockDevices": {"dataDevices": [_reference(d) for d in picked]},
        }

    def recommend(self) -> Dict[str, Dict[str, Any]]:
        """Recommendation per topology key; topologies no node can serve are left out."""
        out: Dict[str, Dict[str, Any]] = {}
        for key, nodes in sorted(group_by_topology(self.devices).items()):
            instances = []
            for node in sorted(nodes):
                instance = self._pool_instance(node, nodes[node])
                if instance:
                    instances.append(instance)
            if not instances:
                continue
            out[key] = {
                "metadata": {"name": self.request.name, "namespace": self.request.namespace},
                "requestSpec": {
                    "poolCapacity": str(self.pool_capacity),
                    "dataConfig": self.raid_config.to_dict(),
                },
                "spec": {"poolInstances": instances},
            }
        log.debug("device recommendation for %d topology(ies)", len(out))
        return out


def recommend_capacity(request: RecommendationRequest) -> Dict[str, Dict[str, str]]:
    devices = [decode_block_device(d) for d in request.block_devices]
    return capacity_recommendation(devices, request.data_config)


def recommend_devices(request: RecommendationRequest) -> Dict[str, Dict[str, Any]]:
    devices = [decode_block_device(d) for d in request.block_devices]
    return DeviceRecommender(request, devices).recommend()
