# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/devices.py

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from poolauto.errors import DecodeError, InvalidDiskCountError
from poolauto.raid import disk_count_per_group, is_valid_disk_count
from poolauto.types import constants as c
from poolauto.types.models import BlockDeviceCandidate, RAIDGroup, StorageSetInfo
from poolauto.util.equality import merge
from poolauto.util.selector import ResourceSelector, match

log = logging.getLogger("poolauto")


# ---------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------
def is_eligible(
    device: BlockDeviceCandidate,
    desired_capacity: Decimal,
    owner_uid: Optional[str] = None,
) -> bool:
    """
    A device can join a pool when it is active, has no filesystem, is
    large enough, and is either free or already held by *owner_uid*.
    """
    if device.state != c.DEVICE_STATE_ACTIVE:
        return False
    if device.fs_type:
        return False
    if device.capacity < desired_capacity:
        return False

    mine = bool(owner_uid) and device.reservation_owner == owner_uid
    if device.reservation_owner and not mine:
        return False
    if device.claim_state == c.DEVICE_CLAIM_UNCLAIMED:
        return True
    return mine and device.claim_state == c.DEVICE_CLAIM_CLAIMED


def select_eligible(
    candidates: Sequence[BlockDeviceCandidate],
    selector: Optional[ResourceSelector],
    desired_capacity: Decimal,
    owner_uid: Optional[str] = None,
) -> List[BlockDeviceCandidate]:
    """Selector first, then the claim / capacity rules. Order preserved."""
    picked = [
        d for d in candidates
        if match(selector, d.doc) and is_eligible(d, desired_capacity, owner_uid)
    ]
    log.debug("%d of %d block device(s) eligible", len(picked), len(candidates))
    return picked


def group_by_host(devices: Sequence[BlockDeviceCandidate]) -> Dict[str, List[str]]:
    """Device names per ``kubernetes.io/hostname`` label, order preserved."""
    out: Dict[str, List[str]] = {}
    for d in devices:
        if not d.host_name:
            raise DecodeError(
                f"Can't find {c.LABEL_HOSTNAME} label in BlockDevice {d.namespace}/{d.name}"
            )
        out.setdefault(d.host_name, []).append(d.name)
    return out


# ---------------------------------------------------------------------
# Distribution
# ---------------------------------------------------------------------
def final_device_list(observed: Sequence[str], desired: Sequence[str]) -> List[str]:
    return merge(observed, desired)


def distribute(node_name: str, devices: Sequence[str], raid_type: str) -> List[RAIDGroup]:
    """
    Split a node's device list into consecutive raid groups.

    A trailing partial group is never emitted; the whole node fails.
    """
    if not is_valid_disk_count(raid_type, len(devices)):
        raise InvalidDiskCountError(
            f"Invalid disk count {len(devices)} w.r.t RAID {raid_type!r} on host {node_name!r}"
        )
    size = disk_count_per_group(raid_type)
    return [
        RAIDGroup(raid_type=raid_type, devices=list(devices[i:i + size]))
        for i in range(0, len(devices), size)
    ]


# ---------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------
def is_ready_by_node_count(desired_node_count: int, observed_storage_set_count: int) -> bool:
    if desired_node_count == 0:
        return False
    return desired_node_count == observed_storage_set_count


def is_ready_by_node_disk_count(
    storage_sets: Sequence[StorageSetInfo],
    devices_by_storage_set: Mapping[str, Sequence[str]],
) -> bool:
    for s in storage_sets:
        observed = len(devices_by_storage_set.get(s.uid, ()))
        if s.disk_count > observed:
            log.debug(
                "storage set %s/%s not ready: desired disk(s) %d observed %d",
                s.namespace, s.name, s.disk_count, observed,
            )
            return False
    return True
