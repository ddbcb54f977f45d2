# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/defaults.py

from __future__ import annotations

import logging
from typing import Callable, List

from poolauto.errors import DefaultingError
from poolauto.raid import DEFAULT_RAID_TYPE, default_min_disk_count, validate_raid_type
from poolauto.types import constants as c
from poolauto.types.models import ClusterIntent
from poolauto.util.quantity import parse_quantity

log = logging.getLogger("poolauto")


def _unset(value) -> bool:
    # a zero quantity counts as not set
    return value is None or value == 0


class Defaulter:
    """
    Resolves the unset fields of a ClusterIntent.

    Steps run in a fixed order since later defaults depend on earlier
    ones (max pool count on min pool count, disk count on raid type).
    The result is a fixed point: defaulting it again with the same
    inventory returns an equal intent.
    """

    def __init__(
        self,
        intent: ClusterIntent,
        available_node_count: int,
        eligible_node_count: int,
        *,
        default_min_pool_count: int = c.DEFAULT_MIN_POOL_COUNT,
        default_min_disk_capacity: str = c.DEFAULT_MIN_DISK_CAPACITY,
    ):
        self.intent = intent.model_copy(deep=True)
        self.available_node_count = available_node_count
        self.eligible_node_count = eligible_node_count
        self.default_min_pool_count = default_min_pool_count
        self.default_min_disk_capacity = default_min_disk_capacity

    def _steps(self) -> List[Callable[[], None]]:
        return [
            self._validate_external_provisioner,
            self._set_min_pool_count,
            self._set_max_pool_count,
            self._set_raid_type,
            self._set_min_disk_count,
            self._set_min_disk_capacity,
        ]

    def _validate_external_provisioner(self) -> None:
        if not self.intent.external_provisioner.is_complete():
            raise DefaultingError(
                "Invalid disk external provisioner: Both csi attacher & storageclass are required"
            )

    def _set_min_pool_count(self) -> None:
        current = self.intent.min_pool_count
        if not _unset(current):
            if current < 0:
                raise DefaultingError(f"Invalid min pool count {current}: Want positive value")
            return
        count = min(self.default_min_pool_count, self.available_node_count, self.eligible_node_count)
        if count <= 0:
            raise DefaultingError("Min pool count can't be 0: Preferred nodes not found")
        self.intent.min_pool_count = count

    def _set_max_pool_count(self) -> None:
        current = self.intent.max_pool_count
        if _unset(current):
            self.intent.max_pool_count = self.intent.min_pool_count + 2
            return
        if current < self.intent.min_pool_count:
            raise DefaultingError("MaxPoolCount can't be less than MinPoolCount")

    def _set_raid_type(self) -> None:
        if not self.intent.raid_type:
            self.intent.raid_type = DEFAULT_RAID_TYPE
            return
        validate_raid_type(self.intent.raid_type)

    def _set_min_disk_count(self) -> None:
        current = self.intent.min_disk_count
        if _unset(current):
            self.intent.min_disk_count = default_min_disk_count(self.intent.raid_type)
            return
        if current < 0:
            raise DefaultingError("Invalid min disk count: Want positive value")

    def _set_min_disk_capacity(self) -> None:
        current = self.intent.min_disk_capacity
        value = None if current is None else parse_quantity(current, field="minDiskCapacity")
        if value is None or value == 0:
            self.intent.min_disk_capacity = self.default_min_disk_capacity
            return
        if value < 0:
            raise DefaultingError("Invalid min disk capacity: Want positive value")

    def evaluate(self) -> ClusterIntent:
        for step in self._steps():
            step()
        log.debug(
            "defaults resolved: minPool=%s maxPool=%s raid=%s minDisk=%s capacity=%s",
            self.intent.min_pool_count,
            self.intent.max_pool_count,
            self.intent.raid_type,
            self.intent.min_disk_count,
            self.intent.min_disk_capacity,
        )
        return self.intent


def evaluate(
    intent: ClusterIntent,
    available_node_count: int,
    eligible_node_count: int,
    **kwargs,
) -> ClusterIntent:
    """Return a copy of *intent* with every default resolved."""
    return Defaulter(intent, available_node_count, eligible_node_count, **kwargs).evaluate()


def resolve_disk_defaults(intent: ClusterIntent, **kwargs) -> ClusterIntent:
    """
    Resolve only the raid type and disk fields.

    These don't depend on the node inventory, so stages further down the
    pipeline can recompute them from the config they observe.
    """
    d = Defaulter(intent, 0, 0, **kwargs)
    for step in (d._set_raid_type, d._set_min_disk_count, d._set_min_disk_capacity):
        step()
    return d.intent
