# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/poolcluster.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from poolauto.errors import DecodeError, InvalidDiskCountError, ValidationError
from poolauto.types import constants as c
from poolauto.types.models import BlockDeviceCandidate, RAIDGroup, StorageSetInfo
from poolauto.planner.devices import (
    distribute,
    final_device_list,
    is_ready_by_node_count,
    is_ready_by_node_disk_count,
)

log = logging.getLogger("poolauto")


class PoolClusterBuilder:
    """
    Builds the desired CStorPoolCluster document.

    Each host's final device list is the merge of what the applied pool
    cluster already has on that host with what is desired now, so
    surviving devices keep their raid group slot.
    """

    def __init__(
        self,
        *,
        name: str,
        namespace: str,
        raid_type: str,
        ordered_host_names: Sequence[str] = (),
        observed_devices: Optional[Mapping[str, Sequence[str]]] = None,
        desired_devices: Optional[Mapping[str, Sequence[str]]] = None,
        annotations: Optional[Mapping[str, str]] = None,
        labels: Optional[Mapping[str, str]] = None,
    ):
        self.name = name
        self.namespace = namespace
        self.raid_type = raid_type
        self.ordered_host_names = list(ordered_host_names)
        self.observed_devices = dict(observed_devices or {})
        self.desired_devices = dict(desired_devices or {})
        self.annotations = dict(annotations or {})
        self.labels = dict(labels or {})

    def desired_host_names(self) -> List[str]:
        """Observed host order first, new hosts after in name order."""
        wanted = {h for h, devices in self.desired_devices.items() if devices}
        hosts = [h for h in self.ordered_host_names if h in wanted]
        hosts.extend(sorted(wanted - set(hosts)))
        return hosts

    def final_devices(self) -> Dict[str, List[str]]:
        return {
            h: final_device_list(self.observed_devices.get(h, []), self.desired_devices[h])
            for h in self.desired_host_names()
        }

    def _raid_groups(self, final: Mapping[str, Sequence[str]]) -> Dict[str, List[RAIDGroup]]:
        if not self.name:
            raise ValidationError("Can't build desired CStorPoolCluster: Missing name")
        if not self.namespace:
            raise ValidationError("Can't build desired CStorPoolCluster: Missing namespace")
        if not self.raid_type:
            raise ValidationError("Can't build desired CStorPoolCluster: Missing raid type")

        groups: Dict[str, List[RAIDGroup]] = {}
        errs = []
        for host, devices in final.items():
            try:
                groups[host] = distribute(host, devices, self.raid_type)
            except InvalidDiskCountError as exc:
                errs.append(str(exc))
        if errs:
            raise InvalidDiskCountError(f"Validation failed: [{', '.join(errs)}]")
        return groups

    def _pool(self, host: str, groups: Sequence[RAIDGroup]) -> Dict[str, Any]:
        return {
            "nodeSelector": {c.LABEL_HOSTNAME: host},
            "raidGroups": [g.to_dict() for g in groups],
            "poolConfig": {
                "defaultRaidGroupType": self.raid_type,
                "overProvisioning": False,
                "compression": "off",
            },
        }

    def build(self) -> Dict[str, Any]:
        groups = self._raid_groups(self.final_devices())

        metadata: Dict[str, Any] = {"name": self.name, "namespace": self.namespace}
        if self.annotations:
            metadata["annotations"] = self.annotations
        if self.labels:
            metadata["labels"] = self.labels
        return {
            "apiVersion": c.API_VERSION_OPENEBS_V1ALPHA1,
            "kind": c.KIND_POOL_CLUSTER,
            "metadata": metadata,
            "spec": {"pools": [self._pool(h, groups[h]) for h in self.desired_host_names()]},
        }


# ---------------------------------------------------------------------
# Plan level assembly
# ---------------------------------------------------------------------
@dataclass
class AssemblyResult:
    pool_cluster: Optional[Dict[str, Any]] = None
    ready: bool = False
    reason: str = ""
    devices_by_host: Dict[str, List[str]] = field(default_factory=dict)


class PoolClusterAssembler:
    """
    Turns a plan's storage sets and reserved devices into a pool cluster.

    Nothing is assembled until every planned node has its storage set
    and every storage set has at least its desired number of devices.
    """

    def __init__(
        self,
        *,
        plan_name: str,
        plan_namespace: str,
        plan_uid: str,
        config_uid: str,
        raid_type: str,
        desired_node_count: int,
        storage_sets: Sequence[StorageSetInfo],
        devices: Sequence[BlockDeviceCandidate],
        observed_layout: Optional[Tuple[List[str], Dict[str, List[str]]]] = None,
    ):
        self.plan_name = plan_name
        self.plan_namespace = plan_namespace
        self.plan_uid = plan_uid
        self.config_uid = config_uid
        self.raid_type = raid_type
        self.desired_node_count = desired_node_count
        self.storage_sets = list(storage_sets)
        self.devices = list(devices)
        self.observed_hosts, self.observed_devices = observed_layout or ([], {})

    def devices_by_storage_set(self) -> Dict[str, List[str]]:
        """
        Map storage set uid to the names of the devices it holds.

        A device only counts for its storage set while it sits on that
        set's node. Devices left on the old node after a storage set
        moved are ignored until the device stage releases them.
        """
        node_of = {s.uid: s.node_name for s in self.storage_sets}
        out: Dict[str, List[str]] = {}
        for d in sorted(self.devices, key=lambda d: d.name):
            if not d.reservation_owner:
                raise DecodeError(
                    f"Can't find CStorClusterStorageSet UID at {c.ANN_STORAGE_SET_UID} "
                    f"in BlockDevice {d.namespace}/{d.name}"
                )
            if d.host_name != node_of.get(d.reservation_owner):
                log.debug(
                    "BlockDevice %s/%s on %r is not on the node of storage set %s",
                    d.namespace, d.name, d.host_name, d.reservation_owner,
                )
                continue
            out.setdefault(d.reservation_owner, []).append(d.name)
        return out

    def assemble(self) -> AssemblyResult:
        if not self.raid_type:
            raise ValidationError("RAID type not found in CStorClusterConfig")
        if not self.config_uid:
            raise ValidationError("Missing CStorClusterConfig reference")

        if not is_ready_by_node_count(self.desired_node_count, len(self.storage_sets)):
            return AssemblyResult(
                reason=f"desired node(s) {self.desired_node_count}: "
                       f"observed storage set(s) {len(self.storage_sets)}"
            )
        by_set = self.devices_by_storage_set()
        if not is_ready_by_node_disk_count(self.storage_sets, by_set):
            return AssemblyResult(reason="storage sets are waiting for block devices")

        desired: Dict[str, List[str]] = {}
        for s in self.storage_sets:
            held = by_set.get(s.uid, [])
            # devices already in the pool go first when trimming surplus
            in_pool = [d for d in self.observed_devices.get(s.node_name, []) if d in held]
            rest = [d for d in held if d not in in_pool]
            desired[s.node_name] = (in_pool + rest)[: s.disk_count]

        builder = PoolClusterBuilder(
            name=self.plan_name,
            namespace=self.plan_namespace,
            raid_type=self.raid_type,
            ordered_host_names=self.observed_hosts,
            observed_devices=self.observed_devices,
            desired_devices=desired,
            annotations={
                c.ANN_CLUSTER_PLAN_UID: self.plan_uid,
                c.ANN_CLUSTER_CONFIG_UID: self.config_uid,
            },
        )
        pool_cluster = builder.build()
        if not pool_cluster["spec"]["pools"]:
            return AssemblyResult(reason="no pools could be built")
        return AssemblyResult(
            pool_cluster=pool_cluster, ready=True, devices_by_host=builder.final_devices()
        )
