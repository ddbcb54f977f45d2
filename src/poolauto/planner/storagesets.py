# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/storagesets.py

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from poolauto.errors import DecodeError
from poolauto.types import constants as c
from poolauto.types.models import ExternalProvisioner, NodeRef, StorageSetInfo

log = logging.getLogger("poolauto")

_DNS1123_INVALID = re.compile(r"[^a-z0-9.-]+")
_MAX_NAME_LEN = 253


def storage_set_name(plan_name: str, node_uid: str) -> str:
    """
    Name of the storage set created for *node_uid*.

    Derived only from stable inputs so a retried or concurrent create
    converges on a single object.
    """
    raw = f"{plan_name}-{node_uid}".lower()
    name = _DNS1123_INVALID.sub("-", raw)[:_MAX_NAME_LEN]
    return name.strip("-.")


@dataclass
class StorageSetBuckets:
    noop: List[str] = field(default_factory=list)
    create: List[str] = field(default_factory=list)
    remove: List[str] = field(default_factory=list)
    updates: Dict[str, str] = field(default_factory=dict)   # old node uid -> new node uid


class StorageSetPlanner:
    """
    Maps the planned nodes of a CStorClusterPlan onto storage sets.

    Every node uid lands in exactly one bucket: noop (planned & observed),
    create (planned only) or remove (observed only). Removals are then
    paired with creations, both sorted by uid, so that an existing
    storage set is moved to the new node instead of being deleted and
    recreated. Removals are expressed by leaving the object out of the
    planned list.
    """

    def __init__(
        self,
        plan_name: str,
        plan_namespace: str,
        plan_uid: str,
        desired_nodes: Sequence[NodeRef],
        observed: Sequence[StorageSetInfo],
        *,
        disk_count: int,
        disk_capacity: str,
        external_provisioner: ExternalProvisioner,
    ):
        self.plan_name = plan_name
        self.plan_namespace = plan_namespace
        self.plan_uid = plan_uid
        self.desired_nodes = list(desired_nodes)
        self.disk_count = disk_count
        self.disk_capacity = disk_capacity
        self.external_provisioner = external_provisioner

        self.observed_by_node: Dict[str, StorageSetInfo] = {}
        for s in observed:
            if not s.node_uid:
                raise DecodeError(
                    f"Invalid StorageSet {s.namespace}/{s.name}: Missing spec.node.uid"
                )
            self.observed_by_node[s.node_uid] = s

        self.node_names: Dict[str, str] = {n.uid: n.name for n in self.desired_nodes}
        self.buckets = self._bucketize()

    def _bucketize(self) -> StorageSetBuckets:
        b = StorageSetBuckets()
        for node in self.desired_nodes:
            if node.uid in self.observed_by_node:
                b.noop.append(node.uid)
            else:
                b.create.append(node.uid)
        b.remove = [uid for uid in self.observed_by_node if uid not in self.node_names]

        removes = sorted(b.remove)
        creates = sorted(b.create)
        paired = min(len(removes), len(creates))
        b.updates = dict(zip(removes[:paired], creates[:paired]))
        b.remove = removes[paired:]
        b.create = creates[paired:]
        return b

    # -----------------------------------------------------------------
    # Desired objects
    # -----------------------------------------------------------------
    def _spec(self, node_uid: str) -> Dict[str, Any]:
        return {
            "node": {"name": self.node_names[node_uid], "uid": node_uid},
            "disk": {"capacity": self.disk_capacity, "count": self.disk_count},
            "externalProvisioner": self.external_provisioner.model_dump(by_alias=True),
        }

    def _create(self, node_uid: str) -> Dict[str, Any]:
        return {
            "apiVersion": c.API_VERSION_DAO_V1ALPHA1,
            "kind": c.KIND_STORAGE_SET,
            "metadata": {
                "name": storage_set_name(self.plan_name, node_uid),
                "namespace": self.plan_namespace,
                "annotations": {c.ANN_CLUSTER_PLAN_UID: self.plan_uid},
                "labels": {c.ANN_CLUSTER_PLAN_UID: self.plan_uid},
            },
            "spec": self._spec(node_uid),
        }

    def _update(self, old_uid: str, new_uid: str) -> Dict[str, Any]:
        doc = copy.deepcopy(self.observed_by_node[old_uid].doc)
        doc.setdefault("spec", {})["node"] = {"name": self.node_names[new_uid], "uid": new_uid}
        return doc

    def plan(self) -> List[Dict[str, Any]]:
        b = self.buckets
        desired: List[Dict[str, Any]] = []
        desired.extend(copy.deepcopy(self.observed_by_node[uid].doc) for uid in b.noop)
        desired.extend(self._create(uid) for uid in b.create)
        desired.extend(self._update(old, new) for old, new in b.updates.items())
        for uid in b.remove:
            s = self.observed_by_node[uid]
            log.info("will remove CStorClusterStorageSet %s/%s of node uid %s", s.namespace, s.name, uid)
        log.debug(
            "storage sets planned: noop=%d create=%d update=%d remove=%d",
            len(b.noop), len(b.create), len(b.updates), len(b.remove),
        )
        return desired
