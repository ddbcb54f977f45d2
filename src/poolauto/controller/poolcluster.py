# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/poolcluster.py

from __future__ import annotations

from poolauto.controller.base import Syncer
from poolauto.errors import MissingAttachmentError
from poolauto.observers.events import PoolClusterAssembled
from poolauto.planner.defaults import resolve_disk_defaults
from poolauto.planner.poolcluster import PoolClusterAssembler
from poolauto.types import constants as c
from poolauto.types.resources import (
    correlation_uid,
    decode_block_device,
    decode_cluster_intent,
    decode_plan_nodes,
    decode_storage_set,
    name_of,
    namespace_of,
    observed_pool_layout,
)


class PoolClusterSyncer(Syncer):
    """
    Watches a CStorClusterPlan and applies its CStorPoolCluster.

    Waits (skip + resync) until every planned node has a storage set and
    every storage set holds its desired number of block devices. While
    waiting the observed pool cluster is passed back untouched.
    """

    name = "poolcluster"
    error_condition = c.COND_POOL_CLUSTER_APPLY_ERROR

    def reconcile(self) -> None:
        plan_uid = self.watch_uid()
        config_uid = correlation_uid(self.watch, c.ANN_CLUSTER_CONFIG_UID)
        config = self.attachment_by_uid(c.KIND_CLUSTER_CONFIG, config_uid)
        if config is None:
            raise MissingAttachmentError("Missing CStorClusterConfig attachment")
        intent = resolve_disk_defaults(
            decode_cluster_intent(config),
            default_min_disk_capacity=self.cfg.default_min_disk_capacity,
        )

        storage_sets = [
            decode_storage_set(s)
            for s in self.owned_attachments(c.KIND_STORAGE_SET, c.ANN_CLUSTER_PLAN_UID, plan_uid)
        ]
        devices = [
            decode_block_device(d)
            for d in self.owned_attachments(c.KIND_BLOCK_DEVICE, c.ANN_CLUSTER_PLAN_UID, plan_uid)
        ]
        pools = self.owned_attachments(c.KIND_POOL_CLUSTER, c.ANN_CLUSTER_PLAN_UID, plan_uid)
        observed = pools[0] if pools else None

        result = PoolClusterAssembler(
            plan_name=name_of(self.watch),
            plan_namespace=namespace_of(self.watch),
            plan_uid=plan_uid,
            config_uid=config_uid,
            raid_type=intent.raid_type,
            desired_node_count=len(decode_plan_nodes(self.watch)),
            storage_sets=storage_sets,
            devices=devices,
            observed_layout=observed_pool_layout(observed),
        ).assemble()

        if not result.ready:
            self.keep_rest([])
            self.skip(result.reason, resync=True)
            return

        self.keep_rest(pools)
        self.response.attachments.append(result.pool_cluster)
        self.emit(
            PoolClusterAssembled,
            name=name_of(result.pool_cluster),
            pools=len(result.pool_cluster["spec"]["pools"]),
        )
        self.set_online()
