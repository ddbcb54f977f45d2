# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/clusterplan.py

from __future__ import annotations

from poolauto.controller.base import Syncer
from poolauto.errors import MissingAttachmentError
from poolauto.observers.events import StorageSetsPlanned
from poolauto.planner.defaults import resolve_disk_defaults
from poolauto.planner.storagesets import StorageSetPlanner
from poolauto.types import constants as c
from poolauto.types.resources import (
    correlation_uid,
    decode_cluster_intent,
    decode_plan_nodes,
    decode_storage_set,
    name_of,
    namespace_of,
)


class PlanSyncer(Syncer):
    """Watches a CStorClusterPlan and keeps one storage set per planned node."""

    name = "clusterplan"
    error_condition = c.COND_CLUSTER_PLAN_RECONCILE_ERROR

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
        observed = self.owned_attachments(c.KIND_STORAGE_SET, c.ANN_CLUSTER_PLAN_UID, plan_uid)

        planner = StorageSetPlanner(
            name_of(self.watch),
            namespace_of(self.watch),
            plan_uid,
            decode_plan_nodes(self.watch),
            [decode_storage_set(s) for s in observed],
            disk_count=intent.min_disk_count,
            disk_capacity=intent.min_disk_capacity,
            external_provisioner=intent.external_provisioner,
        )
        desired = planner.plan()

        self.keep_rest(observed)
        self.response.attachments.extend(desired)
        b = planner.buckets
        self.emit(
            StorageSetsPlanned,
            noop=len(b.noop),
            create=len(b.create),
            update=len(b.updates),
            remove=len(b.remove),
        )
        self.set_online()
