# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/localdevice.py

"""
Pool clusters built straight from local block devices.

A CStorClusterConfig with ``spec.diskConfig.local`` skips the plan /
storage set pipeline: its block device selector picks the devices and
the pool cluster is built from them directly, one pool per host.
"""

from __future__ import annotations

import logging

from poolauto.controller.base import Syncer
from poolauto.errors import MissingAttachmentError, ValidationError
from poolauto.observers.events import PoolClusterAssembled
from poolauto.planner.defaults import resolve_disk_defaults
from poolauto.planner.devices import group_by_host
from poolauto.planner.poolcluster import PoolClusterBuilder
from poolauto.types import constants as c
from poolauto.types.resources import (
    decode_block_device,
    decode_cluster_intent,
    local_device_selector,
    name_of,
    namespace_of,
    observed_pool_layout,
)
from poolauto.util.selector import select

log = logging.getLogger("poolauto")


class LocalDeviceSyncer(Syncer):
    name = "localdevice"
    error_condition = c.COND_LOCAL_DEVICE_RECONCILE_ERROR

    def reconcile(self) -> None:
        selector = local_device_selector(self.watch)
        if selector is None:
            self.keep_rest([])
            self.skip("DiskConfig is not local")
            return
        if not self.attachments:
            self.skip("Nil attachments")
            return

        config_uid = self.watch_uid()
        intent = resolve_disk_defaults(
            decode_cluster_intent(self.watch),
            default_min_disk_capacity=self.cfg.default_min_disk_capacity,
        )

        observed_devices = self.attachments_of_kind(c.KIND_BLOCK_DEVICE)
        if not observed_devices:
            raise MissingAttachmentError("Can't reconcile: Missing block devices")
        # an empty selector picks every device
        picked = select(selector, observed_devices)
        if not picked:
            raise ValidationError(f"0 of {len(observed_devices)} block devices selected")
        by_host = group_by_host([decode_block_device(d) for d in picked])

        pools = self.owned_attachments(c.KIND_POOL_CLUSTER, c.ANN_CLUSTER_CONFIG_UID, config_uid)
        hosts, in_pool = observed_pool_layout(pools[0] if pools else None)

        pool_cluster = PoolClusterBuilder(
            name=name_of(self.watch),
            namespace=namespace_of(self.watch),
            raid_type=intent.raid_type,
            ordered_host_names=hosts,
            observed_devices=in_pool,
            desired_devices=by_host,
            annotations={
                c.ANN_CLUSTER_CONFIG_UID: config_uid,
                c.ANN_CLUSTER_CONFIG_LOCAL_DISK: "true",
            },
        ).build()

        self.keep_rest(pools)
        self.response.attachments.append(pool_cluster)
        self.emit(
            PoolClusterAssembled,
            name=name_of(pool_cluster),
            pools=len(pool_cluster["spec"]["pools"]),
        )
        self.set_online()


class LocalDeviceFinalizer(Syncer):
    """
    Finalize hook of a local disk config.

    Returns no attachments so the orchestrator deletes the pool cluster;
    once nothing is attached any more the watch is marked finalized.
    """

    name = "localdevice-finalizer"
    error_condition = c.COND_LOCAL_DEVICE_RECONCILE_ERROR

    def reconcile(self) -> None:
        if local_device_selector(self.watch) is None:
            self.skip("DiskConfig is not local")
            return
        if not self.attachments:
            log.info("Finalize of %s completed", self.watch_ref())
            self.response.finalized = True
