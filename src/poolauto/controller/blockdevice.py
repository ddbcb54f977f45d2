# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/blockdevice.py

from __future__ import annotations

from poolauto.controller.base import Syncer
from poolauto.errors import DecodeError
from poolauto.observers.events import DevicesReserved
from poolauto.planner.reservation import DeviceReserver
from poolauto.types import constants as c
from poolauto.types.resources import (
    annotations_of,
    correlation_uid,
    decode_block_device,
    decode_storage_set,
    describe,
    name_of,
)


class BlockDeviceSyncer(Syncer):
    """
    Watches a CStorClusterStorageSet and reserves block devices for it.

    Reserved devices carry the storage set uid and the plan uid as
    annotations; the pool cluster stage maps them back to hosts.
    """

    name = "blockdevice"
    error_condition = c.COND_BLOCK_DEVICE_RESERVE_ERROR

    def reconcile(self) -> None:
        storage_set = decode_storage_set(self.watch)
        plan_uid = correlation_uid(self.watch, c.ANN_CLUSTER_PLAN_UID)
        if not plan_uid:
            raise DecodeError(f"Can't find {c.ANN_CLUSTER_PLAN_UID} in {describe(self.watch)}")

        devices = [decode_block_device(d) for d in self.attachments_of_kind(c.KIND_BLOCK_DEVICE)]
        desired = DeviceReserver(storage_set, plan_uid, devices).plan()

        self.keep_rest(desired)
        self.response.attachments.extend(desired)
        self.emit(
            DevicesReserved,
            reserved=[
                name_of(d) for d in desired
                if annotations_of(d).get(c.ANN_STORAGE_SET_UID) == storage_set.uid
            ],
            desired=storage_set.disk_count,
        )
        self.set_online()
