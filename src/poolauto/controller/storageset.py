# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/storageset.py

from __future__ import annotations

from poolauto.controller.base import Syncer
from poolauto.planner.storage import StoragePlanner
from poolauto.types import constants as c
from poolauto.types.resources import decode_storage_set


class StorageSetSyncer(Syncer):
    name = "storageset"
    error_condition = c.COND_STORAGE_SET_RECONCILE_ERROR

    def reconcile(self) -> None:
        storage_set = decode_storage_set(self.watch)
        observed = self.owned_attachments(c.KIND_STORAGE, c.ANN_STORAGE_SET_UID, storage_set.uid)
        desired = StoragePlanner(storage_set, observed).plan()
        self.keep_rest(observed)
        self.response.attachments.extend(desired)
        self.set_online()
