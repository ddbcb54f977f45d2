# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/types/models.py

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from poolauto.errors import InvalidDiskCountError
from poolauto.raid import DEFAULT_RAID_TYPE, data_device_count, default_min_disk_count, is_valid_group_size
from poolauto.util.selector import ResourceSelector


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------
# Cluster intent (CStorClusterConfig spec)
# ---------------------------------------------------------------------
class ExternalProvisioner(_CamelModel):
    csi_attacher_name: str = Field("", alias="csiAttacherName")
    storage_class_name: str = Field("", alias="storageClassName")

    def is_complete(self) -> bool:
        return bool(self.csi_attacher_name) and bool(self.storage_class_name)


class ClusterIntent(_CamelModel):
    """
    User declared configuration of a pool cluster.

    Unset numeric fields are None; the defaulting evaluator resolves
    them against the observed inventory.
    """
    min_pool_count: Optional[int] = Field(None, alias="minPoolCount")
    max_pool_count: Optional[int] = Field(None, alias="maxPoolCount")
    raid_type: Optional[str] = Field(None, alias="raidType")
    min_disk_count: Optional[int] = Field(None, alias="minDiskCount")
    min_disk_capacity: Optional[str] = Field(None, alias="minDiskCapacity")
    external_provisioner: ExternalProvisioner = Field(
        default_factory=ExternalProvisioner, alias="externalProvisioner"
    )
    allowed_nodes: ResourceSelector = Field(default_factory=ResourceSelector, alias="allowedNodes")


# ---------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------
class NodeRef(_CamelModel):
    """One entry of a NodePlan. Identity is the uid."""
    name: str
    uid: str


class NodeInfo(BaseModel):
    name: str
    uid: str
    creation_timestamp: str = ""    # RFC3339, sorts lexically
    doc: Dict[str, Any] = Field(default_factory=dict, repr=False)

    def ref(self) -> NodeRef:
        return NodeRef(name=self.name, uid=self.uid)


# ---------------------------------------------------------------------
# Storage sets
# ---------------------------------------------------------------------
class StorageSetInfo(BaseModel):
    """An observed CStorClusterStorageSet, decoded."""
    name: str
    namespace: str
    uid: str
    node_name: str
    node_uid: str
    disk_count: int
    disk_capacity: str
    doc: Dict[str, Any] = Field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------
# Block devices
# ---------------------------------------------------------------------
class BlockDeviceCandidate(BaseModel):
    name: str
    namespace: str = ""
    host_name: str = ""
    capacity: Decimal = Decimal(0)
    claim_state: str = ""
    state: str = ""
    fs_type: str = ""
    reservation_owner: str = ""     # storage set uid from the reservation annotation
    resource_version: str = ""
    doc: Dict[str, Any] = Field(default_factory=dict, repr=False)


class RAIDGroup(BaseModel):
    raid_type: str
    devices: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.raid_type,
            "isWriteCache": False,
            "isSpare": False,
            "isReadCache": False,
            "blockDevices": [{"blockDeviceName": d} for d in self.devices],
        }


# ---------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------
class RaidGroupConfig(_CamelModel):
    """Raid type of a pool and the device count of each of its raid groups."""
    raid_type: str = Field(DEFAULT_RAID_TYPE, alias="type")
    group_device_count: Optional[int] = Field(None, alias="groupDeviceCount")

    def with_defaults(self) -> "RaidGroupConfig":
        if self.group_device_count is not None:
            return self
        return self.model_copy(update={"group_device_count": default_min_disk_count(self.raid_type)})

    def check(self) -> None:
        count = self.group_device_count or 0
        if not is_valid_group_size(self.raid_type, count):
            raise InvalidDiskCountError(f"Invalid device count {count} for RAID type {self.raid_type}")

    def data_device_count(self) -> int:
        return data_device_count(self.raid_type, self.group_device_count or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.raid_type, "groupDeviceCount": self.group_device_count or 0}


class RecommendationRequest(_CamelModel):
    name: str = ""
    namespace: str = ""
    pool_capacity: Optional[Union[str, int]] = Field(None, alias="poolCapacity")
    data_config: RaidGroupConfig = Field(default_factory=RaidGroupConfig, alias="dataConfig")
    block_devices: List[Dict[str, Any]] = Field(default_factory=list, alias="blockDevices")


# ---------------------------------------------------------------------
# Hook transport
# ---------------------------------------------------------------------
class SyncRequest(_CamelModel):
    """
    Request sent by the orchestrator.

    ``attachments`` is accepted either as a flat list or as the nested
    ``{group/version.kind: {namespace/name: object}}`` registry.
    """
    controller: Dict[str, Any] = Field(default_factory=dict)
    watch: Dict[str, Any]
    attachments: Any = None

    def attachment_list(self) -> List[Dict[str, Any]]:
        raw = self.attachments
        if not raw:
            return []
        if isinstance(raw, list):
            return [a for a in raw if isinstance(a, dict)]
        out: List[Dict[str, Any]] = []
        for _, by_name in raw.items():
            if isinstance(by_name, dict) and "kind" in by_name and "metadata" in by_name:
                out.append(by_name)
                continue
            for _, obj in (by_name or {}).items():
                if isinstance(obj, dict):
                    out.append(obj)
        return out


class SyncResponse(_CamelModel):
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    status: Optional[Dict[str, Any]] = None
    skip_reconcile: bool = Field(False, alias="skipReconcile")
    resync_after_seconds: Optional[float] = Field(None, alias="resyncAfterSeconds")
    finalized: bool = False

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
