# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/types/resources.py

"""
Decoding of watched / attached documents into typed models.

Planners never touch raw documents; the controller shells decode once
through these helpers and fail with DecodeError on malformed input.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from poolauto.errors import DecodeError, ValidationError
from poolauto.util.quantity import parse_count, parse_optional_quantity, parse_quantity
from poolauto.util.selector import ResourceSelector, nested_get
from poolauto.types import constants as c
from poolauto.types.models import (
    BlockDeviceCandidate,
    ClusterIntent,
    ExternalProvisioner,
    NodeInfo,
    NodeRef,
    StorageSetInfo,
)


# ---------------------------------------------------------------------
# Metadata accessors
# ---------------------------------------------------------------------
def _meta(doc: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if not doc:
        return {}
    meta = doc.get("metadata")
    return meta if isinstance(meta, Mapping) else {}


def kind_of(doc: Mapping[str, Any]) -> str:
    return doc.get("kind") or ""


def name_of(doc: Mapping[str, Any]) -> str:
    return _meta(doc).get("name") or ""


def namespace_of(doc: Mapping[str, Any]) -> str:
    return _meta(doc).get("namespace") or ""


def uid_of(doc: Mapping[str, Any]) -> str:
    return _meta(doc).get("uid") or ""


def annotations_of(doc: Mapping[str, Any]) -> Dict[str, str]:
    return dict(_meta(doc).get("annotations") or {})


def labels_of(doc: Mapping[str, Any]) -> Dict[str, str]:
    return dict(_meta(doc).get("labels") or {})


def describe(doc: Mapping[str, Any]) -> str:
    return f"{kind_of(doc)} {namespace_of(doc)}/{name_of(doc)}".replace(" /", " ")


def correlation_uid(doc: Mapping[str, Any], key: str) -> str:
    """
    Parent uid recorded on a child under *key*.

    Annotations win; labels are read as well since some orchestrator
    versions drop annotations on create.
    """
    return annotations_of(doc).get(key) or labels_of(doc).get(key) or ""


def is_owned_by(doc: Mapping[str, Any], key: str, owner_uid: str) -> bool:
    return bool(owner_uid) and correlation_uid(doc, key) == owner_uid


def _require(value: Any, what: str, doc: Mapping[str, Any]) -> Any:
    if value in (None, ""):
        raise DecodeError(f"Can't find {what} in {describe(doc)}")
    return value


def _map(value: Any, what: str, doc: Mapping[str, Any]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DecodeError(f"Invalid {what} in {describe(doc)}: want map got {type(value).__name__}")
    return value


def _count_or_none(value: Any, field: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_count(value, field=field)


# ---------------------------------------------------------------------
# CStorClusterConfig
# ---------------------------------------------------------------------
def decode_cluster_intent(doc: Mapping[str, Any]) -> ClusterIntent:
    spec = _map(doc.get("spec"), "spec", doc)
    disk = _map(spec.get("diskConfig"), "spec.diskConfig", doc)
    pool = _map(spec.get("poolConfig"), "spec.poolConfig", doc)
    try:
        capacity = disk.get("minCapacity")
        if capacity not in (None, ""):
            parse_quantity(capacity, field="minCapacity")
        return ClusterIntent(
            min_pool_count=_count_or_none(spec.get("minPoolCount"), "minPoolCount"),
            max_pool_count=_count_or_none(spec.get("maxPoolCount"), "maxPoolCount"),
            raid_type=pool.get("raidType") or None,
            min_disk_count=_count_or_none(disk.get("minCount"), "minCount"),
            min_disk_capacity=None if capacity in (None, "") else str(capacity),
            external_provisioner=ExternalProvisioner.model_validate(
                disk.get("externalProvisioner") or {}
            ),
            allowed_nodes=ResourceSelector.model_validate(spec.get("allowedNodes") or {}),
        )
    except (PydanticValidationError, ValidationError) as exc:
        raise DecodeError(f"Can't decode {describe(doc)}: {exc}") from exc


def local_device_selector(doc: Mapping[str, Any]) -> Optional[ResourceSelector]:
    """Selector of spec.diskConfig.local, None when disks are not local."""
    local, found = nested_get(doc, "spec.diskConfig.local")
    if not found or local is None:
        return None
    try:
        local = _map(local, "spec.diskConfig.local", doc)
        return ResourceSelector.model_validate(local.get("blockDeviceSelector") or {})
    except PydanticValidationError as exc:
        raise DecodeError(f"Invalid local block device selector in {describe(doc)}: {exc}") from exc


# ---------------------------------------------------------------------
# CStorClusterPlan
# ---------------------------------------------------------------------
def decode_plan_nodes(doc: Mapping[str, Any]) -> List[NodeRef]:
    nodes = _map(doc.get("spec"), "spec", doc).get("nodes") or []
    try:
        return [NodeRef.model_validate(n) for n in nodes]
    except PydanticValidationError as exc:
        raise DecodeError(f"Invalid spec.nodes in {describe(doc)}: {exc}") from exc


# ---------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------
def decode_node(doc: Mapping[str, Any]) -> NodeInfo:
    return NodeInfo(
        name=_require(name_of(doc), "metadata.name", doc),
        uid=_require(uid_of(doc), "metadata.uid", doc),
        creation_timestamp=str(_meta(doc).get("creationTimestamp") or ""),
        doc=dict(doc),
    )


# ---------------------------------------------------------------------
# CStorClusterStorageSet
# ---------------------------------------------------------------------
def decode_storage_set(doc: Mapping[str, Any]) -> StorageSetInfo:
    spec = _map(doc.get("spec"), "spec", doc)
    node = _map(spec.get("node"), "spec.node", doc)
    disk = _map(spec.get("disk"), "spec.disk", doc)
    count = _require(disk.get("count"), "spec.disk.count", doc)
    return StorageSetInfo(
        name=name_of(doc),
        namespace=namespace_of(doc),
        uid=_require(uid_of(doc), "metadata.uid", doc),
        node_name=_require(node.get("name"), "spec.node.name", doc),
        node_uid=node.get("uid") or "",
        disk_count=parse_count(count, field="spec.disk.count"),
        disk_capacity=str(disk.get("capacity") or ""),
        doc=dict(doc),
    )


# ---------------------------------------------------------------------
# BlockDevice
# ---------------------------------------------------------------------
def decode_block_device(doc: Mapping[str, Any]) -> BlockDeviceCandidate:
    capacity, _ = nested_get(doc, "spec.capacity.storage")
    fs_type, _ = nested_get(doc, "spec.filesystem.fsType")
    status = _map(doc.get("status"), "status", doc)
    return BlockDeviceCandidate(
        name=_require(name_of(doc), "metadata.name", doc),
        namespace=namespace_of(doc),
        host_name=labels_of(doc).get(c.LABEL_HOSTNAME, ""),
        capacity=parse_optional_quantity(capacity, field="spec.capacity.storage") or 0,
        claim_state=status.get("claimState") or "",
        state=status.get("state") or "",
        fs_type=fs_type or "",
        reservation_owner=correlation_uid(doc, c.ANN_STORAGE_SET_UID),
        resource_version=str(_meta(doc).get("resourceVersion") or ""),
        doc=dict(doc),
    )


# ---------------------------------------------------------------------
# CStorPoolCluster
# ---------------------------------------------------------------------
def observed_pool_layout(doc: Optional[Mapping[str, Any]]) -> Tuple[List[str], Dict[str, List[str]]]:
    """
    Host order and per host device order of an observed pool cluster.

    Returns ([], {}) when nothing has been applied yet.
    """
    if not doc:
        return [], {}
    hosts: List[str] = []
    devices: Dict[str, List[str]] = {}
    for pool in _map(doc.get("spec"), "spec", doc).get("pools") or []:
        pool = _map(pool, "spec.pools entry", doc)
        host = _map(pool.get("nodeSelector"), "pool nodeSelector", doc).get(c.LABEL_HOSTNAME)
        if not host:
            raise DecodeError(f"Pool without {c.LABEL_HOSTNAME} node selector in {describe(doc)}")
        if host not in devices:
            hosts.append(host)
            devices[host] = []
        for group in pool.get("raidGroups") or []:
            group = _map(group, "raidGroups entry", doc)
            for bd in group.get("blockDevices") or []:
                name = _map(bd, "blockDevices entry", doc).get("blockDeviceName")
                if name:
                    devices[host].append(name)
    return hosts, devices
