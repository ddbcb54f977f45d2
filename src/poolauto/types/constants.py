# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/types/constants.py

from __future__ import annotations

# ---------------------------------------------------------------------
# API groups & versions
# ---------------------------------------------------------------------
GROUP_DAO = "dao.mayadata.io"
GROUP_OPENEBS = "openebs.io"

API_VERSION_DAO_V1ALPHA1 = f"{GROUP_DAO}/v1alpha1"
API_VERSION_OPENEBS_V1ALPHA1 = f"{GROUP_OPENEBS}/v1alpha1"

# ---------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------
KIND_NODE = "Node"
KIND_CLUSTER_CONFIG = "CStorClusterConfig"
KIND_CLUSTER_PLAN = "CStorClusterPlan"
KIND_STORAGE_SET = "CStorClusterStorageSet"
KIND_STORAGE = "Storage"
KIND_BLOCK_DEVICE = "BlockDevice"
KIND_POOL_CLUSTER = "CStorPoolCluster"

# ---------------------------------------------------------------------
# Annotation keys
# ---------------------------------------------------------------------
ANN_NAMESPACE = GROUP_DAO
ANN_CLUSTER_CONFIG_UID = f"{ANN_NAMESPACE}/cstorclusterconfig-uid"
ANN_CLUSTER_PLAN_UID = f"{ANN_NAMESPACE}/cstorclusterplan-uid"
ANN_STORAGE_SET_UID = f"{ANN_NAMESPACE}/cstorclusterstorageset-uid"
ANN_CLUSTER_CONFIG_LOCAL_DISK = f"{ANN_NAMESPACE}/cstorclusterconfig-localdisk"

LABEL_HOSTNAME = "kubernetes.io/hostname"

# ---------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------
PHASE_ONLINE = "Online"
PHASE_ERROR = "Error"

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

COND_CLUSTER_CONFIG_RECONCILE_ERROR = "CStorClusterConfigReconcileError"
COND_CLUSTER_PLAN_RECONCILE_ERROR = "CStorClusterPlanReconcileError"
COND_STORAGE_SET_RECONCILE_ERROR = "CStorClusterStorageSetError"
COND_ERROR_SETTING_DEFAULT = "ErrorSettingDefault"
COND_POOL_CLUSTER_APPLY_ERROR = "CStorPoolClusterApplyError"
COND_BLOCK_DEVICE_RESERVE_ERROR = "BlockDeviceReserveError"
COND_LOCAL_DEVICE_RECONCILE_ERROR = "LocalDeviceReconcileError"

# ---------------------------------------------------------------------
# Block device states
# ---------------------------------------------------------------------
DEVICE_STATE_ACTIVE = "Active"
DEVICE_CLAIM_UNCLAIMED = "Unclaimed"
DEVICE_CLAIM_CLAIMED = "Claimed"

# ---------------------------------------------------------------------
# Planning defaults
# ---------------------------------------------------------------------
DEFAULT_MIN_POOL_COUNT = 3
DEFAULT_MIN_DISK_CAPACITY = "100Gi"
DEFAULT_RESYNC_AFTER_SECONDS = 3
