# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/clusterconfig.py

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from poolauto.controller.base import Syncer
from poolauto.errors import DefaultingError, NodeSelectionError, PoolAutoError
from poolauto.observers.events import NodesPlanned
from poolauto.planner import defaults
from poolauto.planner.nodes import NodeEvaluator
from poolauto.types import constants as c
from poolauto.types.models import NodeRef
from poolauto.types.resources import (
    decode_cluster_intent,
    decode_node,
    decode_plan_nodes,
    name_of,
    namespace_of,
)

log = logging.getLogger("poolauto")


class ConfigSyncer(Syncer):
    """
    Watches a CStorClusterConfig and keeps its CStorClusterPlan.

    Attachments are the cluster's Nodes and the plan(s) annotated with
    the config's uid. The plan shares the config's name and namespace.
    """

    name = "clusterconfig"
    error_condition = c.COND_CLUSTER_CONFIG_RECONCILE_ERROR

    def condition_for(self, err: PoolAutoError) -> str:
        if isinstance(err, DefaultingError):
            return c.COND_ERROR_SETTING_DEFAULT
        return self.error_condition

    def cleared_conditions(self) -> Tuple[str, ...]:
        return (c.COND_ERROR_SETTING_DEFAULT, self.error_condition)

    def _desired_plan(
        self,
        config_uid: str,
        observed: Optional[Dict[str, Any]],
        nodes: List[NodeRef],
    ) -> Dict[str, Any]:
        if observed is not None:
            plan = copy.deepcopy(observed)
        else:
            plan = {
                "apiVersion": c.API_VERSION_DAO_V1ALPHA1,
                "kind": c.KIND_CLUSTER_PLAN,
                "metadata": {
                    "name": name_of(self.watch),
                    "namespace": namespace_of(self.watch),
                },
            }
        meta = plan.setdefault("metadata", {})
        meta.setdefault("annotations", {})[c.ANN_CLUSTER_CONFIG_UID] = config_uid
        meta.setdefault("labels", {})[c.ANN_CLUSTER_CONFIG_UID] = config_uid
        plan.setdefault("spec", {})["nodes"] = [n.model_dump() for n in nodes]
        return plan

    def reconcile(self) -> None:
        config_uid = self.watch_uid()
        intent = decode_cluster_intent(self.watch)
        nodes = [decode_node(n) for n in self.attachments_of_kind(c.KIND_NODE)]

        evaluator = NodeEvaluator(nodes, intent.allowed_nodes)
        intent = defaults.evaluate(
            intent,
            evaluator.available_node_count(),
            evaluator.eligible_node_count(),
            default_min_pool_count=self.cfg.default_min_pool_count,
            default_min_disk_capacity=self.cfg.default_min_disk_capacity,
        )
        if evaluator.eligible_node_count() == 0:
            raise NodeSelectionError("No eligible nodes were found")

        plans = self.owned_attachments(c.KIND_CLUSTER_PLAN, c.ANN_CLUSTER_CONFIG_UID, config_uid)
        if len(plans) > 1:
            log.warning(
                "config %s owns %d plans, keeping %s",
                self.watch_ref(), len(plans), name_of(plans[0]),
            )
        observed = plans[0] if plans else None
        observed_nodes = decode_plan_nodes(observed) if observed else []

        desired_nodes = evaluator.evaluate(
            observed_nodes, intent.min_pool_count, intent.max_pool_count
        )
        self.keep_rest(plans)
        self.response.attachments.append(self._desired_plan(config_uid, observed, desired_nodes))
        self.emit(NodesPlanned, nodes=[n.name for n in desired_nodes])
        self.set_online()
