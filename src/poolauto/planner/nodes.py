# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/planner/nodes.py

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set, Tuple

from poolauto.errors import NodeSelectionError
from poolauto.types.models import NodeInfo, NodeRef
from poolauto.util.selector import ResourceSelector, match

log = logging.getLogger("poolauto")


def _key(node) -> Tuple[str, str]:
    return node.name, node.uid


class NodeEvaluator:
    """
    Decides which nodes should host a pool.

    Nodes already in the plan are kept while they stay eligible so pools
    are not moved around needlessly. The plan only grows up to the min
    pool count and only shrinks down to the max pool count.
    """

    def __init__(self, nodes: Sequence[NodeInfo], allowed: Optional[ResourceSelector] = None):
        self.nodes = list(nodes)
        self.allowed = allowed or ResourceSelector()
        self._eligible: Optional[List[NodeInfo]] = None

    def eligible_nodes(self) -> List[NodeInfo]:
        if self._eligible is None:
            picked = [n for n in self.nodes if match(self.allowed, n.doc)]
            self._eligible = sorted(picked, key=lambda n: (n.name, n.uid))
        return self._eligible

    def eligible_node_count(self) -> int:
        return len(self.eligible_nodes())

    def available_node_count(self) -> int:
        return len(self.nodes)

    def _pick_excluding(self, count: int, planned: Sequence[NodeRef]) -> List[NodeRef]:
        taken: Set[Tuple[str, str]] = {_key(n) for n in planned}
        picks = [n.ref() for n in self.eligible_nodes() if _key(n) not in taken][:count]
        if len(picks) < count:
            raise NodeSelectionError(f"Can't find {count} number of nodes")
        return picks

    def _drop_recent(self, keep: int, planned: Sequence[NodeRef]) -> List[NodeRef]:
        by_key = {_key(n): n for n in self.eligible_nodes()}
        oldest_first = sorted(
            (by_key[_key(p)] for p in planned),
            key=lambda n: (n.creation_timestamp, n.name),
        )
        kept = {_key(n) for n in oldest_first[:keep]}
        # keep the plan's own order for the survivors
        return [p for p in planned if _key(p) in kept]

    def evaluate(
        self,
        observed: Sequence[NodeRef],
        min_pool_count: int,
        max_pool_count: int,
    ) -> List[NodeRef]:
        """Return the desired NodePlan given the currently planned nodes."""
        eligible = self.eligible_nodes()
        if not observed:
            if len(eligible) < min_pool_count:
                raise NodeSelectionError(f"Can't find {min_pool_count} number of nodes")
            return [n.ref() for n in eligible[:min_pool_count]]

        eligible_keys = {_key(n) for n in eligible}
        includes = [NodeRef(name=o.name, uid=o.uid) for o in observed if _key(o) in eligible_keys]

        if min_pool_count <= len(includes) <= max_pool_count:
            return includes
        if len(includes) > max_pool_count:
            log.debug("dropping %d recent node(s) from plan", len(includes) - max_pool_count)
            return self._drop_recent(max_pool_count, includes)
        return includes + self._pick_excluding(min_pool_count - len(includes), includes)
