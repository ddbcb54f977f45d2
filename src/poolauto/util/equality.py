# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/util/equality.py

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set, Tuple


def _unique(items: Optional[Iterable[str]]) -> List[str]:
    seen: Set[str] = set()
    out: List[str] = []
    for item in items or []:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def diff(
    observed: Optional[Sequence[str]],
    desired: Optional[Sequence[str]],
) -> Tuple[Set[str], List[str], List[str]]:
    """
    Compare two device name lists.

    Returns (noops, additions, removals). Additions keep the order of
    *desired*, removals keep the order of *observed*.
    """
    observed_u = _unique(observed)
    desired_u = _unique(desired)
    observed_set = set(observed_u)
    desired_set = set(desired_u)

    noops = observed_set & desired_set
    additions = [d for d in desired_u if d not in observed_set]
    removals = [o for o in observed_u if o not in desired_set]
    return noops, additions, removals


def is_diff(
    observed: Optional[Sequence[str]],
    desired: Optional[Sequence[str]],
) -> bool:
    """True if both lists differ as sets. Order is ignored."""
    return set(observed or []) != set(desired or [])


def merge(
    observed: Optional[Sequence[str]],
    desired: Optional[Sequence[str]],
) -> List[str]:
    """
    Merge *desired* into *observed* with the least positional churn.

    Names present in both stay in their observed slot. A slot vacated by a
    removed name is taken by the next new name (in desired order). New
    names left over are appended; vacated slots left over are dropped.

        merge(["hi", "hello"], ["hello", "how", "are", "you"])
        -> ["how", "hello", "are", "you"]
    """
    desired_u = _unique(desired)
    if not desired_u:
        return []
    observed_u = _unique(observed)
    if not observed_u:
        return desired_u

    _, additions, _ = diff(observed_u, desired_u)
    desired_set = set(desired_u)
    pending = iter(additions)

    merged: List[str] = []
    for name in observed_u:
        if name in desired_set:
            merged.append(name)
            continue
        replacement = next(pending, None)
        if replacement is not None:
            merged.append(replacement)
    merged.extend(pending)
    return merged
