# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/util/selector.py

"""
Resource selector evaluation.

A ResourceSelector is a list of terms. Terms are ORed; every match
clause inside a term is ANDed. A selector without terms matches
anything, including a missing target.

Label, annotation and field clauses follow Kubernetes label selector
rules. Field keys are dot separated paths into the target document,
e.g. ``spec.details.deviceType``. Slice clauses evaluate multi valued
fields such as ``metadata.finalizers``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from poolauto.errors import SelectorError

log = logging.getLogger("poolauto")


class SelectorRequirement(BaseModel):
    # operator is checked at match time, see _requirement_matches
    key: str
    operator: str
    values: List[str] = Field(default_factory=list)


class SliceSelectorRequirement(BaseModel):
    key: str
    operator: str
    values: List[str] = Field(default_factory=list)


class SelectorTerm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_labels: Dict[str, str] = Field(default_factory=dict, alias="matchLabels")
    match_label_expressions: List[SelectorRequirement] = Field(
        default_factory=list, alias="matchLabelExpressions"
    )
    match_annotations: Dict[str, str] = Field(default_factory=dict, alias="matchAnnotations")
    match_annotation_expressions: List[SelectorRequirement] = Field(
        default_factory=list, alias="matchAnnotationExpressions"
    )
    match_fields: Dict[str, str] = Field(default_factory=dict, alias="matchFields")
    match_field_expressions: List[SelectorRequirement] = Field(
        default_factory=list, alias="matchFieldExpressions"
    )
    match_slice: Dict[str, List[str]] = Field(default_factory=dict, alias="matchSlice")
    match_slice_expressions: List[SliceSelectorRequirement] = Field(
        default_factory=list, alias="matchSliceExpressions"
    )


class ResourceSelector(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    selector_terms: List[SelectorTerm] = Field(default_factory=list, alias="selectorTerms")

    def is_empty(self) -> bool:
        return not self.selector_terms

    def matches(self, target: Optional[Mapping[str, Any]]) -> bool:
        return match(self, target)


# ---------------------------------------------------------------------
# Document helpers
# ---------------------------------------------------------------------
def nested_get(doc: Optional[Mapping[str, Any]], path: str) -> tuple[Any, bool]:
    """Return (value, found) for a dot separated path."""
    node: Any = doc
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None, False
        node = node[part]
    return node, True


def _scalar(value: Any, key: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise SelectorError(f"Field selector with key {key} failed: {type(value).__name__} is not a scalar")


def _metadata_map(target: Mapping[str, Any], name: str) -> Dict[str, str]:
    value, found = nested_get(target, f"metadata.{name}")
    if not found or value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SelectorError(f"Invalid metadata.{name}: want map got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}


# ---------------------------------------------------------------------
# Label style requirements
# ---------------------------------------------------------------------
def _requirement_matches(req: SelectorRequirement, pairs: Mapping[str, str]) -> bool:
    if not req.key:
        raise SelectorError(f"Invalid selector requirement: Missing key: {req}")
    op = req.operator
    if op in ("In", "NotIn"):
        if not req.values:
            raise SelectorError(f"Invalid selector requirement {req.key}: Values can't be empty")
        present = req.key in pairs
        if op == "In":
            return present and pairs[req.key] in req.values
        return not present or pairs[req.key] not in req.values
    if op in ("Exists", "DoesNotExist"):
        if req.values:
            raise SelectorError(f"Invalid selector requirement {req.key}: Values must be empty for {op}")
        return (req.key in pairs) == (op == "Exists")
    raise SelectorError(f"Invalid selector requirement {req.key}: Operator {op!r} is not recognized")


def _pairs_match(
    exact: Mapping[str, str],
    expressions: Iterable[SelectorRequirement],
    pairs: Mapping[str, str],
) -> bool:
    for key, value in exact.items():
        if not key:
            raise SelectorError(f"Invalid selector: Missing key: {dict(exact)}")
        if pairs.get(key) != value:
            return False
    for req in expressions:
        if not _requirement_matches(req, pairs):
            return False
    return True


def _is_label_match(term: SelectorTerm, target: Mapping[str, Any]) -> bool:
    if not term.match_labels and not term.match_label_expressions:
        return True
    return _pairs_match(term.match_labels, term.match_label_expressions, _metadata_map(target, "labels"))


def _is_annotation_match(term: SelectorTerm, target: Mapping[str, Any]) -> bool:
    if not term.match_annotations and not term.match_annotation_expressions:
        return True
    return _pairs_match(
        term.match_annotations,
        term.match_annotation_expressions,
        _metadata_map(target, "annotations"),
    )


def _is_field_match(term: SelectorTerm, target: Mapping[str, Any]) -> bool:
    if not term.match_fields and not term.match_field_expressions:
        return True
    keys = list(term.match_fields) + [r.key for r in term.match_field_expressions]
    values: Dict[str, str] = {}
    for key in keys:
        if not key:
            raise SelectorError("Invalid field selector: Missing key")
        value, found = nested_get(target, key)
        # absent and null fields are both treated as not present
        if found and value is not None:
            values[key] = _scalar(value, key)
    return _pairs_match(term.match_fields, term.match_field_expressions, values)


# ---------------------------------------------------------------------
# Slice requirements
# ---------------------------------------------------------------------
def _slice_matches(key: str, operator: str, values: List[str], target: Mapping[str, Any]) -> bool:
    if not key:
        raise SelectorError("Invalid slice selector: Key can't be empty")
    if not values:
        raise SelectorError(f"Invalid slice selector {key}: Values can't be empty")
    if operator not in ("In", "NotIn", "Equals", "NotEquals"):
        raise SelectorError(f"Invalid slice selector {key}: Operator {operator!r} is not recognized")

    raw, found = nested_get(target, key)
    if found and raw is not None and not isinstance(raw, list):
        raise SelectorError(f"Slice match with key {key} failed: want list got {type(raw).__name__}")
    given = [_scalar(v, key) for v in (raw or [])]
    contained = set(given) <= set(values)

    if operator in ("In", "Equals"):
        return contained
    if not found or raw is None:
        return True
    return not contained


def _is_slice_match(term: SelectorTerm, target: Mapping[str, Any]) -> bool:
    for key, values in term.match_slice.items():
        if not _slice_matches(key, "Equals", values, target):
            return False
    for req in term.match_slice_expressions:
        if not _slice_matches(req.key, req.operator, req.values, target):
            return False
    return True


_TERM_MATCHERS: List[Callable[[SelectorTerm, Mapping[str, Any]], bool]] = [
    _is_field_match,
    _is_annotation_match,
    _is_label_match,
    _is_slice_match,
]


def match(selector: Optional[ResourceSelector], target: Optional[Mapping[str, Any]]) -> bool:
    """
    Evaluate *selector* against *target*.

    Raises SelectorError when the selector has terms but there is no
    target, or when a term is malformed.
    """
    if selector is None or selector.is_empty():
        return True
    if target is None:
        raise SelectorError("Selector match failed: Nil target")
    for term in selector.selector_terms:
        if all(fn(term, target) for fn in _TERM_MATCHERS):
            return True
    return False


def select(
    selector: Optional[ResourceSelector],
    targets: Iterable[Mapping[str, Any]],
) -> List[Mapping[str, Any]]:
    """Return the targets matched by *selector*, order preserved."""
    selected = [t for t in targets if match(selector, t)]
    log.debug("selector matched %d target(s)", len(selected))
    return selected
