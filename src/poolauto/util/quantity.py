# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/util/quantity.py

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from kubernetes.utils import parse_quantity as _k8s_parse_quantity

from poolauto.errors import ValidationError


def parse_quantity(value: Any, *, field: str = "quantity") -> Decimal:
    """Parse a Kubernetes quantity ("100Gi", "2", 3) into a Decimal."""
    try:
        return _k8s_parse_quantity(value)
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"Invalid {field} {value!r}: {exc}") from exc


def parse_optional_quantity(value: Any, *, field: str = "quantity") -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return parse_quantity(value, field=field)


def parse_count(value: Any, *, field: str = "count") -> int:
    """Parse a quantity that must hold a whole number."""
    q = parse_quantity(value, field=field)
    if q != q.to_integral_value():
        raise ValidationError(f"Invalid {field} {value!r}: want a whole number")
    return int(q)
