# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/errors.py


class PoolAutoError(Exception):
    """Base class for all planning and reconcile failures."""


class ValidationError(PoolAutoError, ValueError):
    """Raised when an intent or a derived plan is malformed."""


class DefaultingError(ValidationError):
    """Raised when cluster config defaults can't be resolved."""


class InvalidRAIDTypeError(DefaultingError):
    pass


class SelectorError(ValidationError):
    """Raised when a selector term can't be evaluated."""


class InvalidDiskCountError(ValidationError):
    """Raised when a device list doesn't split into whole RAID groups."""


class NodeSelectionError(ValidationError):
    pass


class DecodeError(ValidationError):
    """Raised when a watched or attached document can't be decoded."""


class MissingAttachmentError(PoolAutoError, LookupError):
    """Raised when a sibling resource required by a stage is not attached."""


class ReservationConflictError(PoolAutoError, RuntimeError):
    """Raised when a device changed between observe and claim."""
