# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/raid.py

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from poolauto.errors import InvalidRAIDTypeError

STRIPE = "stripe"
MIRROR = "mirror"
RAIDZ = "raidz"
RAIDZ2 = "raidz2"

DEFAULT_RAID_TYPE = MIRROR

# disks that make up one raid group
RAID_GROUP_DISK_COUNT: Mapping[str, int] = MappingProxyType({
    STRIPE: 1,
    MIRROR: 2,
    RAIDZ: 3,
    RAIDZ2: 6,
})

# disks a storage set asks for when minDiskCount is not set
DEFAULT_MIN_DISK_COUNT: Mapping[str, int] = MappingProxyType(dict(RAID_GROUP_DISK_COUNT))


def validate_raid_type(raid_type: str) -> str:
    if raid_type not in RAID_GROUP_DISK_COUNT:
        raise InvalidRAIDTypeError(f"Invalid RAID type {raid_type}")
    return raid_type


def disk_count_per_group(raid_type: str) -> int:
    return RAID_GROUP_DISK_COUNT[validate_raid_type(raid_type)]


def default_min_disk_count(raid_type: str) -> int:
    return DEFAULT_MIN_DISK_COUNT[validate_raid_type(raid_type)]


def is_valid_disk_count(raid_type: str, count: int) -> bool:
    """True if *count* disks split into whole raid groups of *raid_type*."""
    if count <= 0:
        return False
    return count % disk_count_per_group(raid_type) == 0


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def is_valid_group_size(raid_type: str, group_size: int) -> bool:
    """
    Validate the disk count of a single raid group config.

    stripe takes any positive count, mirror exactly 2, raidz 2^n+1 and
    raidz2 2^n+2 (n >= 1).
    """
    validate_raid_type(raid_type)
    if group_size <= 0:
        return False
    if raid_type == STRIPE:
        return True
    if raid_type == MIRROR:
        return group_size == 2
    if raid_type == RAIDZ:
        return group_size >= 3 and _is_power_of_two(group_size - 1)
    return group_size >= 4 and _is_power_of_two(group_size - 2)


# devices per raid group that hold parity or mirror copies
PARITY_DISK_COUNT: Mapping[str, int] = MappingProxyType({
    STRIPE: 0,
    MIRROR: 1,
    RAIDZ: 1,
    RAIDZ2: 2,
})


def data_device_count(raid_type: str, group_size: int) -> int:
    """Devices of one raid group whose capacity ends up usable."""
    return group_size - PARITY_DISK_COUNT[validate_raid_type(raid_type)]
