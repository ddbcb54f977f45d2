# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/config/models.py

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from poolauto.types import constants as c
from poolauto.util.quantity import parse_quantity


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)


class LoggingConfig(BaseModel):
    verbose: bool = False
    log_dir: Optional[Path] = None     # no file log when unset
    events_file: Optional[Path] = None  # JSON lines of reconcile events


class PlannerConfig(BaseModel):
    resync_after_seconds: float = Field(c.DEFAULT_RESYNC_AFTER_SECONDS, gt=0)
    default_min_pool_count: int = Field(c.DEFAULT_MIN_POOL_COUNT, gt=0)
    default_min_disk_capacity: str = c.DEFAULT_MIN_DISK_CAPACITY

    @field_validator("default_min_disk_capacity")
    @classmethod
    def _positive_capacity(cls, v: str) -> str:
        if parse_quantity(v, field="default_min_disk_capacity") <= 0:
            raise ValueError("default_min_disk_capacity must be positive")
        return v


class OperatorConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    planner: PlannerConfig = Field(default_factory=PlannerConfig)
