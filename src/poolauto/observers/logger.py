# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/observers/logger.py
from __future__ import annotations
import logging
from poolauto.observers.events import BaseEvent


class LoggerObserver:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts",))
        level = logging.WARNING if etype == "ReconcileFailed" else logging.INFO
        self.logger.log(level, "[EVENT] %s: %s", etype, msg)
