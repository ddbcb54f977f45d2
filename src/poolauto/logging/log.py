# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/logging/log.py

from __future__ import annotations

import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional
import uuid

FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "poolauto",
    verbose: bool = False,
    to_file: bool = True,
) -> tuple[logging.Logger, str, Optional[Path]]:
    """
    Initializes:
      - console handler, INFO by default, DEBUG with verbose
      - optional full trace log file under base_dir
      - returns run_id so observers can reuse it
    """
    run_id = str(uuid.uuid4())

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(FORMAT, datefmt=DATEFMT)

    log_path: Optional[Path] = None
    if to_file:
        if base_dir is None:
            base_dir = Path.home() / ".poolauto" / "logs"
        base_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        log_path = base_dir / f"{name}-{ts}-{run_id}.log"

        # File = FULL TRACE
        fh = logging.FileHandler(log_path)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    logger.info("=== poolauto started ===")
    logger.info("run_id=%s", run_id)
    if log_path:
        logger.info("log_file=%s", log_path)

    return logger, run_id, log_path
