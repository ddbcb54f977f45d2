# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/controller/base.py

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from poolauto.config.models import PlannerConfig
from poolauto.errors import DecodeError, PoolAutoError
from poolauto.observers.dispatcher import EventBus
from poolauto.observers.events import (
    BaseEvent,
    ReconcileFailed,
    ReconcileSkipped,
    ReconcileStarted,
    ReconcileSucceeded,
    new_ctx,
)
from poolauto.types.models import SyncRequest, SyncResponse
from poolauto.types.resources import describe, is_owned_by, kind_of, name_of, namespace_of, uid_of
from poolauto.controller.status import build_status

log = logging.getLogger("poolauto")


def _ref(doc: Dict[str, Any]) -> Tuple[str, str, str]:
    return kind_of(doc), namespace_of(doc), name_of(doc)


class Syncer:
    """
    Shell around one planning stage.

    Subclasses implement ``reconcile()`` and fill ``self.response``.
    Planning errors never escape ``sync()``: they are logged, recorded
    as a status condition on the watch and turned into a skipped
    reconcile. Anything else propagates to the transport.
    """

    name = ""
    error_condition = ""

    def __init__(
        self,
        request: SyncRequest,
        *,
        bus: Optional[EventBus] = None,
        cfg: Optional[PlannerConfig] = None,
    ):
        self.request = request
        self.watch: Dict[str, Any] = request.watch
        self.attachments: List[Dict[str, Any]] = request.attachment_list()
        self.response = SyncResponse()
        self.bus = bus or EventBus()
        self.cfg = cfg or PlannerConfig()
        self.ctx = new_ctx(self.name, self.watch_ref())
        self.skip_reason = ""

    # -----------------------------------------------------------------
    # Helpers for subclasses
    # -----------------------------------------------------------------
    def watch_ref(self) -> str:
        ns = namespace_of(self.watch)
        return f"{ns}/{name_of(self.watch)}" if ns else name_of(self.watch)

    def emit(self, event_cls, **data) -> None:
        event: BaseEvent = event_cls(**self.ctx, **data)
        self.bus.emit(event)

    def keep(self, doc: Dict[str, Any]) -> None:
        """Return an attachment unchanged so the orchestrator keeps it."""
        self.response.attachments.append(doc)

    def attachments_of_kind(self, kind: str) -> List[Dict[str, Any]]:
        return [a for a in self.attachments if kind_of(a) == kind]

    def owned_attachments(self, kind: str, key: str, owner_uid: str) -> List[Dict[str, Any]]:
        """Attachments of *kind* whose *key* annotation (or label) is *owner_uid*."""
        return sorted(
            (a for a in self.attachments_of_kind(kind) if is_owned_by(a, key, owner_uid)),
            key=name_of,
        )

    def attachment_by_uid(self, kind: str, uid: str) -> Optional[Dict[str, Any]]:
        if not uid:
            return None
        return next((a for a in self.attachments_of_kind(kind) if uid_of(a) == uid), None)

    def keep_rest(self, managed: Iterable[Dict[str, Any]]) -> None:
        """
        Pass back every attachment that is not in *managed*.

        The orchestrator deletes what a response leaves out, so only the
        objects this stage plans may be dropped.
        """
        skip = {_ref(d) for d in managed}
        for a in self.attachments:
            if _ref(a) not in skip:
                self.keep(a)

    def watch_uid(self) -> str:
        uid = uid_of(self.watch)
        if not uid:
            raise DecodeError(f"Can't find metadata.uid in {describe(self.watch)}")
        return uid

    def skip(self, reason: str, *, resync: bool = False) -> None:
        self.skip_reason = reason
        self.response.skip_reconcile = True
        if resync:
            self.response.resync_after_seconds = self.cfg.resync_after_seconds

    def cleared_conditions(self) -> Tuple[str, ...]:
        return (self.error_condition,)

    def set_online(self) -> None:
        doc, status = self.watch, None
        for cond in self.cleared_conditions():
            status = build_status(doc, cond)
            if status is None:
                break
            doc = {**doc, "status": status}
        self.response.status = status

    def condition_for(self, err: PoolAutoError) -> str:
        return self.error_condition

    def reconcile(self) -> None:
        raise NotImplementedError

    # -----------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------
    def handle_error(self, err: PoolAutoError) -> None:
        cond = self.condition_for(err)
        log.error("Failed to reconcile %s %s: %s", kind_of(self.watch), self.watch_ref(), err)
        self.response.status = build_status(self.watch, cond, err)
        self.response.skip_reconcile = True
        self.emit(ReconcileFailed, error=str(err), condition=cond)

    def sync(self) -> SyncResponse:
        started = time.monotonic()
        self.emit(ReconcileStarted, kind=kind_of(self.watch), attachments=len(self.attachments))
        try:
            self.reconcile()
        except PoolAutoError as err:
            self.handle_error(err)
            return self.response

        if self.response.skip_reconcile:
            log.info("Will skip %s %s: %s", self.name, self.watch_ref(), self.skip_reason)
            self.emit(
                ReconcileSkipped,
                reason=self.skip_reason,
                resync_after_seconds=self.response.resync_after_seconds,
            )
        else:
            self.emit(
                ReconcileSucceeded,
                attachments=len(self.response.attachments),
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        return self.response

