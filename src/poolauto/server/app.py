# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/server/app.py

"""
HTTP transport for the reconcile hooks.

The orchestrator POSTs a sync (or finalize) request for one controller
and applies whatever the response lists. Planning failures are part of
a normal 200 response (status condition + skipReconcile); only a bad
request body or an unknown controller is an HTTP error.

Recommendations are plain request / response calls and report a
rejected request as 422.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from poolauto.config.models import OperatorConfig
from poolauto.controller.registry import UnknownControllerError, run_finalize, run_sync
from poolauto.errors import PoolAutoError
from poolauto.observers.dispatcher import EventBus
from poolauto.planner.recommendation import recommend_capacity, recommend_devices
from poolauto.types.models import RecommendationRequest, SyncRequest, SyncResponse

log = logging.getLogger("poolauto")

router = APIRouter()


async def _decode(request: Request) -> SyncRequest:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {exc}")
    try:
        return SyncRequest.model_validate(payload)
    except PydanticValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid hook request: {exc}")


def _run(
    request: Request,
    runner: Callable[..., SyncResponse],
    controller: str,
    body: SyncRequest,
) -> Dict[str, Any]:
    state = request.app.state
    try:
        response = runner(controller, body, bus=state.bus, cfg=state.cfg.planner)
    except UnknownControllerError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]))
    return response.to_wire()


@router.get("/healthz")
def healthz() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/sync/{controller}")
async def sync(controller: str, request: Request) -> Dict[str, Any]:
    body = await _decode(request)
    return _run(request, run_sync, controller, body)


@router.post("/finalize/{controller}")
async def finalize(controller: str, request: Request) -> Dict[str, Any]:
    body = await _decode(request)
    return _run(request, run_finalize, controller, body)


_RECOMMENDERS: Dict[str, Callable[[RecommendationRequest], Dict[str, Any]]] = {
    "capacity": recommend_capacity,
    "devices": recommend_devices,
}


@router.post("/recommend/{kind}")
async def recommend(kind: str, request: Request) -> Dict[str, Any]:
    """Capacity range or device picks per topology for a raid group config."""
    recommender = _RECOMMENDERS.get(kind)
    if recommender is None:
        raise HTTPException(status_code=404, detail=f"Unknown recommendation {kind!r}")
    try:
        body = RecommendationRequest.model_validate(await request.json())
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError as well
        raise HTTPException(status_code=400, detail=f"Invalid recommendation request: {exc}")
    try:
        return recommender(body)
    except PoolAutoError as exc:
        log.info("recommendation %s rejected: %s", kind, exc)
        raise HTTPException(status_code=422, detail=str(exc))


def create_app(cfg: Optional[OperatorConfig] = None, bus: Optional[EventBus] = None) -> FastAPI:
    app = FastAPI(title="poolauto")
    app.state.cfg = cfg or OperatorConfig()
    app.state.bus = bus or EventBus()
    app.include_router(router)
    log.debug("hook routes registered: %s", [r.path for r in router.routes])
    return app
