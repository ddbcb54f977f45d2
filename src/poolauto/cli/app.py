# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/cli/app.py
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn

from poolauto.config.loader import load_config
from poolauto.config.models import OperatorConfig
from poolauto.controller.registry import FINALIZERS, SYNCERS, run_finalize, run_sync
from poolauto.errors import PoolAutoError
from poolauto.logging.log import init_logging
from poolauto.observers.console import ConsoleObserver
from poolauto.observers.dispatcher import EventBus
from poolauto.observers.jsonfile import JsonFileObserver
from poolauto.observers.logger import LoggerObserver
from poolauto.planner.recommendation import recommend_capacity, recommend_devices
from poolauto.server.app import create_app
from poolauto.types.models import RecommendationRequest, SyncRequest
from poolauto.util.equality import diff, merge


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="CStorPoolCluster reconcile hooks")


def _split(value: str) -> List[str]:
    return [x.strip() for x in value.split(",") if x.strip()]


def _build_bus(cfg: OperatorConfig, logger, *, console: bool = False) -> EventBus:
    observers: list = [LoggerObserver(logger)]
    if console:
        observers.append(ConsoleObserver(err=True))
    if cfg.logging.events_file:
        observers.append(JsonFileObserver(cfg.logging.events_file))
    return EventBus(observers)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def serve(
    config: Optional[Path] = typer.Option(None, "--config", help="Operator config YAML"),
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Serve the sync / finalize hooks over HTTP."""
    cfg = load_config(
        config,
        overrides={
            "server": {"host": host, "port": port},
            "logging": {"verbose": debug or None},
        },
    )
    logger, run_id, log_path = init_logging(
        base_dir=cfg.logging.log_dir,
        verbose=cfg.logging.verbose,
        to_file=cfg.logging.log_dir is not None,
    )

    typer.echo("")
    typer.secho("poolauto hooks starting", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path or '-'}")
    typer.echo(f"  Listen   : {cfg.server.host}:{cfg.server.port}")
    typer.echo("")

    api = create_app(cfg, _build_bus(cfg, logger))
    uvicorn.run(
        api,
        host=cfg.server.host,
        port=cfg.server.port,
        log_level="debug" if cfg.logging.verbose else "info",
    )


@app.command()
def reconcile(
    controller: str = typer.Argument(..., help="Controller name, e.g. clusterconfig"),
    request: Path = typer.Argument(..., help="Hook request JSON file"),
    finalize: bool = typer.Option(False, "--finalize", help="Run the finalize hook"),
    config: Optional[Path] = typer.Option(None, "--config", help="Operator config YAML"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Run one hook call offline and print the JSON response."""
    table = FINALIZERS if finalize else SYNCERS
    if controller not in table:
        raise typer.BadParameter(
            f"Unknown controller {controller!r}\nValid controllers: {', '.join(sorted(table))}"
        )

    cfg = load_config(config, overrides={"logging": {"verbose": debug or None}})
    logger, _, _ = init_logging(verbose=cfg.logging.verbose, to_file=False)

    try:
        body = SyncRequest.model_validate(json.loads(request.read_text()))
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError as well
        raise typer.BadParameter(f"Invalid hook request {request}: {exc}")

    bus = _build_bus(cfg, logger, console=True)
    runner = run_finalize if finalize else run_sync
    response = runner(controller, body, bus=bus, cfg=cfg.planner)
    typer.echo(json.dumps(response.to_wire(), indent=2, sort_keys=True))


@app.command()
def recommend(
    request: Path = typer.Argument(..., help="Recommendation request JSON file"),
    capacity: bool = typer.Option(False, "--capacity", help="Show the min / max pool capacity instead of devices"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Recommend pool capacity or block devices for a raid group config."""
    init_logging(verbose=debug, to_file=False)
    try:
        body = RecommendationRequest.model_validate(json.loads(request.read_text()))
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid recommendation request {request}: {exc}")

    try:
        result = recommend_capacity(body) if capacity else recommend_devices(body)
    except PoolAutoError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2, sort_keys=True))


@app.command("plan-merge")
def plan_merge(
    observed: str = typer.Argument(..., help="Observed items, comma separated"),
    desired: str = typer.Argument(..., help="Desired items, comma separated"),
):
    """Show how a desired list is merged into an observed one."""
    obs, want = _split(observed), _split(desired)
    _, additions, removals = diff(obs, want)
    typer.echo(f"added   : {', '.join(additions) or '-'}")
    typer.echo(f"removed : {', '.join(removals) or '-'}")
    typer.echo(f"merged  : {', '.join(merge(obs, want)) or '-'}")


if __name__ == "__main__":
    app()
