# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/poolauto/observers/console.py
import typer

from poolauto.observers.events import BaseEvent

_BASE = ("ts", "run_id", "controller", "watch")


class ConsoleObserver:
    def __init__(self, err: bool = False):
        # err=True keeps stdout free for command output
        self.err = err

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        k = event.__class__.__name__
        data = ", ".join(f"{x}={y}" for x, y in d.items() if x not in _BASE)
        typer.echo(
            f"[{d['ts']}] {k} run={d['run_id']} controller={d['controller']} "
            f"watch={d['watch']} data={{{data}}}",
            err=self.err,
        )
