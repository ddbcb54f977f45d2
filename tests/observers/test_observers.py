import json
from pathlib import Path

from poolauto.observers.console import ConsoleObserver
from poolauto.observers.dispatcher import EventBus
from poolauto.observers.events import DevicesReserved, ReconcileFailed, new_ctx
from poolauto.observers.jsonfile import JsonFileObserver


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


class Broken:
    def notify(self, ev): raise RuntimeError("boom")


def _event():
    return DevicesReserved(**new_ctx("blockdevice", "openebs/ss1"), reserved=["bd-1"], desired=2)


def test_bus_keeps_going_after_observer_failure():
    cap = Capture()
    bus = EventBus([Broken(), cap])
    bus.emit(_event())
    assert len(cap.events) == 1
    assert cap.events[0].controller == "blockdevice"


def test_json_file_observer(tmp_path: Path):
    path = tmp_path / "events" / "run.jsonl"
    ob = JsonFileObserver(path)
    ob.notify(_event())
    ob.notify(ReconcileFailed(**new_ctx("clusterplan", "openebs/c"), error="x", condition="Y"))

    lines = [json.loads(x) for x in path.read_text().splitlines()]
    assert [x["type"] for x in lines] == ["DevicesReserved", "ReconcileFailed"]
    assert lines[0]["reserved"] == ["bd-1"]
    assert lines[1]["condition"] == "Y"


def test_console_observer(capsys):
    ConsoleObserver().notify(_event())
    out = capsys.readouterr().out
    assert "DevicesReserved" in out
    assert "watch=openebs/ss1" in out
    assert "desired=2" in out

    ConsoleObserver(err=True).notify(_event())
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "DevicesReserved" in captured.err
