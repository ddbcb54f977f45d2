import json
from pathlib import Path

from typer.testing import CliRunner

from poolauto.cli.app import app

runner = CliRunner()


def test_plan_merge():
    result = runner.invoke(app, ["plan-merge", "hi,hello", "hello,how,are,you"])
    assert result.exit_code == 0
    assert "added   : how, are, you" in result.output
    assert "removed : hi" in result.output
    assert "merged  : how, hello, are, you" in result.output


def test_reconcile_from_file(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("POOLAUTO_CONFIG", raising=False)
    request = tmp_path / "request.json"
    request.write_text(json.dumps({
        "watch": {
            "apiVersion": "dao.mayadata.io/v1alpha1",
            "kind": "CStorClusterConfig",
            "metadata": {"name": "c", "namespace": "openebs", "uid": "cfg-uid"},
            "spec": {"diskConfig": {"local": {"blockDeviceSelector": {}}}},
        },
        "attachments": [],
    }))
    result = runner.invoke(app, ["reconcile", "localdevice", str(request), "--finalize"])
    assert result.exit_code == 0, result.output
    assert '"finalized": true' in result.output


def test_reconcile_unknown_controller(tmp_path: Path):
    request = tmp_path / "request.json"
    request.write_text("{}")
    result = runner.invoke(app, ["reconcile", "nope", str(request)])
    assert result.exit_code != 0


def test_reconcile_invalid_request(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("POOLAUTO_CONFIG", raising=False)
    request = tmp_path / "request.json"
    request.write_text("{\"attachments\": []}")
    result = runner.invoke(app, ["reconcile", "clusterconfig", str(request)])
    assert result.exit_code != 0


def _recommend_file(tmp_path: Path, **kw) -> Path:
    def bd(name):
        return {
            "apiVersion": "openebs.io/v1alpha1",
            "kind": "BlockDevice",
            "metadata": {"name": name, "namespace": "openebs", "labels": {"kubernetes.io/hostname": "node-1"}},
            "spec": {"capacity": {"storage": "100Gi"}, "details": {"deviceType": "disk", "driveType": "HDD"}},
            "status": {"state": "Active", "claimState": "Unclaimed"},
        }

    body = {"poolCapacity": "100Gi", "dataConfig": {"type": "mirror"}, "blockDevices": [bd("bd-1"), bd("bd-2")]}
    body.update(kw)
    path = tmp_path / "recommend.json"
    path.write_text(json.dumps(body))
    return path


def test_recommend_devices(tmp_path: Path):
    result = runner.invoke(app, ["recommend", str(_recommend_file(tmp_path))])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    (instance,) = out["disk-HDD"]["spec"]["poolInstances"]
    assert instance["node"] == {"name": "node-1"}
    assert instance["capacity"] == "107374182400"


def test_recommend_capacity(tmp_path: Path):
    result = runner.invoke(app, ["recommend", str(_recommend_file(tmp_path)), "--capacity"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "disk-HDD": {"minCapacity": "107374182400", "maxCapacity": "107374182400"},
    }


def test_recommend_rejected_request(tmp_path: Path):
    path = _recommend_file(tmp_path, dataConfig={"type": "mirror", "groupDeviceCount": 3})
    result = runner.invoke(app, ["recommend", str(path)])
    assert result.exit_code == 1
    assert "Invalid device count 3" in result.output
