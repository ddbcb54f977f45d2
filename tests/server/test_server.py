from fastapi.testclient import TestClient

from poolauto.observers.dispatcher import EventBus
from poolauto.server.app import create_app


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def _local_config(local=True):
    disk = {"local": {"blockDeviceSelector": {}}} if local else {}
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterConfig",
        "metadata": {"name": "c", "namespace": "openebs", "uid": "cfg-uid"},
        "spec": {"diskConfig": disk},
    }


def _client(cap=None):
    return TestClient(create_app(bus=EventBus([cap] if cap else [])))


def test_healthz():
    r = _client().get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_sync_returns_hook_response():
    cap = Capture()
    r = _client(cap).post("/sync/localdevice", json={"watch": _local_config(local=False), "attachments": {}})
    assert r.status_code == 200
    body = r.json()
    assert body["skipReconcile"] is True
    assert body["attachments"] == []
    assert "status" not in body
    assert cap.events


def test_planning_error_is_not_http_error():
    watch = _local_config()
    # a lone device can't form a mirror group
    bd = {"kind": "BlockDevice", "metadata": {"name": "bd-1", "namespace": "openebs",
                                          "labels": {"kubernetes.io/hostname": "node-001"}}}
    r = _client().post("/sync/localdevice", json={"watch": watch, "attachments": [bd]})
    assert r.status_code == 200
    assert r.json()["status"]["phase"] == "Error"
    assert "Validation failed" in r.json()["status"]["conditions"][0]["reason"]


def test_bad_json():
    r = _client().post("/sync/clusterconfig", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400


def test_missing_watch():
    r = _client().post("/sync/clusterconfig", json={"attachments": []})
    assert r.status_code == 400


def test_unknown_controller():
    r = _client().post("/sync/nope", json={"watch": _local_config()})
    assert r.status_code == 404
    assert "nope" in r.json()["detail"]


def test_finalize():
    r = _client().post("/finalize/localdevice", json={"watch": _local_config(), "attachments": []})
    assert r.status_code == 200
    assert r.json()["finalized"] is True

    r = _client().post("/finalize/clusterconfig", json={"watch": _local_config()})
    assert r.status_code == 404


def _recommend_body(**kw):
    bd = {
        "apiVersion": "openebs.io/v1alpha1",
        "kind": "BlockDevice",
        "metadata": {"labels": {"kubernetes.io/hostname": "node-1"}, "namespace": "openebs"},
        "spec": {"capacity": {"storage": "50Gi"}, "details": {"deviceType": "disk", "driveType": "SSD"}},
        "status": {"state": "Active", "claimState": "Unclaimed"},
    }
    devices = []
    for name in ("bd-1", "bd-2"):
        doc = {**bd, "metadata": {**bd["metadata"], "name": name}}
        devices.append(doc)
    body = {"poolCapacity": "50Gi", "dataConfig": {"type": "mirror", "groupDeviceCount": 2}, "blockDevices": devices}
    body.update(kw)
    return body


def test_recommend_devices_and_capacity():
    client = _client()
    r = client.post("/recommend/devices", json=_recommend_body())
    assert r.status_code == 200
    (instance,) = r.json()["disk-SSD"]["spec"]["poolInstances"]
    assert [d["name"] for d in instance["blockDevices"]["dataDevices"]] == ["bd-1", "bd-2"]

    r = client.post("/recommend/capacity", json=_recommend_body())
    assert r.status_code == 200
    assert r.json() == {"disk-SSD": {"minCapacity": "53687091200", "maxCapacity": "53687091200"}}


def test_recommend_rejections():
    client = _client()
    r = client.post("/recommend/devices", json=_recommend_body(poolCapacity="0"))
    assert r.status_code == 422
    assert "Got zero pool capacity" in r.json()["detail"]

    r = client.post("/recommend/devices", json={"dataConfig": "mirror"})
    assert r.status_code == 400

    r = client.post("/recommend/nope", json=_recommend_body())
    assert r.status_code == 404
