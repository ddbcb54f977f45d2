from poolauto.config.models import PlannerConfig
from poolauto.controller.poolcluster import PoolClusterSyncer
from poolauto.observers.dispatcher import EventBus
from poolauto.observers.events import PoolClusterAssembled, ReconcileSkipped
from poolauto.types.models import SyncRequest

ANN_CONFIG = "dao.mayadata.io/cstorclusterconfig-uid"
ANN_PLAN = "dao.mayadata.io/cstorclusterplan-uid"
ANN_SET = "dao.mayadata.io/cstorclusterstorageset-uid"


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def _plan(nodes=("h1", "h2")):
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterPlan",
        "metadata": {"name": "cluster", "namespace": "openebs", "uid": "plan-uid",
                     "annotations": {ANN_CONFIG: "cfg-uid"}},
        "spec": {"nodes": [{"name": n, "uid": f"uid-{n}"} for n in nodes]},
    }


def _config():
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterConfig",
        "metadata": {"name": "cluster", "namespace": "openebs", "uid": "cfg-uid"},
        "spec": {"poolConfig": {"raidType": "mirror"}},
    }


def _storage_set(host):
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterStorageSet",
        "metadata": {"name": f"ss-{host}", "namespace": "openebs", "uid": f"ss-{host}-uid",
                     "annotations": {ANN_PLAN: "plan-uid"}},
        "spec": {"node": {"name": host, "uid": f"uid-{host}"}, "disk": {"count": 2, "capacity": "10Gi"}},
    }


def _bd(name, host):
    return {
        "apiVersion": "openebs.io/v1alpha1",
        "kind": "BlockDevice",
        "metadata": {"name": name, "namespace": "openebs",
                     "labels": {"kubernetes.io/hostname": host},
                     "annotations": {ANN_PLAN: "plan-uid", ANN_SET: f"ss-{host}-uid"}},
        "spec": {"capacity": {"storage": "10Gi"}},
        "status": {"state": "Active", "claimState": "Unclaimed"},
    }


def _observed_cspc():
    return {
        "apiVersion": "openebs.io/v1alpha1",
        "kind": "CStorPoolCluster",
        "metadata": {"name": "cluster", "namespace": "openebs", "annotations": {ANN_PLAN: "plan-uid"}},
        "spec": {"pools": []},
    }


def _sync(attachments, cap=None, cfg=None):
    req = SyncRequest(watch=_plan(), attachments=attachments)
    return PoolClusterSyncer(req, bus=EventBus([cap] if cap else []), cfg=cfg).sync()


def _ready_attachments():
    return [
        _config(),
        _storage_set("h2"), _storage_set("h1"),
        _bd("bd-b", "h1"), _bd("bd-a", "h1"), _bd("bd-c", "h2"), _bd("bd-d", "h2"),
    ]


def test_pool_cluster_applied_when_ready():
    cap = Capture()
    resp = _sync(_ready_attachments(), cap)

    assert not resp.skip_reconcile
    assert resp.status["phase"] == "Online"
    (cspc,) = [a for a in resp.attachments if a["kind"] == "CStorPoolCluster"]
    assert cspc["metadata"]["annotations"] == {ANN_PLAN: "plan-uid", ANN_CONFIG: "cfg-uid"}

    pools = cspc["spec"]["pools"]
    assert [p["nodeSelector"]["kubernetes.io/hostname"] for p in pools] == ["h1", "h2"]
    groups = pools[0]["raidGroups"]
    assert len(groups) == 1
    assert groups[0]["type"] == "mirror"
    assert [bd["blockDeviceName"] for bd in groups[0]["blockDevices"]] == ["bd-a", "bd-b"]

    # storage sets and devices are owned by other stages and pass through
    assert sum(1 for a in resp.attachments if a["kind"] == "BlockDevice") == 4
    assembled = next(e for e in cap.events if isinstance(e, PoolClusterAssembled))
    assert (assembled.name, assembled.pools) == ("cluster", 2)


def test_waits_for_every_storage_set():
    cap = Capture()
    observed = _observed_cspc()
    resp = _sync([_config(), _storage_set("h1"), _bd("bd-a", "h1"), observed], cap)

    assert resp.skip_reconcile
    assert resp.resync_after_seconds == 3
    assert resp.status is None
    assert observed in resp.attachments
    skipped = next(e for e in cap.events if isinstance(e, ReconcileSkipped))
    assert "observed storage set(s) 1" in skipped.reason


def test_waits_for_block_devices_with_custom_resync():
    attachments = [_config(), _storage_set("h1"), _storage_set("h2"), _bd("bd-a", "h1")]
    resp = _sync(attachments, cfg=PlannerConfig(resync_after_seconds=10))
    assert resp.skip_reconcile
    assert resp.resync_after_seconds == 10
    assert not any(a["kind"] == "CStorPoolCluster" for a in resp.attachments)


def test_missing_config_attachment():
    resp = _sync([_storage_set("h1")])
    assert resp.skip_reconcile
    (cond,) = resp.status["conditions"]
    assert cond["type"] == "CStorPoolClusterApplyError"
    assert cond["reason"] == "Missing CStorClusterConfig attachment"
