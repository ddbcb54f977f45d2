from poolauto.controller.clusterplan import PlanSyncer
from poolauto.observers.dispatcher import EventBus
from poolauto.observers.events import StorageSetsPlanned
from poolauto.types.models import SyncRequest

ANN_CONFIG = "dao.mayadata.io/cstorclusterconfig-uid"
ANN_PLAN = "dao.mayadata.io/cstorclusterplan-uid"


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def _plan(nodes):
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterPlan",
        "metadata": {"name": "cluster", "namespace": "openebs", "uid": "plan-uid",
                     "annotations": {ANN_CONFIG: "cfg-uid"}},
        "spec": {"nodes": [{"name": f"node-{n}", "uid": n} for n in nodes]},
    }


def _config():
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterConfig",
        "metadata": {"name": "cluster", "namespace": "openebs", "uid": "cfg-uid"},
        "spec": {
            "poolConfig": {"raidType": "raidz"},
            "diskConfig": {
                "minCapacity": "50Gi",
                "externalProvisioner": {"csiAttacherName": "csi", "storageClassName": "sc"},
            },
        },
    }


def _storage_set(name, node_uid, plan_uid="plan-uid"):
    return {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterStorageSet",
        "metadata": {"name": name, "namespace": "openebs", "uid": f"uid-{name}",
                     "annotations": {ANN_PLAN: plan_uid}},
        "spec": {"node": {"name": f"node-{node_uid}", "uid": node_uid}, "disk": {"count": 3, "capacity": "50Gi"}},
    }


def _sync(watch, attachments, cap=None):
    req = SyncRequest(watch=watch, attachments=attachments)
    return PlanSyncer(req, bus=EventBus([cap] if cap else [])).sync()


def _sets(resp):
    return {a["metadata"]["name"]: a for a in resp.attachments if a["kind"] == "CStorClusterStorageSet"}


def test_storage_sets_follow_planned_nodes():
    cap = Capture()
    foreign = _storage_set("foreign", "zz", plan_uid="another-plan")
    resp = _sync(_plan(["a", "b"]), [_config(), _storage_set("ss-a", "a"), foreign], cap)

    assert not resp.skip_reconcile
    sets = _sets(resp)
    assert set(sets) == {"ss-a", "cluster-b", "foreign"}
    assert sets["foreign"] == foreign
    created = sets["cluster-b"]
    assert created["metadata"]["annotations"] == {ANN_PLAN: "plan-uid"}
    # disk defaults come from the config: raidz -> 3 disks
    assert created["spec"]["disk"] == {"capacity": "50Gi", "count": 3}
    assert created["spec"]["node"] == {"name": "node-b", "uid": "b"}
    assert any(a["kind"] == "CStorClusterConfig" for a in resp.attachments)

    planned = next(e for e in cap.events if isinstance(e, StorageSetsPlanned))
    assert (planned.noop, planned.create, planned.update, planned.remove) == (1, 1, 0, 0)
    assert resp.status["phase"] == "Online"


def test_replaced_node_moves_its_storage_set():
    resp = _sync(_plan(["a", "c"]), [_config(), _storage_set("ss-a", "a"), _storage_set("ss-b", "b")])
    sets = _sets(resp)
    assert set(sets) == {"ss-a", "ss-b"}
    assert sets["ss-b"]["spec"]["node"] == {"name": "node-c", "uid": "c"}


def test_missing_config_attachment():
    resp = _sync(_plan(["a"]), [_storage_set("ss-a", "a")])
    assert resp.skip_reconcile
    assert resp.status["phase"] == "Error"
    (cond,) = resp.status["conditions"]
    assert cond["type"] == "CStorClusterPlanReconcileError"
    assert cond["reason"] == "Missing CStorClusterConfig attachment"
