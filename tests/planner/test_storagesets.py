from poolauto.errors import DecodeError
from poolauto.planner.storagesets import StorageSetPlanner, storage_set_name
from poolauto.types.models import ExternalProvisioner, NodeRef, StorageSetInfo

PLAN_UID = "plan-uid-1"
ANN_PLAN = "dao.mayadata.io/cstorclusterplan-uid"


def _ref(uid):
    return NodeRef(name=f"node-{uid}", uid=uid)


def _observed(name, node_uid):
    doc = {
        "apiVersion": "dao.mayadata.io/v1alpha1",
        "kind": "CStorClusterStorageSet",
        "metadata": {"name": name, "namespace": "openebs", "uid": f"ss-{name}", "annotations": {ANN_PLAN: PLAN_UID}},
        "spec": {"node": {"name": f"node-{node_uid}", "uid": node_uid}, "disk": {"count": 2, "capacity": "10Gi"}},
    }
    return StorageSetInfo(
        name=name, namespace="openebs", uid=f"ss-{name}",
        node_name=f"node-{node_uid}", node_uid=node_uid,
        disk_count=2, disk_capacity="10Gi", doc=doc,
    )


def _planner(desired, observed):
    return StorageSetPlanner(
        "my-plan", "openebs", PLAN_UID, desired, observed,
        disk_count=2,
        disk_capacity="10Gi",
        external_provisioner=ExternalProvisioner(csi_attacher_name="csi", storage_class_name="sc"),
    )


def test_creates_one_storage_set_per_new_node():
    p = _planner([_ref("a"), _ref("b")], [])
    got = p.plan()
    assert [d["metadata"]["name"] for d in got] == ["my-plan-a", "my-plan-b"]
    first = got[0]
    assert first["kind"] == "CStorClusterStorageSet"
    assert first["metadata"]["namespace"] == "openebs"
    assert first["metadata"]["annotations"][ANN_PLAN] == PLAN_UID
    assert first["spec"] == {
        "node": {"name": "node-a", "uid": "a"},
        "disk": {"capacity": "10Gi", "count": 2},
        "externalProvisioner": {"csiAttacherName": "csi", "storageClassName": "sc"},
    }


def test_noop_storage_sets_are_unchanged():
    existing = _observed("s1", "a")
    got = _planner([_ref("a")], [existing]).plan()
    assert got == [existing.doc]
    assert got[0] is not existing.doc


def test_removed_node_is_moved_to_new_node():
    p = _planner([_ref("a"), _ref("c")], [_observed("s1", "a"), _observed("s2", "b")])
    assert p.buckets.noop == ["a"]
    assert p.buckets.updates == {"b": "c"}
    assert p.buckets.create == []
    assert p.buckets.remove == []
    got = p.plan()
    assert [d["metadata"]["name"] for d in got] == ["s1", "s2"]
    assert got[1]["spec"]["node"] == {"name": "node-c", "uid": "c"}
    assert got[1]["spec"]["disk"] == {"count": 2, "capacity": "10Gi"}


def test_pairing_is_sorted_by_uid():
    p = _planner([_ref("z2"), _ref("z1")], [_observed("s1", "r2"), _observed("s2", "r1")])
    assert p.buckets.updates == {"r1": "z1", "r2": "z2"}


def test_leftover_removals_are_omitted():
    p = _planner([_ref("a")], [_observed("s1", "a"), _observed("s2", "b"), _observed("s3", "c")])
    assert sorted(p.buckets.remove) == ["b", "c"]
    assert [d["metadata"]["name"] for d in p.plan()] == ["s1"]


def test_leftover_creations_after_pairing():
    p = _planner([_ref("x"), _ref("y")], [_observed("s1", "a")])
    assert p.buckets.updates == {"a": "x"}
    assert p.buckets.create == ["y"]
    names = [d["metadata"]["name"] for d in p.plan()]
    assert names == ["my-plan-y", "s1"]


def test_observed_without_node_uid():
    bad = _observed("s1", "a")
    bad.node_uid = ""
    try:
        _planner([_ref("a")], [bad])
        assert False, "expected DecodeError"
    except DecodeError as e:
        assert "Missing spec.node.uid" in str(e)


def test_storage_set_name_is_dns_safe():
    assert storage_set_name("My_Plan", "ABC-123") == "my-plan-abc-123"
    assert storage_set_name("plan", "uid") == storage_set_name("plan", "uid")
