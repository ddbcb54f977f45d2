from poolauto.controller.status import build_status, make_condition, merge_conditions
from poolauto.errors import DefaultingError

COND = "CStorClusterConfigReconcileError"


def test_error_status():
    status = build_status({"metadata": {"name": "c"}}, COND, DefaultingError("boom"))
    assert status["phase"] == "Error"
    (cond,) = status["conditions"]
    assert cond["type"] == COND
    assert cond["status"] == "True"
    assert cond["reason"] == "boom"
    assert cond["lastObservedTime"]


def test_online_status_clears_condition():
    status = build_status({"metadata": {}}, COND)
    assert status["phase"] == "Online"
    assert status["conditions"][0]["status"] == "False"
    assert "reason" not in status["conditions"][0]


def test_other_conditions_are_kept():
    doc = {"status": {"conditions": [{"type": "Other", "status": "True", "reason": "x"}]}}
    status = build_status(doc, COND)
    assert [c["type"] for c in status["conditions"]] == ["Other", COND]


def test_unchanged_condition_keeps_its_timestamp():
    old = {"type": COND, "status": "True", "reason": "boom", "lastObservedTime": "2020-01-01T00:00:00Z"}
    status = build_status({"status": {"conditions": [old]}}, COND, DefaultingError("boom"))
    assert status["conditions"] == [old]


def test_malformed_status_leaves_status_alone():
    assert build_status({"status": "oops"}, COND) is None
    assert build_status({"status": {"conditions": ["x"]}}, COND) is None


def test_merge_conditions_by_type():
    merged = merge_conditions(
        [{"type": "A", "status": "True"}, {"type": "B", "status": "True"}],
        make_condition("A"),
    )
    assert [(c["type"], c["status"]) for c in merged] == [("B", "True"), ("A", "False")]
