from poolauto.errors import DefaultingError, InvalidRAIDTypeError
from poolauto.planner.defaults import evaluate, resolve_disk_defaults
from poolauto.types.models import ClusterIntent


def _intent(**kw):
    data = {"externalProvisioner": {"csiAttacherName": "csi", "storageClassName": "sc"}}
    data.update(kw)
    return ClusterIntent.model_validate(data)


def _raises(intent, available, eligible, text):
    try:
        evaluate(intent, available, eligible)
        assert False, "expected DefaultingError"
    except DefaultingError as e:
        assert text in str(e)


def test_all_defaults_resolved():
    got = evaluate(_intent(), 5, 4)
    assert got.min_pool_count == 3
    assert got.max_pool_count == 5
    assert got.raid_type == "mirror"
    assert got.min_disk_count == 2
    assert got.min_disk_capacity == "100Gi"


def test_min_pool_count_limited_by_inventory():
    assert evaluate(_intent(), 2, 1).min_pool_count == 1
    assert evaluate(_intent(), 1, 4).min_pool_count == 1


def test_input_is_not_mutated():
    intent = _intent()
    evaluate(intent, 5, 5)
    assert intent.min_pool_count is None
    assert intent.raid_type is None


def test_defaulting_is_idempotent():
    once = evaluate(_intent(raidType="raidz"), 6, 6)
    assert evaluate(once, 6, 6) == once


def test_external_provisioner_is_required_first():
    intent = ClusterIntent.model_validate({"raidType": "bogus"})
    _raises(intent, 3, 3, "Invalid disk external provisioner: Both csi attacher & storageclass are required")


def test_no_preferred_nodes():
    _raises(_intent(), 3, 0, "Min pool count can't be 0: Preferred nodes not found")


def test_negative_min_pool_count():
    _raises(_intent(minPoolCount=-1), 3, 3, "Invalid min pool count -1: Want positive value")


def test_zero_counts_as_unset():
    got = evaluate(_intent(minPoolCount=0, maxPoolCount=0, minDiskCount=0, minDiskCapacity="0"), 4, 4)
    assert got.min_pool_count == 3
    assert got.max_pool_count == 5
    assert got.min_disk_count == 2
    assert got.min_disk_capacity == "100Gi"


def test_max_less_than_min():
    _raises(_intent(minPoolCount=3, maxPoolCount=2), 5, 5, "MaxPoolCount can't be less than MinPoolCount")


def test_invalid_raid_type():
    try:
        evaluate(_intent(raidType="raid5"), 3, 3)
        assert False, "expected InvalidRAIDTypeError"
    except InvalidRAIDTypeError as e:
        assert "Invalid RAID type raid5" in str(e)


def test_disk_count_follows_raid_type():
    assert evaluate(_intent(raidType="raidz2"), 3, 3).min_disk_count == 6
    assert evaluate(_intent(raidType="stripe"), 3, 3).min_disk_count == 1


def test_negative_disk_count_and_capacity():
    _raises(_intent(minDiskCount=-2), 3, 3, "Invalid min disk count: Want positive value")
    _raises(_intent(minDiskCapacity="-1Gi"), 3, 3, "Invalid min disk capacity: Want positive value")


def test_custom_defaults():
    got = evaluate(_intent(), 9, 9, default_min_pool_count=5, default_min_disk_capacity="10Gi")
    assert got.min_pool_count == 5
    assert got.min_disk_capacity == "10Gi"


def test_resolve_disk_defaults_skips_pool_fields():
    got = resolve_disk_defaults(ClusterIntent())
    assert got.min_pool_count is None
    assert got.raid_type == "mirror"
    assert got.min_disk_count == 2
    assert got.min_disk_capacity == "100Gi"


def test_explicit_min_pool_count_above_eligible_nodes_is_kept():
    once = evaluate(_intent(minPoolCount=5), 2, 2)
    assert once.min_pool_count == 5
    assert once.max_pool_count == 7
    assert evaluate(once, 2, 2) == once


def test_min_disk_capacity_is_parsed_once(monkeypatch):
    from poolauto.planner import defaults

    seen = []
    real = defaults.parse_quantity

    def counting(value, **kw):
        seen.append(value)
        return real(value, **kw)

    monkeypatch.setattr(defaults, "parse_quantity", counting)
    _raises(_intent(minDiskCapacity="-1Gi"), 3, 3, "Invalid min disk capacity")
    assert seen == ["-1Gi"]
