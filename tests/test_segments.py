import pytest

from oncoscore.models import ArmCoverage, CNSubtype, CNType, Segment
from oncoscore.segments import (
    FLAT_MERGE_GAP,
    adjust_loh,
    assign_cn_subtypes,
    merge_segments,
    prune_by_size,
    trim_to_coverage,
)


def seg(arm, start, end, cn=1.0, cn_type=CNType.LOSS, subtype=None):
    return Segment(arm=arm, start=start, end=end, cn=cn, cn_type=cn_type, cn_subtype=subtype)


def test_segment_width_and_bounds():
    assert seg("1p", 1, 100).width == 100
    with pytest.raises(ValueError):
        seg("1p", 100, 99)
    with pytest.raises(ValueError):
        seg("1p", 0, 10)


def test_coverage_rejects_bad_arm_labels():
    with pytest.raises(ValueError):
        ArmCoverage.from_tuples([("chr1", 1, 100)])


def test_trim_to_coverage_splits_over_regions():
    cov = ArmCoverage.from_tuples([("1p", 1, 100), ("1p", 201, 300), ("1q", 401, 500)])
    out = trim_to_coverage([seg("1p", 50, 250), seg("2p", 1, 50)], cov)
    assert [(s.arm, s.start, s.end) for s in out] == [("1p", 50, 100), ("1p", 201, 250)]
    assert all(s.cn_type == CNType.LOSS for s in out)


def test_flat_merge_touching_only():
    segs = [seg("1p", 1, 10, cn=1), seg("1p", 11, 20, cn=3, cn_type=CNType.GAIN), seg("1p", 22, 30)]
    out = merge_segments(segs, FLAT_MERGE_GAP, merge_by_value=False)
    assert [(s.start, s.end) for s in out] == [(1, 20), (22, 30)]
    assert out[0].cn is None
    assert out[0].cn_type is None
    assert out[1].cn_type == CNType.LOSS


def test_merge_by_value_keeps_different_cn_apart():
    segs = [seg("2q", 1, 4_000_000, cn=1), seg("2q", 4_000_001, 8_000_000, cn=3, cn_type=CNType.GAIN)]
    out = merge_segments(segs, 3_000_000, merge_by_value=True)
    assert len(out) == 2


def test_merge_by_value_within_distance():
    segs = [seg("2q", 6_000_001, 17_000_000), seg("2q", 1, 4_000_000)]
    out = merge_segments(segs, 3_000_000)
    assert [(s.start, s.end, s.cn) for s in out] == [(1, 17_000_000, 1.0)]

    # gap of exactly 3 Mb is not merged
    segs = [seg("2q", 1, 4_000_000), seg("2q", 7_000_001, 17_000_000)]
    assert len(merge_segments(segs, 3_000_000)) == 2


def test_merge_is_idempotent():
    segs = [
        seg("1p", 500_000, 900_000),
        seg("1p", 1, 400_000),
        seg("1p", 1_500_000, 2_000_000, cn=3, cn_type=CNType.GAIN),
        seg("1q", 10, 20),
    ]
    once = merge_segments(segs, 300_000)
    assert merge_segments(once, 300_000) == once
    assert merge_segments(once, 1) == once
    flat = merge_segments(segs, FLAT_MERGE_GAP, merge_by_value=False)
    assert merge_segments(flat, FLAT_MERGE_GAP, merge_by_value=False) == flat


def test_prune_by_size():
    segs = [seg("1p", 1, 299_999), seg("1p", 400_001, 700_000)]
    assert prune_by_size(segs) == [segs[1]]


def test_adjust_loh_removes_loss_overlap():
    loh = seg("1p", 1, 100, cn=2, cn_type=CNType.LOH)
    loss = seg("1p", 40, 60)
    other = seg("1q", 1, 100, cn=2, cn_type=CNType.LOH)
    out = adjust_loh([loh, loss, other])
    lohs = [(s.arm, s.start, s.end) for s in out if s.cn_type == CNType.LOH]
    assert lohs == [("1p", 1, 39), ("1p", 61, 100), ("1q", 1, 100)]


def test_adjust_loh_drops_fully_covered_loh():
    out = adjust_loh([seg("3p", 20, 40, cn=2, cn_type=CNType.LOH), seg("3p", 1, 100)])
    assert [s.cn_type for s in out] == [CNType.LOSS]


def test_assign_subtypes_female():
    segs = [
        seg("1p", 1, 10, cn=3, cn_type=CNType.GAIN),
        seg("1p", 1, 10, cn=4.2, cn_type=CNType.GAIN),
        seg("1p", 1, 10, cn=9, cn_type=CNType.GAIN),
        seg("1p", 1, 10, cn=10, cn_type=CNType.GAIN),
        seg("1p", 1, 10, cn=1),
        seg("1p", 1, 10, cn=0),
        seg("1p", 1, 10, cn=2, cn_type=CNType.LOH),
    ]
    out = assign_cn_subtypes(segs, "F")
    assert [s.cn_subtype for s in out] == [
        CNSubtype.GAIN,
        CNSubtype.WEAKAMP,
        CNSubtype.WEAKAMP,
        CNSubtype.STRONGAMP,
        CNSubtype.HETLOSS,
        CNSubtype.HOMLOSS,
        CNSubtype.LOH,
    ]
    assert all(s.cn_subtype is None for s in segs)


def test_assign_subtypes_male_sex_chromosomes():
    segs = [seg("Xq", 1, 10, cn=3, cn_type=CNType.GAIN), seg("Xq", 1, 10, cn=4, cn_type=CNType.GAIN)]
    out = assign_cn_subtypes(segs, "M")
    assert [s.cn_subtype for s in out] == [CNSubtype.GAIN, CNSubtype.WEAKAMP]


def test_assign_subtypes_rejects_bad_input():
    with pytest.raises(ValueError):
        assign_cn_subtypes([seg("1p", 1, 10)], "X")
    with pytest.raises(ValueError):
        assign_cn_subtypes([Segment("1p", 1, 10, cn=1)], "F")
    with pytest.raises(ValueError):
        assign_cn_subtypes([seg("1p", 1, 10, cn=None, cn_type=CNType.GAIN)], "F")
