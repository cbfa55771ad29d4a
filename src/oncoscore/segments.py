"""Segment cleaning operations applied before scoring.

All functions take an iterable of :class:`~oncoscore.models.Segment` and return a new
list; inputs are never modified.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from .models import ArmCoverage, CNSubtype, CNType, Segment, is_sex_chromosome, split_arm
from .validation import check_cn_segments, check_gender

logger = logging.getLogger(__name__)

# Resolution of the Oncoscan assay (bp): default merge distance and minimum segment size.
KIT_RESOLUTION = 300_000

# Merge distance that only joins overlapping or touching segments.
FLAT_MERGE_GAP = 1

# Copies above normal that still count as a plain gain / weak amplification.
_MAX_GAIN_EXCESS = 2
_MAX_WEAKAMP_EXCESS = 7


def _sort_key(seg: Segment) -> Tuple:
    return (
        seg.arm,
        seg.start,
        seg.end,
        -1.0 if seg.cn is None else seg.cn,
        "" if seg.cn_type is None else seg.cn_type.value,
        "" if seg.cn_subtype is None else seg.cn_subtype.value,
    )


def trim_to_coverage(segments: Iterable[Segment], coverage: ArmCoverage) -> List[Segment]:
    """Intersect segments with the covered regions of their arm.

    A segment overlapping several regions of its arm yields one segment per region.
    Segments on arms absent from ``coverage`` are dropped.
    """
    regions = {arm: coverage.regions_for(arm) for arm in coverage.arms}
    out: List[Segment] = []
    for seg in segments:
        for reg in regions.get(seg.arm, ()):
            start = max(seg.start, reg.start)
            end = min(seg.end, reg.end)
            if start <= end:
                out.append(replace(seg, start=start, end=end))
    return out


def _collapse(run: List[Segment], end: int, *, flat: bool) -> Segment:
    first = run[0]
    if not flat:
        return replace(first, end=end)
    types = {s.cn_type for s in run}
    subtypes = {s.cn_subtype for s in run}
    return Segment(
        arm=first.arm,
        start=first.start,
        end=end,
        cn=None,
        cn_type=types.pop() if len(types) == 1 else None,
        cn_subtype=subtypes.pop() if len(subtypes) == 1 else None,
    )


def merge_segments(
    segments: Iterable[Segment],
    max_gap: int = KIT_RESOLUTION,
    *,
    merge_by_value: bool = True,
) -> List[Segment]:
    """Merge segments of the same arm separated by fewer than ``max_gap`` bases.

    With ``merge_by_value`` only segments sharing copy number, type and subtype are
    merged; merged segments of different values may still overlap. Without it, every
    segment of an arm is flattened into non-overlapping intervals with no copy number.

    The output is sorted by arm then position. Merging an already merged collection
    with the same or a smaller ``max_gap`` returns it unchanged.
    """
    groups: Dict[Tuple, List[Segment]] = {}
    for seg in segments:
        if merge_by_value:
            key: Tuple = (seg.arm, seg.cn, seg.cn_type, seg.cn_subtype)
        else:
            key = (seg.arm,)
        groups.setdefault(key, []).append(seg)

    merged: List[Segment] = []
    for segs in groups.values():
        segs = sorted(segs, key=lambda s: (s.start, s.end))
        run = [segs[0]]
        run_end = segs[0].end
        for seg in segs[1:]:
            if seg.start - run_end - 1 < max_gap:
                run.append(seg)
                run_end = max(run_end, seg.end)
            else:
                merged.append(_collapse(run, run_end, flat=not merge_by_value))
                run = [seg]
                run_end = seg.end
        merged.append(_collapse(run, run_end, flat=not merge_by_value))

    merged.sort(key=_sort_key)
    return merged


def prune_by_size(segments: Iterable[Segment], min_width: int = KIT_RESOLUTION) -> List[Segment]:
    """Drop segments narrower than ``min_width`` bases."""
    return [s for s in segments if s.width >= min_width]


def _subtract(start: int, end: int, holes: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    pieces = [(start, end)]
    for h_start, h_end in holes:
        remaining = []
        for s, e in pieces:
            if h_end < s or h_start > e:
                remaining.append((s, e))
                continue
            if s < h_start:
                remaining.append((s, h_start - 1))
            if e > h_end:
                remaining.append((h_end + 1, e))
        pieces = remaining
    return pieces


def adjust_loh(segments: Iterable[Segment]) -> List[Segment]:
    """Remove from LOH segments the bases already called as copy loss.

    An LOH segment overlapping a loss may be shortened, split or dropped entirely.
    """
    segments = list(segments)
    check_cn_segments(segments)

    losses: Dict[str, List[Tuple[int, int]]] = {}
    for seg in segments:
        if seg.cn_type == CNType.LOSS:
            losses.setdefault(seg.arm, []).append((seg.start, seg.end))

    out: List[Segment] = []
    n_trimmed = 0
    for seg in segments:
        if seg.cn_type != CNType.LOH or seg.arm not in losses:
            out.append(seg)
            continue
        pieces = _subtract(seg.start, seg.end, losses[seg.arm])
        if pieces != [(seg.start, seg.end)]:
            n_trimmed += 1
        out.extend(replace(seg, start=s, end=e) for s, e in pieces)

    if n_trimmed:
        logger.debug("Adjusted %d LOH segment(s) overlapping copy losses", n_trimmed)
    return out


def _normal_cn(arm: str, gender: str) -> int:
    chrom, _ = split_arm(arm)
    if gender == "M" and is_sex_chromosome(chrom):
        return 1
    return 2


def cn_subtype(seg: Segment, gender: str) -> Optional[CNSubtype]:
    """Refine the copy-number type of one segment given the sample gender."""
    if seg.cn_type == CNType.LOH:
        return CNSubtype.LOH
    if seg.cn_type == CNType.NEUTRAL:
        return CNSubtype.NEUTRAL
    if seg.cn is None:
        raise ValueError(
            f"Segment {seg.arm}:{seg.start}-{seg.end} of type '{seg.cn_type.value}' has no copy number."
        )
    if seg.cn_type == CNType.LOSS:
        return CNSubtype.HOMLOSS if seg.cn < 1 else CNSubtype.HETLOSS

    excess = math.ceil(seg.cn) - _normal_cn(seg.arm, gender)
    if excess <= _MAX_GAIN_EXCESS:
        return CNSubtype.GAIN
    if excess <= _MAX_WEAKAMP_EXCESS:
        return CNSubtype.WEAKAMP
    return CNSubtype.STRONGAMP


def assign_cn_subtypes(segments: Iterable[Segment], gender: str) -> List[Segment]:
    """Return copies of ``segments`` carrying their gender-aware copy-number subtype."""
    check_gender(gender)
    segments = list(segments)
    check_cn_segments(segments)
    return [seg.with_subtype(cn_subtype(seg, gender)) for seg in segments]
