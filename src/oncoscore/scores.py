"""Genome-instability scores and arm-level alterations.

The scores follow the published definitions:

- LST: Popova et al., Cancer Res 2012 (PMID: 22933060)
- HRD-LOH: Abkevich et al., Br J Cancer 2012 (PMID: 23047548)
- TDplus: Popova et al., Cancer Res 2016 (PMID: 26787835)

All positions and distances are in base pairs. Every function is pure: inputs are
left untouched and a new value is returned.
"""

from __future__ import annotations

import logging
from typing import Collection, Dict, Iterable, List, Sequence, Set

import numpy as np

from .models import LOH_SUBTYPES, ArmCoverage, CNSubtype, CNType, Segment
from .segments import FLAT_MERGE_GAP, merge_segments, prune_by_size, trim_to_coverage
from .validation import check_cn_segments

logger = logging.getLogger(__name__)

ARMLEVEL_THRESHOLD = 0.8

LST_MIN_SEGMENT = 3_000_000
LST_SMOOTHING = 3_000_000
LST_MIN_FLANK = 10_000_000

LOH_MIN_REGION = 15_000_000

TD_SMALL_MAX = 1_000_000
TD_PLUS_MAX = 10_000_000

_MBP = 10**6


def armlevel_alt(
    segments: Iterable[Segment],
    coverage: ArmCoverage,
    threshold: float = ARMLEVEL_THRESHOLD,
) -> Dict[str, float]:
    """Fraction of each covered arm that is altered, restricted to arms >= ``threshold``.

    Copy number and alteration type are ignored: all given segments are flattened
    together, so callers select the alteration class beforehand.
    """
    segments = list(segments)
    check_cn_segments(segments)

    by_arm: Dict[str, List[Segment]] = {}
    for seg in segments:
        by_arm.setdefault(seg.arm, []).append(seg)

    fractions: Dict[str, float] = {}
    for arm in coverage.arms:
        arm_segs = by_arm.get(arm)
        if not arm_segs:
            fractions[arm] = 0.0
            continue
        arm_len = coverage.arm_length(arm)
        trimmed = trim_to_coverage(arm_segs, coverage)
        if not trimmed:
            fractions[arm] = 0.0
            continue
        flat = merge_segments(trimmed, FLAT_MERGE_GAP, merge_by_value=False)
        fractions[arm] = sum(s.width for s in flat) / arm_len

    return {arm: frac for arm, frac in fractions.items() if frac >= threshold}


def smooth_breakpoints(breakpoints: Sequence[int], min_distance: int = LST_SMOOTHING) -> List[int]:
    """Coalesce sorted breakpoints closer than ``min_distance`` into their midpoint.

    Single left-to-right pass: a pending breakpoint absorbs the next one while they are
    too close, moving to ``round((a + b) / 2)`` (round half to even), and is emitted once
    the next breakpoint is far enough.
    """
    if not breakpoints:
        return []
    smoothed: List[int] = []
    pending = breakpoints[0]
    for bp in breakpoints[1:]:
        if bp - pending < min_distance:
            pending = round((pending + bp) / 2)
        else:
            smoothed.append(pending)
            pending = bp
    smoothed.append(pending)
    return smoothed


def _lst_for_arm(arm_segs: List[Segment], bounds: tuple) -> int:
    arm_start, arm_end = bounds
    bps: Set[int] = {arm_start, arm_end + 1}
    for seg in arm_segs:
        bps.add(seg.start)
        bps.add(seg.end + 1)
    breakpoints = sorted(bps)
    # The two arm boundaries are always present: an LST needs one more.
    if len(breakpoints) < 3:
        return 0

    smoothed = smooth_breakpoints(breakpoints, LST_SMOOTHING)
    if len(smoothed) < 3:
        return 0

    n_lst = 0
    for i in range(1, len(smoothed) - 1):
        if smoothed[i] - smoothed[i - 1] >= LST_MIN_FLANK and smoothed[i + 1] - smoothed[i] >= LST_MIN_FLANK:
            n_lst += 1
    return n_lst


def score_lst(segments: Iterable[Segment], coverage: ArmCoverage) -> int:
    """Number of Large-scale State Transitions.

    Segments under 3 Mb are removed, the rest merged by copy number at 3 Mb, and
    breakpoints closer than 3 Mb smoothed. An LST is a breakpoint with at least
    10 Mb on each side before the next breakpoint or arm boundary.
    """
    large = prune_by_size(segments, LST_MIN_SEGMENT)
    if not large:
        return 0
    merged = merge_segments(large, LST_SMOOTHING, merge_by_value=True)

    by_arm: Dict[str, List[Segment]] = {}
    for seg in merged:
        by_arm.setdefault(seg.arm, []).append(seg)

    total = 0
    for arm, arm_segs in by_arm.items():
        bounds = coverage.arm_bounds(arm)
        if bounds is None:
            logger.debug("Arm %s is not covered; no LST counted on it", arm)
            continue
        n = _lst_for_arm(arm_segs, bounds)
        if n:
            logger.debug("Arm %s: %d LST(s)", arm, n)
        total += n
    return total


def banned_arms(coverage: ArmCoverage, altered_arms: Collection[str]) -> Set[str]:
    """Arms of every chromosome whose covered arms are all in ``altered_arms``."""
    altered = set(altered_arms)
    banned: Set[str] = set()
    if not altered:
        return banned
    for chrom, arms in coverage.chromosomes().items():
        if all(arm in altered for arm in arms):
            banned.update(arms)
    return banned


def score_loh(
    segments: Iterable[Segment],
    coverage: ArmCoverage,
    armlevel_loh: Collection[str],
    armlevel_hetloss: Collection[str],
) -> int:
    """Number of HRD-LOH regions: merged LOH/het-loss regions longer than 15 Mb.

    Chromosomes whose covered arms are all globally LOH (or all globally het-loss)
    are excluded. LOH segments are merged when overlapping or touching.
    """
    segments = list(segments)
    check_cn_segments(segments, require_subtype=True)
    if not segments:
        return 0

    banned = banned_arms(coverage, armlevel_loh) | banned_arms(coverage, armlevel_hetloss)
    if banned:
        logger.debug("Arms excluded from HRD-LOH: %s", ", ".join(sorted(banned)))

    loh = [s for s in segments if s.cn_subtype in LOH_SUBTYPES and s.arm not in banned]
    merged = merge_segments(loh, FLAT_MERGE_GAP, merge_by_value=False)
    return sum(1 for s in merged if s.width > LOH_MIN_REGION)


def score_td(segments: Iterable[Segment]) -> Dict[str, int]:
    """Count gain segments in the TDplus (1-10 Mb) and small TD (<= 1 Mb) size bands.

    Segments are counted as given, without merging: pass a cleaned, non-overlapping set.
    """
    segments = list(segments)
    check_cn_segments(segments, require_subtype=True)

    widths = [s.width for s in segments if s.cn_subtype == CNSubtype.GAIN]
    return {
        "TDplus": sum(1 for w in widths if TD_SMALL_MAX < w <= TD_PLUS_MAX),
        "TD": sum(1 for w in widths if w <= TD_SMALL_MAX),
    }


def score_avgcn(segments: Iterable[Segment], coverage: ArmCoverage) -> float:
    """Length-weighted average copy number over the covered autosomes.

    Only gain and loss segments contribute; copy numbers are rounded away from 2
    (1.67 -> 1, 2.33 -> 3) and the remaining covered length counts as CN 2.
    """
    segments = list(segments)
    check_cn_segments(segments)
    autosomes = set(coverage.autosomal_arms())
    kit_mbp = coverage.total_length(autosomes) / _MBP

    segs = [
        s for s in segments
        if s.arm in autosomes and s.cn_type in (CNType.GAIN, CNType.LOSS)
    ]
    if not segs:
        return 2.0
    missing = [s for s in segs if s.cn is None]
    if missing:
        s = missing[0]
        raise ValueError(f"Segment {s.arm}:{s.start}-{s.end} has no copy number.")

    widths = np.array([s.width for s in segs], dtype=float) / _MBP
    cn = np.array([s.cn for s in segs], dtype=float)
    cn = np.where(cn < 2, np.floor(cn), np.where(cn > 2, np.ceil(cn), cn))

    avgcn = (float(np.sum(widths * cn)) + 2 * (kit_mbp - float(np.sum(widths)))) / kit_mbp
    return avgcn


def score_mbalt(
    segments: Iterable[Segment],
    coverage: ArmCoverage,
    exclude_loh: bool = True,
) -> Dict[str, int]:
    """Mbp altered in the sample and Mbp covered by the kit.

    Segment widths are summed without merging: pass a cleaned, non-overlapping set.
    """
    mb_kit = round(coverage.total_length() / _MBP)

    segs = list(segments)
    check_cn_segments(segs)
    if exclude_loh:
        segs = [s for s in segs if s.cn_type != CNType.LOH]
    if not segs:
        return {"sample": 0, "kit": mb_kit}

    mb_alt = round(sum(s.width for s in segs) / _MBP)
    return {"sample": mb_alt, "kit": mb_kit}
