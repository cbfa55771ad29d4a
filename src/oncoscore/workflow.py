"""Standard Oncoscan workflow: ChAS export -> arm-level alterations and scores."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .chas import load_chas
from .models import AMPLIFICATIONS, ArmCoverage, CNSubtype, CNType, ScoreResult, Segment
from .scores import (
    ARMLEVEL_THRESHOLD,
    armlevel_alt,
    score_avgcn,
    score_loh,
    score_lst,
    score_mbalt,
    score_td,
)
from .segments import KIT_RESOLUTION, adjust_loh, assign_cn_subtypes, merge_segments, prune_by_size, trim_to_coverage
from .validation import check_gender

logger = logging.getLogger(__name__)

# 21p is only partly covered by the Oncoscan assay: no results are reported on it.
DEFAULT_EXCLUDED_ARMS = ("21p",)


def clean_segments(
    segments: Iterable[Segment],
    coverage: ArmCoverage,
    *,
    kit_resolution: int = KIT_RESOLUTION,
) -> List[Segment]:
    """Restrict to coverage, resolve LOH/loss overlaps, merge and prune at the kit resolution."""
    segs = trim_to_coverage(segments, coverage)
    logger.info("Segments after trimming to coverage: %d", len(segs))
    segs = adjust_loh(segs)
    segs = merge_segments(segs, kit_resolution, merge_by_value=True)
    logger.info("Segments after merging at %d bp: %d", kit_resolution, len(segs))
    segs = prune_by_size(segs, kit_resolution)
    logger.info("Segments after pruning below %d bp: %d", kit_resolution, len(segs))
    return segs


def _of_type(segments: Sequence[Segment], cn_type: CNType) -> List[Segment]:
    return [s for s in segments if s.cn_type == cn_type]


def _of_subtype(segments: Sequence[Segment], subtypes: Iterable[CNSubtype]) -> List[Segment]:
    wanted = set(subtypes)
    return [s for s in segments if s.cn_subtype in wanted]


def score_segments(
    segments: Iterable[Segment],
    gender: str,
    coverage: ArmCoverage,
    filename: str,
    *,
    threshold: float = ARMLEVEL_THRESHOLD,
    kit_resolution: int = KIT_RESOLUTION,
    extended: bool = False,
) -> ScoreResult:
    """Run subtype assignment, cleaning and scoring on already loaded segments.

    ``coverage`` is used as given (arm exclusions are the caller's business).
    """
    check_gender(gender)
    segs = assign_cn_subtypes(segments, gender)
    clean = clean_segments(segs, coverage, kit_resolution=kit_resolution)

    armlevel_loss = armlevel_alt(_of_type(clean, CNType.LOSS), coverage, threshold)
    armlevel_loh = armlevel_alt(_of_type(clean, CNType.LOH), coverage, threshold)
    armlevel_gain = armlevel_alt(_of_type(clean, CNType.GAIN), coverage, threshold)
    armlevel_amp = armlevel_alt(_of_subtype(clean, AMPLIFICATIONS), coverage, threshold)

    # Amplified arms are reported as AMP only.
    armlevel_gain = {arm: v for arm, v in armlevel_gain.items() if arm not in armlevel_amp}

    n_lst = score_lst(clean, coverage)
    armlevel_hetloss = armlevel_alt(_of_subtype(clean, [CNSubtype.HETLOSS]), coverage, threshold)
    n_loh = score_loh(clean, coverage, list(armlevel_loh), list(armlevel_hetloss))
    td = score_td(clean)
    logger.info("Scores: LST=%d, LOH=%d, TDplus=%d", n_lst, n_loh, td["TDplus"])

    extra: Optional[Dict[str, object]] = None
    if extended:
        extra = {
            "TD": td["TD"],
            "avgcn": score_avgcn(clean, coverage),
            "mbalt": score_mbalt(clean, coverage),
        }

    return ScoreResult(
        armlevel={
            "AMP": sorted(armlevel_amp),
            "LOSS": sorted(armlevel_loss),
            "LOH": sorted(armlevel_loh),
            "GAIN": sorted(armlevel_gain),
        },
        scores={"LST": n_lst, "LOH": n_loh, "TDplus": td["TDplus"]},
        gender=gender,
        file=filename,
        extended=extra,
    )


def run_workflow(
    chas_path: str | Path,
    gender: str,
    coverage: ArmCoverage,
    *,
    exclude_arms: Sequence[str] = DEFAULT_EXCLUDED_ARMS,
    threshold: float = ARMLEVEL_THRESHOLD,
    kit_resolution: int = KIT_RESOLUTION,
    extended: bool = False,
) -> ScoreResult:
    """Run the standard workflow on a ChAS text export.

    Identifies globally altered arms (>= 80% of the covered arm by default) and computes
    the LST, HRD-LOH and TDplus scores. Amplification is a weak or strong amplification
    subtype; an arm is gained unless it is amplified.

    Parameters
    ----------
    chas_path:
        Path to the ChAS text export.
    gender:
        'M' or 'F'.
    coverage:
        Arm coverage of the assay. Always required: no assay coverage table ships with
        the package, load one with :func:`oncoscore.chas.load_coverage`.
    exclude_arms:
        Arms removed from ``coverage`` before anything else.
    extended:
        Also report the small TD count, average copy number and Mbp altered.
    """
    check_gender(gender)
    chas_path = Path(chas_path)
    cov = coverage.without_arms(exclude_arms)

    segments = load_chas(chas_path, cov)
    return score_segments(
        segments,
        gender,
        cov,
        chas_path.name,
        threshold=threshold,
        kit_resolution=kit_resolution,
        extended=extended,
    )
