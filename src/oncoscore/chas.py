"""Readers for ChAS text exports and assay coverage tables."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from .models import ArmCoverage, CNType, CoverageRegion, Segment
from .validation import check_columns

logger = logging.getLogger(__name__)

CHAS_COLUMNS = ("Type", "CN State", "Full Location")
COVERAGE_COLUMNS = ("arm", "start", "end")

_CHAS_TYPES: Dict[str, CNType] = {
    "Gain": CNType.GAIN,
    "High Copy Gain": CNType.GAIN,
    "Gain Mosaic": CNType.GAIN,
    "Loss": CNType.LOSS,
    "Homozygous Copy Loss": CNType.LOSS,
    "Loss Mosaic": CNType.LOSS,
    "LOH": CNType.LOH,
}

_LOCATION_RE = re.compile(r"^\s*(?:chr)?([0-9A-Za-z]+):([\d,]+)-([\d,]+)\s*$", re.IGNORECASE)
_MISSING = {"", "NA", "NaN", "nan", "None"}


def _norm_chrom(chrom: str) -> str:
    if chrom.lower().startswith("chr"):
        chrom = chrom[3:]
    return chrom.upper()


def parse_location(location: str) -> Tuple[str, int, int]:
    """Parse a ChAS 'Full Location' such as 'chr1:61,735-16,880,989'."""
    m = _LOCATION_RE.match(location)
    if m is None:
        raise ValueError(f"Invalid ChAS location '{location}': expected chr<N>:<start>-<end>.")
    start = int(m.group(2).replace(",", ""))
    end = int(m.group(3).replace(",", ""))
    return _norm_chrom(m.group(1)), start, end


def _parse_cn(value: str) -> Optional[float]:
    value = value.strip()
    if value in _MISSING:
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid copy number '{value}' in ChAS 'CN State' column.") from None


def _arm_bounds_by_chrom(coverage: ArmCoverage) -> Dict[str, List[Tuple[str, int, int]]]:
    out: Dict[str, List[Tuple[str, int, int]]] = {}
    for chrom, arms in coverage.chromosomes().items():
        for arm in arms:
            bounds = coverage.arm_bounds(arm)
            if bounds is not None:
                out.setdefault(_norm_chrom(chrom), []).append((arm, bounds[0], bounds[1]))
    return out


def load_chas(path: str | Path, coverage: ArmCoverage) -> List[Segment]:
    """Load the segments of a ChAS text export.

    Each record is split over the chromosome arms of ``coverage`` (one segment per arm
    it overlaps, clipped to the arm bounds). Records on chromosomes or regions outside
    every covered arm are dropped.

    Parameters
    ----------
    path:
        Tab-separated ChAS export; lines starting with '#' are ignored.
    coverage:
        Arm coverage of the assay, used to locate chromosome arms.

    Returns
    -------
    list of Segment
        Segments carrying copy number and copy-number type, without subtype. Mosaic
        calls keep their fractional copy number.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"ChAS file not found: {path}")

    df = pd.read_csv(path, sep="\t", comment="#", dtype=str, na_filter=False)
    df.columns = [str(c).strip() for c in df.columns]
    check_columns(list(df.columns), CHAS_COLUMNS, source=f"ChAS file {path.name}")

    arms_by_chrom = _arm_bounds_by_chrom(coverage)
    segments: List[Segment] = []
    n_dropped = 0

    for i, row in enumerate(df.itertuples(index=False), start=1):
        rec = dict(zip(df.columns, row))
        raw_type = rec["Type"].strip()
        if raw_type not in _CHAS_TYPES:
            raise ValueError(
                f"Unknown ChAS segment type '{raw_type}' (record {i}). "
                f"Expected one of: {', '.join(_CHAS_TYPES)}"
            )
        chrom, start, end = parse_location(rec["Full Location"])
        cn = _parse_cn(rec["CN State"])

        pieces = 0
        for arm, arm_start, arm_end in arms_by_chrom.get(chrom, ()):
            s = max(start, arm_start)
            e = min(end, arm_end)
            if s <= e:
                segments.append(Segment(arm=arm, start=s, end=e, cn=cn, cn_type=_CHAS_TYPES[raw_type]))
                pieces += 1
        if pieces == 0:
            n_dropped += 1
            logger.debug("Record %d (%s) lies outside the covered arms; dropped", i, rec["Full Location"])

    if n_dropped:
        logger.warning("%d ChAS record(s) outside the covered arms were dropped", n_dropped)
    logger.info("Loaded %d segment(s) from %d ChAS record(s) in %s", len(segments), len(df), path.name)
    return segments


def load_coverage(path: str | Path) -> ArmCoverage:
    """Load an arm coverage table (tab-separated; columns arm, start, end; 1-based inclusive)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Coverage file not found: {path}")

    df = pd.read_csv(path, sep="\t", comment="#")
    df.columns = [str(c).strip() for c in df.columns]
    check_columns(list(df.columns), COVERAGE_COLUMNS, source=f"Coverage file {path.name}")

    regions = []
    for arm, start, end in df[list(COVERAGE_COLUMNS)].itertuples(index=False):
        regions.append(CoverageRegion(str(arm).strip(), int(start), int(end)))
    logger.info("Loaded %d coverage region(s) over %d arm(s)", len(regions), len({r.arm for r in regions}))
    return ArmCoverage(tuple(regions))
