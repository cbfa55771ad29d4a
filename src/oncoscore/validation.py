from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .models import Segment

logger = logging.getLogger(__name__)


GENDERS = ("M", "F")


def check_gender(gender: str) -> str:
    """Ensure the sample gender is 'M' or 'F'; raise ValueError otherwise."""
    if gender not in GENDERS:
        raise ValueError(f"The gender has to be F or M (got {gender!r}).")
    return gender


def check_cn_segments(segments: Iterable[Segment], *, require_subtype: bool = False) -> None:
    """Fail fast if a segment lacks the copy-number type (or subtype when required)."""
    for seg in segments:
        if not isinstance(seg, Segment):
            raise ValueError(f"Expected Segment objects, got {type(seg).__name__}.")
        if seg.cn_type is None:
            raise ValueError(
                f"Segment {seg.arm}:{seg.start}-{seg.end} is missing the field 'cn_type'."
            )
        if require_subtype and seg.cn_subtype is None:
            raise ValueError(
                f"Segment {seg.arm}:{seg.start}-{seg.end} is missing the field 'cn_subtype'. "
                "Run assign_cn_subtypes() first."
            )


def check_columns(columns: Sequence[str], required: Sequence[str], *, source: str) -> None:
    """Ensure a parsed table carries the required columns; raise ValueError listing the missing ones."""
    missing = [c for c in required if c not in columns]
    if missing:
        raise ValueError(
            f"{source} is missing required column(s): {', '.join(missing)}. "
            f"Found: {', '.join(map(str, columns))}"
        )
