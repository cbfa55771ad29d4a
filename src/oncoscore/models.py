from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

_ARM_RE = re.compile(r"^(.+)([pq])$")


class CNType(str, Enum):
    """Coarse copy-number category of a segment."""

    GAIN = "gain"
    LOSS = "loss"
    LOH = "loh"
    NEUTRAL = "neutral"


class CNSubtype(str, Enum):
    """Refined copy-number category (depends on gender and copy number)."""

    GAIN = "gain"
    WEAKAMP = "weakamp"
    STRONGAMP = "strongamp"
    LOSS = "loss"
    HETLOSS = "hetloss"
    HOMLOSS = "homloss"
    LOH = "loh"
    NEUTRAL = "neutral"


AMPLIFICATIONS = frozenset({CNSubtype.WEAKAMP, CNSubtype.STRONGAMP})
LOH_SUBTYPES = frozenset({CNSubtype.LOH, CNSubtype.HETLOSS})


def split_arm(arm: str) -> Tuple[str, str]:
    """Split an arm label such as '1p' or 'Xq' into (chromosome, 'p'|'q')."""
    m = _ARM_RE.match(arm)
    if m is None:
        raise ValueError(f"Invalid chromosome arm label '{arm}': expected <chromosome><p|q>.")
    return m.group(1), m.group(2)


def is_sex_chromosome(chrom: str) -> bool:
    core = chrom[3:] if chrom.lower().startswith("chr") else chrom
    return core.upper() in {"X", "Y"}


@dataclass(frozen=True)
class Segment:
    """A copy-number segment located on a single chromosome arm.

    Coordinates are 1-based and inclusive.

    Attributes
    ----------
    arm:
        Chromosome arm label (e.g. '1p', 'Xq').
    start, end:
        First and last base of the segment.
    cn:
        Copy number; fractional values denote subclonal populations. None once
        the segment has been flattened (see ``merge_segments``).
    cn_type:
        Coarse category. None marks a malformed segment.
    cn_subtype:
        Refined category, assigned by ``assign_cn_subtypes``.
    """

    arm: str
    start: int
    end: int
    cn: Optional[float] = None
    cn_type: Optional[CNType] = None
    cn_subtype: Optional[CNSubtype] = None

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError(f"Segment start must be >= 1 (got {self.start} on {self.arm}).")
        if self.end < self.start:
            raise ValueError(
                f"Segment end must be >= start (got {self.start}-{self.end} on {self.arm})."
            )

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    def with_subtype(self, subtype: Optional[CNSubtype]) -> "Segment":
        return replace(self, cn_subtype=subtype)


@dataclass(frozen=True)
class CoverageRegion:
    arm: str
    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class ArmCoverage:
    """Regions of each chromosome arm reliably measured by an assay.

    Arms not listed here are not analyzable. Labels must be ``<chromosome><p|q>``
    and a chromosome carries at most one p and one q arm.
    """

    regions: Tuple[CoverageRegion, ...]

    def __post_init__(self) -> None:
        for r in self.regions:
            split_arm(r.arm)
            if r.end < r.start:
                raise ValueError(f"Coverage region {r.arm}:{r.start}-{r.end} has end < start.")

    @classmethod
    def from_tuples(cls, rows: Iterable[Tuple[str, int, int]]) -> "ArmCoverage":
        return cls(tuple(CoverageRegion(arm, int(s), int(e)) for arm, s, e in rows))

    @property
    def arms(self) -> List[str]:
        seen: Dict[str, None] = {}
        for r in self.regions:
            seen.setdefault(r.arm, None)
        return list(seen)

    def __contains__(self, arm: object) -> bool:
        return any(r.arm == arm for r in self.regions)

    def regions_for(self, arm: str) -> List[CoverageRegion]:
        return sorted((r for r in self.regions if r.arm == arm), key=lambda r: r.start)

    def arm_length(self, arm: str) -> int:
        return sum(r.width for r in self.regions if r.arm == arm)

    def arm_bounds(self, arm: str) -> Optional[Tuple[int, int]]:
        regs = self.regions_for(arm)
        if not regs:
            return None
        return regs[0].start, max(r.end for r in regs)

    def total_length(self, arms: Optional[Iterable[str]] = None) -> int:
        if arms is None:
            return sum(r.width for r in self.regions)
        wanted = set(arms)
        return sum(r.width for r in self.regions if r.arm in wanted)

    def without_arms(self, arms: Iterable[str]) -> "ArmCoverage":
        dropped = set(arms)
        return ArmCoverage(tuple(r for r in self.regions if r.arm not in dropped))

    def chromosomes(self) -> Dict[str, List[str]]:
        """Map each chromosome to its covered arms (in p, q order)."""
        out: Dict[str, List[str]] = {}
        for arm in self.arms:
            chrom, _ = split_arm(arm)
            out.setdefault(chrom, []).append(arm)
        for chrom, arms in out.items():
            arms.sort(key=lambda a: split_arm(a)[1])
        return out

    def autosomal_arms(self) -> List[str]:
        return [a for a in self.arms if not is_sex_chromosome(split_arm(a)[0])]


@dataclass(frozen=True)
class ScoreResult:
    """Final, serializable output of the workflow."""

    armlevel: Mapping[str, Sequence[str]]
    scores: Mapping[str, int]
    gender: str
    file: str
    extended: Optional[Mapping[str, object]] = field(default=None)

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "armlevel": {k: list(v) for k, v in self.armlevel.items()},
            "scores": dict(self.scores),
            "gender": self.gender,
            "file": self.file,
        }
        if self.extended is not None:
            out["extended"] = dict(self.extended)
        return out
