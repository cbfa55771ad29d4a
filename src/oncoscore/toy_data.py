from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

from .chas import parse_location
from .utils import ensure_outdir, write_json

# arm, start, end (1-based inclusive)
TOY_COVERAGE: List[Tuple[str, int, int]] = [
    ("1p", 1_000_001, 121_000_000),
    ("1q", 145_000_001, 245_000_000),
    ("2p", 1_000_001, 91_000_000),
    ("2q", 96_000_001, 241_000_000),
    ("3p", 1_000_001, 89_000_000),
    ("3q", 94_000_001, 196_000_000),
    ("21p", 9_500_001, 11_000_000),
    ("21q", 15_000_001, 48_000_000),
    ("Xp", 3_000_001, 58_000_000),
    ("Xq", 62_000_001, 154_000_000),
]

# CN State, Type, Full Location
TOY_SEGMENTS: List[Tuple[str, str, str]] = [
    ("3", "Gain", "chr1:1000001-121000000"),
    ("2", "LOH", "chr1:150000001-170000000"),
    ("3", "Gain", "chr1:200000001-200200000"),
    ("6", "High Copy Gain", "chr2:10000001-15000000"),
    ("2", "LOH", "chr2:100000001-130000000"),
    ("1", "Loss", "chr3:1000001-196000000"),
    ("2", "LOH", "chr3:20000001-40000000"),
    ("1", "Loss", "chr5:1-1000000"),
    ("2", "LOH", "chr21:15000001-48000000"),
    ("3", "Gain", "chrX:70000001-72000000"),
]


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Write a tiny ChAS export and matching coverage table for demos/tests.

    The outputs include:
    - toy_chas.txt (ChAS text export, female sample)
    - toy_coverage.tsv (arm coverage)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)

    cov_path = outdir_p / "toy_coverage.tsv"
    lines = ["arm\tstart\tend"]
    lines.extend(f"{arm}\t{start}\t{end}" for arm, start, end in TOY_COVERAGE)
    cov_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    chas_path = outdir_p / "toy_chas.txt"
    lines = [
        "#GenomeBuild=hg19",
        "#Sample=TOY",
        "File\tCN State\tType\tFull Location\tSize (kbp)",
    ]
    for cn, cn_type, location in TOY_SEGMENTS:
        _, start, end = parse_location(location)
        size_kbp = (end - start + 1) / 1000
        lines.append(f"toy.OSCHP\t{cn}\t{cn_type}\t{location}\t{size_kbp:.3f}")
    chas_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    summary = {
        "chas": str(chas_path),
        "coverage": str(cov_path),
        "gender": "F",
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
