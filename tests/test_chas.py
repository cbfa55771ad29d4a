from pathlib import Path

import pytest

from oncoscore.chas import load_chas, load_coverage, parse_location
from oncoscore.models import CNType
from oncoscore.toy_data import make_toy_data


def test_parse_location():
    assert parse_location("chr1:61,735-16,880,989") == ("1", 61735, 16880989)
    assert parse_location("chrX:100-200") == ("X", 100, 200)
    with pytest.raises(ValueError):
        parse_location("chr1-100-200")


def test_load_coverage_and_chas(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cov = load_coverage(toy["coverage"])
    assert "21p" in cov
    assert cov.arm_length("1p") == 120_000_000
    assert cov.chromosomes()["3"] == ["3p", "3q"]

    segs = load_chas(toy["chas"], cov)
    chr3_loss = [(s.arm, s.start, s.end) for s in segs if s.arm.startswith("3") and s.cn_type == CNType.LOSS]
    assert chr3_loss == [("3p", 1_000_001, 89_000_000), ("3q", 94_000_001, 196_000_000)]
    # chr5 is not covered
    assert not any(s.arm.startswith("5") for s in segs)
    assert all(s.cn_subtype is None for s in segs)
    xq = [s for s in segs if s.arm == "Xq"]
    assert len(xq) == 1 and xq[0].cn == 3.0 and xq[0].cn_type == CNType.GAIN


def test_load_chas_missing_cn_for_loh(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cov = load_coverage(toy["coverage"])
    chas = tmp_path / "loh.txt"
    chas.write_text("CN State\tType\tFull Location\n\tLOH\tchr1:2000001-30000000\n", encoding="utf-8")
    segs = load_chas(chas, cov)
    assert len(segs) == 1
    assert segs[0].cn is None and segs[0].cn_type == CNType.LOH


def test_load_chas_mosaic_calls_keep_fractional_cn(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cov = load_coverage(toy["coverage"])
    chas = tmp_path / "mosaic.txt"
    chas.write_text(
        "CN State\tType\tFull Location\n"
        "2.33\tGain Mosaic\tchr1:2000001-30000000\n"
        "1.67\tLoss Mosaic\tchr2:10000001-40000000\n",
        encoding="utf-8",
    )
    segs = load_chas(chas, cov)
    assert [(s.arm, s.cn, s.cn_type) for s in segs] == [
        ("1p", 2.33, CNType.GAIN),
        ("2p", 1.67, CNType.LOSS),
    ]


def test_load_chas_rejects_unknown_type(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cov = load_coverage(toy["coverage"])
    chas = tmp_path / "bad.txt"
    chas.write_text("CN State\tType\tFull Location\n2\tDeletion\tchr1:2000001-3000000\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unknown ChAS segment type"):
        load_chas(chas, cov)


def test_load_chas_missing_columns(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cov = load_coverage(toy["coverage"])
    chas = tmp_path / "bad.txt"
    chas.write_text("CN State\tLocation\n2\tchr1:2000001-3000000\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing required column"):
        load_chas(chas, cov)
    with pytest.raises(FileNotFoundError):
        load_chas(tmp_path / "absent.txt", cov)
