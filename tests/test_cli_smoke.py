import json
import subprocess
import sys
from pathlib import Path


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "oncoscore"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


def test_cli_help() -> None:
    cp = _run_cli(["--help"])
    assert cp.returncode == 0
    assert "oncoscore" in cp.stdout.lower()


def test_quickstart_output() -> None:
    cp = _run_cli(["quickstart"])
    assert cp.returncode == 0
    assert "oncoscore run" in cp.stdout


def test_make_toy_data_and_run(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    cp = _run_cli(["make-toy-data", "--outdir", str(toy_dir)])
    assert cp.returncode == 0
    assert (toy_dir / "toy_chas.txt").exists()

    outdir = tmp_path / "out"
    cp = _run_cli(
        [
            "run",
            "--chas",
            str(toy_dir / "toy_chas.txt"),
            "--coverage",
            str(toy_dir / "toy_coverage.tsv"),
            "--gender",
            "F",
            "--outdir",
            str(outdir),
            "--html",
        ]
    )
    assert cp.returncode == 0, cp.stderr
    payload = json.loads(cp.stdout)
    assert payload["scores"] == {"LST": 2, "LOH": 2, "TDplus": 1}
    assert json.loads((outdir / "scores.json").read_text(encoding="utf-8")) == payload
    assert "HRD-LOH" in (outdir / "report.html").read_text(encoding="utf-8")


def test_bad_coverage_reports_error(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    assert _run_cli(["make-toy-data", "--outdir", str(toy_dir)]).returncode == 0
    bad_cov = tmp_path / "cov.tsv"
    bad_cov.write_text("chrom\tstart\tend\n1p\t1\t100\n", encoding="utf-8")

    cp = _run_cli(
        ["run", "--chas", str(toy_dir / "toy_chas.txt"), "--coverage", str(bad_cov), "--gender", "M"]
    )
    assert cp.returncode == 2
    assert "ValueError" in cp.stderr


def test_run_requires_coverage_table(tmp_path: Path) -> None:
    toy_dir = tmp_path / "toy"
    assert _run_cli(["make-toy-data", "--outdir", str(toy_dir)]).returncode == 0

    cp = _run_cli(["run", "--chas", str(toy_dir / "toy_chas.txt"), "--gender", "F"])
    assert cp.returncode == 2
    assert "--coverage" in cp.stderr
