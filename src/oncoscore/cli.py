from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .chas import load_coverage
from .report import render_report
from .scores import ARMLEVEL_THRESHOLD
from .segments import KIT_RESOLUTION
from .toy_data import make_toy_data
from .utils import ensure_outdir, write_json
from .validation import GENDERS
from .workflow import DEFAULT_EXCLUDED_ARMS, run_workflow


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _fraction(v: str) -> float:
    x = float(v)
    if not 0.0 <= x <= 1.0:
        raise argparse.ArgumentTypeError(f"Threshold must be within [0, 1]: {v}")
    return x


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="oncoscore",
        description=(
            "oncoscore: genome-instability scores (LST, HRD-LOH, TDplus) and arm-level "
            "alterations from Oncoscan ChAS copy-number segments."
        ),
    )
    p.add_argument("--version", action="version", version=f"oncoscore {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser("quickstart", help="Print ready-to-run example commands.")

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser("make-toy-data", help="Write a tiny ChAS export and coverage table.")
    t.add_argument("--outdir", required=True, help="Output directory.")

    # -----------------
    # run
    # -----------------
    r = sub.add_parser("run", help="Score a ChAS text export.")
    r.add_argument("--chas", required=True, type=_path_exists, help="ChAS text export (tab-separated).")
    r.add_argument("--gender", required=True, choices=list(GENDERS), help="Sample gender.")
    r.add_argument(
        "--coverage",
        required=True,
        type=_path_exists,
        help="Arm coverage table (tab-separated columns arm, start, end; 1-based inclusive).",
    )
    r.add_argument("--outdir", help="Write scores.json (and logs) to this directory.")
    r.add_argument("--html", action="store_true", help="Also write report.html (requires --outdir).")
    r.add_argument(
        "--extended",
        action="store_true",
        help="Also report small TD count, average copy number and Mbp altered.",
    )
    r.add_argument(
        "--threshold",
        type=_fraction,
        default=ARMLEVEL_THRESHOLD,
        help="Minimum altered fraction of an arm to call it globally altered (default: %(default)s).",
    )
    r.add_argument(
        "--exclude-arm",
        action="append",
        dest="exclude_arms",
        metavar="ARM",
        help=f"Arm to exclude from the coverage; repeatable (default: {', '.join(DEFAULT_EXCLUDED_ARMS)}).",
    )
    r.add_argument(
        "--kit-resolution",
        type=int,
        default=KIT_RESOLUTION,
        help="Merge distance and minimum segment size in bp (default: %(default)s).",
    )
    r.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG.")

    return p


def cmd_quickstart() -> int:
    print(
        "\n".join(
            [
                "1) Try it on toy data:",
                "   oncoscore make-toy-data --outdir toy",
                "   oncoscore run --chas toy/toy_chas.txt --coverage toy/toy_coverage.tsv --gender F",
                "",
                "2) Score a sample and keep the outputs:",
                "   oncoscore run --chas sample.txt --coverage coverage.tsv --gender M \\",
                "       --outdir results/sample --html -v",
                "",
                "3) Include average copy number and Mbp altered:",
                "   oncoscore run --chas sample.txt --coverage coverage.tsv --gender F --extended",
            ]
        )
    )
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve() if args.outdir else None
    log_path = _log_path(outdir, "run.log") if outdir is not None else None
    _setup_logging(args.verbose, logfile=log_path)

    logger = logging.getLogger("oncoscore")
    logger.info("oncoscore %s", __version__)

    if args.html and outdir is None:
        sys.stderr.write("--html requires --outdir\n")
        return 2

    try:
        coverage = load_coverage(args.coverage)
        exclude = args.exclude_arms if args.exclude_arms is not None else list(DEFAULT_EXCLUDED_ARMS)
        result = run_workflow(
            args.chas,
            args.gender,
            coverage,
            exclude_arms=exclude,
            threshold=float(args.threshold),
            kit_resolution=int(args.kit_resolution),
            extended=bool(args.extended),
        )
        payload = result.to_dict()

        if outdir is not None:
            outdir = ensure_outdir(outdir)
            write_json(outdir / "scores.json", payload)
            if args.html:
                render_report(outdir=outdir, version=__version__, result=result)

        print(json.dumps(payload, indent=2))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "run":
        return cmd_run(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
