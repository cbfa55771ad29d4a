"""oncoscore: genome-instability scores and arm-level alterations from CNV segments.

Library use:

    from oncoscore import load_coverage, run_workflow
    result = run_workflow("sample.txt", "F", load_coverage("coverage.tsv"))

or the CLI:

    oncoscore run --chas sample.txt --gender F --coverage coverage.tsv

"""

from __future__ import annotations

__all__ = [
    "__version__",
    "armlevel_alt",
    "load_chas",
    "load_coverage",
    "run_workflow",
    "score_avgcn",
    "score_loh",
    "score_lst",
    "score_mbalt",
    "score_segments",
    "score_td",
]

__version__ = "0.1.0"

from .chas import load_chas, load_coverage
from .scores import armlevel_alt, score_avgcn, score_loh, score_lst, score_mbalt, score_td
from .workflow import run_workflow, score_segments
