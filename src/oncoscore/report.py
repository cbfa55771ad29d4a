from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path

from jinja2 import Template

from .models import ScoreResult

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>oncoscore report - {{ result.file }}</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .small { color: #666; font-size: 0.9em; }
  </style>
</head>
<body>

<h1>oncoscore report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Sample</h2>
<table>
  <tr><th>File</th><td><code>{{ result.file }}</code></td></tr>
  <tr><th>Gender</th><td>{{ result.gender }}</td></tr>
</table>

<h2>Scores</h2>
<table>
  <tr><th>LST</th><td>{{ result.scores.LST }}</td></tr>
  <tr><th>HRD-LOH</th><td>{{ result.scores.LOH }}</td></tr>
  <tr><th>TDplus</th><td>{{ result.scores.TDplus }}</td></tr>
{% if result.extended %}
  <tr><th>TD (&le; 1 Mb)</th><td>{{ result.extended.TD }}</td></tr>
  <tr><th>Average copy number</th><td>{{ "%.3f"|format(result.extended.avgcn) }}</td></tr>
  <tr><th>Mbp altered / covered</th><td>{{ result.extended.mbalt.sample }} / {{ result.extended.mbalt.kit }}</td></tr>
{% endif %}
</table>

<h2>Arm-level alterations</h2>
<table>
  <tr><th>Class</th><th>Arms</th></tr>
{% for cls in ["AMP", "GAIN", "LOSS", "LOH"] %}
  <tr><th>{{ cls }}</th><td>{{ result.armlevel[cls]|join(", ") if result.armlevel[cls] else "-" }}</td></tr>
{% endfor %}
</table>

<hr>
<p class="small">oncoscore {{ version }}</p>
</body>
</html>"""
)


def render_report(*, outdir: str | Path, version: str, result: ScoreResult) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        result=result.to_dict(),
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    logger.info("Report written: %s", out_path)
    return out_path
