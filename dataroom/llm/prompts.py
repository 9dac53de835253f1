"""
Prompt construction for the completion endpoint.

The analysis brief is a compact one-line-per-result serialization of the
numeric core's outputs:

    name{n:..,mean:..,sd:..}; ...
    regression X=.. Y=.. slope=.. intercept=.. r=.. r2=..
    kmeans k=.. features=.. inertia=.. sizes=..
"""

import re
from typing import Optional, Sequence

from dataroom.math.clusters import ClusterAssignment
from dataroom.math.dataset import Dataset
from dataroom.math.regression import RegressionResult
from dataroom.math.stats import ColumnSummary, numeric_summaries
from dataroom.utils.csv_io import rows_to_csv_text
from dataroom.utils.general import clamp
from dataroom.utils.report import column_label

PREVIEW_ROWS = 20

DEFAULT_GENERATE_ROWS = 1000
MIN_GENERATE_ROWS = 50
MAX_GENERATE_ROWS = 5000

FENCE = re.compile(r'```(?:csv)?\s*([\s\S]*?)```', re.IGNORECASE)


def schema_line(dataset: Dataset) -> str:
    return ", ".join(f"{i}:{name}" for i, name in enumerate(dataset.header))


def summary_brief(summary: Sequence[ColumnSummary]) -> str:
    return "; ".join(
        f"{s.name}{{n:{s.count},mean:{s.mean:.3f},sd:{s.stdev:.3f}}}"
        for s in numeric_summaries(summary)
    )


def regression_brief(dataset: Dataset, regression: Optional[RegressionResult]) -> str:
    if regression is None:
        return "no regression"
    names = dataset.header
    return (
        f"regression X={column_label(names, regression.x_col, 'x')} "
        f"Y={column_label(names, regression.y_col, 'y')} "
        f"slope={regression.slope:.4f} intercept={regression.intercept:.4f} "
        f"r={regression.r:.4f} r2={regression.r2:.4f}"
    )


def clusters_brief(clusters: Optional[ClusterAssignment]) -> str:
    if clusters is None:
        return "no clustering"
    return (
        f"kmeans k={clusters.k} features={','.join(clusters.names)} "
        f"inertia={clusters.inertia:.4f} sizes={','.join(str(c) for c in clusters.counts)}"
    )


def build_brief(dataset: Dataset,
                summary: Sequence[ColumnSummary],
                regression: Optional[RegressionResult] = None,
                clusters: Optional[ClusterAssignment] = None) -> str:
    """
    Serialize the analysis into the compact brief sent to the model.

    Returns:
        Three lines: summary, regression and clustering
    """
    return "\n".join([
        f"summary: {summary_brief(summary)}",
        regression_brief(dataset, regression),
        clusters_brief(clusters),
    ])


def build_ask_prompt(dataset: Dataset,
                     question: str,
                     summary: Sequence[ColumnSummary],
                     regression: Optional[RegressionResult] = None,
                     clusters: Optional[ClusterAssignment] = None) -> str:
    """
    Build the question-answering prompt for a dataset and its analysis.

    At most ``PREVIEW_ROWS`` grid rows (header included) are embedded.
    """
    preview = rows_to_csv_text(dataset.preview(PREVIEW_ROWS))
    return "\n".join([
        "You are a data analyst. Given:",
        f"schema: {schema_line(dataset)}",
        build_brief(dataset, summary, regression, clusters),
        "csv_preview:",
        preview.rstrip("\n"),
        "",
        "User question:",
        question,
        "",
        "Answer clearly and concisely. If needed, propose next steps "
        "(new features, more tests) without hand-waving.",
    ]).strip()


def clamp_rows(rows: Optional[object],
               default: int = DEFAULT_GENERATE_ROWS,
               lower: int = MIN_GENERATE_ROWS,
               upper: int = MAX_GENERATE_ROWS) -> int:
    """
    Coerce a requested row count into the allowed range.

    Missing, zero or unparseable values use the default.
    """
    try:
        requested = int(float(rows))
    except (TypeError, ValueError, OverflowError):
        requested = 0
    return int(clamp(requested or default, lower, upper))


def build_generate_prompt(user_prompt: str, rows: int) -> str:
    """Prompt asking the model for CSV only."""
    return "\n".join([
        "You are a data generator. Output CSV ONLY (no prose, no code fences).",
        f"- Rows: about {rows} lines INCLUDING header row.",
        "- First row MUST be headers with short snake_case names.",
        "- Use realistic, coherent values; avoid commas inside fields unless quoted.",
        '- If dataset implies dates, use ISO date "YYYY-MM-DD".',
        "- If dataset implies booleans, use 0/1.",
        "Topic:",
        user_prompt,
        "CSV ONLY.",
    ]).strip()


def unwrap_csv_fence(text: str) -> str:
    """Strip a surrounding ```csv fenced block, if any."""
    text = (text or "").strip()
    match = FENCE.search(text)
    return match.group(1).strip() if match else text


def looks_like_csv(text: str) -> bool:
    """
    At least two non-blank lines and a header with two or more columns.
    """
    if not text:
        return False
    lines = [line for line in re.split(r'\r?\n', text) if line]
    if len(lines) < 2:
        return False
    return len(lines[0].split(",")) >= 2
