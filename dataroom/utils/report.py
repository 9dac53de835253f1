"""
Markdown analysis report.
"""

from typing import List, Optional, Sequence

from dataroom.math.clusters import ClusterAssignment
from dataroom.math.dataset import Dataset
from dataroom.math.regression import RegressionResult
from dataroom.math.stats import ColumnSummary, numeric_summaries
from dataroom.utils.general import format_number


def _fmt_extreme(value: float) -> str:
    # Whole numbers print without a trailing ".0"
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def column_label(names: Sequence[str], col: Optional[int], fallback: str) -> str:
    """Header name of ``col``, or ``fallback`` when the column is unknown."""
    if col is None or not 0 <= col < len(names):
        return fallback
    return names[col]


def build_report(dataset: Dataset,
                 summary: Sequence[ColumnSummary],
                 regression: Optional[RegressionResult] = None,
                 clusters: Optional[ClusterAssignment] = None) -> str:
    """
    Render the analysis of a dataset as a Markdown document.

    Args:
        dataset: Analyzed dataset
        summary: Per-column summaries
        regression: Regression result, if computable
        clusters: Clustering result, if computable

    Returns:
        Markdown text
    """
    names = dataset.header
    lines: List[str] = ["# Analysis Report", "", "## Schema"]
    lines.extend(f"- {i}: {name}" for i, name in enumerate(names))
    lines.append("")

    lines.append("## Summary stats (numeric columns)")
    for s in numeric_summaries(summary):
        lines.append(
            f"- {s.name}: n={s.count}, mean={format_number(s.mean, 4)}, "
            f"median={format_number(s.median, 4)}, stdev={format_number(s.stdev, 4)}, "
            f"min={_fmt_extreme(s.min)}, max={_fmt_extreme(s.max)}"
        )
    lines.append("")

    if regression is not None:
        lines.append("## Linear regression")
        lines.append(f"- X = {column_label(names, regression.x_col, 'x')} | "
                     f"Y = {column_label(names, regression.y_col, 'y')}")
        lines.append(f"- slope = {regression.slope:.6f}")
        lines.append(f"- intercept = {regression.intercept:.6f}")
        lines.append(f"- r = {regression.r:.6f}")
        lines.append(f"- R^2 = {regression.r2:.6f}")
        lines.append("")

    if clusters is not None:
        lines.append("## K-means clustering")
        lines.append(f"- features = {', '.join(clusters.names)}")
        lines.append(f"- k = {clusters.k}")
        lines.append(f"- inertia = {clusters.inertia:.6f}")
        lines.append(f"- sizes = {', '.join(str(c) for c in clusters.counts)}")
        lines.append("")

    return "\n".join(lines)
