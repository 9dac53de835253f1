"""
Analysis bundle: summary statistics, regression and clustering of one
dataset for one set of parameters.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from dataroom.math.clusters import ClusterAssignment, cluster_dataset
from dataroom.math.dataset import Dataset
from dataroom.math.errors import DegenerateInputError
from dataroom.math.regression import RegressionResult, regress_columns
from dataroom.math.stats import ColumnSummary, summarize
from dataroom.llm.prompts import build_brief

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisParams:
    """Selection parameters the analysis depends on besides the grid."""

    x_col: int = 0
    y_col: int = 1
    features: Tuple[int, ...] = (0, 1)
    k: int = 3
    seed: int = 42
    max_iters: int = 100
    empty_cluster: str = 'keep'

    def update(self, **changes: Any) -> 'AnalysisParams':
        """Copy with some fields replaced; ``features`` may be any sequence."""
        if 'features' in changes and changes['features'] is not None:
            changes['features'] = tuple(changes['features'])
        changes = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x_col': self.x_col,
            'y_col': self.y_col,
            'features': list(self.features),
            'k': self.k,
            'seed': self.seed,
            'max_iters': self.max_iters,
            'empty_cluster': self.empty_cluster,
        }


@dataclass(frozen=True)
class Analysis:
    """
    Results for one (dataset, params) pair. ``regression`` and ``clusters``
    are None when not computable; ``notes`` says why when the input was
    degenerate.
    """

    params: AnalysisParams
    summary: Tuple[ColumnSummary, ...]
    regression: Optional[RegressionResult]
    clusters: Optional[ClusterAssignment]
    brief: str
    notes: Tuple[str, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'params': self.params.to_dict(),
            'summary': [s.to_dict() for s in self.summary],
            'regression': self.regression.to_dict() if self.regression else None,
            'clusters': self.clusters.to_dict() if self.clusters else None,
            'brief': self.brief,
            'notes': list(self.notes),
        }


def analyze(dataset: Dataset, params: Optional[AnalysisParams] = None) -> Analysis:
    """
    Run every numeric component over a dataset snapshot.

    Selections that point past the current header (after a column was
    deleted or a narrower grid was imported) make the affected component
    not computable; they are noted rather than raised.

    Args:
        dataset: Dataset to analyze
        params: Column selections and clustering settings

    Returns:
        Analysis
    """
    params = params or AnalysisParams()
    notes: List[str] = []

    summary = tuple(summarize(dataset))

    regression = None
    missing = [c for c in (params.x_col, params.y_col) if not dataset.valid_columns([c])]
    if missing:
        notes.append(f"regression: column {missing[0]} not in dataset")
    else:
        try:
            regression = regress_columns(dataset, params.x_col, params.y_col)
        except DegenerateInputError as e:
            logger.warning(f"Regression not computable: {e}")
            notes.append(f"regression: {e}")

    features = dataset.valid_columns(params.features)
    if len(features) < len(set(params.features)):
        notes.append(f"clusters: using columns {features} of {list(params.features)}")

    clusters = cluster_dataset(
        dataset,
        features,
        params.k,
        seed=params.seed,
        max_iters=params.max_iters,
        empty_cluster=params.empty_cluster
    )

    return Analysis(
        params=params,
        summary=summary,
        regression=regression,
        clusters=clusters,
        brief=build_brief(dataset, summary, regression, clusters),
        notes=tuple(notes)
    )
