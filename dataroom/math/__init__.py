"""
Numeric core of dataroom.

Pure functions over immutable Dataset snapshots: column extraction, summary
statistics, correlation, linear regression and K-means clustering.
"""

from dataroom.math.errors import DataroomError, InvalidColumnError, DegenerateInputError
from dataroom.math.dataset import Dataset
from dataroom.math.stats import ColumnSummary, summarize, summarize_column
from dataroom.math.corr import aligned_pairs, pearson, column_correlation, correlation_matrix
from dataroom.math.regression import RegressionResult, linear_regression, regress_columns
from dataroom.math.clusters import KMeansResult, ClusterAssignment, kmeans, cluster_dataset
