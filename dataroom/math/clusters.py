"""
K-means clustering implementation for dataroom.

This module provides a deterministic Lloyd's-algorithm K-means: centroids
start at distinct data points drawn with the package LCG, points go to the
nearest centroid (ties to the lowest centroid index), and iteration stops
once no assignment changes or the iteration limit is reached.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from dataroom.math.dataset import Dataset
from dataroom.math.prng import LCG
from dataroom.utils.general import distinct

logger = logging.getLogger(__name__)

EMPTY_CLUSTER_POLICIES = ('keep', 'reinit')


class Cluster:
    """
    Represents a cluster in K-means clustering.
    """

    def __init__(self,
                 center: np.ndarray,
                 members: Optional[List[int]] = None,
                 id: Optional[int] = None):
        """
        Initialize a cluster with a center and optional members.

        Args:
            center: The center of the cluster
            members: Indices of members belonging to the cluster
            id: Identifier of the cluster (its centroid index)
        """
        self.center = np.array(center, dtype=float)
        self.members = [] if members is None else list(members)
        self.id = id

    def add_member(self, idx: int) -> None:
        self.members.append(idx)

    def clear_members(self) -> None:
        self.members = []

    def update_center(self, data: np.ndarray) -> bool:
        """
        Move the center to the mean of its members.

        Args:
            data: Data matrix containing all points

        Returns:
            False if the cluster has no members (center left unchanged)
        """
        if not self.members:
            return False

        self.center = np.mean(data[self.members], axis=0)
        return True

    def __repr__(self) -> str:
        return f"Cluster(id={self.id}, members={len(self.members)})"


@dataclass(frozen=True)
class KMeansResult:
    """
    Outcome of one K-means run over a data matrix.

    ``assignments[i]`` is the cluster id of row-vector ``i``; cluster ids are
    centroid indices in initialization order.
    """

    k: int
    seed: int
    assignments: Tuple[int, ...]
    centroids: Tuple[Tuple[float, ...], ...]
    counts: Tuple[int, ...]
    inertia: float
    within_ss: Tuple[float, ...]
    iterations: int
    converged: bool
    inertia_history: Tuple[float, ...] = field(default=(), repr=False)


def squared_distances(data: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """
    Squared Euclidean distances between every point and every center.

    Args:
        data: Matrix of shape (n, d)
        centers: Matrix of shape (k, d)

    Returns:
        Matrix of shape (n, k)
    """
    diff = data[:, np.newaxis, :] - centers[np.newaxis, :, :]
    return np.sum(diff * diff, axis=2)


def init_clusters(data: np.ndarray, k: int, rng: LCG) -> List[Cluster]:
    """
    Initialize k clusters at distinct data points.

    Indices are drawn with ``rng`` and duplicates are redrawn, so the
    initial centers depend only on the generator state and row order.

    Args:
        data: Data matrix with at least k rows
        k: Number of clusters
        rng: Generator to draw indices from

    Returns:
        List of k clusters with ids 0..k-1
    """
    n_points = data.shape[0]
    if n_points < k:
        raise ValueError(f"Cannot pick {k} distinct centers from {n_points} points")

    chosen: List[int] = []
    while len(chosen) < k:
        idx = rng.choice_index(n_points)
        if idx not in chosen:
            chosen.append(idx)

    return [Cluster(data[idx], [], i) for i, idx in enumerate(chosen)]


def assign_points_to_clusters(data: np.ndarray, clusters: List[Cluster]) -> np.ndarray:
    """
    Assign each data point to the nearest cluster.

    Ties go to the cluster with the lowest index (``argmin`` returns the
    first minimum).

    Args:
        data: Data matrix
        clusters: List of clusters; their member lists are rebuilt

    Returns:
        Array of cluster indices, one per point
    """
    for cluster in clusters:
        cluster.clear_members()

    centers = np.array([c.center for c in clusters])
    assignments = np.argmin(squared_distances(data, centers), axis=1)

    for i, cid in enumerate(assignments):
        clusters[cid].add_member(i)

    return assignments


def update_cluster_centers(data: np.ndarray,
                           clusters: List[Cluster],
                           empty_cluster: str = 'keep',
                           rng: Optional[LCG] = None) -> List[int]:
    """
    Update the centers of all clusters.

    Args:
        data: Data matrix
        clusters: List of clusters
        empty_cluster: 'keep' leaves an empty cluster's center where it is;
            'reinit' moves it to a data point drawn with ``rng``
        rng: Generator used by the 'reinit' policy

    Returns:
        Ids of clusters that had no members
    """
    empty = []
    for cluster in clusters:
        if cluster.update_center(data):
            continue
        empty.append(cluster.id)
        if empty_cluster == 'reinit':
            cluster.center = np.array(data[rng.choice_index(data.shape[0])], dtype=float)

    return empty


def within_cluster_ss(data: np.ndarray,
                      centers: np.ndarray,
                      assignments: np.ndarray) -> np.ndarray:
    """
    Sum of squared distances to the assigned center, per cluster.

    Args:
        data: Data matrix of shape (n, d)
        centers: Centers of shape (k, d)
        assignments: Cluster index per point

    Returns:
        Array of length k
    """
    diff = data - centers[assignments]
    per_point = np.sum(diff * diff, axis=1)
    return np.bincount(assignments, weights=per_point, minlength=centers.shape[0])


def kmeans(data: np.ndarray,
           k: int,
           seed: int = 42,
           max_iters: int = 100,
           empty_cluster: str = 'keep') -> Optional[KMeansResult]:
    """
    Perform K-means clustering on the data.

    Args:
        data: Data matrix of shape (n, d)
        k: Number of clusters
        seed: Seed for the initialization generator
        max_iters: Maximum number of assignment steps
        empty_cluster: Empty-cluster policy, 'keep' or 'reinit'

    Returns:
        KMeansResult, or None if there are fewer points than clusters
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    if max_iters < 1:
        raise ValueError(f"max_iters must be at least 1, got {max_iters}")
    if empty_cluster not in EMPTY_CLUSTER_POLICIES:
        raise ValueError(f"Unknown empty-cluster policy: {empty_cluster}")

    data = np.asarray(data, dtype=float)
    if data.ndim != 2:
        raise ValueError("kmeans() expects a 2-D matrix")

    if data.shape[0] < k:
        return None

    rng = LCG(seed)
    clusters = init_clusters(data, k, rng)

    previous = None
    history = []
    converged = False
    iterations = 0

    for _ in range(max_iters):
        assignments = assign_points_to_clusters(data, clusters)
        iterations += 1

        if previous is not None and np.array_equal(assignments, previous):
            converged = True
            break

        empty = update_cluster_centers(data, clusters, empty_cluster, rng)
        if empty:
            logger.debug(f"Empty clusters {empty} at iteration {iterations}")

        centers = np.array([c.center for c in clusters])
        history.append(float(np.sum(within_cluster_ss(data, centers, assignments))))
        previous = assignments

    centers = np.array([c.center for c in clusters])
    wss = within_cluster_ss(data, centers, assignments)

    return KMeansResult(
        k=k,
        seed=seed,
        assignments=tuple(int(a) for a in assignments),
        centroids=tuple(tuple(float(v) for v in c) for c in centers),
        counts=tuple(int(c) for c in np.bincount(assignments, minlength=k)),
        inertia=float(np.sum(wss)),
        within_ss=tuple(float(w) for w in wss),
        iterations=iterations,
        converged=converged,
        inertia_history=tuple(history)
    )


@dataclass(frozen=True)
class ClusterAssignment:
    """
    K-means result mapped back onto dataset rows.
    """

    columns: Tuple[int, ...]
    names: Tuple[str, ...]
    rows: Tuple[int, ...]
    result: KMeansResult

    @property
    def k(self) -> int:
        return self.result.k

    @property
    def row_clusters(self) -> Dict[int, int]:
        """Map of 1-based data-row index to cluster id."""
        return dict(zip(self.rows, self.result.assignments))

    @property
    def centroids(self) -> Tuple[Tuple[float, ...], ...]:
        return self.result.centroids

    @property
    def counts(self) -> Tuple[int, ...]:
        return self.result.counts

    @property
    def inertia(self) -> float:
        return self.result.inertia

    def to_dict(self) -> Dict[str, Any]:
        return {
            'columns': list(self.columns),
            'features': list(self.names),
            'k': self.result.k,
            'seed': self.result.seed,
            'inertia': self.result.inertia,
            'iterations': self.result.iterations,
            'converged': self.result.converged,
            'sizes': list(self.result.counts),
            'clusters': clusters_to_dict(self.result, list(self.rows)),
        }


def cluster_dataset(dataset: Dataset,
                    cols: Sequence[int],
                    k: int,
                    seed: int = 42,
                    max_iters: int = 100,
                    empty_cluster: str = 'keep') -> Optional[ClusterAssignment]:
    """
    Cluster the rows of a dataset on a set of feature columns.

    Only rows where every feature cell parses to a finite number take part.

    Args:
        dataset: Source dataset
        cols: Feature column indices (duplicates are ignored)
        k: Number of clusters
        seed: Initialization seed
        max_iters: Maximum number of iterations
        empty_cluster: Empty-cluster policy

    Returns:
        ClusterAssignment, or None if no features are given or fewer
        complete rows than k exist

    Raises:
        InvalidColumnError: If any feature column is out of range
    """
    cols = distinct(cols)
    for col in cols:
        dataset.check_column(col)

    if not cols:
        return None

    rows, matrix = dataset.numeric_rows(cols)
    result = kmeans(matrix, k, seed=seed, max_iters=max_iters, empty_cluster=empty_cluster)
    if result is None:
        logger.debug(f"Not clustering: {len(rows)} complete rows for k={k}")
        return None

    header = dataset.header
    return ClusterAssignment(
        columns=tuple(cols),
        names=tuple(header[c] for c in cols),
        rows=tuple(rows),
        result=result
    )


def clusters_to_dict(result: KMeansResult, data_indices: Optional[List[Any]] = None) -> List[Dict]:
    """
    Convert a K-means result to a list of cluster dictionaries.

    Args:
        result: K-means result
        data_indices: Optional mapping from point positions to row ids

    Returns:
        List of dictionaries with 'id', 'center', 'size', 'within_ss'
        and 'members'
    """
    members: List[List[Any]] = [[] for _ in range(result.k)]
    for i, cid in enumerate(result.assignments):
        members[cid].append(data_indices[i] if data_indices is not None else i)

    return [
        {
            'id': cid,
            'center': list(result.centroids[cid]),
            'size': result.counts[cid],
            'within_ss': result.within_ss[cid],
            'members': members[cid]
        }
        for cid in range(result.k)
    ]
