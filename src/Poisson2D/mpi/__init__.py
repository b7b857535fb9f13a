"""MPI row-block decomposition and communication.

This package provides:
- compute_partition / RowDecomposition: Row blocks, halos and buffer offsets
- exchange_boundaries / RowHaloExchanger: Paired Sendrecv of halo rows
- ConvergenceCoordinator: Global LAND stopping criterion
- distribute_initial / collect_final: Scatter and gather of the grid
"""

from .decomposition import compute_partition, RowDecomposition
from .halo import exchange_boundaries, RowHaloExchanger
from .convergence import ConvergenceCoordinator, ConvergenceState, stopping_criterion
from .scatter_gather import distribute_initial, collect_final, COORDINATOR

__all__ = [
    "compute_partition",
    "RowDecomposition",
    "exchange_boundaries",
    "RowHaloExchanger",
    "ConvergenceCoordinator",
    "ConvergenceState",
    "stopping_criterion",
    "distribute_initial",
    "collect_final",
    "COORDINATOR",
]
