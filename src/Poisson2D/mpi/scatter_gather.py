"""Initial distribution and final collection of the global grid."""

from __future__ import annotations

from typing import Optional

import numpy as np
from mpi4py import MPI

from ..datastructures import Partition
from ..problems import validate_initial_grid
from .decomposition import RowDecomposition

COORDINATOR = 0
SCATTER_TAG = 1


def distribute_initial(
    initial_grid: Optional[np.ndarray], partition: Partition, comm: MPI.Comm
) -> np.ndarray:
    """Send each rank its row block plus halo rows.

    The coordinator validates the grid before any message is sent, slices
    every rank's buffer with the same ``compute_partition`` the receivers use
    and sends it; other ranks block on one receive of
    ``partition.buffer_size`` values. ``initial_grid`` is ignored off the
    coordinator.

    Returns
    -------
    np.ndarray
        Flat local buffer of ``partition.buffer_size`` values.
    """
    if partition.rank != COORDINATOR:
        local = np.empty(partition.buffer_size, dtype=np.float64)
        comm.Recv(local, source=COORDINATOR, tag=SCATTER_TAG)
        return local

    grid = validate_initial_grid(initial_grid, partition.n, partition.rows)
    decomposition = RowDecomposition(partition.n, partition.size, partition.rows)

    local = None
    for proc, block in enumerate(decomposition.scatter_slices()):
        if proc == COORDINATOR:
            local = grid[block].copy()
        else:
            comm.Send(np.ascontiguousarray(grid[block]), dest=proc, tag=SCATTER_TAG)
    return local


def collect_final(
    local_buffer: np.ndarray, partition: Partition, comm: MPI.Comm
) -> Optional[np.ndarray]:
    """Gather the interior rows of every rank at the coordinator.

    Halo rows are left out so each global row arrives exactly once, in rank
    order. Returns the flat ``rows * n`` grid on the coordinator and
    ``None`` elsewhere.
    """
    send = np.ascontiguousarray(local_buffer[partition.interior_slice])

    if partition.rank != COORDINATOR:
        comm.Gatherv(send, None, root=COORDINATOR)
        return None

    decomposition = RowDecomposition(partition.n, partition.size, partition.rows)
    counts = decomposition.counts().tolist()
    displs = decomposition.displacements().tolist()
    grid = np.empty(partition.rows * partition.n, dtype=np.float64)
    comm.Gatherv(send, [grid, counts, displs, MPI.DOUBLE], root=COORDINATOR)
    return grid
