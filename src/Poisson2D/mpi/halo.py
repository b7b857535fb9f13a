"""Halo row exchange between neighbouring row blocks."""

from __future__ import annotations

import numpy as np
from mpi4py import MPI

from ..datastructures import Partition

HALO_TAG = 0


def exchange_boundaries(local_buffer: np.ndarray, partition: Partition, comm: MPI.Comm):
    """Swap boundary rows with each existing neighbour.

    For every neighbour (previous first, then next) one row of ``n`` values
    is sent from the first/last interior row and received into the
    leading/trailing halo slot with a single Sendrecv, so the pair can
    never deadlock on unmatched blocking sends. The buffer is modified in
    place.
    """
    n = partition.n
    for neighbor, send_offset, recv_offset in partition.neighbors:
        comm.Sendrecv(
            local_buffer[send_offset:send_offset + n], neighbor, HALO_TAG,
            local_buffer[recv_offset:recv_offset + n], neighbor, HALO_TAG,
        )


class RowHaloExchanger:
    """Timed halo exchange bound to one rank's partition.

    Parameters
    ----------
    partition : Partition
        Layout of the local buffer.
    comm : MPI.Comm
        Communicator holding the row chain.
    """

    def __init__(self, partition: Partition, comm: MPI.Comm):
        self.partition = partition
        self.comm = comm

    def exchange(self, local_buffer: np.ndarray) -> float:
        """Exchange halos, return elapsed seconds."""
        if local_buffer.size != self.partition.buffer_size:
            raise ValueError(
                f"Rank {self.partition.rank}: buffer has {local_buffer.size} values, "
                f"partition expects {self.partition.buffer_size}"
            )
        t0 = MPI.Wtime()
        exchange_boundaries(local_buffer, self.partition, self.comm)
        return MPI.Wtime() - t0

    def halo_size_bytes(self) -> int:
        """Bytes moved per exchange (float64, send+recv)."""
        return len(self.partition.neighbors) * self.partition.n * 8 * 2
