"""Row-block domain decomposition for a 1-D chain of ranks."""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from ..datastructures import Partition


def compute_partition(n: int, size: int, rank: int, rows: Optional[int] = None) -> Partition:
    """Compute the row block and halo layout of one rank.

    Rows are split into ``size`` contiguous blocks of ``rows // size`` rows.
    The remainder ``rows % size`` is folded into the last block, so the
    interior ranges partition ``[0, rows)`` for every ``1 <= size <= rows``.
    Rank 0 gets a halo row below its block, rank ``size - 1`` a halo row
    above, every other rank one on each side.

    Parameters
    ----------
    n : int
        Column count (row width in elements).
    size : int
        Number of ranks.
    rank : int
        Rank to compute the partition for.
    rows : int, optional
        Global row count. Defaults to ``n`` (square grid).

    Returns
    -------
    Partition
        Immutable description of the local buffer.
    """
    if rows is None:
        rows = n
    if n < 1:
        raise ValueError(f"Row width must be positive, got {n}")
    if size < 1:
        raise ValueError(f"Number of ranks must be positive, got {size}")
    if not 0 <= rank < size:
        raise ValueError(f"Rank {rank} outside [0, {size})")
    if rows < size:
        raise ValueError(f"Cannot split {rows} rows among {size} ranks")

    base = rows // size
    interior_start = rank * base
    interior_count = base + (rows % size if rank == size - 1 else 0)

    previous_rank = rank - 1 if rank > 0 else None
    next_rank = rank + 1 if rank < size - 1 else None

    top = 1 if previous_rank is not None else 0
    bottom = 1 if next_rank is not None else 0

    return Partition(
        rank=rank,
        size=size,
        n=n,
        rows=rows,
        row_offset=interior_start - top,
        row_count=interior_count + top + bottom,
        interior_start=interior_start,
        interior_count=interior_count,
        previous_rank=previous_rank,
        next_rank=next_rank,
    )


class RowDecomposition:
    """All partitions of an ``rows x n`` grid over ``size`` ranks.

    Used by the coordinator to slice the initial grid and to lay out the
    gathered result.

    Parameters
    ----------
    n : int
        Column count.
    size : int
        Number of ranks.
    rows : int, optional
        Global row count (defaults to ``n``).
    """

    def __init__(self, n: int, size: int, rows: Optional[int] = None):
        self.n = n
        self.size = size
        self.rows = n if rows is None else rows
        self.partitions: List[Partition] = [
            compute_partition(n, size, r, self.rows) for r in range(size)
        ]

    def partition(self, rank: int) -> Partition:
        return self.partitions[rank]

    def counts(self) -> np.ndarray:
        """Interior element count contributed by each rank at gather."""
        return np.array([p.interior_count * self.n for p in self.partitions], dtype=np.int64)

    def displacements(self) -> np.ndarray:
        """Element offset of each rank's interior in the global grid."""
        return np.array([p.interior_start * self.n for p in self.partitions], dtype=np.int64)

    def scatter_slices(self) -> List[slice]:
        """Global element range of each rank's local buffer (halos included)."""
        return [
            slice(p.row_offset * self.n, (p.row_offset + p.row_count) * self.n)
            for p in self.partitions
        ]
