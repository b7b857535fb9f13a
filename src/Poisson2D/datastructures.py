"""Data structures for solver configuration and results.

Architecture: 2x2 matrix of Params vs Metrics × Global vs Local

                 Params (input/config)         Metrics (output/results)
                 ─────────────────────         ────────────────────────
Global           GlobalParams                  GlobalMetrics
(same across     N, rows, tolerance,           wall_time, iterations,
ranks / agg)     max_iter, n_ranks...          converged, update time...

Local            Partition                     LocalMetrics
(per-rank)       rank, row_offset,             update_times[],
                 neighbours, offsets...        halo_times[]...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


MODES = ("sequential", "threaded", "mpi")
OUTPUT_EXTENSIONS = ("vtk", "h5")


# ============================================================================
# Global (identical across ranks, or aggregated on rank 0)
# ============================================================================


@dataclass
class GlobalParams:
    """Run configuration - built from the Hydra config, logged to MLflow as params.

    Identical across all MPI ranks.
    """

    # Required
    N: int  # column count n

    rows: Optional[int] = None  # row count R, square grid when None
    domain: Tuple[float, float, float, float] = (0.0, 1.0, 0.0, 1.0)
    problem: str = "sinusoidal"
    initial_grid: Optional[str] = None  # .npy or .h5 file read on rank 0

    # Stopping criteria
    tolerance: float = 1e-6
    max_iter: int = 10000

    # Parallelization
    mode: str = "sequential"  # "sequential" | "threaded" | "mpi"
    n_ranks: int = 1
    n_threads: int = 1
    use_numba: bool = False

    # Output
    output_dir: str = "vtk_files"
    output_base: str = "approx_sol"
    output_ext: str = "vtk"

    # Experiment tracking
    experiment_name: str = "default"

    # Auto-detected at runtime (not from config)
    environment: str = field(init=False)
    hx: float = field(init=False)
    hy: float = field(init=False)

    def __post_init__(self):
        """Validate and compute derived values."""
        if self.rows is None:
            self.rows = self.N
        self.domain = tuple(float(v) for v in self.domain)

        if self.N < 3 or self.rows < 3:
            raise ValueError(f"Grid must be at least 3x3, got {self.rows}x{self.N}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}")
        if self.n_threads < 1:
            raise ValueError(f"n_threads must be positive, got {self.n_threads}")
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode: {self.mode}. Use one of {MODES}.")
        if self.output_ext not in OUTPUT_EXTENSIONS:
            raise ValueError(f"Unknown output extension: {self.output_ext}")
        if len(self.domain) != 4:
            raise ValueError("domain must be (x0, x1, y0, y1)")

        x0, x1, y0, y1 = self.domain
        self.hx = (x1 - x0) / (self.N - 1)
        self.hy = (y1 - y0) / (self.rows - 1)
        self.environment = (
            "hpc"
            if os.environ.get("LSB_JOBID") or os.environ.get("SLURM_JOB_ID")
            else "local"
        )

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible params dict (bools as int, exclude derived)."""
        exclude = {"hx", "hy"}
        return {
            k: (int(v) if isinstance(v, bool) else str(v) if isinstance(v, tuple) else v)
            for k, v in self.__dict__.items()
            if k not in exclude
        }


@dataclass
class GlobalMetrics:
    """Aggregated results - logged to MLflow as metrics.

    Final results computed/aggregated on rank 0.
    """

    converged: bool = False
    hit_iteration_cap: bool = False
    iterations: int = 0
    final_error: Optional[float] = None  # last local update norm (max over ranks)
    l2_error: Optional[float] = None  # vs analytical solution, when known
    wall_time: Optional[float] = None

    # Timing breakdown (update time averaged over ranks)
    total_update_time: Optional[float] = None
    mean_update_time: Optional[float] = None
    total_halo_time: Optional[float] = None
    halo_bytes: Optional[int] = None  # summed over ranks and exchanges

    output_path: Optional[str] = None

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible dict (no None/strings, bools as int)."""
        return {
            k: (int(v) if isinstance(v, bool) else v)
            for k, v in self.__dict__.items()
            if v is not None and not isinstance(v, str)
        }


# ============================================================================
# Local (per-rank)
# ============================================================================


@dataclass
class LocalMetrics:
    """Per-rank timeseries, accumulated during solve."""

    update_times: List[float] = field(default_factory=list)
    halo_times: List[float] = field(default_factory=list)
    error_history: List[float] = field(default_factory=list)

    def clear(self):
        """Clear all timeseries data."""
        self.update_times.clear()
        self.halo_times.clear()
        self.error_history.clear()

    def to_mlflow_batch(self) -> list:
        """Convert timeseries to MLflow Metric objects for batch logging."""
        from mlflow.entities import Metric

        return [
            Metric(key=name, value=value, timestamp=0, step=step)
            for name, values in self.__dict__.items()
            for step, value in enumerate(values)
        ]


@dataclass(frozen=True)
class Partition:
    """Row block owned by one rank, with its halo layout.

    All offsets are element offsets into the flattened local buffer.
    Computed once by ``compute_partition`` and never mutated.
    """

    rank: int
    size: int
    n: int
    rows: int
    row_offset: int  # first global row held in the local buffer (halo included)
    row_count: int  # local buffer rows (halo included)
    interior_start: int  # first global row owned
    interior_count: int
    previous_rank: Optional[int]
    next_rank: Optional[int]

    @property
    def expects_top_halo(self) -> bool:
        return self.previous_rank is not None

    @property
    def expects_bottom_halo(self) -> bool:
        return self.next_rank is not None

    @property
    def buffer_size(self) -> int:
        return self.row_count * self.n

    @property
    def send_offset_1(self) -> int:
        return self.n

    @property
    def recv_offset_1(self) -> int:
        return 0

    @property
    def send_offset_2(self) -> int:
        return self.buffer_size - 2 * self.n

    @property
    def recv_offset_2(self) -> int:
        return self.buffer_size - self.n

    @property
    def neighbors(self) -> List[Tuple[int, int, int]]:
        """Existing neighbours as (rank, send_offset, recv_offset), previous first."""
        result = []
        if self.previous_rank is not None:
            result.append((self.previous_rank, self.send_offset_1, self.recv_offset_1))
        if self.next_rank is not None:
            result.append((self.next_rank, self.send_offset_2, self.recv_offset_2))
        return result

    @property
    def interior_slice(self) -> slice:
        """Elements of the local buffer contributed at gather (halos excluded)."""
        start = self.n if self.expects_top_halo else 0
        return slice(start, start + self.interior_count * self.n)


class SolverPhase(Enum):
    """Phases of a distributed run, in order."""

    SCATTERING = "scattering"
    ITERATING = "iterating"
    GATHERING = "gathering"
    DONE = "done"
