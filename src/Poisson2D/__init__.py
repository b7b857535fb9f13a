"""Row-block MPI Jacobi solver for the 2-D Poisson equation.

Solves -Δu = f on a structured rows x n grid, split into contiguous row
blocks across MPI ranks with one halo row per neighbour. Supports a
sequential, a thread-parallel and a distributed (optionally threaded) mode.

Solvers
-------
Single process (no MPI communication):
- JacobiSolver: mode "sequential" or "threaded"

Parallel (MPI):
- JacobiMPISolver: scatter, halo exchange, LAND convergence, gather
"""

from pathlib import Path

from .datastructures import (
    GlobalParams,
    GlobalMetrics,
    LocalMetrics,
    Partition,
    SolverPhase,
)
from .kernels import NumPyKernel, NumbaKernel, create_kernel
from .mesh import LocalMesh
from .io import output_filename, read_grid, write_grid
from .postprocessing import load_result, results_dataframe
from .problems import (
    GridError,
    PROBLEMS,
    get_problem,
    create_initial_grid,
    validate_initial_grid,
    sinusoidal_source_term,
    sinusoidal_exact_solution,
)
from .mpi import (
    compute_partition,
    RowDecomposition,
    exchange_boundaries,
    RowHaloExchanger,
    ConvergenceCoordinator,
    distribute_initial,
    collect_final,
)
from .solvers import JacobiSolver, JacobiMPISolver, create_solver
from .runner import run_solver

__all__ = [
    # Data structures
    "GlobalParams",
    "GlobalMetrics",
    "LocalMetrics",
    "Partition",
    "SolverPhase",
    # Kernels and mesh
    "NumPyKernel",
    "NumbaKernel",
    "create_kernel",
    "LocalMesh",
    # I/O
    "output_filename",
    "read_grid",
    "write_grid",
    "load_result",
    "results_dataframe",
    # Problem setup
    "GridError",
    "PROBLEMS",
    "get_problem",
    "create_initial_grid",
    "validate_initial_grid",
    "sinusoidal_source_term",
    "sinusoidal_exact_solution",
    # MPI
    "compute_partition",
    "RowDecomposition",
    "exchange_boundaries",
    "RowHaloExchanger",
    "ConvergenceCoordinator",
    "distribute_initial",
    "collect_final",
    # Solvers
    "JacobiSolver",
    "JacobiMPISolver",
    "create_solver",
    "run_solver",
    # Utilities
    "get_project_root",
]


def get_project_root() -> Path:
    """Get project root directory (contains pyproject.toml)."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent

    # Fallback: assume standard src layout
    return Path(__file__).resolve().parent.parent.parent
