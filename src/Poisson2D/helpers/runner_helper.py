"""MPI worker - invoked via: mpiexec -n X python -m Poisson2D.helpers.runner_helper '{config}'"""

import json
import logging
import sys

from mpi4py import MPI

from Poisson2D import GlobalParams, JacobiMPISolver

log = logging.getLogger("Poisson2D.runner_helper")


def main(argv, comm=None):
    comm = comm if comm is not None else MPI.COMM_WORLD
    rank = comm.Get_rank()
    logging.basicConfig(
        level=logging.INFO if rank == 0 else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )

    config = GlobalParams(**json.loads(argv[1]))
    solver = JacobiMPISolver(config, comm=comm)
    if config.use_numba:
        solver.warmup()

    try:
        solver.solve()
    except Exception:
        # Peers would block forever on the scatter or a reduction
        log.exception("Rank %d failed, aborting run", rank)
        comm.Abort(1)
    finally:
        solver.close()

    if rank == 0:
        # Just print the path - runner.py will load the HDF5
        print(f"RESULT:{solver.metrics.output_path}", flush=True)


if __name__ == "__main__":
    main(sys.argv)
