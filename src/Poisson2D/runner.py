"""Run the distributed solver via mpiexec subprocess."""

import json
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path


def run_solver(N: int, n_ranks: int = 1, output_dir: str = None, **kwargs) -> dict:
    """Run the solver with N columns on n_ranks MPI processes.

    Parameters
    ----------
    N : int
        Column count (rows default to N).
    n_ranks : int
        Number of MPI ranks.
    output_dir : str, optional
        Directory for the HDF5 result (temp dir if not provided).
    **kwargs
        Extra GlobalParams fields: rows, tolerance, max_iter, n_threads,
        use_numba, problem.

    Returns
    -------
    dict
        Result attributes plus 'u' (gathered grid) and 'path', or an
        'error' key on failure.
    """
    mpiexec = shutil.which("mpiexec")
    if mpiexec is None:
        return {"error": "mpiexec not found"}

    use_temp = output_dir is None
    if use_temp:
        output_dir = tempfile.mkdtemp(prefix="poisson2d-")
    try:
        return _run_mpiexec(mpiexec, N, n_ranks, output_dir, kwargs)
    finally:
        if use_temp:
            shutil.rmtree(output_dir, ignore_errors=True)


def _run_mpiexec(mpiexec, N, n_ranks, output_dir, kwargs):
    from .postprocessing import load_result

    config = {"N": N, "n_ranks": n_ranks, "mode": "mpi", "output_dir": output_dir,
              "output_ext": "h5", **kwargs}
    cmd = [mpiexec, "-n", str(n_ranks), sys.executable, "-m",
           "Poisson2D.helpers.runner_helper", json.dumps(config)]

    proc = subprocess.run(cmd, capture_output=True, text=True)
    if proc.returncode != 0:
        return {"error": proc.stderr}

    marker = [line for line in proc.stdout.splitlines() if line.startswith("RESULT:")]
    if not marker:
        return {"error": "No output file reported", "stderr": proc.stderr}
    path = Path(marker[-1][len("RESULT:"):])

    data = load_result(path)
    result = dict(data["results"])
    result["u"] = data["fields"]["u"]
    result["path"] = str(path)

    return result
