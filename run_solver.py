"""
Unified Solver Runner - runs sequential/threaded in-process or MPI via mpiexec.

Usage:
    python run_solver.py N=257
    python run_solver.py N=257 mode=threaded n_threads=4
    python run_solver.py N=257 n_ranks=4 n_threads=2 output_ext=h5
    python run_solver.py -m N=129,257 n_ranks=1,2,4
"""

import json
import logging
import os
import subprocess
import sys
from dataclasses import fields

import hydra
from omegaconf import DictConfig, OmegaConf

log = logging.getLogger(__name__)


def _build_params(cfg: DictConfig):
    """GlobalParams from the Hydra config (unknown keys ignored)."""
    from Poisson2D import GlobalParams

    names = {f.name for f in fields(GlobalParams) if f.init}
    values = {k: v for k, v in OmegaConf.to_container(cfg, resolve=True).items() if k in names}
    if values.get("n_ranks", 1) > 1:
        values["mode"] = "mpi"
    return GlobalParams(**values)


def _log_mlflow(cfg: DictConfig, params, metrics, timeseries=None):
    if not cfg.mlflow.enabled:
        return
    from Poisson2D.tracking import setup_mlflow_tracking, log_run

    setup_mlflow_tracking(mode=cfg.mlflow.mode)
    log_run(params, metrics, timeseries, artifact=metrics.output_path)


def _run_local(cfg: DictConfig, params):
    """Run sequential or threaded solver in this process."""
    from Poisson2D import create_solver

    solver = create_solver(params)
    try:
        if params.use_numba:
            solver.warmup()
        solver.solve()
    finally:
        solver.close()
    _log_mlflow(cfg, params, solver.metrics, solver.timeseries)


def _spawn_mpi(cfg: DictConfig, params):
    """Spawn mpiexec running the MPI helper on n_ranks processes."""
    from Poisson2D import GlobalMetrics, load_result

    config = {f.name: getattr(params, f.name) for f in fields(params) if f.init}
    cmd = ["mpiexec", "-n", str(params.n_ranks)]
    if cfg.mpi.get("bind_to"):
        cmd.extend(["--report-bindings", "--bind-to", str(cfg.mpi.bind_to)])
    cmd.extend([sys.executable, "-m", "Poisson2D.helpers.runner_helper", json.dumps(config)])

    result = subprocess.run(cmd, capture_output=True, text=True, env=os.environ.copy())
    output_path = None
    for line in (result.stdout or "").strip().split("\n"):
        if line.startswith("RESULT:"):
            output_path = line[len("RESULT:"):]
        elif line:
            log.info(line)
    for line in (result.stderr or "").strip().split("\n"):
        if line:
            log.warning(line) if "error" in line.lower() else log.info(line)

    if result.returncode != 0:
        log.error("mpiexec exited with code %d", result.returncode)
        sys.exit(result.returncode)

    if output_path and output_path.endswith(".h5"):
        attrs = load_result(output_path)["results"]
        known = {f.name for f in fields(GlobalMetrics)}
        metrics = GlobalMetrics(**{k: v for k, v in attrs.items() if k in known})
        _log_mlflow(cfg, params, metrics)


@hydra.main(config_path="Experiments/hydra-conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Entry point - runs in-process or spawns MPI based on n_ranks."""
    params = _build_params(cfg)
    log.info(
        "%s, grid=%dx%d, n_ranks=%d, n_threads=%d",
        params.mode, params.rows, params.N, params.n_ranks, params.n_threads,
    )

    if params.n_ranks == 1:
        _run_local(cfg, params)
    else:
        _spawn_mpi(cfg, params)


if __name__ == "__main__":
    main()
