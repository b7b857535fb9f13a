"""MLflow experiment tracking for solver runs."""

import logging
import os
from pathlib import Path
from typing import Optional

import mlflow

from .datastructures import GlobalMetrics, GlobalParams, LocalMetrics

log = logging.getLogger(__name__)


def setup_mlflow_tracking(mode: str = "local"):
    """Configure MLflow tracking.

    Parameters
    ----------
    mode : str
        "databricks" or "local" (file backend in ./mlruns).
    """
    if mode == "databricks":
        try:
            mlflow.login(backend="databricks", interactive=False)
            mlflow.set_tracking_uri("databricks")
        except Exception as e:
            raise RuntimeError(
                "MLflow Databricks setup failed. Ensure credentials are configured."
            ) from e
        log.info("Connected to Databricks MLflow tracking")
    elif mode == "local":
        mlruns_uri = (Path.cwd() / "mlruns").as_uri()
        mlflow.set_tracking_uri(mlruns_uri)
        log.info("Using local MLflow tracking backend: %s", mlruns_uri)
    else:
        log.warning("Unknown MLflow mode '%s', using %s", mode, mlflow.get_tracking_uri())


def run_name(config: GlobalParams) -> str:
    return f"{config.mode}_N{config.N}_R{config.rows}_p{config.n_ranks}_t{config.n_threads}"


def log_run(
    config: GlobalParams,
    metrics: GlobalMetrics,
    timeseries: Optional[LocalMetrics] = None,
    artifact: Optional[str] = None,
):
    """Log params, metrics, per-iteration timeseries and the output file."""
    mlflow.set_experiment(config.experiment_name)
    with mlflow.start_run(run_name=run_name(config)):
        mlflow.set_tag("environment", config.environment)
        mlflow.log_params(config.to_mlflow())
        mlflow.log_metrics(metrics.to_mlflow())
        if timeseries is not None:
            batch = timeseries.to_mlflow_batch()
            if batch:
                mlflow.tracking.MlflowClient().log_batch(
                    mlflow.active_run().info.run_id, metrics=batch
                )
        if artifact and os.path.exists(artifact):
            mlflow.log_artifact(artifact)
