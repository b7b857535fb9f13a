"""Plots of persisted results: solution fields and strong scaling.

Works on the HDF5 files written by the solvers (see ``load_result`` and
``results_dataframe``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .postprocessing import load_result


def plot_solution(path: Union[str, Path], ax: Optional[plt.Axes] = None) -> plt.Axes:
    """Heatmap of the gathered field ``u`` with the domain as extent."""
    data = load_result(path)
    u = data["fields"]["u"]
    x0, x1, y0, y1 = np.asarray(data["config"]["domain"], dtype=float)

    if ax is None:
        _, ax = plt.subplots(figsize=(6, 5))
    image = ax.imshow(u, origin="lower", extent=(x0, x1, y0, y1), cmap="viridis", aspect="auto")
    ax.figure.colorbar(image, ax=ax, label="u")
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    results = data["results"]
    if "worker_count" in results:
        ax.set_title(
            f"{u.shape[0]}x{u.shape[1]} grid, {int(results['worker_count'])} workers, "
            f"{int(results.get('iterations', 0))} iterations"
        )
    return ax


def scaling_table(df: pd.DataFrame, time_col: str = "wall_time") -> pd.DataFrame:
    """Speedup and parallel efficiency per worker count.

    Rows are grouped by ``rows`` and ``worker_count``; times are averaged
    over repeated runs. Speedup is relative to the smallest worker count of
    each grid size.
    """
    table = (
        df.groupby(["rows", "worker_count"], as_index=False)[time_col]
        .mean()
        .sort_values(["rows", "worker_count"])
    )
    base = table.groupby("rows")[time_col].transform("first")
    base_workers = table.groupby("rows")["worker_count"].transform("first")
    table["speedup"] = base / table[time_col]
    table["efficiency"] = table["speedup"] * base_workers / table["worker_count"]
    return table.reset_index(drop=True)


def plot_strong_scaling(df: pd.DataFrame, ax: Optional[plt.Axes] = None) -> plt.Axes:
    """Speedup vs worker count, one line per grid size, with the ideal line."""
    table = scaling_table(df)

    if ax is None:
        _, ax = plt.subplots(figsize=(10, 6))
    sns.lineplot(data=table, x="worker_count", y="speedup", hue="rows", marker="o", ax=ax)

    workers = np.sort(table["worker_count"].unique())
    ax.plot(workers, workers / workers[0], "k--", alpha=0.3, label="Ideal")

    ax.set_xlabel("Number of workers")
    ax.set_ylabel("Speedup (T₁ / Tₙ)")
    ax.set_xscale("log", base=2)
    ax.set_yscale("log", base=2)
    ax.set_title("Strong Scaling: Speedup")
    ax.legend()
    ax.grid(True, alpha=0.3)
    return ax
