"""Loading of persisted HDF5 results for analysis."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np
import pandas as pd


def load_result(path: Union[str, Path]) -> Dict[str, Any]:
    """Load one HDF5 result file.

    Returns
    -------
    dict
        Keys: 'config' (attrs), 'fields' ({'u': 2-D array}), 'results' (attrs).
    """
    import h5py

    data = {}
    with h5py.File(path, "r") as f:
        data["config"] = dict(f["config"].attrs)
        data["fields"] = {"u": f["fields"]["u"][:]}
        data["results"] = dict(f["results"].attrs)
    return data


def _scalar(value):
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def results_dataframe(paths: Union[str, Path, List[Union[str, Path]]]) -> pd.DataFrame:
    """One row per result file: config attrs, result attrs and the file path."""
    if not isinstance(paths, list):
        paths = [paths]

    rows = []
    for p in paths:
        data = load_result(p)
        row = {k: _scalar(v) for k, v in data["config"].items()}
        row.update({k: _scalar(v) for k, v in data["results"].items()})
        row["path"] = str(p)
        rows.append(row)
    return pd.DataFrame(rows)
