# sweep.py
"""
Establishment probability over a grid of drug efficacies, one curve per
drug scenario, with optional joblib parallelism and tqdm progress.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional, Sequence
import logging

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm.auto import tqdm

from .establishment import phi_burst, phi_infectivity
from .parameters import ModelParameters, get_default_parameters
from .results import ProbabilityCurve

logger = logging.getLogger(__name__)

DEFAULT_NPTS = 101

# scenario label -> probability function phi(eps, params)
SCENARIOS: Dict[str, Callable[[float, ModelParameters], float]] = {
    "burst": phi_burst,
    "infectivity": phi_infectivity,
}


def efficacy_grid(npts: int = DEFAULT_NPTS, lo: float = 0.0, hi: float = 1.0) -> np.ndarray:
    """npts evenly spaced efficacies from lo to hi, both included."""
    if not (isinstance(npts, (int, np.integer)) and npts >= 2):
        raise ValueError(f"npts must be an integer >= 2 (got {npts}).")
    if not (0.0 <= lo < hi <= 1.0):
        raise ValueError(f"need 0 <= lo < hi <= 1 (got lo={lo}, hi={hi}).")
    return np.linspace(lo, hi, npts)


def sweep(
    fn: Callable[[float, ModelParameters], float],
    params: ModelParameters,
    grid: Optional[Sequence[float]] = None,
    npts: int = DEFAULT_NPTS,
    scenario: Optional[str] = None,
    n_jobs: int = 1,
    backend: Optional[str] = None,
    progress: bool = False,
) -> ProbabilityCurve:
    """
    Evaluate fn(eps, params) at every efficacy of the grid.

    Args:
        fn: Probability function, e.g. phi_burst
        params: ModelParameters shared by every grid point
        grid: Efficacy values; default efficacy_grid(npts)
        npts: Grid size when grid is None
        scenario: Label stored on the curve (default: fn.__name__)
        n_jobs: joblib workers; 1 evaluates in a plain loop
        backend: joblib backend used when n_jobs != 1 (None = joblib default, "loky")
        progress: Show a tqdm progress bar

    Returns:
        ProbabilityCurve in grid order. Errors raised by fn propagate.
    """
    if grid is None:
        grid = efficacy_grid(npts)
    grid = np.asarray(grid, dtype=float)
    if grid.ndim != 1:
        raise ValueError("grid must be 1-D.")
    if scenario is None:
        scenario = getattr(fn, "__name__", "scenario")

    points = tqdm(grid, desc=f"phi {scenario}", disable=not progress)

    if n_jobs == 1:
        values = [fn(float(eps), params) for eps in points]
    else:
        # Parallel returns results in submission order
        values = Parallel(n_jobs=n_jobs, backend=backend)(
            delayed(fn)(float(eps), params) for eps in points
        )

    logger.debug("Swept %s over %d efficacies (n_jobs=%s)", scenario, grid.size, n_jobs)
    return ProbabilityCurve(scenario=scenario, efficacy=grid, probability=np.asarray(values, dtype=float))


def compare_scenarios(
    params: Optional[ModelParameters] = None,
    npts: int = DEFAULT_NPTS,
    grid: Optional[Sequence[float]] = None,
    n_jobs: int = 1,
    backend: Optional[str] = None,
    progress: bool = False,
) -> Dict[str, ProbabilityCurve]:
    """
    Both drug scenarios on the same grid: {"burst": ..., "infectivity": ...}.
    """
    if params is None:
        params = get_default_parameters()
    if grid is None:
        grid = efficacy_grid(npts)

    return {
        name: sweep(
            fn,
            params,
            grid=grid,
            scenario=name,
            n_jobs=n_jobs,
            backend=backend,
            progress=progress,
        )
        for name, fn in SCENARIOS.items()
    }


def curves_to_dataframe(curves: Dict[str, ProbabilityCurve]) -> pd.DataFrame:
    """Long-format table with columns scenario, efficacy, probability."""
    frames = [curve.to_dataframe() for curve in curves.values()]
    if not frames:
        return pd.DataFrame(columns=["scenario", "efficacy", "probability"])
    return pd.concat(frames, ignore_index=True)
