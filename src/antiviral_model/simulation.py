# simulation.py
"""
Within-host simulation: integrates the ODE system on a fixed time grid.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple
import logging
import math

import numpy as np
from scipy.integrate import solve_ivp

from .exceptions import IntegrationError
from .odes import rhs
from .parameters import ModelParameters, get_default_parameters, out_of_bounds
from .results import Trajectory
from .state_vector import get_initial_state

logger = logging.getLogger(__name__)

DEFAULT_T_END = 40.0  # days
DEFAULT_DT = 0.01     # days


@dataclass(frozen=True)
class SolverSettings:
    method: str = "LSODA"  # switches between Adams and BDF as stiffness changes
    rtol: float = 1e-6
    atol: float = 1e-6
    max_step: Optional[float] = None  # None = automatic
    max_rhs_evals: Optional[int] = 1_000_000  # None = no ceiling


class _EvaluationBudgetExceeded(Exception):
    def __init__(self, t: float):
        super().__init__(t)
        self.t = t


def time_grid(t_end: float = DEFAULT_T_END, dt: float = DEFAULT_DT, t0: float = 0.0) -> np.ndarray:
    """
    Uniform output grid t0, t0 + dt, ..., t_end (both ends included).

    If dt does not divide the span, the last step is shortened to land on t_end.
    """
    if not (math.isfinite(t0) and math.isfinite(t_end) and t_end > t0):
        raise ValueError(f"t_end must be finite and > t0 (got t0={t0}, t_end={t_end}).")
    if not (math.isfinite(dt) and dt > 0):
        raise ValueError(f"dt must be > 0 (got {dt}).")

    span = t_end - t0
    n = int(round(span / dt))
    if n >= 1 and math.isclose(n * dt, span, rel_tol=1e-9, abs_tol=0.0):
        return np.linspace(t0, t_end, n + 1)

    grid = t0 + dt * np.arange(int(math.floor(span / dt)) + 1)
    if grid[-1] < t_end:
        grid = np.append(grid, t_end)
    return grid


def integrate(
    fun: Callable[[float, np.ndarray, ModelParameters], np.ndarray],
    y0: Sequence[float],
    params: ModelParameters,
    times: Sequence[float],
    settings: Optional[SolverSettings] = None,
) -> Trajectory:
    """
    Integrate dy/dt = fun(t, y, params) from times[0] and sample at every entry of times.

    Args:
        fun: Right-hand side, fun(t, y, params) -> dydt
        y0: State at times[0]
        params: Passed through to fun
        times: Strictly ascending output times
        settings: Solver settings (default SolverSettings())

    Returns:
        Trajectory with one state per requested time.

    Raises:
        IntegrationError if the solver fails, runs out of its evaluation
        budget, or produces non-finite states.
    """
    if settings is None:
        settings = SolverSettings()

    times = np.asarray(times, dtype=float)
    if times.ndim != 1 or times.size == 0:
        raise ValueError("times must be a non-empty 1-D sequence.")
    if not np.all(np.isfinite(times)):
        raise ValueError("times must be finite.")
    if np.any(np.diff(times) <= 0):
        raise ValueError("times must be strictly ascending.")

    y0 = np.asarray(y0, dtype=float)
    if times.size == 1:
        return Trajectory(t=times, y=y0[:, None])

    n_evals = 0
    last_t = float(times[0])

    def counted_fun(t, y):
        nonlocal n_evals, last_t
        n_evals += 1
        if settings.max_rhs_evals is not None and n_evals > settings.max_rhs_evals:
            raise _EvaluationBudgetExceeded(last_t)
        last_t = float(t)
        return fun(t, y, params)

    solve_kwargs = {
        "fun": counted_fun,
        "t_span": (float(times[0]), float(times[-1])),
        "y0": y0,
        "t_eval": times,
        "method": settings.method,
        "rtol": settings.rtol,
        "atol": settings.atol,
    }
    if settings.max_step is not None:
        solve_kwargs["max_step"] = settings.max_step

    try:
        sol = solve_ivp(**solve_kwargs)
    except _EvaluationBudgetExceeded as exc:
        raise IntegrationError(
            f"ODE solver exceeded {settings.max_rhs_evals} right-hand-side evaluations",
            last_time=exc.t,
        ) from None

    if not sol.success:
        reached = float(sol.t[-1]) if sol.t.size else last_t
        raise IntegrationError(f"ODE solver failed: {sol.message}", last_time=reached)

    if sol.t.size != times.size:
        reached = float(sol.t[-1]) if sol.t.size else last_t
        raise IntegrationError(
            f"ODE solver returned {sol.t.size} of {times.size} requested samples",
            last_time=reached,
        )

    finite = np.all(np.isfinite(sol.y), axis=0)
    if not np.all(finite):
        first_bad = int(np.argmin(finite))
        reached = float(times[first_bad - 1]) if first_bad > 0 else float(times[0])
        raise IntegrationError(
            f"ODE solution became non-finite at t={times[first_bad]:g}",
            last_time=reached,
        )

    # Dense output at t0 is an interpolant; the initial condition is exact
    y = np.array(sol.y, dtype=float)
    y[:, 0] = y0

    logger.debug("Integrated %d samples with %s in %d RHS evaluations", times.size, settings.method, n_evals)
    return Trajectory(t=times, y=y)


def simulate_infection(
    params: Optional[ModelParameters] = None,
    t_span: Tuple[float, float] = (0.0, DEFAULT_T_END),
    t_eval: Optional[np.ndarray] = None,
    dt: float = DEFAULT_DT,
    settings: Optional[SolverSettings] = None,
    **overrides,
) -> Trajectory:
    """
    Simulate the within-host dynamics from inoculation.

    Args:
        params: ModelParameters instance (default: reference parameters)
        t_span: (t0, t_end) time span in days
        t_eval: Optional output times. If given, integration starts at t_eval[0]
                and t_span / dt are ignored.
        dt: Output spacing when t_eval is None (default 0.01 day)
        settings: Solver settings
        **overrides: PrimaryParameters fields replacing those of params
                     (e.g. eps_p=0.5); p and beta are re-derived

    Returns:
        Trajectory with states [I1, I2, V_I, V_NI, T] over time.
    """
    if params is None:
        params = get_default_parameters()
    if overrides:
        params = ModelParameters.from_primary(replace(params.primary, **overrides))

    flagged = out_of_bounds(params.primary)
    if flagged:
        logger.warning("Parameters outside the reference ranges: %s", flagged)

    if t_eval is None:
        t0, t_end = t_span
        t_eval = time_grid(t_end=t_end, dt=dt, t0=t0)

    y0 = get_initial_state(params)

    logger.debug(
        "Simulating infection: R0=%g, beta=%g, eps_beta=%g, eps_p=%g over [%g, %g]",
        params.primary.R0, params.derived.beta, params.primary.eps_beta, params.primary.eps_p,
        t_eval[0], t_eval[-1],
    )
    return integrate(rhs, y0, params, t_eval, settings=settings)
