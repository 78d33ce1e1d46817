# odes.py
"""
Global ODE system for the within-host infection model.

dy/dt = f(t, y, params)

This module sums the contributions of each submodel:
- Infection (target cells, eclipse and productive cells, virion entry)
- Virions (production and clearance of infectious and non-infectious virus)

The system is autonomous; t is only part of the signature for the solver.
"""

from __future__ import annotations

import numpy as np

from .parameters import ModelParameters
from .infection_submodel import update_dydt_infection
from .virion_submodel import update_dydt_virions


def rhs(t: float, y: np.ndarray, params: ModelParameters) -> np.ndarray:
    """
    Full right-hand side of the ODE system dy/dt = f(t, y, params).

    Args:
        t: Time (days)
        y: State vector [N_STATES]
        params: ModelParameters instance

    Returns:
        dydt: Derivative vector [N_STATES]
    """
    y = np.asarray(y, dtype=float)
    dydt = np.zeros_like(y)

    update_dydt_infection(t, y, params, dydt)
    update_dydt_virions(t, y, params, dydt)

    return dydt
