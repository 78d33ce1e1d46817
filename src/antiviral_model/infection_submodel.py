# infection_submodel.py
"""
Infection submodel.
-------------------

Contribution of cell infection to dy/dt:

- target cells T are infected at rate (1 - eps_beta) * beta * T * V_I
- each infection removes one infectious virion
- newly infected cells sit in the eclipse phase I1 and leave it at rate k
- productive cells I2 die at rate delta

    infection = (1 - eps_beta) * beta * T * V_I
    dI1/dt = infection - k * I1
    dI2/dt = k * I1 - delta * I2
    dT/dt  = -infection
    dV_I/dt += -infection
"""

from __future__ import annotations

import numpy as np

from .parameters import ModelParameters
from .state_vector import StateIx


def infection_rate(y: np.ndarray, params: ModelParameters) -> float:
    """Rate of new cell infections, (1 - eps_beta) * beta * T * V_I."""
    prim = params.primary
    T = y[StateIx.TARGET_CELLS]
    V_I = y[StateIx.VIRIONS]
    return (1.0 - prim.eps_beta) * params.derived.beta * T * V_I


def update_dydt_infection(
    t: float,
    y: np.ndarray,
    params: ModelParameters,
    dydt: np.ndarray,
) -> None:
    """
    Update infection-related entries of dydt in place.

    Args:
        t: Time (days). Included for compatibility; not used directly here.
        y: State vector [I1, I2, V_I, V_NI, T]
        params: ModelParameters
        dydt: Array of same shape as y; this function *adds* its contributions to dydt.
    """
    prim = params.primary

    I1 = y[StateIx.ECLIPSE_CELLS]
    I2 = y[StateIx.INFECTED_CELLS]

    infection = infection_rate(y, params)

    dydt[StateIx.TARGET_CELLS] += -infection
    dydt[StateIx.ECLIPSE_CELLS] += infection - prim.k * I1
    dydt[StateIx.INFECTED_CELLS] += prim.k * I1 - prim.delta * I2

    # Virions entering cells are lost from the free pool
    dydt[StateIx.VIRIONS] += -infection
