# virion_submodel.py
"""
Virion production and clearance.

Productive cells release (1 - eps_p) * p virions per day, a fraction mu of
them infectious. Each virion pool is cleared at rate c:

    dV_I/dt  += mu * (1 - eps_p) * p * I2 - c * V_I
    dV_NI/dt += (1 - mu) * (1 - eps_p) * p * I2 - c * V_NI
"""

from __future__ import annotations

import numpy as np

from .parameters import ModelParameters
from .state_vector import StateIx


def update_dydt_virions(
    t: float,
    y: np.ndarray,
    params: ModelParameters,
    dydt: np.ndarray,
) -> None:
    prim = params.primary

    I2 = y[StateIx.INFECTED_CELLS]
    V_I = y[StateIx.VIRIONS]
    V_NI = y[StateIx.VIRIONS_NONINF]

    # Production under a drug blocking a fraction eps_p of it
    production = (1.0 - prim.eps_p) * params.derived.p * I2

    dydt[StateIx.VIRIONS] += prim.mu * production - prim.c * V_I
    # Non-infectious pool clears against its own abundance
    dydt[StateIx.VIRIONS_NONINF] += (1.0 - prim.mu) * production - prim.c * V_NI
