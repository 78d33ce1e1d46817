# state_vector.py
# single source of truth for the order of states in the ODE vector y

from enum import IntEnum
from typing import Dict
import numpy as np

from .parameters import ModelParameters


class StateIx(IntEnum):
    # Infected cells
    ECLIPSE_CELLS = 0    # I1: infected, not yet producing virions
    INFECTED_CELLS = 1   # I2: producing virions

    # Free virus
    VIRIONS = 2          # V_I: infectious virions
    VIRIONS_NONINF = 3   # V_NI: non-infectious / inactive virions

    # Uninfected cells
    TARGET_CELLS = 4     # T


N_STATES = max(StateIx) + 1  # assumes enum values are 0..N-1

# Column names used in tables
STATE_NAMES: Dict[StateIx, str] = {
    StateIx.ECLIPSE_CELLS: "eclipseCells",
    StateIx.INFECTED_CELLS: "infectedCells",
    StateIx.VIRIONS: "virions",
    StateIx.VIRIONS_NONINF: "virionsNonInfectious",
    StateIx.TARGET_CELLS: "targetCells",
}


def get_initial_state(params: ModelParameters) -> np.ndarray:
    y0 = np.zeros(N_STATES, dtype=float)

    prim = params.primary

    # No infected cells and no non-infectious virus at inoculation
    y0[StateIx.ECLIPSE_CELLS] = 0.0
    y0[StateIx.INFECTED_CELLS] = 0.0
    y0[StateIx.VIRIONS_NONINF] = 0.0

    # Inoculum and fully susceptible target population
    y0[StateIx.VIRIONS] = float(prim.V0)
    y0[StateIx.TARGET_CELLS] = float(prim.T0)
    return y0
