# results.py
"""
Result containers handed to the plotting / UI layer.

Both are immutable: the arrays are copied and flagged read-only on construction.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd

from .state_vector import N_STATES, STATE_NAMES, StateIx


def _readonly(a, ndim: int) -> np.ndarray:
    arr = np.array(a, dtype=float)
    if arr.ndim != ndim:
        raise ValueError(f"expected a {ndim}-D array (got shape {arr.shape}).")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Trajectory:
    """
    Solution of the ODE system on a fixed time grid.

    t : time points (days) [n_time], ascending
    y : states [N_STATES, n_time], rows ordered as StateIx
    """
    t: np.ndarray
    y: np.ndarray

    def __post_init__(self) -> None:
        t = _readonly(self.t, 1)
        y = _readonly(self.y, 2)
        if y.shape != (N_STATES, t.size):
            raise ValueError(f"y must have shape ({N_STATES}, {t.size}) (got {y.shape}).")
        object.__setattr__(self, "t", t)
        object.__setattr__(self, "y", y)

    def __len__(self) -> int:
        return int(self.t.size)

    def __getitem__(self, ix: StateIx) -> np.ndarray:
        return self.y[StateIx(ix)]

    @property
    def eclipse_cells(self) -> np.ndarray:
        return self.y[StateIx.ECLIPSE_CELLS]

    @property
    def infected_cells(self) -> np.ndarray:
        return self.y[StateIx.INFECTED_CELLS]

    @property
    def virions(self) -> np.ndarray:
        return self.y[StateIx.VIRIONS]

    @property
    def virions_noninf(self) -> np.ndarray:
        return self.y[StateIx.VIRIONS_NONINF]

    @property
    def target_cells(self) -> np.ndarray:
        return self.y[StateIx.TARGET_CELLS]

    def state_at(self, i: int) -> Dict[str, float]:
        """State at sample i, keyed by column name."""
        return {STATE_NAMES[ix]: float(self.y[ix, i]) for ix in StateIx}

    def final_state(self) -> Dict[str, float]:
        return self.state_at(-1)

    def to_dataframe(self) -> pd.DataFrame:
        data = {"time": self.t}
        for ix in StateIx:
            data[STATE_NAMES[ix]] = self.y[ix]
        return pd.DataFrame(data)


@dataclass(frozen=True, eq=False)
class ProbabilityCurve:
    """
    Establishment probability over a grid of drug efficacies.

    scenario    : which drug effect was varied ("burst", "infectivity", ...)
    efficacy    : efficacy values [npts], in grid order
    probability : establishment probability at each efficacy [npts]
    """
    scenario: str
    efficacy: np.ndarray
    probability: np.ndarray

    def __post_init__(self) -> None:
        eff = _readonly(self.efficacy, 1)
        prob = _readonly(self.probability, 1)
        if eff.shape != prob.shape:
            raise ValueError(
                f"efficacy and probability lengths differ ({eff.size} vs {prob.size})."
            )
        object.__setattr__(self, "efficacy", eff)
        object.__setattr__(self, "probability", prob)

    def __len__(self) -> int:
        return int(self.efficacy.size)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "scenario": self.scenario,
                "efficacy": self.efficacy,
                "probability": self.probability,
            }
        )
