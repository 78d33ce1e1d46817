# establishment.py
"""
Probability that an inoculum of V0 infectious virions establishes an infection.

For a branching process started by V0 virions,

    phi = 0                                   if R0 < 1
    phi = 1 - (1 - (R0 - 1) / (mu * B))^V0    otherwise.

Two drug scenarios change the inputs of this formula:

- a drug reducing virus production p by (1 - eps) reduces both B and R0
  by (1 - eps);
- a drug reducing infectivity beta by (1 - eps) only changes R0, by the
  factor 1 - e(eps) with e(eps) = c * eps / (c + (1 - eps) * beta * T0).
"""

from __future__ import annotations
from typing import Optional, Sequence
import math

import numpy as np

from .exceptions import DomainError
from .parameters import ModelParameters


def _check_efficacy(name: str, eps: float) -> float:
    eps = float(eps)
    if not (math.isfinite(eps) and 0.0 <= eps <= 1.0):
        raise ValueError(f"{name} must be in [0, 1] (got {eps}).")
    return eps


def infectivity_reduction(eps: float, params: ModelParameters) -> float:
    """e(eps): fractional reduction of R0 under a drug blocking infectivity."""
    prim = params.primary
    b = params.derived.beta * prim.T0
    return prim.c * eps / (prim.c + (1.0 - eps) * b)


def effective_r0_burst(eps: float, params: ModelParameters) -> float:
    eps = _check_efficacy("eps", eps)
    return (1.0 - eps) * params.primary.R0


def effective_r0_infectivity(eps: float, params: ModelParameters) -> float:
    eps = _check_efficacy("eps", eps)
    return params.primary.R0 * (1.0 - infectivity_reduction(eps, params))


def establishment_probability(
    r0_eff: float,
    burst: float,
    params: ModelParameters,
    efficacy: Optional[float] = None,
) -> float:
    """
    phi for an effective R0 and an effective burst size.

    Raises DomainError when mu * burst is zero, or when the base of the
    power leaves [0, 1] (which would put phi outside [0, 1]).
    """
    if r0_eff < 1.0:
        return 0.0

    prim = params.primary
    context = {"R0_eff": r0_eff, "B_eff": burst, "mu": prim.mu, "V0": prim.V0}

    scale = prim.mu * burst
    if not (scale > 0.0):
        raise DomainError(
            f"establishment probability undefined: mu * B_eff = {scale:g} "
            f"(mu={prim.mu}, B_eff={burst:g})",
            parameters=context,
            efficacy=efficacy,
        )

    base = 1.0 - (r0_eff - 1.0) / scale
    if not (math.isfinite(base) and 0.0 <= base <= 1.0):
        raise DomainError(
            f"(R0_eff - 1) / (mu * B_eff) = {1.0 - base:g} is outside [0, 1]; "
            "R0_eff is inconsistent with mu and B_eff",
            parameters=context,
            efficacy=efficacy,
        )

    phi = 1.0 - base ** prim.V0
    if not (0.0 <= phi <= 1.0):
        raise DomainError(f"establishment probability {phi} is outside [0, 1]", parameters=context, efficacy=efficacy)
    return float(phi)


def phi_burst(eps: float, params: ModelParameters) -> float:
    """Establishment probability when a drug reduces burst size by (1 - eps)."""
    eps = _check_efficacy("eps", eps)
    burst = (1.0 - eps) * params.primary.B
    r0_eff = (1.0 - eps) * params.primary.R0
    return establishment_probability(r0_eff, burst, params, efficacy=eps)


def phi_infectivity(eps: float, params: ModelParameters) -> float:
    """Establishment probability when a drug reduces infectivity by (1 - eps)."""
    eps = _check_efficacy("eps", eps)
    r0_eff = params.primary.R0 * (1.0 - infectivity_reduction(eps, params))
    return establishment_probability(r0_eff, params.primary.B, params, efficacy=eps)


def phi_combined(eps_p: float, eps_beta: float, params: ModelParameters) -> float:
    """
    Establishment probability under both drugs at once.

    B_eff = (1 - eps_p) * B
    R0_eff = (1 - eps_p) * R0 * (1 - e(eps_beta))

    Reduces to phi_burst when eps_beta = 0 and to phi_infectivity when eps_p = 0.
    """
    eps_p = _check_efficacy("eps_p", eps_p)
    eps_beta = _check_efficacy("eps_beta", eps_beta)
    burst = (1.0 - eps_p) * params.primary.B
    r0_eff = (1.0 - eps_p) * params.primary.R0 * (1.0 - infectivity_reduction(eps_beta, params))
    return establishment_probability(r0_eff, burst, params, efficacy=eps_beta)


# --------------------------
# Threshold efficacies
# --------------------------
def critical_efficacy_burst(params: ModelParameters, r0: Optional[float] = None) -> float:
    """Production efficacy at which R0_eff = 1 (phi_burst is 0 beyond it)."""
    r0 = params.primary.R0 if r0 is None else float(r0)
    if r0 <= 1.0:
        return 0.0
    return 1.0 - 1.0 / r0


def critical_efficacy_infectivity(params: ModelParameters, r0: Optional[float] = None) -> float:
    """
    Infectivity efficacy at which R0_eff = 1.

    Solving r0 * (1 - e(eps)) = 1 gives
        eps* = 1 - c / (r0 * c + (r0 - 1) * beta * T0).
    """
    r0 = params.primary.R0 if r0 is None else float(r0)
    if r0 <= 1.0:
        return 0.0
    prim = params.primary
    b = params.derived.beta * prim.T0
    return 1.0 - prim.c / (r0 * prim.c + (r0 - 1.0) * b)


def combination_threshold(params: ModelParameters, eps_p_grid: Sequence[float]) -> np.ndarray:
    """
    For each production efficacy, the smallest infectivity efficacy that
    brings the combined R0_eff down to 1.
    """
    eps_p_grid = np.asarray(eps_p_grid, dtype=float)
    out = np.empty_like(eps_p_grid)
    for i, eps_p in enumerate(eps_p_grid):
        eps_p = _check_efficacy("eps_p", eps_p)
        out[i] = critical_efficacy_infectivity(params, r0=(1.0 - eps_p) * params.primary.R0)
    return out
