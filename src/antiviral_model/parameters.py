# parameters.py
from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from typing import Dict, Optional, Tuple
import logging
import math

from .exceptions import DerivationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrimaryParameters:
    R0: float = 7.69 # Basic reproduction number
    B: float = 18800 # (virions/cell) Burst size, virions produced per infected cell over its lifetime
    V0: int = 10 # (virions) Initial number of infectious virions
    mu: float = 0.001 # Proportion of produced virions that are infectious
    c: float = 10 # (1/day) Rate of virus clearance
    T0: float = 1330 # (cells) Initial number of target cells
    k: float = 5 # (1/day) Rate of transition out of the eclipse phase
    delta: float = 0.595 # (1/day) Death rate of virion-producing cells
    eps_beta: float = 0.0 # Efficacy of a drug reducing virus infectivity beta
    eps_p: float = 0.0 # Efficacy of a drug reducing virus production p (and burst size B)

    def __post_init__(self) -> None:
        for name in ("R0", "B", "c", "T0", "k", "delta"):
            _validate_positive(name, getattr(self, name))
        _validate_unit_interval("mu", self.mu)
        _validate_efficacy("eps_beta", self.eps_beta)
        _validate_efficacy("eps_p", self.eps_p)
        object.__setattr__(self, "V0", _as_non_negative_int("V0", self.V0))

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class DerivedParameters:
    p: float # (virions/cell/day) Virion production rate, p = B * delta
    beta: float # (1/(virion*day)) Infectivity rate, from R0 = mu*p*beta*T0 / (delta*(c + beta*T0))


@dataclass(frozen=True)
class ModelParameters:
    primary: PrimaryParameters = field(default_factory=PrimaryParameters)
    derived: Optional[DerivedParameters] = None

    def __post_init__(self) -> None:
        if self.derived is None:
            object.__setattr__(self, "derived", derive_parameters(self.primary))
        else:
            _check_derived(self.primary, self.derived)

    @classmethod
    def from_primary(cls, primary: PrimaryParameters) -> "ModelParameters":
        return cls(primary=primary, derived=derive_parameters(primary))

    @classmethod
    def from_values(cls, **values) -> "ModelParameters":
        """Build from keyword values; anything not given keeps its default."""
        return cls.from_primary(PrimaryParameters(**values))

    def with_efficacy(
        self,
        eps_beta: float | None = None,
        eps_p: float | None = None,
    ) -> "ModelParameters":
        """
        Return a copy with new drug efficacies.

        Neither efficacy enters p or beta, so the derived block is reused.
        """
        changes = {}
        if eps_beta is not None:
            changes["eps_beta"] = eps_beta
        if eps_p is not None:
            changes["eps_p"] = eps_p
        return ModelParameters(primary=replace(self.primary, **changes), derived=self.derived)

    def as_dict(self) -> Dict[str, float]:
        out = self.primary.as_dict()
        out.update(p=self.derived.p, beta=self.derived.beta)
        return out


def get_default_parameters() -> ModelParameters:
    """
    Return a ModelParameters object with all default (reference) values.
    """
    return ModelParameters.from_primary(PrimaryParameters())


def derive_parameters(primary: PrimaryParameters) -> DerivedParameters:
    """
    Compute the mechanistic rates p and beta from the primary inputs.

    p = B * delta
    beta = R0 * c / ((mu * p / delta - R0) * T0)

    beta only exists when mu * p / delta > R0, i.e. when an infected cell
    releases more infectious virions than R0. Otherwise a DerivationError
    is raised with the offending values.
    """
    p = primary.B * primary.delta

    excess = primary.mu * p / primary.delta - primary.R0
    denominator = excess * primary.T0
    offending = {
        "R0": primary.R0,
        "mu": primary.mu,
        "B": primary.B,
        "delta": primary.delta,
        "p": p,
        "T0": primary.T0,
        "mu*p/delta - R0": excess,
    }
    if not math.isfinite(denominator) or denominator <= 0.0:
        raise DerivationError(
            f"beta is undefined: mu*p/delta - R0 = {excess:g} must be > 0 "
            f"(mu={primary.mu}, p={p}, delta={primary.delta}, R0={primary.R0})",
            parameters=offending,
        )

    beta = primary.R0 * primary.c / denominator
    if not math.isfinite(beta) or beta <= 0.0:
        raise DerivationError(f"beta is not a finite positive rate (got {beta}).", parameters=offending)

    logger.debug("Derived p=%g, beta=%g", p, beta)
    return DerivedParameters(p=p, beta=beta)


def _check_derived(primary: PrimaryParameters, derived: DerivedParameters) -> None:
    """A caller-supplied derived block must agree with the primary inputs."""
    p = primary.B * primary.delta
    offending = {"B": primary.B, "delta": primary.delta, "p": derived.p, "beta": derived.beta}
    if derived.p != p:
        raise DerivationError(f"p must equal B * delta = {p!r} (got {derived.p!r}).", parameters=offending)
    if not (math.isfinite(derived.beta) and derived.beta > 0.0):
        raise DerivationError(f"beta must be a finite positive rate (got {derived.beta!r}).", parameters=offending)


# Reference slider ranges: (min, max); None means unbounded on that side
PARAMETER_BOUNDS: Dict[str, Tuple[float | None, float | None]] = {
    "R0": (2.0, 20.0),
    "B": (1880.0, 188000.0),
    "V0": (1, 50),
    "mu": (0.0, 0.1),
    "c": (1.0, 20.0),
    "T0": (0.0, None),
    "k": (1.0, 10.0),
    "delta": (0.1, 1.0),
    "eps_beta": (0.0, 0.99),
    "eps_p": (0.0, 0.99),
}


def out_of_bounds(primary: PrimaryParameters) -> Dict[str, float]:
    """
    Values outside the reference ranges, keyed by parameter name.

    The model itself accepts them; this is for callers that want to flag them.
    """
    flagged = {}
    for name, (lo, hi) in PARAMETER_BOUNDS.items():
        value = getattr(primary, name)
        if (lo is not None and value < lo) or (hi is not None and value > hi):
            flagged[name] = value
    return flagged


def describe_derived(params: ModelParameters) -> Dict[str, str]:
    """
    Formula + value strings for p and beta, for informational display.
    """
    p = params.derived.p
    beta = params.derived.beta
    return {
        "p": f"p = B δ = {p:.15g}",
        "beta": f"β = R0 c / ((μ p/δ − R0) T0) = {beta:.1e}",
    }


# --------------------------
# Small input validators
# --------------------------
def _validate_finite(name: str, x: float) -> None:
    if isinstance(x, bool) or not (isinstance(x, (int, float)) or hasattr(x, "__float__")):
        raise ValueError(f"{name} must be a real number (got {x!r}).")
    if not math.isfinite(float(x)):
        raise ValueError(f"{name} must be finite (got {x}).")

def _validate_positive(name: str, x: float) -> None:
    _validate_finite(name, x)
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")

def _validate_unit_interval(name: str, x: float) -> None:
    _validate_finite(name, x)
    if not (0.0 <= x <= 1.0):
        raise ValueError(f"{name} must be in [0, 1] (got {x}).")

def _validate_efficacy(name: str, x: float) -> None:
    _validate_finite(name, x)
    if not (0.0 <= x < 1.0):
        raise ValueError(f"{name} must be in [0, 1) (got {x}).")

def _as_non_negative_int(name: str, x) -> int:
    _validate_finite(name, x)
    if float(x) != int(x) or int(x) < 0:
        raise ValueError(f"{name} must be a non-negative integer (got {x}).")
    return int(x)
