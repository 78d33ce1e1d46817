# exceptions.py
"""
Typed failures raised by the within-host model.

Each error carries the values needed to explain it, so the caller can
decide what to do (adjust a slider, re-run with other parameters, ...).
"""

from __future__ import annotations
from typing import Any, Dict, Optional


class AntiviralModelError(RuntimeError):
    """Base class for model failures."""
    pass


class DerivationError(AntiviralModelError):
    """beta cannot be derived: mu * p / delta - R0 is zero or negative."""

    def __init__(self, message: str, parameters: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.parameters = dict(parameters or {})


class DomainError(AntiviralModelError):
    """An establishment probability is undefined for this parameter set."""

    def __init__(
        self,
        message: str,
        parameters: Optional[Dict[str, Any]] = None,
        efficacy: Optional[float] = None,
    ):
        super().__init__(message)
        self.parameters = dict(parameters or {})
        self.efficacy = efficacy


class IntegrationError(AntiviralModelError):
    """The ODE solver could not cover the requested time span."""

    def __init__(self, message: str, last_time: Optional[float] = None):
        if last_time is not None:
            message = f"{message} (last time reached: {last_time:g})"
        super().__init__(message)
        self.last_time = last_time
