"""Firewall engine backends."""

from fwb.backends.base import Backend, Decision, Family, Outcome, OutcomeStatus
from fwb.backends.factory import (
    Engine,
    Supported,
    Unsupported,
    build_backend,
    require_backend,
)
from fwb.backends.pf import PfBackend, PfTableContext

__all__ = [
    "Backend",
    "Decision",
    "Family",
    "Outcome",
    "OutcomeStatus",
    "Engine",
    "Supported",
    "Unsupported",
    "build_backend",
    "require_backend",
    "PfBackend",
    "PfTableContext",
]
