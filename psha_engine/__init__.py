"""
Probabilistic seismic hazard analysis for a single seismic source.

Modules:
- mfd: Magnitude-frequency distributions.
- gmm: Ground motion models (Abrahamson & Silva 1997).
- hazard: Functions for computing seismic hazard.
- disagg: Functions for computing the magnitude-epsilon disaggregation.
- uhs: Functions for computing uniform hazard spectra (UHS).
- config: Loading of hazard scenario configurations.
- errors: Exceptions and warnings.
- utils: Utility functions.
"""

from . import (
    config,
    disagg,
    errors,
    gmm,
    hazard,
    mfd,
    uhs,
    utils,
)
from .errors import InvalidParameterError, ModelRangeWarning, NumericDegeneracyError

__all__ = [
    "config",
    "disagg",
    "errors",
    "gmm",
    "hazard",
    "mfd",
    "uhs",
    "utils",
    "InvalidParameterError",
    "ModelRangeWarning",
    "NumericDegeneracyError",
]
