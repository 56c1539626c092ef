"""
Footprint calculation package.
"""

from .calculator import EmissionCalculator, EMISSION_COEFFICIENTS

__all__ = [
    "EmissionCalculator",
    "EMISSION_COEFFICIENTS",
]
