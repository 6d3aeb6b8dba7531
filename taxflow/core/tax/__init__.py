"""
Tax calculation for resolved jurisdictions.
"""

from .calculator import CENT, calculate, round2

__all__ = ["CENT", "calculate", "round2"]
