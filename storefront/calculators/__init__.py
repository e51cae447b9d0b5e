"""
Deterministic estimation engine.

Pure Python math over caller-supplied reference snapshots. No I/O.
"""
from .curtain import CurtainCalculator, estimate_treatment

__all__ = ["CurtainCalculator", "estimate_treatment"]
