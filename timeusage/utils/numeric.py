# ========================
# timeusage/utils/numeric.py
# ========================

"""
Numeric Helpers

Rounding used by the summary and grouping stages. pandas and numpy round
ties to even; survey reports round ties away from zero, the same way the SQL
ROUND function does.
"""

import numpy as np


def round_half_up(values, decimals: int = 0):
    """
    Round to the nearest value with ``decimals`` digits, ties away from zero.

    Works on scalars, numpy arrays and pandas Series; missing values stay
    missing.

    Args:
        values: Number, array or Series to round
        decimals (int): Number of decimal digits to keep

    Returns:
        Rounded values of the same shape
    """
    factor = 10.0 ** decimals
    scaled = values * factor
    truncated = np.trunc(scaled)
    carry = np.where(np.abs(scaled - truncated) >= 0.5, np.sign(scaled), 0.0)
    return (truncated + carry) / factor


# Averages of the same values can differ in the last bits depending on the
# summation order; snapping to this many decimals first makes them equal.
SNAP_DECIMALS = 6


def round_average(values, decimals: int = 1):
    """
    Round group averages half up to ``decimals`` digits.

    The average is first snapped to :data:`SNAP_DECIMALS` digits, so an exact
    tie such as 9.15 rounds up even when the summation left it at
    9.149999999999999.

    Args:
        values: Averages to round (number, array or Series)
        decimals (int): Number of decimal digits to keep

    Returns:
        Rounded values of the same shape
    """
    return round_half_up(round_half_up(values, SNAP_DECIMALS), decimals)
