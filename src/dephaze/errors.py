"""Exceptions raised by dephaze.

Only caller mistakes raise.  Numeric trouble (near-zero denominators,
overflowing exponentials, NaN) is absorbed where it happens and replaced
with a documented default, and data gaps are resolved by hole filling.
"""


class DephazeError(Exception):
    """Base exception for dephaze errors."""
    pass


class InvalidInputError(DephazeError, ValueError):
    """Rejected argument: non-positive order, resolution, budget or radius,
    out-of-range direction, unknown strategy name or malformed document."""
    pass


__all__ = ['DephazeError', 'InvalidInputError']
