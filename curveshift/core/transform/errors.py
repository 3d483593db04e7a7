"""Exception types for the curve-transformation engine.

Every error is fatal to the current call: the engine never retries and never
writes partial state before raising.
"""

from __future__ import annotations


class CurveShiftError(Exception):
    """Base class for engine failures."""


class OrderingViolation(CurveShiftError):
    """Raised when the engine runs after the pending trade was already priced.

    This is a caller bug, not a runtime condition.
    """

    def __init__(self, amount_in: int, amount_out: int) -> None:
        self.amount_in = amount_in
        self.amount_out = amount_out
        super().__init__(
            f"transform must run before swap amounts are set: amount_in={amount_in}, amount_out={amount_out}"
        )


class InvalidPrice(CurveShiftError):
    """Raised when the price source reports a zero price."""

    def __init__(self, token_in: str, token_out: str) -> None:
        self.token_in = token_in
        self.token_out = token_out
        super().__init__(f"price source returned zero price for {token_in}/{token_out}")


class PriceSourceUnavailable(CurveShiftError):
    """Raised when the price source call fails or its response cannot be decoded."""


class BalanceBoundsError(CurveShiftError):
    """Raised when a shifted balance leaves the unsigned balance domain."""

    def __init__(self, side: str, value: int) -> None:
        self.side = side
        self.value = value
        super().__init__(f"adjusted balance_{side} out of bounds: {value}")


class CurveInvariantError(CurveShiftError):
    """Raised when a computed state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
