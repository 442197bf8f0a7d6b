"""Custom exception hierarchy for the quant_analytics library.

All library-specific exceptions inherit from :class:`QuantAnalyticsError`,
enabling callers to catch *any* library error with a single ``except`` clause::

    try:
        result = price_option(contract)
    except QuantAnalyticsError as exc:
        log.error("Library error: %s", exc)
"""

from __future__ import annotations


class QuantAnalyticsError(Exception):
    """Base exception for all library errors."""


# ── Input validation ────────────────────────────────────────────────


class ValidationError(QuantAnalyticsError):
    """Invalid input values (out-of-range, non-finite, mutually exclusive inputs, etc.)."""


class ConfigurationError(QuantAnalyticsError):
    """Wrong types passed to a public API (e.g. raw int instead of enum)."""


# ── Feature support ─────────────────────────────────────────────────


class UnsupportedFeatureError(QuantAnalyticsError):
    """Requested feature combination is not supported."""


# ── Numerical issues ────────────────────────────────────────────────


class NumericalError(QuantAnalyticsError):
    """Base for errors arising from numerical computation."""


class NumericalDomainError(NumericalError):
    """A function was evaluated outside its mathematical domain (log of a
    non-positive number, factorial of a negative or non-integer value, ...)."""


class ArithmeticOverflowError(NumericalError):
    """A result overflowed to infinity where a finite value was required."""


class ArbitrageViolationError(NumericalError):
    """Model parameters imply an arbitrage (e.g. risk-neutral probability outside [0, 1])."""


class ConvergenceError(NumericalError):
    """An iterative solver failed to converge within the allowed tolerance / iterations.

    ``estimate`` holds the best value reached (``None`` when the solver could
    not start, e.g. an unbracketed root) and ``iterations`` the number of
    iterations performed.
    """

    def __init__(
        self,
        message: str,
        *,
        estimate: float | None = None,
        iterations: int = 0,
    ) -> None:
        super().__init__(message)
        self.estimate = estimate
        self.iterations = iterations
