"""Scalar root finders shared by the implied-vol, bond-yield and TVM solvers.

All finders return a :class:`RootResult` carrying the best estimate and a
``converged`` flag; they do not raise when the iteration budget runs out.
A bisection (or Brent) bracket whose end points do not straddle a root is a
precondition failure and raises :class:`~quant_analytics.exceptions.ConvergenceError`.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Callable

from scipy import optimize

from .enums import RootFindingMethod
from .exceptions import ConfigurationError, ConvergenceError, ValidationError
from .utils import log_timing

__all__ = [
    "RootResult",
    "newton_raphson",
    "bisection",
    "brent",
    "find_root",
    "central_difference",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RootResult:
    """Result container for a scalar root solve."""

    root: float
    iterations: int
    converged: bool
    residual: float

    def raise_if_failed(self, label: str) -> float:
        """Return ``root`` when converged, otherwise raise ``ConvergenceError``."""
        if not self.converged:
            logger.warning(
                "%s did not converge after %d iterations (estimate=%.10g, residual=%.3g)",
                label,
                self.iterations,
                self.root,
                self.residual,
            )
            raise ConvergenceError(
                f"{label} did not converge after {self.iterations} iterations "
                f"(best estimate {self.root:.10g}, residual {self.residual:.3g})",
                estimate=self.root,
                iterations=self.iterations,
            )
        return self.root


def _check_tolerances(tol: float, max_iter: int) -> None:
    if not tol > 0:
        raise ValidationError(f"tol must be positive, got {tol}")
    if max_iter < 1:
        raise ValidationError(f"max_iter must be >= 1, got {max_iter}")


def central_difference(f: Callable[[float], float], x: float, h: float = 1.0e-8) -> float:
    """Numerical first derivative ``(f(x + h) - f(x - h)) / (2h)``."""
    return (f(x + h) - f(x - h)) / (2.0 * h)


def newton_raphson(
    f: Callable[[float], float],
    x0: float,
    *,
    fprime: Callable[[float], float] | None = None,
    tol: float = 1.0e-8,
    max_iter: int = 100,
    h: float = 1.0e-8,
    lower_clamp: float | None = None,
    clamp_value: float = 0.001,
) -> RootResult:
    """Newton-Raphson iteration ``x <- x - f(x) / f'(x)``.

    Parameters
    ----------
    f
        Function whose root is sought.
    x0
        Starting point.
    fprime
        Analytic derivative. When ``None`` a central difference with step
        ``h`` is used.
    tol
        Stop once ``|f(x)| < tol``.
    max_iter
        Maximum number of Newton updates.
    h
        Step for the numerical derivative.
    lower_clamp
        When set, any iterate below this value is reset to ``clamp_value``
        (keeps rates in their positive domain instead of diverging).
    clamp_value
        Reset value used with ``lower_clamp``.

    Returns
    -------
    RootResult
        ``converged`` is False when the derivative vanished, an iterate was
        not finite, or the budget was exhausted.
    """
    _check_tolerances(tol, max_iter)

    def slope_at(x: float) -> float:
        if fprime is not None:
            return fprime(x)
        return central_difference(f, x, h)

    x = float(x0)
    fx = f(x)
    iterations = 0

    for i in range(max_iter):
        if abs(fx) < tol:
            break
        iterations = i + 1

        slope = slope_at(x)
        if slope == 0 or not math.isfinite(slope):
            logger.debug("Newton-Raphson stopped: zero or non-finite derivative at x=%.10g", x)
            break

        candidate = x - fx / slope
        if not math.isfinite(candidate):
            logger.debug("Newton-Raphson stopped: non-finite iterate from x=%.10g", x)
            break
        if lower_clamp is not None and candidate < lower_clamp:
            candidate = clamp_value

        x = candidate
        fx = f(x)

    converged = math.isfinite(fx) and abs(fx) < tol
    logger.debug(
        "Newton-Raphson converged=%s iterations=%d root=%.10g residual=%.3g",
        converged,
        iterations,
        x,
        fx,
    )
    return RootResult(root=x, iterations=iterations, converged=converged, residual=float(fx))


def bisection(
    f: Callable[[float], float],
    low: float,
    high: float,
    *,
    tol: float = 1.0e-8,
    max_iter: int = 100,
) -> RootResult:
    """Bisection on ``[low, high]``.

    ``f(low)`` and ``f(high)`` must have opposite signs. Returns the
    midpoint once ``|f(mid)| <= tol`` or the bracket is narrower than ``tol``.

    Raises
    ------
    ConvergenceError
        If the initial bracket does not bound a root.
    """
    _check_tolerances(tol, max_iter)
    if not low < high:
        raise ValidationError(f"bisection requires low < high, got [{low}, {high}]")

    f_low = f(low)
    f_high = f(high)
    if f_low == 0:
        return RootResult(root=float(low), iterations=0, converged=True, residual=0.0)
    if f_high == 0:
        return RootResult(root=float(high), iterations=0, converged=True, residual=0.0)
    if math.isnan(f_low) or math.isnan(f_high) or (f_low > 0) == (f_high > 0):
        raise ConvergenceError(
            f"Root not bracketed: f({low:.6g})={f_low:.6g} and f({high:.6g})={f_high:.6g} "
            "have the same sign."
        )

    mid = f_mid = math.nan
    for i in range(max_iter):
        mid = 0.5 * (low + high)
        f_mid = f(mid)
        if abs(f_mid) <= tol or abs(high - low) <= tol:
            logger.debug("Bisection converged iterations=%d root=%.10g", i + 1, mid)
            return RootResult(root=mid, iterations=i + 1, converged=True, residual=float(f_mid))
        if (f_mid > 0) == (f_low > 0):
            low, f_low = mid, f_mid
        else:
            high = mid

    logger.debug("Bisection exhausted %d iterations at root=%.10g", max_iter, mid)
    return RootResult(root=mid, iterations=max_iter, converged=False, residual=float(f_mid))


def brent(
    f: Callable[[float], float],
    low: float,
    high: float,
    *,
    tol: float = 1.0e-8,
    max_iter: int = 100,
) -> RootResult:
    """Brent's method via :func:`scipy.optimize.brentq` on a sign-changing bracket."""
    _check_tolerances(tol, max_iter)
    try:
        root, info = optimize.brentq(
            f, low, high, xtol=tol, maxiter=max_iter, full_output=True, disp=False
        )
    except ValueError as exc:
        raise ConvergenceError(f"Root not bracketed on [{low:.6g}, {high:.6g}]: {exc}") from exc
    root = float(root)
    return RootResult(
        root=root,
        iterations=int(info.iterations),
        converged=bool(info.converged),
        residual=float(f(root)),
    )


def find_root(
    method: RootFindingMethod,
    f: Callable[[float], float],
    *,
    x0: float | None = None,
    low: float | None = None,
    high: float | None = None,
    fprime: Callable[[float], float] | None = None,
    tol: float = 1.0e-8,
    max_iter: int = 100,
    log_timings: bool = False,
) -> RootResult:
    """Dispatch to the root finder selected by ``method``.

    Newton-Raphson needs ``x0`` (``fprime`` optional); bisection and Brent
    need a ``low``/``high`` bracket.
    """
    if not isinstance(method, RootFindingMethod):
        raise ConfigurationError(
            f"method must be RootFindingMethod enum, got {type(method).__name__}"
        )

    with log_timing(logger, f"root finding ({method.value})", log_timings):
        if method is RootFindingMethod.NEWTON_RAPHSON:
            if x0 is None:
                raise ValidationError("Newton-Raphson requires an initial guess x0")
            return newton_raphson(f, x0, fprime=fprime, tol=tol, max_iter=max_iter)

        if low is None or high is None:
            raise ValidationError(f"{method.value} requires a bracket (low, high)")
        if method is RootFindingMethod.BISECTION:
            return bisection(f, low, high, tol=tol, max_iter=max_iter)
        return brent(f, low, high, tol=tol, max_iter=max_iter)
