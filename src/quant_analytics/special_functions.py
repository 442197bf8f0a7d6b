"""Special functions used by the pricing and fixed-income modules.

Every function here is total: out-of-domain input yields a sentinel
(``nan`` for domain violations, ``inf`` for overflow) instead of raising.
Callers that cannot tolerate a sentinel wrap the result in
:func:`require_finite`, which turns it into a typed exception.

The error function follows Abramowitz & Stegun 7.1.26 (absolute error
below 1.5e-7). The gamma function uses the Lanczos approximation with
g = 7 and nine coefficients, combined with the reflection formula for
arguments below one half.
"""

from __future__ import annotations

import math

import numpy as np

from .exceptions import ArithmeticOverflowError, NumericalDomainError

__all__ = [
    "erf",
    "erfc",
    "norm_cdf",
    "norm_pdf",
    "gamma",
    "log_gamma",
    "beta",
    "factorial",
    "binomial",
    "permutation",
    "require_finite",
]

_AS_A1 = 0.254829592
_AS_A2 = -0.284496736
_AS_A3 = 1.421413741
_AS_A4 = -1.453152027
_AS_A5 = 1.061405429
_AS_P = 0.3275911

_LANCZOS_G = 7.0
_LANCZOS_COEFFS = (
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
)
_SQRT_2PI = math.sqrt(2.0 * math.pi)

# Largest argument with a finite double-precision gamma value.
_GAMMA_MAX_ARG = 171.6243769563027
_FACTORIAL_MAX = 170


def _scalar_or_array(out: np.ndarray):
    return float(out) if out.ndim == 0 else out


def erf(x):
    """Error function (Abramowitz & Stegun 7.1.26).

    Parameters
    ----------
    x
        Scalar or array argument.

    Returns
    -------
    float or np.ndarray
        ``erf(x)``; odd in ``x`` so that ``erf(-x) == -erf(x)`` exactly.
    """
    x_arr = np.asarray(x, dtype=float)
    sign = np.sign(x_arr)
    ax = np.abs(x_arr)
    t = 1.0 / (1.0 + _AS_P * ax)
    poly = ((((_AS_A5 * t + _AS_A4) * t + _AS_A3) * t + _AS_A2) * t + _AS_A1) * t
    y = 1.0 - poly * np.exp(-ax * ax)
    return _scalar_or_array(sign * y)


def erfc(x):
    """Complementary error function, ``1 - erf(x)``."""
    return _scalar_or_array(1.0 - np.asarray(erf(x), dtype=float))


def norm_cdf(x):
    """Standard normal cumulative distribution, ``0.5 (1 + erf(x / sqrt(2)))``."""
    return _scalar_or_array(0.5 * (1.0 + np.asarray(erf(np.asarray(x) / math.sqrt(2.0)))))


def norm_pdf(x):
    """Standard normal probability density."""
    x_arr = np.asarray(x, dtype=float)
    return _scalar_or_array(np.exp(-0.5 * x_arr * x_arr) / _SQRT_2PI)


def _lanczos_terms(z: float) -> tuple[float, float]:
    """Return ``(t, series)`` of the Lanczos sum for Gamma(z + 1), z >= -0.5."""
    series = _LANCZOS_COEFFS[0]
    for i in range(1, len(_LANCZOS_COEFFS)):
        series += _LANCZOS_COEFFS[i] / (z + i)
    t = z + _LANCZOS_G + 0.5
    return t, series


def _is_integral(x: float) -> bool:
    return math.isfinite(x) and x == math.floor(x)


def gamma(x: float) -> float:
    """Gamma function via the Lanczos approximation.

    For ``x < 0.5`` the reflection formula
    ``Gamma(x) = pi / (sin(pi x) Gamma(1 - x))`` is applied once; ``1 - x``
    is then at least one half, so no further reflection is needed.

    Returns ``nan`` at the poles (zero and negative integers) and for
    ``nan``/``-inf`` input, ``inf`` when the result overflows.
    """
    x = float(x)
    if math.isnan(x) or x == -math.inf:
        return math.nan
    if x == math.inf:
        return math.inf
    if x <= 0 and _is_integral(x):
        return math.nan
    if x > _GAMMA_MAX_ARG:
        return math.inf

    reflect = x < 0.5
    z = (1.0 - x if reflect else x) - 1.0
    if z + 1.0 > _GAMMA_MAX_ARG:
        # Gamma(1 - x) overflows: the reflected value underflows to a signed zero.
        return math.copysign(0.0, math.sin(math.pi * x))

    t, series = _lanczos_terms(z)
    # Split the power so t**(z + 0.5) does not overflow before exp(-t) is applied.
    half_power = t ** (0.5 * (z + 0.5))
    value = _SQRT_2PI * half_power * (half_power * math.exp(-t)) * series

    if reflect:
        return math.pi / (math.sin(math.pi * x) * value)
    return value


def log_gamma(x: float) -> float:
    """Natural log of Gamma(x) for ``x > 0``; ``nan`` otherwise."""
    x = float(x)
    if math.isnan(x) or x <= 0:
        return math.nan
    if x == math.inf:
        return math.inf
    if x < 0.5:
        # log Gamma(x) = log(pi / sin(pi x)) - log Gamma(1 - x), with 1 - x in (0.5, 1)
        t, series = _lanczos_terms(-x)
        log_reflected = 0.5 * math.log(2 * math.pi) + (0.5 - x) * math.log(t) - t + math.log(series)
        return math.log(math.pi / math.sin(math.pi * x)) - log_reflected
    z = x - 1.0
    t, series = _lanczos_terms(z)
    return 0.5 * math.log(2 * math.pi) + (z + 0.5) * math.log(t) - t + math.log(series)


def beta(a: float, b: float) -> float:
    """Beta function ``Gamma(a) Gamma(b) / Gamma(a + b)``."""
    a = float(a)
    b = float(b)
    if a > 0 and b > 0:
        return math.exp(log_gamma(a) + log_gamma(b) - log_gamma(a + b))
    denominator = gamma(a + b)
    if math.isnan(denominator):
        return math.nan
    if math.isinf(denominator):
        return 0.0
    return gamma(a) * gamma(b) / denominator


def factorial(n: float) -> float:
    """Iterative factorial.

    Returns ``nan`` for negative or non-integer ``n`` and ``inf`` for
    ``n > 170`` (the largest factorial representable as a double is 170!).
    """
    n = float(n)
    if not _is_integral(n) or n < 0:
        return math.nan
    if n > _FACTORIAL_MAX:
        return math.inf
    result = 1.0
    for i in range(2, int(n) + 1):
        result *= i
    return result


def binomial(n: float, k: float) -> float:
    """Binomial coefficient ``C(n, k)``.

    Integer arguments use the multiplicative form over ``min(k, n - k)``
    factors, which stays exact well beyond the range of ``factorial``.
    Non-integer arguments fall back to the gamma-function ratio.
    """
    n = float(n)
    k = float(k)
    if math.isnan(n) or math.isnan(k):
        return math.nan

    if _is_integral(n) and _is_integral(k):
        if n < 0:
            return math.nan
        if k < 0 or k > n:
            return 0.0
        k = min(k, n - k)
        result = 1.0
        for i in range(1, int(k) + 1):
            result = result * (n - k + i) / i
        return float(round(result)) if result < 2**53 else result

    denominator = gamma(k + 1.0) * gamma(n - k + 1.0)
    if denominator == 0 or math.isnan(denominator):
        return math.nan
    return gamma(n + 1.0) / denominator


def permutation(n: float, r: float) -> float:
    """Number of ordered selections ``n! / (n - r)!``; 0 when ``r < 0`` or ``r > n``."""
    n = float(n)
    r = float(r)
    if math.isnan(n) or math.isnan(r):
        return math.nan
    if r < 0 or r > n:
        return 0.0

    if _is_integral(n) and _is_integral(r):
        result = 1.0
        for i in range(int(r)):
            result *= n - i
        return result

    denominator = gamma(n - r + 1.0)
    if denominator == 0 or math.isnan(denominator):
        return math.nan
    return gamma(n + 1.0) / denominator


def require_finite(value: float, label: str) -> float:
    """Return ``value`` unchanged, raising if it is a kernel sentinel.

    Raises
    ------
    NumericalDomainError
        If ``value`` is ``nan``.
    ArithmeticOverflowError
        If ``value`` is infinite.
    """
    if math.isnan(value):
        raise NumericalDomainError(f"{label} is undefined for the given input")
    if math.isinf(value):
        raise ArithmeticOverflowError(f"{label} overflowed")
    return value
