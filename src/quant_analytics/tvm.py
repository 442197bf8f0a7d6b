"""Time value of money: annuities, lump sums, NPV/IRR and loan amortization.

Rates are decimal per-period rates and ``periods`` counts payment periods.
``PaymentTiming.END`` is an ordinary annuity, ``PaymentTiming.BEGIN`` an
annuity due (every payment one period earlier, i.e. worth ``(1 + r)`` times
more).

Every solver works from the one signed equation

    PV (1 + r)^n + PMT s_n + FV = 0

with cash paid out negative and cash received positive: depositing 1000
today (``PV = -1000``) at 5% for 10 periods returns ``FV = 1628.89``.
Solving any of the five variables from the other four therefore
reproduces the inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
import datetime as dt
import logging
import math
from collections.abc import Sequence

import numpy as np
import pandas as pd

from .enums import DayCountConvention, PaymentTiming, TVMVariable
from .exceptions import ConfigurationError, ConvergenceError, NumericalDomainError, ValidationError
from .root_finding import bisection, newton_raphson
from .utils import calculate_year_fraction

__all__ = [
    "present_value",
    "future_value",
    "payment",
    "solve_rate",
    "solve_periods",
    "TVMProblem",
    "TVMSolution",
    "solve",
    "CashFlowSeries",
    "npv",
    "irr",
    "profitability_index",
    "payback_period",
    "discounted_payback_period",
    "loan_payment",
    "remaining_balance",
    "amortization_schedule",
]

logger = logging.getLogger(__name__)


# ── Validation helpers ──────────────────────────────────────────────


def _check_rate(rate: float) -> None:
    if not math.isfinite(rate) or rate <= -1.0:
        raise ValidationError(f"rate must be finite and > -1, got {rate}")


def _check_periods(periods: float) -> None:
    if not math.isfinite(periods) or periods <= 0:
        raise ValidationError(f"periods must be positive, got {periods}")


def _coerce_timing(timing) -> PaymentTiming:
    if isinstance(timing, PaymentTiming):
        return timing
    if isinstance(timing, str):
        try:
            return PaymentTiming(timing)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment timing {timing!r}") from exc
    raise ConfigurationError(f"timing must be PaymentTiming enum, got {type(timing).__name__}")


def _due_factor(rate: float, timing: PaymentTiming) -> float:
    return 1.0 + rate if timing is PaymentTiming.BEGIN else 1.0


def _annuity_pv_factor(rate: float, periods: float, timing: PaymentTiming) -> float:
    """``a_n = (1 - (1 + r)^-n) / r`` (``n`` when r = 0), times ``(1 + r)`` when due."""
    if rate == 0:
        return float(periods)
    return (1.0 - (1.0 + rate) ** -periods) / rate * _due_factor(rate, timing)


def _annuity_fv_factor(rate: float, periods: float, timing: PaymentTiming) -> float:
    """``s_n = ((1 + r)^n - 1) / r`` (``n`` when r = 0), times ``(1 + r)`` when due."""
    if rate == 0:
        return float(periods)
    return ((1.0 + rate) ** periods - 1.0) / rate * _due_factor(rate, timing)


def _residual(
    rate: float,
    periods: float,
    present_value: float,
    future_value: float,
    payment: float,
    timing: PaymentTiming,
) -> float:
    """Left-hand side of ``PV (1 + r)^n + PMT s_n + FV = 0``."""
    growth = (1.0 + rate) ** periods
    return (
        present_value * growth
        + payment * _annuity_fv_factor(rate, periods, timing)
        + future_value
    )


# ── Closed-form TVM equations ───────────────────────────────────────


def present_value(
    rate: float,
    periods: float,
    future_value: float = 0.0,
    payment: float = 0.0,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """``-(FV / (1 + r)^n + PMT * a_n)``."""
    timing = _coerce_timing(timing)
    _check_rate(rate)
    _check_periods(periods)
    lump = future_value / (1.0 + rate) ** periods
    return float(-(lump + payment * _annuity_pv_factor(rate, periods, timing)))


def future_value(
    rate: float,
    periods: float,
    present_value: float = 0.0,
    payment: float = 0.0,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """``-(PV * (1 + r)^n + PMT * s_n)``."""
    timing = _coerce_timing(timing)
    _check_rate(rate)
    _check_periods(periods)
    lump = present_value * (1.0 + rate) ** periods
    return float(-(lump + payment * _annuity_fv_factor(rate, periods, timing)))


def payment(
    rate: float,
    periods: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """Level payment that balances ``PV`` and ``FV``.

    ``-(PV r / (1 - (1 + r)^-n) + FV r / ((1 + r)^n - 1))``, divided by
    ``(1 + r)`` for an annuity due, and ``-(PV + FV) / n`` when r = 0.
    """
    timing = _coerce_timing(timing)
    _check_rate(rate)
    _check_periods(periods)
    if rate == 0:
        return float(-(present_value + future_value) / periods)

    pmt = 0.0
    if present_value:
        pmt += present_value * rate / (1.0 - (1.0 + rate) ** -periods)
    if future_value:
        pmt += future_value * rate / ((1.0 + rate) ** periods - 1.0)
    return float(-pmt / _due_factor(rate, timing))


def solve_rate(
    periods: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    payment: float = 0.0,
    timing: PaymentTiming = PaymentTiming.END,
    *,
    x0: float = 0.1,
    tol: float = 1.0e-8,
    max_iter: int = 100,
) -> float:
    """Per-period rate solving the TVM equation, by Newton-Raphson.

    The residual is ``PV (1 + r)^n + PMT s_n + FV``. The derivative is a
    central difference with ``h = 1e-8``; negative iterates are reset to
    0.001.

    Raises
    ------
    ConvergenceError
        If Newton-Raphson does not reach ``|residual| < tol``, e.g. when
        every flow has the same sign and no rate balances them.
    """
    timing = _coerce_timing(timing)
    _check_periods(periods)

    def residual(r: float) -> float:
        return _residual(r, periods, present_value, future_value, payment, timing)

    result = newton_raphson(
        residual, x0, tol=tol, max_iter=max_iter, h=1.0e-8, lower_clamp=0.0, clamp_value=0.001
    )
    rate = result.raise_if_failed("TVM rate")
    logger.debug("TVM rate=%.10f iterations=%d", rate, result.iterations)
    return rate


def solve_periods(
    rate: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    payment: float = 0.0,
    timing: PaymentTiming = PaymentTiming.END,
) -> float:
    """Number of periods in closed form.

    With ``A = PMT (1 + r if due) / r`` the TVM equation gives
    ``(1 + r)^n = (A - FV) / (PV + A)``, and ``n = -(PV + FV) / PMT``
    when r = 0.

    Raises
    ------
    NumericalDomainError
        If no finite positive solution exists (e.g. the payment can never
        amortize the balance, which puts a non-positive number in the log).
    """
    timing = _coerce_timing(timing)
    _check_rate(rate)

    if rate == 0:
        if payment == 0:
            raise NumericalDomainError("periods are undetermined with zero rate and zero payment")
        n = -(present_value + future_value) / payment
    else:
        a = payment * _due_factor(rate, timing) / rate
        denominator = present_value + a
        if denominator == 0:
            raise NumericalDomainError("periods are undetermined: PV + PMT/r is zero")
        argument = (a - future_value) / denominator
        if not argument > 0:
            raise NumericalDomainError(
                f"No solution for periods: log argument {argument:.6g} is not positive"
            )
        n = math.log(argument) / math.log1p(rate)

    if not math.isfinite(n) or n <= 0:
        raise NumericalDomainError(f"No positive solution for periods (got {n:.6g})")
    return float(n)


# ── Problem / solution value objects ────────────────────────────────


@dataclass(frozen=True, slots=True)
class TVMProblem:
    """Five-variable TVM equation with exactly one unknown (``None``)."""

    present_value: float | None = None
    future_value: float | None = None
    payment: float | None = None
    rate: float | None = None
    periods: float | None = None
    timing: PaymentTiming = PaymentTiming.END

    def __post_init__(self) -> None:
        object.__setattr__(self, "timing", _coerce_timing(self.timing))
        unknown = [f.name for f in fields(self) if f.name != "timing" and getattr(self, f.name) is None]
        if len(unknown) != 1:
            raise ValidationError(
                f"TVMProblem needs exactly one unknown (None), got {len(unknown)}: {unknown}"
            )
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "timing" or value is None:
                continue
            try:
                coerced = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"TVMProblem.{f.name} must be numeric") from exc
            if not math.isfinite(coerced):
                raise ValidationError(f"TVMProblem.{f.name} must be finite")
            object.__setattr__(self, f.name, coerced)

    @property
    def unknown(self) -> TVMVariable:
        for variable in TVMVariable:
            if getattr(self, variable.value) is None:
                return variable
        raise ValidationError("TVMProblem has no unknown")


@dataclass(frozen=True, slots=True)
class TVMSolution:
    variable: TVMVariable
    value: float
    problem: TVMProblem


def solve(problem: TVMProblem) -> TVMSolution:
    """Solve ``problem`` for its single unknown."""
    p = problem
    variable = p.unknown
    if variable is TVMVariable.PRESENT_VALUE:
        value = present_value(p.rate, p.periods, p.future_value, p.payment, p.timing)
    elif variable is TVMVariable.FUTURE_VALUE:
        value = future_value(p.rate, p.periods, p.present_value, p.payment, p.timing)
    elif variable is TVMVariable.PAYMENT:
        value = payment(p.rate, p.periods, p.present_value, p.future_value, p.timing)
    elif variable is TVMVariable.RATE:
        value = solve_rate(p.periods, p.present_value, p.future_value, p.payment, p.timing)
    else:
        value = solve_periods(p.rate, p.present_value, p.future_value, p.payment, p.timing)
    logger.debug("Solved TVM %s=%.10g", variable.value, value)
    return TVMSolution(variable=variable, value=value, problem=problem)


# ── Cash-flow series ────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CashFlowSeries:
    """Ordered cash flows; index 0 is the initial (usually negative) outlay.

    Attributes
    ==========
    amounts:
        Cash flow per period (or per date).
    dates:
        Optional payment dates, one per amount, non-decreasing. When given,
        flows are discounted over year fractions from the first date;
        otherwise flow ``i`` is discounted over ``i`` periods.
    day_count_convention:
        Basis for dated flows. Ignored without ``dates``.
    """

    amounts: tuple[float, ...]
    dates: tuple[dt.date, ...] | None = None
    day_count_convention: DayCountConvention = DayCountConvention.ACT_365F

    def __post_init__(self) -> None:
        try:
            amounts = tuple(float(a) for a in self.amounts)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("CashFlowSeries amounts must be numeric") from exc
        if not amounts:
            raise ValidationError("CashFlowSeries requires at least one cash flow")
        if not all(math.isfinite(a) for a in amounts):
            raise ValidationError("CashFlowSeries amounts must be finite")
        object.__setattr__(self, "amounts", amounts)

        if self.dates is not None:
            dates = tuple(self.dates)
            if len(dates) != len(amounts):
                raise ValidationError("CashFlowSeries.dates must match amounts in length")
            if any(b < a for a, b in zip(dates, dates[1:])):
                raise ValidationError("CashFlowSeries.dates must be non-decreasing")
            object.__setattr__(self, "dates", dates)
        if not isinstance(self.day_count_convention, DayCountConvention):
            raise ConfigurationError("day_count_convention must be a DayCountConvention enum")

    def times(self) -> np.ndarray:
        """Discounting exponent for each flow (periods or year fractions)."""
        if self.dates is None:
            return np.arange(len(self.amounts), dtype=float)
        start = self.dates[0]
        return np.array(
            [calculate_year_fraction(start, d, self.day_count_convention) for d in self.dates]
        )


def _as_series(cash_flows: CashFlowSeries | Sequence[float]) -> CashFlowSeries:
    if isinstance(cash_flows, CashFlowSeries):
        return cash_flows
    return CashFlowSeries(tuple(cash_flows))


def npv(cash_flows: CashFlowSeries | Sequence[float], rate: float) -> float:
    """``sum(CF_t / (1 + r)^t)``."""
    _check_rate(rate)
    series = _as_series(cash_flows)
    amounts = np.asarray(series.amounts)
    return float(np.sum(amounts / (1.0 + rate) ** series.times()))


def irr(
    cash_flows: CashFlowSeries | Sequence[float],
    *,
    low: float = -0.99,
    high: float = 10.0,
    tol: float = 1.0e-8,
    max_iter: int = 100,
) -> float:
    """Rate at which the NPV is zero, by bisection on ``[low, high]``.

    Raises
    ------
    ConvergenceError
        If the NPV does not change sign over the bracket (e.g. all flows
        have the same sign) or the iteration budget runs out.
    """
    series = _as_series(cash_flows)
    try:
        result = bisection(lambda r: npv(series, r), low, high, tol=tol, max_iter=max_iter)
    except ConvergenceError:
        logger.warning("IRR: NPV does not change sign on [%g, %g]", low, high)
        raise
    rate = result.raise_if_failed("IRR")
    logger.debug("IRR=%.10f iterations=%d", rate, result.iterations)
    return rate


def profitability_index(cash_flows: CashFlowSeries | Sequence[float], rate: float) -> float:
    """PV of the flows after the initial outlay divided by the outlay."""
    series = _as_series(cash_flows)
    outlay = series.amounts[0]
    if outlay >= 0:
        raise ValidationError("profitability_index requires a negative initial cash flow")
    return (npv(series, rate) - outlay) / -outlay


def _payback(flows: np.ndarray, times: np.ndarray) -> float | None:
    cumulative = np.cumsum(flows)
    if cumulative[0] >= 0:
        return 0.0
    for k in range(1, len(flows)):
        if cumulative[k] >= 0:
            fraction = -cumulative[k - 1] / flows[k]
            return float(times[k - 1] + fraction * (times[k] - times[k - 1]))
    return None


def payback_period(cash_flows: CashFlowSeries | Sequence[float]) -> float | None:
    """Fractional period at which cumulative cash flow turns non-negative.

    Returns None when the outlay is never recovered.
    """
    series = _as_series(cash_flows)
    return _payback(np.asarray(series.amounts), series.times())


def discounted_payback_period(
    cash_flows: CashFlowSeries | Sequence[float], rate: float
) -> float | None:
    """Payback period of the discounted cash flows."""
    _check_rate(rate)
    series = _as_series(cash_flows)
    times = series.times()
    discounted = np.asarray(series.amounts) / (1.0 + rate) ** times
    return _payback(discounted, times)


# ── Loans ───────────────────────────────────────────────────────────


def loan_payment(principal: float, rate: float, periods: int) -> float:
    """Level payment ``P r (1 + r)^n / ((1 + r)^n - 1)`` (``P / n`` when r = 0)."""
    _check_rate(rate)
    _check_periods(periods)
    if rate == 0:
        return principal / periods
    growth = (1.0 + rate) ** periods
    return principal * rate * growth / (growth - 1.0)


def remaining_balance(principal: float, rate: float, periods: int, payments_made: int) -> float:
    """Outstanding balance after ``payments_made`` level payments."""
    if not 0 <= payments_made <= periods:
        raise ValidationError(f"payments_made must be in [0, {periods}], got {payments_made}")
    pmt = loan_payment(principal, rate, periods)
    if rate == 0:
        return principal - pmt * payments_made
    growth = (1.0 + rate) ** payments_made
    return principal * growth - pmt * (growth - 1.0) / rate


def amortization_schedule(principal: float, rate: float, periods: int) -> pd.DataFrame:
    """Period-by-period split of each level payment into interest and principal.

    Returns
    -------
    pd.DataFrame
        Indexed by ``period`` (1..n) with columns ``payment``, ``interest``,
        ``principal`` and ``balance``.
    """
    if int(periods) != periods:
        raise ValidationError(f"periods must be a whole number, got {periods}")
    pmt = loan_payment(principal, rate, periods)
    rows = []
    balance = float(principal)
    for k in range(1, int(periods) + 1):
        interest = balance * rate
        repaid = pmt - interest
        balance -= repaid
        if k == periods:
            # Absorb floating-point residue in the final period
            repaid += balance
            balance = 0.0
        rows.append(
            {
                "period": k,
                "payment": pmt if k < periods else interest + repaid,
                "interest": interest,
                "principal": repaid,
                "balance": balance,
            }
        )
    return pd.DataFrame(rows).set_index("period")
