"""Contract, model and method parameter classes for option valuation.

The option contract and each method's configuration are frozen dataclasses
validated on construction. Stochastic-model parameters form a tagged variant
(:data:`ModelParameters`): each variant reports its own validity through
``is_valid()`` so the orchestrator can skip an unusable model instead of
failing the whole request.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from ..enums import (
    AsianAveraging,
    BarrierType,
    ExerciseType,
    OptionCategory,
    OptionType,
    VarianceReduction,
)
from ..exceptions import ConfigurationError, ValidationError


def _coerce_float(owner: str, name: str, value) -> float:
    """Convert ``value`` to a finite float or raise."""
    if value is None:
        raise ValidationError(f"{owner}.{name} must be provided")
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{owner}.{name} must be numeric") from exc
    if not np.isfinite(out):
        raise ValidationError(f"{owner}.{name} must be finite")
    return out


def _coerce_enum(owner: str, name: str, value, enum_cls):
    """Accept an enum member or its string value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError as exc:
            raise ValidationError(f"{owner}.{name}: unknown value {value!r}") from exc
    raise ConfigurationError(
        f"{owner}.{name} must be {enum_cls.__name__} enum, got {type(value).__name__}"
    )


@dataclass(frozen=True, slots=True)
class OptionContract:
    """Single option contract with flat market inputs.

    Attributes
    ==========
    option_type:
        CALL or PUT.
    spot:
        Current underlying price (> 0).
    strike:
        Strike price (> 0).
    time_to_expiry:
        Time to expiration in years (>= 0).
    risk_free_rate:
        Continuously compounded risk-free rate.
    volatility:
        Annualized volatility (>= 0). Zero volatility prices the
        deterministic forward payoff.
    dividend_yield:
        Continuous dividend yield. Default 0.
    exercise_type:
        EUROPEAN, AMERICAN or BERMUDAN.
    category:
        VANILLA, BARRIER, ASIAN or LOOKBACK.
    barrier_type, barrier_level:
        Required for BARRIER contracts.
    asian_averaging:
        Required for ASIAN contracts.
    bermudan_exercise_times:
        Exercise times in years, each in (0, time_to_expiry]. Required for
        BERMUDAN exercise; expiry is always an exercise date.
    """

    option_type: OptionType
    spot: float
    strike: float
    time_to_expiry: float
    risk_free_rate: float
    volatility: float
    dividend_yield: float = 0.0
    exercise_type: ExerciseType = ExerciseType.EUROPEAN
    category: OptionCategory = OptionCategory.VANILLA
    barrier_type: BarrierType | None = None
    barrier_level: float | None = None
    asian_averaging: AsianAveraging | None = None
    bermudan_exercise_times: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        owner = "OptionContract"
        object.__setattr__(
            self, "option_type", _coerce_enum(owner, "option_type", self.option_type, OptionType)
        )
        object.__setattr__(
            self,
            "exercise_type",
            _coerce_enum(owner, "exercise_type", self.exercise_type, ExerciseType),
        )
        object.__setattr__(
            self, "category", _coerce_enum(owner, "category", self.category, OptionCategory)
        )

        for name in (
            "spot",
            "strike",
            "time_to_expiry",
            "risk_free_rate",
            "volatility",
            "dividend_yield",
        ):
            object.__setattr__(self, name, _coerce_float(owner, name, getattr(self, name)))

        if self.spot <= 0:
            raise ValidationError(f"OptionContract.spot must be positive, got {self.spot}")
        if self.strike <= 0:
            raise ValidationError(f"OptionContract.strike must be positive, got {self.strike}")
        if self.time_to_expiry < 0:
            raise ValidationError(
                f"OptionContract.time_to_expiry must be >= 0, got {self.time_to_expiry}"
            )
        if self.volatility < 0:
            raise ValidationError(
                f"OptionContract.volatility must be >= 0, got {self.volatility}"
            )

        if self.category is OptionCategory.BARRIER:
            if self.barrier_type is None or self.barrier_level is None:
                raise ValidationError("Barrier contracts require barrier_type and barrier_level")
            object.__setattr__(
                self,
                "barrier_type",
                _coerce_enum(owner, "barrier_type", self.barrier_type, BarrierType),
            )
            level = _coerce_float(owner, "barrier_level", self.barrier_level)
            if level <= 0:
                raise ValidationError("OptionContract.barrier_level must be positive")
            object.__setattr__(self, "barrier_level", level)

        if self.category is OptionCategory.ASIAN:
            if self.asian_averaging is None:
                raise ValidationError("Asian contracts require asian_averaging")
            object.__setattr__(
                self,
                "asian_averaging",
                _coerce_enum(owner, "asian_averaging", self.asian_averaging, AsianAveraging),
            )

        times = tuple(
            _coerce_float(owner, "bermudan_exercise_times", t) for t in self.bermudan_exercise_times
        )
        if self.exercise_type is ExerciseType.BERMUDAN:
            if not times:
                raise ValidationError("Bermudan contracts require bermudan_exercise_times")
            if any(t <= 0 or t > self.time_to_expiry for t in times):
                raise ValidationError("bermudan_exercise_times must lie in (0, time_to_expiry]")
        object.__setattr__(self, "bermudan_exercise_times", tuple(sorted(times)))

    @property
    def is_degenerate(self) -> bool:
        """True when the payoff is deterministic (no time or no volatility)."""
        return self.time_to_expiry <= 0 or self.volatility <= 0

    def replace(self, **changes) -> OptionContract:
        """Return a copy with the given fields replaced (re-validated)."""
        fields = {name: getattr(self, name) for name in self.__dataclass_fields__}
        fields.update(changes)
        return OptionContract(**fields)


# ---------------------------------------------------------------------------
# Stochastic model parameters (tagged variant)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BlackScholesParams:
    """Constant-volatility model; carries no extra parameters."""

    name = "black_scholes"

    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class HestonParams:
    """Heston stochastic-volatility parameters.

    Attributes
    ==========
    v0:
        Initial variance.
    kappa:
        Mean-reversion speed of variance.
    theta:
        Long-run variance.
    sigma_v:
        Volatility of variance.
    rho:
        Correlation between spot and variance shocks.
    """

    v0: float
    kappa: float
    theta: float
    sigma_v: float
    rho: float

    name = "heston"

    def is_valid(self) -> bool:
        """Positivity, correlation bounds and the Feller condition."""
        values = (self.v0, self.kappa, self.theta, self.sigma_v, self.rho)
        if not all(math.isfinite(v) for v in values):
            return False
        return (
            self.v0 > 0
            and self.kappa > 0
            and self.theta > 0
            and self.sigma_v > 0
            and -1.0 <= self.rho <= 1.0
            and 2.0 * self.kappa * self.theta >= self.sigma_v**2
        )


@dataclass(frozen=True, slots=True)
class SABRParams:
    """SABR parameters.

    Attributes
    ==========
    alpha:
        Initial volatility level.
    beta:
        CEV exponent in [0, 1] (1 = lognormal).
    rho:
        Correlation between forward and volatility, strictly inside (-1, 1).
    nu:
        Volatility of volatility (>= 0).
    """

    alpha: float
    beta: float
    rho: float
    nu: float

    name = "sabr"

    def is_valid(self) -> bool:
        values = (self.alpha, self.beta, self.rho, self.nu)
        if not all(math.isfinite(v) for v in values):
            return False
        return (
            self.alpha > 0
            and 0.0 <= self.beta <= 1.0
            and self.nu >= 0
            and -1.0 < self.rho < 1.0
        )


@dataclass(frozen=True, slots=True)
class JumpDiffusionParams:
    """Merton jump-diffusion parameters.

    Attributes
    ==========
    intensity:
        Expected number of jumps per year (lambda >= 0).
    mean_jump:
        Mean relative jump size (> -1).
    jump_vol:
        Volatility of the log jump size (>= 0).
    """

    intensity: float
    mean_jump: float
    jump_vol: float

    name = "jump_diffusion"

    def is_valid(self) -> bool:
        values = (self.intensity, self.mean_jump, self.jump_vol)
        if not all(math.isfinite(v) for v in values):
            return False
        return self.intensity >= 0 and self.jump_vol >= 0 and self.mean_jump > -1.0


# Type alias for any stochastic model parameter set
ModelParameters = BlackScholesParams | HestonParams | SABRParams | JumpDiffusionParams


# ---------------------------------------------------------------------------
# Method parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonteCarloParams:
    """Parameters for Monte Carlo option valuation.

    Attributes
    ==========
    num_paths:
        Number of terminal samples (antithetic pairs count as two).
    random_seed:
        Seed for the root generator when no generator is injected. If None,
        fresh OS entropy is used.
    variance_reduction:
        NONE or ANTITHETIC.
    num_workers:
        Number of worker threads. 1 runs serially.
    std_error_warn_ratio:
        Log a warning when std_error / price exceeds this ratio. None disables
        the check.
    """

    num_paths: int = 100_000
    random_seed: int | None = None
    variance_reduction: VarianceReduction | str = VarianceReduction.ANTITHETIC
    num_workers: int = 1
    std_error_warn_ratio: float | None = 0.05

    def __post_init__(self):
        if isinstance(self.variance_reduction, str):
            object.__setattr__(
                self, "variance_reduction", VarianceReduction(self.variance_reduction)
            )
        if not isinstance(self.variance_reduction, VarianceReduction):
            raise ConfigurationError(
                f"variance_reduction must be a VarianceReduction, got {self.variance_reduction}"
            )
        if self.num_paths < 2:
            raise ValidationError(f"num_paths must be >= 2, got {self.num_paths}")
        if self.num_workers < 1:
            raise ValidationError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.std_error_warn_ratio is not None and self.std_error_warn_ratio <= 0:
            raise ValidationError(
                f"std_error_warn_ratio must be positive, got {self.std_error_warn_ratio}"
            )


@dataclass(frozen=True, slots=True)
class BinomialParams:
    """Parameters for binomial tree option valuation.

    Attributes
    ==========
    num_steps:
        Number of time steps in the binomial tree.
        More steps increase accuracy but also computation time.
        Default: 1000.
    """

    num_steps: int = 1000

    def __post_init__(self):
        if self.num_steps < 1:
            raise ValidationError(f"num_steps must be >= 1, got {self.num_steps}")
