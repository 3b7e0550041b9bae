from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import numpy as np
import pandas as pd

from ._exceptions import InvalidParameter

Mode = Literal["independent", "biased"]
MODES: tuple[str, ...] = ("independent", "biased")


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


@dataclass(frozen=True)
class OutcomeModel:
    """
    Potential-outcome model shared by every simulated unit::

        Y0 = baseline + covariate_effect * X + Uniform(0, noise_width)
        Y1 = Y0 + Normal(effect_mean, effect_sd)

    The defaults give a true average treatment effect of 2.0 and a covariate
    that shifts the baseline by +1.
    """

    baseline: float = 10.0
    covariate_effect: float = 1.0
    noise_width: float = 2.0
    effect_mean: float = 2.0
    effect_sd: float = 1.0

    def __post_init__(self) -> None:
        for name in ("baseline", "covariate_effect", "noise_width", "effect_mean", "effect_sd"):
            if not np.isfinite(getattr(self, name)):
                raise InvalidParameter(f"{name} must be finite, got {getattr(self, name)!r}.")
        if not self.noise_width > 0:
            raise InvalidParameter(f"noise_width must be positive, got {self.noise_width!r}.")
        if not self.effect_sd >= 0:
            raise InvalidParameter(f"effect_sd must be non-negative, got {self.effect_sd!r}.")


@dataclass(frozen=True)
class Design:
    """
    Data-generating process for a single simulated trial.

    ``X`` is a fair coin. Treatment is drawn with probability
    ``0.5 + imbalance * (X - 0.5)``, so under ``mode="independent"``
    (``imbalance == 0``) it is a fair coin too, and under ``mode="biased"``
    units with ``X == 1`` are treated with probability ``(1 + imbalance) / 2``.

    A positive ``imbalance`` induces positive covariance between ``X`` and
    ``Z``; a negative one induces negative covariance. How strongly ``X``
    should drive ``Z`` is a modelling choice, so biased mode requires it
    explicitly.

    Example::

        design = Design(n=20, mode="biased", imbalance=0.5)
        df = design.sample(np.random.default_rng(0))
    """

    n: int
    mode: Mode = "independent"
    imbalance: float | None = None
    outcome: OutcomeModel = field(default_factory=OutcomeModel)

    def __post_init__(self) -> None:
        if not _is_int(self.n) or self.n <= 0:
            raise InvalidParameter(f"n must be a positive integer, got {self.n!r}.")
        if self.mode not in MODES:
            raise InvalidParameter(
                f"Unknown assignment mode {self.mode!r}. Expected one of {list(MODES)}."
            )
        if not isinstance(self.outcome, OutcomeModel):
            raise InvalidParameter("outcome must be an OutcomeModel instance.")

        if self.mode == "independent":
            if self.imbalance not in (None, 0):
                raise InvalidParameter(
                    f"Independent assignment takes no imbalance, got {self.imbalance!r}. "
                    f"Use mode='biased' to make treatment depend on the covariate."
                )
            return

        if self.imbalance is None:
            raise InvalidParameter(
                "Biased assignment requires an imbalance in (-1, 1): positive values "
                "make X drive Z upwards, negative values downwards."
            )
        if not -1 < self.imbalance < 1 or self.imbalance == 0:
            raise InvalidParameter(
                f"imbalance must be non-zero and strictly between -1 and 1, got {self.imbalance!r}."
            )

    # ── Derived quantities ────────────────────────────────────────────────────

    @property
    def strength(self) -> float:
        """Effective imbalance: ``0.0`` for independent assignment."""
        return float(self.imbalance or 0.0)

    @property
    def treatment_probabilities(self) -> tuple[float, float]:
        """``(P(Z=1 | X=0), P(Z=1 | X=1))``."""
        return (0.5 - self.strength / 2, 0.5 + self.strength / 2)

    @property
    def expected_covariance(self) -> float:
        """Population covariance of ``X`` and ``Z`` implied by the design."""
        return self.strength / 4

    @property
    def expected_bias(self) -> float:
        """
        Omitted-variable bias of the unadjusted estimate.

        ``coef(X on Y) * coef(X on Z)``, where the second factor is
        ``Cov(X, Z) / Var(Z) = imbalance`` because ``P(Z=1) = 0.5``.
        """
        return self.outcome.covariate_effect * self.strength

    @property
    def true_effect(self) -> float:
        """Population average treatment effect."""
        return self.outcome.effect_mean

    # ── Sampling ──────────────────────────────────────────────────────────────

    def sample(self, rng: np.random.Generator | int | None = None) -> pd.DataFrame:
        """
        Draw one dataset of ``n`` units.

        Only the observables ``Z``, ``X`` and ``Y`` are returned; the
        potential outcomes are discarded after ``Y`` is realised.

        Parameters
        ----------
        rng : numpy.random.Generator, int or None
            Random source. A ``Generator`` is advanced in place, so repeated
            calls with the same generator give fresh, reproducible draws.
        """
        rng = np.random.default_rng(rng)
        m = self.outcome
        n = self.n

        x = rng.integers(0, 2, size=n)
        p_treat = 0.5 + self.strength * (x - 0.5)
        z = (rng.random(size=n) < p_treat).astype(int)

        y0 = m.baseline + m.covariate_effect * x + rng.uniform(0.0, m.noise_width, size=n)
        y1 = y0 + rng.normal(m.effect_mean, m.effect_sd, size=n)
        y = np.where(z == 1, y1, y0)

        return pd.DataFrame({"Z": z, "X": x, "Y": y})

    def describe(self) -> str:
        """One-line description of the assignment mechanism."""
        if self.mode == "independent":
            return "Z ~ Bernoulli(0.5), independent of X"
        p0, p1 = self.treatment_probabilities
        return f"P(Z=1 | X=0) = {p0:.3f}, P(Z=1 | X=1) = {p1:.3f}"


def generate(
    n: int,
    mode: Mode = "independent",
    *,
    imbalance: float | None = None,
    rng: np.random.Generator | int | None = None,
    outcome: OutcomeModel | None = None,
) -> pd.DataFrame:
    """
    Generate one synthetic dataset with columns ``Z``, ``X`` and ``Y``.

    Raises
    ------
    InvalidParameter
        If ``n <= 0``, the mode is unknown, or ``imbalance`` does not suit
        the mode.
    """
    design = Design(n=n, mode=mode, imbalance=imbalance, outcome=outcome or OutcomeModel())
    return design.sample(rng)
