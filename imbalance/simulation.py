from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Literal

import numpy as np
import pandas as pd
import statsmodels.api as sm

from ._exceptions import DegenerateRegression, InvalidParameter
from .design import Design, Mode, OutcomeModel, _is_int
from .estimators.ols import TrialResult, analyze

LOG = logging.getLogger(__name__)

COLUMNS: tuple[str, ...] = ("cov", "unadjusted_ate", "adjusted_ate")
ON_DEGENERATE: tuple[str, ...] = ("retry", "raise")


class SimulationResult:
    """
    Ordered collection of trial results from one Monte Carlo run.

    ``frame`` has one row per trial, in the order the trials were run, with
    columns ``cov``, ``unadjusted_ate`` and ``adjusted_ate``.
    """

    def __init__(
        self,
        trials: list[TrialResult],
        design: Design,
        seed,
        n_retries: int = 0,
    ) -> None:
        self._trials = list(trials)
        self._design = design
        self._seed = seed
        self._n_retries = n_retries
        self._frame = pd.DataFrame([asdict(t) for t in self._trials], columns=list(COLUMNS))

    @property
    def frame(self) -> pd.DataFrame:
        """All trials as a dataframe (a copy)."""
        return self._frame.copy()

    @property
    def trials(self) -> list[TrialResult]:
        """All trials, in the order they were run."""
        return list(self._trials)

    @property
    def design(self) -> Design:
        return self._design

    @property
    def seed(self):
        return self._seed

    @property
    def n_retries(self) -> int:
        """Number of degenerate datasets that were redrawn."""
        return self._n_retries

    @property
    def means(self) -> dict[str, float]:
        """Mean of each statistic across trials."""
        return {c: float(self._frame[c].mean()) for c in COLUMNS}

    @property
    def bias(self) -> float:
        """Mean unadjusted estimate minus mean adjusted estimate."""
        means = self.means
        return means["unadjusted_ate"] - means["adjusted_ate"]

    def trend(self, column: str) -> tuple[float, float]:
        """
        ``(intercept, slope)`` of the OLS line ``column ~ cov``.

        A steep slope for ``unadjusted_ate`` shows that chance imbalance
        drives the naive estimate; the adjusted slope should be near zero.
        """
        if column not in ("unadjusted_ate", "adjusted_ate"):
            raise ValueError(
                f"Unknown estimate column '{column}'. "
                f"Expected 'unadjusted_ate' or 'adjusted_ate'."
            )
        if len(self._frame) < 2 or np.ptp(self._frame["cov"].to_numpy()) == 0:
            return (float(self._frame[column].mean()), 0.0)
        fit = sm.OLS(
            self._frame[column], sm.add_constant(self._frame[["cov"]], has_constant="add")
        ).fit()
        return (float(fit.params["const"]), float(fit.params["cov"]))

    def plot(self, ax=None, **kwargs):
        """Scatter both estimates against covariance. See ``plot_balance``."""
        from .visualization import plot_balance
        return plot_balance(self, ax=ax, **kwargs)

    def executive_summary(self) -> str:
        """Narrative explanation of the design, result and caveats."""
        from ._explain import explain_simulation
        return explain_simulation(self)

    def summary(self) -> str:
        means = self.means
        d = self._design
        _, slope_u = self.trend("unadjusted_ate")
        _, slope_a = self.trend("adjusted_ate")
        lines = [
            "",
            f"Monte Carlo: {len(self)} trials of n = {d.n}  ({d.mode} assignment)",
            f"  Assignment: {d.describe()}",
            "─" * 50,
            f"  True effect          : {d.true_effect:>10.4f}",
            f"  Mean unadjusted      : {means['unadjusted_ate']:>10.4f}",
            f"  Mean adjusted        : {means['adjusted_ate']:>10.4f}",
            f"  Mean bias            : {self.bias:>+10.4f}  (expected {d.expected_bias:+.4f})",
            f"  Mean Cov(X, Z)       : {means['cov']:>10.4f}  (expected {d.expected_covariance:.4f})",
            "",
            f"  Slope on Cov(X, Z)   : {slope_u:>10.4f}  (unadjusted)",
            f"                         {slope_a:>10.4f}  (adjusted)",
            f"  Redrawn trials       : {self._n_retries:>10d}",
            "",
        ]
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._trials)

    def __repr__(self) -> str:
        return self.summary()


def run(
    trials: int,
    n: int,
    mode: Mode = "independent",
    *,
    seed: int | None = None,
    imbalance: float | None = None,
    outcome: OutcomeModel | None = None,
    on_degenerate: Literal["retry", "raise"] = "retry",
    max_retries: int = 100,
) -> SimulationResult:
    """
    Generate and analyze ``trials`` independent datasets of ``n`` units.

    All trials draw from a single ``numpy.random.default_rng(seed)`` stream,
    so the same arguments always produce the same result.

    Parameters
    ----------
    trials : int
        Number of repetitions; always delivered in full.
    n : int
        Units per dataset.
    mode : {"independent", "biased"}
        Treatment assignment mechanism.
    seed : int, optional
        Seed for the shared random stream.
    imbalance : float, optional
        Strength and direction with which the covariate drives treatment.
        Required for ``mode="biased"``.
    outcome : OutcomeModel, optional
        Potential-outcome constants; defaults to ``OutcomeModel()``.
    on_degenerate : {"retry", "raise"}
        ``"retry"`` redraws a dataset whose treatment effect is not
        identified (at most ``max_retries`` times per trial, after which the
        error propagates). ``"raise"`` aborts the run on the first one.

    Raises
    ------
    InvalidParameter
        If any parameter is out of range.
    DegenerateRegression
        Under ``"raise"``, or when a trial exhausts its retries.
    """
    if not _is_int(trials) or trials <= 0:
        raise InvalidParameter(f"trials must be a positive integer, got {trials!r}.")
    if on_degenerate not in ON_DEGENERATE:
        raise InvalidParameter(
            f"on_degenerate must be one of {list(ON_DEGENERATE)}, got {on_degenerate!r}."
        )
    if not _is_int(max_retries) or max_retries < 0:
        raise InvalidParameter(f"max_retries must be a non-negative integer, got {max_retries!r}.")

    design = Design(n=n, mode=mode, imbalance=imbalance, outcome=outcome or OutcomeModel())
    rng = np.random.default_rng(seed)

    LOG.info("Running %d trials of n=%d (%s assignment, seed=%s)", trials, n, mode, seed)

    results: list[TrialResult] = []
    n_retries = 0
    for i in range(trials):
        attempt = 0
        while True:
            try:
                results.append(analyze(design.sample(rng)))
                break
            except DegenerateRegression as e:
                if on_degenerate == "raise" or attempt >= max_retries:
                    LOG.error("Trial %d is degenerate after %d redraw(s): %s", i, attempt, e)
                    raise
                attempt += 1
                n_retries += 1
                LOG.debug("Trial %d degenerate, redrawing (attempt %d): %s", i, attempt, e)

    if n_retries:
        LOG.info("Redrew %d degenerate dataset(s) to complete %d trials", n_retries, trials)
    LOG.info("Finished %d trials", trials)

    return SimulationResult(results, design, seed=seed, n_retries=n_retries)
