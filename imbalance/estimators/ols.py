from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

from .._exceptions import DegenerateRegression


@dataclass(frozen=True)
class TrialResult:
    """The three statistics extracted from one simulated dataset."""

    cov: float
    """Sample covariance of covariate and treatment."""

    unadjusted_ate: float
    """OLS slope of outcome on treatment alone."""

    adjusted_ate: float
    """OLS coefficient on treatment, holding the covariate fixed."""


def _require_identified(data: pd.DataFrame, treatment: str, controls: list[str]) -> None:
    """
    Raise ``DegenerateRegression`` unless the treatment coefficient of
    ``outcome ~ treatment + controls`` is identified.

    The coefficient is identified iff the treatment column adds rank to the
    design matrix spanned by the intercept and the controls.
    """
    z = data[treatment].to_numpy(dtype=float)
    if len(z) < 2 or np.ptp(z) == 0:
        raise DegenerateRegression(
            f"Treatment '{treatment}' has zero variance across {len(z)} unit(s): "
            f"every unit is in the same arm, so its effect cannot be estimated."
        )
    if not controls:
        return

    base = sm.add_constant(data[controls].to_numpy(dtype=float), has_constant="add")
    full = np.column_stack([base, z])
    if np.linalg.matrix_rank(full) == np.linalg.matrix_rank(base):
        raise DegenerateRegression(
            f"Treatment '{treatment}' is collinear with the intercept and "
            f"{', '.join(controls)}: its coefficient is not identified."
        )


class AdjustmentResult:
    """
    The result of fitting one dataset with and without covariate adjustment.

    Holds both the adjusted estimate (``outcome ~ treatment + covariate``) and
    the unadjusted estimate (``outcome ~ treatment``) together with the
    covariate-treatment covariance that links them.
    """

    def __init__(
        self,
        adjusted_result,
        unadjusted_result,
        covariance: float,
        treatment_variance: float,
        treatment: str,
        outcome: str,
        covariate: str,
    ) -> None:
        self._adjusted = adjusted_result
        self._unadjusted = unadjusted_result
        self._covariance = covariance
        self._treatment_variance = treatment_variance
        self._treatment = treatment
        self._outcome = outcome
        self._covariate = covariate

    @property
    def effect(self) -> float:
        """Adjusted point estimate of the treatment effect."""
        return float(self._adjusted.params[self._treatment])

    @property
    def unadjusted_effect(self) -> float:
        """Unadjusted point estimate: difference in mean outcome between arms."""
        return float(self._unadjusted.params[self._treatment])

    @property
    def covariance(self) -> float:
        """Sample covariance of covariate and treatment (``ddof=1``)."""
        return self._covariance

    @property
    def imbalance_slope(self) -> float:
        """``Cov(X, Z) / Var(Z)``: slope of the covariate on treatment."""
        return self._covariance / self._treatment_variance

    @property
    def covariate_effect(self) -> float:
        """Adjusted coefficient on the covariate.

        A constant covariate is left out of the adjusted model, since its
        effect is absorbed by the intercept; its coefficient is then 0.
        """
        if self._covariate not in self._adjusted.params.index:
            return 0.0
        return float(self._adjusted.params[self._covariate])

    @property
    def bias(self) -> float:
        """
        Unadjusted minus adjusted estimate.

        Equals ``covariate_effect * imbalance_slope`` exactly, the in-sample
        omitted-variable-bias identity.
        """
        return self.unadjusted_effect - self.effect

    @property
    def std_err(self) -> float:
        """Standard error of the adjusted treatment effect."""
        return float(self._adjusted.bse[self._treatment])

    @property
    def conf_int(self) -> tuple[float, float]:
        """95% confidence interval for the adjusted treatment effect."""
        ci = self._adjusted.conf_int()
        return (float(ci.loc[self._treatment, 0]), float(ci.loc[self._treatment, 1]))

    @property
    def pvalue(self) -> float:
        """p-value for the adjusted treatment effect (``H0: effect = 0``)."""
        return float(self._adjusted.pvalues[self._treatment])

    @property
    def statsmodels_result(self):
        """The underlying adjusted statsmodels result, for full diagnostics."""
        return self._adjusted

    @property
    def statsmodels_unadjusted_result(self):
        """The underlying unadjusted statsmodels result, for full diagnostics."""
        return self._unadjusted

    def to_trial(self) -> TrialResult:
        return TrialResult(
            cov=self._covariance,
            unadjusted_ate=self.unadjusted_effect,
            adjusted_ate=self.effect,
        )

    def check_balance(self, data: pd.DataFrame, alpha: float = 0.05):
        """
        Test whether the covariate is balanced across treatment arms.

        Parameters
        ----------
        data : pd.DataFrame
            The same dataframe passed to ``fit()``.
        alpha : float
            Significance level below which the arms count as imbalanced.
        """
        from ..diagnostics import check_balance
        return check_balance(data, treatment=self._treatment, covariate=self._covariate, alpha=alpha)

    def executive_summary(self) -> str:
        """Narrative explanation of the method and result."""
        from .._explain import explain_adjustment
        return explain_adjustment(self)

    def summary(self) -> str:
        lo, hi = self.conf_int
        lines = [
            "",
            f"Covariate-adjusted OLS: {self._treatment} → {self._outcome}",
            "─" * 50,
            f"  Adjusted estimate    : {self.effect:>10.4f}  (controlling for: {self._covariate})",
            f"  Unadjusted estimate  : {self.unadjusted_effect:>10.4f}  (no controls)",
            f"  Imbalance bias       : {self.bias:>+10.4f}",
            f"  Cov({self._covariate}, {self._treatment})".ljust(23) + f": {self.covariance:>10.4f}",
            "",
            f"  Std. error           : {self.std_err:>10.4f}",
            f"  95% CI               : [{lo:.4f}, {hi:.4f}]",
            f"  p-value              : {self.pvalue:>10.4f}",
            "",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return self.summary()


class CovariateAdjustedOLS:
    """
    OLS treatment-effect estimator with and without covariate adjustment.

    Fits ``outcome ~ treatment`` and ``outcome ~ treatment + covariate`` on
    the same data so the effect of chance covariate imbalance on the naive
    estimate can be read off directly.

    Usage
    -----
        result = CovariateAdjustedOLS().fit(df)
        print(result.summary())

        # Custom column names
        result = CovariateAdjustedOLS(treatment="email", outcome="spend", covariate="vip").fit(df)
    """

    def __init__(self, treatment: str = "Z", outcome: str = "Y", covariate: str = "X") -> None:
        self._treatment = treatment
        self._outcome = outcome
        self._covariate = covariate
        self._validate_inputs()

    def _validate_inputs(self) -> None:
        names = [self._treatment, self._outcome, self._covariate]
        if len(set(names)) != len(names):
            raise ValueError(
                f"Treatment, outcome and covariate must be different variables, got {names}."
            )

    def fit(self, data: pd.DataFrame) -> AdjustmentResult:
        """
        Estimate the treatment effect with and without the covariate.

        Parameters
        ----------
        data : pd.DataFrame
            Must contain the treatment, outcome and covariate columns.

        Raises
        ------
        ValueError
            If a required column is missing from the dataframe.
        DegenerateRegression
            If the treatment coefficient is not identified in either model.
        """
        for label, var in [
            ("Treatment", self._treatment),
            ("Outcome", self._outcome),
            ("Covariate", self._covariate),
        ]:
            if var not in data.columns:
                raise ValueError(f"{label} column '{var}' not found in dataframe.")

        T, Y, X = self._treatment, self._outcome, self._covariate
        _require_identified(data, T, [X])

        frame = data[[T, Y, X]].astype(float)
        rhs = T if np.ptp(frame[X].to_numpy()) == 0 else f"{T} + {X}"
        adjusted_result = smf.ols(f"{Y} ~ {rhs}", data=frame).fit(method="qr")
        unadjusted_result = smf.ols(f"{Y} ~ {T}", data=frame).fit(method="qr")

        return AdjustmentResult(
            adjusted_result,
            unadjusted_result,
            covariance=float(data[X].cov(data[T])),
            treatment_variance=float(data[T].var()),
            treatment=T,
            outcome=Y,
            covariate=X,
        )


def analyze(data: pd.DataFrame) -> TrialResult:
    """
    Extract ``cov``, ``unadjusted_ate`` and ``adjusted_ate`` from a dataset
    with columns ``Z``, ``X`` and ``Y``.
    """
    return CovariateAdjustedOLS().fit(data).to_trial()
