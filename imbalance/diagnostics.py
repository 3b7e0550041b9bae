from __future__ import annotations

import numpy as np
import pandas as pd
import statsmodels.api as sm

from ._exceptions import DegenerateRegression, InvalidParameter
from .estimators.ols import _require_identified


class BalanceCheck:
    """Result of a covariate balance check."""

    def __init__(
        self,
        name: str,
        passed: bool,
        detail: str,
        difference: float,
        pvalue: float,
    ) -> None:
        self.name = name
        self.passed = passed
        self.detail = detail
        self.difference = difference
        self.pvalue = pvalue

    def __repr__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"BalanceCheck({status!r}, {self.name!r})"


def check_balance(
    data: pd.DataFrame,
    treatment: str = "Z",
    covariate: str = "X",
    alpha: float = 0.05,
) -> BalanceCheck:
    """
    Regress the covariate on treatment and test for a difference between arms.

    Under sound randomisation the covariate mean is the same in both arms up
    to sampling noise. A p-value below ``alpha`` flags an imbalance large
    enough to bias an unadjusted estimate.

    Raises
    ------
    InvalidParameter
        If ``alpha`` is not in ``(0, 1)``.
    DegenerateRegression
        If every unit is in the same arm, or too few units remain to
        estimate the residual variance.
    """
    if not 0 < alpha < 1:
        raise InvalidParameter(f"alpha must be between 0 and 1, got {alpha!r}.")
    for label, var in [("Treatment", treatment), ("Covariate", covariate)]:
        if var not in data.columns:
            raise ValueError(f"{label} column '{var}' not found in dataframe.")

    _require_identified(data, treatment, [])
    name = f"Balance of {covariate} across {treatment}"

    x = data[covariate].to_numpy(dtype=float)
    if np.ptp(x) == 0:
        return BalanceCheck(
            name=name,
            passed=True,
            detail=f"{covariate} is constant, so both arms are trivially balanced",
            difference=0.0,
            pvalue=1.0,
        )

    fit = sm.OLS(x, sm.add_constant(data[[treatment]].astype(float), has_constant="add")).fit()
    if fit.df_resid == 0:
        raise DegenerateRegression(
            f"Balance of '{covariate}' cannot be tested on {len(x)} unit(s): "
            f"the fit leaves no residual degrees of freedom."
        )
    difference = float(fit.params.iloc[1])
    pvalue = float(fit.pvalues.iloc[1])
    passed = bool(pvalue >= alpha)

    if passed:
        detail = f"mean difference {difference:+.4f}  (p = {pvalue:.4f} ≥ {alpha})"
    else:
        detail = (
            f"mean difference {difference:+.4f}  (p = {pvalue:.4f} < {alpha})  "
            f"{covariate} is imbalanced across arms; the unadjusted estimate "
            f"will absorb part of its effect."
        )
    return BalanceCheck(name=name, passed=passed, detail=detail, difference=difference, pvalue=pvalue)
