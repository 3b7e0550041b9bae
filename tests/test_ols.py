import math

import numpy as np
import pandas as pd
import pytest

from imbalance import CovariateAdjustedOLS, TrialResult, analyze, generate
from imbalance._exceptions import DegenerateRegression


TRUE_ATE = 2.0


def make_data(z, x, seed=0):
    """Small hand-built frame with the standard outcome model."""
    rng = np.random.default_rng(seed)
    z = np.asarray(z)
    x = np.asarray(x)
    y = 10 + x + rng.uniform(0, 2, size=len(z)) + z * rng.normal(TRUE_ATE, 1, size=len(z))
    return pd.DataFrame({"Z": z, "X": x, "Y": y})


class TestAnalyze:
    def test_large_sample_converges_to_true_effect(self):
        df = generate(10_000, rng=42)
        result = analyze(df)

        assert isinstance(result, TrialResult)
        assert abs(result.cov) < 0.02
        assert abs(result.adjusted_ate - TRUE_ATE) < 0.1
        assert abs(result.unadjusted_ate - TRUE_ATE) < 0.1
        assert abs(result.unadjusted_ate - result.adjusted_ate) < 0.05

    def test_results_are_finite(self):
        for seed in range(20):
            result = analyze(generate(20, rng=seed))
            assert all(math.isfinite(v) for v in (result.cov, result.unadjusted_ate, result.adjusted_ate))

    def test_cov_is_sample_covariance(self):
        df = generate(40, rng=3)
        assert analyze(df).cov == pytest.approx(np.cov(df["X"], df["Z"], ddof=1)[0, 1])

    def test_unadjusted_is_difference_in_means(self):
        df = generate(40, rng=4)
        means = df.groupby("Z")["Y"].mean()
        assert analyze(df).unadjusted_ate == pytest.approx(means[1] - means[0])

    def test_biased_sample_overstates_effect(self):
        """X raises Y and drives Z, so the naive estimate absorbs X's effect."""
        df = generate(10_000, mode="biased", imbalance=0.5, rng=5)
        result = analyze(df)

        assert abs(result.adjusted_ate - TRUE_ATE) < 0.1
        assert abs(result.unadjusted_ate - (TRUE_ATE + 0.5)) < 0.1


class TestDegenerateRegression:
    def test_single_unit_raises(self):
        df = generate(1, rng=0)
        with pytest.raises(DegenerateRegression, match="zero variance"):
            analyze(df)

    def test_single_arm_raises(self):
        df = make_data(z=[1, 1, 1, 1, 1], x=[0, 1, 0, 1, 1])
        with pytest.raises(DegenerateRegression, match="zero variance"):
            analyze(df)

    def test_empty_frame_raises(self):
        df = pd.DataFrame({"Z": [], "X": [], "Y": []})
        with pytest.raises(DegenerateRegression):
            analyze(df)

    @pytest.mark.parametrize("x", [[0, 0, 1, 1, 0, 1], [1, 1, 0, 0, 1, 0]])
    def test_treatment_collinear_with_covariate_raises(self, x):
        df = make_data(z=[0, 0, 1, 1, 0, 1], x=x)
        with pytest.raises(DegenerateRegression, match="collinear"):
            analyze(df)

    def test_two_units_with_varying_covariate_raises(self):
        df = make_data(z=[0, 1], x=[0, 1])
        with pytest.raises(DegenerateRegression):
            analyze(df)

    @pytest.mark.parametrize("level", [0, 1])
    def test_constant_covariate_is_not_degenerate(self, level):
        """With X constant the treatment coefficient is still identified."""
        df = make_data(z=[0, 1, 0, 1, 1, 0], x=[level] * 6)
        result = analyze(df)

        assert result.cov == 0.0
        assert math.isfinite(result.adjusted_ate)
        assert result.adjusted_ate == pytest.approx(result.unadjusted_ate)

    def test_constant_covariate_has_no_effect(self):
        df = make_data(z=[0, 1, 0, 1, 1, 0], x=[0] * 6)
        result = CovariateAdjustedOLS().fit(df)

        assert result.covariate_effect == 0.0
        assert result.bias == pytest.approx(0.0, abs=1e-12)


class TestCovariateAdjustedOLS:
    def test_omitted_variable_bias_identity(self):
        """unadjusted - adjusted == coef(X) * Cov(X, Z) / Var(Z), exactly in-sample."""
        df = generate(30, mode="biased", imbalance=0.4, rng=11)
        result = CovariateAdjustedOLS().fit(df)

        assert result.bias == pytest.approx(result.covariate_effect * result.imbalance_slope, abs=1e-9)

    def test_result_attributes(self):
        df = generate(500, rng=12)
        result = CovariateAdjustedOLS().fit(df)

        lo, hi = result.conf_int
        assert lo < result.effect < hi
        assert result.std_err > 0
        assert 0 <= result.pvalue <= 1
        assert result.statsmodels_result is not None
        assert result.statsmodels_unadjusted_result is not None

    def test_to_trial_matches_analyze(self):
        df = generate(25, rng=13)
        assert CovariateAdjustedOLS().fit(df).to_trial() == analyze(df)

    def test_custom_column_names(self):
        df = generate(200, rng=14).rename(columns={"Z": "email", "X": "vip", "Y": "spend"})
        result = CovariateAdjustedOLS(treatment="email", outcome="spend", covariate="vip").fit(df)

        assert "email → spend" in result.summary()
        assert result.effect == pytest.approx(
            analyze(df.rename(columns={"email": "Z", "vip": "X", "spend": "Y"})).adjusted_ate
        )

    def test_duplicate_names_raise(self):
        with pytest.raises(ValueError, match="must be different"):
            CovariateAdjustedOLS(treatment="Z", outcome="Z", covariate="X")

    @pytest.mark.parametrize("column, label", [("Z", "Treatment"), ("Y", "Outcome"), ("X", "Covariate")])
    def test_missing_column_raises(self, column, label):
        df = generate(20, rng=15).drop(columns=[column])
        with pytest.raises(ValueError, match=f"{label} column"):
            CovariateAdjustedOLS().fit(df)

    def test_summary_and_executive_summary_run(self):
        df = generate(100, mode="biased", imbalance=0.3, rng=16)
        result = CovariateAdjustedOLS().fit(df)

        assert "Adjusted estimate" in result.summary()
        assert "Executive Summary" in result.executive_summary()
        assert repr(result) == result.summary()
