import pandas as pd
import pytest

from imbalance import BalanceCheck, CovariateAdjustedOLS, check_balance, generate
from imbalance._exceptions import DegenerateRegression, InvalidParameter


class TestCheckBalance:
    def test_randomised_data_is_balanced(self):
        df = generate(5_000, rng=21)
        check = check_balance(df, alpha=0.001)

        assert isinstance(check, BalanceCheck)
        assert check.passed
        assert abs(check.difference) < 0.05

    def test_biased_assignment_is_flagged(self):
        df = generate(2_000, mode="biased", imbalance=0.8, rng=22)
        check = check_balance(df)

        assert not check.passed
        assert check.difference == pytest.approx(0.8, abs=0.05)
        assert check.pvalue < 0.001
        assert "imbalanced" in check.detail
        assert "FAIL" in repr(check)

    def test_constant_covariate_passes(self):
        df = pd.DataFrame({"Z": [0, 1, 0, 1], "X": [1, 1, 1, 1], "Y": [10.0, 12.0, 11.0, 13.0]})
        check = check_balance(df)

        assert check.passed
        assert check.difference == 0.0

    def test_no_residual_degrees_of_freedom_raises(self):
        df = pd.DataFrame({"Z": [0, 1], "X": [0, 1], "Y": [10.0, 13.0]})
        with pytest.raises(DegenerateRegression, match="residual degrees of freedom"):
            check_balance(df)

    def test_perfect_imbalance_fails(self):
        df = pd.DataFrame({"Z": [0, 0, 1, 1], "X": [0, 0, 1, 1], "Y": [10.0, 11.0, 13.0, 14.0]})
        check = check_balance(df)

        assert not check.passed
        assert check.difference == pytest.approx(1.0)

    def test_single_arm_raises(self):
        df = pd.DataFrame({"Z": [1, 1, 1], "X": [0, 1, 0], "Y": [1.0, 2.0, 3.0]})
        with pytest.raises(DegenerateRegression):
            check_balance(df)

    @pytest.mark.parametrize("alpha", [0, 1, -0.1])
    def test_bad_alpha_raises(self, alpha):
        with pytest.raises(InvalidParameter, match="alpha"):
            check_balance(generate(20, rng=0), alpha=alpha)

    def test_missing_column_raises(self):
        df = generate(20, rng=0).drop(columns=["X"])
        with pytest.raises(ValueError, match="Covariate column"):
            check_balance(df)

    def test_available_from_adjustment_result(self):
        df = generate(2_000, mode="biased", imbalance=0.8, rng=23)
        check = CovariateAdjustedOLS().fit(df).check_balance(df)

        assert not check.passed
