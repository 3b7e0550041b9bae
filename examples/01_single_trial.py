"""
One simulated trial: how much did chance imbalance move the naive estimate?

Treatment Z and covariate X are independent fair coins, but with only
20 units the arms rarely end up with the same share of X == 1. Because X
raises the outcome by 1, whichever arm got more of it looks better.

The true average treatment effect is 2.0.
"""

import numpy as np

from imbalance import CovariateAdjustedOLS, generate

RNG = np.random.default_rng(0)
N = 20

df = generate(N, rng=RNG)
print(df.head())
print()

result = CovariateAdjustedOLS().fit(df)
print(result.summary())
print(result.check_balance(df).detail)
print()
print(result.executive_summary())
