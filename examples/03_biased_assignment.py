"""
Feeling sinister: let the covariate drive treatment.

Units with X == 1 are treated with probability (1 + imbalance) / 2 and
units with X == 0 with probability (1 - imbalance) / 2. A positive
imbalance piles X == 1 into the treated arm and inflates the naive
estimate by roughly covariate_effect * imbalance; a negative one deflates it.
Adjusting for X recovers the true effect of 2.0 either way.
"""

import logging

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from imbalance import run

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

TRIALS = 2_000
N = 20
SEED = 42

fig, axes = plt.subplots(1, 2, figsize=(16, 6), sharey=True)

for ax, imbalance in zip(axes, (0.5, -0.5)):
    result = run(trials=TRIALS, n=N, mode="biased", imbalance=imbalance, seed=SEED)
    print(result.summary())
    result.plot(ax=ax, title=f"imbalance = {imbalance:+g}")

fig.savefig("imbalance_biased.png", dpi=120, bbox_inches="tight")
