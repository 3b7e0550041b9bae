import logging

from .design import Design, OutcomeModel, generate
from .estimators.ols import CovariateAdjustedOLS, AdjustmentResult, TrialResult, analyze
from .diagnostics import BalanceCheck, check_balance
from .simulation import SimulationResult, run
from .visualization import plot_balance
from ._exceptions import DegenerateRegression, InvalidParameter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Design", "OutcomeModel", "generate",
    "CovariateAdjustedOLS", "AdjustmentResult", "TrialResult", "analyze",
    "BalanceCheck", "check_balance",
    "SimulationResult", "run",
    "plot_balance",
    "DegenerateRegression", "InvalidParameter",
]
