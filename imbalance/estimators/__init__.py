from .ols import CovariateAdjustedOLS, AdjustmentResult, TrialResult, analyze

__all__ = ["CovariateAdjustedOLS", "AdjustmentResult", "TrialResult", "analyze"]
