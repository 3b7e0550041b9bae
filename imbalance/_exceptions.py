class InvalidParameter(ValueError):
    """
    Raised when a simulation parameter is outside its valid range.

    Parameters are never coerced: ``n=0``, ``trials=-1`` or an unknown
    assignment mode fail at call time, before any data is drawn.
    """
    pass


class DegenerateRegression(Exception):
    """
    Raised when the treatment coefficient of an OLS fit is not identified.

    This happens when the treatment column has zero variance (every unit in
    one arm, which is common at small ``n``) or when it is collinear with the
    intercept and the covariate. statsmodels would still return a
    pseudo-inverse solution in that case; it is meaningless, so we refuse.
    """
    pass
