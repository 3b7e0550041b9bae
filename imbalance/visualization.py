"""
Plots for Monte Carlo results.

Follows the usual matplotlib convention: pass ``ax`` to draw into an existing
figure, otherwise a new one is created. The axes are always returned.
"""
from __future__ import annotations

import numpy as np

STYLE = {
    'colors': {
        'unadjusted': '#F44336',
        'adjusted': '#2196F3',
        'truth': '#9E9E9E',
    },
    'markers': {
        'unadjusted': 'o',
        'adjusted': '^',
    },
    'alpha': 0.4,
    'size': 12,
}

_LABELS = {
    'unadjusted_ate': ('unadjusted', 'Unadjusted (Y ~ Z)'),
    'adjusted_ate': ('adjusted', 'Adjusted (Y ~ Z + X)'),
}


def plot_balance(
    results,
    ax=None,
    figsize: tuple[int, int] = (10, 6),
    title: str = 'Treatment effect estimates vs. covariate imbalance',
    show_truth: bool = True,
):
    """
    Scatter unadjusted and adjusted estimates against ``Cov(X, Z)``.

    Each series gets its own colour, marker and OLS trend line. Under
    imbalance the unadjusted estimates tilt with the covariance while the
    adjusted ones stay flat around the true effect.

    Parameters
    ----------
    results : SimulationResult
        Output of ``run()``.
    ax : matplotlib.axes.Axes, optional
        Axes to plot on
    figsize : tuple
        Figure size, used only when ``ax`` is None
    title : str
        Plot title
    show_truth : bool
        Draw a dashed horizontal line at the design's true effect

    Returns
    -------
    matplotlib.axes.Axes
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    frame = results.frame
    cov = frame['cov'].to_numpy()
    grid = np.linspace(cov.min(), cov.max(), 50) if len(cov) else np.array([])

    for column, (key, label) in _LABELS.items():
        color = STYLE['colors'][key]
        ax.scatter(
            cov, frame[column].to_numpy(),
            c=color, marker=STYLE['markers'][key],
            s=STYLE['size'], alpha=STYLE['alpha'], label=label,
        )
        intercept, slope = results.trend(column)
        ax.plot(
            grid, intercept + slope * grid,
            color=color, linewidth=2, label=f'{label} trend (slope {slope:.2f})',
        )

    if show_truth:
        ax.axhline(
            results.design.true_effect, color=STYLE['colors']['truth'],
            linestyle='--', linewidth=1, label='True effect',
        )

    ax.set_xlabel('Cov(X, Z)')
    ax.set_ylabel('Estimated treatment effect')
    ax.set_title(title, fontsize=14)
    ax.legend(loc='best')
    ax.grid(True, alpha=0.3)

    return ax
