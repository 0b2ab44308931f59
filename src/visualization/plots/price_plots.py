"""Price-related visualization functions."""

import matplotlib.pyplot as plt
import pandas as pd
from visualization.plot_config import (
    GRID_ALPHA, LARGE_FIGSIZE, STANDARD_ALPHA, STANDARD_FIGSIZE, THIN_LINEWIDTH
)


def plot_price_history(prices: pd.DataFrame):
    """
    Plot every stock's price, in dollars, over simulation ticks.

    Args:
        prices: One column per stock, indexed by tick, values in cents

    Returns:
        Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=LARGE_FIGSIZE)

    for name in prices.columns:
        ax.plot(prices.index, prices[name] / 100.0, label=name,
                linewidth=THIN_LINEWIDTH, alpha=STANDARD_ALPHA)

    ax.set_xlabel('Tick')
    ax.set_ylabel('Price ($)')
    ax.set_title('Stock Prices')
    ax.legend(loc='best')
    ax.grid(True, alpha=GRID_ALPHA)

    return fig


def plot_normalized_prices(prices: pd.DataFrame):
    """Prices relative to their first recorded value."""
    fig, ax = plt.subplots(figsize=STANDARD_FIGSIZE)

    normalized = prices / prices.iloc[0]
    for name in normalized.columns:
        ax.plot(normalized.index, normalized[name], label=name, linewidth=THIN_LINEWIDTH)

    ax.axhline(1.0, color='black', linestyle='--', linewidth=1)
    ax.set_xlabel('Tick')
    ax.set_ylabel('Price / initial price')
    ax.set_title('Relative Price Evolution')
    ax.legend(loc='best')
    ax.grid(True, alpha=GRID_ALPHA)

    return fig
