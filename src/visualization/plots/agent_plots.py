"""Agent-related visualization functions."""

import matplotlib.pyplot as plt
import pandas as pd
from visualization.plot_config import BAR_COLOR, GRID_ALPHA, STANDARD_FIGSIZE, TOP_LEADERBOARD_SIZE


def plot_leaderboard(leaderboard: pd.DataFrame):
    """
    Horizontal bar chart of the richest agents.

    Args:
        leaderboard: Rows with 'username' and 'total_value' (cents), ranked

    Returns:
        Matplotlib figure
    """
    top = leaderboard.head(TOP_LEADERBOARD_SIZE).iloc[::-1]
    fig, ax = plt.subplots(figsize=STANDARD_FIGSIZE)

    ax.barh(top['username'], top['total_value'] / 100.0, color=BAR_COLOR)
    ax.set_xlabel('Total value ($)')
    ax.set_title('Leaderboard')
    ax.grid(True, axis='x', alpha=GRID_ALPHA)

    return fig
