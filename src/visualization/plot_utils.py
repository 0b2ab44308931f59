"""Utility functions for plot generation."""

from pathlib import Path

import matplotlib.pyplot as plt
from services.logging_service import LoggingService


def save_plot(fig, base_name: str, plots_dir: Path, close: bool = True):
    """
    Save a plot into the run's plot directory.

    Args:
        fig: Matplotlib figure to save
        base_name: Base name for the plot file (without extension)
        plots_dir: Directory receiving the png
        close: Whether to close the figure after saving
    """
    try:
        fig.savefig(plots_dir / f'{base_name}.png')
        LoggingService.get_logger('simulation').info(f"Saved plot: {base_name}")
    except OSError as e:
        LoggingService.get_logger('simulation').error(f"Error saving plot {base_name}: {str(e)}")
    finally:
        if close:
            plt.close(fig)
