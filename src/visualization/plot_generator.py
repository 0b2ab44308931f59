"""Main orchestrator for generating all simulation plots."""

from pathlib import Path

from visualization.plot_utils import save_plot
from visualization.plots import agent_plots, price_plots


class PlotGenerator:
    """Orchestrates the generation of all simulation plots."""

    def __init__(self, data_recorder, run_dir: Path):
        """
        Initialize the plot generator.

        Args:
            data_recorder: DataRecorder holding the recorded run
            run_dir: Run directory; plots land in its 'plots' subdirectory
        """
        self.data_recorder = data_recorder
        self.plots_dir = Path(run_dir) / 'plots'
        self.plots_dir.mkdir(parents=True, exist_ok=True)

    def save_all_plots(self):
        """Generate and save all plots for the simulation."""
        self._generate_price_plots()
        self._generate_agent_plots()

    def _generate_price_plots(self):
        prices = self.data_recorder.price_frame()
        if prices.empty:
            return
        save_plot(price_plots.plot_price_history(prices), 'price_history', self.plots_dir)
        save_plot(price_plots.plot_normalized_prices(prices), 'normalized_prices', self.plots_dir)

    def _generate_agent_plots(self):
        leaderboard = self.data_recorder.leaderboard_frame()
        if leaderboard.empty:
            return
        save_plot(agent_plots.plot_leaderboard(leaderboard), 'leaderboard', self.plots_dir)
