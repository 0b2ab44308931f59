from typing import Any, Dict

from constants import (
    INITIAL_AGENT_CASH, MARKET_TICK_INTERVAL_MILLIS, PORTFOLIO_UPDATE_INTERVAL_TICKS,
    SAVE_TO_STORE_INTERVAL_TICKS
)

REQUIRED_PARAMS = (
    "RANDOM_SEED", "NUM_TICKS", "TICK_INTERVAL_MS", "SAVE_INTERVAL_TICKS",
    "PORTFOLIO_UPDATE_INTERVAL", "WARMUP_DAYS", "STORE_DIR", "AGENT_PARAMS",
)


class SimulationScenario:
    """
    Represents a specific simulation scenario with a defined set of parameters.

    This class encapsulates the configuration for a simulation run: the seed,
    how long and how fast to tick, where snapshots are stored and which
    scripted agents take part. Parameters are validated at construction so a
    broken scenario fails when the registry is imported, not mid-run.

    Attributes:
        name (str): The unique name of the scenario.
        description (str): A brief description of what the scenario is testing.
        parameters (Dict[str, Any]): A dictionary of parameters for the simulation.
    """
    def __init__(self, name: str, description: str, parameters: Dict[str, Any]):
        self.name = name
        self.description = description
        self.parameters = parameters
        self._validate_parameters()

    def _validate_parameters(self):
        params = self.parameters
        missing = [key for key in REQUIRED_PARAMS if key not in params]
        if missing:
            raise ValueError(f"Scenario {self.name} is missing parameters: {missing}")

        for key in ("NUM_TICKS", "WARMUP_DAYS"):
            if params[key] < 0:
                raise ValueError(f"Scenario {self.name}: {key} must be non-negative")
        for key in ("TICK_INTERVAL_MS", "SAVE_INTERVAL_TICKS", "PORTFOLIO_UPDATE_INTERVAL"):
            if params[key] <= 0:
                raise ValueError(f"Scenario {self.name}: {key} must be positive")

        agent_params = params["AGENT_PARAMS"]
        if agent_params.get('initial_cash', 0) < 0:
            raise ValueError(f"Scenario {self.name}: initial_cash must be non-negative")
        for agent_kind, count in agent_params.get('agent_composition', {}).items():
            if count < 0:
                raise ValueError(f"Scenario {self.name}: negative count for {agent_kind}")


# Default parameters that can be overridden by specific scenarios
DEFAULT_PARAMS = {
    # Core simulation parameters
    "RANDOM_SEED": 42,
    "NUM_TICKS": 960,  # Ten day/night cycles
    "TICK_INTERVAL_MS": MARKET_TICK_INTERVAL_MILLIS,
    "SAVE_INTERVAL_TICKS": SAVE_TO_STORE_INTERVAL_TICKS,
    "PORTFOLIO_UPDATE_INTERVAL": PORTFOLIO_UPDATE_INTERVAL_TICKS,

    # Market parameters
    "WARMUP_DAYS": 7,
    "STORE_DIR": "store",
    "STOCK_DATA_PATH": None,  # None = packaged scenarios/data/stocks.csv

    # Agent parameters
    "AGENT_PARAMS": {
        'initial_cash': INITIAL_AGENT_CASH,
        'agent_composition': {
            'random_trader': 4,
            'momentum_trader': 2,
            'event_hunter': 2,
        },
        'deterministic_params': {
            'random_trader': {
                'trade_probability': 0.1,
                'max_proportion': 0.1,
            },
            'momentum_trader': {
                'short_window': 5,
                'long_window': 20,
                'min_trend': 0.02,
                'max_position': 0.5,
            },
        }
    },
}
