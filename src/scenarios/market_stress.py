"""
Market Stress Scenarios

Scenarios where agents lean on the night events: low cash so bribes are on
offer, event hunters that take the rarest event, and momentum traders that
chase the resulting moves.
"""

from .base import SimulationScenario, DEFAULT_PARAMS

SCENARIOS = {
    "default": SimulationScenario(
        name="default",
        description="Mixed population of random traders, momentum traders and event hunters",
        parameters=DEFAULT_PARAMS,
    ),
    "event_frenzy": SimulationScenario(
        name="event_frenzy",
        description="Cash-poor event hunters; bribes and sabotage every night",
        parameters={
            **DEFAULT_PARAMS,
            "NUM_TICKS": 1920,
            "STORE_DIR": "store/event_frenzy",
            "AGENT_PARAMS": {
                **DEFAULT_PARAMS["AGENT_PARAMS"],
                'initial_cash': 50_000,
                'agent_composition': {
                    'event_hunter': 6,
                    'momentum_trader': 2,
                },
            }
        }
    ),
    "momentum_crowd": SimulationScenario(
        name="momentum_crowd",
        description="Only trend followers; tests whether buy pressure feeds on itself",
        parameters={
            **DEFAULT_PARAMS,
            "STORE_DIR": "store/momentum_crowd",
            "AGENT_PARAMS": {
                **DEFAULT_PARAMS["AGENT_PARAMS"],
                'agent_composition': {
                    'momentum_trader': 8,
                },
                'deterministic_params': {
                    'momentum_trader': {
                        'short_window': 3,
                        'long_window': 12,
                        'min_trend': 0.005,
                        'max_position': 0.3,
                    },
                },
            }
        }
    ),
}
