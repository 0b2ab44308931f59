"""
Scenarios Package

Organized collection of simulation scenarios:
- get_scenario(name): Get a scenario by name
- list_scenarios(): List all available scenarios

Scenarios are organized by category:
- market_stress: populations that exercise the night events
- test_scenarios: Simple test scenarios for development
"""

from typing import Dict
from .base import SimulationScenario, DEFAULT_PARAMS

from . import market_stress
from . import test_scenarios

# Combine all scenarios into a single registry
SCENARIOS = {
    **market_stress.SCENARIOS,
    **test_scenarios.SCENARIOS,
}


def get_scenario(scenario_name: str) -> SimulationScenario:
    """Get a scenario by name"""
    if scenario_name not in SCENARIOS:
        raise ValueError(f"Unknown scenario: {scenario_name}. Available scenarios: {list(SCENARIOS.keys())}")
    return SCENARIOS[scenario_name]


def list_scenarios() -> Dict[str, str]:
    """List all available scenarios and their descriptions"""
    return {name: scenario.description for name, scenario in SCENARIOS.items()}
