import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import hashlib
import json
import signal
import threading
from datetime import datetime
from pathlib import Path
from typing import List

from market.data_recorder import DataRecorder
from market.stock import format_dollars
from market_sim import MarketSimulation
from scenarios import get_scenario, list_scenarios
from services.logging_service import LoggingService
from visualization.plot_generator import PlotGenerator


def compute_config_hash(parameters: dict) -> str:
    """Compute SHA-256 hash of configuration for reproducibility verification."""
    config_str = json.dumps(parameters, sort_keys=True, default=str)
    return hashlib.sha256(config_str.encode()).hexdigest()


def save_metadata(run_dir: Path, scenario_name: str, description: str, parameters: dict):
    """Write metadata.json and parameters.json into the run directory"""
    metadata = {
        'sim_type': scenario_name,
        'description': description,
        'timestamp': datetime.now().strftime('%Y%m%d_%H%M%S'),
        'config_hash': compute_config_hash(parameters),
    }
    with open(run_dir / 'metadata.json', 'w') as f:
        json.dump(metadata, f, indent=4)
    with open(run_dir / 'parameters.json', 'w') as f:
        json.dump(parameters, f, indent=4, default=str)


def format_leaderboard(simulation: MarketSimulation) -> List[str]:
    """Final leaderboard lines, recomputed from the current registry."""
    lines = []
    with simulation.exclusive():
        simulation.market.update_portfolios(simulation.agent_repository)
        for rank, (username, value) in enumerate(simulation.market.portfolios, start=1):
            agent = simulation.agent_repository.get_agent(username)
            if agent is None:
                continue
            lines.append(f"{rank:3}. {username:24} ({agent.agent_kind:16}) "
                         f"Cash: ${format_dollars(agent.cash):>10}  Total Value: ${format_dollars(value):>10}")
    return lines


def run_scenario(scenario_name: str, seed: int = None, reset: bool = False,
                 num_ticks: int = None, realtime: bool = False):
    """Run a single scenario by name"""
    scenario = get_scenario(scenario_name)
    params = dict(scenario.parameters)

    # Apply overrides if provided
    if seed is not None:
        params["RANDOM_SEED"] = seed
    if num_ticks is not None:
        params["NUM_TICKS"] = num_ticks

    run_id = datetime.now().strftime('%Y%m%d_%H%M%S')
    LoggingService.initialize(f"{scenario.name}/{run_id}")
    run_dir = LoggingService.get_run_dir()
    save_metadata(run_dir, scenario.name, scenario.description, params)

    simulation = MarketSimulation.from_scenario(params, reset=reset, data_dir=LoggingService.get_data_dir())

    if realtime:
        stop_event = threading.Event()
        signal.signal(signal.SIGINT, lambda signum, frame: stop_event.set())
        print(f"Ticking every {params['TICK_INTERVAL_MS']} ms, Ctrl-C to stop")
        simulation.run_forever(stop_event, params["TICK_INTERVAL_MS"])
    else:
        simulation.run(params["NUM_TICKS"])

    recorder: DataRecorder = simulation.data_recorder
    recorder.save_simulation_data()
    PlotGenerator(recorder, run_dir).save_all_plots()

    for line in format_leaderboard(simulation):
        print(line)


def main():
    """
    Main function to run simulations.
    Parses command-line arguments to run a specific scenario or list available ones.
    """
    import argparse

    parser = argparse.ArgumentParser(description="Run a shared stock market simulation scenario.")
    parser.add_argument(
        "scenario",
        nargs='?',
        default=None,
        help="The name of the scenario to run. If not provided, lists available scenarios."
    )
    parser.add_argument(
        "-l", "--list",
        action="store_true",
        help="List all available scenarios and their descriptions."
    )
    parser.add_argument(
        "-s", "--seed",
        type=int,
        default=None,
        help="Override the scenario's random seed"
    )
    parser.add_argument(
        "-r", "--reset",
        action="store_true",
        help="Ignore the stored snapshot and start from a fresh, warmed-up market"
    )
    parser.add_argument(
        "-t", "--ticks",
        type=int,
        default=None,
        help="Override the number of ticks to run in batch mode"
    )
    parser.add_argument(
        "--realtime",
        action="store_true",
        help="Tick on the wall clock until interrupted instead of running a fixed number of ticks"
    )

    args = parser.parse_args()

    available_scenarios = list_scenarios()

    if args.list:
        print("Available scenarios:")
        for name, desc in available_scenarios.items():
            print(f"  - {name}: {desc}")
        return

    if args.scenario is None:
        print("No scenario specified. Please choose from the list below:")
        for name in available_scenarios:
            print(f"  - {name}")
        print("\nUsage: python src/run_market_sim.py <scenario_name>")
        return

    if args.scenario not in available_scenarios:
        print(f"Error: Scenario '{args.scenario}' not found.")
        print("Please choose from the available scenarios:")
        for name in available_scenarios.keys():
            print(f"  - {name}")
        return

    scenario_name = args.scenario
    print(f"\nRunning scenario: {scenario_name}")
    print("-" * 50)
    try:
        run_scenario(
            scenario_name,
            seed=args.seed,
            reset=args.reset,
            num_ticks=args.ticks,
            realtime=args.realtime,
        )
        print(f"Successfully completed scenario: {scenario_name}")
    except Exception as e:
        print(f"Error running scenario {scenario_name}: {str(e)}")
        import traceback
        print(traceback.format_exc())


if __name__ == "__main__":
    main()
