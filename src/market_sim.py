import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from agents.agent_manager.agent_repository import AgentRepository, create_agent
from agents.agents_api import AgentAction
from agents.base_agent import BaseAgent, UserAgent
from agents.verification.agent_verifier import AgentVerifier
from constants import (
    INITIAL_AGENT_CASH, MARKET_TICK_INTERVAL_MILLIS, NUMBER_OF_STOCKS, PORTFOLIO_UPDATE_INTERVAL_TICKS,
    SAVE_TO_STORE_INTERVAL_TICKS
)
from market.data_recorder import DataRecorder
from market.engine.action_resolver import ActionResolver
from market.errors import ActionRejectedError, InvalidPreconditionError
from market.market import Market
from market.night_events import evaluate_night_events
from services.logging_service import LoggingService
from services.persistence import MarketStore
from utils.csv_loader import DEFAULT_STOCK_DATA_PATH, load_stock_rows
from verification.simulation_verifier import SimulationVerifier


class MarketSimulation:
    """
    The authoritative tick loop over one shared market.

    Every tick, under one re-entrant lock:
        1. Scripted agents pick their pending action
        2. The market advances (price tick by day, condition purge by night)
        3. Night events are offered once per night, and withdrawn at dawn
        4. Expired agent conditions are purged
        5. Pending actions are resolved in registry order
        6. Portfolios, recording, verification and snapshots, on their intervals

    Sessions read or select through ``exclusive()`` so they only ever observe
    state between ticks.

    Attributes:
        market (Market): Shared market state
        agent_repository (AgentRepository): Every participant, by username
        rng (np.random.Generator): The single random source of the run
        tick_count (int): Loop ticks run by this instance, day and night
    """

    def __init__(self,
                 market: Market,
                 agent_repository: Optional[AgentRepository] = None,
                 rng: Optional[np.random.Generator] = None,
                 store: Optional[MarketStore] = None,
                 save_interval_ticks: int = SAVE_TO_STORE_INTERVAL_TICKS,
                 portfolio_update_interval: int = PORTFOLIO_UPDATE_INTERVAL_TICKS,
                 data_recorder: Optional[DataRecorder] = None,
                 verify: bool = True):
        self.market = market
        self.agent_repository = agent_repository if agent_repository is not None else AgentRepository()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.store = store
        self.save_interval_ticks = save_interval_ticks
        self.portfolio_update_interval = portfolio_update_interval
        self.data_recorder = data_recorder
        self.verify = verify

        self.resolver = ActionResolver(self.market, self.agent_repository)
        self.verifier = SimulationVerifier(self.market, self.agent_repository)
        self.lock = threading.RLock()
        self.tick_count = 0
        self.logger = LoggingService.get_logger('simulation')

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------
    @staticmethod
    def bootstrap_market(rng: np.random.Generator,
                         store: Optional[MarketStore] = None,
                         stock_data_path: Optional[Path] = None,
                         warmup_days: int = 0,
                         reset: bool = False) -> Tuple[Market, AgentRepository]:
        """Load the stored market, or build and warm up a fresh one.

        A fresh market is built when ``reset`` is set, when there is no store
        or when the store holds no snapshot.
        """
        logger = LoggingService.get_logger('simulation')
        if store is not None and not reset:
            loaded = store.load()
            if loaded is not None:
                return loaded

        rows = load_stock_rows(stock_data_path or DEFAULT_STOCK_DATA_PATH, expected_count=NUMBER_OF_STOCKS)
        market = Market.from_stock_rows(rows)
        if warmup_days:
            market.warm_up(warmup_days, rng)
        logger.info(f"Created fresh market with {len(market.stocks)} stocks")
        return market, AgentRepository()

    @classmethod
    def from_scenario(cls, parameters: Dict[str, Any], reset: bool = False,
                      data_dir: Optional[Path] = None) -> 'MarketSimulation':
        rng = np.random.default_rng(parameters["RANDOM_SEED"])
        store = MarketStore(Path(parameters["STORE_DIR"]))
        market, agents = cls.bootstrap_market(
            rng,
            store=store,
            stock_data_path=parameters.get("STOCK_DATA_PATH"),
            warmup_days=parameters["WARMUP_DAYS"],
            reset=reset,
        )
        recorder = DataRecorder(market, agents, data_dir) if data_dir is not None else None
        simulation = cls(
            market,
            agents,
            rng=rng,
            store=store,
            save_interval_ticks=parameters["SAVE_INTERVAL_TICKS"],
            portfolio_update_interval=parameters["PORTFOLIO_UPDATE_INTERVAL"],
            data_recorder=recorder,
        )
        simulation.initialize_agents(parameters["AGENT_PARAMS"])
        return simulation

    def initialize_agents(self, agent_params: dict) -> List[BaseAgent]:
        """Create the scripted population; agents already restored are kept as they are."""
        created = []
        initial_cash = agent_params.get('initial_cash', INITIAL_AGENT_CASH)
        deterministic_params = agent_params.get('deterministic_params', {})
        for agent_kind, count in agent_params.get('agent_composition', {}).items():
            for index in range(count):
                username = f"{agent_kind}_{index}"
                if username in self.agent_repository:
                    continue
                agent = create_agent(
                    agent_kind, username, len(self.market.stocks),
                    initial_cash=initial_cash, **deterministic_params.get(agent_kind, {})
                )
                self.agent_repository.insert_agent(agent)
                created.append(agent)
        if created:
            self.logger.warning(f"Agent composition: {agent_params.get('agent_composition')}")
        return created

    # ------------------------------------------------------------------
    # Session access
    # ------------------------------------------------------------------
    @contextmanager
    def exclusive(self):
        """Hold the market and the registry between ticks."""
        with self.lock:
            yield self

    def join(self, username: str, initial_cash: int = INITIAL_AGENT_CASH) -> BaseAgent:
        """Resume the agent registered under ``username``, or create a new user agent."""
        with self.lock:
            agent = self.agent_repository.get_agent(username)
            if agent is None:
                agent = UserAgent(username, initial_cash=initial_cash, number_of_stocks=len(self.market.stocks))
                self.agent_repository.insert_agent(agent)
            return agent

    def remove_agent(self, username: str) -> Optional[BaseAgent]:
        """Unregister an agent and return its shares to the unallocated supply."""
        with self.lock:
            agent = self.agent_repository.remove_agent(username)
            if agent is not None:
                self.market.release_agent_shares(agent)
            return agent

    def select_action(self, username: str, action: AgentAction) -> bool:
        """Queue an action for the next tick. First select wins until resolved."""
        with self.lock:
            agent = self.agent_repository.get_agent(username)
            if agent is None:
                return False
            return agent.select_action(action)

    def select_night_event(self, username: str, index: int) -> bool:
        with self.lock:
            agent = self.agent_repository.get_agent(username)
            if agent is None:
                return False
            return agent.select_night_event(index)

    def stock_info(self, username: str, stock_id: int) -> Optional[str]:
        """Disclosure line a session shows for one stock, or None for an unknown agent."""
        with self.lock:
            agent = self.agent_repository.get_agent(username)
            if agent is None:
                return None
            return agent.stock_info(self.market.stocks[stock_id], self.market.last_tick)

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------
    def tick(self):
        with self.lock:
            pre_tick_states = self.verifier.store_pre_tick_states() if self.verify else None

            self._phase_collect_decisions()
            self.market.tick(self.rng, len(self.agent_repository))
            self._phase_night_events()
            self._phase_expire_conditions()
            self._phase_resolve_actions()

            self.tick_count += 1
            self._phase_end_of_tick(pre_tick_states)

    def _phase_collect_decisions(self):
        for agent in self.agent_repository:
            make_decision = getattr(agent, 'make_decision', None)
            if make_decision is None or agent.selected_action() is not None:
                continue
            action = make_decision(self.market, self.rng)
            if action is not None:
                agent.select_action(action)

    def _phase_night_events(self):
        phase = self.market.phase
        if phase.is_day:
            if phase.counter == 0:
                for agent in self.agent_repository:
                    agent.set_available_night_events([])
            return

        agents = self.agent_repository.get_all_agents()
        for agent in agents:
            if agent.events_offered_cycle == phase.cycle:
                continue
            events = evaluate_night_events(agent, self.market, agents, self.rng)
            agent.set_available_night_events(events)
            agent.events_offered_cycle = phase.cycle
            if events:
                LoggingService.get_logger('events').info(
                    f"Night {phase.cycle}: offered {[e.display_name for e in events]} to {agent.username}"
                )

    def _phase_expire_conditions(self):
        for agent in self.agent_repository:
            agent.expire_conditions(self.market.last_tick)

    def _phase_resolve_actions(self):
        tick = self.market.last_tick
        for agent in self.agent_repository:
            pending = agent.selected_action()
            if pending is None:
                continue
            try:
                result = self.resolver.resolve(agent)
            except ActionRejectedError as e:
                agent.last_rejection = str(e)
                LoggingService.log_rejected_action(
                    tick, agent.username, agent.agent_kind, e, pending.describe()
                )
                continue
            except InvalidPreconditionError:
                self.logger.critical(
                    f"Contract violation resolving {pending.describe()} for {agent.username}",
                    exc_info=True
                )
                continue
            if result is not None and self.data_recorder is not None:
                self.data_recorder.record_action(result)

    def _phase_end_of_tick(self, pre_tick_states):
        if self.tick_count % self.portfolio_update_interval == 0:
            self.market.update_portfolios(self.agent_repository)
            if self.data_recorder is not None:
                self.data_recorder.record_portfolios(self.tick_count)

        if self.data_recorder is not None:
            self.data_recorder.record_tick_data(self.tick_count)

        if self.verify:
            self.verifier.verify_tick_end_states(pre_tick_states)
            for agent in self.agent_repository:
                if not AgentVerifier(agent).verify_state(self.market):
                    raise ValueError(f"Agent state verification failed for {agent.username}")

        if self.tick_count % self.save_interval_ticks == 0:
            self.flush_recorder()
            if self.store is not None:
                self.save()

    def flush_recorder(self) -> bool:
        """Move recorded rows to the data CSVs so memory stays bounded in long runs."""
        if self.data_recorder is None:
            return False
        try:
            self.data_recorder.flush()
        except OSError as e:
            LoggingService.get_logger('persistence').error(f"Failed to flush recorded data: {e}")
            return False
        return True

    def save(self) -> bool:
        """Snapshot market and agents. Failures are logged; the in-memory state stays authoritative."""
        if self.store is None:
            return False
        with self.lock:
            try:
                self.store.save(self.market, self.agent_repository)
            except (OSError, TypeError, ValueError) as e:
                LoggingService.get_logger('persistence').error(f"Failed to store market: {e}")
                return False
        return True

    def run(self, num_ticks: int):
        """Batch mode: run ``num_ticks`` ticks back to back."""
        for _ in range(num_ticks):
            self.tick()
        self.market.update_portfolios(self.agent_repository)
        self.save()
        LoggingService.log_simulation(
            f"Ran {num_ticks} ticks; market at tick {self.market.last_tick} ({self.market.phase.formatted()})"
        )

    def run_forever(self, stop_event: threading.Event,
                    tick_interval_ms: int = MARKET_TICK_INTERVAL_MILLIS):
        """Tick on a wall-clock cadence until ``stop_event`` is set."""
        interval = tick_interval_ms / 1000.0
        next_tick = time.monotonic()
        while not stop_event.is_set():
            self.tick()
            next_tick += interval
            stop_event.wait(max(0.0, next_tick - time.monotonic()))
        with self.lock:
            self.market.update_portfolios(self.agent_repository)
        self.save()
        LoggingService.log_simulation(f"Stopped at market tick {self.market.last_tick}")
