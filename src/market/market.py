from typing import Any, Dict, Iterable, List, Optional, Tuple, TYPE_CHECKING

from constants import DAY_LENGTH, GLOBAL_DRIFT_NOISE, INITIAL_AGENT_CASH, MAX_GLOBAL_DRIFT
from market.conditions import StockCondition
from market.game_phase import GamePhase
from market.stock import Stock, StockClass
from services.logging_service import LoggingService

if TYPE_CHECKING:
    from agents.base_agent import BaseAgent


class Market:
    """
    Shared market state: the fixed set of stocks, the day/night phase and the
    global drift controller.

    Responsibilities:
    - Advances the phase every tick
    - Runs the price process on day ticks and purges expired conditions
    - Nudges aggregate capitalization toward a target that grows with the
      number of agents
    - Keeps the leaderboard of agent valuations

    Does NOT:
    - Apply agent actions (ActionResolver)
    - Offer night events (night_events)
    - Own agents (AgentRepository)

    ``last_tick`` counts completed price ticks. Night ticks do not advance it,
    so every expiry expressed in ticks refers to trading time.
    """

    def __init__(self,
                 stocks: List[Stock],
                 last_tick: int = 0,
                 phase: Optional[GamePhase] = None,
                 initial_market_cap: Optional[int] = None,
                 portfolios: Optional[List[Tuple[str, int]]] = None,
                 agent_endowment: int = INITIAL_AGENT_CASH):
        if not stocks:
            raise ValueError("Market needs at least one stock")
        for index, stock in enumerate(stocks):
            if stock.id != index:
                raise ValueError(f"Stock ids must be 0..N-1 in order, got {stock.id} at position {index}")

        self.stocks = stocks
        self.last_tick = last_tick
        self.phase = phase or GamePhase.day()
        self.initial_market_cap = (
            initial_market_cap if initial_market_cap is not None else self.total_market_cap()
        )
        self.agent_endowment = agent_endowment
        self.portfolios: List[Tuple[str, int]] = list(portfolios or [])
        self.logger = LoggingService.get_logger('market')
        self.logger.debug(f"Started Market with {len(self.stocks)} stocks")

    # ------------------------------------------------------------------
    # Capitalization and global drift
    # ------------------------------------------------------------------
    def total_market_cap(self) -> int:
        return sum(stock.market_cap_cents() for stock in self.stocks)

    def target_market_cap(self, number_of_agents: int) -> int:
        return self.initial_market_cap + self.agent_endowment * number_of_agents

    def compute_global_drift(self, number_of_agents: int, rng) -> float:
        """Feedback drift toward the target capitalization, with noise, clamped."""
        cap = self.total_market_cap()
        target = self.target_market_cap(number_of_agents)
        base = min(cap, target)
        mean = (target - cap) / base if base > 0 else 0.0
        drift = mean + rng.uniform(-GLOBAL_DRIFT_NOISE, GLOBAL_DRIFT_NOISE)
        return max(-MAX_GLOBAL_DRIFT, min(MAX_GLOBAL_DRIFT, drift))

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------
    def tick_day(self, rng, number_of_agents: int = 0) -> None:
        current_tick = self.last_tick
        if current_tick % DAY_LENGTH == 0:
            drift = self.compute_global_drift(number_of_agents, rng)
            self.logger.info(
                f"Tick {current_tick}: global drift {drift:+.5f} "
                f"(cap {self.total_market_cap()}, target {self.target_market_cap(number_of_agents)})"
            )
            for stock in self.stocks:
                stock.add_condition(StockCondition.bump(drift), current_tick + DAY_LENGTH)

        for stock in self.stocks:
            stock.tick(current_tick, rng)
        self.last_tick += 1

    def tick_night(self) -> None:
        self.purge_conditions()

    def purge_conditions(self) -> None:
        for stock in self.stocks:
            stock.purge_conditions(self.last_tick)

    def tick(self, rng, number_of_agents: int = 0) -> GamePhase:
        """Run one tick of the active phase, then advance the phase."""
        if self.phase.is_day:
            self.tick_day(rng, number_of_agents)
        else:
            self.tick_night()

        previous = self.phase
        self.phase = self.phase.next()
        if previous.kind != self.phase.kind:
            self.logger.info(f"Phase change: {previous.kind.value} -> {self.phase.kind.value} ({self.phase.formatted()})")
        return self.phase

    def warm_up(self, days: int, rng) -> None:
        """Pre-run the price process so a fresh market starts with history.

        Only price ticks run; the phase is left untouched.
        """
        for _ in range(days * DAY_LENGTH):
            self.tick_day(rng)
        self.logger.info(f"Warmed up market for {days} days ({self.last_tick} ticks)")

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------
    def update_portfolios(self, agents: Iterable['BaseAgent']) -> List[Tuple[str, int]]:
        """Recompute the leaderboard: username -> cash plus holdings value, descending."""
        self.portfolios = sorted(
            ((agent.username, agent.valuation(self)) for agent in agents),
            key=lambda item: item[1],
            reverse=True,
        )
        return self.portfolios

    def release_agent_shares(self, agent: 'BaseAgent') -> None:
        """Return every share held by ``agent`` to the unallocated supply."""
        for stock in self.stocks:
            held = stock.shareholders.get(agent.username, 0)
            if held:
                stock.deallocate_shares_to_agent(agent.username, held)

    def reconcile_allocations(self, agents: Iterable['BaseAgent']) -> None:
        """Rebuild allocation ledgers from agent holdings."""
        agents = list(agents)
        for stock in self.stocks:
            stock.shareholders = {
                agent.username: agent.owned_shares[stock.id]
                for agent in agents
                if agent.owned_shares[stock.id] > 0
            }
            stock.allocated_shares = sum(stock.shareholders.values())

    # ------------------------------------------------------------------
    # Construction and serialization
    # ------------------------------------------------------------------
    @classmethod
    def from_stock_rows(cls, rows: List[Dict[str, Any]], **kwargs) -> 'Market':
        """Fresh market from static stock configuration rows (see utils.csv_loader)."""
        stocks = [
            Stock(
                id=int(row['id']),
                name=str(row['name']),
                short_name=str(row.get('short_name', '')),
                description=str(row.get('description', '')),
                stock_class=StockClass(row['class']),
                price_per_share_in_cents=int(row['price_per_share_in_cents']),
                number_of_shares=int(row['number_of_shares']),
                drift=float(row['drift']),
                volatility=float(row['volatility']),
                shock_probability=float(row['shock_probability']),
                dividend_probability=float(row.get('dividend_probability', 0.0)),
            )
            for row in rows
        ]
        return cls(stocks, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stocks': [stock.to_dict() for stock in self.stocks],
            'last_tick': self.last_tick,
            'phase': self.phase.to_dict(),
            'initial_market_cap': self.initial_market_cap,
            'agent_endowment': self.agent_endowment,
            'portfolios': [[name, value] for name, value in self.portfolios],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Market':
        return cls(
            stocks=[Stock.from_dict(s) for s in data['stocks']],
            last_tick=int(data['last_tick']),
            phase=GamePhase.from_dict(data['phase']),
            initial_market_cap=int(data['initial_market_cap']),
            portfolios=[(name, int(value)) for name, value in data.get('portfolios', [])],
            agent_endowment=int(data.get('agent_endowment', INITIAL_AGENT_CASH)),
        )
