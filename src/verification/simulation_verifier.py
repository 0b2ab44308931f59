"""
SimulationVerifier: checks market-wide invariants after each tick.

Covers share accounting between stocks and agents, price bounds and
history bounds. Violations are logged to the verification logger and raised
as ValueError.
"""

from typing import Dict

from constants import HISTORICAL_SIZE, MIN_PRICE_CENTS
from services.logging_service import LoggingService


class SimulationVerifier:
    """
    Verifies market state invariants and detects accounting errors.

    Kept apart from MarketSimulation so the tick loop stays about scheduling.
    """

    def __init__(self, market, agent_repository):
        self.market = market
        self.agent_repository = agent_repository
        self.logger = LoggingService.get_logger('verification')

    def store_pre_tick_states(self) -> Dict[str, Dict]:
        """Snapshot of every agent's cash and holdings before a tick."""
        return {
            agent.username: {
                'cash': agent.cash,
                'owned_shares': list(agent.owned_shares),
            }
            for agent in self.agent_repository
        }

    def verify_tick_end_states(self, pre_tick_states: Dict[str, Dict]) -> bool:
        self.verify_allocations()
        self.verify_prices()
        self._log_agent_changes(pre_tick_states)
        return True

    def verify_allocations(self):
        """Per stock: 0 <= allocated <= total, and allocated equals the agents' holdings."""
        for stock in self.market.stocks:
            if not 0 <= stock.allocated_shares <= stock.number_of_shares:
                msg = (
                    f"Allocation out of bounds for stock {stock.id} ({stock.name}): "
                    f"allocated {stock.allocated_shares}, total {stock.number_of_shares}"
                )
                self.logger.error(msg)
                raise ValueError(msg)

            held = {
                agent.username: agent.owned_shares[stock.id]
                for agent in self.agent_repository
                if agent.owned_shares[stock.id] > 0
            }
            total_held = sum(held.values())
            if total_held != stock.allocated_shares:
                msg = f"Share conservation violated for stock {stock.id} ({stock.name}):\n"
                msg += f"Allocated: {stock.allocated_shares}\n"
                msg += f"Held by agents: {total_held}\n"
                msg += "Per-agent breakdown:\n"
                for username, amount in held.items():
                    msg += f"  Agent {username}: {amount}\n"
                self.logger.error(msg)
                raise ValueError(msg)
        self.logger.debug("Allocations verified")

    def verify_prices(self):
        for stock in self.market.stocks:
            if stock.price_per_share_in_cents < MIN_PRICE_CENTS:
                msg = f"Price below floor for stock {stock.id}: {stock.price_per_share_in_cents}"
                self.logger.error(msg)
                raise ValueError(msg)
            if len(stock.historical_prices) > HISTORICAL_SIZE:
                msg = f"Price history of stock {stock.id} exceeds {HISTORICAL_SIZE} entries"
                self.logger.error(msg)
                raise ValueError(msg)

    def _log_agent_changes(self, pre_tick_states):
        for username, state in pre_tick_states.items():
            agent = self.agent_repository.get_agent(username)
            if agent is None:
                continue
            change = agent.cash - state['cash']
            if change:
                self.logger.debug(f"Agent {username}: {state['cash']} -> {agent.cash} (Δ{change})")
