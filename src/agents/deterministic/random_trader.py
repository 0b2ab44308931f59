from typing import Optional

from agents.agents_api import AgentAction, Buy, Sell
from agents.base_agent import BaseAgent


class RandomTrader(BaseAgent):
    """Buys or sells a random stock now and then during the day"""
    agent_kind = "random_trader"

    def __init__(self,
                 trade_probability: float = 0.1,  # Chance to act on a given tick
                 max_proportion: float = 0.1,     # Maximum 10% of cash or holding per trade
                 *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not 0.0 <= trade_probability <= 1.0:
            raise ValueError("trade_probability must be in [0, 1]")
        self.trade_probability = trade_probability
        self.max_proportion = max_proportion

    def make_decision(self, market, rng) -> Optional[AgentAction]:
        if not market.phase.is_day or rng.random() >= self.trade_probability:
            return None

        stock = market.stocks[int(rng.choice(len(market.stocks)))]
        held = self.owned_shares[stock.id]
        if held > 0 and rng.random() < 0.5:
            quantity = max(1, int(held * self.max_proportion))
            return Sell(stock_id=stock.id, amount=quantity)

        quantity = int(stock.max_buy_amount(self.cash) * self.max_proportion)
        if quantity == 0:
            return None
        return Buy(stock_id=stock.id, amount=quantity)
