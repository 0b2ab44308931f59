from typing import List, Optional

from agents.agents_api import AgentAction, Buy, Sell
from agents.base_agent import BaseAgent


class MomentumTrader(BaseAgent):
    """Trades based on price momentum/trend following"""
    agent_kind = "momentum_trader"

    def __init__(self,
                 short_window: int = 5,     # Short-term moving average window, in ticks
                 long_window: int = 20,     # Long-term moving average window, in ticks
                 min_trend: float = 0.02,   # Minimum 2% trend to trade
                 max_position: float = 0.5, # Maximum 50% of cash per buy
                 *args, **kwargs):
        super().__init__(*args, **kwargs)
        if short_window >= long_window:
            raise ValueError("short_window must be smaller than long_window")
        self.short_window = short_window
        self.long_window = long_window
        self.min_trend = min_trend
        self.max_position = max_position

    def calculate_moving_average(self, prices: List[int], window: int) -> float:
        """Calculate simple moving average for given window size"""
        if len(prices) < window:
            return prices[-1] if prices else 0
        recent = prices[-window:]
        return sum(recent) / len(recent)

    def trend(self, prices: List[int]) -> float:
        if len(prices) < self.long_window:
            return 0.0
        short_ma = self.calculate_moving_average(prices, self.short_window)
        long_ma = self.calculate_moving_average(prices, self.long_window)
        return (short_ma - long_ma) / long_ma if long_ma else 0.0

    def make_decision(self, market, rng) -> Optional[AgentAction]:
        if not market.phase.is_day:
            return None

        trends = [(self.trend(stock.historical_prices), stock) for stock in market.stocks]
        strength, stock = max(trends, key=lambda item: abs(item[0]))

        # If trend is too weak, hold
        if abs(strength) < self.min_trend:
            return None

        # Upward trend -> Buy
        if strength > 0:
            quantity = int(stock.max_buy_amount(self.cash) * min(abs(strength), self.max_position))
            if quantity == 0:
                return None
            return Buy(stock_id=stock.id, amount=quantity)

        # Downward trend -> Sell everything held
        held = self.owned_shares[stock.id]
        if held == 0:
            return None
        return Sell(stock_id=stock.id, amount=held)
