from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from constants import (
    DAY_LENGTH, HISTORICAL_SIZE, MAX_PRICE_DRIFT, MAX_SHOCK_PROBABILITY,
    MIN_PRICE_CENTS, EXTREME_PRICE_FACTOR
)
from market.conditions import ConditionQueue, StockCondition
from market.errors import InsufficientSharesError, NotEnoughSupplyError
from services.logging_service import LoggingService


class StockClass(str, Enum):
    MEDIA = "Media"
    WAR = "War"
    COMMODITY = "Commodity"
    TECHNOLOGY = "Technology"


class Stock:
    """A single listed stock.

    Owns its price history (integer cents, bounded to ``HISTORICAL_SIZE``
    entries), its allocation ledger and its condition queue. Prices move only
    through ``tick``; allocation moves only through the allocate/deallocate
    methods, which keep ``0 <= allocated_shares <= number_of_shares``.
    """

    def __init__(self,
                 id: int,
                 name: str,
                 stock_class: StockClass,
                 price_per_share_in_cents: int,
                 number_of_shares: int,
                 drift: float,
                 volatility: float,
                 shock_probability: float,
                 dividend_probability: float = 0.0,
                 short_name: str = "",
                 description: str = "",
                 starting_price: Optional[int] = None,
                 allocated_shares: int = 0,
                 shareholders: Optional[Dict[str, int]] = None,
                 historical_prices: Optional[List[int]] = None,
                 conditions: Optional[ConditionQueue] = None):
        if number_of_shares < 0:
            raise ValueError(f"Stock {name}: number_of_shares must be non-negative")
        if volatility < 0:
            raise ValueError(f"Stock {name}: volatility must be non-negative")
        if not 0.0 <= shock_probability <= 1.0:
            raise ValueError(f"Stock {name}: shock_probability must be in [0, 1]")

        self.id = id
        self.name = name
        self.short_name = short_name or name[:4].upper()
        self.description = description
        self.stock_class = StockClass(stock_class)
        self.number_of_shares = number_of_shares
        self.allocated_shares = allocated_shares
        self.drift = drift
        self.volatility = volatility
        self.shock_probability = shock_probability
        self.dividend_probability = dividend_probability

        initial = max(MIN_PRICE_CENTS, int(price_per_share_in_cents))
        self.starting_price = starting_price if starting_price is not None else initial
        self.historical_prices: List[int] = list(historical_prices) if historical_prices else [initial]
        self.shareholders: Dict[str, int] = dict(shareholders or {})
        self.conditions: ConditionQueue[StockCondition] = conditions or ConditionQueue()

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------
    @property
    def price_per_share_in_cents(self) -> int:
        return self.historical_prices[-1]

    def current_unit_price_cents(self) -> int:
        return self.price_per_share_in_cents

    def buy_price_cents(self, amount: int) -> int:
        return self.price_per_share_in_cents * amount

    def sell_price_cents(self, amount: int) -> int:
        return self.price_per_share_in_cents * amount

    def market_cap_cents(self) -> int:
        return self.price_per_share_in_cents * self.number_of_shares

    def max_buy_amount(self, cash: int) -> int:
        """Largest quantity affordable with ``cash`` that the supply allows."""
        return min(cash // self.price_per_share_in_cents, self.available_amount())

    def previous_day_prices(self) -> Optional[Tuple[int, int]]:
        """Opening and closing price of the last completed day.

        The opening price is found by looking back exactly one day length from
        the latest price. Returns None when the history is too short or the
        opening price is zero.
        """
        if len(self.historical_prices) <= DAY_LENGTH:
            return None
        opening = self.historical_prices[-1 - DAY_LENGTH]
        closing = self.historical_prices[-1]
        if opening == 0:
            return None
        return opening, closing

    def previous_day_gain(self) -> Optional[float]:
        """Fractional gain of the last completed day, or None if unknown."""
        prices = self.previous_day_prices()
        if prices is None:
            return None
        opening, closing = prices
        return (closing - opening) / opening

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    def to_stake(self, amount: int) -> float:
        """Fraction of the total supply represented by ``amount`` shares."""
        if self.number_of_shares == 0:
            return 0.0
        return amount / self.number_of_shares

    def available_amount(self) -> int:
        return self.number_of_shares - self.allocated_shares

    def top_shareholders(self, n: int = 3) -> List[Tuple[str, int]]:
        holders = sorted(self.shareholders.items(), key=lambda item: item[1], reverse=True)
        return holders[:n]

    def check_allocation(self, amount: int) -> None:
        if amount > self.available_amount():
            raise NotEnoughSupplyError(
                f"{self.name}: requested {amount} shares, only {self.available_amount()} available"
            )

    def check_deallocation(self, username: str, amount: int) -> None:
        if amount > self.allocated_shares:
            raise InsufficientSharesError(
                f"{self.name}: cannot release {amount} shares, only {self.allocated_shares} allocated"
            )
        held = self.shareholders.get(username, 0)
        if amount > held:
            raise InsufficientSharesError(
                f"{self.name}: {username} holds {held} shares, cannot release {amount}"
            )

    def allocate_shares_to_agent(self, username: str, amount: int) -> None:
        self.check_allocation(amount)
        if amount == 0:
            return
        self.allocated_shares += amount
        self.shareholders[username] = self.shareholders.get(username, 0) + amount

    def deallocate_shares_to_agent(self, username: str, amount: int) -> None:
        self.check_deallocation(username, amount)
        if amount == 0:
            return
        self.allocated_shares -= amount
        remaining = self.shareholders[username] - amount
        if remaining > 0:
            self.shareholders[username] = remaining
        else:
            del self.shareholders[username]

    # ------------------------------------------------------------------
    # Conditions and price process
    # ------------------------------------------------------------------
    def add_condition(self, condition: StockCondition, until_tick: int) -> None:
        self.conditions.add(condition, until_tick)

    def purge_conditions(self, current_tick: int) -> int:
        return self.conditions.purge_expired(current_tick)

    def effective_drift(self, current_tick: int) -> float:
        return self.drift + sum(
            c.amount for c in self.conditions.active(current_tick) if c.is_bump
        )

    def current_shock_probability(self, current_tick: int) -> float:
        if self.conditions.contains(StockCondition.increased_shock_probability(), current_tick):
            return min(2.0 * self.shock_probability, MAX_SHOCK_PROBABILITY)
        return self.shock_probability

    def tick(self, current_tick: int, rng) -> int:
        """Advance the price by one step and return the new price.

        A biased coin with success probability ``(1 + drift) / 2`` moves the
        price up or down by one unit of volatility; an independent shock draw
        may then scale it by a factor in ``[1 - MAX_PRICE_DRIFT, 1 + MAX_PRICE_DRIFT]``.
        """
        self.purge_conditions(current_tick)

        effective_drift = self.effective_drift(current_tick)
        up_probability = min(1.0, max(0.0, (1.0 + effective_drift) / 2.0))

        price = float(self.price_per_share_in_cents)
        if rng.random() < up_probability:
            price *= 1.0 + self.volatility
        else:
            price *= 1.0 - self.volatility

        shock_probability = self.current_shock_probability(current_tick)
        shock_factor = 1.0
        if rng.random() < shock_probability:
            shock_factor = rng.uniform(1.0 - MAX_PRICE_DRIFT, 1.0 + MAX_PRICE_DRIFT)
            price *= shock_factor

        new_price = max(MIN_PRICE_CENTS, int(round(price)))
        self.historical_prices.append(new_price)
        if len(self.historical_prices) > HISTORICAL_SIZE:
            del self.historical_prices[:len(self.historical_prices) - HISTORICAL_SIZE]

        LoggingService.get_logger('stocks').debug(
            f"{self.name:15} tick={current_tick} mu={effective_drift:+.5f} sigma={self.volatility:.5f} "
            f"shock={shock_factor:.3f} price={new_price}"
        )

        # Pull runaway prices back; these conditions apply to the next tick only
        if new_price < self.starting_price / EXTREME_PRICE_FACTOR:
            self.add_condition(StockCondition.bump(1.0), current_tick + 2)
            self.add_condition(StockCondition.increased_shock_probability(), current_tick + 2)
        elif new_price > self.starting_price * EXTREME_PRICE_FACTOR:
            self.add_condition(StockCondition.bump(-1.0), current_tick + 2)
            self.add_condition(StockCondition.increased_shock_probability(), current_tick + 2)

        return new_price

    def info(self, amount: int) -> str:
        """Disclosure line; larger stakes reveal more of the process."""
        share = self.to_stake(amount) * 100.0
        price = self.price_per_share_in_cents / 100.0
        if share >= 5.0:
            return f"Price ${price:.02f} - Drift {self.drift * 100.0:.03f}% - Volatility {self.volatility * 100.0:.03f}%"
        if share >= 1.0:
            return f"Price ${price:.02f} - Drift {self.drift * 100.0:.03f}%"
        return f"Price ${price:.02f}"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'short_name': self.short_name,
            'description': self.description,
            'class': self.stock_class.value,
            'number_of_shares': self.number_of_shares,
            'allocated_shares': self.allocated_shares,
            'shareholders': dict(self.shareholders),
            'drift': self.drift,
            'volatility': self.volatility,
            'shock_probability': self.shock_probability,
            'dividend_probability': self.dividend_probability,
            'starting_price': self.starting_price,
            'historical_prices': list(self.historical_prices),
            'conditions': self.conditions.to_list(lambda c: c.to_dict()),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Stock':
        prices = [int(p) for p in data['historical_prices']]
        return cls(
            id=int(data['id']),
            name=data['name'],
            short_name=data.get('short_name', ''),
            description=data.get('description', ''),
            stock_class=StockClass(data['class']),
            price_per_share_in_cents=prices[-1],
            number_of_shares=int(data['number_of_shares']),
            drift=float(data['drift']),
            volatility=float(data['volatility']),
            shock_probability=float(data['shock_probability']),
            dividend_probability=float(data.get('dividend_probability', 0.0)),
            starting_price=int(data['starting_price']),
            allocated_shares=int(data['allocated_shares']),
            shareholders={k: int(v) for k, v in data.get('shareholders', {}).items()},
            historical_prices=prices,
            conditions=ConditionQueue.from_list(data.get('conditions', []), StockCondition.from_dict),
        )

    def __repr__(self) -> str:
        return (f"Stock(id={self.id}, name={self.name!r}, class={self.stock_class.value}, "
                f"price={self.price_per_share_in_cents}, allocated={self.allocated_shares}/{self.number_of_shares})")


def format_dollars(cents: int) -> str:
    """Compact dollar formatting for cent amounts (1.234k, 5.000M)."""
    value = cents / 100.0
    if value > 1_000_000.0:
        return f"{value / 1_000_000.0:.03f}M"
    if value > 1_000.0:
        return f"{value / 1_000.0:.03f}k"
    return f"{value:.02f}"
