from .event_hunter import EventHunter
from .hold_agent import HoldTrader
from .momentum_trader import MomentumTrader
from .random_trader import RandomTrader

DETERMINISTIC_AGENTS = {
    "hold_trader": HoldTrader,
    "random_trader": RandomTrader,
    "momentum_trader": MomentumTrader,
    "event_hunter": EventHunter,
}
