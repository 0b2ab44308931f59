import pytest

from agents.agent_manager.agent_repository import create_agent
from agents.agents_api import Buy, Sell
from agents.base_agent import UserAgent
from agents.deterministic.deterministic_registry import DETERMINISTIC_AGENTS
from agents.deterministic.event_hunter import EventHunter
from agents.deterministic.hold_agent import HoldTrader
from agents.deterministic.momentum_trader import MomentumTrader
from agents.deterministic.random_trader import RandomTrader
from market.game_phase import GamePhase
from market.night_events import AGoodOffer, UltraVision, War

from conftest import ScriptedRng


def test_registry_builds_every_kind():
    for kind, cls in DETERMINISTIC_AGENTS.items():
        agent = create_agent(kind, f"{kind}_0", 8)
        assert isinstance(agent, cls)
        assert agent.agent_kind == kind
    assert isinstance(create_agent("user", "alice", 8), UserAgent)
    with pytest.raises(ValueError):
        create_agent("llm_trader", "x", 8)


def test_hold_trader_never_acts(market, rng):
    assert HoldTrader(username="h").make_decision(market, rng) is None


def test_random_trader_buys_by_day_only(market):
    trader = RandomTrader(username="r", trade_probability=1.0, max_proportion=0.1)
    action = trader.make_decision(market, ScriptedRng(randoms=[0.0]))
    # 1_000_000 // 5000 = 200 affordable, 10% of it
    assert action == Buy(stock_id=0, amount=20)

    market.phase = GamePhase.night()
    assert trader.make_decision(market, ScriptedRng(randoms=[0.0])) is None


def test_random_trader_sells_holdings(market):
    trader = RandomTrader(username="r", trade_probability=1.0, max_proportion=0.5)
    trader.add_shares(0, 30)
    action = trader.make_decision(market, ScriptedRng(randoms=[0.0, 0.1]))
    assert action == Sell(stock_id=0, amount=15)


def test_random_trader_skips_when_unlucky(market):
    trader = RandomTrader(username="r", trade_probability=0.2)
    assert trader.make_decision(market, ScriptedRng(randoms=[0.5])) is None


def test_random_trader_rejects_bad_probability():
    with pytest.raises(ValueError):
        RandomTrader(username="r", trade_probability=1.5)


def test_momentum_trader_follows_the_trend(market, rng):
    trader = MomentumTrader(username="m", short_window=2, long_window=4, min_trend=0.01)
    market.stocks[5].historical_prices = [7000, 7000, 7000, 8000]
    action = trader.make_decision(market, rng)
    assert isinstance(action, Buy)
    assert action.stock_id == 5


def test_momentum_trader_sells_on_downtrend(market, rng):
    trader = MomentumTrader(username="m", short_window=2, long_window=4, min_trend=0.01)
    trader.add_shares(6, 12)
    market.stocks[6].historical_prices = [15000, 15000, 15000, 12000]
    assert trader.make_decision(market, rng) == Sell(stock_id=6, amount=12)


def test_momentum_trader_holds_on_flat_prices(market, rng):
    trader = MomentumTrader(username="m")
    assert trader.make_decision(market, rng) is None


def test_momentum_trader_windows():
    with pytest.raises(ValueError):
        MomentumTrader(username="m", short_window=10, long_window=10)


def test_event_hunter_takes_the_rarest_event(market, rng):
    hunter = EventHunter(username="e")
    hunter.set_available_night_events([War(), UltraVision(), AGoodOffer()])

    assert hunter.make_decision(market, rng) is None  # daytime

    market.phase = GamePhase.night()
    assert hunter.make_decision(market, rng) == AGoodOffer().action()
    assert hunter.available_night_events() == [War(), UltraVision()]
