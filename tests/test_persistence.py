import json

import pytest

from agents.agent_manager.agent_repository import AgentRepository
from agents.agents_api import Sell
from agents.base_agent import UserAgent
from agents.deterministic.random_trader import RandomTrader
from market.conditions import AgentCondition, StockCondition
from market.game_phase import GamePhase
from market.night_events import War
from services.persistence import MarketStore


def test_load_without_snapshot(tmp_path):
    store = MarketStore(tmp_path / "store")
    assert not store.exists()
    assert store.load() is None


def test_round_trip(market, tmp_path):
    store = MarketStore(tmp_path / "store")

    alice = UserAgent("alice")
    alice.add_shares(2, 300)
    market.stocks[2].allocate_shares_to_agent("alice", 300)
    alice.select_action(Sell(stock_id=2, amount=100))
    alice.set_available_night_events([War()])
    alice.add_condition(AgentCondition.ULTRA_VISION, 70)
    bot = RandomTrader(username="random_trader_0", trade_probability=0.3)

    market.last_tick = 17
    market.phase = GamePhase.night(3, 5)
    market.stocks[2].add_condition(StockCondition.bump(0.25), 80)
    market.stocks[2].historical_prices.extend([2600, 2550])
    market.update_portfolios([alice, bot])

    store.save(market, AgentRepository([alice, bot]))
    assert json.loads(store.market_path.read_text())['last_tick'] == 17

    loaded_market, loaded_agents = store.load()

    assert loaded_market.to_dict() == market.to_dict()
    assert loaded_agents.get_all_usernames() == ["alice", "random_trader_0"]
    restored = loaded_agents.get_agent("alice")
    assert restored.to_dict() == alice.to_dict()
    assert restored.selected_action() == Sell(stock_id=2, amount=100)
    assert restored.has_condition(AgentCondition.ULTRA_VISION, 69)
    assert isinstance(loaded_agents.get_agent("random_trader_0"), RandomTrader)


def test_load_rebuilds_allocations_from_holdings(market, tmp_path):
    store = MarketStore(tmp_path / "store")
    alice = UserAgent("alice")
    alice.add_shares(0, 40)
    # Ledger left stale on purpose
    market.stocks[0].allocate_shares_to_agent("ghost", 10)

    store.save(market, AgentRepository([alice]))
    loaded_market, _ = store.load()

    assert loaded_market.stocks[0].shareholders == {"alice": 40}
    assert loaded_market.stocks[0].allocated_shares == 40


def test_missing_agents_file_gives_empty_registry(market, tmp_path):
    store = MarketStore(tmp_path / "store")
    store.save_market(market)
    loaded_market, agents = store.load()
    assert len(agents) == 0
    assert loaded_market.last_tick == market.last_tick


def test_save_leaves_no_temporary_files(market, tmp_path):
    store = MarketStore(tmp_path / "store")
    store.save(market, AgentRepository())
    store.save(market, AgentRepository())
    assert sorted(p.name for p in store.store_dir.iterdir()) == ["agents.json", "market.json"]


def test_failed_save_keeps_previous_pair(market, tmp_path, monkeypatch):
    store = MarketStore(tmp_path / "store")
    alice = UserAgent("alice")
    agents = AgentRepository([alice])
    store.save(market, agents)

    market.last_tick = 5
    alice.add_cash(1)
    monkeypatch.setattr(agents, "to_dict", lambda: {"alice": object()})
    with pytest.raises(TypeError):
        store.save(market, agents)

    # market.json is written first but must not be renamed on its own
    assert json.loads(store.market_path.read_text())['last_tick'] == 0
    assert json.loads(store.agents_path.read_text())["alice"]["cash"] == UserAgent("bob").cash
    assert sorted(p.name for p in store.store_dir.iterdir()) == ["agents.json", "market.json"]
