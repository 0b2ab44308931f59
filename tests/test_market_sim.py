import threading
import time

import numpy as np
import pandas as pd
import pytest

from agents.agent_manager.agent_repository import AgentRepository
from agents.agents_api import Buy, GetDividends
from constants import DAY_LENGTH, NIGHT_LENGTH
from market.conditions import AgentCondition
from market.game_phase import GamePhase
from market.market import Market
from market.night_events import War
from market_sim import MarketSimulation
from run_market_sim import format_leaderboard
from services.logging_service import LoggingService
from services.persistence import MarketStore

from conftest import ScriptedRng


@pytest.fixture
def sim(market):
    return MarketSimulation(market, AgentRepository(), rng=ScriptedRng())


def give(sim, agent, stock_id, amount):
    agent.add_shares(stock_id, amount)
    sim.market.stocks[stock_id].allocate_shares_to_agent(agent.username, amount)


def test_join_creates_then_resumes(sim):
    alice = sim.join("alice")
    assert sim.join("alice") is alice
    assert alice.cash == 1_000_000
    assert len(alice.owned_shares) == len(sim.market.stocks)
    assert sim.agent_repository.get_all_usernames() == ["alice"]


def test_select_action_for_unknown_agent(sim):
    assert not sim.select_action("nobody", Buy(stock_id=0, amount=1))
    assert not sim.select_night_event("nobody", 0)


def test_buy_resolves_at_the_post_tick_price(sim):
    alice = sim.join("alice")
    assert sim.select_action("alice", Buy(stock_id=0, amount=100))
    # First select wins
    assert not sim.select_action("alice", Buy(stock_id=1, amount=1))

    sim.tick()

    price = sim.market.stocks[0].price_per_share_in_cents
    assert alice.owned_shares[0] == 100
    assert alice.cash == 1_000_000 - 100 * price
    assert sim.market.stocks[0].allocated_shares == 100
    assert alice.selected_action() is None
    assert sim.market.last_tick == 1


def test_rejected_action_is_reported(sim):
    alice = sim.join("alice")
    sim.select_action("alice", Buy(stock_id=0, amount=300))

    sim.tick()

    assert alice.selected_action() is None
    assert alice.cash == 1_000_000
    assert "needs" in alice.last_rejection
    rows = (LoggingService.get_run_dir() / 'rejected_actions.csv').read_text().splitlines()
    assert any(",alice,user,InsufficientFundsError," in row for row in rows)

    sim.select_action("alice", Buy(stock_id=0, amount=1))
    sim.tick()
    assert alice.last_rejection is None


def test_contract_violation_does_not_stop_the_loop(sim):
    alice = sim.join("alice")
    sim.select_action("alice", GetDividends(stock_id=0))

    sim.tick()

    assert alice.selected_action() is None
    assert alice.cash == 1_000_000
    assert sim.tick_count == 1


def test_night_events_offered_once_and_withdrawn_at_dawn(sim):
    alice = sim.join("alice")
    give(sim, alice, 2, 2_000)

    for _ in range(DAY_LENGTH - 1):
        sim.tick()
    assert sim.market.phase.is_day
    assert alice.available_night_events() == []

    sim.tick()
    assert sim.market.phase == GamePhase.night(0, 0)
    assert alice.available_night_events() == [War()]
    assert alice.events_offered_cycle == 0

    assert sim.select_night_event("alice", 0)
    assert alice.available_night_events() == []
    sim.tick()
    assert alice.has_selected("BumpStockClass")
    # Not offered again the same night
    assert alice.available_night_events() == []

    for _ in range(NIGHT_LENGTH - 1):
        sim.tick()
    assert sim.market.phase == GamePhase.day(1, 0)
    assert alice.available_night_events() == []
    assert sim.market.last_tick == DAY_LENGTH


def test_unpicked_events_vanish_at_dawn(sim):
    alice = sim.join("alice")
    give(sim, alice, 2, 2_000)
    for _ in range(DAY_LENGTH):
        sim.tick()
    assert alice.available_night_events() == [War()]

    for _ in range(NIGHT_LENGTH):
        sim.tick()
    assert alice.available_night_events() == []


def test_remove_agent_releases_shares(sim):
    alice = sim.join("alice")
    give(sim, alice, 4, 500)

    removed = sim.remove_agent("alice")

    assert removed is alice
    assert "alice" not in sim.agent_repository
    assert sim.market.stocks[4].allocated_shares == 0
    assert sim.remove_agent("alice") is None
    assert sim.join("alice") is not alice


def test_exclusive_yields_the_simulation(sim):
    with sim.exclusive() as locked:
        assert locked is sim
        # re-entrant for the ticking thread
        locked.tick()
    assert sim.tick_count == 1


def test_verification_catches_broken_ledger(sim):
    alice = sim.join("alice")
    alice.add_shares(0, 10)
    with pytest.raises(ValueError):
        sim.tick()


def test_seeded_bot_population_keeps_invariants():
    from market.market import Market
    from conftest import STOCK_ROWS

    def run():
        market = Market.from_stock_rows([dict(r) for r in STOCK_ROWS])
        sim = MarketSimulation(market, rng=np.random.default_rng(42), verify=True)
        sim.initialize_agents({
            'agent_composition': {
                'random_trader': 3,
                'momentum_trader': 1,
                'event_hunter': 1,
                'hold_trader': 1,
            },
            'deterministic_params': {'random_trader': {'trade_probability': 0.5}},
        })
        sim.run(2 * (DAY_LENGTH + NIGHT_LENGTH) + 8)
        return sim

    first = run()
    second = run()

    assert first.market.phase == GamePhase.day(2, 8)
    assert first.market.last_tick == 2 * DAY_LENGTH + 8
    assert len(first.market.portfolios) == 6
    assert [s.historical_prices for s in first.market.stocks] == [s.historical_prices for s in second.market.stocks]
    assert [a.cash for a in first.agent_repository] == [a.cash for a in second.agent_repository]
    for stock in first.market.stocks:
        assert stock.allocated_shares == sum(a.owned_shares[stock.id] for a in first.agent_repository)


def test_initialize_agents_skips_restored_usernames(sim):
    created = sim.initialize_agents({'agent_composition': {'hold_trader': 2}})
    assert [a.username for a in created] == ["hold_trader_0", "hold_trader_1"]
    assert sim.initialize_agents({'agent_composition': {'hold_trader': 3}})[0].username == "hold_trader_2"


def test_save_and_bootstrap_from_store(sim, tmp_path):
    sim.store = MarketStore(tmp_path / "store")
    alice = sim.join("alice")
    give(sim, alice, 1, 42)
    for _ in range(5):
        sim.tick()
    assert sim.save()

    market, agents = MarketSimulation.bootstrap_market(np.random.default_rng(0), store=sim.store)
    assert market.last_tick == 5
    assert market.stocks[1].shareholders == {"alice": 42}
    assert agents.get_agent("alice").owned_shares[1] == 42


def test_save_failure_is_reported_not_raised(sim, tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    sim.store = MarketStore(blocker)
    assert sim.save() is False


def test_save_without_store(sim):
    assert sim.save() is False


def test_bootstrap_fresh_market_with_warm_up(tmp_path):
    market, agents = MarketSimulation.bootstrap_market(
        np.random.default_rng(3), store=MarketStore(tmp_path / "empty"), warmup_days=1
    )
    assert market.last_tick == DAY_LENGTH
    assert market.phase == GamePhase.day()
    assert all(len(s.historical_prices) == DAY_LENGTH + 1 for s in market.stocks)
    assert len(agents) == 0


def test_bootstrap_reset_ignores_the_store(sim, tmp_path):
    sim.store = MarketStore(tmp_path / "store")
    sim.tick()
    sim.save()
    market, _ = MarketSimulation.bootstrap_market(np.random.default_rng(0), store=sim.store, reset=True)
    assert market.last_tick == 0


def test_run_forever_stops_on_event(sim):
    stop = threading.Event()
    worker = threading.Thread(target=sim.run_forever, args=(stop, 1))
    worker.start()
    deadline = time.monotonic() + 5.0
    while sim.tick_count < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    stop.set()
    worker.join(timeout=5.0)
    assert not worker.is_alive()
    assert sim.tick_count >= 3


def test_unlisted_stock_rejected_without_stopping_the_tick(stock_rows):
    sim = MarketSimulation(Market.from_stock_rows(stock_rows[:5]), AgentRepository(), rng=ScriptedRng())
    alice = sim.join("alice")
    bob = sim.join("bob")
    sim.select_action("alice", Buy(stock_id=6, amount=1))
    sim.select_action("bob", Buy(stock_id=0, amount=1))

    sim.tick()

    assert "not listed" in alice.last_rejection
    assert alice.owned_shares == [0] * 5
    assert bob.owned_shares[0] == 1
    rows = (LoggingService.get_run_dir() / 'rejected_actions.csv').read_text().splitlines()
    assert any(",alice,user,UnknownStockError," in row for row in rows)


def test_bootstrap_requires_the_full_stock_table(stock_rows, tmp_path):
    path = tmp_path / "stocks.csv"
    pd.DataFrame(stock_rows[:5]).to_csv(path, index=False)
    with pytest.raises(ValueError, match="Expected 8 stocks"):
        MarketSimulation.bootstrap_market(np.random.default_rng(0), stock_data_path=path)


def test_stock_info_follows_ultra_vision(sim):
    alice = sim.join("alice")
    assert sim.stock_info("alice", 3) == "Price $8.00"
    alice.add_condition(AgentCondition.ULTRA_VISION, sim.market.last_tick + DAY_LENGTH)
    assert "Volatility" in sim.stock_info("alice", 3)
    assert sim.stock_info("nobody", 3) is None


def test_flush_recorder_without_recorder(sim):
    assert sim.flush_recorder() is False


def test_run_forever_refreshes_portfolios(sim):
    sim.join("alice")
    stop = threading.Event()
    stop.set()
    sim.run_forever(stop, 1)
    assert sim.market.portfolios == [("alice", 1_000_000)]


def test_leaderboard_skips_removed_agents(sim):
    sim.join("alice")
    bob = sim.join("bob")
    give(sim, bob, 0, 10)
    sim.run(1)
    sim.remove_agent("bob")

    lines = format_leaderboard(sim)

    assert len(lines) == 1
    assert lines[0].startswith("  1. alice")
