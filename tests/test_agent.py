import pytest
from pydantic import ValidationError

from agents.agents_api import AcceptBribe, AddCash, Buy, CrashAgentStocks, Sell, parse_action
from agents.base_agent import UserAgent
from constants import MAX_SHARES
from market.conditions import AgentCondition
from market.errors import InsufficientFundsError, InsufficientSharesError, ShareOverflowError
from market.night_events import AGoodOffer, CharacterAssassination, War


def test_cash_never_goes_negative(agent):
    with pytest.raises(InsufficientFundsError):
        agent.sub_cash(agent.cash + 1)
    assert agent.cash == 1_000_000
    assert agent.sub_cash(1_000_000) == 0


def test_share_bounds(agent):
    with pytest.raises(InsufficientSharesError):
        agent.sub_shares(0, 1)
    agent.add_shares(0, MAX_SHARES)
    with pytest.raises(ShareOverflowError):
        agent.add_shares(0, 1)
    assert agent.owned_shares[0] == MAX_SHARES


def test_first_select_wins_until_cleared(agent):
    assert agent.select_action(Buy(stock_id=0, amount=1))
    assert not agent.select_action(Sell(stock_id=0, amount=1))
    assert agent.selected_action() == Buy(stock_id=0, amount=1)

    assert agent.clear_action() == Buy(stock_id=0, amount=1)
    assert agent.selected_action() is None
    assert agent.select_action(Sell(stock_id=0, amount=1))


def test_select_night_event_withdraws_it(agent):
    agent.set_available_night_events([War(), AGoodOffer()])
    assert not agent.select_night_event(5)

    assert agent.select_night_event(1)
    assert agent.selected_action() == AcceptBribe()
    assert agent.available_night_events() == [War()]

    # slot is taken, so the remaining event stays on offer
    assert not agent.select_night_event(0)
    assert agent.available_night_events() == [War()]


def test_past_actions_keyed_by_kind(agent):
    agent.insert_past_selected_action(AddCash(amount=5), 3)
    agent.insert_past_selected_action(AddCash(amount=7), 9)
    past = agent.past_selected_actions()["AddCash"]
    assert (past.count, past.last_tick) == (2, 9)
    assert agent.has_selected("AddCash")
    assert not agent.has_selected("AcceptBribe")


def test_conditions_expire(agent):
    agent.add_condition(AgentCondition.ULTRA_VISION, 64)
    assert agent.has_condition(AgentCondition.ULTRA_VISION, 63)
    assert agent.expire_conditions(64) == 1
    assert not agent.has_condition(AgentCondition.ULTRA_VISION, 0)



def test_stock_info_tiers_by_stake(agent, market):
    stock = market.stocks[0]
    assert agent.stock_info(stock, 0) == "Price $50.00"

    agent.add_shares(0, 2_000)
    assert agent.stock_info(stock, 0) == "Price $50.00 - Drift 0.000%"


def test_ultra_vision_discloses_everything_while_active(agent, market):
    stock = market.stocks[3]
    agent.add_condition(AgentCondition.ULTRA_VISION, 64)

    assert agent.owned_shares[3] == 0
    assert agent.stock_info(stock, 63) == "Price $8.00 - Drift 0.000% - Volatility 1.000%"
    assert agent.stock_info(stock, 64) == "Price $8.00"


def test_action_validation():
    with pytest.raises(ValidationError):
        Buy(stock_id=0, amount=0)
    with pytest.raises(ValidationError):
        Sell(stock_id=99, amount=1)
    with pytest.raises(ValidationError):
        AddCash(amount=-1)
    assert parse_action(CrashAgentStocks(username="bob").model_dump()) == CrashAgentStocks(username="bob")


def test_agent_state_round_trip(agent):
    agent.add_shares(2, 17)
    agent.select_action(Buy(stock_id=1, amount=3))
    agent.set_available_night_events([CharacterAssassination(username="bob")])
    agent.events_offered_cycle = 4
    agent.add_condition(AgentCondition.ULTRA_VISION, 100)
    agent.insert_past_selected_action(AcceptBribe(), 12)

    restored = UserAgent("alice").load_state(agent.to_dict())
    assert restored.to_dict() == agent.to_dict()
    assert restored.selected_action() == Buy(stock_id=1, amount=3)
    assert restored.available_night_events() == [CharacterAssassination(username="bob")]
