import pandas as pd
import pytest

from constants import NUMBER_OF_STOCKS
from market.market import Market
from scenarios import DEFAULT_PARAMS, SimulationScenario, get_scenario, list_scenarios
from utils.csv_loader import (
    DEFAULT_STOCK_DATA_PATH, STOCK_COLUMNS, load_csv, load_stock_rows, validate_stock_frame
)

from conftest import STOCK_ROWS


def test_registry():
    scenarios = list_scenarios()
    assert {"default", "event_frenzy", "momentum_crowd", "test_hold_only", "test_random_traders"} <= set(scenarios)
    assert get_scenario("test_hold_only").parameters["NUM_TICKS"] == 96


def test_unknown_scenario():
    with pytest.raises(ValueError, match="Unknown scenario"):
        get_scenario("does_not_exist")


@pytest.mark.parametrize("override", [
    {"NUM_TICKS": -1},
    {"TICK_INTERVAL_MS": 0},
    {"SAVE_INTERVAL_TICKS": 0},
    {"AGENT_PARAMS": {'initial_cash': -5, 'agent_composition': {}}},
    {"AGENT_PARAMS": {'agent_composition': {'hold_trader': -1}}},
])
def test_invalid_parameters(override):
    with pytest.raises(ValueError):
        SimulationScenario("broken", "", {**DEFAULT_PARAMS, **override})


def test_missing_parameter():
    params = dict(DEFAULT_PARAMS)
    del params["STORE_DIR"]
    with pytest.raises(ValueError, match="STORE_DIR"):
        SimulationScenario("broken", "", params)


def test_packaged_stock_data():
    rows = load_stock_rows(DEFAULT_STOCK_DATA_PATH, expected_count=NUMBER_OF_STOCKS)
    assert [row['id'] for row in rows] == list(range(NUMBER_OF_STOCKS))
    market = Market.from_stock_rows(rows)
    assert market.stocks[3].name == "Riccardino"
    assert {s.stock_class.value for s in market.stocks} == {"Media", "War", "Commodity", "Technology"}
    assert all(isinstance(s.price_per_share_in_cents, int) for s in market.stocks)


def test_validate_stock_frame_sorts_by_id():
    df = pd.DataFrame(list(reversed(STOCK_ROWS)))
    assert validate_stock_frame(df)['id'].tolist() == list(range(8))


def test_validate_stock_frame_errors():
    df = pd.DataFrame(STOCK_ROWS)
    with pytest.raises(ValueError, match="missing columns"):
        validate_stock_frame(df.drop(columns=['volatility']))
    with pytest.raises(ValueError, match="Expected 5"):
        validate_stock_frame(df, expected_count=5)
    with pytest.raises(ValueError, match="ids"):
        validate_stock_frame(df.assign(id=range(1, 9)))


def test_load_csv_missing_and_empty(tmp_path):
    assert load_csv(tmp_path / "nope.csv", silent=True) is None
    empty = tmp_path / "empty.csv"
    empty.write_text(",".join(STOCK_COLUMNS) + "\n")
    assert load_csv(empty, silent=True) is None
    with pytest.raises(ValueError):
        load_stock_rows(empty)
