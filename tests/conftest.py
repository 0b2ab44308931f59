import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from agents.base_agent import UserAgent
from market.market import Market
from services.logging_service import LoggingService


class ScriptedRng:
    """Stand-in for numpy's Generator that replays prepared draws.

    ``random()`` pops from ``randoms`` and falls back to ``default_random``;
    ``uniform(low, high)`` pops from ``uniforms`` and falls back to the
    midpoint; ``choice(n, size)`` returns the first ``size`` indices unless
    ``choices`` were given.
    """

    def __init__(self, randoms=None, uniforms=None, choices=None, default_random=0.99):
        self.randoms = list(randoms or [])
        self.uniforms = list(uniforms or [])
        self.choices = list(choices or [])
        self.default_random = default_random
        self.random_calls = 0

    def random(self):
        self.random_calls += 1
        if self.randoms:
            return self.randoms.pop(0)
        return self.default_random

    def uniform(self, low, high):
        if self.uniforms:
            return self.uniforms.pop(0)
        return (low + high) / 2.0

    def choice(self, n, size=None, replace=True):
        if self.choices:
            return np.array(self.choices.pop(0))
        if size is None:
            return 0
        return np.arange(size)


# Two stocks per class; stock 3 is the one UltraVision looks at
STOCK_ROWS = [
    {'id': 0, 'name': 'Cassandra Daily', 'short_name': 'CASS', 'class': 'Media', 'description': '',
     'price_per_share_in_cents': 5000, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 1, 'name': 'Pantheon Studios', 'short_name': 'PANT', 'class': 'Media', 'description': '',
     'price_per_share_in_cents': 12000, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 2, 'name': 'Iron Meridian', 'short_name': 'IRON', 'class': 'War', 'description': '',
     'price_per_share_in_cents': 2500, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 3, 'name': 'Riccardino', 'short_name': 'RICC', 'class': 'War', 'description': '',
     'price_per_share_in_cents': 800, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 4, 'name': 'Golden Harvest', 'short_name': 'GOLD', 'class': 'Commodity', 'description': '',
     'price_per_share_in_cents': 3000, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 5, 'name': 'Boreal Gas', 'short_name': 'BORE', 'class': 'Commodity', 'description': '',
     'price_per_share_in_cents': 7500, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 6, 'name': 'Quantum Lattice', 'short_name': 'QLAT', 'class': 'Technology', 'description': '',
     'price_per_share_in_cents': 15000, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
    {'id': 7, 'name': 'Violet Ledger', 'short_name': 'VIOL', 'class': 'Technology', 'description': '',
     'price_per_share_in_cents': 1500, 'number_of_shares': 100_000, 'drift': 0.0, 'volatility': 0.01,
     'shock_probability': 0.0, 'dividend_probability': 0.5},
]


@pytest.fixture(scope="session", autouse=True)
def logging_service(tmp_path_factory):
    LoggingService.initialize("test_run", base_dir=tmp_path_factory.mktemp("logs"))
    return LoggingService


@pytest.fixture
def stock_rows():
    return [dict(row) for row in STOCK_ROWS]


@pytest.fixture
def market(stock_rows):
    return Market.from_stock_rows(stock_rows)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def scripted_rng():
    return ScriptedRng()


@pytest.fixture
def agent():
    return UserAgent("alice")
