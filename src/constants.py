"""Centralized constants for the market simulation.

This module contains system-wide constants used across the codebase to ensure
consistency and avoid duplication. All money values are integer cents.
"""

# Game clock
# Each tick represents 15 minutes of game time => 1 hour = 4 ticks
TICKS_PER_HOUR = 4
DAY_STARTING_HOUR = 6
DAY_LENGTH_HOURS = 16
NIGHT_LENGTH_HOURS = 24 - DAY_LENGTH_HOURS

DAY_LENGTH = TICKS_PER_HOUR * DAY_LENGTH_HOURS  # 64 ticks
NIGHT_LENGTH = TICKS_PER_HOUR * NIGHT_LENGTH_HOURS  # 32 ticks

# Price history keeps the last 12 weeks of day ticks
HISTORICAL_SIZE = DAY_LENGTH * 7 * 12

NUMBER_OF_STOCKS = 8
MAX_EVENTS_PER_NIGHT = 3

# Agent accounting (cents)
INITIAL_AGENT_CASH = 10_000 * 100
MAX_SHARES = 2**32 - 1

# Price process
MAX_PRICE_DRIFT = 0.2  # shock factor is drawn from [1 - MAX_PRICE_DRIFT, 1 + MAX_PRICE_DRIFT]
MAX_SHOCK_PROBABILITY = 0.2
MIN_PRICE_CENTS = 1
EXTREME_PRICE_FACTOR = 8

# Global drift controller
GLOBAL_DRIFT_NOISE = 0.01
MAX_GLOBAL_DRIFT = 0.05

# Bump sizes applied by actions
CLASS_BUMP_AMOUNT = 0.5
CRASH_BUMP_AMOUNT = -0.5
ASSASSINATION_BUMP_FACTOR = 10.0

# Night event economics (cents)
BRIBE_AMOUNT = 10_000 * 100
MARKET_CRASH_COST = 50_000 * 100
MARKET_CRASH_CASH_THRESHOLD = 100_000 * 100
CHARACTER_ASSASSINATION_COST = 2_500 * 100
A_GOOD_OFFER_CASH_THRESHOLD = 1_000 * 100
A_GOOD_OFFER_PROBABILITY = 0.99994

# Stake thresholds (percent)
CLASS_EVENT_MIN_AVERAGE_STAKE = 1.0
ULTRA_VISION_STOCK_ID = 3
ULTRA_VISION_MIN_STAKE = 10.0

# Dividends
DIVIDEND_PAYOUT_RATE = 0.01

# Simulation loop
MARKET_TICK_INTERVAL_MILLIS = 1000
SAVE_TO_STORE_INTERVAL_TICKS = 6
PORTFOLIO_UPDATE_INTERVAL_TICKS = TICKS_PER_HOUR
