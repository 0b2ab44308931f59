"""Dividend math shared by the dividend event and the dividend action.

Both the eligibility check and the payout go through ``dividend_payout`` so
that an offered dividend can always be paid when it is resolved.
"""
from typing import Optional

from constants import DIVIDEND_PAYOUT_RATE


def dividend_payout(stock, shares: int) -> Optional[int]:
    """
    Dividend in cents for holding ``shares`` of ``stock``.

    The payout is proportional to the shares held, the current unit price,
    the fixed payout rate and the previous day's fractional gain.

    Args:
        stock: Stock whose previous day is inspected
        shares: Shares held by the agent

    Returns:
        Payout in cents, or None when the previous day is unknown or did not
        gain (no dividend is due)

    Example:
        >>> # opening 1000, closing 1100, current price 1100, 50 shares
        >>> dividend_payout(stock, 50)
        55
    """
    gain = stock.previous_day_gain()
    if gain is None or gain <= 0:
        return None
    return int(round(shares * stock.current_unit_price_cents() * DIVIDEND_PAYOUT_RATE * gain))


def is_dividend_due(stock) -> bool:
    return dividend_payout(stock, 1) is not None
