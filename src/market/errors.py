"""Exceptions raised while resolving agent actions."""


class ActionRejectedError(Exception):
    """An action failed validation; nothing was applied.

    The pending slot has already been cleared, so the agent must select again.
    """


class InsufficientFundsError(ActionRejectedError):
    """Cash subtraction would go negative."""


class InsufficientSharesError(ActionRejectedError):
    """Share subtraction would go negative."""


class ShareOverflowError(ActionRejectedError):
    """Share addition would exceed the representable range."""


class NotEnoughSupplyError(ActionRejectedError):
    """Buy amount exceeds the stock's unallocated shares."""


class InvalidPreconditionError(RuntimeError):
    """An action reached the resolver without its eligibility precondition holding.

    This is a programming-contract violation, not a user error.
    """


class UnknownStockError(ActionRejectedError):
    """Action names a stock id the market does not list."""
