"""Agent state verification module.

Invariant checks for a single agent against the market it trades in.
"""

from typing import TYPE_CHECKING

from services.logging_service import LoggingService

if TYPE_CHECKING:
    from agents.base_agent import BaseAgent
    from market.market import Market


class AgentVerifier:
    """Handles verification of agent state consistency and invariants."""

    def __init__(self, agent: 'BaseAgent'):
        """Initialize verifier with agent reference.

        Args:
            agent: The BaseAgent instance to verify
        """
        self.agent = agent
        self.logger = LoggingService.get_logger('verification')

    def verify_state(self, market: 'Market') -> bool:
        """Verify agent state consistency.

        Checks:
        - Cash is non-negative
        - One holding entry per stock
        - Every holding is non-negative and within the stock's supply
        - Holdings agree with the stock's shareholder ledger

        Returns:
            bool: True if all checks pass, False otherwise
        """
        state_valid = True
        username = self.agent.username

        if self.agent.cash < 0:
            self.logger.error(f"NEGATIVE CASH for {username}: {self.agent.cash}")
            state_valid = False

        if len(self.agent.owned_shares) != len(market.stocks):
            self.logger.error(
                f"HOLDINGS SIZE MISMATCH for {username}: "
                f"{len(self.agent.owned_shares)} entries, {len(market.stocks)} stocks"
            )
            return False

        for stock in market.stocks:
            held = self.agent.owned_shares[stock.id]
            if held < 0 or held > stock.number_of_shares:
                self.logger.error(
                    f"HOLDING OUT OF BOUNDS for {username} in stock {stock.id}: "
                    f"{held} of {stock.number_of_shares}"
                )
                state_valid = False
            ledger = stock.shareholders.get(username, 0)
            if ledger != held:
                self.logger.error(
                    f"LEDGER MISMATCH for {username} in stock {stock.id}: "
                    f"agent holds {held}, ledger says {ledger}"
                )
                state_valid = False

        return state_valid
