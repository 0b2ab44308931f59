from typing import Optional

from agents.agents_api import AgentAction
from agents.base_agent import BaseAgent


class HoldTrader(BaseAgent):
    """Always Holds - Used primarily for testing"""
    agent_kind = "hold_trader"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

    def make_decision(self, market, rng) -> Optional[AgentAction]:
        return None
