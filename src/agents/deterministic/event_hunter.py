from typing import Optional

from agents.agents_api import AgentAction
from agents.base_agent import BaseAgent
from market.night_events import EventRarity

_RARITY_ORDER = {EventRarity.RARE: 0, EventRarity.UNCOMMON: 1, EventRarity.COMMON: 2}


class EventHunter(BaseAgent):
    """Takes the rarest night event on offer, and otherwise holds"""
    agent_kind = "event_hunter"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

    def make_decision(self, market, rng) -> Optional[AgentAction]:
        events = self.available_night_events()
        if not market.phase.is_night or not events:
            return None

        index = min(range(len(events)), key=lambda i: _RARITY_ORDER[events[i].rarity])
        chosen = events.pop(index)
        self.set_available_night_events(events)
        return chosen.action()
