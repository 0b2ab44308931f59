from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from agents.agents_api import AgentAction, parse_action
from constants import INITIAL_AGENT_CASH, MAX_SHARES, NUMBER_OF_STOCKS
from market.conditions import AgentCondition, ConditionQueue
from market.errors import InsufficientFundsError, InsufficientSharesError, ShareOverflowError
from market.night_events import NightEvent, parse_night_event

if TYPE_CHECKING:
    from market.market import Market


@dataclass
class PastAction:
    """How often an action kind was applied and when it last was."""
    count: int
    last_tick: int


class DecisionAgent(ABC):
    """Capability interface shared by every participant kind.

    The resolver and the night-event catalog only talk to agents through
    these operations, so human sessions and scripted agents are handled
    identically.
    """

    @property
    @abstractmethod
    def username(self) -> str: ...

    @property
    @abstractmethod
    def cash(self) -> int: ...

    @abstractmethod
    def add_cash(self, amount: int) -> int: ...

    @abstractmethod
    def sub_cash(self, amount: int) -> int: ...

    @property
    @abstractmethod
    def owned_shares(self) -> List[int]: ...

    @abstractmethod
    def add_shares(self, stock_id: int, amount: int) -> List[int]: ...

    @abstractmethod
    def sub_shares(self, stock_id: int, amount: int) -> List[int]: ...

    @abstractmethod
    def selected_action(self) -> Optional[AgentAction]: ...

    @abstractmethod
    def select_action(self, action: AgentAction) -> bool: ...

    @abstractmethod
    def clear_action(self) -> Optional[AgentAction]: ...

    @abstractmethod
    def available_night_events(self) -> List[NightEvent]: ...

    @abstractmethod
    def set_available_night_events(self, events: List[NightEvent]) -> None: ...

    @abstractmethod
    def add_condition(self, condition: AgentCondition, until_tick: int) -> None: ...

    @abstractmethod
    def has_condition(self, condition: AgentCondition, current_tick: int) -> bool: ...

    @abstractmethod
    def expire_conditions(self, current_tick: int) -> int: ...

    @abstractmethod
    def past_selected_actions(self) -> Dict[str, PastAction]: ...

    @abstractmethod
    def insert_past_selected_action(self, action: AgentAction, tick: int) -> None: ...


class BaseAgent(DecisionAgent):
    """Agent state with core accounting.

    Cash and share counts are integers and never go negative: a subtraction
    that would do so raises instead of clamping.
    """
    agent_kind = "user"

    def __init__(self, username: str, initial_cash: int = INITIAL_AGENT_CASH,
                 number_of_stocks: int = NUMBER_OF_STOCKS):
        if not username:
            raise ValueError("username must not be empty")
        if initial_cash < 0:
            raise ValueError("initial_cash must be non-negative")
        self._username = username
        self._cash = int(initial_cash)
        self._owned_shares: List[int] = [0] * number_of_stocks
        self._pending_action: Optional[AgentAction] = None
        self._available_night_events: List[NightEvent] = []
        self._conditions: ConditionQueue[AgentCondition] = ConditionQueue()
        self._past_actions: Dict[str, PastAction] = {}

        # Night cycle whose events were last offered to this agent
        self.events_offered_cycle: Optional[int] = None
        # Message of the last rejected action, for the session to display
        self.last_rejection: Optional[str] = None

    @property
    def username(self) -> str:
        return self._username

    # Cash
    @property
    def cash(self) -> int:
        return self._cash

    def cash_dollars(self) -> float:
        return self._cash / 100.0

    def add_cash(self, amount: int) -> int:
        if amount < 0:
            raise ValueError("add_cash amount must be non-negative")
        self._cash += amount
        return self._cash

    def check_cash(self, amount: int) -> None:
        if amount > self._cash:
            raise InsufficientFundsError(
                f"{self._username} needs {amount} cents but has {self._cash}"
            )

    def sub_cash(self, amount: int) -> int:
        if amount < 0:
            raise ValueError("sub_cash amount must be non-negative")
        self.check_cash(amount)
        self._cash -= amount
        return self._cash

    # Shares
    @property
    def owned_shares(self) -> List[int]:
        return self._owned_shares

    def check_add_shares(self, stock_id: int, amount: int) -> None:
        if self._owned_shares[stock_id] + amount > MAX_SHARES:
            raise ShareOverflowError(
                f"{self._username}: holding of stock {stock_id} would overflow"
            )

    def check_sub_shares(self, stock_id: int, amount: int) -> None:
        owned = self._owned_shares[stock_id]
        if amount > owned:
            raise InsufficientSharesError(
                f"{self._username} holds {owned} shares of stock {stock_id}, cannot sell {amount}"
            )

    def add_shares(self, stock_id: int, amount: int) -> List[int]:
        self.check_add_shares(stock_id, amount)
        self._owned_shares[stock_id] += amount
        return self._owned_shares

    def sub_shares(self, stock_id: int, amount: int) -> List[int]:
        self.check_sub_shares(stock_id, amount)
        self._owned_shares[stock_id] -= amount
        return self._owned_shares

    # Pending action slot
    def selected_action(self) -> Optional[AgentAction]:
        return self._pending_action

    def select_action(self, action: AgentAction) -> bool:
        """Fill the pending slot. First select wins until the slot is cleared."""
        if self._pending_action is not None:
            return False
        self._pending_action = action
        return True

    def clear_action(self) -> Optional[AgentAction]:
        action = self._pending_action
        self._pending_action = None
        return action

    # Night events
    def available_night_events(self) -> List[NightEvent]:
        return list(self._available_night_events)

    def set_available_night_events(self, events: List[NightEvent]) -> None:
        self._available_night_events = list(events)

    def select_night_event(self, index: int) -> bool:
        """Select the action of an offered event; the event is then withdrawn."""
        if not 0 <= index < len(self._available_night_events):
            return False
        event = self._available_night_events[index]
        if not self.select_action(event.action()):
            return False
        del self._available_night_events[index]
        return True

    # Conditions
    def add_condition(self, condition: AgentCondition, until_tick: int) -> None:
        self._conditions.add(condition, until_tick)

    def has_condition(self, condition: AgentCondition, current_tick: int) -> bool:
        return self._conditions.contains(condition, current_tick)

    def expire_conditions(self, current_tick: int) -> int:
        return self._conditions.purge_expired(current_tick)

    # History
    def past_selected_actions(self) -> Dict[str, PastAction]:
        return self._past_actions

    def insert_past_selected_action(self, action: AgentAction, tick: int) -> None:
        past = self._past_actions.get(action.kind)
        if past is None:
            self._past_actions[action.kind] = PastAction(count=1, last_tick=tick)
        else:
            past.count += 1
            past.last_tick = tick

    def has_selected(self, kind: str) -> bool:
        return kind in self._past_actions

    # Valuation
    def stock_value(self, market: 'Market') -> int:
        return sum(
            amount * market.stocks[stock_id].current_unit_price_cents()
            for stock_id, amount in enumerate(self._owned_shares)
        )

    def valuation(self, market: 'Market') -> int:
        return self._cash + self.stock_value(market)

    def stock_info(self, stock, current_tick: int) -> str:
        """Disclosure line for ``stock``: tiered by stake, or everything under UltraVision."""
        if self.has_condition(AgentCondition.ULTRA_VISION, current_tick):
            return stock.info(stock.number_of_shares)
        return stock.info(self._owned_shares[stock.id])

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            'username': self._username,
            'agent_kind': self.agent_kind,
            'cash': self._cash,
            'owned_shares': list(self._owned_shares),
            'pending_action': self._pending_action.model_dump(mode='json') if self._pending_action else None,
            'available_night_events': [e.model_dump(mode='json') for e in self._available_night_events],
            'events_offered_cycle': self.events_offered_cycle,
            'conditions': self._conditions.to_list(lambda c: c.value),
            'past_actions': {
                kind: {'count': p.count, 'last_tick': p.last_tick}
                for kind, p in self._past_actions.items()
            },
        }

    def load_state(self, data: Dict[str, Any]) -> 'BaseAgent':
        """Restore persisted state onto a freshly constructed agent."""
        self._cash = int(data['cash'])
        self._owned_shares = [int(x) for x in data['owned_shares']]
        pending = data.get('pending_action')
        self._pending_action = parse_action(pending) if pending else None
        self._available_night_events = [parse_night_event(e) for e in data.get('available_night_events', [])]
        self.events_offered_cycle = data.get('events_offered_cycle')
        self._conditions = ConditionQueue.from_list(data.get('conditions', []), AgentCondition)
        self._past_actions = {
            kind: PastAction(count=int(p['count']), last_tick=int(p['last_tick']))
            for kind, p in data.get('past_actions', {}).items()
        }
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}(username={self._username!r}, cash={self._cash})"


class UserAgent(BaseAgent):
    """Participant driven by a human session."""
    agent_kind = "user"
