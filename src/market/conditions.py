"""Time-scoped conditions attached to stocks and agents.

A condition is a payload paired with the tick at which it expires. It applies
while ``current_tick < until_tick`` and is purged at the first tick boundary
where that stops holding. Both stocks and agents keep their conditions in a
``ConditionQueue``; the queue itself does not care what the payload is.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar('T')


class StockConditionKind(str, Enum):
    BUMP = "bump"
    INCREASED_SHOCK_PROBABILITY = "increased_shock_probability"


@dataclass(frozen=True)
class StockCondition:
    """Modifier applied to a stock's price process.

    A bump shifts the effective drift by ``amount``; an increased shock
    probability condition boosts the chance of a fat-tail shock.
    """
    kind: StockConditionKind
    amount: float = 0.0

    @classmethod
    def bump(cls, amount: float) -> 'StockCondition':
        return cls(kind=StockConditionKind.BUMP, amount=float(amount))

    @classmethod
    def increased_shock_probability(cls) -> 'StockCondition':
        return cls(kind=StockConditionKind.INCREASED_SHOCK_PROBABILITY)

    @property
    def is_bump(self) -> bool:
        return self.kind == StockConditionKind.BUMP

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind.value, 'amount': self.amount}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StockCondition':
        return cls(kind=StockConditionKind(data['kind']), amount=float(data.get('amount', 0.0)))


class AgentCondition(str, Enum):
    """Temporary agent-level conditions."""
    ULTRA_VISION = "ultra_vision"


class ConditionQueue(Generic[T]):
    """Ordered collection of (until_tick, payload) pairs."""

    def __init__(self, entries: Optional[List[Tuple[int, T]]] = None):
        self._entries: List[Tuple[int, T]] = list(entries or [])

    def add(self, payload: T, until_tick: int) -> None:
        self._entries.append((until_tick, payload))

    def purge_expired(self, current_tick: int) -> int:
        """Drop every entry whose expiry is not after ``current_tick``.

        Returns:
            Number of entries removed
        """
        before = len(self._entries)
        self._entries = [(until, p) for until, p in self._entries if until > current_tick]
        return before - len(self._entries)

    def active(self, current_tick: int) -> Iterator[T]:
        for until, payload in self._entries:
            if until > current_tick:
                yield payload

    def contains(self, payload: T, current_tick: int) -> bool:
        return any(p == payload for p in self.active(current_tick))

    def entries(self) -> List[Tuple[int, T]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[int, T]]:
        return iter(list(self._entries))

    def to_list(self, encode: Callable[[T], Any]) -> List[List[Any]]:
        return [[until, encode(payload)] for until, payload in self._entries]

    @classmethod
    def from_list(cls, data: List[List[Any]], decode: Callable[[Any], T]) -> 'ConditionQueue[T]':
        return cls([(int(until), decode(payload)) for until, payload in data])
