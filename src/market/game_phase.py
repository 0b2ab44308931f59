from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from constants import (
    DAY_LENGTH, NIGHT_LENGTH, TICKS_PER_HOUR, DAY_STARTING_HOUR, DAY_LENGTH_HOURS
)


class PhaseKind(str, Enum):
    DAY = "Day"
    NIGHT = "Night"


class Season(str, Enum):
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"
    WINTER = "Winter"


DAYS_PER_SEASON = 90
DAYS_PER_YEAR = 365
FIRST_YEAR = 2024


@dataclass(frozen=True)
class GamePhase:
    """Day/night state machine position.

    ``counter`` counts ticks inside the active phase and is always below that
    phase's length. ``cycle`` counts completed nights.
    """
    kind: PhaseKind
    cycle: int
    counter: int

    @classmethod
    def day(cls, cycle: int = 0, counter: int = 0) -> 'GamePhase':
        return cls(PhaseKind.DAY, cycle, counter)

    @classmethod
    def night(cls, cycle: int = 0, counter: int = 0) -> 'GamePhase':
        return cls(PhaseKind.NIGHT, cycle, counter)

    @property
    def is_day(self) -> bool:
        return self.kind == PhaseKind.DAY

    @property
    def is_night(self) -> bool:
        return self.kind == PhaseKind.NIGHT

    @property
    def length(self) -> int:
        return DAY_LENGTH if self.is_day else NIGHT_LENGTH

    def next(self) -> 'GamePhase':
        """Phase after one tick: Day flips to Night of the same cycle, Night flips to the next cycle's Day."""
        if self.counter < self.length - 1:
            return GamePhase(self.kind, self.cycle, self.counter + 1)
        if self.is_day:
            return GamePhase.night(self.cycle, 0)
        return GamePhase.day(self.cycle + 1, 0)

    def time(self) -> Tuple[int, int]:
        start = DAY_STARTING_HOUR if self.is_day else DAY_STARTING_HOUR + DAY_LENGTH_HOURS
        hour = (start + self.counter // TICKS_PER_HOUR) % 24
        minute = (self.counter % TICKS_PER_HOUR) * 15
        return hour, minute

    def day_of_year(self) -> int:
        return self.cycle % DAYS_PER_YEAR + 1

    def season(self) -> Season:
        # Winter absorbs the days past the fourth 90-day block
        seasons = list(Season)
        return seasons[min((self.day_of_year() - 1) // DAYS_PER_SEASON, len(seasons) - 1)]

    def year(self) -> int:
        return FIRST_YEAR + self.cycle // DAYS_PER_YEAR

    def formatted(self) -> str:
        hour, minute = self.time()
        return f"{self.day_of_year():3} {self.season().value:6} {self.year()} {hour:02}:{minute:02}"

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind.value, 'cycle': self.cycle, 'counter': self.counter}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GamePhase':
        return cls(PhaseKind(data['kind']), int(data['cycle']), int(data['counter']))
