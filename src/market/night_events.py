"""Night event catalog.

Once per night, every agent is offered a handful of special actions. Each
event knows whether a given agent may take it (``is_eligible``), how to
describe itself, and which action it turns into when chosen. The catalog is a
fixed enumeration; parameterized events (a sabotage target, a dividend stock)
are expanded by ``candidate_events``.
"""
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Union, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from agents.agents_api import (
    AcceptBribe, AgentAction, BumpStockClass, CrashAgentStocks, CrashAll,
    GetDividends, OneDayUltraVision
)
from constants import (
    A_GOOD_OFFER_CASH_THRESHOLD, A_GOOD_OFFER_PROBABILITY, BRIBE_AMOUNT,
    CHARACTER_ASSASSINATION_COST, CLASS_EVENT_MIN_AVERAGE_STAKE, MARKET_CRASH_CASH_THRESHOLD,
    MARKET_CRASH_COST, MAX_EVENTS_PER_NIGHT, ULTRA_VISION_MIN_STAKE, ULTRA_VISION_STOCK_ID
)
from market.stock import StockClass, format_dollars
from services.dividend_calculator import dividend_payout

if TYPE_CHECKING:
    from agents.base_agent import DecisionAgent
    from market.market import Market


class EventRarity(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"


def average_class_stake(agent: 'DecisionAgent', market: 'Market', stock_class: StockClass) -> float:
    """Average percentage stake the agent holds across stocks of a class."""
    stocks = [s for s in market.stocks if s.stock_class == stock_class]
    if not stocks:
        return 0.0
    return sum(100.0 * s.to_stake(agent.owned_shares[s.id]) for s in stocks) / len(stocks)


class _NightEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')

    display_name: str = ""
    rarity: EventRarity = EventRarity.COMMON

    def flavor_text(self) -> List[str]:
        raise NotImplementedError

    def unlock_condition_description(self) -> List[str]:
        raise NotImplementedError

    def cost_description(self) -> List[str]:
        return ["Free"]

    def description(self) -> List[str]:
        lines = list(self.flavor_text())
        lines.append("")
        lines.append("Unlock Condition:")
        lines.extend(self.unlock_condition_description())
        lines.append("")
        lines.append("Cost:")
        lines.extend(self.cost_description())
        return lines

    def is_eligible(self, agent: 'DecisionAgent', market: 'Market', rng) -> bool:
        raise NotImplementedError

    def action(self) -> AgentAction:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.display_name


class _ClassBumpEvent(_NightEvent):
    """Common events paying off with a bump to one stock class."""
    stock_class: StockClass = StockClass.MEDIA

    def unlock_condition_description(self) -> List[str]:
        return [
            "Average share in",
            f"{self.stock_class.value} stocks >= {CLASS_EVENT_MIN_AVERAGE_STAKE:g}%",
        ]

    def is_eligible(self, agent, market, rng) -> bool:
        return average_class_stake(agent, market, self.stock_class) >= CLASS_EVENT_MIN_AVERAGE_STAKE

    def action(self) -> AgentAction:
        return BumpStockClass(stock_class=self.stock_class)


class War(_ClassBumpEvent):
    kind: Literal["War"] = "War"
    display_name: str = "War"
    stock_class: StockClass = StockClass.WAR

    def flavor_text(self) -> List[str]:
        return [
            "It's war time!",
            "Chance for all war stocks",
            "to get a big bump.",
        ]


class ColdWinter(_ClassBumpEvent):
    kind: Literal["ColdWinter"] = "ColdWinter"
    display_name: str = "Cold winter"
    stock_class: StockClass = StockClass.COMMODITY

    def flavor_text(self) -> List[str]:
        return [
            "Apparently next winter",
            "is gonna be very cold,",
            "better prepare soon. So",
            "much for global warming!",
        ]


class RoyalScandal(_ClassBumpEvent):
    kind: Literal["RoyalScandal"] = "RoyalScandal"
    display_name: str = "Royal scandal"
    stock_class: StockClass = StockClass.MEDIA

    def flavor_text(self) -> List[str]:
        return [
            "A juicy scandal will hit",
            "every frontpage tomorrow.",
            "Media stocks will surely",
            "sell some extra!",
        ]


class PurpleBlockchain(_ClassBumpEvent):
    kind: Literal["PurpleBlockchain"] = "PurpleBlockchain"
    display_name: str = "Purple blockchain"
    stock_class: StockClass = StockClass.TECHNOLOGY

    def flavor_text(self) -> List[str]:
        return [
            "Didn't you hear?",
            "Blockchains are gonna fix",
            "the broken financial",
            "system. Just put it on",
            "chain, and make it purple.",
        ]


class MarketCrash(_NightEvent):
    kind: Literal["MarketCrash"] = "MarketCrash"
    display_name: str = "Market crash"
    rarity: EventRarity = EventRarity.RARE

    def flavor_text(self) -> List[str]:
        return [
            "It's 1929 all over again,",
            "or was it 1987?",
            "Or 2001? Or 2008?",
            "Or...",
        ]

    def unlock_condition_description(self) -> List[str]:
        return [f"Total cash >= ${format_dollars(MARKET_CRASH_CASH_THRESHOLD)}"]

    def cost_description(self) -> List[str]:
        return [f"${format_dollars(MARKET_CRASH_COST)}"]

    def is_eligible(self, agent, market, rng) -> bool:
        return agent.cash >= MARKET_CRASH_CASH_THRESHOLD

    def action(self) -> AgentAction:
        return CrashAll()


class UltraVision(_NightEvent):
    kind: Literal["UltraVision"] = "UltraVision"
    display_name: str = "UltraVision"
    rarity: EventRarity = EventRarity.UNCOMMON

    def flavor_text(self) -> List[str]:
        return [
            "You woke up differently",
            "this morning, with a sense",
            "of prescience about",
            "something incoming...",
        ]

    def unlock_condition_description(self) -> List[str]:
        return [f"Stock #{ULTRA_VISION_STOCK_ID} share >= {ULTRA_VISION_MIN_STAKE:g}%"]

    def is_eligible(self, agent, market, rng) -> bool:
        if ULTRA_VISION_STOCK_ID >= len(market.stocks):
            return False
        stock = market.stocks[ULTRA_VISION_STOCK_ID]
        return 100.0 * stock.to_stake(agent.owned_shares[ULTRA_VISION_STOCK_ID]) >= ULTRA_VISION_MIN_STAKE

    def action(self) -> AgentAction:
        return OneDayUltraVision()


class CharacterAssassination(_NightEvent):
    """Sabotage another agent who took a special offer in the past."""
    kind: Literal["CharacterAssassination"] = "CharacterAssassination"
    display_name: str = "Character assassination"
    rarity: EventRarity = EventRarity.UNCOMMON
    username: str

    def flavor_text(self) -> List[str]:
        return [
            f"That crook {self.username}",
            "better pay attention",
            "to their stocks tomorrow.",
        ]

    def unlock_condition_description(self) -> List[str]:
        return [
            f"{self.username} took a special offer",
            "in the past and got too",
            "greedy now.",
        ]

    def cost_description(self) -> List[str]:
        return [f"${format_dollars(CHARACTER_ASSASSINATION_COST)}"]

    def is_eligible(self, agent, market, rng) -> bool:
        return self.username != agent.username and agent.cash >= CHARACTER_ASSASSINATION_COST

    def action(self) -> AgentAction:
        return CrashAgentStocks(username=self.username)


class AGoodOffer(_NightEvent):
    kind: Literal["AGoodOffer"] = "AGoodOffer"
    display_name: str = "A good offer"
    rarity: EventRarity = EventRarity.RARE

    def flavor_text(self) -> List[str]:
        return [
            "An offer you can't refuse",
            f"they say. Get ${format_dollars(BRIBE_AMOUNT)},",
            "pay later (maybe).",
        ]

    def unlock_condition_description(self) -> List[str]:
        return [
            f"Cash < ${format_dollars(A_GOOD_OFFER_CASH_THRESHOLD)},",
            "random chance,",
            "happens only once",
        ]

    def is_eligible(self, agent, market, rng) -> bool:
        # Offered at most once per agent, ever
        return (
            AcceptBribe().kind not in agent.past_selected_actions()
            and agent.cash < A_GOOD_OFFER_CASH_THRESHOLD
            and rng.random() < A_GOOD_OFFER_PROBABILITY
        )

    def action(self) -> AgentAction:
        return AcceptBribe()


class Dividends(_NightEvent):
    """Payout for holders of a stock that gained during the last day."""
    kind: Literal["Dividends"] = "Dividends"
    display_name: str = "Dividends"
    stock_id: int
    stock_name: str = ""

    def flavor_text(self) -> List[str]:
        name = self.stock_name or f"Stock #{self.stock_id}"
        return [
            f"{name} had a good day",
            "and the board is feeling",
            "generous with shareholders.",
        ]

    def unlock_condition_description(self) -> List[str]:
        return [
            "Hold shares of a stock",
            "that gained yesterday,",
            "random chance",
        ]

    def is_eligible(self, agent, market, rng) -> bool:
        stock = market.stocks[self.stock_id]
        shares = agent.owned_shares[self.stock_id]
        if shares == 0:
            return False
        if dividend_payout(stock, shares) is None:
            return False
        return rng.random() < stock.dividend_probability

    def action(self) -> AgentAction:
        return GetDividends(stock_id=self.stock_id)


NightEvent = Annotated[
    Union[
        War, ColdWinter, RoyalScandal, PurpleBlockchain, MarketCrash,
        UltraVision, CharacterAssassination, AGoodOffer, Dividends,
    ],
    Field(discriminator='kind'),
]

_EVENT_ADAPTER = TypeAdapter(NightEvent)


def parse_night_event(data: Dict[str, Any]) -> NightEvent:
    return _EVENT_ADAPTER.validate_python(data)


def candidate_events(agent: 'DecisionAgent', market: 'Market',
                     agents: Iterable['DecisionAgent']) -> List[NightEvent]:
    """All catalog entries in enumeration order, parameters expanded.

    Character assassination is listed once per other agent that accepted a
    bribe; dividends once per stock.
    """
    bribe_kind = AcceptBribe().kind
    events: List[NightEvent] = [
        War(), ColdWinter(), RoyalScandal(), PurpleBlockchain(), MarketCrash(), UltraVision(),
    ]
    events.extend(
        CharacterAssassination(username=other.username)
        for other in agents
        if other.username != agent.username and bribe_kind in other.past_selected_actions()
    )
    events.append(AGoodOffer())
    events.extend(Dividends(stock_id=stock.id, stock_name=stock.name) for stock in market.stocks)
    return events


def evaluate_night_events(agent: 'DecisionAgent', market: 'Market',
                          agents: Iterable['DecisionAgent'], rng,
                          max_events: int = MAX_EVENTS_PER_NIGHT) -> List[NightEvent]:
    """Events offered to ``agent`` for the coming night.

    Eligible events keep enumeration order; if more than ``max_events`` are
    eligible, a seeded draw keeps ``max_events`` of them.
    """
    eligible = [e for e in candidate_events(agent, market, agents) if e.is_eligible(agent, market, rng)]
    if len(eligible) <= max_events:
        return eligible
    keep = sorted(int(i) for i in rng.choice(len(eligible), size=max_events, replace=False))
    return [eligible[i] for i in keep]
