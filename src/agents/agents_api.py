"""Action models agents select and the resolver applies.

Every action carries a ``kind`` literal so a serialized action can be parsed
back into the right model, and so past actions can be keyed by kind.
"""
from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from constants import NUMBER_OF_STOCKS
from market.stock import StockClass


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')

    def describe(self) -> str:
        fields = ", ".join(f"{k}={v}" for k, v in self.model_dump(exclude={'kind'}).items())
        return f"{self.kind}({fields})" if fields else self.kind


class _StockAmountAction(_Action):
    stock_id: int = Field(ge=0, lt=NUMBER_OF_STOCKS)
    amount: int

    @model_validator(mode='after')
    def validate_amount(self):
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        return self


class Buy(_StockAmountAction):
    kind: Literal["Buy"] = "Buy"


class Sell(_StockAmountAction):
    kind: Literal["Sell"] = "Sell"


class BumpStockClass(_Action):
    kind: Literal["BumpStockClass"] = "BumpStockClass"
    stock_class: StockClass


class CrashAll(_Action):
    kind: Literal["CrashAll"] = "CrashAll"


class CrashAgentStocks(_Action):
    kind: Literal["CrashAgentStocks"] = "CrashAgentStocks"
    username: str = Field(min_length=1)


class AddCash(_Action):
    kind: Literal["AddCash"] = "AddCash"
    amount: int = Field(ge=0)


class AcceptBribe(_Action):
    kind: Literal["AcceptBribe"] = "AcceptBribe"


class OneDayUltraVision(_Action):
    kind: Literal["OneDayUltraVision"] = "OneDayUltraVision"


class GetDividends(_Action):
    kind: Literal["GetDividends"] = "GetDividends"
    stock_id: int = Field(ge=0, lt=NUMBER_OF_STOCKS)


class AssassinationVictim(_Action):
    """Marker recorded on an agent targeted by a character assassination."""
    kind: Literal["AssassinationVictim"] = "AssassinationVictim"


AgentAction = Annotated[
    Union[
        Buy, Sell, BumpStockClass, CrashAll, CrashAgentStocks, AddCash,
        AcceptBribe, OneDayUltraVision, GetDividends, AssassinationVictim,
    ],
    Field(discriminator='kind'),
]

_ACTION_ADAPTER = TypeAdapter(AgentAction)


def parse_action(data: Dict[str, Any]) -> AgentAction:
    """Rebuild an action from its ``model_dump()`` form."""
    return _ACTION_ADAPTER.validate_python(data)
