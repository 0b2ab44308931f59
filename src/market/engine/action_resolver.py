from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from agents.agents_api import (
    AcceptBribe, AddCash, AgentAction, AssassinationVictim, BumpStockClass, Buy,
    CrashAgentStocks, CrashAll, GetDividends, OneDayUltraVision, Sell
)
from constants import (
    ASSASSINATION_BUMP_FACTOR, BRIBE_AMOUNT, CHARACTER_ASSASSINATION_COST, CLASS_BUMP_AMOUNT,
    CRASH_BUMP_AMOUNT, DAY_LENGTH, MARKET_CRASH_COST
)
from market.conditions import AgentCondition, StockCondition
from market.errors import InvalidPreconditionError, UnknownStockError
from services.dividend_calculator import dividend_payout
from services.logging_service import LoggingService

if TYPE_CHECKING:
    from agents.agent_manager.agent_repository import AgentRepository
    from agents.base_agent import BaseAgent
    from market.market import Market


@dataclass
class ActionResult:
    """Outcome of one resolved action."""
    username: str
    action: AgentAction
    tick: int
    applied: bool
    cash_delta: int = 0
    message: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self):
        return {
            'timestamp': self.timestamp,
            'username': self.username,
            'action': self.action.describe(),
            'tick': self.tick,
            'applied': self.applied,
            'cash_delta': self.cash_delta,
            'message': self.message,
        }


class ActionResolver:
    """
    Applies an agent's pending action against the market.

    Every handler validates all of its sub-steps before it mutates anything, so
    a rejected action leaves market and agent untouched. The pending slot is
    cleared before validation and stays cleared when the action is rejected.

    Raises:
        ActionRejectedError subclasses when validation fails
        InvalidPreconditionError when a dividend action has no dividend due
    """

    def __init__(self, market: 'Market', agent_repository: 'AgentRepository'):
        self.market = market
        self.agent_repository = agent_repository
        self.logger = LoggingService.get_logger('actions')

    def resolve(self, agent: 'BaseAgent') -> Optional[ActionResult]:
        action = agent.clear_action()
        if action is None:
            return None

        tick = self.market.last_tick
        cash_before = agent.cash
        handler = getattr(self, f"_apply_{action.kind}")
        applied = handler(agent, action)

        result = ActionResult(
            username=agent.username,
            action=action,
            tick=tick,
            applied=applied,
            cash_delta=agent.cash - cash_before,
        )
        if applied:
            agent.insert_past_selected_action(action, tick)
            agent.last_rejection = None
            LoggingService.log_resolved_action(tick, agent.username, action.kind, agent.cash)
            self.logger.info(f"Tick {tick}: {agent.username} {action.describe()} (cash {cash_before} -> {agent.cash})")
        else:
            result.message = "no-op"
        return result

    def _stock(self, stock_id: int):
        if not 0 <= stock_id < len(self.market.stocks):
            raise UnknownStockError(
                f"Stock {stock_id} is not listed (market has {len(self.market.stocks)} stocks)"
            )
        return self.market.stocks[stock_id]

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------
    def _apply_Buy(self, agent: 'BaseAgent', action: Buy) -> bool:
        stock = self._stock(action.stock_id)
        cost = stock.buy_price_cents(action.amount)

        stock.check_allocation(action.amount)
        agent.check_cash(cost)
        agent.check_add_shares(action.stock_id, action.amount)

        agent.sub_cash(cost)
        agent.add_shares(action.stock_id, action.amount)
        stock.allocate_shares_to_agent(agent.username, action.amount)
        stock.add_condition(StockCondition.bump(stock.to_stake(action.amount)), self.market.last_tick + 1)
        return True

    def _apply_Sell(self, agent: 'BaseAgent', action: Sell) -> bool:
        stock = self._stock(action.stock_id)
        proceeds = stock.sell_price_cents(action.amount)

        agent.check_sub_shares(action.stock_id, action.amount)
        stock.check_deallocation(agent.username, action.amount)

        agent.sub_shares(action.stock_id, action.amount)
        agent.add_cash(proceeds)
        stock.deallocate_shares_to_agent(agent.username, action.amount)
        stock.add_condition(StockCondition.bump(-stock.to_stake(action.amount)), self.market.last_tick + 1)
        return True

    # ------------------------------------------------------------------
    # Night event payoffs
    # ------------------------------------------------------------------
    def _apply_BumpStockClass(self, agent: 'BaseAgent', action: BumpStockClass) -> bool:
        until = self.market.last_tick + DAY_LENGTH
        for stock in self.market.stocks:
            if stock.stock_class == action.stock_class:
                stock.add_condition(StockCondition.bump(CLASS_BUMP_AMOUNT), until)
        return True

    def _apply_CrashAll(self, agent: 'BaseAgent', action: CrashAll) -> bool:
        agent.check_cash(MARKET_CRASH_COST)

        until = self.market.last_tick + DAY_LENGTH
        for stock in self.market.stocks:
            stock.add_condition(StockCondition.bump(CRASH_BUMP_AMOUNT), until)
            stock.add_condition(StockCondition.increased_shock_probability(), until)
        agent.sub_cash(MARKET_CRASH_COST)
        self.logger.warning(f"{agent.username} crashed the whole market")
        return True

    def _apply_CrashAgentStocks(self, agent: 'BaseAgent', action: CrashAgentStocks) -> bool:
        target = self.agent_repository.get_agent(action.username)
        if target is None:
            self.logger.info(f"{agent.username}: assassination target {action.username} is gone, ignoring")
            return False

        agent.check_cash(CHARACTER_ASSASSINATION_COST)

        tick = self.market.last_tick
        until = tick + DAY_LENGTH
        target.insert_past_selected_action(AssassinationVictim(), tick)
        for stock in self.market.stocks:
            held = target.owned_shares[stock.id]
            if held == 0:
                continue
            stake = stock.to_stake(held)
            stock.add_condition(StockCondition.bump(-ASSASSINATION_BUMP_FACTOR * stake), until)
            stock.add_condition(StockCondition.increased_shock_probability(), until)
        agent.sub_cash(CHARACTER_ASSASSINATION_COST)
        self.logger.warning(f"{agent.username} targeted {target.username}")
        return True

    def _apply_AddCash(self, agent: 'BaseAgent', action: AddCash) -> bool:
        agent.add_cash(action.amount)
        return True

    def _apply_AcceptBribe(self, agent: 'BaseAgent', action: AcceptBribe) -> bool:
        agent.add_cash(BRIBE_AMOUNT)
        return True

    def _apply_OneDayUltraVision(self, agent: 'BaseAgent', action: OneDayUltraVision) -> bool:
        agent.add_condition(AgentCondition.ULTRA_VISION, self.market.last_tick + DAY_LENGTH)
        return True

    def _apply_GetDividends(self, agent: 'BaseAgent', action: GetDividends) -> bool:
        stock = self._stock(action.stock_id)
        payout = dividend_payout(stock, agent.owned_shares[action.stock_id])
        if payout is None:
            raise InvalidPreconditionError(
                f"{agent.username}: no dividend due on stock {action.stock_id} "
                f"(previous day gain {stock.previous_day_gain()})"
            )
        agent.add_cash(payout)
        return True

    def _apply_AssassinationVictim(self, agent: 'BaseAgent', action: AssassinationVictim) -> bool:
        return True


def apply_agent_action(market: 'Market', agent: 'BaseAgent',
                       agent_repository: 'AgentRepository') -> Optional[ActionResult]:
    """Resolve ``agent``'s pending action, if any. See ``ActionResolver``."""
    return ActionResolver(market, agent_repository).resolve(agent)
