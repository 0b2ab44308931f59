"""JSON snapshots of the market and the agent registry."""
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from agents.agent_manager.agent_repository import AgentRepository
from market.market import Market
from services.logging_service import LoggingService

MARKET_STORE_FILENAME = 'market.json'
AGENTS_STORE_FILENAME = 'agents.json'


class MarketStore:
    """Saves and loads ``market.json`` and ``agents.json`` in a store directory.

    Files are written to temporary siblings first and only renamed into
    place once every file of the snapshot has been written, so a failed save
    leaves the previous pair untouched.
    """

    def __init__(self, store_dir: Path):
        self.store_dir = Path(store_dir)
        self.logger = LoggingService.get_logger('persistence')

    @property
    def market_path(self) -> Path:
        return self.store_dir / MARKET_STORE_FILENAME

    @property
    def agents_path(self) -> Path:
        return self.store_dir / AGENTS_STORE_FILENAME

    def exists(self) -> bool:
        return self.market_path.exists()

    @staticmethod
    def _tmp_path(path: Path) -> Path:
        return path.with_suffix(path.suffix + '.tmp')

    def _write_all(self, files: Dict[Path, Any]) -> None:
        """Write every file to its temporary sibling, then rename them all."""
        self.store_dir.mkdir(parents=True, exist_ok=True)
        try:
            for path, data in files.items():
                with open(self._tmp_path(path), 'w') as f:
                    json.dump(data, f)
        except BaseException:
            for path in files:
                self._tmp_path(path).unlink(missing_ok=True)
            raise
        for path in files:
            self._tmp_path(path).replace(path)

    def save_market(self, market: Market) -> None:
        self._write_all({self.market_path: market.to_dict()})

    def save_agents(self, agents: AgentRepository) -> None:
        self._write_all({self.agents_path: agents.to_dict()})

    def save(self, market: Market, agents: AgentRepository) -> None:
        self._write_all({
            self.market_path: market.to_dict(),
            self.agents_path: agents.to_dict(),
        })
        self.logger.debug(f"Stored market at tick {market.last_tick} and {len(agents)} agents in {self.store_dir}")

    def load_market(self) -> Market:
        with open(self.market_path) as f:
            return Market.from_dict(json.load(f))

    def load_agents(self, number_of_stocks: int) -> AgentRepository:
        if not self.agents_path.exists():
            return AgentRepository()
        with open(self.agents_path) as f:
            return AgentRepository.from_dict(json.load(f), number_of_stocks)

    def load(self) -> Optional[Tuple[Market, AgentRepository]]:
        """Stored market and agents, or None when there is no snapshot yet.

        Allocations are rebuilt from the agents' holdings, which are the
        authoritative record of who owns what.
        """
        if not self.exists():
            self.logger.info(f"No snapshot in {self.store_dir}")
            return None
        market = self.load_market()
        agents = self.load_agents(len(market.stocks))
        market.reconcile_allocations(agents)
        self.logger.info(
            f"Loaded market at tick {market.last_tick} ({market.phase.formatted()}) "
            f"and {len(agents)} agents from {self.store_dir}"
        )
        return market, agents
