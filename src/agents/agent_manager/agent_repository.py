from typing import Any, Dict, Iterator, List, Optional

from agents.base_agent import BaseAgent, UserAgent
from agents.deterministic.deterministic_registry import DETERMINISTIC_AGENTS
from services.logging_service import LoggingService


class AgentRepository:
    """Registry of every participant, keyed by username.

    Iteration follows insertion order, which is the order pending actions are
    resolved in each tick.
    """

    def __init__(self, agents: Optional[List[BaseAgent]] = None):
        self._agents: Dict[str, BaseAgent] = {}
        for agent in agents or []:
            self.insert_agent(agent)

    def get_agent(self, username: str) -> Optional[BaseAgent]:
        """Agent by username, or None when it is not registered."""
        return self._agents.get(username)

    def insert_agent(self, agent: BaseAgent) -> None:
        if agent.username in self._agents:
            raise ValueError(f"Agent already registered: {agent.username}")
        self._agents[agent.username] = agent
        LoggingService.get_logger('agents').info(f"Registered {agent.agent_kind} agent {agent.username}")

    def remove_agent(self, username: str) -> Optional[BaseAgent]:
        agent = self._agents.pop(username, None)
        if agent is not None:
            LoggingService.get_logger('agents').info(f"Removed agent {username}")
        return agent

    def get_all_agents(self) -> List[BaseAgent]:
        return list(self._agents.values())

    def get_all_usernames(self) -> List[str]:
        return list(self._agents.keys())

    @property
    def agents(self) -> Dict[str, BaseAgent]:
        """Read-only access to agents dictionary"""
        return self._agents.copy()

    def __contains__(self, username: str) -> bool:
        return username in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[BaseAgent]:
        return iter(list(self._agents.values()))

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {username: agent.to_dict() for username, agent in self._agents.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], number_of_stocks: int) -> 'AgentRepository':
        repository = cls()
        for username, state in data.items():
            repository._agents[username] = create_agent(
                state.get('agent_kind', UserAgent.agent_kind), username, number_of_stocks
            ).load_state(state)
        return repository


def create_agent(agent_kind: str, username: str, number_of_stocks: int, **params) -> BaseAgent:
    """Instantiate an agent of ``agent_kind``: a human user or a registered scripted agent."""
    if agent_kind == UserAgent.agent_kind:
        return UserAgent(username, number_of_stocks=number_of_stocks, **params)
    if agent_kind not in DETERMINISTIC_AGENTS:
        raise ValueError(f"Unknown agent kind: {agent_kind}")
    return DETERMINISTIC_AGENTS[agent_kind](username=username, number_of_stocks=number_of_stocks, **params)
