"""Agent verification package.

Invariant checks for a single agent's cash and holdings.
"""

from agents.verification.agent_verifier import AgentVerifier

__all__ = ['AgentVerifier']
