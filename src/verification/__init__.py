"""
Verification module for simulation invariants and state validation.
"""

from .simulation_verifier import SimulationVerifier

__all__ = ['SimulationVerifier']
