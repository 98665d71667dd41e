"""
God Code AI Strategy Base

Abstract base class defining the strategy interface.
Strategies only read the state and the query surface; the caller turns their
choices into engine operations.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.engine import GameState, AttackDeclaration


class AIStrategy(ABC):
    """
    Abstract base class for AI strategies.

    choose_discards has the same signature as a Twilight discard policy, so
    a strategy can be handed straight to Game(discard_policy=...).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the strategy name."""
        pass

    @abstractmethod
    def choose_attacks(self, state: 'GameState', player_id: str) -> list['AttackDeclaration']:
        """
        Pick attackers and targets for this Clash.

        Args:
            state: Current game state
            player_id: The AI player's ID

        Returns:
            AttackDeclarations, each one legal to declare in order
        """
        pass

    @abstractmethod
    def choose_blocks(self, state: 'GameState', player_id: str) -> dict[int, int]:
        """
        Assign blockers to declared attackers.

        Returns:
            Mapping of attacker_id -> blocker_id
        """
        pass

    @abstractmethod
    def choose_discards(self, state: 'GameState', player_id: str, count: int) -> list[int]:
        """Pick exactly count cards from hand to discard at the hand limit."""
        pass

    def _get_opponent_id(self, player_id: str, state: 'GameState') -> str:
        """Get the opponent's player ID."""
        for pid in state.players:
            if pid != player_id:
                return pid
        return None
