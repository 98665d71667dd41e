"""
God Code Resource Ledger

KL system:
- Max KL grows by 1 at each of your Dawns (cap 13) and KL refills to max
- KL gained above max is banked as overflow
- Every 13 overflow converts into one God Code charge (max 2);
  overflow converted while already at the charge cap is lost
- God Code charges fire the deity's ultimate, not before turn 4
"""

from typing import Optional, TYPE_CHECKING
import logging

from .config import RulesConfig
from .errors import InsufficientResourceError, GodCodeUnavailableError
from .types import GameState, Event, EventType, ResourceLedger

if TYPE_CHECKING:
    from .pipeline import EventPipeline


logger = logging.getLogger(__name__)


class ResourceSystem:
    """Mutates each player's ResourceLedger under the KL rules."""

    def __init__(self, state: GameState, config: Optional[RulesConfig] = None):
        self.state = state
        self.config = config or RulesConfig()
        self.pipeline: Optional['EventPipeline'] = None

    def ledger(self, player_id: str) -> ResourceLedger:
        return self.state.players[player_id].resource

    def adjust(self, player_id: str, amount: int) -> None:
        """
        Add (or remove) KL. Anything that would push current past max is
        banked as overflow instead. Removal floors at 0.
        """
        ledger = self.ledger(player_id)
        if ledger.current + amount <= ledger.max:
            ledger.current = max(0, ledger.current + amount)
            self._emit_changed(player_id, 'adjust')
            return

        excess = ledger.current + amount - ledger.max
        ledger.current = ledger.max
        self._emit_changed(player_id, 'adjust')
        self.bank_overflow(player_id, excess)

    def bank_overflow(self, player_id: str, amount: int) -> None:
        """Bank overflow, converting each full threshold into a God Code charge."""
        if amount <= 0:
            return
        ledger = self.ledger(player_id)
        ledger.overflow += amount

        threshold = self.config.overflow_threshold
        while ledger.overflow >= threshold:
            ledger.overflow -= threshold
            if ledger.god_code_charges >= self.config.max_god_code_charges:
                logger.debug("Player %s at charge cap; %d overflow discarded", player_id, threshold)
                continue
            ledger.god_code_charges += 1
            logger.info("Player %s gains a God Code charge (%d)", player_id, ledger.god_code_charges)
            self._emit(Event(
                type=EventType.GOD_CODE_CHARGED,
                payload={'player': player_id, 'charges': ledger.god_code_charges},
                controller=player_id,
            ))

        self._emit_changed(player_id, 'overflow')

    def refill_at_dawn(self, player_id: str) -> None:
        """Grow max by one (up to the cap) and refill current to max."""
        ledger = self.ledger(player_id)
        ledger.max = min(self.config.max_resource, ledger.max + 1)
        ledger.current = ledger.max
        self._emit_changed(player_id, 'refill')

    def can_pay(self, player_id: str, cost: int) -> bool:
        return self.ledger(player_id).current >= cost

    def check_payable(self, player_id: str, cost: int) -> None:
        """Raise InsufficientResourceError unless cost is payable now."""
        current = self.ledger(player_id).current
        if cost > current:
            raise InsufficientResourceError(
                f"Player {player_id} cannot pay {cost} KL (only {current} available)"
            )

    def spend(self, player_id: str, cost: int) -> None:
        self.check_payable(player_id, cost)
        if cost == 0:
            return
        self.ledger(player_id).current -= cost
        self._emit_changed(player_id, 'spend')

    def refund(self, player_id: str, amount: int) -> None:
        """Give back KL that was spent on a play that never completed."""
        if amount <= 0:
            return
        ledger = self.ledger(player_id)
        ledger.current = min(ledger.max, ledger.current + amount)
        self._emit_changed(player_id, 'refund')

    def check_god_code(self, player_id: str) -> None:
        """Raise GodCodeUnavailableError unless a charge can be spent now."""
        if self.state.turn_number < self.config.god_code_min_turn:
            raise GodCodeUnavailableError(
                f"God Code cannot be used before turn {self.config.god_code_min_turn}"
            )
        if self.ledger(player_id).god_code_charges < 1:
            raise GodCodeUnavailableError(f"Player {player_id} has no God Code charges")

    def spend_god_code_charge(self, player_id: str) -> None:
        self.check_god_code(player_id)
        self.ledger(player_id).god_code_charges -= 1
        self._emit_changed(player_id, 'god_code')

    def _emit_changed(self, player_id: str, reason: str) -> None:
        ledger = self.ledger(player_id)
        self._emit(Event(
            type=EventType.RESOURCE_CHANGED,
            payload={
                'player': player_id,
                'reason': reason,
                'current': ledger.current,
                'max': ledger.max,
                'overflow': ledger.overflow,
                'god_code_charges': ledger.god_code_charges,
            },
            controller=player_id,
        ))

    def _emit(self, event: Event) -> None:
        if self.pipeline:
            self.pipeline.emit(event)
