"""
God Code Turn Manager

Turn structure (strict cycle, no skipping):
1. Dawn     - untap, refill KL, reset turn flags
2. Draw     - one mandatory draw (not on the first player's first turn)
3. Main     - card plays
4. Clash    - combat
5. Twilight - end-of-turn hooks, then hand limit
Advancing from Twilight starts the other player's Dawn on the next turn.

Each phase's entry work runs when the phase is entered. Phase hooks are just
subscribers to PHASE_CHANGED.
"""

from typing import Callable, Optional, TYPE_CHECKING
import logging

from .errors import (
    DeckExhaustedError, IllegalPhaseActionError, InvalidTargetError, MatchOverError
)
from .queries import get_opponent, get_permanents
from .types import (
    GameState, CombatState, CombatStep, Event, EventType, Phase, ZoneType,
    PHASE_ORDER
)

if TYPE_CHECKING:
    from .game import Game


logger = logging.getLogger(__name__)

# (state, player_id, count) -> instance IDs from that player's hand to discard
DiscardPolicy = Callable[[GameState, str, int], list[int]]


def discard_newest(state: GameState, player_id: str, count: int) -> list[int]:
    """Default hand-limit policy: drop the most recently added cards."""
    hand = state.players[player_id].hand
    return list(hand[len(hand) - count:]) if count > 0 else []


class TurnManager:
    """
    Drives the phase cycle for the active player.
    """

    def __init__(self, state: GameState):
        self.state = state
        self.game: Optional['Game'] = None
        self.discard_policy: DiscardPolicy = discard_newest

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def turn_number(self) -> int:
        return self.state.turn_number

    @property
    def active_player(self) -> Optional[str]:
        return self.state.active_player

    def start_game(self, first_player_id: str) -> None:
        """Enter Dawn of turn 1 for first_player_id."""
        if self.state.turn_number != 0:
            raise IllegalPhaseActionError("The match has already started")
        if first_player_id not in self.state.players:
            raise KeyError(f"Unknown player {first_player_id}")

        self.state.first_player = first_player_id
        self.state.active_player = first_player_id
        self.state.turn_number = 1
        logger.info("Match starts, %s goes first", first_player_id)
        self._enter(Phase.DAWN)

    def advance(self) -> Phase:
        """
        Leave the current phase and enter the next one.

        Returns:
            The phase entered (may be DRAW with the match over after a deck-out)

        Raises:
            MatchOverError: the match has ended
            IllegalPhaseActionError: a play is pending or combat is unresolved
            InvalidTargetError: the discard policy chose badly
        """
        state = self.state
        if state.is_over:
            raise MatchOverError("The match is over")
        if state.turn_number == 0:
            raise IllegalPhaseActionError("The match has not started")
        if state.pending_play is not None:
            raise IllegalPhaseActionError("Finish or cancel the pending play first")
        if state.phase == Phase.CLASH and self._combat_unresolved():
            raise IllegalPhaseActionError("Resolve combat before leaving Clash")

        if state.phase == Phase.CLASH:
            # A bad discard choice is rejected before Twilight begins
            self.choose_discards(state.active_player)

        if state.phase == Phase.TWILIGHT:
            # Finish a Twilight whose discard was rejected; a no-op otherwise
            self._close_turn()
            state.turn_number += 1
            state.active_player = get_opponent(state, state.active_player).id
            self._enter(Phase.DAWN)
        else:
            if state.phase == Phase.CLASH:
                state.combat = CombatState()
            self._enter(PHASE_ORDER[PHASE_ORDER.index(state.phase) + 1])

        return state.phase

    def _combat_unresolved(self) -> bool:
        combat = self.state.combat
        if combat.step == CombatStep.DECLARING_BLOCKERS:
            return True
        return combat.step == CombatStep.SELECTING_ATTACKERS and bool(combat.attackers)

    # -------------------------------------------------------------------------
    # Phase entry
    # -------------------------------------------------------------------------

    def _enter(self, phase: Phase) -> None:
        self.state.phase = phase
        logger.debug("Turn %d: %s enters %s", self.state.turn_number, self.state.active_player, phase.name)

        handlers = {
            Phase.DAWN: self._run_dawn,
            Phase.DRAW: self._run_draw,
            Phase.MAIN: self._announce_phase,
            Phase.CLASH: self._run_clash,
            Phase.TWILIGHT: self._run_twilight,
        }
        handlers[phase]()

    def _announce_phase(self) -> None:
        self.game.pipeline.emit(Event(
            type=EventType.PHASE_CHANGED,
            payload={
                'phase': self.state.phase,
                'player': self.state.active_player,
                'turn': self.state.turn_number,
            },
            controller=self.state.active_player,
        ))

    def _run_dawn(self) -> None:
        """
        Dawn:
        1. Untap the active player's permanents, clear attack flags
        2. Grow and refill KL
        3. Reset turn-scoped flags
        4. Announce turn and phase (Dawn hooks run here)
        """
        player_id = self.state.active_player
        player = self.state.players[player_id]

        for obj in get_permanents(self.state, player_id):
            self.game.zones.untap(obj.instance_id)
            obj.attacked_this_turn = False

        self.game.resources.refill_at_dawn(player_id)

        player.has_drawn_this_turn = False
        player.domains_played_this_turn = 0
        player.passive_used_this_turn = False
        player.turns_taken += 1
        self.state.combat = CombatState()

        logger.info("Turn %d begins for %s", self.state.turn_number, player_id)
        self.game.pipeline.emit(Event(
            type=EventType.TURN_STARTED,
            payload={'player': player_id, 'turn': self.state.turn_number},
            controller=player_id,
        ))
        self._announce_phase()

    def _run_draw(self) -> None:
        """Mandatory draw. An empty deck loses the match on the spot."""
        self._announce_phase()
        player_id = self.state.active_player

        if self.state.turn_number == 1 and player_id == self.state.first_player:
            logger.debug("First player skips the turn 1 draw")
            return

        try:
            self.game.zones.draw_card(player_id)
        except DeckExhaustedError as exc:
            self.game.end_match(loser_id=exc.player_id, reason='deck_exhausted')

    def _run_clash(self) -> None:
        self.state.combat = CombatState(step=CombatStep.SELECTING_ATTACKERS)
        self._announce_phase()

    def _run_twilight(self) -> None:
        """End-of-turn hooks first, then the hand limit, then damage wears off."""
        self._announce_phase()
        if self.state.is_over:
            return

        self._close_turn()

    def _close_turn(self) -> None:
        self.enforce_hand_limit(self.state.active_player)
        for player_id in self.state.players:
            for obj in get_permanents(self.state, player_id):
                obj.damage = 0

    def choose_discards(self, player_id: str) -> list[int]:
        """
        Ask the discard policy which cards go over the hand limit and check
        the answer. Changes nothing.

        Raises:
            InvalidTargetError: wrong count, duplicates, or cards not in hand
        """
        hand = self.state.players[player_id].hand
        excess = len(hand) - self.game.config.hand_limit
        if excess <= 0:
            return []

        chosen = list(self.discard_policy(self.state, player_id, excess))
        if len(chosen) != excess or len(set(chosen)) != excess:
            raise InvalidTargetError(f"Discard policy must choose exactly {excess} distinct cards")
        missing = [iid for iid in chosen if iid not in hand]
        if missing:
            raise InvalidTargetError(f"Cards {missing} are not in player {player_id}'s hand")
        return chosen

    def enforce_hand_limit(self, player_id: str) -> list[int]:
        """Discard down to the hand limit using the discard policy."""
        chosen = self.choose_discards(player_id)
        if not chosen:
            return []

        logger.info("Player %s discards %d card(s) to the hand limit", player_id, len(chosen))
        for instance_id in chosen:
            self.game.zones.move_card(instance_id, ZoneType.HAND, ZoneType.CRYPT, reason='hand_limit')
        return chosen
