"""
God Code Card Play

Main-phase actions of the active player:
- Playing a card from hand (cost, destination, once-per-turn Domain)
- Two-step plays (begin -> commit / cancel) for UIs that pick targets
- Deity passive (once per turn) and God Code ultimate

Every action validates all of its preconditions before it spends KL or moves
a card, so a rejected action changes nothing.
"""

from typing import Optional, TYPE_CHECKING
import logging

from .effects import EffectContext, check_avatar_target, effect_kinds, needs_target
from .errors import (
    IllegalPhaseActionError, IllegalZoneTransitionError, MatchOverError,
    TurnLimitExceededError, GodCodeUnavailableError
)
from .types import (
    GameState, CardInstance, CardType, Event, EventType, Phase, PendingPlay,
    ZoneType, PLAY_DESTINATIONS
)

if TYPE_CHECKING:
    from .game import Game


logger = logging.getLogger(__name__)


class PlaySystem:
    """Validates and carries out card plays and deity abilities."""

    def __init__(self, state: GameState):
        self.state = state
        self.game: Optional['Game'] = None

    # -------------------------------------------------------------------------
    # One-step play
    # -------------------------------------------------------------------------

    def play_card(self, player_id: str, instance_id: int, target_id: Optional[int] = None) -> CardInstance:
        """
        Play a card from hand: pay, place, resolve its effects.

        Args:
            player_id: Active player
            instance_id: Card in that player's hand
            target_id: Avatar chosen for effects that need one

        Raises:
            RulesViolation subclasses; nothing is changed when raised.
        """
        obj = self._check_playable(player_id, instance_id)
        if needs_target(obj.template.effects):
            check_avatar_target(self.game, target_id)

        self.game.resources.spend(player_id, obj.template.cost)
        return self._complete(player_id, obj, ZoneType.HAND, target_id)

    # -------------------------------------------------------------------------
    # Two-step play
    # -------------------------------------------------------------------------

    def begin_play(self, player_id: str, instance_id: int) -> PendingPlay:
        """Pay for a card and lift it onto the stack until a target is picked."""
        obj = self._check_playable(player_id, instance_id)
        hand_index = self.state.players[player_id].hand.index(instance_id)

        self.game.resources.spend(player_id, obj.template.cost)
        self.game.zones.move_card(instance_id, ZoneType.HAND, ZoneType.STACK, reason='begin_play')

        pending = PendingPlay(
            player_id=player_id,
            instance_id=instance_id,
            paid=obj.template.cost,
            hand_index=hand_index,
        )
        self.state.pending_play = pending
        return pending

    def commit_play(self, target_id: Optional[int] = None) -> CardInstance:
        """Finish the pending play. A bad target leaves it pending."""
        pending = self._require_pending()
        obj = self.state.instances[pending.instance_id]
        if needs_target(obj.template.effects):
            check_avatar_target(self.game, target_id)

        self.state.pending_play = None
        return self._complete(pending.player_id, obj, ZoneType.STACK, target_id)

    def cancel_play(self) -> None:
        """Undo the pending play: card back to its hand slot, KL refunded."""
        pending = self._require_pending()
        self.state.pending_play = None
        self.game.zones.move_card(
            pending.instance_id, ZoneType.STACK, ZoneType.HAND,
            index=pending.hand_index, reason='cancel_play'
        )
        self.game.resources.refund(pending.player_id, pending.paid)
        logger.debug("Player %s cancelled play of %s", pending.player_id, pending.instance_id)

    # -------------------------------------------------------------------------
    # Deity
    # -------------------------------------------------------------------------

    def use_passive(self, player_id: str, target_id: Optional[int] = None) -> None:
        """Fire the deity's passive. Once per turn."""
        self._check_main_phase(player_id)
        player = self.state.players[player_id]
        deity = self._deity(player_id)
        if deity.template.passive is None:
            raise IllegalPhaseActionError(f"{deity.name} has no passive ability")
        if player.passive_used_this_turn:
            raise TurnLimitExceededError(f"{deity.name}'s passive was already used this turn")
        self._check_resolvable([deity.template.passive])
        if deity.template.passive.needs_target:
            check_avatar_target(self.game, target_id)

        player.passive_used_this_turn = True
        self._resolve([deity.template.passive], player_id, deity.instance_id, target_id)

    def activate_god_code(self, player_id: str, target_id: Optional[int] = None) -> None:
        """Spend one God Code charge on the deity's ultimate."""
        self._check_main_phase(player_id)
        deity = self._deity(player_id)
        if deity.template.god_code is None:
            raise GodCodeUnavailableError(f"{deity.name} has no God Code")
        self.game.resources.check_god_code(player_id)
        self._check_resolvable([deity.template.god_code])
        if deity.template.god_code.needs_target:
            check_avatar_target(self.game, target_id)

        self.game.resources.spend_god_code_charge(player_id)
        logger.info("Player %s activates God Code of %s", player_id, deity.name)
        self._resolve([deity.template.god_code], player_id, deity.instance_id, target_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_main_phase(self, player_id: str) -> None:
        if self.state.is_over:
            raise MatchOverError("The match is over")
        if self.state.phase != Phase.MAIN:
            raise IllegalPhaseActionError(f"Cannot act during {self.state.phase.name}")
        if self.state.active_player != player_id:
            raise IllegalPhaseActionError(f"It is not player {player_id}'s turn")
        if self.state.pending_play is not None:
            raise IllegalPhaseActionError("Another play is still pending")

    def _check_playable(self, player_id: str, instance_id: int) -> CardInstance:
        self._check_main_phase(player_id)

        obj = self.game.zones.check_in_zone(instance_id, ZoneType.HAND)
        if obj.owner != player_id:
            raise IllegalZoneTransitionError(f"{obj.name} is not in player {player_id}'s hand")
        if obj.card_type not in PLAY_DESTINATIONS:
            raise IllegalZoneTransitionError(f"{obj.card_type.name} cards cannot be played from hand")

        player = self.state.players[player_id]
        if (obj.card_type == CardType.DOMAIN
                and player.domains_played_this_turn >= self.game.config.domains_per_turn):
            raise TurnLimitExceededError("Only one Domain may be played each turn")

        self._check_resolvable(obj.template.effects)
        self.game.resources.check_payable(player_id, obj.template.cost)
        return obj

    def _check_resolvable(self, effects) -> None:
        resolver = self.game.resolver
        if resolver is None:
            return
        unknown = [kind for kind in effect_kinds(effects) if not resolver.handles(kind)]
        if unknown:
            raise ValueError(f"No handler registered for effect kinds {unknown}")

    def _require_pending(self) -> PendingPlay:
        if self.state.is_over:
            raise MatchOverError("The match is over")
        if self.state.pending_play is None:
            raise IllegalPhaseActionError("No play is pending")
        return self.state.pending_play

    def _deity(self, player_id: str) -> CardInstance:
        deity_id = self.state.players[player_id].deity_id
        if deity_id is None:
            raise IllegalPhaseActionError(f"Player {player_id} has no deity")
        return self.state.instances[deity_id]

    def _complete(
        self,
        player_id: str,
        obj: CardInstance,
        from_zone: ZoneType,
        target_id: Optional[int]
    ) -> CardInstance:
        """Place a paid-for card and resolve its effects."""
        zones = self.game.zones
        player = self.state.players[player_id]
        card_type = obj.card_type

        if card_type == CardType.SPELL:
            if from_zone != ZoneType.STACK:
                zones.move_card(obj.instance_id, from_zone, ZoneType.STACK, reason='play')
            self._announce(player_id, obj, target_id)
            try:
                self._resolve(obj.template.effects, player_id, obj.instance_id, target_id)
            finally:
                # Effects may already have moved it
                if obj.zone == ZoneType.STACK:
                    zones.move_card(obj.instance_id, ZoneType.STACK, ZoneType.CRYPT, reason='resolved')
            return obj

        if card_type == CardType.DOMAIN:
            player.domains_played_this_turn += 1
            for old_id in list(player.zone(ZoneType.DOMAIN_ROW)):
                zones.move_card(old_id, ZoneType.DOMAIN_ROW, ZoneType.CRYPT, reason='replaced')

        zones.move_card(obj.instance_id, from_zone, PLAY_DESTINATIONS[card_type], reason='play')
        self._announce(player_id, obj, target_id)
        self._resolve(obj.template.effects, player_id, obj.instance_id, target_id)
        return obj

    def _announce(self, player_id: str, obj: CardInstance, target_id: Optional[int]) -> None:
        logger.debug("Player %s plays %s", player_id, obj.name)
        self.game.pipeline.emit(Event(
            type=EventType.CARD_PLAYED,
            payload={
                'player': player_id,
                'instance_id': obj.instance_id,
                'card_type': obj.card_type,
                'target': target_id,
            },
            source=obj.instance_id,
            controller=player_id,
        ))

    def _resolve(self, effects, player_id: str, source_id: int, target_id: Optional[int]) -> None:
        if not effects or self.game.resolver is None:
            return
        ctx = EffectContext(game=self.game, controller=player_id, source_id=source_id, target_id=target_id)
        self.game.resolver.resolve_all(effects, ctx)
