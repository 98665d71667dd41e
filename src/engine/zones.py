"""
God Code Zone Manager

Card instances and the zones they move through.

A move is the only way an instance changes zone. It checks the source,
removes, appends, updates the instance, and only then emits ZONE_CHANGED,
so subscribers never see a card in two zones or in none.
"""

from typing import Optional, TYPE_CHECKING
import logging

from .errors import IllegalZoneTransitionError, DeckExhaustedError
from .types import (
    GameState, CardTemplate, CardInstance, Event, EventType, ZoneType,
    PERMANENT_ZONES
)

if TYPE_CHECKING:
    from .pipeline import EventPipeline


logger = logging.getLogger(__name__)


class ZoneManager:
    """Creates instances and moves them between a player's zones."""

    def __init__(self, state: GameState):
        self.state = state
        self.pipeline: Optional['EventPipeline'] = None

    def create_instance(
        self,
        template: CardTemplate,
        owner_id: str,
        zone: ZoneType = ZoneType.DECK
    ) -> CardInstance:
        """Print a fresh instance of template straight into owner's zone."""
        if owner_id not in self.state.players:
            raise KeyError(f"Unknown player {owner_id}")

        obj = CardInstance(
            instance_id=self.state.allocate_instance_id(),
            template=template,
            owner=owner_id,
            zone=zone,
        )
        if zone in PERMANENT_ZONES:
            obj.entered_turn = self.state.turn_number

        self.state.instances[obj.instance_id] = obj
        self.state.players[owner_id].zones[zone].append(obj.instance_id)
        return obj

    def get(self, instance_id: int) -> CardInstance:
        obj = self.state.instances.get(instance_id)
        if obj is None:
            raise IllegalZoneTransitionError(f"Unknown card instance {instance_id}")
        return obj

    def check_in_zone(self, instance_id: int, zone: ZoneType) -> CardInstance:
        """Return the instance if it currently sits in zone, else raise."""
        obj = self.get(instance_id)
        owner = self.state.players[obj.owner]
        if obj.zone != zone or instance_id not in owner.zones[zone]:
            raise IllegalZoneTransitionError(
                f"{obj.name} ({instance_id}) is in {obj.zone.name}, not {zone.name}"
            )
        return obj

    def move_card(
        self,
        instance_id: int,
        from_zone: ZoneType,
        to_zone: ZoneType,
        index: Optional[int] = None,
        reason: str = ""
    ) -> CardInstance:
        """
        Move an instance between two of its owner's zones.

        Args:
            instance_id: Card to move
            from_zone: Zone the caller believes the card is in
            to_zone: Destination zone
            index: Insert position in the destination (default: append)
            reason: Free-form tag carried on the ZONE_CHANGED event

        Raises:
            IllegalZoneTransitionError: card is not in from_zone
        """
        obj = self.check_in_zone(instance_id, from_zone)
        owner = self.state.players[obj.owner]

        owner.zones[from_zone].remove(instance_id)
        destination = owner.zones[to_zone]
        if index is None:
            destination.append(instance_id)
        else:
            destination.insert(index, instance_id)
        obj.zone = to_zone

        if to_zone in PERMANENT_ZONES and from_zone not in PERMANENT_ZONES:
            obj.entered_turn = self.state.turn_number
        if to_zone not in PERMANENT_ZONES:
            # Leaving play wipes runtime state
            obj.tapped = False
            obj.damage = 0
            obj.attacked_this_turn = False

        logger.debug("%s (%s) %s -> %s", obj.name, instance_id, from_zone.name, to_zone.name)
        self._emit(Event(
            type=EventType.ZONE_CHANGED,
            payload={
                'instance_id': instance_id,
                'player': owner.id,
                'from_zone': from_zone,
                'to_zone': to_zone,
                'reason': reason,
            },
            source=instance_id,
            controller=owner.id,
        ))
        return obj

    def tap(self, instance_id: int) -> None:
        self.get(instance_id).tapped = True

    def untap(self, instance_id: int) -> None:
        self.get(instance_id).tapped = False

    def draw_card(self, player_id: str) -> CardInstance:
        """
        Move the top card of player's deck to their hand.

        Raises:
            DeckExhaustedError: deck is empty
        """
        player = self.state.players[player_id]
        if not player.deck:
            raise DeckExhaustedError(player_id)

        obj = self.move_card(player.deck[0], ZoneType.DECK, ZoneType.HAND, reason='draw')
        player.has_drawn_this_turn = True
        self._emit(Event(
            type=EventType.CARD_DRAWN,
            payload={'player': player_id, 'instance_id': obj.instance_id},
            source=obj.instance_id,
            controller=player_id,
        ))
        return obj

    def send_to_crypt(self, instance_id: int, reason: str = "") -> CardInstance:
        """Move a card from hand or any row to its owner's crypt."""
        obj = self.get(instance_id)
        if obj.zone not in PERMANENT_ZONES + (ZoneType.HAND, ZoneType.STACK):
            raise IllegalZoneTransitionError(
                f"{obj.name} ({instance_id}) cannot go to the crypt from {obj.zone.name}"
            )
        return self.move_card(instance_id, obj.zone, ZoneType.CRYPT, reason=reason)

    def banish(self, instance_id: int) -> CardInstance:
        """Exile a card from hand, crypt or any row. Banished is terminal."""
        obj = self.get(instance_id)
        if obj.zone not in PERMANENT_ZONES + (ZoneType.HAND, ZoneType.CRYPT):
            raise IllegalZoneTransitionError(
                f"{obj.name} ({instance_id}) cannot be banished from {obj.zone.name}"
            )
        return self.move_card(instance_id, obj.zone, ZoneType.BANISHED, reason='banish')

    def _emit(self, event: Event) -> None:
        if self.pipeline:
            self.pipeline.emit(event)
