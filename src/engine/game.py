"""
God Code Game Manager

High-level game operations. Integrates all game systems: zones, resources,
turns, card play, combat and the event bus.

The Game owns its GameState. Nothing here is global: two Game objects are
two independent matches.
"""

from dataclasses import dataclass, field
from typing import Optional, Iterable
import logging

from .config import RulesConfig
from .effects import DefaultEffectResolver, EffectResolver
from .errors import IllegalPhaseActionError, IllegalZoneTransitionError, MatchOverError
from .pipeline import EventPipeline, EventHandler
from .play import PlaySystem
from .queries import (
    get_opponent, get_legal_attackers, get_legal_attack_targets,
    get_legal_blockers, can_play_domain, get_effective_health, get_power,
    get_guard, is_lethal
)
from .resources import ResourceSystem
from .combat import CombatManager, CombatResult
from .turn import TurnManager, DiscardPolicy
from .types import (
    GameState, CardTemplate, CardInstance, CardType, Player, Event, EventType,
    MatchOutcome, PendingPlay, Phase, ZoneType, AttackDeclaration, CombatStep,
    PERMANENT_ZONES
)
from .zones import ZoneManager


logger = logging.getLogger(__name__)


class Game:
    """
    Main game controller.

    Integrates all subsystems:
    - Event Pipeline
    - Zone Manager
    - Resource System
    - Turn Manager
    - Play System
    - Combat Manager
    """

    def __init__(
        self,
        config: Optional[RulesConfig] = None,
        resolver: Optional[EffectResolver] = None,
        discard_policy: Optional[DiscardPolicy] = None,
        history_limit: Optional[int] = None
    ):
        self.config = config or RulesConfig.from_env()
        self.state = GameState()

        self.pipeline = EventPipeline(self.state, history_limit=history_limit)
        self.zones = ZoneManager(self.state)
        self.resources = ResourceSystem(self.state, self.config)
        self.turn_manager = TurnManager(self.state)
        self.play_system = PlaySystem(self.state)
        self.combat_manager = CombatManager(self.state)
        self.resolver = resolver or DefaultEffectResolver()

        if discard_policy is not None:
            self.turn_manager.discard_policy = discard_policy

        self._connect_subsystems()

    def _connect_subsystems(self):
        """Wire up dependencies between subsystems."""
        self.zones.pipeline = self.pipeline
        self.resources.pipeline = self.pipeline

        # These call back into the facade for cross-cutting operations
        self.turn_manager.game = self
        self.play_system.game = self
        self.combat_manager.game = self

    # =========================================================================
    # Setup
    # =========================================================================

    def add_player(
        self,
        name: str,
        deity: Optional[CardTemplate] = None,
        deck: Iterable[CardTemplate] = (),
        player_id: Optional[str] = None
    ) -> Player:
        """
        Seat a player with their deity and deck (first template on top).
        """
        if self.state.turn_number != 0:
            raise IllegalPhaseActionError("Players must be added before the match starts")
        if len(self.state.players) >= 2:
            raise ValueError("A match has exactly two players")
        if deity is not None and deity.card_type != CardType.DEITY:
            raise ValueError(f"{deity.name} is not a Deity")

        player_id = player_id or f"player{len(self.state.players) + 1}"
        if player_id in self.state.players:
            raise ValueError(f"Duplicate player id {player_id}")

        essence = self.config.default_starting_essence
        if deity is not None and deity.starting_essence is not None:
            essence = deity.starting_essence

        player = Player(id=player_id, name=name, essence=essence)
        self.state.players[player_id] = player

        if deity is not None:
            player.deity_id = self.zones.create_instance(deity, player_id, ZoneType.DEITY).instance_id
        for template in deck:
            self.zones.create_instance(template, player_id, ZoneType.DECK)

        logger.debug("Seated %s as %s with %d cards", name, player_id, len(player.deck))
        return player

    def start(self, first_player_id: Optional[str] = None) -> None:
        """Begin turn 1 at Dawn. Defaults to the first seated player."""
        if len(self.state.players) != 2:
            raise ValueError("A match needs two players to start")
        first_player_id = first_player_id or next(iter(self.state.players))
        self.turn_manager.start_game(first_player_id)

    def create_instance(
        self,
        template: CardTemplate,
        owner_id: str,
        zone: ZoneType = ZoneType.DECK
    ) -> CardInstance:
        """Put a new card straight into a zone (setup, tokens, tests)."""
        return self.zones.create_instance(template, owner_id, zone)

    # =========================================================================
    # Events
    # =========================================================================

    def subscribe(self, kind: Optional[EventType], handler: EventHandler) -> int:
        return self.pipeline.subscribe(kind, handler)

    def unsubscribe(self, token: int) -> bool:
        return self.pipeline.unsubscribe(token)

    def emit(self, event: Event) -> Event:
        return self.pipeline.emit(event)

    # =========================================================================
    # Turn structure
    # =========================================================================

    def advance(self) -> Phase:
        return self.turn_manager.advance()

    def advance_to(self, phase: Phase) -> Phase:
        """Advance until phase is entered (possibly on a later turn)."""
        self.advance()
        while self.state.phase != phase and not self.state.is_over:
            self.advance()
        return self.state.phase

    # =========================================================================
    # Main phase
    # =========================================================================

    def play_card(self, player_id: str, instance_id: int, target_id: Optional[int] = None) -> CardInstance:
        return self.play_system.play_card(player_id, instance_id, target_id)

    def begin_play(self, player_id: str, instance_id: int) -> PendingPlay:
        return self.play_system.begin_play(player_id, instance_id)

    def commit_play(self, target_id: Optional[int] = None) -> CardInstance:
        return self.play_system.commit_play(target_id)

    def cancel_play(self) -> None:
        self.play_system.cancel_play()

    def use_passive(self, player_id: str, target_id: Optional[int] = None) -> None:
        self.play_system.use_passive(player_id, target_id)

    def activate_god_code(self, player_id: str, target_id: Optional[int] = None) -> None:
        self.play_system.activate_god_code(player_id, target_id)

    # =========================================================================
    # Combat
    # =========================================================================

    def declare_attacker(self, player_id: str, attacker_id: int, target_id: int) -> AttackDeclaration:
        return self.combat_manager.declare_attacker(player_id, attacker_id, target_id)

    def withdraw_attacker(self, player_id: str, attacker_id: int) -> None:
        self.combat_manager.withdraw_attacker(player_id, attacker_id)

    def close_attacks(self, player_id: str) -> CombatStep:
        return self.combat_manager.close_attacks(player_id)

    def declare_blocker(self, player_id: str, attacker_id: int, blocker_id: int) -> None:
        self.combat_manager.declare_blocker(player_id, attacker_id, blocker_id)

    def resolve_combat(self) -> CombatResult:
        return self.combat_manager.resolve()

    # =========================================================================
    # Card operations
    # =========================================================================

    def move_card(
        self,
        instance_id: int,
        from_zone: ZoneType,
        to_zone: ZoneType,
        index: Optional[int] = None,
        reason: str = ""
    ) -> CardInstance:
        self._check_not_over()
        return self.zones.move_card(instance_id, from_zone, to_zone, index=index, reason=reason)

    def tap(self, instance_id: int) -> None:
        self._check_not_over()
        self.zones.tap(instance_id)

    def untap(self, instance_id: int) -> None:
        self._check_not_over()
        self.zones.untap(instance_id)

    def banish(self, instance_id: int) -> CardInstance:
        self._check_not_over()
        return self.zones.banish(instance_id)

    def draw_cards(self, player_id: str, count: int = 1) -> list[CardInstance]:
        """Effect draws. An empty deck just stops the draw."""
        drawn = []
        deck = self.state.players[player_id].deck
        for _ in range(count):
            if not deck:
                logger.debug("Player %s has no cards left to draw", player_id)
                break
            drawn.append(self.zones.draw_card(player_id))
        return drawn

    def destroy(self, instance_id: int, reason: str = 'destroyed') -> CardInstance:
        """Send a permanent to its owner's crypt."""
        obj = self.zones.get(instance_id)
        if obj.zone not in PERMANENT_ZONES:
            raise IllegalZoneTransitionError(f"{obj.name} ({instance_id}) is not in play")

        from_zone = obj.zone
        self.zones.move_card(instance_id, from_zone, ZoneType.CRYPT, reason=reason)
        logger.debug("%s (%s) destroyed", obj.name, instance_id)
        self.pipeline.emit(Event(
            type=EventType.CARD_DESTROYED,
            payload={'instance_id': instance_id, 'from_zone': from_zone, 'reason': reason},
            source=instance_id,
            controller=obj.owner,
        ))
        return obj

    def damage_avatar(self, instance_id: int, amount: int, source_id: Optional[int] = None) -> None:
        """Non-combat damage to a permanent; destroys it once damage meets guard."""
        if amount <= 0:
            return
        obj = self.zones.get(instance_id)
        if obj.zone not in PERMANENT_ZONES:
            raise IllegalZoneTransitionError(f"{obj.name} ({instance_id}) is not in play")

        obj.damage += amount
        self.pipeline.emit(Event(
            type=EventType.DAMAGE_DEALT,
            payload={'source': source_id, 'target': instance_id, 'amount': amount, 'is_combat': False},
            source=source_id,
        ))
        if obj.zone in PERMANENT_ZONES and is_lethal(obj, self.config):
            self.destroy(instance_id, reason='damage')

    # =========================================================================
    # Essence and match end
    # =========================================================================

    def change_essence(
        self,
        player_id: str,
        delta: int,
        source_id: Optional[int] = None,
        winner_id: Optional[str] = None
    ) -> int:
        """
        Add delta to a player's essence, floored at 0. Reaching 0 ends the match.

        Returns:
            The change actually applied
        """
        player = self.state.players[player_id]
        old = player.essence
        player.essence = max(0, old + delta)
        applied = player.essence - old
        if applied == 0:
            return 0

        self.pipeline.emit(Event(
            type=EventType.ESSENCE_CHANGED,
            payload={'player': player_id, 'old': old, 'new': player.essence, 'amount': applied},
            source=source_id,
            controller=player_id,
        ))

        if player.essence == 0 and not self.state.is_over:
            self.end_match(loser_id=player_id, reason='essence', winner_id=winner_id)
        return applied

    def end_match(self, loser_id: str, reason: str, winner_id: Optional[str] = None) -> MatchOutcome:
        """Record the outcome and announce GAME_END. Later calls are no-ops."""
        if self.state.outcome is not None:
            return self.state.outcome

        winner_id = winner_id or get_opponent(self.state, loser_id).id
        self.state.outcome = MatchOutcome(winner=winner_id, loser=loser_id, reason=reason)
        logger.info("Match over: %s wins (%s, %s)", winner_id, loser_id, reason)

        self.pipeline.emit(Event(
            type=EventType.GAME_END,
            payload={'winner': winner_id, 'loser': loser_id, 'reason': reason},
        ))
        return self.state.outcome

    def is_game_over(self) -> bool:
        return self.state.is_over

    def get_winner(self) -> Optional[str]:
        return self.state.outcome.winner if self.state.outcome else None

    def _check_not_over(self) -> None:
        if self.state.is_over:
            raise MatchOverError("The match is over")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_player(self, player_id: str) -> Player:
        return self.state.players[player_id]

    def get_opponent(self, player_id: str) -> Player:
        return get_opponent(self.state, player_id)

    def get_instance(self, instance_id: int) -> CardInstance:
        return self.zones.get(instance_id)

    def get_legal_attackers(self, player_id: str) -> list[int]:
        return get_legal_attackers(self.state, player_id)

    def get_legal_attack_targets(self, attacker_id: int) -> list[int]:
        return get_legal_attack_targets(self.state, attacker_id)

    def get_legal_blockers(self, player_id: str) -> list[int]:
        return get_legal_blockers(self.state, player_id)

    def can_play_domain(self, player_id: str) -> bool:
        return can_play_domain(self.state, player_id, self.config)

    def get_effective_health(self, instance_id: int) -> int:
        return get_effective_health(self.zones.get(instance_id), self.config)

    def get_power(self, instance_id: int) -> int:
        return get_power(self.zones.get(instance_id))

    def get_guard(self, instance_id: int) -> int:
        return get_guard(self.zones.get(instance_id), self.config)

    def snapshot(self):
        from .snapshot import snapshot
        return snapshot(self.state)


# =============================================================================
# Match setup
# =============================================================================

@dataclass
class PlayerSetup:
    name: str
    deity: Optional[CardTemplate] = None
    deck: list[CardTemplate] = field(default_factory=list)
    player_id: Optional[str] = None


def create_game(
    first: PlayerSetup,
    second: PlayerSetup,
    config: Optional[RulesConfig] = None,
    resolver: Optional[EffectResolver] = None,
    discard_policy: Optional[DiscardPolicy] = None,
    start: bool = True
) -> Game:
    """Seat two players and (by default) start with `first` going first."""
    game = Game(config=config, resolver=resolver, discard_policy=discard_policy)
    p1 = game.add_player(first.name, first.deity, first.deck, first.player_id)
    game.add_player(second.name, second.deity, second.deck, second.player_id)
    if start:
        game.start(p1.id)
    return game


# =============================================================================
# Card template helpers
# =============================================================================

def _template_id(name: str) -> str:
    return name.lower().replace(' ', '_')


def make_avatar(
    name: str,
    power: int,
    guard: Optional[int] = None,
    cost: int = 0,
    keywords: Iterable[str] = (),
    aspects: Iterable[str] = (),
    effects: Iterable = (),
    text: str = "",
    card_id: Optional[str] = None
) -> CardTemplate:
    """Helper to create Avatar templates."""
    return CardTemplate(
        id=card_id or _template_id(name),
        name=name,
        card_type=CardType.AVATAR,
        cost=cost,
        power=power,
        guard=guard,
        keywords=frozenset(keywords),
        aspects=frozenset(aspects),
        effects=tuple(effects),
        text=text,
    )


def make_spell(
    name: str,
    effects: Iterable = (),
    cost: int = 0,
    aspects: Iterable[str] = (),
    text: str = "",
    card_id: Optional[str] = None
) -> CardTemplate:
    return CardTemplate(
        id=card_id or _template_id(name),
        name=name,
        card_type=CardType.SPELL,
        cost=cost,
        aspects=frozenset(aspects),
        effects=tuple(effects),
        text=text,
    )


def make_domain(
    name: str,
    cost: int = 0,
    effects: Iterable = (),
    keywords: Iterable[str] = (),
    text: str = "",
    card_id: Optional[str] = None
) -> CardTemplate:
    return CardTemplate(
        id=card_id or _template_id(name),
        name=name,
        card_type=CardType.DOMAIN,
        cost=cost,
        effects=tuple(effects),
        keywords=frozenset(keywords),
        text=text,
    )


def make_relic(
    name: str,
    cost: int = 0,
    effects: Iterable = (),
    keywords: Iterable[str] = (),
    guard: Optional[int] = None,
    text: str = "",
    card_id: Optional[str] = None
) -> CardTemplate:
    return CardTemplate(
        id=card_id or _template_id(name),
        name=name,
        card_type=CardType.RELIC,
        cost=cost,
        guard=guard,
        effects=tuple(effects),
        keywords=frozenset(keywords),
        text=text,
    )


def make_deity(
    name: str,
    starting_essence: Optional[int] = None,
    passive=None,
    god_code=None,
    aspects: Iterable[str] = (),
    text: str = "",
    card_id: Optional[str] = None
) -> CardTemplate:
    """Helper to create Deity templates: essence pool, passive, God Code."""
    return CardTemplate(
        id=card_id or _template_id(name),
        name=name,
        card_type=CardType.DEITY,
        aspects=frozenset(aspects),
        starting_essence=starting_essence,
        passive=passive,
        god_code=god_code,
        text=text,
    )
