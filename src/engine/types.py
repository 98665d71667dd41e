"""
God Code Core Types

Cards are templates. Instances live in zones. Every change is an Event.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional


# =============================================================================
# Event Types
# =============================================================================

class EventType(Enum):
    # Card lifecycle
    ZONE_CHANGED = auto()
    CARD_DRAWN = auto()
    CARD_PLAYED = auto()
    CARD_DESTROYED = auto()

    # Combat
    ATTACK_DECLARED = auto()
    BLOCK_DECLARED = auto()
    DAMAGE_DEALT = auto()

    # Resources
    ESSENCE_CHANGED = auto()
    RESOURCE_CHANGED = auto()
    GOD_CODE_CHARGED = auto()

    # Turn structure
    TURN_STARTED = auto()
    PHASE_CHANGED = auto()

    # Meta
    GAME_END = auto()


@dataclass
class Event:
    type: EventType
    payload: dict = field(default_factory=dict)
    source: Optional[int] = None      # Instance ID that caused this
    controller: Optional[str] = None  # Player ID who controls source
    timestamp: int = 0


# =============================================================================
# Card Types
# =============================================================================

class CardType(Enum):
    AVATAR = auto()
    SPELL = auto()
    DOMAIN = auto()
    RELIC = auto()
    DEITY = auto()


class ZoneType(Enum):
    DECK = auto()
    HAND = auto()
    AVATAR_ROW = auto()
    DOMAIN_ROW = auto()
    RELIC_ROW = auto()
    CRYPT = auto()
    BANISHED = auto()
    DEITY = auto()
    STACK = auto()


# Zones whose cards are "in play" and get untapped at Dawn
PERMANENT_ZONES = (ZoneType.AVATAR_ROW, ZoneType.DOMAIN_ROW, ZoneType.RELIC_ROW)

# Where each playable card type lands when its play completes
PLAY_DESTINATIONS = {
    CardType.AVATAR: ZoneType.AVATAR_ROW,
    CardType.DOMAIN: ZoneType.DOMAIN_ROW,
    CardType.RELIC: ZoneType.RELIC_ROW,
    CardType.SPELL: ZoneType.CRYPT,
}


class Phase(Enum):
    DAWN = auto()
    DRAW = auto()
    MAIN = auto()
    CLASH = auto()
    TWILIGHT = auto()


PHASE_ORDER = [Phase.DAWN, Phase.DRAW, Phase.MAIN, Phase.CLASH, Phase.TWILIGHT]


class CombatStep(Enum):
    IDLE = auto()
    SELECTING_ATTACKERS = auto()
    DECLARING_BLOCKERS = auto()
    RESOLVING = auto()


# Keywords the engine itself enforces
GUARDIAN = "guardian"
HASTE = "haste"


# =============================================================================
# Cards
# =============================================================================

@dataclass(frozen=True)
class CardTemplate:
    """Immutable card definition shared by every instance printed from it."""
    id: str
    name: str
    card_type: CardType
    cost: int = 0
    power: int = 0
    guard: Optional[int] = None
    aspects: frozenset = frozenset()
    keywords: frozenset = frozenset()
    text: str = ""
    effects: tuple = ()

    # Deity only
    starting_essence: Optional[int] = None
    passive: Any = None
    god_code: Any = None

    def __post_init__(self):
        if self.cost < 0:
            raise ValueError(f"Card {self.id} has negative cost {self.cost}")
        # Normalize collections so equal templates hash equally
        object.__setattr__(self, 'aspects', frozenset(self.aspects))
        object.__setattr__(self, 'keywords', frozenset(k.lower() for k in self.keywords))
        object.__setattr__(self, 'effects', tuple(self.effects))

    @property
    def is_creature(self) -> bool:
        return self.card_type == CardType.AVATAR


@dataclass
class CardInstance:
    """A physical copy of a template with its runtime state."""
    instance_id: int
    template: CardTemplate
    owner: str
    zone: ZoneType
    tapped: bool = False
    face_down: bool = False
    damage: int = 0
    stat_modifiers: dict[str, int] = field(default_factory=dict)

    entered_turn: int = 0
    attacked_this_turn: bool = False

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def card_type(self) -> CardType:
        return self.template.card_type


# =============================================================================
# Resources
# =============================================================================

@dataclass
class ResourceLedger:
    """KL: spendable now, cap for this turn, and the overflow bank."""
    current: int = 0
    max: int = 0
    overflow: int = 0
    god_code_charges: int = 0


# =============================================================================
# Player
# =============================================================================

@dataclass
class Player:
    id: str
    name: str
    essence: int = 0
    resource: ResourceLedger = field(default_factory=ResourceLedger)
    deity_id: Optional[int] = None

    # Zone contents, as ordered instance IDs
    zones: dict[ZoneType, list[int]] = field(
        default_factory=lambda: {zone: [] for zone in ZoneType}
    )

    # Turn-scoped flags
    has_drawn_this_turn: bool = False
    domains_played_this_turn: int = 0
    passive_used_this_turn: bool = False
    turns_taken: int = 0

    def zone(self, zone_type: ZoneType) -> list[int]:
        return self.zones[zone_type]

    @property
    def deck(self) -> list[int]:
        return self.zones[ZoneType.DECK]

    @property
    def hand(self) -> list[int]:
        return self.zones[ZoneType.HAND]

    @property
    def crypt(self) -> list[int]:
        return self.zones[ZoneType.CRYPT]

    @property
    def avatar_row(self) -> list[int]:
        return self.zones[ZoneType.AVATAR_ROW]


# =============================================================================
# Combat
# =============================================================================

@dataclass
class AttackDeclaration:
    """An attacker and the target it was pointed at."""
    attacker_id: int
    target_id: int


@dataclass
class CombatState:
    step: CombatStep = CombatStep.IDLE
    attackers: list[AttackDeclaration] = field(default_factory=list)
    blockers: dict[int, int] = field(default_factory=dict)  # attacker_id -> blocker_id
    damage: dict[int, int] = field(default_factory=dict)    # instance_id -> damage this step

    def is_declared(self, attacker_id: int) -> bool:
        return any(a.attacker_id == attacker_id for a in self.attackers)

    def is_blocking(self, blocker_id: int) -> bool:
        return blocker_id in self.blockers.values()


# =============================================================================
# Pending selection
# =============================================================================

@dataclass
class PendingPlay:
    """A card play that has been paid for but not committed."""
    player_id: str
    instance_id: int
    paid: int
    hand_index: int


# =============================================================================
# Game State
# =============================================================================

@dataclass
class MatchOutcome:
    winner: Optional[str]
    loser: str
    reason: str  # 'essence' or 'deck_exhausted'


@dataclass
class GameState:
    """Complete game state. One per match, owned by whoever created it."""
    players: dict[str, Player] = field(default_factory=dict)
    instances: dict[int, CardInstance] = field(default_factory=dict)

    # Turn tracking
    active_player: Optional[str] = None
    first_player: Optional[str] = None
    turn_number: int = 0
    phase: Phase = Phase.DAWN

    combat: CombatState = field(default_factory=CombatState)
    pending_play: Optional[PendingPlay] = None
    outcome: Optional[MatchOutcome] = None

    next_instance_id: int = 1
    timestamp: int = 0

    def next_timestamp(self) -> int:
        self.timestamp += 1
        return self.timestamp

    def allocate_instance_id(self) -> int:
        instance_id = self.next_instance_id
        self.next_instance_id += 1
        return instance_id

    @property
    def is_over(self) -> bool:
        return self.outcome is not None
