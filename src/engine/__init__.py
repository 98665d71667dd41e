"""
God Code Engine

Cards are templates. Instances live in zones. Every change is an Event.

Core systems:
- Event Pipeline: Synchronous, ordered, re-entrant event bus
- Zone Manager: Card instances and zone transitions
- Resource System: KL, overflow and God Code charges
- Turn Manager: Dawn / Draw / Main / Clash / Twilight
- Play System: Card plays, pending plays, deity abilities
- Combat Manager: Attack/block/damage with Guardian enforcement
"""

from .types import (
    # Events
    Event, EventType,

    # Cards
    CardType, ZoneType, CardTemplate, CardInstance,
    PERMANENT_ZONES, PLAY_DESTINATIONS, GUARDIAN, HASTE,

    # Turn structure
    Phase, PHASE_ORDER, CombatStep,

    # State
    ResourceLedger, Player, AttackDeclaration, CombatState, PendingPlay,
    MatchOutcome, GameState,
)

from .errors import (
    RulesViolation,
    InsufficientResourceError, IllegalZoneTransitionError,
    PriorityViolationError, SummoningSicknessError, AlreadyActedError,
    TurnLimitExceededError, IllegalPhaseActionError, InvalidTargetError,
    GodCodeUnavailableError, MatchOverError, DeckExhaustedError,
)

from .config import RulesConfig

from .pipeline import EventPipeline, EventHandler

from .queries import (
    get_power, get_guard, get_effective_health, is_destructible, is_lethal, has_keyword,
    get_opponent, get_controller, get_permanents, get_guardians,
    is_summoning_sick, can_attack, get_legal_attackers,
    get_legal_attack_targets, get_legal_blockers, can_play_domain,
)

from .effects import (
    Effect, EffectTarget, DealDamage, GainEssence, DrawCards, GainResource,
    DestroyAvatar, Composite, EffectContext, EffectResolver,
    DefaultEffectResolver,
)

from .zones import ZoneManager
from .resources import ResourceSystem
from .turn import TurnManager, DiscardPolicy, discard_newest
from .play import PlaySystem
from .combat import CombatManager, CombatResult, DamageAssignment

from .game import (
    Game, PlayerSetup, create_game,
    make_avatar, make_spell, make_domain, make_relic, make_deity,
)

from .snapshot import (
    GameSnapshot, PlayerSnapshot, CardSnapshot, CombatSnapshot, snapshot,
)


__all__ = [
    # Types
    'Event', 'EventType', 'CardType', 'ZoneType', 'CardTemplate',
    'CardInstance', 'PERMANENT_ZONES', 'PLAY_DESTINATIONS', 'GUARDIAN',
    'HASTE', 'Phase', 'PHASE_ORDER', 'CombatStep', 'ResourceLedger', 'Player',
    'AttackDeclaration', 'CombatState', 'PendingPlay', 'MatchOutcome',
    'GameState',

    # Errors
    'RulesViolation', 'InsufficientResourceError',
    'IllegalZoneTransitionError', 'PriorityViolationError',
    'SummoningSicknessError', 'AlreadyActedError', 'TurnLimitExceededError',
    'IllegalPhaseActionError', 'InvalidTargetError',
    'GodCodeUnavailableError', 'MatchOverError', 'DeckExhaustedError',

    # Config
    'RulesConfig',

    # Pipeline
    'EventPipeline', 'EventHandler',

    # Queries
    'get_power', 'get_guard', 'get_effective_health', 'is_destructible', 'is_lethal',
    'has_keyword', 'get_opponent', 'get_controller', 'get_permanents',
    'get_guardians', 'is_summoning_sick', 'can_attack',
    'get_legal_attackers', 'get_legal_attack_targets', 'get_legal_blockers',
    'can_play_domain',

    # Effects
    'Effect', 'EffectTarget', 'DealDamage', 'GainEssence', 'DrawCards',
    'GainResource', 'DestroyAvatar', 'Composite', 'EffectContext',
    'EffectResolver', 'DefaultEffectResolver',

    # Subsystems
    'ZoneManager', 'ResourceSystem', 'TurnManager', 'DiscardPolicy',
    'discard_newest', 'PlaySystem', 'CombatManager', 'CombatResult',
    'DamageAssignment',

    # Game
    'Game', 'PlayerSetup', 'create_game',
    'make_avatar', 'make_spell', 'make_domain', 'make_relic', 'make_deity',

    # Snapshot
    'GameSnapshot', 'PlayerSnapshot', 'CardSnapshot', 'CombatSnapshot',
    'snapshot',
]
