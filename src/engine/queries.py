"""
God Code Query System

Read-only questions about the state: effective stats and action legality.
Callers (UI, AI, effect resolvers) use these instead of re-deriving rules.
Nothing in this module mutates state.
"""

from typing import Optional

from .config import RulesConfig
from .types import (
    GameState, CardInstance, Player, CardType, ZoneType, Phase, CombatStep,
    PERMANENT_ZONES, GUARDIAN, HASTE
)


def get_power(obj: CardInstance) -> int:
    """Power with instance-level modifiers applied, never below 0."""
    return max(0, obj.template.power + obj.stat_modifiers.get('power', 0))


def get_guard(obj: CardInstance, config: Optional[RulesConfig] = None) -> int:
    """Guard with instance-level modifiers applied. Creatures default to 1."""
    base = obj.template.guard
    if base is None:
        base = (config or RulesConfig()).default_guard if obj.template.is_creature else 0
    return base + obj.stat_modifiers.get('guard', 0)


def get_effective_health(obj: CardInstance, config: Optional[RulesConfig] = None) -> int:
    """Damage the card can still take before it is destroyed."""
    return max(0, get_guard(obj, config) - obj.damage)


def is_destructible(obj: CardInstance) -> bool:
    """Damage can destroy it. Non-creatures only if they print a guard."""
    return obj.template.is_creature or obj.template.guard is not None


def is_lethal(obj: CardInstance, config: Optional[RulesConfig] = None) -> bool:
    """Damage has met guard."""
    if not is_destructible(obj):
        return False
    return obj.damage >= get_guard(obj, config)


def has_keyword(obj: CardInstance, keyword: str) -> bool:
    return keyword.lower() in obj.template.keywords


def get_opponent(state: GameState, player_id: str) -> Player:
    """The other player of a two-player match."""
    for pid, player in state.players.items():
        if pid != player_id:
            return player
    raise KeyError(f"No opponent for player {player_id}")


def get_controller(state: GameState, instance_id: int) -> Optional[Player]:
    """The player whose zones currently hold the instance."""
    obj = state.instances.get(instance_id)
    if obj is None:
        return None
    for player in state.players.values():
        if instance_id in player.zones[obj.zone]:
            return player
    return None


def get_permanents(state: GameState, player_id: str) -> list[CardInstance]:
    player = state.players[player_id]
    return [
        state.instances[iid]
        for zone in PERMANENT_ZONES
        for iid in player.zones[zone]
    ]


def get_guardians(state: GameState, player_id: str) -> list[int]:
    """Permanents of player_id carrying Guardian, in board order."""
    return [
        obj.instance_id for obj in get_permanents(state, player_id)
        if has_keyword(obj, GUARDIAN)
    ]


def is_summoning_sick(state: GameState, obj: CardInstance) -> bool:
    return obj.entered_turn == state.turn_number and not has_keyword(obj, HASTE)


def can_attack(state: GameState, obj: CardInstance) -> bool:
    """Attacker eligibility, ignoring phase and target."""
    if obj.zone != ZoneType.AVATAR_ROW or obj.card_type != CardType.AVATAR:
        return False
    if obj.tapped or obj.attacked_this_turn:
        return False
    if state.combat.is_declared(obj.instance_id):
        return False
    return not is_summoning_sick(state, obj)


def get_legal_attackers(state: GameState, player_id: str) -> list[int]:
    """Avatars player_id may declare right now."""
    if (state.is_over or state.phase != Phase.CLASH
            or state.active_player != player_id
            or state.combat.step != CombatStep.SELECTING_ATTACKERS):
        return []
    player = state.players[player_id]
    return [iid for iid in player.avatar_row if can_attack(state, state.instances[iid])]


def get_legal_attack_targets(state: GameState, attacker_id: int) -> list[int]:
    """
    Targets an attacker may be pointed at: the enemy Deity or an enemy Avatar,
    narrowed to the enemy Guardians while any exist.
    """
    controller = get_controller(state, attacker_id)
    if controller is None:
        return []
    defender = get_opponent(state, controller.id)

    guardians = get_guardians(state, defender.id)
    if guardians:
        return guardians

    targets = []
    if defender.deity_id is not None:
        targets.append(defender.deity_id)
    targets.extend(defender.avatar_row)
    return targets


def get_legal_blockers(state: GameState, player_id: str) -> list[int]:
    """Untapped Avatars of the defending player not yet assigned to block."""
    if (state.is_over or state.phase != Phase.CLASH
            or state.active_player == player_id
            or state.combat.step != CombatStep.DECLARING_BLOCKERS):
        return []
    player = state.players[player_id]
    return [
        iid for iid in player.avatar_row
        if not state.instances[iid].tapped and not state.combat.is_blocking(iid)
    ]


def can_play_domain(state: GameState, player_id: str, config: Optional[RulesConfig] = None) -> bool:
    """Whether player_id still has a Domain play this turn."""
    config = config or RulesConfig()
    player = state.players[player_id]
    return (
        not state.is_over
        and state.phase == Phase.MAIN
        and state.active_player == player_id
        and state.pending_play is None
        and player.domains_played_this_turn < config.domains_per_turn
    )
